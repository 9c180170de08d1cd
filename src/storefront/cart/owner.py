"""Cart ownership as an explicit tagged variant.

A cart belongs either to an anonymous browsing session or to a signed-in
customer. Consumers match on the variant instead of probing nullable ids.
"""

from dataclasses import dataclass
from enum import Enum

from protean.exceptions import ValidationError


class OwnerType(Enum):
    ANONYMOUS = "Anonymous"
    IDENTIFIED = "Identified"


@dataclass(frozen=True)
class Anonymous:
    session_id: str

    @property
    def owner_type(self) -> OwnerType:
        return OwnerType.ANONYMOUS

    @property
    def reference(self) -> str:
        return self.session_id


@dataclass(frozen=True)
class Identified:
    customer_id: str

    @property
    def owner_type(self) -> OwnerType:
        return OwnerType.IDENTIFIED

    @property
    def reference(self) -> str:
        return self.customer_id


Owner = Anonymous | Identified


def owner_from(owner_type: str | OwnerType, reference: str) -> Owner:
    """Rebuild an owner from its stored (type, reference) pair."""
    if not reference:
        raise ValidationError({"owner": ["Owner reference is required"]})

    match OwnerType(owner_type):
        case OwnerType.ANONYMOUS:
            return Anonymous(session_id=reference)
        case OwnerType.IDENTIFIED:
            return Identified(customer_id=reference)
