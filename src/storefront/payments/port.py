"""Payment gateway port (abstract interface).

Defines the contract that payment adapters implement. Refunds are handled
outside the checkout subsystem and are not part of this interface.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class IntentStatus(Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class PaymentIntent:
    """Result of an authorization attempt."""

    intent_id: str
    status: IntentStatus
    amount: float
    currency: str
    failure_reason: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is IntentStatus.SUCCEEDED

    @property
    def failed(self) -> bool:
        return self.status is IntentStatus.FAILED


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def authorize(self, amount: float, currency: str, method: str) -> PaymentIntent:
        """Authorize a charge of ``amount`` with the given payment method."""
        ...

    @abstractmethod
    def retrieve(self, intent_id: str) -> PaymentIntent:
        """Fetch the current state of a previously created intent."""
        ...
