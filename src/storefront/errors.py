"""Error taxonomy for the storefront domain.

Missing records surface as ``protean.exceptions.ObjectNotFoundError`` and
malformed input as ``protean.exceptions.ValidationError``. Business rule
violations carry a machine-readable ``code`` so the API layer can map them
to responses without parsing messages.
"""

from protean.exceptions import InvalidOperationError


class BusinessError(InvalidOperationError):
    """A recoverable business rule violation, tagged with a code."""

    def __init__(self, code, message=None, **details):
        self.code = code
        self.message = message or code.replace("_", " ").capitalize()
        self.details = details
        super().__init__({code.lower(): [self.message]})

    def __str__(self):
        return f"{self.code}: {self.message}"


class OutOfStock(BusinessError):
    """Requested quantity is not available for a variant."""

    def __init__(self, variant_id, requested=None, available=None):
        self.variant_id = variant_id
        self.requested = requested
        self.available = available
        super().__init__(
            "OUT_OF_STOCK",
            f"Insufficient stock for variant {variant_id}",
            variant_id=variant_id,
            requested=requested,
            available=available,
        )


class ConflictError(InvalidOperationError):
    """A uniqueness constraint would be violated."""

    def __init__(self, field, message):
        self.field = field
        self.message = message
        super().__init__({field: [message]})

    def __str__(self):
        return self.message


class LedgerIntegrityError(RuntimeError):
    """Inventory counters disagree with the caller's expectations.

    Raised by ``commit`` when less stock is reserved than is being committed.
    This is a programming error, never a condition callers should handle.
    """
