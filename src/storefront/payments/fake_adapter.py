"""Configurable fake payment gateway for development and testing.

This adapter simulates a real gateway without any external calls. It can be
configured at runtime to succeed, fail, or leave intents pending, and pending
intents can later be settled to exercise asynchronous confirmation.
"""

from dataclasses import replace
from uuid import uuid4

from protean.exceptions import ObjectNotFoundError

from storefront.payments.port import IntentStatus, PaymentGateway, PaymentIntent


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.outcome: IntentStatus = IntentStatus.SUCCEEDED
        self.failure_reason: str = "Card declined"
        self.calls: list[dict] = []
        self._intents: dict[str, PaymentIntent] = {}

    def configure(self, outcome: IntentStatus | str, failure_reason: str = "Card declined") -> None:
        """Configure the outcome of subsequent authorizations."""
        self.outcome = IntentStatus(outcome)
        self.failure_reason = failure_reason

    def authorize(self, amount: float, currency: str, method: str) -> PaymentIntent:
        self.calls.append(
            {
                "method": "authorize",
                "amount": amount,
                "currency": currency,
                "payment_method": method,
            }
        )

        intent = PaymentIntent(
            intent_id=f"fake_pi_{uuid4().hex[:12]}",
            status=self.outcome,
            amount=amount,
            currency=currency,
            failure_reason=self.failure_reason if self.outcome is IntentStatus.FAILED else None,
        )
        self._intents[intent.intent_id] = intent
        return intent

    def retrieve(self, intent_id: str) -> PaymentIntent:
        self.calls.append({"method": "retrieve", "intent_id": intent_id})
        try:
            return self._intents[intent_id]
        except KeyError:
            raise ObjectNotFoundError({"_entity": f"Payment intent {intent_id} not found"}) from None

    def settle(self, intent_id: str, outcome: IntentStatus | str = IntentStatus.SUCCEEDED) -> PaymentIntent:
        """Resolve a pending intent, as a gateway webhook would."""
        intent = replace(self.retrieve(intent_id), status=IntentStatus(outcome))
        self._intents[intent_id] = intent
        return intent
