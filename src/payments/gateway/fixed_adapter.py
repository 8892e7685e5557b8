"""Deterministic payment adapter.

Always returns the outcome it was configured with, bypassing randomness.
Records every charge so tests can assert on what the engine asked for.
"""

from decimal import Decimal

from payments.gateway.dummy_adapter import DEFAULT_PROVIDER
from payments.gateway.port import ChargeOutcome, PaymentOutcomeProvider


class FixedOutcomeProvider(PaymentOutcomeProvider):
    def __init__(self, succeeded: bool = True, provider: str = DEFAULT_PROVIDER) -> None:
        self.succeeded = succeeded
        self.provider = provider
        self.charges: list[Decimal] = []

    def configure(self, succeeded: bool) -> None:
        """Switch the forced outcome at runtime."""
        self.succeeded = succeeded

    def charge(self, amount: Decimal) -> ChargeOutcome:
        self.charges.append(amount)
        return ChargeOutcome(succeeded=self.succeeded, provider=self.provider)
