"""Probabilistic payment adapter.

Simulates a gateway that approves a fixed share of charges regardless of the
amount. The random source is injectable so a seeded ``random.Random`` gives
reproducible runs.
"""

import random
from decimal import Decimal

from payments.gateway.port import ChargeOutcome, PaymentOutcomeProvider

DEFAULT_SUCCESS_RATE = 0.7
DEFAULT_PROVIDER = "DummyPay"


class DummyPayProvider(PaymentOutcomeProvider):
    def __init__(
        self,
        success_rate: float = DEFAULT_SUCCESS_RATE,
        rng: random.Random | None = None,
        provider: str = DEFAULT_PROVIDER,
    ) -> None:
        if not 0.0 <= success_rate <= 1.0:
            raise ValueError(f"success_rate must be within [0, 1], got {success_rate}")
        self.success_rate = success_rate
        self.provider = provider
        self._rng = rng or random.Random()

    def charge(self, amount: Decimal) -> ChargeOutcome:  # noqa: ARG002
        return ChargeOutcome(succeeded=self._rng.random() < self.success_rate, provider=self.provider)
