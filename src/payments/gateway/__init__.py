"""Payment outcome providers.

``build_provider`` picks an adapter from configuration:
- ``random``          DummyPayProvider, approves ``success_rate`` of charges
- ``always_succeed``  FixedOutcomeProvider(succeeded=True)
- ``always_fail``     FixedOutcomeProvider(succeeded=False)
"""

import random

from payments.gateway.dummy_adapter import DummyPayProvider
from payments.gateway.fixed_adapter import FixedOutcomeProvider
from payments.gateway.port import ChargeOutcome, PaymentOutcomeProvider
from shared.config import PaymentSettings


def build_provider(settings: PaymentSettings, rng: random.Random | None = None) -> PaymentOutcomeProvider:
    if settings.mode == "always_succeed":
        return FixedOutcomeProvider(succeeded=True, provider=settings.provider)
    if settings.mode == "always_fail":
        return FixedOutcomeProvider(succeeded=False, provider=settings.provider)
    if settings.mode == "random":
        return DummyPayProvider(success_rate=settings.success_rate, rng=rng, provider=settings.provider)
    raise ValueError(f"Unknown payment mode: {settings.mode}")


__all__ = [
    "ChargeOutcome",
    "DummyPayProvider",
    "FixedOutcomeProvider",
    "PaymentOutcomeProvider",
    "build_provider",
]
