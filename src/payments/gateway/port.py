"""Payment outcome provider port (abstract interface).

Defines the contract every payment adapter implements. The order engine is
handed a provider at construction time, so swapping the dummy adapter for a
deterministic one (tests) or a real gateway never touches ordering code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class ChargeOutcome:
    """Verdict of a charge attempt. A decline is a normal outcome, not an error."""

    succeeded: bool
    provider: str


class PaymentOutcomeProvider(ABC):
    """Abstract payment outcome provider."""

    @abstractmethod
    def charge(self, amount: Decimal) -> ChargeOutcome:
        """Charge ``amount`` and report whether it went through."""
        ...
