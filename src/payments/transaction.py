"""Transaction record: proof of a successful charge for an order.

Written only when the charge succeeds, inside the same unit of work that
commits the order. Declined attempts leave no row behind.
"""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from sqlalchemy import DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from shared.database import Base


class TransactionStatus(Enum):
    SUCCESS = "SUCCESS"


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    status: Mapped[str] = mapped_column(String(20), default=TransactionStatus.SUCCESS.value)
    provider: Mapped[str] = mapped_column(String(50))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "amount": str(self.amount),
            "status": self.status,
            "provider": self.provider,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
