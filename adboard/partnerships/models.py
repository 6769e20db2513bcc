"""
Billboards co-owned with partner companies, and the ledger of how their rent was shared.
"""
import enum
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Enum, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from adboard.core.database import Base, get_enum_values


class SplitPhase(str, enum.Enum):
    RECOVERY = "recovery"
    PROFIT_SHARING = "profit_sharing"


class TransactionType(str, enum.Enum):
    RENTAL_INCOME = "rental_income"
    CAPITAL_DEDUCTION = "capital_deduction"


class Partnership(Base):
    """Entity representing a shared billboard and the partner capital still to recover."""

    __tablename__ = "partnerships"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    billboard_id: Mapped[int] = mapped_column(ForeignKey("billboards.id"), unique=True, nullable=False, index=True)
    partner_companies: Mapped[str] = mapped_column(Text, nullable=False, default="[]")  # JSON list of names
    capital: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    capital_remaining: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )

    def __repr__(self):
        return f"<Partnership(billboard_id={self.billboard_id}, capital_remaining={self.capital_remaining})>"


class SharedTransaction(Base):
    """One beneficiary's part of a rent payment on a shared billboard. Kept after the partnership ends."""

    __tablename__ = "shared_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    billboard_id: Mapped[int] = mapped_column(ForeignKey("billboards.id"), nullable=False, index=True)
    contract_id: Mapped[Optional[int]] = mapped_column(ForeignKey("contracts.id"), nullable=True)
    beneficiary: Mapped[str] = mapped_column(String(150), nullable=False, index=True)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    transaction_type: Mapped[TransactionType] = mapped_column(
        Enum(TransactionType, values_callable=get_enum_values),
        nullable=False,
        default=TransactionType.RENTAL_INCOME
    )
    phase: Mapped[SplitPhase] = mapped_column(
        Enum(SplitPhase, values_callable=get_enum_values),
        nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<SharedTransaction(beneficiary={self.beneficiary}, amount={self.amount})>"
