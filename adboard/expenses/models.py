"""
Operating-fee pool bookkeeping.
Contract fees feed the pool; withdrawals draw from it and closures freeze settled periods.
"""
import enum
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, Enum, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from adboard.core.database import Base, get_enum_values


class ClosureType(str, enum.Enum):
    PERIOD = "period"
    CONTRACT_RANGE = "contract_range"


class FeeExclusion(Base):
    """Per-contract flag keeping a contract's fee out of the pool."""

    __tablename__ = "fee_exclusions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    contract_id: Mapped[int] = mapped_column(ForeignKey("contracts.id"), unique=True, nullable=False, index=True)
    excluded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )


class FeeWithdrawal(Base):
    __tablename__ = "fee_withdrawals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    withdrawn_on: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    method: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<FeeWithdrawal(id={self.id}, amount={self.amount})>"


class PeriodClosure(Base):
    """
    A settled slice of the pool: either contracts starting within a date period
    or contracts within a number range. Totals are frozen at closing time.
    """

    __tablename__ = "period_closures"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    closure_type: Mapped[ClosureType] = mapped_column(
        Enum(ClosureType, values_callable=get_enum_values),
        nullable=False
    )
    period_start: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    period_end: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    contract_start: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    contract_end: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    closure_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_contracts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_withdrawn: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    remaining_balance: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<PeriodClosure(id={self.id}, type={self.closure_type}, amount={self.total_amount})>"
