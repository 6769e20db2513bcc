"""
Data model for rental contracts.
Installments, the billboard set and the installation breakdown are stored as JSON documents
on the contract row; they are recomputed as a whole on every write.
"""
import enum
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import Date, DateTime, Enum, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from adboard.core.database import Base, get_enum_values


class ContractStatus(str, enum.Enum):
    ACTIVE = "active"
    EXPIRED = "expired"


class DiscountType(str, enum.Enum):
    PERCENT = "percent"
    AMOUNT = "amount"


class Contract(Base):
    """Entity representing a billboard rental contract. Never hard-deleted."""

    __tablename__ = "contracts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    contract_number: Mapped[int] = mapped_column(Integer, unique=True, nullable=False, index=True)
    customer_id: Mapped[Optional[int]] = mapped_column(ForeignKey("customers.id"), nullable=True, index=True)
    customer_name: Mapped[str] = mapped_column(String(150), nullable=False, index=True)
    ad_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    pricing_category: Mapped[str] = mapped_column(String(50), nullable=False, default="regular")

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    duration_mode: Mapped[str] = mapped_column(String(10), nullable=False, default="months")
    duration_value: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Monetary breakdown (see contracts.calculator)
    estimated_total: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    rent_cost: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)  # manual override, 0 = use estimate
    base_rent_total: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    discount_type: Mapped[DiscountType] = mapped_column(
        Enum(DiscountType, values_callable=get_enum_values),
        nullable=False,
        default=DiscountType.PERCENT
    )
    discount_value: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    discount_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    installation_cost: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    installation_details: Mapped[str] = mapped_column(Text, nullable=False, default="[]")  # JSON list
    print_price_per_meter: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    print_cost: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    operating_fee_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    operating_fee: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    rental_cost_only: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    final_total: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    billboard_ids: Mapped[str] = mapped_column(Text, nullable=False, default="[]")  # JSON list of ints
    installments: Mapped[str] = mapped_column(Text, nullable=False, default="[]")  # JSON list of installments

    status: Mapped[ContractStatus] = mapped_column(
        Enum(ContractStatus, values_callable=get_enum_values),
        nullable=False,
        default=ContractStatus.ACTIVE,
        index=True
    )
    renewed_from_id: Mapped[Optional[int]] = mapped_column(ForeignKey("contracts.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )

    def __repr__(self):
        return f"<Contract(number={self.contract_number}, customer={self.customer_name}, total={self.final_total})>"
