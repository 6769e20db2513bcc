"""
Data models for the billboard inventory.
A billboard points at the contract currently renting it; the link is cleared when the rental ends.
"""
import enum
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import Date, DateTime, Enum, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from adboard.core.database import Base, get_enum_values


class BillboardStatus(str, enum.Enum):
    AVAILABLE = "available"
    RENTED = "rented"
    MAINTENANCE = "maintenance"


class CleanupType(str, enum.Enum):
    MANUAL = "manual"
    AUTOMATIC = "automatic"


class Billboard(Base):
    """Entity representing a physical billboard."""

    __tablename__ = "billboards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    municipality: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    landmark: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    size: Mapped[str] = mapped_column(String(20), nullable=False, index=True)  # canonical, e.g. 4x12
    level: Mapped[str] = mapped_column(String(20), nullable=False, default="A")
    faces_count: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)  # own monthly price
    status: Mapped[BillboardStatus] = mapped_column(
        Enum(BillboardStatus, values_callable=get_enum_values),
        nullable=False,
        default=BillboardStatus.AVAILABLE,
        index=True
    )
    contract_id: Mapped[Optional[int]] = mapped_column(ForeignKey("contracts.id"), nullable=True, index=True)
    customer_name: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)
    rent_start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    rent_end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    billboard_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    coordinates: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )

    def __repr__(self):
        return f"<Billboard(id={self.id}, name={self.name}, size={self.size}, status={self.status})>"


class CleanupLog(Base):
    """Audit row written by every expiry sweep."""

    __tablename__ = "cleanup_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    cleanup_date: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(timezone.utc))
    billboards_cleaned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cleanup_type: Mapped[CleanupType] = mapped_column(
        Enum(CleanupType, values_callable=get_enum_values),
        nullable=False,
        default=CleanupType.MANUAL
    )
    notes: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
