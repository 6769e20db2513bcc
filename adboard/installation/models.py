"""
Size catalogue carrying the installation price for each billboard size.
"""
from typing import Optional

from sqlalchemy import Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from adboard.core.database import Base


class SizeSpec(Base):
    """Entity representing a registered billboard size and its installation fee."""

    __tablename__ = "sizes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)  # canonical, e.g. 4x12
    width: Mapped[float] = mapped_column(Float, nullable=True)
    height: Mapped[float] = mapped_column(Float, nullable=True)
    installation_price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=999, nullable=False)

    def __repr__(self):
        return f"<SizeSpec(name={self.name}, installation_price={self.installation_price})>"
