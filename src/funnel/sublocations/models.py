"""SubLocation persistence model."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, func, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.funnel.core.database import Base
from src.funnel.deals.models import Money


class SubLocationModel(Base):
    """Service billing record owned by a single user.

    discount_value and net_value are derived from service_value and
    discount_percentage on every write.
    """

    __tablename__ = "sublocations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    third_party_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    service_value: Mapped[float] = mapped_column(Money, default=0, server_default=text("0"))
    discount_percentage: Mapped[float] = mapped_column(
        Numeric(5, 2, asdecimal=False), default=0, server_default=text("0")
    )
    discount_value: Mapped[float] = mapped_column(Money, default=0, server_default=text("0"))
    net_value: Mapped[float] = mapped_column(Money, default=0, server_default=text("0"))
    service_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    service_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
