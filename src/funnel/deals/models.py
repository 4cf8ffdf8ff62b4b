"""Deal persistence model -- one row per sales opportunity.

Money columns are NUMERIC(18,2) read back as floats. status, priority and
payment_method store the integer values of the enums in deals/schemas.py.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String, func, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.funnel.core.database import Base

Money = Numeric(18, 2, asdecimal=False)


class DealModel(Base):
    """Sales opportunity owned by a single user.

    Archived deals stay in the table (is_archived + archived_at) but are
    left out of the default list and of every dashboard aggregate.
    """

    __tablename__ = "deals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    company: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    value: Mapped[float] = mapped_column(Money, default=0, server_default=text("0"))
    gross_value: Mapped[float] = mapped_column(Money, default=0, server_default=text("0"))
    net_value: Mapped[float] = mapped_column(Money, default=0, server_default=text("0"))
    status: Mapped[int] = mapped_column(Integer, default=0, server_default=text("0"))
    priority: Mapped[int] = mapped_column(Integer, default=1, server_default=text("1"))
    payment_method: Mapped[int | None] = mapped_column(Integer, nullable=True)
    expected_close_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    payment_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    birthday: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    is_archived: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), index=True
    )
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
