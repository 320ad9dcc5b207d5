"""SQLAlchemy models for Mixtape."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def uid() -> str:
    """Generate a UUID string for primary keys."""
    return str(uuid.uuid4())


class UpdateEntryRecord(Base):
    """A collection registered to be polled for new content during playback."""

    __tablename__ = "update_entries"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=uid)
    source: Mapped[str] = mapped_column(String, index=True)
    # YouTube channel ID or RSS feed URL
    source_id: Mapped[str] = mapped_column(String)
    label: Mapped[str] = mapped_column(String)
    interval_minutes: Mapped[int] = mapped_column(Integer)
    last_checked: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_seen_item_id: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
