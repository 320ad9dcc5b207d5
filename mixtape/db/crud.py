"""CRUD utilities for update entries."""

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mixtape.db.models import UpdateEntryRecord


def _as_utc(dt: datetime) -> datetime:
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


async def list_update_entries(db: AsyncSession) -> list[UpdateEntryRecord]:
    """List all update entries, oldest registration first."""
    result = await db.execute(
        select(UpdateEntryRecord).order_by(
            UpdateEntryRecord.created_at, UpdateEntryRecord.id
        )
    )
    return list(result.scalars().all())


async def get_update_entry(db: AsyncSession, entry_id: str) -> UpdateEntryRecord | None:
    """Get an update entry by its ID."""
    result = await db.execute(
        select(UpdateEntryRecord).where(UpdateEntryRecord.id == entry_id)
    )
    return result.scalar_one_or_none()


async def create_update_entry(
    db: AsyncSession,
    source: str,
    source_id: str,
    label: str,
    interval_minutes: int,
    last_seen_item_id: str | None = None,
) -> UpdateEntryRecord:
    """Register a collection for update polling."""
    entry = UpdateEntryRecord(
        source=source,
        source_id=source_id,
        label=label,
        interval_minutes=interval_minutes,
        last_seen_item_id=last_seen_item_id,
    )
    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    return entry


async def delete_update_entry(db: AsyncSession, entry_id: str) -> bool:
    """Delete an update entry. Returns False if it did not exist."""
    entry = await get_update_entry(db, entry_id)
    if entry is None:
        return False
    await db.delete(entry)
    await db.commit()
    return True


async def advance_marker(
    db: AsyncSession,
    entry_id: str,
    last_seen_item_id: str,
    checked_at: datetime,
) -> UpdateEntryRecord | None:
    """Record the newest item seen for an entry.

    ``last_checked`` never moves backwards. Returns None without writing
    anything if the entry has been deleted.
    """
    entry = await get_update_entry(db, entry_id)
    if entry is None:
        return None

    entry.last_seen_item_id = last_seen_item_id
    if entry.last_checked is None or _as_utc(entry.last_checked) < _as_utc(checked_at):
        entry.last_checked = checked_at

    await db.commit()
    await db.refresh(entry)
    return entry


async def touch_last_checked(
    db: AsyncSession, entry_id: str, checked_at: datetime
) -> UpdateEntryRecord | None:
    """Record a check that found nothing new."""
    entry = await get_update_entry(db, entry_id)
    if entry is None:
        return None

    if entry.last_checked is None or _as_utc(entry.last_checked) < _as_utc(checked_at):
        entry.last_checked = checked_at
        await db.commit()
        await db.refresh(entry)
    return entry
