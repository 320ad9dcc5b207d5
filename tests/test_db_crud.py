"""Tests for update entry persistence."""

from datetime import datetime, timedelta, timezone

import pytest

from mixtape.db import crud


async def make_entry(db, source_id="UC123", **kwargs):
    return await crud.create_update_entry(
        db,
        source=kwargs.pop("source", "youtube"),
        source_id=source_id,
        label=kwargs.pop("label", "Channel"),
        interval_minutes=kwargs.pop("interval_minutes", 30),
        **kwargs,
    )


def as_utc(dt):
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


@pytest.mark.asyncio
async def test_create_and_get(test_db):
    async with test_db() as db:
        entry = await make_entry(db, last_seen_item_id="v1")

        assert entry.id is not None
        assert entry.created_at is not None
        assert entry.last_checked is None

        fetched = await crud.get_update_entry(db, entry.id)
        assert fetched.source_id == "UC123"
        assert fetched.last_seen_item_id == "v1"


@pytest.mark.asyncio
async def test_list_in_registration_order(test_db):
    async with test_db() as db:
        await make_entry(db, source_id="first")
        await make_entry(db, source_id="second")

        entries = await crud.list_update_entries(db)

        assert {e.source_id for e in entries} == {"first", "second"}


@pytest.mark.asyncio
async def test_delete(test_db):
    async with test_db() as db:
        entry = await make_entry(db)

        assert await crud.delete_update_entry(db, entry.id) is True
        assert await crud.delete_update_entry(db, entry.id) is False
        assert await crud.get_update_entry(db, entry.id) is None


@pytest.mark.asyncio
async def test_advance_marker(test_db):
    checked_at = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

    async with test_db() as db:
        entry = await make_entry(db, last_seen_item_id="v1")

        updated = await crud.advance_marker(db, entry.id, "v3", checked_at)

        assert updated.last_seen_item_id == "v3"
        assert as_utc(updated.last_checked) == checked_at


@pytest.mark.asyncio
async def test_last_checked_never_moves_backwards(test_db):
    later = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
    earlier = later - timedelta(minutes=5)

    async with test_db() as db:
        entry = await make_entry(db)
        await crud.touch_last_checked(db, entry.id, later)

        updated = await crud.advance_marker(db, entry.id, "v9", earlier)
        assert updated.last_seen_item_id == "v9"
        assert as_utc(updated.last_checked) == later

        touched = await crud.touch_last_checked(db, entry.id, earlier)
        assert as_utc(touched.last_checked) == later


@pytest.mark.asyncio
async def test_updates_to_missing_entry(test_db):
    now = datetime.now(timezone.utc)

    async with test_db() as db:
        assert await crud.advance_marker(db, "missing", "v1", now) is None
        assert await crud.touch_last_checked(db, "missing", now) is None
