"""Update entry endpoints for the Mixtape API."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from mixtape.api.dependencies import get_scheduler, get_sources, lookup_source
from mixtape.db import crud
from mixtape.db.session import get_session
from mixtape.errors import UnsupportedOperation
from mixtape.models import MediaItem, MediaSourceType, UpdateEntry
from mixtape.sources import SourceRegistry
from mixtape.updates.scheduler import CheckOutcome, EntryStatus, UpdateScheduler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/updates", tags=["updates"])
limiter = Limiter(key_func=get_remote_address)


class UpdateEntryCreate(BaseModel):
    source: MediaSourceType
    source_id: str = Field(min_length=1)
    label: str | None = None
    interval_minutes: int | None = Field(default=None, ge=1)
    last_seen_item_id: str | None = None


class CheckResponse(BaseModel):
    entry_id: str
    outcome: CheckOutcome
    items: list[MediaItem]
    error: str | None = None


@router.get("", response_model=list[EntryStatus])
async def list_entries(scheduler: UpdateScheduler = Depends(get_scheduler)):
    """Every registered update entry with its polling state."""
    return scheduler.statuses()


@router.post("", response_model=EntryStatus, status_code=201)
async def create_entry(
    body: UpdateEntryCreate,
    sources: SourceRegistry = Depends(get_sources),
    scheduler: UpdateScheduler = Depends(get_scheduler),
    db: AsyncSession = Depends(get_session),
):
    """
    Designate a collection (YouTube channel ID or feed URL) as pollable.

    Without a last_seen_item_id the first check only records the newest
    item, so existing content is not announced as new.
    """
    source = lookup_source(sources, body.source)
    if not source.is_update_source:
        raise UnsupportedOperation(source.display_name, "does not support update polling")

    record = await crud.create_update_entry(
        db,
        source=body.source.value,
        source_id=body.source_id,
        label=body.label or body.source_id,
        interval_minutes=body.interval_minutes or source.default_update_interval_minutes,
        last_seen_item_id=body.last_seen_item_id,
    )
    entry = UpdateEntry.model_validate(record)
    scheduler.register(entry)
    logger.info(f"Registered update entry {entry.id} for {entry.source.value} {entry.source_id}")
    return scheduler.status(entry.id)


@router.delete("/{entry_id}", status_code=204)
async def delete_entry(
    entry_id: str,
    scheduler: UpdateScheduler = Depends(get_scheduler),
    db: AsyncSession = Depends(get_session),
):
    """Remove an update entry and cancel its timer."""
    # Unregister first so an in-flight check discards its result
    registered = scheduler.unregister(entry_id)
    deleted = await crud.delete_update_entry(db, entry_id)
    if not registered and not deleted:
        raise HTTPException(status_code=404, detail="Update entry not found")


@router.post("/{entry_id}/check", response_model=CheckResponse)
@limiter.limit("30/minute")
async def check_entry(
    request: Request,
    entry_id: str,
    scheduler: UpdateScheduler = Depends(get_scheduler),
):
    """Check one entry for new content right now."""
    try:
        result = await scheduler.check_now(entry_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Update entry not found")

    return CheckResponse(
        entry_id=result.entry_id,
        outcome=result.outcome,
        items=result.items,
        error=result.error,
    )
