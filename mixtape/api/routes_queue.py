"""Playback queue endpoints for the Mixtape API."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from mixtape.api.dependencies import get_queue, get_scheduler
from mixtape.models import MediaItem
from mixtape.playback.queue import PlaybackQueue, QueueState
from mixtape.updates.scheduler import UpdateScheduler

router = APIRouter(prefix="/api/queue", tags=["queue"])


class QueueLoad(BaseModel):
    items: list[MediaItem]
    start_index: int = Field(default=0, ge=0)


class QueueAppend(BaseModel):
    items: list[MediaItem]


class QueueMove(BaseModel):
    from_index: int
    to_index: int


class QueueRemove(BaseModel):
    index: int


async def _follow_playback(queue: PlaybackQueue, scheduler: UpdateScheduler) -> None:
    """Poll for updates only while something is playing."""
    if queue.is_idle:
        await scheduler.stop()
    else:
        scheduler.start()


@router.get("", response_model=QueueState)
async def get_state(queue: PlaybackQueue = Depends(get_queue)):
    return queue.snapshot()


@router.post("", response_model=QueueState)
async def start_playback(
    body: QueueLoad,
    queue: PlaybackQueue = Depends(get_queue),
    scheduler: UpdateScheduler = Depends(get_scheduler),
):
    """Replace the queue and start playing it."""
    try:
        queue.load(body.items, start_index=body.start_index)
    except IndexError as e:
        raise HTTPException(status_code=400, detail=str(e))
    await _follow_playback(queue, scheduler)
    return queue.snapshot()


@router.post("/enqueue", response_model=QueueState)
async def enqueue(
    body: QueueAppend,
    queue: PlaybackQueue = Depends(get_queue),
    scheduler: UpdateScheduler = Depends(get_scheduler),
):
    """Append items to the end of the queue."""
    queue.enqueue(body.items)
    await _follow_playback(queue, scheduler)
    return queue.snapshot()


@router.post("/advance", response_model=QueueState)
async def advance(
    queue: PlaybackQueue = Depends(get_queue),
    scheduler: UpdateScheduler = Depends(get_scheduler),
):
    """Called by the player when the current item finished."""
    queue.advance()
    await _follow_playback(queue, scheduler)
    return queue.snapshot()


@router.post("/skip", response_model=QueueState)
async def skip(
    queue: PlaybackQueue = Depends(get_queue),
    scheduler: UpdateScheduler = Depends(get_scheduler),
):
    queue.skip()
    await _follow_playback(queue, scheduler)
    return queue.snapshot()


@router.post("/reorder", response_model=QueueState)
async def reorder(body: QueueMove, queue: PlaybackQueue = Depends(get_queue)):
    try:
        queue.reorder(body.from_index, body.to_index)
    except IndexError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return queue.snapshot()


@router.post("/remove", response_model=QueueState)
async def remove(body: QueueRemove, queue: PlaybackQueue = Depends(get_queue)):
    try:
        queue.remove(body.index)
    except IndexError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return queue.snapshot()


@router.delete("", status_code=204)
async def clear(
    queue: PlaybackQueue = Depends(get_queue),
    scheduler: UpdateScheduler = Depends(get_scheduler),
):
    queue.clear()
    await scheduler.stop()
