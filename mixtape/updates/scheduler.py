"""Timer-driven polling of update entries during playback."""

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mixtape.db import crud
from mixtape.errors import MediaSourceError, UnsupportedOperation
from mixtape.models import MediaItem, MediaSourceType, UpdateEntry
from mixtape.playback.queue import PlaybackQueue
from mixtape.sources.base import MediaSource

logger = logging.getLogger(__name__)


class EntryState(str, Enum):
    IDLE = "idle"
    CHECKING = "checking"


class CheckOutcome(str, Enum):
    NO_CHANGE = "no_change"
    NEW_CONTENT = "new_content"
    # Marker unset or no longer in the listing: moved to the newest item, nothing inserted
    REANCHORED = "reanchored"
    FAILED = "failed"
    # A check for the same entry was already running
    SKIPPED = "skipped"
    # The entry was removed while its check was running
    DISCARDED = "discarded"


@dataclass
class CheckResult:
    entry_id: str
    outcome: CheckOutcome
    items: list[MediaItem] = field(default_factory=list)
    error: str | None = None


class EntryStatus(BaseModel):
    entry: UpdateEntry
    state: EntryState
    last_error: str | None = None


def seconds_until_due(entry: UpdateEntry, now: datetime) -> float:
    """Seconds until an entry's next check; zero if it is due or overdue.

    Several missed intervals still add up to a single catch-up check.
    """
    if entry.last_checked is None:
        return 0.0
    elapsed = (now - entry.last_checked).total_seconds()
    return max(0.0, entry.interval_minutes * 60 - elapsed)


class UpdateScheduler:
    """Polls every registered update entry on its own timer.

    Each entry gets one asyncio task. Checks of different entries run
    concurrently; checks of the same entry never overlap (a tick that
    arrives while one is running is skipped). New content is announced at
    most once: the advanced marker is persisted before the items are
    handed to the queue, and nothing is inserted if that write fails.

    Polling is tied to playback: call start() when playback begins and
    stop() when the queue goes idle.
    """

    def __init__(
        self,
        sources: Mapping[MediaSourceType, MediaSource],
        queue: PlaybackQueue,
        sessionmaker: async_sessionmaker[AsyncSession],
        check_timeout: float = 60.0,
        now: Callable[[], datetime] | None = None,
    ):
        self._sources = sources
        self._queue = queue
        self._sessionmaker = sessionmaker
        self._check_timeout = check_timeout
        self._now = now or (lambda: datetime.now(timezone.utc))

        self._entries: dict[str, UpdateEntry] = {}
        self._tasks: dict[str, asyncio.Task] = {}
        # entry id -> task running its check
        self._in_flight: dict[str, asyncio.Task | None] = {}
        self._last_errors: dict[str, str] = {}
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def entries(self) -> list[UpdateEntry]:
        return list(self._entries.values())

    def get(self, entry_id: str) -> UpdateEntry | None:
        return self._entries.get(entry_id)

    def status(self, entry_id: str) -> EntryStatus | None:
        entry = self._entries.get(entry_id)
        if entry is None:
            return None
        return EntryStatus(
            entry=entry,
            state=EntryState.CHECKING if entry_id in self._in_flight else EntryState.IDLE,
            last_error=self._last_errors.get(entry_id),
        )

    def statuses(self) -> list[EntryStatus]:
        return [s for s in (self.status(i) for i in list(self._entries)) if s]

    async def load(self) -> int:
        """Restore persisted entries.

        If the store cannot be read the scheduler starts with no entries
        instead of failing.

        Returns:
            Number of entries registered
        """
        try:
            async with self._sessionmaker() as db:
                records = await crud.list_update_entries(db)
                entries = [UpdateEntry.model_validate(r) for r in records]
        except (SQLAlchemyError, OSError):
            logger.exception("Could not restore update entries; starting with none")
            return 0

        loaded = 0
        for entry in entries:
            try:
                self.register(entry)
            except UnsupportedOperation as e:
                logger.warning(f"Ignoring update entry {entry.id}: {e}")
                continue
            loaded += 1

        logger.info(f"Restored {loaded} update entries")
        return loaded

    def register(self, entry: UpdateEntry) -> None:
        """Start tracking an entry (and its timer, if running).

        Raises:
            UnsupportedOperation: If the entry's source cannot be polled
        """
        source = self._sources.get(entry.source)
        if source is None or not source.is_update_source:
            name = source.display_name if source else entry.source.value
            raise UnsupportedOperation(name, "does not support update polling")

        self._cancel_timer(entry.id)
        self._entries[entry.id] = entry
        self._last_errors.pop(entry.id, None)
        if self._running:
            self._spawn(entry.id)

    def unregister(self, entry_id: str) -> bool:
        """Stop tracking an entry.

        A check already running for it finishes and discards its result.
        Returns False if the entry was not registered.
        """
        entry = self._entries.pop(entry_id, None)
        self._last_errors.pop(entry_id, None)
        self._cancel_timer(entry_id)
        return entry is not None

    def start(self) -> None:
        """Start one timer per entry. Overdue entries are checked right away."""
        if self._running:
            return
        self._running = True
        for entry_id in self._entries:
            self._spawn(entry_id)
        logger.info(f"Update scheduler started ({len(self._entries)} entries)")

    async def stop(self) -> None:
        """Cancel every timer and wait for them to finish."""
        if not self._running:
            return
        self._running = False
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Update scheduler stopped")

    async def check_now(self, entry_id: str) -> CheckResult:
        """Run one check for an entry immediately.

        Raises:
            KeyError: If the entry is not registered
        """
        entry = self._entries.get(entry_id)
        if entry is None:
            raise KeyError(entry_id)

        if entry_id in self._in_flight:
            logger.debug(f"Check for update entry {entry_id} already running; skipping")
            return CheckResult(entry_id, CheckOutcome.SKIPPED)

        self._in_flight[entry_id] = asyncio.current_task()
        try:
            return await self._check(entry)
        finally:
            self._in_flight.pop(entry_id, None)

    def _spawn(self, entry_id: str) -> None:
        self._tasks[entry_id] = asyncio.create_task(
            self._run_entry(entry_id), name=f"update-entry:{entry_id}"
        )

    def _cancel_timer(self, entry_id: str) -> None:
        task = self._tasks.pop(entry_id, None)
        # A timer busy checking is left to finish; it exits once it sees the entry gone
        if task is not None and self._in_flight.get(entry_id) is not task:
            task.cancel()

    async def _run_entry(self, entry_id: str) -> None:
        entry = self._entries.get(entry_id)
        if entry is None:
            return
        delay = seconds_until_due(entry, self._now())

        while True:
            if delay > 0:
                await asyncio.sleep(delay)
            if not self._owns_timer(entry_id):
                return

            try:
                await self.check_now(entry_id)
            except KeyError:
                return
            except Exception:
                # One entry's failure must never end its timer or anyone else's
                logger.exception(f"Unexpected error checking update entry {entry_id}")

            entry = self._entries.get(entry_id)
            if entry is None or not self._owns_timer(entry_id):
                return
            delay = entry.interval_minutes * 60

    def _owns_timer(self, entry_id: str) -> bool:
        # False once the entry was removed, or replaced by a new registration
        return entry_id in self._entries and self._tasks.get(entry_id) is asyncio.current_task()

    async def _check(self, entry: UpdateEntry) -> CheckResult:
        source = self._sources[entry.source]

        try:
            scan = await asyncio.wait_for(
                source.scan_for_updates(entry.source_id, entry.last_seen_item_id),
                timeout=self._check_timeout,
            )
        except asyncio.TimeoutError:
            return self._fail(entry, f"check timed out after {self._check_timeout}s")
        except MediaSourceError as e:
            return self._fail(entry, str(e))
        except Exception as e:
            logger.exception(f"Update check for {entry.label!r} crashed")
            return self._fail(entry, f"{type(e).__name__}: {e}")

        if entry.id not in self._entries:
            return self._discard(entry)

        checked_at = self._now()

        if scan.items:
            newest = scan.items[-1].id
            outcome = CheckOutcome.NEW_CONTENT
        elif not scan.marker_found and scan.newest_item_id:
            newest = scan.newest_item_id
            outcome = CheckOutcome.REANCHORED
        else:
            newest = None
            outcome = CheckOutcome.NO_CHANGE

        try:
            async with self._sessionmaker() as db:
                if newest is None:
                    record = await crud.touch_last_checked(db, entry.id, checked_at)
                else:
                    record = await crud.advance_marker(db, entry.id, newest, checked_at)
        except (SQLAlchemyError, OSError) as e:
            logger.exception(f"Could not persist marker for {entry.label!r}")
            return self._fail(entry, f"could not persist marker: {e}")

        if record is None or entry.id not in self._entries:
            return self._discard(entry)

        self._entries[entry.id] = UpdateEntry.model_validate(record)
        self._last_errors.pop(entry.id, None)

        if outcome is CheckOutcome.NEW_CONTENT:
            inserted = self._queue.interrupt(scan.items, origin=entry.id)
            logger.info(
                f"{len(scan.items)} new item(s) from {entry.label!r}, "
                f"{inserted} inserted into the queue"
            )
            return CheckResult(entry.id, outcome, items=scan.items)

        if outcome is CheckOutcome.REANCHORED:
            if entry.last_seen_item_id:
                logger.warning(
                    f"Last seen item {entry.last_seen_item_id!r} of {entry.label!r} "
                    f"is no longer listed; marker moved to {newest!r}"
                )
            else:
                logger.info(f"Marker for {entry.label!r} initialised to {newest!r}")
        else:
            logger.debug(f"No new content from {entry.label!r}")

        return CheckResult(entry.id, outcome)

    def _fail(self, entry: UpdateEntry, message: str) -> CheckResult:
        logger.warning(f"Update check for {entry.label!r} failed: {message}")
        if entry.id in self._entries:
            self._last_errors[entry.id] = message
        return CheckResult(entry.id, CheckOutcome.FAILED, error=message)

    def _discard(self, entry: UpdateEntry) -> CheckResult:
        logger.info(f"Update entry {entry.id} was removed mid-check; result discarded")
        return CheckResult(entry.id, CheckOutcome.DISCARDED)
