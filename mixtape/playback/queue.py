"""Playback queue with in-place interruption for newly published content."""

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass

from pydantic import BaseModel

from mixtape.models import MediaItem

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class QueueSlot:
    """One queued item.

    ``inserted`` marks items spliced in by an interruption rather than
    scheduled as part of the original continuation; ``origin`` names the
    update entry that produced them.
    """

    item: MediaItem
    inserted: bool = False
    origin: str | None = None


class QueueSlotView(BaseModel):
    item: MediaItem
    inserted: bool
    origin: str | None = None


class QueueState(BaseModel):
    """Serializable snapshot of the queue."""

    slots: list[QueueSlotView]
    current_index: int | None


def _key(item: MediaItem) -> tuple[str, str]:
    return (item.source.value, item.id)


class PlaybackQueue:
    """Ordered media items with a single "now playing" position.

    The current index always points at a valid slot, or is None when the
    queue is idle. Played items stay in the queue as history.

    Every mutation holds one lock, so an interruption arriving from the
    update scheduler cannot interleave with the player reporting that the
    current item finished.
    """

    def __init__(self) -> None:
        self._slots: list[QueueSlot] = []
        self._current: int | None = None
        self._lock = threading.Lock()

    @property
    def current_index(self) -> int | None:
        return self._current

    @property
    def current(self) -> MediaItem | None:
        with self._lock:
            if self._current is None:
                return None
            return self._slots[self._current].item

    @property
    def is_idle(self) -> bool:
        return self._current is None

    @property
    def items(self) -> list[MediaItem]:
        with self._lock:
            return [slot.item for slot in self._slots]

    def __len__(self) -> int:
        return len(self._slots)

    def snapshot(self) -> QueueState:
        with self._lock:
            return QueueState(
                slots=[
                    QueueSlotView(item=s.item, inserted=s.inserted, origin=s.origin)
                    for s in self._slots
                ],
                current_index=self._current,
            )

    def load(self, items: Iterable[MediaItem], start_index: int = 0) -> MediaItem | None:
        """Replace the queue and start playing at ``start_index``.

        Raises:
            IndexError: If start_index is outside a non-empty item list
        """
        slots = [QueueSlot(item=item) for item in items]
        if slots and not 0 <= start_index < len(slots):
            raise IndexError(f"start_index {start_index} out of range")

        with self._lock:
            self._slots = slots
            self._current = start_index if slots else None
            return self._slots[self._current].item if slots else None

    def enqueue(self, items: Iterable[MediaItem]) -> int:
        """Append items to the end of the original continuation."""
        new_slots = [QueueSlot(item=item) for item in items]
        if not new_slots:
            return 0

        with self._lock:
            start = len(self._slots)
            self._slots.extend(new_slots)
            if self._current is None:
                self._current = start
            return len(new_slots)

    def interrupt(self, new_items: Iterable[MediaItem], origin: str | None = None) -> int:
        """Splice items in right after the currently playing one.

        ``new_items`` are expected oldest-first and keep that order. They go
        behind any previously inserted items still waiting directly after
        the current one, so several update entries queue up in detection
        order, and always ahead of the original continuation. Items already
        waiting in the queue are not inserted twice. While idle, the items
        are appended and the first of them starts playing.

        Returns:
            Number of items inserted
        """
        with self._lock:
            pending = {_key(s.item) for s in self._slots[self._first_upcoming() :]}

            new_slots: list[QueueSlot] = []
            for item in new_items:
                if _key(item) in pending:
                    continue
                pending.add(_key(item))
                new_slots.append(QueueSlot(item=item, inserted=True, origin=origin))

            if not new_slots:
                return 0

            if self._current is None:
                position = len(self._slots)
                self._current = position
            else:
                position = self._current + 1
                while position < len(self._slots) and self._slots[position].inserted:
                    position += 1

            self._slots[position:position] = new_slots

        logger.info(
            f"Inserted {len(new_slots)} item(s) at position {position}"
            + (f" from update entry {origin}" if origin else "")
        )
        return len(new_slots)

    def advance(self) -> MediaItem | None:
        """Move past the current item once it has finished.

        When the finished item was the last of an inserted run, the next
        slot is the original continuation that was pending before the
        interruption. Returns the new current item, or None when the queue
        goes idle.
        """
        with self._lock:
            if self._current is None:
                return None
            if self._current + 1 < len(self._slots):
                self._current += 1
                return self._slots[self._current].item
            self._current = None
            return None

    def skip(self) -> MediaItem | None:
        """Abandon the current item and move to the next one."""
        return self.advance()

    def reorder(self, from_index: int, to_index: int) -> None:
        """Move an upcoming item to another upcoming position.

        Raises:
            IndexError: If either index is not an upcoming slot
        """
        with self._lock:
            first = self._first_upcoming()
            for index in (from_index, to_index):
                if not first <= index < len(self._slots):
                    raise IndexError(f"index {index} is not an upcoming item")
            slot = self._slots.pop(from_index)
            self._slots.insert(to_index, slot)

    def remove(self, index: int) -> MediaItem:
        """Remove an upcoming item.

        Raises:
            IndexError: If index is not an upcoming slot
        """
        with self._lock:
            if not self._first_upcoming() <= index < len(self._slots):
                raise IndexError(f"index {index} is not an upcoming item")
            return self._slots.pop(index).item

    def clear(self) -> None:
        with self._lock:
            self._slots.clear()
            self._current = None

    def _first_upcoming(self) -> int:
        if self._current is None:
            return len(self._slots)
        return self._current + 1
