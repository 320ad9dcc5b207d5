"""Playback queue for Mixtape."""

from .queue import PlaybackQueue, QueueSlot, QueueState

__all__ = ["PlaybackQueue", "QueueSlot", "QueueState"]
