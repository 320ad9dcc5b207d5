"""Update detection and scheduling for Mixtape."""

from .detection import MAX_UPDATE_PAGES, UpdateScan, detect_new_items

__all__ = ["MAX_UPDATE_PAGES", "UpdateScan", "detect_new_items"]
