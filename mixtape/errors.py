"""Error taxonomy shared by all media sources."""


class MediaSourceError(Exception):
    """Base class for failures raised by a media source."""

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message


class Unauthenticated(MediaSourceError):
    """No (or an expired) credential was presented to a source that needs one."""


class UnsupportedOperation(MediaSourceError):
    """A capability-gated operation was called on a source lacking it."""


class NotFound(MediaSourceError):
    """A collection or resolution target does not exist upstream."""


class MalformedSource(MediaSourceError):
    """A locally parsed document is structurally invalid."""


class UpstreamError(MediaSourceError):
    """A provider answered with a non-2xx status."""

    def __init__(self, source: str, status_code: int, message: str = ""):
        super().__init__(source, f"API error: {status_code} {message}".rstrip())
        self.status_code = status_code
        self.reason = message


class TransientError(MediaSourceError):
    """Network or timeout failure; retried at the next scheduled check."""


class InvalidCursor(ValueError):
    """A pagination cursor that this source did not issue."""
