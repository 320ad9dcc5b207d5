"""Root logger setup: plain text in dev, one JSON object per line in prod."""

import json
import logging
import sys

from mixtape.config import get_settings


class JsonFormatter(logging.Formatter):
    """Renders level, message, logger name and any traceback as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        base = {
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
        }
        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(base)


def setup_logging() -> None:
    """Install a single stdout handler on the root logger at the configured level."""
    settings = get_settings()
    handler = logging.StreamHandler(sys.stdout)

    if settings.env == "prod":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(settings.log_level)

    # httpx logs every request at INFO; the scheduler polls often
    logging.getLogger("httpx").setLevel(logging.WARNING)
