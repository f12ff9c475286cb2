"""
Logging configuration for timelog.

Delivery log calls pass ``extra=log_context(item)`` so every line about a
queued entry carries its request id and Redmine issue. Text output shows
them as ``[req_... #issue]``; JSON output adds ``item_id``/``issue_id`` keys.
The file handler keeps a local history of what was sent, queued or dropped.
"""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone

_TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s%(item_ref)s: %(message)s"


def log_context(item) -> dict:
    """``extra`` mapping for a log call about ``item`` (a QueuedItem)."""
    return {"item_id": item.id, "issue_id": item.issue_id}


class ItemContextFilter(logging.Filter):
    """Derive ``item_ref`` so the text format works for records with and without an item."""

    def filter(self, record: logging.LogRecord) -> bool:
        item_id = getattr(record, "item_id", None)
        issue_id = getattr(record, "issue_id", None)
        if item_id and issue_id is not None:
            record.item_ref = f" [{item_id} #{issue_id}]"
        elif issue_id is not None:
            record.item_ref = f" [#{issue_id}]"
        else:
            record.item_ref = ""
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line, with the delivery context when present."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in ("item_id", "issue_id"):
            value = getattr(record, key, None)
            if value is not None:
                log[key] = value
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log)


def setup_logging(log_level: str, logs_dir: str, json_output: bool = False) -> None:
    """Console on stderr (stdout is for CLI status lines) plus a rotating timelog.log."""
    os.makedirs(logs_dir, exist_ok=True)
    level = getattr(logging, log_level.upper(), logging.INFO)
    context = ItemContextFilter()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(JsonFormatter() if json_output else logging.Formatter(_TEXT_FORMAT, datefmt="%H:%M:%S"))

    history = logging.handlers.RotatingFileHandler(
        os.path.join(logs_dir, "timelog.log"),
        maxBytes=1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    history.setFormatter(logging.Formatter(_TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    for handler in (console, history):
        handler.setLevel(level)
        handler.addFilter(context)

    logging.basicConfig(level=level, handlers=[console, history], force=True)

    # Request lines from httpx would duplicate the engine's own delivery logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
