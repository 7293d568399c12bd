"""JSON-lines formatter for the fallback logger."""

from datetime import datetime, timezone
import itertools
import json
import logging


class JsonFormatter(logging.Formatter):
    """
    Format log records as one JSON object per line.

    Messages that are already JSON objects keep their fields and are
    stamped with the record id, level and a timestamp if they lack one.
    """

    def __init__(self):
        super().__init__()
        self._ids = itertools.count(1)

    def _base_entry(self, record: logging.LogRecord) -> dict:
        return {
            "id": next(self._ids),
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
        }

    def format(self, record):
        message = record.getMessage()
        entry = self._base_entry(record)

        stripped = message.strip()
        if stripped.startswith("{") and stripped.endswith("}"):
            try:
                parsed = json.loads(stripped)
            except json.JSONDecodeError:
                parsed = None
            if isinstance(parsed, dict):
                parsed.setdefault("timestamp", entry["timestamp"])
                parsed.setdefault("level", entry["level"])
                parsed["id"] = entry["id"]
                return json.dumps(parsed)

        entry["message"] = message
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)
