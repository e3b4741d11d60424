"""Logging setup shared by the client stack and the dev backend.

``configure_logging("json")`` emits newline-delimited JSON records, anything
else gives the plain text format. Extra fields passed with
``logger.info("...", extra={...})`` are merged into JSON records.
"""

import json
import logging

_EXTRA_FIELDS = ("method", "path", "status", "duration_ms", "query_key",
                 "attempt", "request_id")


class _JsonFormatter(logging.Formatter):
    """Emit log records as newline-delimited JSON."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            if hasattr(record, key):
                data[key] = getattr(record, key)
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


def configure_logging(log_format: str = "text", level: int = logging.INFO) -> logging.Handler:
    """Install a single stream handler on the root logger.

    Args:
        log_format: "json" for structured output, anything else for text.
        level: Root log level.

    Returns:
        The installed handler.
    """
    handler = logging.StreamHandler()
    if log_format == "json":
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
    logging.basicConfig(handlers=[handler], level=level, force=True)
    return handler
