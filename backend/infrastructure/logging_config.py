"""Logging setup: human-readable lines in development, one JSON object per line elsewhere."""

import json
import logging
import re
import sys
from datetime import UTC, datetime

# Credentials that must never reach a log sink
_SENSITIVE_PATTERNS = [
    (re.compile(r"(Authorization:\s*Bearer\s+)\S+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r'(password["\s:=]+)[^\s&"\']+', re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r'(secret["\s:=]+)[^\s&"\']+', re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(postgres(?:ql)?(?:\+\w+)?://[^:/\s]+:)[^@\s]+@", re.IGNORECASE), r"\1[REDACTED]@"),
]

# Record attributes promoted to top-level JSON keys
_EXTRA_FIELDS = (
    "request_id",
    "method",
    "path",
    "status_code",
    "duration_ms",
    "user_id",
    "actor_id",
    "content_id",
    "event",
)

_TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"

_LIBRARY_LEVELS = {
    "uvicorn.access": logging.INFO,
    "sqlalchemy.engine": logging.WARNING,
    "aiosqlite": logging.WARNING,
}


def _redact(value: str) -> str:
    for pattern, replacement in _SENSITIVE_PATTERNS:
        value = pattern.sub(replacement, value)
    return value


def _redact_args(args):
    if isinstance(args, tuple):
        return tuple(_redact(a) if isinstance(a, str) else a for a in args)
    if isinstance(args, dict):
        return {k: (_redact(v) if isinstance(v, str) else v) for k, v in args.items()}
    return args


class SensitiveDataFilter(logging.Filter):
    """Scrubs bearer tokens, passwords, secrets and database credentials."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = _redact(record.msg)
        record.args = _redact_args(record.args)
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record, carrying request and content context when present."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            {key: getattr(record, key) for key in _EXTRA_FIELDS if hasattr(record, key)}
        )
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        try:
            return json.dumps(entry, default=str)
        except TypeError:
            return str(entry)


def setup_logging(json_output: bool = False, level: str = "INFO") -> None:
    """
    Replace the root logger's handlers with a single stdout handler.

    Args:
        json_output: JSONFormatter when True, plain text otherwise.
        level: Root log level name; unknown names fall back to INFO.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        JSONFormatter() if json_output else logging.Formatter(_TEXT_FORMAT, datefmt=_TEXT_DATEFMT)
    )
    # On the handler, so records propagated from child loggers are scrubbed too
    handler.addFilter(SensitiveDataFilter())
    root.addHandler(handler)

    for name, library_level in _LIBRARY_LEVELS.items():
        logging.getLogger(name).setLevel(library_level)
