from __future__ import annotations

import json
import logging
import logging.config
import os

DEFAULT_CONSOLE_FORMAT = "%(asctime)s %(levelname)s [%(backend)s] %(module)s:%(lineno)d %(message)s"
QUIET_LOGGERS = ("aiohttp.access", "multipart", "urllib3")

_backend_name = "-"

# Attributes every LogRecord carries; anything else arrived through `extra=`.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
    "taskName",
    "color_message",
    "backend",
}


class _BackendFilter(logging.Filter):
    """Stamps each record with the active storage backend unless it names one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "backend", None):
            record.backend = _backend_name
        return True


class _JsonExtraFormatter(logging.Formatter):
    """Appends `extra=` fields to the formatted line as sorted JSON."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}
        if not extras:
            return line
        return f"{line} {json.dumps(extras, default=str, sort_keys=True)}"


def set_backend_name(name: str | None) -> None:
    global _backend_name
    _backend_name = name or "-"


def configure_logging(*, log_level: str = "INFO", backend_name: str | None = None) -> None:
    """Send all logging to stdout through a single console handler.

    `CONSOLE_LOG_FORMAT` replaces the default format; it may use
    `%(backend)s`, which is always populated.
    """
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {"backend": {"()": _BackendFilter}},
            "formatters": {
                "console": {
                    "()": _JsonExtraFormatter,
                    "format": os.getenv("CONSOLE_LOG_FORMAT", DEFAULT_CONSOLE_FORMAT),
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": str(log_level).upper(),
                    "formatter": "console",
                    "filters": ["backend"],
                    "stream": "ext://sys.stdout",
                }
            },
            "root": {"level": "DEBUG", "handlers": ["console"]},
        }
    )

    set_backend_name(backend_name)
    logging.captureWarnings(True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
