from __future__ import annotations

import json
import logging
import logging.config

_STANDARD_LOGRECORD_ATTRS = {
    "name",
    "msg",
    "message",
    "asctime",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
}

DEFAULT_CONSOLE_FORMAT = "%(asctime)s %(levelname)s %(module)s:%(lineno)d %(message)s"


class _JsonExtraFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        extras = _extract_extras(record)
        if not extras:
            return base
        extras_json = json.dumps(extras, default=str, sort_keys=True)
        return f"{base} {extras_json}"


def _extract_extras(record: logging.LogRecord) -> dict[str, object]:
    extras: dict[str, object] = {}
    for key, value in record.__dict__.items():
        if key in _STANDARD_LOGRECORD_ATTRS:
            continue
        extras[key] = value
    return extras


def configure_logging(*, log_level: str = "WARNING", console_format: str | None = None) -> None:
    """Configure root logging for the discovery CLI.

    Logs go to stderr so discovered devices printed on stdout stay parseable.
    Values passed through ``extra=`` are appended to each line as JSON.
    """
    console_level_name = str(log_level).upper()

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "()": "camprobe.logging_setup._JsonExtraFormatter",
                    "format": console_format or DEFAULT_CONSOLE_FORMAT,
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": console_level_name,
                    "formatter": "default",
                    "stream": "ext://sys.stderr",
                }
            },
            "root": {"level": "DEBUG", "handlers": ["console"]},
        }
    )
    logging.captureWarnings(True)
