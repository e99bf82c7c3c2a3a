"""Process-wide logging setup.

Dev/local: human-readable console lines.
Prod: one key=value line per record, ready for a log shipper.
"""

import logging
import logging.config

from config.settings import Settings

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

_CONSOLE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
_KV_FORMAT = 'timestamp=%(asctime)s level=%(levelname)s logger=%(name)s msg="%(message)s"'


def resolve_level(name: str) -> int:
    """Map a LOG_LEVEL string to a logging level; unknown values fall back to INFO."""
    return _LEVELS.get(name.strip().lower(), logging.INFO)


def configure_logging(settings: Settings) -> None:
    formatter = "kv" if settings.is_prod else "console"
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "console": {"format": _CONSOLE_FORMAT, "datefmt": "%Y-%m-%dT%H:%M:%S%z"},
                "kv": {"format": _KV_FORMAT, "datefmt": "%Y-%m-%dT%H:%M:%S%z"},
            },
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "formatter": formatter,
                    "stream": "ext://sys.stdout",
                },
            },
            "root": {"level": resolve_level(settings.LOG_LEVEL), "handlers": ["stdout"]},
            "loggers": {
                # sp.request already writes one line per request
                "uvicorn.access": {"level": logging.WARNING},
                "sqlalchemy.engine": {"level": logging.INFO if settings.DEBUG else logging.WARNING},
            },
        }
    )
