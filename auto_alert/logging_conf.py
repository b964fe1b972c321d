"""Logging configuration built around structlog JSON logging."""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path

import structlog

_LOGGING_INITIALISED = False
LOGGER_NAME = "auto_alert"


def configure_logging(level: str = "INFO", log_dir: Path | None = None) -> structlog.stdlib.BoundLogger:
    """Configure structlog + stdlib handlers and return the application logger.

    Console output is always enabled; ``log_dir`` adds ``auto_alert.log`` and an
    ``error.log`` that only receives ERROR and above.
    """

    global _LOGGING_INITIALISED
    if not _LOGGING_INITIALISED:
        level = level.upper()
        handlers: dict[str, dict] = {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "json",
            },
        }
        if log_dir is not None:
            log_dir.mkdir(parents=True, exist_ok=True)
            handlers["app_file"] = {
                "class": "logging.FileHandler",
                "level": level,
                "filename": str(log_dir / "auto_alert.log"),
                "formatter": "json",
                "encoding": "utf-8",
            }
            handlers["error_file"] = {
                "class": "logging.FileHandler",
                "level": "ERROR",
                "filename": str(log_dir / "error.log"),
                "formatter": "json",
                "encoding": "utf-8",
            }
        logging.config.dictConfig(
            {
                "version": 1,
                "disable_existing_loggers": False,
                "formatters": {
                    "json": {
                        "()": "pythonjsonlogger.json.JsonFormatter",
                        "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
                    }
                },
                "handlers": handlers,
                "loggers": {
                    LOGGER_NAME: {
                        "handlers": list(handlers),
                        "level": level,
                        "propagate": False,
                    },
                    "apscheduler": {
                        "handlers": list(handlers),
                        "level": "WARNING",
                        "propagate": False,
                    },
                },
            }
        )

        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.stdlib.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        _LOGGING_INITIALISED = True
    return structlog.get_logger(LOGGER_NAME)


def component_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Return the application logger bound to a component name."""

    return structlog.get_logger(LOGGER_NAME).bind(component=component)


__all__ = ["LOGGER_NAME", "component_logger", "configure_logging"]
