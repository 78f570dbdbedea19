"""Structlog configuration.

Colored console output in a terminal, JSON lines otherwise. Libraries that
log through the standard library (APScheduler, httpx, uvicorn) are routed
to stdout at the same minimum level.
"""

import logging
import os
import sys

import structlog

# Per-request lines from these libraries duplicate the probes' events
NOISY_LOGGERS = ("httpx", "httpcore", "apscheduler.executors.default")


def _use_colors() -> bool:
    # FORCE_COLOR=1 enables colors in non-TTY environments (like Docker)
    if os.environ.get("FORCE_COLOR", "").lower() in ("1", "true", "yes"):
        return True
    return sys.stdout.isatty()


def _add_service(service: str) -> structlog.types.Processor:
    def processor(logger, method_name, event_dict):
        event_dict.setdefault("service", service)
        return event_dict

    return processor


def configure_logging(level: str = "INFO", service: str = "groups-api") -> None:
    """Configure structlog and the standard library root logger.

    Args:
        level: Minimum log level name; unknown names fall back to INFO
        service: Value of the ``service`` key stamped on every event
    """
    min_level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _add_service(service),
        structlog.processors.StackInfoRenderer(),
    ]
    if _use_colors():
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        level=min_level,
        stream=sys.stdout,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        force=True,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(min_level, logging.WARNING))
