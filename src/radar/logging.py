"""structlog setup for the scanner and helpers for per-cycle log context.

Every scan cycle binds ``cycle`` and every symbol task binds ``symbol`` through
``scan_context``; both ride on contextvars, so they follow a symbol's task
across awaits and land on every event it logs, including events from the
fetcher and the gate.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog

#: Third-party loggers that are too chatty at INFO during a scan.
_QUIET_LOGGERS = ("aiohttp.access", "uvicorn.access", "aiosqlite")

#: Float fields are rounded to this many decimals in rendered events.
_FLOAT_DIGITS = 6


def _round_floats(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Trim float noise (e.g. 0.30000000000000004) from indicator values."""
    for key, value in event_dict.items():
        if isinstance(value, float):
            event_dict[key] = round(value, _FLOAT_DIGITS)
    return event_dict


def setup_logging(log_level: str = "INFO", log_format: str = "console") -> None:
    """Route structlog and stdlib logging through one renderer.

    Args:
        log_level: Root level name ("DEBUG", "INFO", ...).
        log_format: "json" for a log collector, anything else renders for a
            terminal without colours (output is often piped to a file).
    """
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _round_floats,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    renderer: structlog.types.Processor
    if log_format.lower() == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def scan_context(**fields: Any) -> Iterator[None]:
    """Bind scan fields (``cycle``, ``symbol``) to every event logged inside the block."""
    with structlog.contextvars.bound_contextvars(**fields):
        yield


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger with the given name."""
    return structlog.get_logger(name)
