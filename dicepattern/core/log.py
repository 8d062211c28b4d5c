"""Structured logging for the CLI and the core components."""

import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

import structlog

# Handlers this module attached to the root logger, keyed by destination.
_HANDLERS: Dict[str, logging.Handler] = {}

_SHARED_PROCESSORS = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.format_exc_info,
]


def _renderer(structured: bool):
    if structured:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def _attach(root: logging.Logger, key: str, factory) -> None:
    if key in _HANDLERS:
        return
    handler = factory()
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)
    _HANDLERS[key] = handler


def setup_logging(
    level: str = "WARNING",
    structured: bool = False,
    log_file: Optional[Path] = None,
) -> None:
    """Route structlog events through stdlib logging.

    Safe to call more than once per process: the stderr and file handlers
    are attached only once, later calls just update the level and renderer.
    """
    numeric_level = getattr(logging, level.upper())
    root = logging.getLogger()
    root.setLevel(numeric_level)
    _attach(root, "<stderr>", lambda: logging.StreamHandler(sys.stderr))
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        _attach(root, str(log_file.resolve()), lambda: logging.FileHandler(log_file))

    processors: List = list(_SHARED_PROCESSORS)
    processors.append(_renderer(structured))
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
