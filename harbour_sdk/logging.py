from __future__ import annotations

"""
Structured logging for the Harbour SDK.

The SDK only *emits* events through structlog; applications decide how they
are rendered. `setup_logging()` is a convenience for scripts and tests that
configures **structlog** + the stdlib ``logging`` package so that:
- SDK events and library logs (httpx) share one renderer (JSON or console).
- Context variables (e.g. a reconstruction pass id) are merged into each event.
- Log level & format are configurable via environment variables.

Quick start
-----------
    from harbour_sdk.logging import setup_logging, get_logger

    setup_logging(log_format="console")  # call once on process start
    log = get_logger(__name__)
    log.info("queue.reconstruct", safe="0x...", window=5)

Environment
-----------
- LOG_LEVEL: one of DEBUG, INFO, WARNING, ERROR (default: INFO)
- LOG_FORMAT: "json" (default) or "console"
"""

import logging
import os
from typing import Any, Dict, Iterable, Optional

import structlog
from structlog.contextvars import merge_contextvars
from structlog.processors import JSONRenderer

_HEX_FIELDS = ("r", "vs", "signature", "signatures")


def _shorten_signature_material(_: logging.Logger, __: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Processor that truncates raw signature bytes so logs stay readable and do
    not carry full authorization blobs.
    """
    for k in _HEX_FIELDS:
        v = event_dict.get(k)
        if isinstance(v, (bytes, bytearray)):
            event_dict[k] = f"0x{bytes(v)[:4].hex()}…({len(v)}B)"
    return event_dict


def _base_processors(service_name: str) -> Iterable:
    yield structlog.stdlib.add_log_level
    yield structlog.processors.TimeStamper(fmt="iso", utc=True)
    yield merge_contextvars
    yield structlog.processors.StackInfoRenderer()
    yield structlog.processors.format_exc_info
    yield _shorten_signature_material
    yield structlog.processors.UnicodeDecoder()

    def _ensure_service(_: logging.Logger, __: str, ev: Dict[str, Any]) -> Dict[str, Any]:
        ev.setdefault("service", service_name)
        return ev

    yield _ensure_service


def setup_logging(
    *,
    service_name: str = "harbour-sdk",
    level: Optional[str | int] = None,
    log_format: Optional[str] = None,
) -> None:
    """
    Configure structlog + stdlib logging. Safe to call more than once; the
    root handler is replaced each time.
    """
    level = level or os.getenv("LOG_LEVEL", "").upper() or "INFO"
    log_format = (log_format or os.getenv("LOG_FORMAT", "") or "json").lower()

    processors = list(_base_processors(service_name))
    if log_format == "console":
        renderer = structlog.dev.ConsoleRenderer(colors=False, sort_keys=False)
    else:
        renderer = JSONRenderer(sort_keys=True)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            *processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
            foreign_pre_chain=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                *processors,
            ],
        )
    )

    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)

    logging.getLogger("httpcore").setLevel(os.getenv("LOG_LEVEL_HTTPCORE", "WARNING"))
    logging.getLogger("httpx").setLevel(os.getenv("LOG_LEVEL_HTTPX", "WARNING"))


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """
    Return a structlog logger; bind module name if provided.
    """
    log = structlog.get_logger()
    if name:
        return log.bind(logger=name)
    return log


__all__ = [
    "setup_logging",
    "get_logger",
]
