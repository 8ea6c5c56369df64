"""
Structured logging for the data-access layer.

Adapters, the CRUD polyfill and the facade log through :func:`get_logger`
(a structlog bound logger). Applications call :func:`configure_logging`
once at startup, or :func:`diaspora.core.settings.configure_from_settings`
to read the level and format from the environment.

The facade runs every adapter call inside a :class:`LogContext` carrying
``adapter``, ``collection`` and ``operation``, so polyfill and adapter logs
emitted during the call are tagged without passing those fields around::

    configure_logging(level="DEBUG", service="inventory")
    await dal.find_many("users", {"age": {">": 30}})
    # {"event": "polyfill_degrade", "adapter": "memory",
    #  "collection": "users", "operation": "find_many", ...}

Processor order: contextvars, timestamp, level, logger name, service stamp,
ECS field names (JSON only), renderer.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from contextvars import Token
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# structlog key -> ECS key, applied to JSON output only
_ECS_FIELDS: Mapping[str, str] = {
    "timestamp": "@timestamp",
    "level": "log.level",
    "logger": "log.logger",
}


class ServiceStamp:
    """Processor adding ``service.name`` unless the event already carries one."""

    def __init__(self, service: str):
        self.service = service

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service.name", self.service)
        return event_dict


def rename_ecs_fields(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    for key, ecs_key in _ECS_FIELDS.items():
        if key in event_dict:
            event_dict[ecs_key] = event_dict.pop(key)
    return event_dict


def build_processors(service: str, json_format: bool, add_timestamp: bool = True) -> list[Processor]:
    """Processor chain used by :func:`configure_logging`, renderer included."""
    processors: list[Processor] = [structlog.contextvars.merge_contextvars]
    if add_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))
    processors += [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        ServiceStamp(service),
    ]
    if json_format:
        processors += [rename_ecs_fields, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    return processors


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "diaspora",
    add_timestamp: bool = True,
) -> None:
    """Configure structlog and the stdlib root handler.

    Args:
        level: DEBUG, INFO, WARNING or ERROR.
        json_format: JSON lines when true, console output when false; by
            default JSON unless stdout is a terminal.
        service: Value of ``service.name`` on every event.
        add_timestamp: Stamp events with an ISO timestamp.
    """
    if json_format is None:
        json_format = not sys.stdout.isatty()
    numeric_level = getattr(logging, level.upper())

    structlog.configure(
        processors=build_processors(service, json_format, add_timestamp),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name)


class LogContext:
    """Bind context variables for the duration of a ``with``/``async with`` block.

    Values bound by an enclosing context are restored on exit, so nested
    contexts (a facade call issued from inside another) do not erase the
    outer fields.
    """

    def __init__(self, **fields: Any):
        self._fields = fields
        self._tokens: Mapping[str, Token[Any]] = {}

    def __enter__(self) -> LogContext:
        self._tokens = structlog.contextvars.bind_contextvars(**self._fields)
        return self

    def __exit__(self, *exc_info: object) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)
        self._tokens = {}

    async def __aenter__(self) -> LogContext:
        return self.__enter__()

    async def __aexit__(self, *exc_info: object) -> None:
        self.__exit__(*exc_info)


__all__ = [
    "LogContext",
    "ServiceStamp",
    "build_processors",
    "configure_logging",
    "get_logger",
    "rename_ecs_fields",
]
