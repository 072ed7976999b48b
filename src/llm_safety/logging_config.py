"""Structured logging for the safety layer.

Every module logs through ``structlog.get_logger(__name__)`` with key/value
fields. configure_logging() routes those events through the stdlib root
logger: JSON lines in production, coloured console output elsewhere.

Per-call fields (prompt id, version, call id) are bound through structlog
contextvars by the orchestrator, so tier failures and retry attempts logged
deep inside one safety call can be correlated.
"""

import logging
import sys
from typing import IO, Iterable, Optional

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

APP_NAME = "llm-safety-layer"

# Loggers of libraries the safety layer talks through.
NOISY_LOGGERS = ("httpx", "httpcore", "asyncio", "redis")

CALL_CONTEXT_KEYS = ("prompt_id", "prompt_version", "call_id")


def add_app_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict["app"] = APP_NAME
    return event_dict


def _shared_processors(json_output: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_app_context,
    ]
    if json_output:
        processors.append(structlog.processors.format_exc_info)
    return processors


def configure_logging(
    log_level: str = "INFO",
    environment: str = "development",
    stream: Optional[IO[str]] = None,
    quiet_loggers: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """Install structlog on top of the stdlib root logger.

    Args:
        log_level: Root level name; unknown names fall back to INFO
        environment: ``production`` selects the JSON renderer
        stream: Output stream (default stdout)
        quiet_loggers: Library loggers capped at WARNING
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    json_output = environment.lower() == "production"
    shared = _shared_processors(json_output)

    renderer: Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=stream is None)

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=shared)
    )
    handler.setLevel(level)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.get_logger(__name__).info(
        "Logging configured",
        log_level=logging.getLevelName(level),
        environment=environment,
        renderer="json" if json_output else "console",
    )


def bind_call_context(prompt_id: str, version: str | None = None, **extra: object) -> None:
    """Bind per-call fields onto every log line of the current task.

    Concurrent calls running in separate asyncio tasks keep separate
    contexts.
    """
    structlog.contextvars.bind_contextvars(
        prompt_id=prompt_id,
        prompt_version=version or "latest",
        **extra,
    )


def clear_call_context() -> None:
    structlog.contextvars.unbind_contextvars(*CALL_CONTEXT_KEYS)
