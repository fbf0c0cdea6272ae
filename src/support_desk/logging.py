"""Structured logging for support_desk.

Events are structlog key-value records: pretty console output during
development, JSON lines in production. Contact email addresses never reach
the output in clear text, and per-request identifiers (organization,
thread) can be bound once with ``log_context`` instead of being repeated
on every call.
"""

import logging
import sys
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from typing import Any

import structlog

__all__ = [
    "configure_logging",
    "get_logger",
    "log_context",
    "mask_contact_email",
]

_NOISY_LOGGERS = ("httpx", "httpcore", "motor", "pymongo", "openai", "anthropic", "redis")


def mask_contact_email(
    logger: Any,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Keep the first character and the domain of an ``email`` field."""
    email = event_dict.get("email")
    if isinstance(email, str) and "@" in email:
        local, _, domain = email.partition("@")
        event_dict["email"] = f"{local[:1]}***@{domain}"
    return event_dict


def configure_logging(
    level: int = logging.INFO,
    json_output: bool = False,
    add_timestamp: bool = True,
) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        level: Logging level (default: INFO)
        json_output: Emit JSON lines instead of console output
        add_timestamp: Add an ISO timestamp to every event
    """
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        mask_contact_email,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if add_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso", utc=True))

    if json_output:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Logger for a module, usually called with ``__name__``."""
    return structlog.get_logger(name)


@contextmanager
def log_context(**values: Any) -> Iterator[None]:
    """Bind ``values`` to every event logged inside the block.

    None values are skipped. Bindings are task-local, so concurrent
    requests do not see each other's context.

    Example:
        with log_context(organization_id=org_id, thread_id=thread_id):
            await agent.generate_reply(thread_id, prompt)
    """
    bound = {key: value for key, value in values.items() if value is not None}
    with structlog.contextvars.bound_contextvars(**bound):
        yield


_configured = False


def _ensure_configured() -> None:
    global _configured
    if not _configured:
        configure_logging()
        _configured = True


_ensure_configured()
