"""Structured logging for the filtering engine.

structlog renders both its own events and stdlib ``logging`` records, so leaf
modules can keep using ``logging.getLogger(__name__)``. Every event emitted
while a filtering request is running carries that request's ``request_id``.
"""

import logging
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

import structlog

current_request_id: ContextVar[Optional[str]] = ContextVar("current_request_id", default=None)

QUIET_LOGGERS = (
    "googleapiclient.discovery",
    "googleapiclient.discovery_cache",
    "httplib2",
    "urllib3.connectionpool",
)


def add_request_id(_logger, _method_name, event_dict):
    """Processor: tag the event with the running request's id, if any."""
    request_id = current_request_id.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def _pre_chain() -> list:
    """Processors applied to structlog events and foreign stdlib records alike."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_request_id,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(json_output: bool):
    if json_output:
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def setup_logging(log_level: str = "INFO", json_output: bool = False) -> None:
    """Route structlog and stdlib logging through one stderr handler.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR
        json_output: One JSON object per line instead of console output
    """
    pre_chain = _pre_chain()

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(json_output),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper()))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging_from_config(config: dict) -> None:
    """Configure logging from the ``log_level``/``log_json`` config keys."""
    setup_logging(config.get("log_level", "INFO"), config.get("log_json", False))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


@contextmanager
def request_context(request_id: Optional[str] = None) -> Iterator[str]:
    """Tag log events inside the block with a request id.

    Nested blocks restore the outer id on exit.

    Args:
        request_id: Id to use (a short random id when omitted)

    Yields:
        The request id in effect
    """
    request_id = request_id or uuid.uuid4().hex[:12]
    token = current_request_id.set(request_id)
    try:
        yield request_id
    finally:
        current_request_id.reset(token)
