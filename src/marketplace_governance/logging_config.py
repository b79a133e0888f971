"""Structured logging for the governance engine, configured from Settings.

Development renders colored console lines; every other environment renders
JSON. Rejected transitions are logged by passing the domain error as `exc`:
the `add_governance_error` processor replaces it with its `error_code` and
`error_message`, so a refused approve and a refused bulk item look the same in
the log stream.

Usage:
    from marketplace_governance.logging_config import setup_logging, get_logger
    setup_logging(get_settings())
    logger = get_logger(__name__)
    logger.warning("ad.refused", ad_id="42", exc=UnauthorizedError("7", "approve", "ROLE_ADMIN"))
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

from marketplace_governance.domain.exceptions import GovernanceError

if TYPE_CHECKING:
    from structlog.types import EventDict, WrappedLogger

    from marketplace_governance.config import Settings

_THIRD_PARTY_LOGGERS = ("uvicorn.access", "aiosqlite", "httpx")


def add_governance_error(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Flatten a GovernanceError passed as `exc` into code and message fields."""
    exc = event_dict.get("exc")
    if isinstance(exc, GovernanceError):
        del event_dict["exc"]
        event_dict["error_code"] = exc.code
        event_dict["error_message"] = exc.message
    return event_dict


def setup_logging(settings: Settings) -> None:
    """Configure structlog and the stdlib root logger from the settings.

    `app_log_level` sets the root level. SQL statement logging stays at the
    root level when `db_echo_sql` is on and is quieted otherwise.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        add_governance_error,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.is_development:
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer(colors=True)
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, settings.app_log_level.upper(), logging.INFO))

    quiet = _THIRD_PARTY_LOGGERS
    if not settings.db_echo_sql:
        quiet = (*quiet, "sqlalchemy.engine")
    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
