"""structlog configuration for cdpgen.

Console lines on stderr by default, JSON lines with ``--log-json``. Log
records emitted inside :func:`pipeline_stage` carry the stage name
(``load``, ``resolve``, ``plan``, ``emit``, ``write``). A schema error
passed as ``error=``, or as ``extra={"error": ...}`` on a stdlib logger, is
flattened into its code and dotted location so JSON consumers can filter
on it.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

import structlog

from cdpgen.domain.errors import SchemaError

# Loggers whose DEBUG output is noise for someone generating a client.
_QUIET_LOGGERS = ("jinja2",)


def _schema_error_fields(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    error = event_dict.get("error")
    if isinstance(error, SchemaError):
        event_dict["error"] = error.message
        event_dict["error_code"] = error.code
        if error.path:
            event_dict["schema_path"] = error.location
        if error.source:
            event_dict["schema_file"] = error.source
    return event_dict


@contextmanager
def pipeline_stage(stage: str, **context: Any) -> Generator[None]:
    """Tag every log record emitted inside the block with ``stage=<stage>``."""
    with structlog.contextvars.bound_contextvars(stage=stage, **context):
        yield


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Route ``cdpgen`` and stdlib records through one structlog formatter.

    Calling it again replaces the previous handler.

    Args:
        verbose: DEBUG for the ``cdpgen`` loggers, WARNING otherwise.
        log_json: JSON lines instead of the console renderer.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _schema_error_fields,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=[structlog.stdlib.ExtraAdder(), *shared_processors],
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger("cdpgen").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
