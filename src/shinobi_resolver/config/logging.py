"""structlog configuration for shinobi-resolve.

Engine modules log through stdlib ``logging``; structlog renders every
record on stderr (console by default, JSON lines with ``--log-json``) so
stdout stays clean for results.

Resolver events carry structured fields:

- ``component_type``, ``component_name`` and ``framework`` are bound for the
  duration of one resolution by :func:`resolution_scope`;
- ``path`` and ``layer`` are passed per record through ``extra=`` and
  lifted into the event by :class:`structlog.stdlib.ExtraAdder`.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

LOGGER_NAME = "shinobi_resolver"

RECORD_FIELDS = ("path", "layer")


@contextmanager
def resolution_scope(
    component_type: str,
    component_name: str,
    framework: str | None = None,
) -> Iterator[None]:
    """Bind the component being resolved to every log event inside the block."""
    fields = {"component_type": component_type, "component_name": component_name}
    if framework is not None:
        fields["framework"] = str(framework)
    with structlog.contextvars.bound_contextvars(**fields):
        yield


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Route all logging through structlog renderers on stderr.

    Args:
        verbose: Show DEBUG and up from shinobi_resolver (adjustments included).
            Otherwise only warnings: layer conflicts and superseded values.
        log_json: One JSON object per line instead of the console renderer.

    Calling it again replaces the previous handler.
    """
    shared: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    renderer: structlog.types.Processor
    if log_json:
        renderer = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=[*shared, structlog.stdlib.ExtraAdder(allow=RECORD_FIELDS)],
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(logging.WARNING)
    logging.getLogger(LOGGER_NAME).setLevel(logging.DEBUG if verbose else logging.WARNING)
    logging.getLogger("pluggy").setLevel(logging.WARNING)
