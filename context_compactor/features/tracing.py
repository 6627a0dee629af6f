"""OpenTelemetry tracing for summarization calls.

Only the OpenTelemetry API is used here. Without an SDK configured by the
application, spans are no-ops.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode

logger = logging.getLogger(__name__)

TRACER_NAME = "context_compactor"


def get_tracer():
    """Get the OpenTelemetry tracer for the compaction engine."""
    return trace.get_tracer(TRACER_NAME)


@contextmanager
def summarization_span(name: str, attributes: dict[str, Any] | None = None) -> Iterator[Span]:
    """Run a block inside a span, marking it OK or ERROR.

    Exceptions are recorded on the span and re-raised.
    """
    tracer = get_tracer()
    with tracer.start_as_current_span(
        name=name,
        attributes=attributes or {},
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
            span.set_status(Status(StatusCode.OK))
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise
