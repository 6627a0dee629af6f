"""Cross-cutting features: tracing and compaction events."""

from .events import COMPACTION_COMPLETED, CompactionEvent, CompactionListener, emit
from .tracing import get_tracer, summarization_span

__all__ = [
    "COMPACTION_COMPLETED",
    "CompactionEvent",
    "CompactionListener",
    "emit",
    "get_tracer",
    "summarization_span",
]
