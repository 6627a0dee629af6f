"""Compaction lifecycle events delivered to an injected callback."""

import inspect
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

COMPACTION_COMPLETED = "compaction.completed"


class CompactionEvent(BaseModel):
    """Payload emitted after a compaction summary has been built.

    Attributes:
        event_type: Type of event
        kept_messages: Number of messages kept verbatim
        dropped_messages: Number of messages folded into the summary
        trimmed_tool_results: Number of soft-trimmed tool results
        total_chars: Pre-trim size of the whole transcript
        kept_chars: Pre-trim size of the kept messages
        dropped_chars: Pre-trim size of the dropped messages
        budget_chars: History budget the decision was made against
        summary_tokens: Estimated size of the produced summary
        duration_ms: Wall time spent building the summary
        created_at: When the event was created
    """

    event_type: str = COMPACTION_COMPLETED
    kept_messages: int
    dropped_messages: int
    trimmed_tool_results: int = 0
    total_chars: int = 0
    kept_chars: int = 0
    dropped_chars: int = 0
    budget_chars: int = 0
    summary_tokens: int = 0
    duration_ms: float = 0.0
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


CompactionListener = Callable[[CompactionEvent], Awaitable[None] | None]


async def emit(listener: CompactionListener | None, event: CompactionEvent) -> None:
    """Deliver an event to a sync or async listener.

    A failing listener is logged and does not affect the compaction result.
    """
    if listener is None:
        return
    try:
        result = listener(event)
        if inspect.isawaitable(result):
            await result
    except Exception as e:
        logger.warning("Compaction listener failed for %s: %s", event.event_type, e)
