"""
Transcript reconstruction for a single opencode session.

Replays the session's user/assistant text parts in creation order, each
truncated to a fixed number of characters.
"""

from __future__ import annotations

import logging
from typing import Any

from .config import HistoryConfig, TranscriptConfig
from .envelope import SessionDetails, TranscriptEntry, TranscriptResponse
from .exceptions import StoreOpenError
from .logging_utils import HistoryLoggerAdapter
from .query_builder import PartQueryBuilder, TranscriptOrder, normalize_order
from .store import SessionMetaRow, TranscriptEntryRow, open_history_store, store_path_for
from .utils import clamp_limit, iso_from_ms

logger = logging.getLogger(__name__)


def transcript_filters(settings: TranscriptConfig, order: TranscriptOrder) -> dict[str, Any]:
    """Filter summary echoed back to the caller."""
    return {
        "roles": list(settings.roles),
        "order": order,
        "includeEmpty": settings.include_empty,
        "maxCharsPerEntry": settings.max_chars_per_entry,
    }


async def run_session_transcript(
    session_id: Any,
    limit: Any = None,
    order: Any = "asc",
    config: HistoryConfig | None = None,
) -> TranscriptResponse:
    """Reconstruct the transcript of one session.

    Args:
        session_id: Exact session identifier (e.g. ``ses_...``).
        limit: Maximum entries, clamped to [1, max_limit]; default 80.
        order: ``"asc"`` (chronological, default) or ``"desc"``.
        config: History configuration (defaults if not provided).

    Returns:
        TranscriptResponse with ``found=False`` and a message for an unknown
        session, or a ``DB_OPEN_FAILED`` error if the store cannot be opened.
    """
    config = config or HistoryConfig()
    settings = config.transcript

    session_id = str(session_id or "")
    limit = clamp_limit(limit, settings.default_limit, settings.max_limit)
    order = normalize_order(order)
    log = HistoryLoggerAdapter(logger, {"session_id": session_id})
    builder = PartQueryBuilder(config.search, settings)

    try:
        async with open_history_store(store_path_for(config)) as store:
            meta = await store.fetch_one(
                builder.build_session_meta(session_id), SessionMetaRow.from_row
            )
            if meta is None:
                log.info("Transcript requested for unknown session")
                return TranscriptResponse.not_found(session_id)

            rows = await store.fetch_all(
                builder.build_transcript(builder.transcript_predicates(session_id), order, limit),
                TranscriptEntryRow.from_row,
            )
    except StoreOpenError as e:
        return TranscriptResponse.failed(session_id, e)

    entries = [
        TranscriptEntry(
            part_id=row.part_id,
            message_id=row.message_id,
            time_ms=row.time_created,
            time=iso_from_ms(row.time_created),
            role=row.role,
            text=row.text,
        )
        for row in rows
    ]
    log.info(f"Transcript reconstructed with {len(entries)} entries")

    return TranscriptResponse(
        session_id=meta.id,
        found=True,
        session=SessionDetails(
            title=meta.title,
            slug=meta.slug,
            directory=meta.directory,
            project_name=meta.project_name,
            project_worktree=meta.worktree,
            time_created=iso_from_ms(meta.time_created),
            time_updated=iso_from_ms(meta.time_updated),
        ),
        filters=transcript_filters(settings, order),
        stats={"entriesReturned": len(entries), "limit": limit},
        entries=entries,
    )
