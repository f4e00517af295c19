"""
Session search over the opencode history database.

Ranks sessions by how many qualifying text parts match every query token,
attaches the most recent snippets per session and proposes follow-up
transcript calls.
"""

from __future__ import annotations

import logging
from typing import Any

from .config import HistoryConfig, SearchConfig
from .envelope import SearchResponse, SearchStats, SessionHit, Snippet
from .exceptions import InvalidQueryError, StoreOpenError
from .logging_utils import HistoryLoggerAdapter
from .query_builder import PartQueryBuilder, cutoff_ms, tokenize_query
from .store import SessionMatchRow, SnippetRow, open_history_store, store_path_for
from .utils import clamp_limit, iso_from_ms

logger = logging.getLogger(__name__)

TRANSCRIPT_TOOL_NAME = "session-transcript"
QUESTION_TOOL_NAME = "question"

NEXT_STEP_MESSAGE = (
    "If you need full context, always ask the user to pick a session with the "
    "question tool (first option is recommended), then call session-transcript "
    "for the selected sessionId."
)


def search_filters(settings: SearchConfig) -> dict[str, Any]:
    """Filter summary echoed back to the caller."""
    return {
        "roles": list(settings.roles),
        "sinceHours": settings.since_hours,
        "snippetsPerSession": settings.snippets_per_session,
        "snippetLength": settings.snippet_length,
    }


def build_next_step(sessions: list[SessionHit], settings: SearchConfig) -> dict[str, Any]:
    """Suggest transcript calls and a session picker for the top sessions.

    Pure projection of ``sessions``; the first option is marked with ``*``
    as the recommended pick.
    """
    suggested_calls = [
        {
            "tool": TRANSCRIPT_TOOL_NAME,
            "args": {
                "sessionId": session.session_id,
                "limit": settings.suggested_transcript_limit,
                "order": "asc",
            },
        }
        for session in sessions[: settings.suggested_calls]
    ]

    options = []
    for index, session in enumerate(sessions[: settings.question_options]):
        label = session.session_id[: settings.option_label_length]
        options.append(
            {
                "label": f"{label}*" if index == 0 else label,
                "description": session.title
                or session.directory
                or f"matchCount={session.match_count}",
            }
        )

    return {
        "message": NEXT_STEP_MESSAGE,
        "suggestedCalls": suggested_calls,
        "suggestedQuestionCall": {
            "tool": QUESTION_TOOL_NAME,
            "args": {
                "questions": [
                    {
                        "header": "Pick session",
                        "question": "Which session should I open for full transcript context?",
                        "options": options,
                        "multiple": False,
                    }
                ]
            },
        },
    }


async def run_session_search(
    query: Any,
    limit_sessions: Any = None,
    config: HistoryConfig | None = None,
    now: float | None = None,
) -> SearchResponse:
    """Search chat history for sessions matching every token of ``query``.

    Args:
        query: Free-text query; tokens are matched case-insensitively and literally.
        limit_sessions: Maximum sessions to return, clamped to [1, max_sessions].
            Missing or non-numeric values use the default.
        config: History configuration (defaults if not provided).
        now: Reference time in epoch seconds for the lookback cutoff.

    Returns:
        SearchResponse. ``stats.total_matches`` sums only the returned
        sessions, not every qualifying session beyond the limit.
        An empty query yields ``INVALID_QUERY`` without touching the store;
        an unopenable store yields ``DB_OPEN_FAILED``.
    """
    config = config or HistoryConfig()
    settings = config.search

    term = str(query or "").strip()
    tokens = tokenize_query(term)
    if not tokens:
        return SearchResponse.failed(term, InvalidQueryError())

    limit = clamp_limit(limit_sessions, settings.default_sessions, settings.max_sessions)
    log = HistoryLoggerAdapter(logger, {"query": term})
    builder = PartQueryBuilder(settings, config.transcript)
    predicates = builder.search_predicates(tokens, cutoff_ms(settings.since_hours, now))

    sessions: list[SessionHit] = []
    try:
        async with open_history_store(store_path_for(config)) as store:
            matches = await store.fetch_all(
                builder.build_session_matches(predicates, limit), SessionMatchRow.from_row
            )

            for match in matches:
                snippet_rows = await store.fetch_all(
                    builder.build_snippets(predicates, match.session_id), SnippetRow.from_row
                )
                sessions.append(
                    SessionHit(
                        session_id=match.session_id,
                        title=match.title,
                        directory=match.directory,
                        match_count=match.match_count,
                        last_match=iso_from_ms(match.last_match_ms),
                        snippets=[
                            Snippet(
                                time=iso_from_ms(row.time_created),
                                role=row.role,
                                text=row.snippet,
                            )
                            for row in snippet_rows
                        ],
                    )
                )
    except StoreOpenError as e:
        return SearchResponse.failed(term, e)

    total_matches = sum(session.match_count for session in sessions)
    log.info(f"Session search matched {len(sessions)} sessions ({total_matches} parts)")

    return SearchResponse(
        query=term,
        filters=search_filters(settings),
        stats=SearchStats(total_sessions=len(sessions), total_matches=total_matches),
        sessions=sessions,
        next_step=build_next_step(sessions, settings),
    )
