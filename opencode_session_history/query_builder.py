"""
SQLite query builder for session history lookups.

Translates a free-text query and structural constraints into parameterized
SQL against the opencode message store (session / project / message / part).
Supports:
- Token AND matching with literal (escaped) LIKE patterns
- Role allow-list and lookback cutoff
- Aggregated per-session match counts and per-entry snippet/transcript rows
  built from one shared predicate set

Every value reaches SQLite as a ``?`` parameter. The only text spliced into
statements is fixed expressions and a whitelisted sort direction.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Literal

from .config import SearchConfig, TranscriptConfig

# JSON payload fields read out of part.data / message.data
TEXT_EXPR = "json_extract(p.data, '$.text')"
TYPE_EXPR = "json_extract(p.data, '$.type')"
ROLE_EXPR = "json_extract(m.data, '$.role')"

TEXT_PART_TYPE = "text"

# Space, tab, newline, carriage return; trim() alone strips only spaces
WHITESPACE_CHARS = "char(32, 9, 10, 13)"

SORT_DIRECTIONS = {"asc": "ASC", "desc": "DESC"}

TranscriptOrder = Literal["asc", "desc"]


def tokenize_query(query: str) -> list[str]:
    """Lowercase a query and split it on whitespace runs, dropping empties."""
    return query.lower().split()


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so ``value`` matches literally under ``ESCAPE '\\'``."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def contains_pattern(token: str) -> str:
    """Build a "contains" LIKE pattern for one token."""
    return f"%{escape_like(token)}%"


def cutoff_ms(since_hours: int, now: float | None = None) -> int:
    """Epoch milliseconds ``since_hours`` before ``now`` (seconds, default: current time)."""
    now = time.time() if now is None else now
    return int(now * 1000) - since_hours * 60 * 60 * 1000


def normalize_order(order: Any) -> TranscriptOrder:
    """Return ``"desc"`` only when asked for it explicitly, otherwise ``"asc"``."""
    return "desc" if order == "desc" else "asc"


@dataclass
class SQLQuery:
    """A parameterized SQLite query.

    Attributes:
        sql: The SQL statement with ``?`` placeholders
        parameters: Positional parameters, in placeholder order
    """

    sql: str
    parameters: list[Any] = field(default_factory=list)

    def __str__(self) -> str:
        """Return formatted query for debugging."""
        sql = " ".join(self.sql.split())
        return f"{sql}\nParameters: {self.parameters!r}"


@dataclass(frozen=True)
class PartPredicates:
    """WHERE clauses over ``part p JOIN message m`` and their parameters.

    ``clauses`` and ``parameters`` align positionally: joining the clauses
    with AND yields placeholders in exactly the order of ``parameters``.
    """

    clauses: tuple[str, ...] = ()
    parameters: tuple[Any, ...] = ()

    def extend(self, clause: str, *parameters: Any) -> PartPredicates:
        """Return a copy with one more clause appended."""
        return PartPredicates(self.clauses + (clause,), self.parameters + parameters)

    def merge(self, other: PartPredicates) -> PartPredicates:
        """Return a copy with all of ``other``'s clauses appended."""
        return PartPredicates(self.clauses + other.clauses, self.parameters + other.parameters)

    @property
    def where_sql(self) -> str:
        return " AND ".join(self.clauses) if self.clauses else "1=1"


def _placeholders(count: int) -> str:
    return ", ".join("?" for _ in range(count))


class PartQueryBuilder:
    """Builds search and transcript queries over text parts.

    Usage:
        builder = PartQueryBuilder(config.search, config.transcript)
        predicates = builder.search_predicates(tokens, cutoff_ms(since_hours))
        query = builder.build_session_matches(predicates, limit=6)
        # Execute: await conn.execute(query.sql, query.parameters)

    Note:
        The snippet query reuses the exact predicate set of the aggregate
        query and only narrows it to one session, so snippets always come
        from rows that were counted.
    """

    def __init__(
        self,
        search: SearchConfig | None = None,
        transcript: TranscriptConfig | None = None,
    ) -> None:
        self.search = search or SearchConfig()
        self.transcript = transcript or TranscriptConfig()

    def _role_clause(self, roles: tuple[str, ...]) -> PartPredicates:
        if not roles:
            return PartPredicates(("0",))
        return PartPredicates((f"{ROLE_EXPR} IN ({_placeholders(len(roles))})",), tuple(roles))

    def search_predicates(self, tokens: list[str], cutoff: int) -> PartPredicates:
        """Build the predicate set shared by the aggregate and snippet queries.

        Args:
            tokens: Lowercased query tokens (all must match)
            cutoff: Oldest eligible part creation time, epoch milliseconds

        Returns:
            PartPredicates with structural clauses, one LIKE per token, then the cutoff
        """
        predicates = PartPredicates(
            (f"{TYPE_EXPR} = ?", f"{TEXT_EXPR} IS NOT NULL"),
            (TEXT_PART_TYPE,),
        )
        predicates = predicates.merge(self._role_clause(self.search.roles))

        for token in tokens:
            predicates = predicates.extend(
                f"lower({TEXT_EXPR}) LIKE ? ESCAPE '\\'", contains_pattern(token)
            )

        return predicates.extend("p.time_created >= ?", cutoff)

    def build_session_matches(self, predicates: PartPredicates, limit: int) -> SQLQuery:
        """Aggregate qualifying parts per session, most matches first."""
        sql = f"""
            SELECT
                s.id AS session_id,
                s.title AS title,
                s.directory AS directory,
                COUNT(*) AS match_count,
                MAX(p.time_created) AS last_match_ms
            FROM part p
            JOIN message m ON m.id = p.message_id
            JOIN session s ON s.id = p.session_id
            WHERE {predicates.where_sql}
            GROUP BY s.id
            ORDER BY COUNT(*) DESC, MAX(p.time_created) DESC
            LIMIT ?
        """
        return SQLQuery(sql=sql, parameters=[*predicates.parameters, limit])

    def build_snippets(self, predicates: PartPredicates, session_id: str) -> SQLQuery:
        """Most recent qualifying parts of one session, text cut in SQL."""
        scoped = predicates.extend("p.session_id = ?", session_id)
        sql = f"""
            SELECT
                p.session_id AS session_id,
                p.time_created AS time_created,
                {ROLE_EXPR} AS role,
                substr({TEXT_EXPR}, 1, ?) AS snippet
            FROM part p
            JOIN message m ON m.id = p.message_id
            JOIN session s ON s.id = p.session_id
            WHERE {scoped.where_sql}
            ORDER BY p.time_created DESC
            LIMIT ?
        """
        return SQLQuery(
            sql=sql,
            parameters=[
                self.search.snippet_length,
                *scoped.parameters,
                self.search.snippets_per_session,
            ],
        )

    def build_session_meta(self, session_id: str) -> SQLQuery:
        """Session row with its optional project."""
        sql = """
            SELECT
                s.id AS id,
                s.title AS title,
                s.directory AS directory,
                s.slug AS slug,
                s.time_created AS time_created,
                s.time_updated AS time_updated,
                pr.worktree AS worktree,
                pr.name AS project_name
            FROM session s
            LEFT JOIN project pr ON pr.id = s.project_id
            WHERE s.id = ?
            LIMIT 1
        """
        return SQLQuery(sql=sql, parameters=[session_id])

    def transcript_predicates(self, session_id: str) -> PartPredicates:
        """Predicates for the text entries of one session."""
        predicates = PartPredicates(
            ("p.session_id = ?", f"{TYPE_EXPR} = ?"),
            (session_id, TEXT_PART_TYPE),
        )
        predicates = predicates.merge(self._role_clause(self.transcript.roles))

        if not self.transcript.include_empty:
            predicates = predicates.extend(f"{TEXT_EXPR} IS NOT NULL")
            predicates = predicates.extend(f"length(trim({TEXT_EXPR}, {WHITESPACE_CHARS})) > 0")

        return predicates

    def build_transcript(
        self,
        predicates: PartPredicates,
        order: TranscriptOrder,
        limit: int,
    ) -> SQLQuery:
        """Transcript entries in creation order, text cut in SQL."""
        direction = SORT_DIRECTIONS[normalize_order(order)]
        sql = f"""
            SELECT
                p.id AS part_id,
                p.message_id AS message_id,
                p.time_created AS time_created,
                {ROLE_EXPR} AS role,
                substr({TEXT_EXPR}, 1, ?) AS text
            FROM part p
            JOIN message m ON m.id = p.message_id
            WHERE {predicates.where_sql}
            ORDER BY p.time_created {direction}
            LIMIT ?
        """
        return SQLQuery(
            sql=sql,
            parameters=[self.transcript.max_chars_per_entry, *predicates.parameters, limit],
        )
