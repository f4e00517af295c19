"""
Read-only connector for the opencode history database.

Resolves where the database lives and opens it strictly read-only through
aiosqlite. The file is never created: a missing, unreadable or corrupt
database surfaces as StoreOpenError, which the operations turn into a
``DB_OPEN_FAILED`` response.
"""

from __future__ import annotations

import functools
import logging
import os
import subprocess
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, TypeVar

import aiosqlite

from ..config import ENV_DB_PATH, HistoryConfig
from ..exceptions import StoreOpenError
from ..query_builder import SQLQuery

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Where opencode keeps its database when nothing else says otherwise
FALLBACK_DB_PATH = Path.home() / ".local" / "share" / "opencode" / "opencode.db"

# Cheapest statement that still reads the header; fails on a corrupt file
_PROBE_SQL = "SELECT count(*) FROM sqlite_master"


def query_host_cli(host_cli: str = "opencode", timeout: float = 5.0) -> str | None:
    """Ask the host CLI for its canonical database path.

    Runs ``<host_cli> db path`` with stdin and stderr detached. A non-zero
    exit, empty output, a timeout or a missing executable all mean
    "unavailable" and return None.
    """
    try:
        result = subprocess.run(
            [host_cli, "db", "path"],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            timeout=timeout,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"{host_cli} db path unavailable: {e}")
        return None

    if result.returncode != 0:
        logger.debug(f"{host_cli} db path exited with status {result.returncode}")
        return None

    path = (result.stdout or "").strip()
    return path or None


@functools.cache
def resolve_store_path(host_cli: str = "opencode", timeout: float = 5.0) -> Path:
    """Resolve the database path once per process.

    Resolution order:
    1. ``OPENCODE_DB_PATH`` environment variable
    2. ``<host_cli> db path`` output
    3. ``~/.local/share/opencode/opencode.db``

    The result is memoized; later environment changes are not observed.
    """
    override = os.environ.get(ENV_DB_PATH)
    if override:
        logger.debug(f"History database from {ENV_DB_PATH}: {override}")
        return Path(override)

    reported = query_host_cli(host_cli, timeout)
    if reported:
        logger.debug(f"History database from {host_cli}: {reported}")
        return Path(reported)

    logger.debug(f"History database fallback: {FALLBACK_DB_PATH}")
    return FALLBACK_DB_PATH


def store_path_for(config: HistoryConfig) -> Path:
    """Database path for a config: explicit ``db_path`` or the resolved one."""
    if config.db_path is not None:
        return config.db_path
    return resolve_store_path(config.host_cli, config.host_cli_timeout)


class HistoryStore:
    """
    Read-only handle on the history database.

    Rows are decoded into typed records by the caller-supplied ``decode``
    function before they leave the handle.
    """

    def __init__(self, conn: aiosqlite.Connection, db_path: Path):
        self.conn: aiosqlite.Connection | None = conn
        self.db_path = db_path

    @property
    def closed(self) -> bool:
        return self.conn is None

    def _require_conn(self) -> aiosqlite.Connection:
        if self.conn is None:
            raise RuntimeError(f"History store is closed: {self.db_path}")
        return self.conn

    async def fetch_all(self, query: SQLQuery, decode: Callable[[Any], T]) -> list[T]:
        """Run a query and decode every row."""
        conn = self._require_conn()
        logger.debug(f"Executing query: {query}")
        async with conn.execute(query.sql, query.parameters) as cursor:
            rows = await cursor.fetchall()
        return [decode(row) for row in rows]

    async def fetch_one(self, query: SQLQuery, decode: Callable[[Any], T]) -> T | None:
        """Run a query and decode its first row, if any."""
        conn = self._require_conn()
        logger.debug(f"Executing query: {query}")
        async with conn.execute(query.sql, query.parameters) as cursor:
            row = await cursor.fetchone()
        return None if row is None else decode(row)

    async def close(self) -> None:
        """Close the connection."""
        if self.conn is not None:
            await self.conn.close()
            self.conn = None


async def connect_readonly(db_path: Path) -> HistoryStore:
    """Open ``db_path`` read-only.

    Raises:
        StoreOpenError: If the file is missing, unreadable or not a database.
    """
    conn: aiosqlite.Connection | None = None
    try:
        uri = f"{Path(db_path).absolute().as_uri()}?mode=ro"
        conn = await aiosqlite.connect(uri, uri=True)
        conn.row_factory = aiosqlite.Row
        async with conn.execute(_PROBE_SQL) as cursor:
            await cursor.fetchone()
    except Exception as e:
        if conn is not None:
            await conn.close()
        logger.warning(f"Unable to open history database {db_path}: {e}")
        raise StoreOpenError(str(db_path), e) from e

    return HistoryStore(conn, Path(db_path))


@asynccontextmanager
async def open_history_store(db_path: Path) -> AsyncIterator[HistoryStore]:
    """Open the history database for one unit of work and always close it.

    Usage:
        async with open_history_store(path) as store:
            rows = await store.fetch_all(query, SessionMatchRow.from_row)
    """
    store = await connect_readonly(db_path)
    try:
        yield store
    finally:
        await store.close()
