"""Append-only log of generation batches and their token usage.

One entry is written per completed batch, including batches in which
every attempt failed. Entries are never updated or deleted.
"""

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Protocol, runtime_checkable

from post_generator.connectors.database import ensure_schema, get_cursor
from post_generator.engines.errors import PersistenceError


logger = logging.getLogger(__name__)


@dataclass
class UsageLogEntry:
    """One logged generation batch.

    Attributes:
        id: Row identifier
        topic: Topic the batch was generated for
        post_count: Number of articles the batch created
        token_usage: Total tokens reported for the batch
        created_at: When the batch finished
    """
    id: int
    topic: str
    post_count: int
    token_usage: int
    created_at: datetime


@dataclass
class UsageStatistics:
    """Totals across every logged batch."""
    total_posts: int = 0
    total_tokens: int = 0
    total_generations: int = 0


@runtime_checkable
class UsageLog(Protocol):
    """Protocol for the generation usage log."""

    def append(
        self,
        topic: str,
        post_count: int,
        token_usage: int,
        created_at: datetime | None = None,
    ) -> int:
        """Record one finished batch and return the entry id."""
        ...

    def list(self, limit: int = 50) -> list[UsageLogEntry]:
        """Return up to `limit` entries, most recently appended first."""
        ...


class SQLiteUsageLog:
    """UsageLog backed by the generation_logs table of a SQLite database."""

    def __init__(self, database_path: str | Path) -> None:
        self.database_path = Path(database_path)
        ensure_schema(self.database_path)

    def append(
        self,
        topic: str,
        post_count: int,
        token_usage: int,
        created_at: datetime | None = None,
    ) -> int:
        """Record one finished batch.

        Raises:
            PersistenceError: If the entry cannot be written.
        """
        timestamp = (created_at or datetime.now()).isoformat()
        try:
            with get_cursor(self.database_path) as cur:
                cur.execute(
                    """
                    INSERT INTO generation_logs (topic, post_count, token_usage, created_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (topic, post_count, token_usage, timestamp),
                )
                entry_id = cur.lastrowid
        except sqlite3.Error as e:
            raise PersistenceError("write usage log entry", str(e))

        logger.debug(
            f"Logged generation for '{topic}': {post_count} posts, {token_usage} tokens"
        )
        return entry_id

    def list(self, limit: int = 50) -> list[UsageLogEntry]:
        """Return up to `limit` entries, most recently appended first."""
        if limit <= 0:
            return []

        with get_cursor(self.database_path) as cur:
            cur.execute(
                """
                SELECT id, topic, post_count, token_usage, created_at
                FROM generation_logs
                ORDER BY id DESC
                LIMIT ?
                """,
                (limit,),
            )
            rows = cur.fetchall()

        return [
            UsageLogEntry(
                id=row["id"],
                topic=row["topic"],
                post_count=row["post_count"],
                token_usage=row["token_usage"],
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]

    def statistics(self) -> UsageStatistics:
        """Sum posts and tokens across every logged batch."""
        with get_cursor(self.database_path) as cur:
            cur.execute(
                """
                SELECT COALESCE(SUM(post_count), 0) AS total_posts,
                       COALESCE(SUM(token_usage), 0) AS total_tokens,
                       COUNT(*) AS total_generations
                FROM generation_logs
                """
            )
            row = cur.fetchone()

        return UsageStatistics(
            total_posts=int(row["total_posts"]),
            total_tokens=int(row["total_tokens"]),
            total_generations=int(row["total_generations"]),
        )
