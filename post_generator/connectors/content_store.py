"""Article storage for generated posts.

The batch orchestrator only depends on the ContentStore protocol. The
SQLiteContentStore keeps articles, their taxonomy terms and their metadata
in three tables of a local SQLite database.
"""

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Protocol, runtime_checkable

from post_generator.connectors.database import ensure_schema, get_cursor
from post_generator.engines.errors import PersistenceError
from post_generator.engines.models import NewArticle


logger = logging.getLogger(__name__)


TAG_TAXONOMY = "post_tag"
CATEGORY_TAXONOMY = "category"

# Taxonomies each content type can be filed under
TAXONOMY_SUPPORT: dict[str, frozenset[str]] = {
    "post": frozenset({TAG_TAXONOMY, CATEGORY_TAXONOMY}),
    "page": frozenset(),
}


@runtime_checkable
class ContentStore(Protocol):
    """Protocol for the platform's article storage."""

    def insert(self, article: NewArticle) -> int:
        """Store an article and return its identifier."""
        ...

    def attach_tags(self, article_id: int, tags: list[str]) -> None:
        """Attach tags to a stored article."""
        ...

    def attach_category(self, article_id: int, category_id: int) -> None:
        """File a stored article under a category."""
        ...

    def set_metadata(self, article_id: int, key: str, value: str) -> None:
        """Set one metadata value on a stored article."""
        ...

    def supports_tags(self, content_type: str) -> bool:
        """Return True if articles of this content type can carry tags."""
        ...

    def supports_categories(self, content_type: str) -> bool:
        """Return True if articles of this content type can be categorised."""
        ...


class SQLiteContentStore:
    """ContentStore backed by a SQLite database file.

    Every operation opens its own connection and commits before returning.
    Database failures are raised as PersistenceError.

    Example:
        >>> store = SQLiteContentStore("posts.db")
        >>> article_id = store.insert(NewArticle("Title", "Body", "Excerpt", "post", 1))
        >>> store.get(article_id)["status"]
        'draft'
    """

    def __init__(self, database_path: str | Path) -> None:
        self.database_path = Path(database_path)
        ensure_schema(self.database_path)

    def supports_tags(self, content_type: str) -> bool:
        return TAG_TAXONOMY in TAXONOMY_SUPPORT.get(content_type, frozenset())

    def supports_categories(self, content_type: str) -> bool:
        return CATEGORY_TAXONOMY in TAXONOMY_SUPPORT.get(content_type, frozenset())

    def insert(self, article: NewArticle) -> int:
        try:
            with get_cursor(self.database_path) as cur:
                cur.execute(
                    """
                    INSERT INTO articles
                        (title, body, excerpt, status, content_type, author_id, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        article.title,
                        article.body,
                        article.excerpt,
                        article.status,
                        article.content_type,
                        article.author_id,
                        datetime.now().isoformat(),
                    ),
                )
                article_id = cur.lastrowid
        except sqlite3.Error as e:
            raise PersistenceError("insert article", str(e))

        logger.debug(f"Inserted {article.status} {article.content_type} #{article_id}")
        return article_id

    def attach_tags(self, article_id: int, tags: list[str]) -> None:
        self._attach_terms(article_id, TAG_TAXONOMY, tags)

    def attach_category(self, article_id: int, category_id: int) -> None:
        self._attach_terms(article_id, CATEGORY_TAXONOMY, [str(category_id)])

    def _attach_terms(self, article_id: int, taxonomy: str, terms: list[str]) -> None:
        try:
            with get_cursor(self.database_path) as cur:
                cur.executemany(
                    """
                    INSERT OR IGNORE INTO article_terms (article_id, taxonomy, term)
                    VALUES (?, ?, ?)
                    """,
                    [(article_id, taxonomy, term) for term in terms],
                )
        except sqlite3.Error as e:
            raise PersistenceError(f"attach {taxonomy} terms", str(e))

    def set_metadata(self, article_id: int, key: str, value: str) -> None:
        try:
            with get_cursor(self.database_path) as cur:
                cur.execute(
                    """
                    INSERT INTO article_meta (article_id, meta_key, meta_value)
                    VALUES (?, ?, ?)
                    ON CONFLICT (article_id, meta_key)
                    DO UPDATE SET meta_value = excluded.meta_value
                    """,
                    (article_id, key, value),
                )
        except sqlite3.Error as e:
            raise PersistenceError(f"set metadata '{key}'", str(e))

    def get(self, article_id: int) -> dict | None:
        """Return a stored article as a dict, or None if it doesn't exist."""
        with get_cursor(self.database_path) as cur:
            cur.execute("SELECT * FROM articles WHERE id = ?", (article_id,))
            row = cur.fetchone()
        return dict(row) if row is not None else None

    def get_tags(self, article_id: int) -> list[str]:
        return self._get_terms(article_id, TAG_TAXONOMY)

    def get_categories(self, article_id: int) -> list[int]:
        return [int(term) for term in self._get_terms(article_id, CATEGORY_TAXONOMY)]

    def _get_terms(self, article_id: int, taxonomy: str) -> list[str]:
        with get_cursor(self.database_path) as cur:
            cur.execute(
                """
                SELECT term FROM article_terms
                WHERE article_id = ? AND taxonomy = ?
                ORDER BY rowid
                """,
                (article_id, taxonomy),
            )
            return [row["term"] for row in cur.fetchall()]

    def get_metadata(self, article_id: int) -> dict[str, str]:
        with get_cursor(self.database_path) as cur:
            cur.execute(
                "SELECT meta_key, meta_value FROM article_meta WHERE article_id = ?",
                (article_id,),
            )
            return {row["meta_key"]: row["meta_value"] for row in cur.fetchall()}

    def count(self) -> int:
        """Return the number of stored articles."""
        with get_cursor(self.database_path) as cur:
            cur.execute("SELECT COUNT(*) FROM articles")
            return cur.fetchone()[0]
