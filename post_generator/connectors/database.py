"""SQLite connection helpers and schema for the content store and usage log."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


SCHEMA = """
CREATE TABLE IF NOT EXISTS articles (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    body TEXT NOT NULL,
    excerpt TEXT NOT NULL DEFAULT '',
    status TEXT NOT NULL DEFAULT 'draft',
    content_type TEXT NOT NULL DEFAULT 'post',
    author_id INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS article_terms (
    article_id INTEGER NOT NULL REFERENCES articles(id),
    taxonomy TEXT NOT NULL,
    term TEXT NOT NULL,
    PRIMARY KEY (article_id, taxonomy, term)
);

CREATE TABLE IF NOT EXISTS article_meta (
    article_id INTEGER NOT NULL REFERENCES articles(id),
    meta_key TEXT NOT NULL,
    meta_value TEXT NOT NULL,
    PRIMARY KEY (article_id, meta_key)
);

CREATE TABLE IF NOT EXISTS generation_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    topic TEXT NOT NULL,
    post_count INTEGER NOT NULL DEFAULT 0,
    token_usage INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);
"""


def get_connection(database_path: str | Path) -> sqlite3.Connection:
    """Open a connection whose rows can be read by column name."""
    connection = sqlite3.connect(str(database_path))
    connection.row_factory = sqlite3.Row
    return connection


@contextmanager
def get_cursor(database_path: str | Path) -> Iterator[sqlite3.Cursor]:
    """Context manager for a database cursor with automatic commit/rollback."""
    conn = get_connection(database_path)
    try:
        cur = conn.cursor()
        try:
            yield cur
        finally:
            cur.close()
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def ensure_schema(database_path: str | Path) -> None:
    """Create the tables if they don't exist."""
    path = Path(database_path)
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)

    conn = get_connection(path)
    try:
        conn.executescript(SCHEMA)
        conn.commit()
    finally:
        conn.close()
