"""Connectors module - article storage and usage log."""

from post_generator.connectors.content_store import ContentStore, SQLiteContentStore
from post_generator.connectors.usage_log import (
    SQLiteUsageLog,
    UsageLog,
    UsageLogEntry,
    UsageStatistics,
)

__all__ = [
    "ContentStore",
    "SQLiteContentStore",
    "SQLiteUsageLog",
    "UsageLog",
    "UsageLogEntry",
    "UsageStatistics",
]
