"""Caller-facing entry points for the AI Post Generator.

This module wires settings, the model client, the content store and the
usage log together and turns batch outcomes into plain response records.
"""

import logging
import sqlite3
import time
from dataclasses import dataclass, field
from typing import Callable

from post_generator.config.settings import Settings
from post_generator.connectors.content_store import SQLiteContentStore
from post_generator.connectors.usage_log import (
    SQLiteUsageLog,
    UsageLogEntry,
    UsageStatistics,
)
from post_generator.engines.errors import BatchFailedError, ConfigError
from post_generator.engines.generator import PostGenerator
from post_generator.engines.models import GenerationRequest


logger = logging.getLogger(__name__)


@dataclass
class GenerationResponse:
    """Outcome of a generate request.

    Attributes:
        success: Whether at least one post was created
        posts_count: Number of posts created
        token_usage: Total tokens reported for the created posts
        message: Human-readable summary or failure reason
        errors: Per-attempt error descriptions
    """
    success: bool
    posts_count: int = 0
    token_usage: int = 0
    message: str = ""
    errors: list[str] = field(default_factory=list)


def build_generator(
    settings: Settings,
    sleep: Callable[[float], None] = time.sleep,
) -> PostGenerator:
    """Create a PostGenerator that stores into the configured SQLite database."""
    return PostGenerator(
        settings=settings,
        content_store=SQLiteContentStore(settings.database_path),
        usage_log=SQLiteUsageLog(settings.database_path),
        sleep=sleep,
    )


def generate_posts(
    settings: Settings,
    topic: str,
    count: int,
    content_type: str = "post",
    category_id: int = 0,
    sleep: Callable[[float], None] = time.sleep,
) -> GenerationResponse:
    """Generate `count` draft posts on `topic`.

    Invalid input, a missing API key, an unusable database and a batch with
    no successes are reported through the response rather than raised.

    Args:
        settings: Configuration settings
        topic: Topic to write about
        count: Number of posts to generate (10-100)
        content_type: Content type to store the posts as
        category_id: Category to file posts under; 0 for none
        sleep: Pause function used between attempts

    Returns:
        GenerationResponse describing the outcome
    """
    try:
        request = GenerationRequest(
            topic=topic,
            count=count,
            content_type=content_type,
            category_id=category_id,
        )
    except ValueError as e:
        logger.error(f"Invalid generation request: {e}")
        return GenerationResponse(success=False, message=str(e))

    try:
        generator = build_generator(settings, sleep=sleep)
    except (OSError, sqlite3.Error) as e:
        logger.error(f"Cannot open database '{settings.database_path}': {e}")
        return GenerationResponse(
            success=False,
            message=f"Cannot open database '{settings.database_path}': {e}",
        )

    try:
        result = generator.generate_batch(request)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return GenerationResponse(success=False, message=str(e))
    except BatchFailedError as e:
        logger.error(str(e))
        return GenerationResponse(success=False, message=str(e), errors=e.errors)

    return GenerationResponse(
        success=True,
        posts_count=result.posts_created,
        token_usage=result.token_usage,
        message=f"Successfully generated {result.posts_created} posts.",
        errors=result.errors,
    )


def get_logs(settings: Settings, limit: int = 50) -> list[UsageLogEntry]:
    """Return the most recent usage log entries."""
    return SQLiteUsageLog(settings.database_path).list(limit)


def get_statistics(settings: Settings) -> UsageStatistics:
    """Return totals across every logged batch."""
    return SQLiteUsageLog(settings.database_path).statistics()
