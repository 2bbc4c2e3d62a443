"""Runner module for the AI Post Generator.

This module configures logging, loads settings and executes one command,
translating outcomes into process exit codes.
"""

import logging
import sys

from post_generator.agent.workflow import generate_posts, get_logs, get_statistics
from post_generator.config.settings import ConfigurationError, Settings, load_settings
from post_generator.engines.errors import AttemptError, ConfigError
from post_generator.engines.observability import estimate_cost
from post_generator.engines.openai_client import OpenAIClient, list_available_models


# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_GENERATION_ERROR = 2


logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application.

    Args:
        verbose: If True, set log level to DEBUG. Otherwise INFO.
    """
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


def _load(verbose: bool) -> Settings | None:
    """Set up logging and load validated settings, or None on failure."""
    _setup_logging(verbose)

    try:
        settings = load_settings(validate=True)
        logger.debug("Configuration loaded successfully")
        return settings
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return None


def run_generate(
    topic: str,
    count: int,
    content_type: str = "post",
    category_id: int = 0,
    verbose: bool = False,
) -> int:
    """Generate a batch of draft posts.

    Returns:
        Exit code:
        - 0: At least one post was created
        - 1: Configuration error (including a missing API key)
        - 2: Invalid request, unusable database or no post could be created
    """
    settings = _load(verbose)
    if settings is None:
        return EXIT_CONFIG_ERROR

    if not settings.has_credential:
        logger.error(f"Configuration error: {ConfigError().message}")
        return EXIT_CONFIG_ERROR

    try:
        response = generate_posts(
            settings,
            topic=topic,
            count=count,
            content_type=content_type,
            category_id=category_id,
        )
    except Exception as e:
        logger.exception(f"Generation failed with unexpected error: {e}")
        return EXIT_GENERATION_ERROR

    if not response.success:
        logger.error(f"Generation failed: {response.message}")
        return EXIT_GENERATION_ERROR

    logger.info(response.message)
    logger.info(f"Token usage: {response.token_usage}")
    for error in response.errors:
        logger.warning(f"  - {error}")

    return EXIT_SUCCESS


def run_logs(limit: int = 50, verbose: bool = False) -> int:
    """Print the most recent usage log entries."""
    settings = _load(verbose)
    if settings is None:
        return EXIT_CONFIG_ERROR

    try:
        entries = get_logs(settings, limit)
    except Exception as e:
        logger.exception(f"Failed to read usage log: {e}")
        return EXIT_GENERATION_ERROR

    if not entries:
        print("No generations logged yet.")
        return EXIT_SUCCESS

    for entry in entries:
        print(
            f"{entry.created_at.isoformat(sep=' ', timespec='seconds')}  "
            f"{entry.post_count:>4} posts  {entry.token_usage:>8} tokens  {entry.topic}"
        )
    return EXIT_SUCCESS


def run_stats(verbose: bool = False) -> int:
    """Print totals across every logged batch."""
    settings = _load(verbose)
    if settings is None:
        return EXIT_CONFIG_ERROR

    try:
        stats = get_statistics(settings)
    except Exception as e:
        logger.exception(f"Failed to read usage statistics: {e}")
        return EXIT_GENERATION_ERROR

    cost = estimate_cost(stats.total_tokens, settings.model)

    print(f"Total generations: {stats.total_generations}")
    print(f"Total posts:       {stats.total_posts}")
    print(f"Total tokens:      {stats.total_tokens}")
    print(f"Estimated cost:    ${cost:.4f} ({settings.model} pricing)")
    return EXIT_SUCCESS


def run_test_connection(verbose: bool = False) -> int:
    """Send a probe request to check the API key and endpoint."""
    settings = _load(verbose)
    if settings is None:
        return EXIT_CONFIG_ERROR

    try:
        OpenAIClient(settings).test_connection()
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR
    except AttemptError as e:
        logger.error(f"Connection test failed: {e}")
        return EXIT_GENERATION_ERROR

    print("Connection successful")
    return EXIT_SUCCESS


def run_models() -> int:
    """Print the supported model names."""
    for name, label in list_available_models().items():
        print(f"{name:<16} {label}")
    return EXIT_SUCCESS
