"""Token and cost accounting for generation batches.

This module provides token and cost estimates for the chat-completion
models and a consistent log line summarising each finished batch.
"""

import logging
import math
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from post_generator.engines.generator import BatchResult


logger = logging.getLogger(__name__)


# Characters per token approximation for English text
CHARS_PER_TOKEN = 4

# USD per 1M tokens; update when the provider changes its pricing
MODEL_PRICING: dict[str, float] = {
    "gpt-4o-mini": 0.15,
    "gpt-4o": 2.50,
    "gpt-4-turbo": 10.00,
    "gpt-3.5-turbo": 0.50,
}
DEFAULT_PRICE_PER_MILLION = 1.00


def estimate_tokens(text: str) -> int:
    """Estimate the token count of a text.

    Example:
        >>> estimate_tokens("")
        0
        >>> estimate_tokens("Hello")  # 5 chars / 4 = 1.25 -> 2
        2
    """
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def estimate_cost(tokens: int, model: str) -> float:
    """Estimate the USD cost of a token count for a model.

    Unknown models are priced at DEFAULT_PRICE_PER_MILLION.

    Example:
        >>> estimate_cost(1_000_000, "gpt-4o")
        2.5
    """
    price_per_million = MODEL_PRICING.get(model, DEFAULT_PRICE_PER_MILLION)
    return (tokens / 1_000_000) * price_per_million


def log_batch_summary(topic: str, result: "BatchResult", model: str) -> None:
    """Log the outcome of a finished batch.

    Args:
        topic: The batch topic
        result: The aggregated batch result
        model: Model name used for pricing the estimate

    Example:
        >>> log_batch_summary("Coffee Brewing", result, "gpt-4o-mini")
        # Logs: "Batch 'Coffee Brewing' complete: 8/10 posts created, 9200 tokens (~$0.0014)"
    """
    cost = estimate_cost(result.token_usage, model)
    logger.info(
        f"Batch '{topic}' complete: {result.posts_created}/{result.attempts} posts created, "
        f"{result.token_usage} tokens (~${cost:.4f})"
    )

    if result.unreported_usage_count:
        logger.warning(
            f"{result.unreported_usage_count} response(s) did not report token usage; "
            "the token total undercounts actual usage"
        )
