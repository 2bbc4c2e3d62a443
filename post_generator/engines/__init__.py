"""Engines module - core generation components."""

from post_generator.engines.errors import (
    ApiError,
    AttemptError,
    BatchFailedError,
    ConfigError,
    MalformedResponseError,
    PersistenceError,
    PostGeneratorError,
    TransportError,
)
from post_generator.engines.generator import (
    BatchResult,
    PostGenerator,
    PromptBuilder,
)
from post_generator.engines.models import (
    GenerationRequest,
    ModelReply,
    NewArticle,
    ParsedArticle,
    PersistedArticle,
    PromptPair,
)
from post_generator.engines.openai_client import OpenAIClient
from post_generator.engines.response_parser import parse_response

__all__ = [
    # Post Generator
    "PostGenerator",
    "PromptBuilder",
    "BatchResult",
    "OpenAIClient",
    "parse_response",
    # Data Models
    "GenerationRequest",
    "ModelReply",
    "NewArticle",
    "ParsedArticle",
    "PersistedArticle",
    "PromptPair",
    # Exceptions
    "PostGeneratorError",
    "ConfigError",
    "AttemptError",
    "TransportError",
    "ApiError",
    "MalformedResponseError",
    "PersistenceError",
    "BatchFailedError",
]
