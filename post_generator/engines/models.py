"""Data models shared by the generation pipeline and its collaborators."""

from dataclasses import dataclass, field
from datetime import datetime


MIN_POST_COUNT = 10
MAX_POST_COUNT = 100


@dataclass(frozen=True)
class GenerationRequest:
    """A request to generate a batch of draft articles on one topic.

    Attributes:
        topic: Subject every article in the batch is written about
        count: Number of generation attempts (10-100)
        content_type: Content type the articles are stored as (e.g. "post", "page")
        category_id: Category to file articles under; 0 means none

    Raises:
        ValueError: If any field is out of range.

    Example:
        >>> request = GenerationRequest(topic="Coffee Brewing", count=10)
        >>> request.content_type
        'post'
    """

    topic: str
    count: int
    content_type: str = "post"
    category_id: int = 0

    def __post_init__(self) -> None:
        if not self.topic or not self.topic.strip():
            raise ValueError("topic must not be empty")
        if self.count < MIN_POST_COUNT or self.count > MAX_POST_COUNT:
            raise ValueError(
                f"count must be between {MIN_POST_COUNT} and {MAX_POST_COUNT}, "
                f"got {self.count}"
            )
        if not self.content_type or not self.content_type.strip():
            raise ValueError("content_type must not be empty")
        if self.category_id < 0:
            raise ValueError("category_id must be non-negative")


@dataclass(frozen=True)
class PromptPair:
    """System and user messages for one chat-completion request."""

    system_message: str
    user_message: str


@dataclass(frozen=True)
class ModelReply:
    """Result of one successful chat-completion call.

    Attributes:
        raw_text: Text of the first reply choice
        token_usage: Total tokens reported by the API, 0 when not reported
        usage_reported: False when the API sent no usable usage figure
    """

    raw_text: str
    token_usage: int = 0
    usage_reported: bool = True


@dataclass
class ParsedArticle:
    """Structured fields extracted from a model reply.

    Title and body are never empty; the parser's fallbacks fill them in.
    """

    title: str
    body: str
    excerpt: str
    tags: list[str] = field(default_factory=list)


@dataclass
class NewArticle:
    """Article row handed to the content store."""

    title: str
    body: str
    excerpt: str
    content_type: str
    author_id: int
    status: str = "draft"


@dataclass
class PersistedArticle:
    """A stored article with the generation details attached to it."""

    article_id: int
    topic: str
    generated_at: datetime
