"""Batch generation of draft articles with the OpenAI API.

This module provides the PostGenerator class, which drives a batch of
generation attempts on one topic: build a prompt, call the model, parse the
reply, store the article as a draft and account for token usage. Attempts
run strictly one after another with a fixed pause in between.

Data Models:
    BatchResult: Aggregated outcome of one batch
"""

from dataclasses import dataclass, field
from datetime import datetime
import logging
import time
from typing import Callable, TYPE_CHECKING

from post_generator.config.settings import Settings
from post_generator.engines.errors import (
    AttemptError,
    BatchFailedError,
    ConfigError,
    PersistenceError,
)
from post_generator.engines.models import (
    GenerationRequest,
    ModelReply,
    NewArticle,
    ParsedArticle,
    PersistedArticle,
    PromptPair,
)
from post_generator.engines.observability import log_batch_summary
from post_generator.engines.openai_client import OpenAIClient
from post_generator.engines.response_parser import parse_response

if TYPE_CHECKING:
    from post_generator.connectors.content_store import ContentStore
    from post_generator.connectors.usage_log import UsageLog


logger = logging.getLogger(__name__)


# Metadata keys attached to every generated article
META_GENERATED = "_aipg_generated"
META_TOPIC = "_aipg_topic"
META_GENERATED_DATE = "_aipg_generated_date"


# =============================================================================
# Data Models
# =============================================================================


@dataclass
class BatchResult:
    """Result of one generation batch.

    Every attempt ends up either as one created article or as one entry
    in `errors`, never both.

    Attributes:
        posts_created: Number of articles stored.
        token_usage: Sum of the token usage reported for stored articles.
        errors: Per-attempt error descriptions ("Post 3: ...") in attempt order.
        article_ids: Identifiers of the stored articles in attempt order.
        unreported_usage_count: Stored articles whose response carried no
            usage figure; token_usage undercounts by their unknown cost.

    Example:
        >>> result = BatchResult(posts_created=8, token_usage=9200,
        ...                      errors=["Post 3: ...", "Post 7: ..."])
        >>> result.attempts
        10
    """

    posts_created: int = 0
    token_usage: int = 0
    errors: list[str] = field(default_factory=list)
    article_ids: list[int] = field(default_factory=list)
    unreported_usage_count: int = 0

    @property
    def attempts(self) -> int:
        """Total number of attempts accounted for."""
        return self.posts_created + len(self.errors)


# =============================================================================
# Prompt Building
# =============================================================================


class PromptBuilder:
    """Build prompts for blog article generation.

    The user message spells out the four labelled sections the response
    parser looks for, so well-behaved replies parse without fallbacks.

    Example:
        >>> prompt = PromptBuilder().build("Coffee Brewing", 3)
        >>> "blog post #3" in prompt.user_message
        True
    """

    SYSTEM_PROMPT: str = (
        "You are a professional blog writer. Write engaging, SEO-friendly articles "
        "on the given topic. Each post must have a unique angle, clear structure, "
        "and human-like tone."
    )

    USER_TEMPLATE: str = """Topic: {topic}

Generate blog post #{index} with a unique angle.

Provide the response in the following format:

TITLE: [Your catchy title here]

BODY:
[Your article content here - at least 300 words]

EXCERPT:
[A brief 1-2 sentence summary]

TAGS:
[3-5 comma-separated tags]"""

    def build(self, topic: str, index: int) -> PromptPair:
        """Build the prompt pair for one attempt.

        Args:
            topic: The batch topic.
            index: 1-based attempt number, used to ask for a distinct angle.

        Returns:
            A fresh PromptPair.
        """
        return PromptPair(
            system_message=self.SYSTEM_PROMPT,
            user_message=self.USER_TEMPLATE.format(topic=topic.strip(), index=index),
        )


# =============================================================================
# Post Generator
# =============================================================================


class PostGenerator:
    """Generate batches of draft articles on a topic.

    Attributes:
        settings: Configuration used for the client and the pacing delay.
        content_store: Where generated articles are stored.
        usage_log: Where one entry per batch is recorded.

    Example:
        >>> generator = PostGenerator(settings, content_store, usage_log)
        >>> result = generator.generate_batch(
        ...     GenerationRequest(topic="Coffee Brewing", count=10)
        ... )
        >>> result.posts_created
        10
    """

    def __init__(
        self,
        settings: Settings,
        content_store: "ContentStore",
        usage_log: "UsageLog",
        client: OpenAIClient | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings
        self.content_store = content_store
        self.usage_log = usage_log

        self._client = client if client is not None else OpenAIClient(settings)
        self._prompt_builder = PromptBuilder()
        self._sleep = sleep

        logger.debug(
            f"PostGenerator initialized with model='{settings.model}', "
            f"delay={settings.request_delay_seconds}s"
        )

    def generate_batch(self, request: GenerationRequest) -> BatchResult:
        """Run every attempt of a batch and log its usage.

        A failed attempt is recorded in the result's error list and the
        batch moves on to the next attempt. Exactly one usage log entry is
        written once the loop has finished.

        Args:
            request: What to generate.

        Returns:
            The BatchResult when at least one article was stored.

        Raises:
            ConfigError: If no API key is configured. Nothing is attempted
                and nothing is logged.
            BatchFailedError: If no attempt stored an article. The usage
                log entry is still written.
        """
        if not self.settings.has_credential:
            raise ConfigError()

        total = request.count
        result = BatchResult()

        logger.info(
            f"Starting batch generation of {total} {request.content_type}(s) "
            f"on '{request.topic}'"
        )

        for index in range(1, total + 1):
            logger.info(f"Generating post {index}/{total}")

            try:
                persisted, reply = self._generate_single_post(request, index)
            except AttemptError as e:
                self._record_failure(result, index, total, e.message)
            except Exception as e:
                logger.exception(f"Unexpected error in post {index}/{total}")
                self._record_failure(result, index, total, str(e))
            else:
                result.posts_created += 1
                result.token_usage += reply.token_usage
                result.article_ids.append(persisted.article_id)
                if not reply.usage_reported:
                    result.unreported_usage_count += 1
                logger.debug(
                    f"Stored post {index}/{total} as #{persisted.article_id} "
                    f"({reply.token_usage} tokens)"
                )

            if index < total:
                self._sleep(self.settings.request_delay_seconds)

        self._log_usage(request.topic, result)
        log_batch_summary(request.topic, result, self.settings.model)

        if result.posts_created == 0:
            raise BatchFailedError(result.errors)

        return result

    def _record_failure(
        self, result: BatchResult, index: int, total: int, message: str
    ) -> None:
        result.errors.append(f"Post {index}: {message}")
        logger.warning(f"Failed to generate post {index}/{total}: {message}")

    def _generate_single_post(
        self, request: GenerationRequest, index: int
    ) -> tuple[PersistedArticle, ModelReply]:
        """Generate, parse and store one article.

        Raises:
            AttemptError: If the model call or any store write fails.
        """
        prompt = self._prompt_builder.build(request.topic, index)
        reply = self._client.generate(prompt)
        parsed = parse_response(reply.raw_text)
        persisted = self._persist(parsed, request)
        return persisted, reply

    def _persist(self, parsed: ParsedArticle, request: GenerationRequest) -> PersistedArticle:
        """Store a parsed article as a draft with its generation metadata.

        Raises:
            PersistenceError: If any write to the content store fails.
        """
        store = self.content_store
        content_type = request.content_type
        generated_at = datetime.now()

        try:
            article_id = store.insert(
                NewArticle(
                    title=parsed.title,
                    body=parsed.body,
                    excerpt=parsed.excerpt,
                    content_type=content_type,
                    author_id=self.settings.author_id,
                    status="draft",
                )
            )

            tags = [tag for tag in parsed.tags if tag]
            if tags and store.supports_tags(content_type):
                store.attach_tags(article_id, tags)

            if request.category_id > 0 and store.supports_categories(content_type):
                store.attach_category(article_id, request.category_id)

            store.set_metadata(article_id, META_GENERATED, "1")
            store.set_metadata(article_id, META_TOPIC, request.topic)
            store.set_metadata(article_id, META_GENERATED_DATE, generated_at.isoformat())
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError("store article", str(e))

        return PersistedArticle(
            article_id=article_id,
            topic=request.topic,
            generated_at=generated_at,
        )

    def _log_usage(self, topic: str, result: BatchResult) -> None:
        """Write the batch's usage log entry; a failed write is only logged."""
        try:
            self.usage_log.append(
                topic,
                result.posts_created,
                result.token_usage,
                datetime.now(),
            )
        except Exception as e:
            logger.error(f"Failed to write usage log entry for '{topic}': {e}")
