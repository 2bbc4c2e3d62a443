"""Property-based tests for the batch post generator.

Feature: ai-post-generator
Covers prompt building, batch accounting, pacing, persistence rules and
usage logging of PostGenerator.
"""

import logging
from datetime import datetime

import pytest
from hypothesis import given, settings, strategies as st

from post_generator.config.settings import Settings
from post_generator.connectors.content_store import TAXONOMY_SUPPORT
from post_generator.engines.errors import (
    ApiError,
    BatchFailedError,
    ConfigError,
    MalformedResponseError,
    PersistenceError,
    TransportError,
)
from post_generator.engines.generator import (
    META_GENERATED,
    META_GENERATED_DATE,
    META_TOPIC,
    BatchResult,
    PostGenerator,
    PromptBuilder,
)
from post_generator.engines.models import (
    GenerationRequest,
    ModelReply,
    NewArticle,
    PromptPair,
)


# =============================================================================
# Test Doubles
# =============================================================================


def article_reply(index: int, tokens: int = 1000, usage_reported: bool = True) -> ModelReply:
    return ModelReply(
        raw_text=(
            f"TITLE: Post number {index}\n\n"
            f"BODY:\nBody of post {index}.\n\n"
            f"EXCERPT:\nExcerpt {index}.\n\n"
            "TAGS:\ncoffee, brewing"
        ),
        token_usage=tokens,
        usage_reported=usage_reported,
    )


class ScriptedClient:
    """Model client that answers attempt i with outcomes[i], or a default reply."""

    def __init__(self, outcomes: dict[int, object] | None = None, tokens: int = 1000):
        self.outcomes = outcomes or {}
        self.tokens = tokens
        self.prompts: list[PromptPair] = []

    def generate(self, prompt: PromptPair) -> ModelReply:
        self.prompts.append(prompt)
        index = len(self.prompts)
        outcome = self.outcomes.get(index)
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, ModelReply):
            return outcome
        return article_reply(index, self.tokens)


class InMemoryContentStore:
    """ContentStore keeping everything in dictionaries."""

    def __init__(self, fail_insert_on: set[int] | None = None, fail_metadata: bool = False):
        self.articles: dict[int, NewArticle] = {}
        self.tags: dict[int, list[str]] = {}
        self.categories: dict[int, list[int]] = {}
        self.metadata: dict[int, dict[str, str]] = {}
        self.fail_insert_on = fail_insert_on or set()
        self.fail_metadata = fail_metadata
        self._inserts = 0

    def insert(self, article: NewArticle) -> int:
        self._inserts += 1
        if self._inserts in self.fail_insert_on:
            raise PersistenceError("insert article", "disk full")
        article_id = 100 + self._inserts
        self.articles[article_id] = article
        return article_id

    def attach_tags(self, article_id: int, tags: list[str]) -> None:
        self.tags.setdefault(article_id, []).extend(tags)

    def attach_category(self, article_id: int, category_id: int) -> None:
        self.categories.setdefault(article_id, []).append(category_id)

    def set_metadata(self, article_id: int, key: str, value: str) -> None:
        if self.fail_metadata:
            raise RuntimeError("metadata table locked")
        self.metadata.setdefault(article_id, {})[key] = value

    def supports_tags(self, content_type: str) -> bool:
        return "post_tag" in TAXONOMY_SUPPORT.get(content_type, frozenset())

    def supports_categories(self, content_type: str) -> bool:
        return "category" in TAXONOMY_SUPPORT.get(content_type, frozenset())


class InMemoryUsageLog:
    """UsageLog recording appended entries in a list."""

    def __init__(self, fail: bool = False):
        self.entries: list[tuple[str, int, int, datetime | None]] = []
        self.fail = fail

    def append(self, topic, post_count, token_usage, created_at=None) -> int:
        if self.fail:
            raise PersistenceError("write usage log entry", "database is locked")
        self.entries.append((topic, post_count, token_usage, created_at))
        return len(self.entries)

    def list(self, limit: int = 50):
        return []


class SleepRecorder:
    def __init__(self):
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def make_generator(
    client=None,
    store=None,
    usage_log=None,
    api_key: str = "sk-test",
    delay: float = 0.5,
):
    client = client or ScriptedClient()
    store = store or InMemoryContentStore()
    usage_log = usage_log or InMemoryUsageLog()
    sleep = SleepRecorder()
    generator = PostGenerator(
        settings=Settings(api_key=api_key, request_delay_seconds=delay, author_id=3),
        content_store=store,
        usage_log=usage_log,
        client=client,
        sleep=sleep,
    )
    return generator, client, store, usage_log, sleep


# Feature: ai-post-generator, Prompt Building
class TestPromptBuilder:
    """Tests for PromptBuilder."""

    @given(
        topic=st.text(
            alphabet=st.characters(whitelist_categories=('L', 'N'), whitelist_characters=' '),
            min_size=1,
            max_size=60,
        ).filter(lambda s: s.strip()),
        index=st.integers(min_value=1, max_value=100),
    )
    @settings(max_examples=100)
    def test_user_message_embeds_topic_index_and_template(self, topic: str, index: int):
        """For any topic and index, the user message SHALL carry both and all four markers."""
        prompt = PromptBuilder().build(topic, index)

        assert f"Topic: {topic.strip()}" in prompt.user_message
        assert f"blog post #{index}" in prompt.user_message
        for marker in ("TITLE:", "BODY:", "EXCERPT:", "TAGS:"):
            assert marker in prompt.user_message
        assert "professional blog writer" in prompt.system_message

    def test_prompts_are_fresh_per_attempt(self):
        builder = PromptBuilder()

        assert builder.build("Tea", 1) != builder.build("Tea", 2)


# Feature: ai-post-generator, Batch Accounting
class TestBatchAccounting:
    """Tests for counters, errors and the usage log entry."""

    def test_all_attempts_succeed(self):
        generator, client, store, usage_log, sleep = make_generator()

        result = generator.generate_batch(GenerationRequest(topic="Coffee Brewing", count=10))

        assert result.posts_created == 10
        assert result.token_usage == 10_000
        assert result.errors == []
        assert len(result.article_ids) == 10
        assert len(client.prompts) == 10
        assert len(store.articles) == 10
        assert len(usage_log.entries) == 1
        topic, post_count, token_usage, created_at = usage_log.entries[0]
        assert (topic, post_count, token_usage) == ("Coffee Brewing", 10, 10_000)
        assert isinstance(created_at, datetime)

    def test_failed_attempts_are_recorded_and_skipped(self):
        client = ScriptedClient(
            outcomes={
                3: ApiError(429, "Rate limit reached"),
                7: TransportError("connection reset"),
            },
            tokens=1150,
        )
        generator, _, store, usage_log, _ = make_generator(client=client)

        result = generator.generate_batch(GenerationRequest(topic="Coffee Brewing", count=10))

        assert result.posts_created == 8
        assert result.token_usage == 8 * 1150
        assert result.errors == [
            "Post 3: OpenAI API error (code 429): Rate limit reached",
            "Post 7: API request failed: connection reset",
        ]
        assert len(store.articles) == 8
        assert usage_log.entries[0][:3] == ("Coffee Brewing", 8, 9200)

    @given(
        count=st.integers(min_value=10, max_value=40),
        data=st.data(),
    )
    @settings(max_examples=100, deadline=None)
    def test_every_attempt_is_accounted_exactly_once(self, count: int, data):
        """For any set of failing attempts, created + errors SHALL equal count."""
        failing = data.draw(
            st.sets(st.integers(min_value=1, max_value=count), max_size=count - 1)
        )
        client = ScriptedClient(
            outcomes={i: MalformedResponseError() for i in failing},
            tokens=7,
        )
        generator, _, store, usage_log, sleep = make_generator(client=client)

        result = generator.generate_batch(GenerationRequest(topic="Topic", count=count))

        assert result.posts_created + len(result.errors) == count
        assert result.attempts == count
        assert result.posts_created == count - len(failing)
        assert result.token_usage == 7 * result.posts_created
        assert [int(e.split(":")[0].split()[1]) for e in result.errors] == sorted(failing)
        assert len(store.articles) == result.posts_created
        assert len(usage_log.entries) == 1
        assert len(sleep.calls) == count - 1

    def test_all_attempts_fail_raises_batch_failed(self):
        client = ScriptedClient(
            outcomes={i: TransportError("network unreachable") for i in range(1, 11)}
        )
        generator, _, store, usage_log, _ = make_generator(client=client)

        with pytest.raises(BatchFailedError) as exc_info:
            generator.generate_batch(GenerationRequest(topic="Coffee", count=10))

        error = exc_info.value
        assert len(error.errors) == 10
        assert str(error).startswith("Failed to generate any posts. Post 1: API request failed")
        assert store.articles == {}
        assert usage_log.entries[0][:3] == ("Coffee", 0, 0)

    def test_missing_key_makes_no_calls_and_logs_nothing(self):
        generator, client, store, usage_log, sleep = make_generator(api_key="")

        with pytest.raises(ConfigError):
            generator.generate_batch(GenerationRequest(topic="Coffee", count=100))

        assert client.prompts == []
        assert store.articles == {}
        assert usage_log.entries == []
        assert sleep.calls == []

    def test_unexpected_exception_is_recorded_as_failure(self):
        client = ScriptedClient(outcomes={2: KeyError("choices")})
        generator, *_ = make_generator(client=client)

        result = generator.generate_batch(GenerationRequest(topic="Coffee", count=10))

        assert result.posts_created == 9
        assert result.errors == ["Post 2: 'choices'"]

    def test_unreported_usage_is_counted(self):
        client = ScriptedClient(
            outcomes={
                1: article_reply(1, tokens=0, usage_reported=False),
                4: article_reply(4, tokens=0, usage_reported=False),
            },
            tokens=500,
        )
        generator, *_ = make_generator(client=client)

        result = generator.generate_batch(GenerationRequest(topic="Coffee", count=10))

        assert result.token_usage == 8 * 500
        assert result.unreported_usage_count == 2

    def test_usage_log_failure_does_not_change_outcome(self, caplog):
        generator, *_ = make_generator(usage_log=InMemoryUsageLog(fail=True))

        with caplog.at_level(logging.ERROR):
            result = generator.generate_batch(GenerationRequest(topic="Coffee", count=10))

        assert result.posts_created == 10
        assert any("usage log" in record.message for record in caplog.records)

    def test_failed_attempts_log_warnings(self, caplog):
        client = ScriptedClient(outcomes={5: ApiError(500)})
        generator, *_ = make_generator(client=client)

        with caplog.at_level(logging.WARNING):
            generator.generate_batch(GenerationRequest(topic="Coffee", count=10))

        warnings = [r.message for r in caplog.records if r.levelno == logging.WARNING]
        assert any("post 5/10" in message for message in warnings)


# Feature: ai-post-generator, Pacing
class TestPacing:
    """Tests for the fixed delay between attempts."""

    @given(
        count=st.integers(min_value=10, max_value=100),
        delay=st.floats(min_value=0.0, max_value=5.0, allow_nan=False),
    )
    @settings(max_examples=50, deadline=None)
    def test_sleeps_between_attempts_only(self, count: int, delay: float):
        """For any batch, the generator SHALL sleep count - 1 times for the configured delay."""
        generator, _, _, _, sleep = make_generator(delay=delay)

        generator.generate_batch(GenerationRequest(topic="Coffee", count=count))

        assert sleep.calls == [delay] * (count - 1)

    def test_sleeps_after_failed_attempts_too(self):
        client = ScriptedClient(outcomes={i: TransportError("down") for i in range(1, 10)})
        generator, _, _, _, sleep = make_generator(client=client)

        generator.generate_batch(GenerationRequest(topic="Coffee", count=10))

        assert len(sleep.calls) == 9


# Feature: ai-post-generator, Persistence Rules
class TestPersistence:
    """Tests for what gets written to the content store."""

    def test_articles_are_drafts_with_configured_author(self):
        generator, _, store, _, _ = make_generator()

        result = generator.generate_batch(GenerationRequest(topic="Coffee", count=10))

        first = store.articles[result.article_ids[0]]
        assert first.status == "draft"
        assert first.author_id == 3
        assert first.content_type == "post"
        assert first.title == "Post number 1"
        assert first.body == "Body of post 1."
        assert first.excerpt == "Excerpt 1."

    def test_generation_metadata_is_attached(self):
        generator, _, store, _, _ = make_generator()

        result = generator.generate_batch(GenerationRequest(topic="Coffee Brewing", count=10))

        for article_id in result.article_ids:
            meta = store.metadata[article_id]
            assert meta[META_GENERATED] == "1"
            assert meta[META_TOPIC] == "Coffee Brewing"
            datetime.fromisoformat(meta[META_GENERATED_DATE])

    def test_tags_and_category_attached_to_posts(self):
        generator, _, store, _, _ = make_generator()

        result = generator.generate_batch(
            GenerationRequest(topic="Coffee", count=10, category_id=5)
        )

        article_id = result.article_ids[0]
        assert store.tags[article_id] == ["coffee", "brewing"]
        assert store.categories[article_id] == [5]

    def test_no_category_when_id_is_zero(self):
        generator, _, store, _, _ = make_generator()

        generator.generate_batch(GenerationRequest(topic="Coffee", count=10))

        assert store.categories == {}

    def test_pages_get_no_tags_or_category(self):
        generator, _, store, _, _ = make_generator()

        result = generator.generate_batch(
            GenerationRequest(topic="About Us", count=10, content_type="page", category_id=5)
        )

        assert result.posts_created == 10
        assert store.tags == {}
        assert store.categories == {}

    def test_empty_tag_elements_are_not_attached(self):
        reply = ModelReply(raw_text="TITLE: T\nBODY: B\nTAGS: coffee, , tea", token_usage=1)
        client = ScriptedClient(outcomes={1: reply})
        generator, _, store, _, _ = make_generator(client=client)

        result = generator.generate_batch(GenerationRequest(topic="Drinks", count=10))

        assert store.tags[result.article_ids[0]] == ["coffee", "tea"]

    def test_insert_failure_is_recorded_per_attempt(self):
        store = InMemoryContentStore(fail_insert_on={2})
        generator, _, _, usage_log, _ = make_generator(store=store)

        result = generator.generate_batch(GenerationRequest(topic="Coffee", count=10))

        assert result.posts_created == 9
        assert result.errors == ["Post 2: Failed to insert article: disk full"]
        assert result.token_usage == 9000
        assert usage_log.entries[0][1] == 9

    def test_non_persistence_store_error_is_wrapped(self):
        store = InMemoryContentStore(fail_metadata=True)
        generator, _, _, usage_log, _ = make_generator(store=store)

        with pytest.raises(BatchFailedError) as exc_info:
            generator.generate_batch(GenerationRequest(topic="Coffee", count=10))

        assert exc_info.value.errors[0] == (
            "Post 1: Failed to store article: metadata table locked"
        )
        assert usage_log.entries[0][1:3] == (0, 0)


class TestBatchResult:
    """Tests for the BatchResult container."""

    def test_defaults(self):
        result = BatchResult()

        assert result.posts_created == 0
        assert result.token_usage == 0
        assert result.errors == []
        assert result.article_ids == []
        assert result.attempts == 0

    def test_attempts_counts_successes_and_failures(self):
        result = BatchResult(posts_created=8, token_usage=9200, errors=["a", "b"])

        assert result.attempts == 10
