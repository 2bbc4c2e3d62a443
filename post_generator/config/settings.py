"""Configuration settings for the AI Post Generator."""

from dataclasses import dataclass
from pathlib import Path
import os

from dotenv import load_dotenv


DEFAULT_API_URL = "https://api.openai.com/v1/chat/completions"
DEFAULT_MODEL = "gpt-4o-mini"

MIN_MAX_TOKENS = 100
MAX_MAX_TOKENS = 4000


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""

    pass


@dataclass
class Settings:
    """Configuration settings for the AI Post Generator.

    Built once at startup and passed to the model client and the batch
    orchestrator; nothing reads configuration lazily after construction.

    Attributes:
        api_key: Bearer credential for the chat-completion API
        model: Model name sent with every request
        max_tokens: Maximum output tokens per request (100-4000)
        temperature: Sampling temperature (0.0-1.0)
        api_url: Chat-completion endpoint URL
        request_timeout_seconds: Timeout for a single API request
        request_delay_seconds: Pause between generation attempts
        database_path: SQLite file holding articles and the usage log
        author_id: Author assigned to every generated article
    """

    api_key: str = ""
    model: str = DEFAULT_MODEL
    max_tokens: int = 2000
    temperature: float = 0.7
    api_url: str = DEFAULT_API_URL
    request_timeout_seconds: float = 60.0
    request_delay_seconds: float = 0.5
    database_path: str = "post_generator.db"
    author_id: int = 1

    @property
    def has_credential(self) -> bool:
        """Return True when an API key is configured."""
        return bool(self.api_key and self.api_key.strip())

    def validate(self) -> None:
        """Validate configuration values.

        A missing API key is not reported here; generation reports it
        as a ConfigError before any request is made.

        Raises:
            ConfigurationError: If any configuration value is invalid.
        """
        errors: list[str] = []

        if not self.model or not self.model.strip():
            errors.append("model must not be empty")

        if self.max_tokens < MIN_MAX_TOKENS or self.max_tokens > MAX_MAX_TOKENS:
            errors.append(
                f"max_tokens must be between {MIN_MAX_TOKENS} and {MAX_MAX_TOKENS}"
            )

        if self.temperature < 0.0 or self.temperature > 1.0:
            errors.append("temperature must be between 0.0 and 1.0")

        if not self.api_url or not self.api_url.strip():
            errors.append("api_url must not be empty")

        if self.request_timeout_seconds <= 0.0:
            errors.append("request_timeout_seconds must be positive")

        if self.request_delay_seconds < 0.0:
            errors.append("request_delay_seconds must be non-negative")

        if self.author_id < 0:
            errors.append("author_id must be non-negative")

        if errors:
            raise ConfigurationError("; ".join(errors))


def _parse_float(value: str | None, default: float) -> float:
    """Parse a string to float, returning default if None or invalid."""
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _parse_int(value: str | None, default: int) -> int:
    """Parse a string to int, returning default if None or invalid."""
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def load_settings(env_path: str | Path | None = None, validate: bool = True) -> Settings:
    """Load settings from environment variables and .env file.

    Args:
        env_path: Optional path to .env file. If None, searches for .env
                  in current directory and parent directories.
        validate: If True, validate settings after loading.

    Returns:
        Settings instance with loaded configuration.

    Raises:
        ConfigurationError: If validate=True and configuration is invalid.
    """
    if env_path:
        load_dotenv(env_path)
    else:
        load_dotenv()

    settings = Settings(
        api_key=os.getenv("OPENAI_API_KEY", ""),
        model=os.getenv("OPENAI_MODEL", DEFAULT_MODEL),
        max_tokens=_parse_int(os.getenv("OPENAI_MAX_TOKENS"), 2000),
        temperature=_parse_float(os.getenv("OPENAI_TEMPERATURE"), 0.7),
        api_url=os.getenv("OPENAI_API_URL", DEFAULT_API_URL),
        request_timeout_seconds=_parse_float(
            os.getenv("REQUEST_TIMEOUT_SECONDS"), 60.0
        ),
        request_delay_seconds=_parse_float(
            os.getenv("REQUEST_DELAY_SECONDS"), 0.5
        ),
        database_path=os.getenv("DATABASE_PATH", "post_generator.db"),
        author_id=_parse_int(os.getenv("POST_AUTHOR_ID"), 1),
    )

    if validate:
        settings.validate()

    return settings
