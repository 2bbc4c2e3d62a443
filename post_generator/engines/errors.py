"""Exceptions raised while generating posts.

Per-attempt failures derive from AttemptError and are captured by the batch
orchestrator into its error list. ConfigError and BatchFailedError are the
only failures that escape a batch.

Hierarchy:
    PostGeneratorError
        ConfigError
        AttemptError
            TransportError
            ApiError
            MalformedResponseError
            PersistenceError
        BatchFailedError
"""

from post_generator.config.settings import ConfigurationError


class PostGeneratorError(Exception):
    """Base class for all post generation errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigError(PostGeneratorError, ConfigurationError):
    """Raised when no API credential is configured.

    Checked before any network call; a batch that hits it makes no attempts
    and writes no usage log entry.

    Example:
        >>> raise ConfigError()
        ConfigError: OpenAI API key is not set. Please configure it in settings.
    """

    def __init__(
        self,
        message: str = "OpenAI API key is not set. Please configure it in settings.",
    ) -> None:
        super().__init__(message)


class AttemptError(PostGeneratorError):
    """Base class for failures that only skip the current attempt."""

    pass


class TransportError(AttemptError):
    """Raised when the API request cannot complete (DNS, connection, timeout)."""

    def __init__(self, cause: str) -> None:
        self.cause = cause
        super().__init__(f"API request failed: {cause}")


class ApiError(AttemptError):
    """Raised when the API answers with a non-success status.

    Attributes:
        status_code: HTTP status returned by the API
        remote_message: The API's own error message, if it sent one

    Example:
        >>> raise ApiError(429, "Rate limit reached")
        ApiError: OpenAI API error (code 429): Rate limit reached
    """

    GENERIC_MESSAGE = "Unknown API error."

    def __init__(self, status_code: int, remote_message: str | None = None) -> None:
        self.status_code = status_code
        self.remote_message = remote_message
        detail = remote_message or self.GENERIC_MESSAGE
        super().__init__(f"OpenAI API error (code {status_code}): {detail}")


class MalformedResponseError(AttemptError):
    """Raised when a success response lacks the reply text."""

    def __init__(self, detail: str = "Invalid response from OpenAI API.") -> None:
        self.detail = detail
        super().__init__(detail)


class PersistenceError(AttemptError):
    """Raised when the content store or usage log cannot be written."""

    def __init__(self, operation: str, cause: str) -> None:
        self.operation = operation
        self.cause = cause
        super().__init__(f"Failed to {operation}: {cause}")


class BatchFailedError(PostGeneratorError):
    """Raised when a batch finished without creating a single post.

    Attributes:
        errors: The per-attempt error descriptions, in attempt order
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        message = "Failed to generate any posts. " + " ".join(self.errors)
        super().__init__(message.strip())
