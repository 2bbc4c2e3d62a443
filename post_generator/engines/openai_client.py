"""Chat-completion client for the OpenAI API.

This module provides the OpenAIClient class, which sends one synchronous
chat-completion request per call and translates transport and API failures
into the typed errors of post_generator.engines.errors.
"""

import logging
from typing import Any

import requests

from post_generator.config.settings import Settings
from post_generator.engines.errors import (
    ApiError,
    ConfigError,
    MalformedResponseError,
    TransportError,
)
from post_generator.engines.models import ModelReply, PromptPair


logger = logging.getLogger(__name__)


# Models offered to users, mapped to display labels
AVAILABLE_MODELS: dict[str, str] = {
    "gpt-4o-mini": "GPT-4o-mini (Recommended)",
    "gpt-4o": "GPT-4o",
    "gpt-4-turbo": "GPT-4 Turbo",
    "gpt-3.5-turbo": "GPT-3.5 Turbo",
}

CONNECTION_TEST_PROMPT = PromptPair(
    system_message="You are a helpful assistant.",
    user_message='Say "Connection successful" if you receive this message.',
)


def list_available_models() -> dict[str, str]:
    """Return the supported model names and their display labels."""
    return dict(AVAILABLE_MODELS)


class OpenAIClient:
    """Client for the chat-completion endpoint.

    All configuration is taken from the Settings instance given at
    construction. The client keeps no state between calls.

    Attributes:
        api_key: Bearer credential
        model: Model name sent with every request
        max_tokens: Maximum output tokens per request
        temperature: Sampling temperature
        api_url: Endpoint URL
        timeout: Request timeout in seconds

    Example:
        >>> client = OpenAIClient(Settings(api_key="sk-test"))
        >>> reply = client.generate(PromptPair("You are a writer.", "Topic: Tea"))
        >>> reply.token_usage >= 0
        True
    """

    def __init__(self, settings: Settings) -> None:
        self.api_key = settings.api_key
        self.model = settings.model
        self.max_tokens = settings.max_tokens
        self.temperature = settings.temperature
        self.api_url = settings.api_url
        self.timeout = settings.request_timeout_seconds

    def _build_payload(self, prompt: PromptPair) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": prompt.system_message},
                {"role": "user", "content": prompt.user_message},
            ],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }

    def _build_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    def generate(self, prompt: PromptPair) -> ModelReply:
        """Send one chat-completion request and return the reply.

        Args:
            prompt: The system and user messages to send.

        Returns:
            A ModelReply with the first choice's text and the reported
            total token usage (0 with usage_reported=False if missing).

        Raises:
            ConfigError: If no API key is configured. No request is sent.
            TransportError: If the request cannot complete.
            ApiError: If the API returns a status other than 200.
            MalformedResponseError: If a 200 response lacks the reply text.
        """
        if not self.api_key or not self.api_key.strip():
            raise ConfigError("OpenAI API key is not configured.")

        logger.debug(
            f"Sending chat request to model '{self.model}' "
            f"with max_tokens={self.max_tokens}, temperature={self.temperature}"
        )

        try:
            response = requests.post(
                self.api_url,
                headers=self._build_headers(),
                json=self._build_payload(prompt),
                timeout=self.timeout,
            )
        except requests.Timeout:
            raise TransportError(f"request timed out after {self.timeout} seconds")
        except requests.RequestException as e:
            raise TransportError(str(e))

        if response.status_code != 200:
            remote_message = self._extract_error_message(response)
            logger.warning(
                f"API returned status {response.status_code}: "
                f"{remote_message or ApiError.GENERIC_MESSAGE}"
            )
            raise ApiError(response.status_code, remote_message)

        try:
            data = response.json()
        except ValueError:
            raise MalformedResponseError("Invalid response from OpenAI API: body is not JSON.")

        content = self._extract_content(data)
        if content is None:
            raise MalformedResponseError()
        if not content.strip():
            raise MalformedResponseError("Model returned empty response.")

        token_usage, usage_reported = self._extract_usage(data)
        if not usage_reported:
            logger.debug("API response did not report token usage")

        return ModelReply(
            raw_text=content,
            token_usage=token_usage,
            usage_reported=usage_reported,
        )

    def test_connection(self) -> bool:
        """Verify the credential and endpoint with a small probe request.

        Returns:
            True if the probe request succeeded.

        Raises:
            The same errors as generate().
        """
        self.generate(CONNECTION_TEST_PROMPT)
        logger.info(f"Connection to {self.api_url} succeeded using model '{self.model}'")
        return True

    @staticmethod
    def _extract_error_message(response: requests.Response) -> str | None:
        """Pull error.message out of an error body, if present."""
        try:
            data = response.json()
        except ValueError:
            return None
        if not isinstance(data, dict):
            return None
        error = data.get("error")
        if isinstance(error, dict):
            message = error.get("message")
            if isinstance(message, str) and message.strip():
                return message
        return None

    @staticmethod
    def _extract_content(data: Any) -> str | None:
        """Return choices[0].message.content, or None if the shape is wrong."""
        if not isinstance(data, dict):
            return None
        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            return None
        first = choices[0]
        if not isinstance(first, dict):
            return None
        message = first.get("message")
        if not isinstance(message, dict):
            return None
        content = message.get("content")
        return content if isinstance(content, str) else None

    @staticmethod
    def _extract_usage(data: dict[str, Any]) -> tuple[int, bool]:
        """Return (total_tokens, reported) from the usage block."""
        usage = data.get("usage")
        if not isinstance(usage, dict):
            return 0, False
        total = usage.get("total_tokens")
        # bool is an int subclass; reject it explicitly
        if isinstance(total, bool) or not isinstance(total, int) or total < 0:
            return 0, False
        return total, True
