"""
LanguageTool client.

Posts justification text to a LanguageTool check endpoint and maps the
returned matches to GrammarIssue models. Includes retry logic with
exponential backoff for transient failures.
"""

import logging
import time
from typing import Any

import httpx

from rubric_checker.config import Settings, get_settings
from rubric_checker.models import GrammarIssue

logger = logging.getLogger(__name__)


class GrammarCheckError(Exception):
    """Raised when a grammar check request fails."""

    def __init__(self, message: str, cause: Exception | None = None, retryable: bool = False):
        self.cause = cause
        self.retryable = retryable
        super().__init__(message)


class LanguageToolClient:
    """
    Client for the LanguageTool HTTP API.

    One call checks one text. Connection errors, timeouts, 429 and 5xx
    responses are retried with exponential backoff; other 4xx responses
    fail immediately.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize the client.

        Args:
            settings: Configuration settings. Uses global settings if not provided.
            transport: Optional httpx transport, used by tests to stub the API.
        """
        self._settings = settings or get_settings()
        self._client = httpx.Client(
            timeout=self._settings.request_timeout_seconds,
            transport=transport,
        )

        # Retry configuration
        self._max_retries = self._settings.max_retries
        self._base_delay = self._settings.retry_base_delay_seconds
        self._max_delay = 30.0  # seconds

    def __enter__(self) -> "LanguageToolClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def check(self, text: str) -> list[GrammarIssue]:
        """
        Check a single text.

        Args:
            text: The text to check.

        Returns:
            Issues in the order LanguageTool reports them.

        Raises:
            GrammarCheckError: If the check fails after all retries, or a
                match in the response can't be read.
        """
        data = self._post_with_retry(
            {
                "text": text,
                "language": self._settings.languagetool_language,
                "level": self._settings.languagetool_level,
            }
        )
        matches = data.get("matches") or []
        try:
            return [self._to_issue(match) for match in matches]
        except (AttributeError, TypeError, ValueError) as e:
            raise GrammarCheckError(f"Malformed match from LanguageTool: {e}", cause=e) from e

    def _post_with_retry(self, form: dict[str, str]) -> dict[str, Any]:
        """
        POST the form with exponential backoff retry.

        Raises:
            GrammarCheckError: If all retries fail or the response is unusable.
        """
        url = self._settings.languagetool_url
        last_error: Exception | None = None

        for attempt in range(self._max_retries + 1):
            try:
                response = self._client.post(url, data=form)
            except httpx.TransportError as e:
                last_error = e
                if attempt < self._max_retries:
                    self._wait(attempt, f"{type(e).__name__}: {e}")
                    continue
                raise GrammarCheckError(
                    f"Connection failed after {self._max_retries} retries: {e}",
                    cause=e,
                    retryable=True,
                ) from e

            if response.status_code == 429 or response.status_code >= 500:
                last_error = httpx.HTTPStatusError(
                    f"HTTP {response.status_code}", request=response.request, response=response
                )
                if attempt < self._max_retries:
                    self._wait(attempt, f"HTTP {response.status_code}")
                    continue
                raise GrammarCheckError(
                    f"LanguageTool error ({response.status_code}) after "
                    f"{self._max_retries} retries: {response.text}",
                    cause=last_error,
                    retryable=True,
                )

            if not response.is_success:
                raise GrammarCheckError(
                    f"LanguageTool error ({response.status_code}): {response.text}",
                    retryable=False,
                )

            try:
                data = response.json()
            except ValueError as e:
                raise GrammarCheckError(f"Invalid JSON from LanguageTool: {e}", cause=e) from e

            if not isinstance(data, dict):
                raise GrammarCheckError("Unexpected LanguageTool response shape")
            return data

        # Should not reach here, but just in case
        raise GrammarCheckError(f"Failed after {self._max_retries} retries", cause=last_error)

    def _wait(self, attempt: int, reason: str) -> None:
        delay = self._calculate_delay(attempt)
        logger.warning(
            "LanguageTool request failed (%s), retry %d/%d in %.1fs",
            reason,
            attempt + 1,
            self._max_retries,
            delay,
        )
        time.sleep(delay)

    def _calculate_delay(self, attempt: int) -> float:
        """
        Calculate delay for exponential backoff.

        Args:
            attempt: Current attempt number (0-indexed).

        Returns:
            Delay in seconds.
        """
        delay = self._base_delay * (2**attempt)
        return min(delay, self._max_delay)

    @staticmethod
    def _to_issue(match: dict[str, Any]) -> GrammarIssue:
        """Map one LanguageTool match to a GrammarIssue."""
        context = match.get("context") or {}
        rule = match.get("rule") or {}
        short_message = match.get("shortMessage") or None
        rule_id = rule.get("id")
        return GrammarIssue(
            message=str(match.get("message", "")),
            short_message=str(short_message) if short_message is not None else None,
            replacements=tuple(
                str(r.get("value", "")) for r in match.get("replacements") or []
            ),
            context=str(context.get("text", "")),
            offset=max(int(match.get("offset") or 0), 0),
            length=max(int(match.get("length") or 0), 0),
            rule_id=str(rule_id) if rule_id is not None else None,
        )

    def health_check(self) -> bool:
        """
        Check if the API is reachable.

        Returns:
            True if a trivial check succeeds, False otherwise.
        """
        try:
            self.check("ping")
            return True
        except GrammarCheckError:
            return False
