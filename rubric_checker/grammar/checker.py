"""
Grammar checker - runs LanguageTool over rubric justifications.

Issues one request per justification, concurrently, and recombines the
results by entry id in the caller's order. A single failed request fails
the whole batch; there are no partial results.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Sequence

from rubric_checker.config import Settings, get_settings
from rubric_checker.grammar.client import GrammarCheckError, LanguageToolClient
from rubric_checker.models import GrammarIssue, GrammarResult, RubricReport

logger = logging.getLogger(__name__)


class GrammarChecker:
    """
    Checks the justifications of a rubric for grammar and spelling issues.

    The parser has already produced every justification before the first
    request goes out, so a failure here never affects the rubric report.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: LanguageToolClient | None = None,
    ):
        """
        Initialize the checker.

        Args:
            settings: Configuration settings. Uses global settings if not provided.
            client: LanguageTool client. Created from settings if not provided.
        """
        self._settings = settings or get_settings()
        # Only a client created here is closed by close()
        self._owns_client = client is None
        self._client = client or LanguageToolClient(self._settings)

    def __enter__(self) -> "GrammarChecker":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def check_items(self, items: Sequence[tuple[str, str]]) -> list[GrammarResult]:
        """
        Check `(id, text)` pairs concurrently.

        Args:
            items: Pairs as returned by RubricReport.justification_items().

        Returns:
            One GrammarResult per item, in the order of `items`.

        Raises:
            GrammarCheckError: If `items` is empty or any request fails.
        """
        if not items:
            raise GrammarCheckError("items list is required")

        workers = min(self._settings.max_workers, len(items))
        logger.info("Checking %d justifications with %d workers", len(items), workers)

        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures: list[Future[list[GrammarIssue]]] = [
                pool.submit(self._client.check, text) for _, text in items
            ]
            try:
                return [
                    GrammarResult(id=item_id, issues=tuple(future.result()))
                    for (item_id, _), future in zip(items, futures)
                ]
            except GrammarCheckError:
                for future in futures:
                    future.cancel()
                raise

    def check_report(self, report: RubricReport) -> list[GrammarResult]:
        """Check every non-empty justification in a rubric report."""
        return self.check_items(report.justification_items())

    def health_check(self) -> bool:
        return self._client.health_check()


def issues_by_id(results: Sequence[GrammarResult]) -> dict[str, tuple[GrammarIssue, ...]]:
    """Index grammar results by entry id."""
    return {result.id: result.issues for result in results}
