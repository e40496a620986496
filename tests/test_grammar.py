"""
Unit tests for the grammar checker.

Tests the LanguageTool client (request shape, match mapping, retries,
error handling) and the concurrent checker against a mocked transport.
No real network calls are made.
"""

import json
import threading
from typing import Any, Callable

import httpx
import pytest

from rubric_checker.config import Settings
from rubric_checker.grammar import GrammarCheckError, GrammarChecker, LanguageToolClient, issues_by_id
from rubric_checker.models import GrammarIssue, RubricReport

from conftest import languagetool_payload


def _json_response(payload: Any, status: int = 200) -> httpx.Response:
    return httpx.Response(status, content=json.dumps(payload))


class TestLanguageToolClient:
    """Tests for LanguageToolClient."""

    def test_request_shape(self, test_settings: Settings, make_transport: Callable[..., httpx.MockTransport]) -> None:
        """Test the text, language and level are posted as a form."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _json_response(languagetool_payload())

        client = LanguageToolClient(test_settings, transport=make_transport(handler))
        assert client.check("Some text") == []

        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "https://languagetool.test/v2/check"
        assert request.headers["content-type"] == "application/x-www-form-urlencoded"
        form = dict(httpx.QueryParams(request.content.decode("utf-8")))
        assert form == {"text": "Some text", "language": "en-US", "level": "picky"}

    def test_maps_matches(
        self,
        test_settings: Settings,
        sample_match: dict[str, Any],
        make_transport: Callable[..., httpx.MockTransport],
    ) -> None:
        transport = make_transport(lambda request: _json_response(languagetool_payload(sample_match)))
        client = LanguageToolClient(test_settings, transport=transport)

        issues = client.check("for steroreochemistry")

        assert issues == [
            GrammarIssue(
                message="Possible spelling mistake found.",
                short_message="Spelling mistake",
                replacements=("stereochemistry", "stereo chemistry"),
                context="...for steroreochemistry...",
                offset=4,
                length=15,
                rule_id="MORFOLOGIK_RULE_EN_US",
            )
        ]

    def test_missing_match_fields_default(
        self, test_settings: Settings, make_transport: Callable[..., httpx.MockTransport]
    ) -> None:
        """Test sparse matches fall back to empty values."""
        transport = make_transport(lambda request: _json_response({"matches": [{"message": "Odd"}]}))
        client = LanguageToolClient(test_settings, transport=transport)

        issue = client.check("x")[0]

        assert issue.message == "Odd"
        assert issue.short_message is None
        assert issue.replacements == ()
        assert issue.context == ""
        assert issue.offset == 0
        assert issue.length == 0
        assert issue.rule_id is None

    def test_response_without_matches(
        self, test_settings: Settings, make_transport: Callable[..., httpx.MockTransport]
    ) -> None:
        transport = make_transport(lambda request: _json_response({}))
        assert LanguageToolClient(test_settings, transport=transport).check("x") == []

    def test_client_error_not_retried(
        self, test_settings: Settings, make_transport: Callable[..., httpx.MockTransport]
    ) -> None:
        """Test a 4xx response fails immediately with the body in the message."""
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(400, text="Missing text parameter")

        client = LanguageToolClient(test_settings, transport=make_transport(handler))

        with pytest.raises(GrammarCheckError, match=r"LanguageTool error \(400\): Missing text") as exc_info:
            client.check("x")

        assert exc_info.value.retryable is False
        assert len(calls) == 1

    def test_server_error_retried_then_succeeds(
        self, test_settings: Settings, make_transport: Callable[..., httpx.MockTransport]
    ) -> None:
        responses = iter(
            [
                httpx.Response(503, text="busy"),
                httpx.Response(429, text="slow down"),
                _json_response(languagetool_payload({"message": "ok"})),
            ]
        )
        client = LanguageToolClient(test_settings, transport=make_transport(lambda request: next(responses)))

        assert [i.message for i in client.check("x")] == ["ok"]

    def test_server_error_exhausts_retries(
        self, test_settings: Settings, make_transport: Callable[..., httpx.MockTransport]
    ) -> None:
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(500, text="boom")

        client = LanguageToolClient(test_settings, transport=make_transport(handler))

        with pytest.raises(GrammarCheckError, match="after 2 retries") as exc_info:
            client.check("x")

        assert exc_info.value.retryable is True
        assert len(calls) == test_settings.max_retries + 1

    def test_connection_error_retried(
        self, test_settings: Settings, make_transport: Callable[..., httpx.MockTransport]
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = LanguageToolClient(test_settings, transport=make_transport(handler))

        with pytest.raises(GrammarCheckError, match="Connection failed") as exc_info:
            client.check("x")

        assert isinstance(exc_info.value.cause, httpx.ConnectError)

    def test_invalid_json(self, test_settings: Settings, make_transport: Callable[..., httpx.MockTransport]) -> None:
        transport = make_transport(lambda request: httpx.Response(200, text="<html>oops</html>"))
        client = LanguageToolClient(test_settings, transport=transport)

        with pytest.raises(GrammarCheckError, match="Invalid JSON"):
            client.check("x")

    @pytest.mark.parametrize(
        "match",
        [
            {"message": "Odd", "offset": "abc"},
            {"message": "Odd", "replacements": ["plain string"]},
            {"message": "Odd", "context": "not an object"},
        ],
    )
    def test_malformed_match(
        self,
        test_settings: Settings,
        make_transport: Callable[..., httpx.MockTransport],
        match: dict[str, Any],
    ) -> None:
        """Test an unreadable match fails the check instead of escaping as a crash."""
        transport = make_transport(lambda request: _json_response(languagetool_payload(match)))
        client = LanguageToolClient(test_settings, transport=transport)

        with pytest.raises(GrammarCheckError, match="Malformed match"):
            client.check("x")

    def test_calculate_delay_caps(self, test_settings: Settings) -> None:
        settings = test_settings.model_copy(update={"retry_base_delay_seconds": 1.0})
        client = LanguageToolClient(settings)

        assert client._calculate_delay(0) == 1.0
        assert client._calculate_delay(3) == 8.0
        assert client._calculate_delay(10) == 30.0

    def test_health_check(self, test_settings: Settings, make_transport: Callable[..., httpx.MockTransport]) -> None:
        ok = LanguageToolClient(test_settings, transport=make_transport(lambda r: _json_response({"matches": []})))
        down = LanguageToolClient(test_settings, transport=make_transport(lambda r: httpx.Response(403)))

        assert ok.health_check() is True
        assert down.health_check() is False


class TestGrammarChecker:
    """Tests for GrammarChecker."""

    def test_results_keep_item_order(self, test_settings: Settings, echo_transport: httpx.MockTransport) -> None:
        """Test results come back keyed by id in the caller's order."""
        checker = GrammarChecker(test_settings, LanguageToolClient(test_settings, transport=echo_transport))
        items = [
            ("Q2_C_1", "accounted for steroreochemistry"),
            ("Q1", "Fine sentence."),
            ("Q3", "another steroreochemistry slip"),
        ]

        results = checker.check_items(items)

        assert [r.id for r in results] == ["Q2_C_1", "Q1", "Q3"]
        assert [r.issue_count for r in results] == [1, 0, 1]

    def test_order_independent_of_completion(
        self, test_settings: Settings, make_transport: Callable[..., httpx.MockTransport]
    ) -> None:
        """Test a slow first request doesn't reorder results."""
        first_started = threading.Event()
        second_done = threading.Event()

        def handler(request: httpx.Request) -> httpx.Response:
            text = dict(httpx.QueryParams(request.content.decode("utf-8")))["text"]
            if text == "slow":
                first_started.set()
                second_done.wait(timeout=2)
            else:
                first_started.wait(timeout=2)
                second_done.set()
            return _json_response(languagetool_payload({"message": text}))

        client = LanguageToolClient(test_settings, transport=make_transport(handler))
        results = GrammarChecker(test_settings, client).check_items([("A", "slow"), ("B", "fast")])

        assert [(r.id, r.issues[0].message) for r in results] == [("A", "slow"), ("B", "fast")]

    def test_single_failure_fails_batch(
        self, test_settings: Settings, make_transport: Callable[..., httpx.MockTransport]
    ) -> None:
        """Test one failing request fails the whole batch."""

        def handler(request: httpx.Request) -> httpx.Response:
            text = dict(httpx.QueryParams(request.content.decode("utf-8")))["text"]
            if text == "bad":
                return httpx.Response(413, text="Text too long")
            return _json_response(languagetool_payload())

        client = LanguageToolClient(test_settings, transport=make_transport(handler))

        with pytest.raises(GrammarCheckError, match="413"):
            GrammarChecker(test_settings, client).check_items([("A", "good"), ("B", "bad"), ("C", "good")])

    def test_empty_items_rejected(self, test_settings: Settings, echo_transport: httpx.MockTransport) -> None:
        checker = GrammarChecker(test_settings, LanguageToolClient(test_settings, transport=echo_transport))

        with pytest.raises(GrammarCheckError, match="items"):
            checker.check_items([])

    def test_check_report(
        self,
        test_settings: Settings,
        sample_report: RubricReport,
        echo_transport: httpx.MockTransport,
    ) -> None:
        checker = GrammarChecker(test_settings, LanguageToolClient(test_settings, transport=echo_transport))

        results = checker.check_report(sample_report)
        by_id = issues_by_id(results)

        assert list(by_id) == [e.id for e in sample_report.entries]
        assert len(by_id["Q2_C_1"]) == 1
        assert sum(len(issues) for issues in by_id.values()) == 1

    def test_close_releases_own_client(self, test_settings: Settings) -> None:
        with GrammarChecker(test_settings) as checker:
            http = checker._client._client
            assert not http.is_closed

        assert http.is_closed

    def test_close_leaves_injected_client_open(
        self, test_settings: Settings, echo_transport: httpx.MockTransport
    ) -> None:
        """Test a caller-provided client stays usable after the checker closes."""
        client = LanguageToolClient(test_settings, transport=echo_transport)

        with GrammarChecker(test_settings, client):
            pass

        assert client.check("steroreochemistry")[0].rule_id == "MORFOLOGIK_RULE_EN_US"
        client.close()
