"""
Pytest configuration and fixtures.

Provides common test fixtures for all test modules.
"""

import json
import tempfile
from pathlib import Path
from typing import Any, Callable, Generator

import httpx
import pytest

from rubric_checker.config import Settings, VerdictScope
from rubric_checker.models import ParsedRubric, RubricReport
from rubric_checker.rubric import RubricParser, parse_rubric


# ==============================================================================
# Directory Fixtures
# ==============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# ==============================================================================
# Sample Rubric Fixtures
# ==============================================================================


SAMPLE_RUBRIC = """Q2_A_1_score: 0
Q2_A_1_verdict: "WRONG_ANSWER"
Q2_A_1_justification: Although the descriptions are mostly correct, no figure was drawn, and no Python script was provided.

Q2_A_2_score: 0
Q2_A_2_verdict: "WRONG_ANSWER"
Q2_A_2_justification: The smiles description is correct for structure C, but no drawing is provided.

Q2_B_1_score: 0
Q2_B_1_verdict: "WRONG_ANSWER"
Q2_B_1_justification: The table shown in the solution made 0/6 correct answers.

Q2_B_2_score: 0
Q2_B_2_verdict: "WRONG_ANSWER"
Q2_B_2_justification: The SMILES failed to render, and no Python drawing was provided.

Q2_C_1_score: 12
Q2_C_1_verdict: "WRONG_ANSWER"
Q2_C_1_justification: All molecular formulas provided are correct. However, the structures have not accounted for steroreochemistry.

Q2_D_1_score: 0
Q2_D_1_verdict: "WRONG_ANSWER"
Q2_D_1_justification: The Python drawing failed to run. Hence, the drawing is absent.

Q2_D_3_score: 0
Q2_D_3_verdict: "WRONG_ANSWER"
Q2_D_3_justification: The Python drawing failed to run. Hence, the drawing is absent.

Q2_score: 12
Q2_verdict: "WRONG_ANSWER"
Q2_justification: The majority of the question involves drawing. The drawing in 2.4 cannot be run in python.
"""


@pytest.fixture
def sample_rubric_text() -> str:
    """A realistic rubric with a few planted mistakes.

    - `Q2_A_2` spells SMILES in lowercase
    - `Q2` spells Python in lowercase
    - `Q2_D_2` is missing from the D sequence
    """
    return SAMPLE_RUBRIC


@pytest.fixture
def clean_rubric_text() -> str:
    """A rubric with no findings at all."""
    return """# Question 1
Q1_1_score: 3
Q1_1_verdict: "ACCEPTED"
Q1_1_justification: Correct derivation with units.
Q1_2_score: 2
Q1_2_verdict: "ACCEPTED"
Q1_2_justification: The Python script runs and prints the expected table.
Q1_score: 5
Q1_verdict: "ACCEPTED"
Q1_justification: Both parts are correct.
"""


@pytest.fixture
def parser() -> RubricParser:
    return RubricParser()


@pytest.fixture
def parsed_sample(parser: RubricParser, sample_rubric_text: str) -> ParsedRubric:
    return parser.parse(sample_rubric_text)


@pytest.fixture
def sample_report(sample_rubric_text: str) -> RubricReport:
    return parse_rubric(sample_rubric_text)


# ==============================================================================
# Settings Fixtures
# ==============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Settings pointing at a fake endpoint, with no retry delays."""
    return Settings(
        languagetool_url="https://languagetool.test/v2/check/",
        languagetool_language="en-US",
        languagetool_level="picky",
        request_timeout_seconds=5.0,
        max_retries=2,
        retry_base_delay_seconds=0.0,
        max_workers=4,
        verdict_scope=VerdictScope.DOCUMENT,
    )


# ==============================================================================
# HTTP Fixtures
# ==============================================================================


def languagetool_payload(*matches: dict[str, Any]) -> dict[str, Any]:
    """Build a LanguageTool response body."""
    return {"software": {"name": "LanguageTool"}, "matches": list(matches)}


@pytest.fixture
def sample_match() -> dict[str, Any]:
    """A typical LanguageTool match."""
    return {
        "message": "Possible spelling mistake found.",
        "shortMessage": "Spelling mistake",
        "replacements": [{"value": "stereochemistry"}, {"value": "stereo chemistry"}],
        "offset": 4,
        "length": 15,
        "context": {"text": "...for steroreochemistry...", "offset": 7, "length": 15},
        "rule": {"id": "MORFOLOGIK_RULE_EN_US"},
    }


@pytest.fixture
def make_transport() -> Callable[..., httpx.MockTransport]:
    """Return a factory for mock transports driven by a handler function."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.MockTransport:
        return httpx.MockTransport(handler)

    return factory


@pytest.fixture
def echo_transport(sample_match: dict[str, Any]) -> httpx.MockTransport:
    """Transport that reports one match for texts containing 'steroreo', none otherwise."""

    def handler(request: httpx.Request) -> httpx.Response:
        form = dict(httpx.QueryParams(request.content.decode("utf-8")))
        matches = [sample_match] if "steroreo" in form.get("text", "") else []
        return httpx.Response(200, content=json.dumps(languagetool_payload(*matches)))

    return httpx.MockTransport(handler)


# ==============================================================================
# File Fixtures
# ==============================================================================


@pytest.fixture
def sample_txt_file(temp_dir: Path, sample_rubric_text: str) -> Path:
    """Write the sample rubric to a text file."""
    file_path = temp_dir / "rubric.txt"
    file_path.write_text(sample_rubric_text, encoding="utf-8")
    return file_path


@pytest.fixture
def clean_txt_file(temp_dir: Path, clean_rubric_text: str) -> Path:
    file_path = temp_dir / "clean.txt"
    file_path.write_text(clean_rubric_text, encoding="utf-8")
    return file_path


@pytest.fixture
def empty_file(temp_dir: Path) -> Path:
    """Create an empty file."""
    file_path = temp_dir / "empty.txt"
    file_path.write_text("", encoding="utf-8")
    return file_path
