"""
Pydantic models for the Rubric Checker.

These models define the schemas for:
- Parsed rubric entries and the raw key/value ledger behind them
- Diagnostic findings produced by the rubric validator
- Grammar-check results returned by the LanguageTool collaborator
- Extracted source documents

Every model is frozen: a parse result is never mutated once returned.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Annotated, Any, Mapping

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    computed_field,
)


class FieldRole(str, Enum):
    """Role of a rubric key, taken from its last underscore-delimited segment."""

    SCORE = "score"
    VERDICT = "verdict"
    JUSTIFICATION = "justification"
    OTHER = "other"


class CasingConvention(str, Enum):
    """Terms whose spelling is checked in justifications."""

    SMILES = "SMILES"
    PYTHON = "PYTHON"


# ==============================================================================
# Rubric Models
# ==============================================================================


def _copy_mapping(value: Any) -> Any:
    return dict(value) if isinstance(value, Mapping) else value


def _freeze(value: dict[str, str]) -> Mapping[str, str]:
    return MappingProxyType(value)


def _thaw(value: Mapping[str, str]) -> dict[str, str]:
    return dict(value)


# A str -> str mapping that can't be changed after validation; dumps as a dict
ReadOnlyStrMap = Annotated[
    Mapping[str, str],
    BeforeValidator(_copy_mapping),
    AfterValidator(_freeze),
    PlainSerializer(_thaw),
]


class RubricEntry(BaseModel):
    """
    A single rubric item, assembled from every key sharing its id.

    `Q2_A_1_score`, `Q2_A_1_verdict` and `Q2_A_1_justification` all
    contribute to the entry with id `Q2_A_1`.
    """

    model_config = ConfigDict(frozen=True, strict=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Identifier derived from the key prefix (e.g. 'Q2_A_1')",
    )

    score: Decimal | None = Field(
        default=None,
        description="Numeric score, unset when absent or not a number",
    )

    verdict: str | None = Field(
        default=None,
        description="Verdict text with one layer of quotes removed",
    )

    justification: str | None = Field(
        default=None,
        description="Free-text justification for the score",
    )

    raw: ReadOnlyStrMap = Field(
        default_factory=dict,
        validate_default=True,
        description="Every original key and its value that contributed to this entry",
    )

    @property
    def is_total(self) -> bool:
        """Ids without an underscore are totals for their group."""
        return "_" not in self.id

    @property
    def is_sub_item(self) -> bool:
        return "_" in self.id


class ParsedRubric(BaseModel):
    """
    Output of line ingestion and entry assembly.

    Keeps the entry list together with the per-key ledger of original
    (pre-quote-stripped) values that some diagnostics need.
    """

    model_config = ConfigDict(frozen=True, strict=True)

    entries: tuple[RubricEntry, ...] = Field(
        default=(),
        description="Entries sorted by id",
    )

    raw_values: ReadOnlyStrMap = Field(
        default_factory=dict,
        validate_default=True,
        description="Most recent original value per exact key, in first-seen order",
    )

    duplicate_keys: tuple[str, ...] = Field(
        default=(),
        description="Keys seen again after their first occurrence, in order of re-occurrence",
    )


# ==============================================================================
# Diagnostic Models
# ==============================================================================


class TotalMismatch(BaseModel):
    """A total whose reported score differs from the sum of its sub-items."""

    model_config = ConfigDict(frozen=True, strict=True)

    id: str
    reported: Decimal
    expected: Decimal


class CasingIssue(BaseModel):
    """A justification that spells a known term with the wrong casing."""

    model_config = ConfigDict(frozen=True, strict=True)

    id: str
    type: CasingConvention
    snippet: str = Field(..., description="Leading characters of the justification")


class MissingComponents(BaseModel):
    """The typed fields an entry lacks."""

    model_config = ConfigDict(frozen=True, strict=True)

    id: str
    missing: tuple[FieldRole, ...] = Field(..., min_length=1)


class SkippedIndices(BaseModel):
    """Gaps in a numbered sequence such as `Q2_A_1`, `Q2_A_3`."""

    model_config = ConfigDict(frozen=True, strict=True)

    group: str = Field(..., description="Shared prefix including the trailing underscore")
    missing: tuple[int, ...] = Field(..., min_length=1)


class VerdictConsistencyIssue(BaseModel):
    """A total whose verdict contradicts the verdicts of sub-items."""

    model_config = ConfigDict(frozen=True, strict=True)

    id: str
    message: str


class ExtraQuoteVerdict(BaseModel):
    """A verdict written with doubled quotes, e.g. `""ACCEPTED""`."""

    model_config = ConfigDict(frozen=True, strict=True)

    id: str
    raw: str = Field(..., description="The untouched value as it appeared in the input")


class RubricReport(BaseModel):
    """
    Complete audit of a rubric document.

    Holds the parsed entries and every diagnostic derived from them.
    Diagnostics are independent: an entry may appear in several of them.
    """

    model_config = ConfigDict(frozen=True, strict=True)

    entries: tuple[RubricEntry, ...] = ()

    total_score: Decimal = Field(
        default=Decimal(0),
        description="Sum of every entry's score, reported totals included",
    )

    expected_total: Decimal = Field(
        default=Decimal(0),
        description="Sum of sub-item scores only; the authoritative total",
    )

    wrong_verdicts: int = Field(default=0, ge=0)
    invalid_verdicts: tuple[RubricEntry, ...] = ()
    missing_justifications: tuple[RubricEntry, ...] = ()
    total_mismatches: tuple[TotalMismatch, ...] = ()
    casing_issues: tuple[CasingIssue, ...] = ()
    missing_components: tuple[MissingComponents, ...] = ()
    duplicate_keys: tuple[str, ...] = ()
    skipped_indices: tuple[SkippedIndices, ...] = ()
    zero_score_accepted: tuple[RubricEntry, ...] = ()
    verdict_consistency: tuple[VerdictConsistencyIssue, ...] = ()
    extra_quote_verdicts: tuple[ExtraQuoteVerdict, ...] = ()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def entry_count(self) -> int:
        """Return the number of parsed entries."""
        return len(self.entries)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def issue_count(self) -> int:
        """Count findings across every list-valued diagnostic."""
        return sum(
            len(findings)
            for findings in (
                self.invalid_verdicts,
                self.missing_justifications,
                self.total_mismatches,
                self.casing_issues,
                self.missing_components,
                self.duplicate_keys,
                self.skipped_indices,
                self.zero_score_accepted,
                self.verdict_consistency,
                self.extra_quote_verdicts,
            )
        )

    @property
    def has_issues(self) -> bool:
        return self.issue_count > 0

    def justification_items(self) -> list[tuple[str, str]]:
        """
        Return `(id, text)` pairs for entries with a justification.

        This is exactly what the grammar checker consumes.
        """
        return [(e.id, e.justification) for e in self.entries if e.justification]


# ==============================================================================
# Grammar Check Models
# ==============================================================================


class GrammarIssue(BaseModel):
    """A single LanguageTool match inside a justification."""

    model_config = ConfigDict(frozen=True, strict=True)

    message: str = Field(..., description="Human-readable explanation")
    short_message: str | None = Field(default=None)
    replacements: tuple[str, ...] = Field(default=(), description="Suggested replacements")
    context: str = Field(default="", description="Text surrounding the issue")
    offset: int = Field(default=0, ge=0, description="Character offset into the checked text")
    length: int = Field(default=0, ge=0, description="Length of the flagged span")
    rule_id: str | None = Field(default=None)


class GrammarResult(BaseModel):
    """Grammar issues for one rubric entry."""

    model_config = ConfigDict(frozen=True, strict=True)

    id: str
    issues: tuple[GrammarIssue, ...] = ()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def issue_count(self) -> int:
        return len(self.issues)


# ==============================================================================
# Document Extraction Models
# ==============================================================================


class ExtractedDocument(BaseModel):
    """
    Result of reading rubric text from a file or stream.

    Contains the extracted text and metadata about the source.
    """

    model_config = ConfigDict(frozen=True, strict=True)

    content: str = Field(
        ...,
        description="Extracted text content",
    )

    source_path: str = Field(
        ...,
        description="Path to the source document, or '<stdin>'",
    )

    file_extension: str = Field(
        default="",
        description="File extension of the source document",
    )

    extraction_timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the extraction was performed",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def character_count(self) -> int:
        """Number of characters in extracted content."""
        return len(self.content)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_empty(self) -> bool:
        """Check if extracted content is empty or whitespace-only."""
        return len(self.content.strip()) == 0
