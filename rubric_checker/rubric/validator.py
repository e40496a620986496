"""
Rubric validation module.

Derives consistency diagnostics from a parsed rubric. Each check is a pure
function over the entry list (and, where needed, the raw per-key values)
so it can be tested on its own. None of them raise: a finding is data,
not an error.
"""

import logging
import re
from decimal import Decimal, localcontext
from typing import Iterable, Mapping, Sequence

from rubric_checker.config import VerdictScope
from rubric_checker.models import (
    CasingConvention,
    CasingIssue,
    ExtraQuoteVerdict,
    FieldRole,
    MissingComponents,
    ParsedRubric,
    RubricEntry,
    RubricReport,
    SkippedIndices,
    TotalMismatch,
    VerdictConsistencyIssue,
)
from rubric_checker.rubric.fields import (
    MAX_SCORE_EXPONENT,
    has_extra_quotes,
    numbered_group,
    split_key,
)
from rubric_checker.rubric.parser import RubricParser

logger = logging.getLogger(__name__)

ACCEPTED = "ACCEPTED"
WRONG_ANSWER = "WRONG_ANSWER"
ALLOWED_VERDICTS = frozenset([ACCEPTED, WRONG_ANSWER])

DEFAULT_SNIPPET_LENGTH = 120

# Enough digits to add any accepted scores without rounding
SUM_PRECISION = 2 * MAX_SCORE_EXPONENT + 40

# (pattern matched case-insensitively, required spelling, convention)
CASING_RULES: tuple[tuple[re.Pattern[str], str, CasingConvention], ...] = (
    (re.compile("smiles", re.IGNORECASE), "SMILES", CasingConvention.SMILES),
    (re.compile("python", re.IGNORECASE), "Python", CasingConvention.PYTHON),
)

WRONG_SUB_ITEMS_MESSAGE = "Contains WRONG_ANSWER sub-items but final verdict is ACCEPTED."
ALL_ACCEPTED_MESSAGE = "All sub-items ACCEPTED but final verdict is WRONG."


def _score_or_zero(entry: RubricEntry) -> Decimal:
    return entry.score if entry.score is not None else Decimal(0)


def _verdict_upper(entry: RubricEntry) -> str:
    return (entry.verdict or "").upper()


def _exact_sum(scores: Iterable[Decimal]) -> Decimal:
    """Add scores without rounding, whatever the ambient decimal context."""
    with localcontext() as ctx:
        ctx.prec = SUM_PRECISION
        return sum(scores, Decimal(0))


# ==============================================================================
# Totals
# ==============================================================================


def total_score(entries: Sequence[RubricEntry]) -> Decimal:
    """Sum of every score, self-reported totals included."""
    return _exact_sum(_score_or_zero(e) for e in entries)


def expected_total(entries: Sequence[RubricEntry]) -> Decimal:
    """Sum of sub-item scores only."""
    return _exact_sum(_score_or_zero(e) for e in entries if e.is_sub_item)


def find_total_mismatches(entries: Sequence[RubricEntry]) -> list[TotalMismatch]:
    """
    Compare every scored total against the sum of its own sub-items.

    `Q2` is reconciled against every scored entry whose id starts with `Q2_`.
    """
    mismatches: list[TotalMismatch] = []

    for total in entries:
        if not total.is_total or total.score is None:
            continue
        prefix = f"{total.id}_"
        expected = _exact_sum(
            e.score for e in entries if e.id.startswith(prefix) and e.score is not None
        )
        if total.score != expected:
            mismatches.append(TotalMismatch(id=total.id, reported=total.score, expected=expected))

    return mismatches


# ==============================================================================
# Verdicts
# ==============================================================================


def count_wrong_verdicts(entries: Sequence[RubricEntry]) -> int:
    """Count verdicts containing WRONG, in any casing."""
    return sum(1 for e in entries if "WRONG" in _verdict_upper(e))


def find_invalid_verdicts(entries: Sequence[RubricEntry]) -> list[RubricEntry]:
    """Entries whose verdict is neither ACCEPTED nor WRONG_ANSWER."""
    return [
        e for e in entries if e.verdict and e.verdict.strip().upper() not in ALLOWED_VERDICTS
    ]


def find_zero_score_accepted(entries: Sequence[RubricEntry]) -> list[RubricEntry]:
    """Entries scored exactly 0 yet marked ACCEPTED."""
    return [e for e in entries if e.score == 0 and _verdict_upper(e) == ACCEPTED]


def check_verdict_consistency(
    entries: Sequence[RubricEntry],
    scope: VerdictScope = VerdictScope.DOCUMENT,
) -> list[VerdictConsistencyIssue]:
    """
    Cross-check each total's verdict against sub-item verdicts.

    With VerdictScope.DOCUMENT every sub-item in the document is compared
    against every total, so an unrelated wrong `Q1_*` item flags an
    ACCEPTED `Q3`. VerdictScope.GROUP restricts the comparison to the
    sub-items sharing the total's prefix.
    """
    issues: list[VerdictConsistencyIssue] = []
    sub_items = [e for e in entries if e.is_sub_item]

    for total in entries:
        if not total.is_total or not total.verdict:
            continue

        if scope is VerdictScope.GROUP:
            prefix = f"{total.id}_"
            scoped = [e for e in sub_items if e.id.startswith(prefix)]
        else:
            scoped = sub_items

        verdict = _verdict_upper(total)
        any_wrong = any(_verdict_upper(e) == WRONG_ANSWER for e in scoped)
        all_accepted = bool(scoped) and all(_verdict_upper(e) == ACCEPTED for e in scoped)

        if any_wrong and verdict == ACCEPTED:
            issues.append(VerdictConsistencyIssue(id=total.id, message=WRONG_SUB_ITEMS_MESSAGE))
        if all_accepted and "WRONG" in verdict:
            issues.append(VerdictConsistencyIssue(id=total.id, message=ALL_ACCEPTED_MESSAGE))

    return issues


def find_extra_quote_verdicts(raw_values: Mapping[str, str]) -> list[ExtraQuoteVerdict]:
    """Verdicts whose original text starts or ends with `""`."""
    return [
        ExtraQuoteVerdict(id=split_key(key)[0], raw=raw)
        for key, raw in raw_values.items()
        if key.endswith("_verdict") and has_extra_quotes(raw)
    ]


# ==============================================================================
# Completeness
# ==============================================================================


def find_missing_justifications(entries: Sequence[RubricEntry]) -> list[RubricEntry]:
    """Entries with no justification or a blank one."""
    return [e for e in entries if not (e.justification and e.justification.strip())]


def find_missing_components(entries: Sequence[RubricEntry]) -> list[MissingComponents]:
    """Report, per entry, which of score/verdict/justification are absent."""
    records: list[MissingComponents] = []

    for e in entries:
        missing: list[FieldRole] = []
        if e.score is None:
            missing.append(FieldRole.SCORE)
        if not e.verdict:
            missing.append(FieldRole.VERDICT)
        if not e.justification:
            missing.append(FieldRole.JUSTIFICATION)
        if missing:
            records.append(MissingComponents(id=e.id, missing=tuple(missing)))

    return records


def find_skipped_indices(entries: Sequence[RubricEntry]) -> list[SkippedIndices]:
    """
    Report gaps in numbered sequences.

    `G_1` and `G_3` without `G_2` yield `SkippedIndices(group="G_", missing=(2,))`.
    """
    groups: dict[str, set[int]] = {}
    for e in entries:
        numbered = numbered_group(e.id)
        if numbered is None:
            continue
        group, index = numbered
        groups.setdefault(group, set()).add(index)

    records: list[SkippedIndices] = []
    for group, indices in groups.items():
        missing = tuple(i for i in range(min(indices), max(indices) + 1) if i not in indices)
        if missing:
            records.append(SkippedIndices(group=group, missing=missing))

    return records


# ==============================================================================
# Style
# ==============================================================================


def find_casing_issues(
    entries: Sequence[RubricEntry],
    snippet_length: int = DEFAULT_SNIPPET_LENGTH,
) -> list[CasingIssue]:
    """
    Flag justifications mentioning SMILES or Python with the wrong casing.

    A justification is only flagged when the correct spelling appears nowhere
    in it.
    """
    issues: list[CasingIssue] = []

    for e in entries:
        if not e.justification:
            continue
        text = e.justification
        for pattern, spelling, convention in CASING_RULES:
            if pattern.search(text) and spelling not in text:
                issues.append(CasingIssue(id=e.id, type=convention, snippet=text[:snippet_length]))

    return issues


# ==============================================================================
# Orchestrator
# ==============================================================================


class RubricValidator:
    """
    Runs every diagnostic over a parsed rubric.

    Checks are independent and never short-circuit; a single entry can
    show up in several of them.
    """

    def __init__(
        self,
        verdict_scope: VerdictScope = VerdictScope.DOCUMENT,
        snippet_length: int = DEFAULT_SNIPPET_LENGTH,
    ):
        self.verdict_scope = verdict_scope
        self.snippet_length = snippet_length

    def validate(self, parsed: ParsedRubric) -> RubricReport:
        """
        Derive the full diagnostic report from a parsed rubric.

        Args:
            parsed: Output of RubricParser.parse.

        Returns:
            RubricReport holding the entries and all findings.
        """
        entries = parsed.entries

        report = RubricReport(
            entries=entries,
            total_score=total_score(entries),
            expected_total=expected_total(entries),
            wrong_verdicts=count_wrong_verdicts(entries),
            invalid_verdicts=tuple(find_invalid_verdicts(entries)),
            missing_justifications=tuple(find_missing_justifications(entries)),
            total_mismatches=tuple(find_total_mismatches(entries)),
            casing_issues=tuple(find_casing_issues(entries, self.snippet_length)),
            missing_components=tuple(find_missing_components(entries)),
            duplicate_keys=parsed.duplicate_keys,
            skipped_indices=tuple(find_skipped_indices(entries)),
            zero_score_accepted=tuple(find_zero_score_accepted(entries)),
            verdict_consistency=tuple(check_verdict_consistency(entries, self.verdict_scope)),
            extra_quote_verdicts=tuple(find_extra_quote_verdicts(parsed.raw_values)),
        )

        logger.debug("Audited %d entries, %d findings", report.entry_count, report.issue_count)
        return report


def parse_rubric(
    content: str,
    verdict_scope: VerdictScope = VerdictScope.DOCUMENT,
    snippet_length: int = DEFAULT_SNIPPET_LENGTH,
) -> RubricReport:
    """
    Parse rubric text and audit it in one step.

    This is the single entry point for callers: text in, report out. It
    never raises for string input; empty text yields an empty report.
    """
    parsed = RubricParser().parse(content)
    return RubricValidator(verdict_scope, snippet_length).validate(parsed)
