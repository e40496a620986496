"""
Report generation for rubric audits.

Renders a RubricReport, optionally with grammar results, as JSON or
Markdown and saves it to disk.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Sequence

from rubric_checker.models import GrammarResult, RubricEntry, RubricReport


class ReportFormat(str, Enum):
    """Supported report formats."""

    JSON = "json"
    MARKDOWN = "markdown"


_SUFFIX_FORMATS: dict[str, ReportFormat] = {
    ".json": ReportFormat.JSON,
    ".md": ReportFormat.MARKDOWN,
    ".markdown": ReportFormat.MARKDOWN,
}


def _cell(text: str | None, limit: int = 80) -> str:
    """Make text safe for a Markdown table cell."""
    if not text:
        return ""
    flat = " ".join(text.split()).replace("|", "\\|")
    return flat if len(flat) <= limit else flat[: limit - 1] + "…"


class ReportGenerator:
    """Renders rubric reports for humans (Markdown) and tools (JSON)."""

    def generate(
        self,
        report: RubricReport,
        format: ReportFormat = ReportFormat.JSON,
        grammar: Sequence[GrammarResult] | None = None,
    ) -> str:
        """
        Render a report as a string.

        Args:
            report: The rubric audit.
            format: Output format.
            grammar: Grammar results to include, if a check was run.

        Returns:
            The rendered report.
        """
        if format is ReportFormat.MARKDOWN:
            return self._to_markdown(report, grammar)
        return self._to_json(report, grammar)

    def save(
        self,
        report: RubricReport,
        output_path: Path,
        format: ReportFormat | None = None,
        grammar: Sequence[GrammarResult] | None = None,
    ) -> Path:
        """
        Render a report and write it to disk.

        The format is taken from the file suffix when not given explicitly.

        Returns:
            The path written.
        """
        fmt = format or _SUFFIX_FORMATS.get(output_path.suffix.lower(), ReportFormat.JSON)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self.generate(report, fmt, grammar), encoding="utf-8")
        return output_path

    def _to_json(self, report: RubricReport, grammar: Sequence[GrammarResult] | None) -> str:
        payload: dict[str, object] = {"report": report.model_dump(mode="json")}
        if grammar is not None:
            payload["grammar"] = [result.model_dump(mode="json") for result in grammar]
        return json.dumps(payload, indent=2, ensure_ascii=False)

    def _to_markdown(self, report: RubricReport, grammar: Sequence[GrammarResult] | None) -> str:
        lines: list[str] = ["# Rubric Check Report", "", "## Summary", ""]
        lines += [
            "| Metric | Value |",
            "|---|---|",
            f"| Items | {report.entry_count} |",
            f"| Total score (reported) | {report.total_score} |",
            f"| Expected total (sub-items) | {report.expected_total} |",
            f"| Wrong verdicts | {report.wrong_verdicts} |",
            f"| Findings | {report.issue_count} |",
            "",
            "## Entries",
            "",
            "| Id | Score | Verdict | Justification |",
            "|---|---|---|---|",
        ]
        for entry in report.entries:
            score = "" if entry.score is None else str(entry.score)
            lines.append(
                f"| {entry.id} | {score} | {_cell(entry.verdict)} | {_cell(entry.justification)} |"
            )

        lines += ["", "## Findings", ""]
        findings = self.findings(report)
        if findings:
            for check, item_id, detail in findings:
                lines.append(f"- **{check}** `{item_id}`: {detail}")
        else:
            lines.append("No issues found.")

        if grammar is not None:
            lines += ["", "## Grammar", ""]
            flagged = [result for result in grammar if result.issues]
            if not flagged:
                lines.append("No grammar issues found.")
            for result in flagged:
                lines.append(f"### {result.id}")
                lines.append("")
                for issue in result.issues:
                    suggestion = f" (try: {', '.join(issue.replacements[:3])})" if issue.replacements else ""
                    lines.append(f"- {issue.message}{suggestion}: _{_cell(issue.context)}_")
                lines.append("")

        return "\n".join(lines).rstrip() + "\n"

    @staticmethod
    def findings(report: RubricReport) -> list[tuple[str, str, str]]:
        """
        Flatten every diagnostic into `(check, id, detail)` rows.

        Shared by the Markdown report and the CLI table.
        """

        def verdict_of(entry: RubricEntry) -> str:
            return repr(entry.verdict or "")

        rows: list[tuple[str, str, str]] = []
        rows += [
            ("Total mismatch", m.id, f"reported {m.reported}, sub-items sum to {m.expected}")
            for m in report.total_mismatches
        ]
        rows += [("Invalid verdict", e.id, verdict_of(e)) for e in report.invalid_verdicts]
        rows += [("Extra quotes", q.id, q.raw) for q in report.extra_quote_verdicts]
        rows += [("Verdict consistency", v.id, v.message) for v in report.verdict_consistency]
        rows += [
            ("Zero score accepted", e.id, "score is 0 but verdict is ACCEPTED")
            for e in report.zero_score_accepted
        ]
        rows += [
            ("Missing fields", m.id, ", ".join(role.value for role in m.missing))
            for m in report.missing_components
        ]
        rows += [("Missing justification", e.id, "") for e in report.missing_justifications]
        rows += [
            ("Casing", c.id, f"{c.type.value}: {_cell(c.snippet, 60)}") for c in report.casing_issues
        ]
        rows += [("Duplicate key", key, "later value wins") for key in report.duplicate_keys]
        rows += [
            ("Skipped index", s.group, ", ".join(str(i) for i in s.missing))
            for s in report.skipped_indices
        ]
        return rows
