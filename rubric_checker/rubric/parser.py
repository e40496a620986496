"""
Rubric parser module.

Turns raw rubric text made of `key: value` lines into a ParsedRubric.
Parsing never fails: lines that don't look like `key: value` are dropped,
non-numeric scores are left unset, and unknown roles survive only in the
entry's raw mapping.
"""

import logging
import re
from typing import Any

from rubric_checker.models import FieldRole, ParsedRubric, RubricEntry
from rubric_checker.rubric.fields import parse_score, split_key, strip_quotes

logger = logging.getLogger(__name__)


class RubricParser:
    """
    Parses rubric text into entries keyed by id.

    Expected format, one field per line:

        Q2_A_1_score: 0
        Q2_A_1_verdict: "WRONG_ANSWER"
        Q2_A_1_justification: No figure was drawn.
        # comments and blank lines are skipped

    Two mappings are maintained while reading: one keyed by exact key
    (duplicate detection and the raw-value ledger) and one keyed by entry
    id (typed entry assembly). Later lines overwrite earlier ones.
    """

    LINE_BREAK_PATTERN = re.compile(r"\r?\n")

    # Everything up to the first colon is the key
    LINE_PATTERN = re.compile(r"^([^:]+):\s*(.+)$")

    def parse(self, content: str) -> ParsedRubric:
        """
        Parse rubric content into a ParsedRubric.

        Args:
            content: Raw text content of the rubric.

        Returns:
            ParsedRubric with entries sorted by id.
        """
        drafts: dict[str, dict[str, Any]] = {}
        raw_values: dict[str, str] = {}
        duplicate_keys: list[str] = []
        dropped = 0

        for line_num, line in enumerate(self.LINE_BREAK_PATTERN.split(content), start=1):
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue

            match = self.LINE_PATTERN.match(stripped)
            if not match:
                dropped += 1
                logger.debug("Line %d dropped, not a key/value pair: %.60r", line_num, stripped)
                continue

            key = match.group(1).strip()
            original_value = match.group(2).strip()

            if key in raw_values:
                duplicate_keys.append(key)
                logger.debug("Line %d repeats key %r", line_num, key)
            raw_values[key] = original_value

            self._assign(drafts, key, strip_quotes(original_value))

        entries = tuple(RubricEntry(**drafts[entry_id]) for entry_id in sorted(drafts))

        logger.debug(
            "Parsed %d entries from %d keys (%d duplicates, %d lines dropped)",
            len(entries),
            len(raw_values),
            len(duplicate_keys),
            dropped,
        )

        return ParsedRubric(
            entries=entries,
            raw_values=raw_values,
            duplicate_keys=tuple(duplicate_keys),
        )

    def _assign(self, drafts: dict[str, dict[str, Any]], key: str, value: str) -> None:
        """Fold one key/value pair into the draft for its entry id."""
        entry_id, role = split_key(key)
        draft = drafts.setdefault(entry_id, {"id": entry_id, "raw": {}})

        if role is FieldRole.SCORE:
            score = parse_score(value)
            if score is not None:
                draft["score"] = score
        elif role is FieldRole.VERDICT:
            draft["verdict"] = value
        elif role is FieldRole.JUSTIFICATION:
            draft["justification"] = value

        draft["raw"][key] = value
