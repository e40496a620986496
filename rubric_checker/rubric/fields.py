"""
Field-role lookup for rubric keys.

A key's last underscore-delimited segment names its role; the rest of
the key is the entry id:

    Q2_A_1_score         -> ("Q2_A_1", FieldRole.SCORE)
    Q2_verdict           -> ("Q2", FieldRole.VERDICT)
    Q2_A_1_comment       -> ("Q2_A_1_comment", FieldRole.OTHER)

Everything that turns a raw key or value into typed data lives here so
the grouping rules can be tested without running any diagnostics.
"""

import re
from decimal import Decimal, InvalidOperation

from rubric_checker.models import FieldRole

_ROLE_BY_SUFFIX: dict[str, FieldRole] = {
    role.value: role for role in (FieldRole.SCORE, FieldRole.VERDICT, FieldRole.JUSTIFICATION)
}

# `<group_prefix>_<integer>`, group prefix keeps its trailing underscore
NUMBERED_ID_PATTERN = re.compile(r"^(.*_)(\d+)$")

# Scores with digits outside 10**-MAX_SCORE_EXPONENT .. 10**MAX_SCORE_EXPONENT
# are rejected so every sum fits an exact decimal context
MAX_SCORE_EXPONENT = 1000

# Indices above 9999 aren't treated as part of a numbered sequence
MAX_INDEX_DIGITS = 4


def detect_role(key: str) -> FieldRole:
    """Return the role named by the key's last underscore segment."""
    return _ROLE_BY_SUFFIX.get(key.split("_")[-1], FieldRole.OTHER)


def split_key(key: str) -> tuple[str, FieldRole]:
    """
    Split a rubric key into its entry id and field role.

    Keys with an unrecognized role keep the whole key as their id. A key
    that is nothing but a role (e.g. `verdict`) also keeps itself as id.
    """
    role = detect_role(key)
    if role is FieldRole.OTHER:
        return key, role
    entry_id = key.rsplit("_", 1)[0] if "_" in key else ""
    return entry_id or key, role


def strip_quotes(value: str) -> str:
    """
    Remove one pair of double quotes wrapping the whole value.

    Doubled quoting such as `""ACCEPTED""` is left untouched so the
    extra-quote check can report it.
    """
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        inner = value[1:-1]
        if inner.startswith('"') or inner.endswith('"'):
            return value
        return inner
    return value


def has_extra_quotes(raw_value: str) -> bool:
    """True when a raw value starts or ends with a doubled double-quote."""
    return raw_value.startswith('""') or raw_value.endswith('""')


def parse_score(value: str) -> Decimal | None:
    """
    Parse a score value, returning None for anything that isn't a finite number.

    Values too large or too finely divided to sum exactly (e.g. `1e1000000`)
    count as non-numeric too.
    """
    text = value.strip()
    # Decimal accepts digit separators; rubric scores never use them
    if not text or "_" in text:
        return None
    try:
        score = Decimal(text)
    except InvalidOperation:
        return None
    if not score.is_finite():
        return None
    if score.adjusted() > MAX_SCORE_EXPONENT or score.as_tuple().exponent < -MAX_SCORE_EXPONENT:
        return None
    return score


def numbered_group(entry_id: str) -> tuple[str, int] | None:
    """
    Return `(group_prefix, index)` for ids like `Q2_A_3`, else None.

    Indices longer than MAX_INDEX_DIGITS (leading zeros aside) return None,
    which bounds the gap scan over a group.
    """
    match = NUMBERED_ID_PATTERN.match(entry_id)
    if not match:
        return None
    digits = match.group(2).lstrip("0") or "0"
    if len(digits) > MAX_INDEX_DIGITS:
        return None
    return match.group(1), int(digits)
