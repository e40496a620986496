"""
Rubric Processing Module.

Provides parsing of `key: value` rubric text and the consistency checks
run over the parsed entries.
"""

from rubric_checker.rubric.fields import detect_role, split_key
from rubric_checker.rubric.parser import RubricParser
from rubric_checker.rubric.validator import RubricValidator, parse_rubric

__all__ = [
    "RubricParser",
    "RubricValidator",
    "detect_role",
    "parse_rubric",
    "split_key",
]
