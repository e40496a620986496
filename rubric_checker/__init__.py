"""
Rubric Checker - parse and audit key/value grading rubrics.

Turns plain-text rubrics (`Q2_A_1_score: 3` style lines) into ordered
entries and a battery of consistency checks: verdict validity, score
totals, casing conventions, missing fields, duplicate keys, numbering
gaps and quoting mistakes.
"""

__version__ = "1.0.0"
__author__ = "Rubric Checker Team"

from rubric_checker.rubric import parse_rubric

__all__ = ["parse_rubric"]
