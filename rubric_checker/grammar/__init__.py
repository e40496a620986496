"""
Grammar Check Module.

Sends rubric justifications to LanguageTool and collects the issues
found, keyed by entry id.
"""

from rubric_checker.grammar.checker import GrammarChecker, issues_by_id
from rubric_checker.grammar.client import GrammarCheckError, LanguageToolClient

__all__ = [
    "GrammarCheckError",
    "GrammarChecker",
    "LanguageToolClient",
    "issues_by_id",
]
