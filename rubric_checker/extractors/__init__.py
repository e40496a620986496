"""
Document Extraction Module.

Reads rubric text from:
- Plain text (.txt, .md, .rubric)
- Word (.docx)
- Standard input ("-")
"""

from rubric_checker.extractors.base import DocumentExtractor, ExtractionError
from rubric_checker.extractors.factory import create_extractor, extract_document

__all__ = [
    "DocumentExtractor",
    "ExtractionError",
    "create_extractor",
    "extract_document",
]
