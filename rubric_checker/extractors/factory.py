"""
Extractor factory module.

Selects the extractor for a file by extension, and reads rubric text from
stdin when the path is `-`.
"""

import sys
from pathlib import Path
from typing import TextIO

from rubric_checker.extractors.base import (
    DEFAULT_MAX_FILE_SIZE_MB,
    DocumentExtractor,
    ExtractionError,
)
from rubric_checker.extractors.docx_extractor import DocxExtractor
from rubric_checker.extractors.text_extractor import TextExtractor
from rubric_checker.models import ExtractedDocument

STDIN_PATH = "-"

# Registry of all available extractors
_EXTRACTORS: tuple[type[DocumentExtractor], ...] = (
    DocxExtractor,
    TextExtractor,
)


def get_supported_extensions() -> tuple[str, ...]:
    """Get all supported file extensions across all extractors."""
    extensions: list[str] = []
    for extractor_cls in _EXTRACTORS:
        extensions.extend(extractor_cls.SUPPORTED_EXTENSIONS)
    return tuple(sorted(set(extensions)))


def create_extractor(
    file_path: Path | str,
    max_file_size_mb: float = DEFAULT_MAX_FILE_SIZE_MB,
) -> DocumentExtractor:
    """
    Create the appropriate extractor for a given file.

    Raises:
        ExtractionError: If the file format is not supported.
    """
    path = Path(file_path) if isinstance(file_path, str) else file_path
    extension = path.suffix.lower()

    for extractor_cls in _EXTRACTORS:
        if extension in extractor_cls.SUPPORTED_EXTENSIONS:
            return extractor_cls(max_file_size_mb)

    supported = get_supported_extensions()
    raise ExtractionError(
        f"Unsupported file format '{extension}'. Supported formats: {supported}",
        path,
    )


def extract_document(
    file_path: Path | str,
    max_file_size_mb: float = DEFAULT_MAX_FILE_SIZE_MB,
    stdin: TextIO | None = None,
) -> ExtractedDocument:
    """
    Read rubric text from a file, or from stdin when the path is `-`.

    Raises:
        ExtractionError: If extraction fails.
    """
    if str(file_path) == STDIN_PATH:
        stream = stdin if stdin is not None else sys.stdin
        return ExtractedDocument(content=stream.read(), source_path="<stdin>")

    path = Path(file_path) if isinstance(file_path, str) else file_path
    extractor = create_extractor(path, max_file_size_mb)
    return extractor.extract(path)
