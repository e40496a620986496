"""
Plain text rubric extractor.

Handles .txt, .md and .rubric files with encoding fallback.
"""

from pathlib import Path
from typing import ClassVar

from rubric_checker.extractors.base import DocumentExtractor, ExtractionError
from rubric_checker.models import ExtractedDocument


class TextExtractor(DocumentExtractor):
    """
    Reads rubric text from plain text files.

    Tries UTF-8 first and falls back to legacy encodings; a UTF-8 BOM is
    dropped so it can't end up glued to the first key.
    """

    SUPPORTED_EXTENSIONS: ClassVar[tuple[str, ...]] = (".txt", ".md", ".rubric")

    # Encodings to try in order of preference
    ENCODINGS: ClassVar[tuple[str, ...]] = ("utf-8-sig", "cp1252", "latin-1")

    def extract(self, file_path: Path) -> ExtractedDocument:
        """
        Extract text from a plain text file.

        Raises:
            ExtractionError: If the file cannot be read.
        """
        self._validate_file(file_path)
        return self._create_result(self._read_with_encoding_fallback(file_path), file_path)

    def _read_with_encoding_fallback(self, file_path: Path) -> str:
        """
        Read file content, trying each encoding until one succeeds.

        Raises:
            ExtractionError: If no encoding works or the file can't be opened.
        """
        last_error: Exception | None = None

        for encoding in self.ENCODINGS:
            try:
                # Newlines are left as-is so files split into lines like any other input
                with file_path.open(encoding=encoding, newline="") as f:
                    return f.read()
            except UnicodeDecodeError as e:
                last_error = e
                continue
            except OSError as e:
                raise ExtractionError(f"Could not read file: {e}", file_path, cause=e) from e

        raise ExtractionError(
            f"Could not decode file with any supported encoding: {self.ENCODINGS}",
            file_path,
            cause=last_error,
        )
