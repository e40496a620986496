"""
Base classes for rubric document extraction.

Defines the interface every extractor implements so rubric text can be
read the same way from plain text and Word files.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import ClassVar

from rubric_checker.models import ExtractedDocument

DEFAULT_MAX_FILE_SIZE_MB = 10.0


class ExtractionError(Exception):
    """
    Raised when a rubric file cannot be read.

    Contains detailed information about the failure cause.
    """

    def __init__(self, message: str, file_path: str | Path, cause: Exception | None = None):
        self.file_path = str(file_path)
        self.cause = cause
        super().__init__(f"Failed to extract '{file_path}': {message}")


class DocumentExtractor(ABC):
    """
    Abstract base class for document extractors.

    Subclasses implement `extract` and declare the file extensions they
    handle via `SUPPORTED_EXTENSIONS`. An empty document is not an error:
    it simply parses to an empty rubric.
    """

    SUPPORTED_EXTENSIONS: ClassVar[tuple[str, ...]] = ()

    def __init__(self, max_file_size_mb: float = DEFAULT_MAX_FILE_SIZE_MB):
        self.max_file_size_mb = max_file_size_mb

    @classmethod
    def supports(cls, file_path: Path) -> bool:
        """Check if this extractor handles the file's extension."""
        return file_path.suffix.lower() in cls.SUPPORTED_EXTENSIONS

    @abstractmethod
    def extract(self, file_path: Path) -> ExtractedDocument:
        """
        Extract rubric text from the document.

        Args:
            file_path: Path to the document file.

        Returns:
            ExtractedDocument containing the text content and metadata.

        Raises:
            ExtractionError: If extraction fails for any reason.
        """
        ...

    def _validate_file(self, file_path: Path) -> None:
        """
        Validate that the file exists, is supported and isn't too large.

        Raises:
            ExtractionError: If any of those checks fail.
        """
        if not file_path.exists():
            raise ExtractionError("File does not exist", file_path)

        if not file_path.is_file():
            raise ExtractionError("Path is not a file", file_path)

        if not self.supports(file_path):
            raise ExtractionError(
                f"Unsupported file format. Expected one of: {self.SUPPORTED_EXTENSIONS}",
                file_path,
            )

        size_mb = file_path.stat().st_size / (1024 * 1024)
        if size_mb > self.max_file_size_mb:
            raise ExtractionError(
                f"File is {size_mb:.1f} MB, larger than the {self.max_file_size_mb} MB limit",
                file_path,
            )

    def _create_result(self, content: str, file_path: Path) -> ExtractedDocument:
        """Wrap extracted content in an ExtractedDocument."""
        return ExtractedDocument(
            content=content,
            source_path=str(file_path.resolve()),
            file_extension=file_path.suffix.lower(),
        )
