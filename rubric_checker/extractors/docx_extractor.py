"""
Microsoft Word rubric extractor using python-docx.

Reads rubrics pasted into .docx files. Paragraphs become lines as-is;
two-column table rows become `key: value` lines so rubrics laid out as
tables parse the same way as plain text.
"""

from pathlib import Path
from typing import ClassVar

from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from docx.table import Table

from rubric_checker.extractors.base import DocumentExtractor, ExtractionError
from rubric_checker.models import ExtractedDocument


class DocxExtractor(DocumentExtractor):
    """
    Extracts rubric lines from Word documents (.docx).

    Legacy .doc files must be converted to .docx first.
    """

    SUPPORTED_EXTENSIONS: ClassVar[tuple[str, ...]] = (".docx",)

    def extract(self, file_path: Path) -> ExtractedDocument:
        """
        Extract rubric text from a Word document.

        Raises:
            ExtractionError: If the document cannot be read.
        """
        self._validate_file(file_path)

        try:
            doc = Document(str(file_path))
        except PackageNotFoundError as e:
            raise ExtractionError(
                "File is not a valid .docx document or is corrupted", file_path, cause=e
            ) from e
        except Exception as e:
            raise ExtractionError(f"Unexpected error: {e}", file_path, cause=e) from e

        lines: list[str] = [para.text for para in doc.paragraphs]
        for table in doc.tables:
            lines.extend(self._table_lines(table))

        return self._create_result("\n".join(lines), file_path)

    def _table_lines(self, table: Table) -> list[str]:
        """
        Convert table rows to rubric lines.

        A row of exactly two non-empty cells is read as key and value; any
        other row keeps its cells joined by spaces.
        """
        lines: list[str] = []

        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells]
            filled = [c for c in cells if c]
            if not filled:
                continue
            if len(filled) == 2 and ":" not in filled[0]:
                lines.append(f"{filled[0]}: {filled[1]}")
            else:
                lines.append(" ".join(filled))

        return lines
