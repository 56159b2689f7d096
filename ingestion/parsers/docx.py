"""
Microsoft Word (.docx) parser.

Extracts paragraph and table text from Word documents using the
python-docx library.

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3
"""

import io
import zipfile
from typing import List

from docx import Document
from docx.opc.exceptions import PackageNotFoundError

from forge_engine.errors import CorruptedFileError

from .base import BaseParser
from ..types import ParsedContent


NO_TEXT_PLACEHOLDER = "[DOCX contains no extractable text]"


class DocxParser(BaseParser):
    """Parse Microsoft Word .docx uploads."""

    def get_mime_types(self) -> List[str]:
        return ["application/vnd.openxmlformats-officedocument.wordprocessingml.document"]

    def get_file_type(self) -> str:
        return "docx"

    def parse(self, data: bytes) -> ParsedContent:
        """
        Parse DOCX bytes and extract body and table text.

        Args:
            data: Raw .docx bytes

        Returns:
            ParsedContent with text and document properties
        """
        try:
            doc = Document(io.BytesIO(data))
        except (PackageNotFoundError, zipfile.BadZipFile, KeyError) as e:
            raise CorruptedFileError(f"Unreadable DOCX: {e}") from e

        parts = [para.text.strip() for para in doc.paragraphs if para.text.strip()]
        table_cells = self._extract_tables(doc)
        parts.extend(table_cells)

        props = doc.core_properties
        return ParsedContent(
            text=" ".join(parts) if parts else NO_TEXT_PLACEHOLDER,
            title=props.title or None,
            metadata={
                "format": "docx",
                "paragraph_count": len(doc.paragraphs),
                "table_count": len(doc.tables),
                "author": props.author or None,
            },
        )

    def _extract_tables(self, doc) -> List[str]:
        """Text of every non-empty table cell, row by row."""
        cells = []
        for table in doc.tables:
            for row in table.rows:
                for cell in row.cells:
                    text = cell.text.strip()
                    if text:
                        cells.append(text)
        return cells


__all__ = ["DocxParser", "NO_TEXT_PLACEHOLDER"]
