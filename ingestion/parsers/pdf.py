"""
PDF parser using pypdf.
"""

import io
import re
from typing import List

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from forge_engine.errors import CorruptedFileError

from .base import BaseParser
from ..types import ParsedContent


NO_TEXT_PLACEHOLDER = "[PDF contains no extractable text]"


class PDFParser(BaseParser):
    """Parse PDF uploads."""

    def get_mime_types(self) -> List[str]:
        return ["application/pdf"]

    def get_file_type(self) -> str:
        return "pdf"

    def parse(self, data: bytes) -> ParsedContent:
        """
        Extract text and metadata from PDF.

        Pages that fail to extract are skipped and counted; a document
        with no text at all yields a placeholder string.
        """
        try:
            reader = PdfReader(io.BytesIO(data))
        except (PdfReadError, ValueError) as e:
            raise CorruptedFileError(f"Unreadable PDF: {e}") from e

        pages: List[str] = []
        failed_pages = 0
        for page in reader.pages:
            try:
                text = page.extract_text() or ""
            except Exception:
                failed_pages += 1
                continue
            text = self._clean_pdf_text(text)
            if text:
                pages.append(text)

        metadata = {
            "format": "pdf",
            "page_count": len(reader.pages),
            "failed_pages": failed_pages,
        }
        title = None
        if reader.metadata:
            title = reader.metadata.get("/Title")
            metadata["author"] = reader.metadata.get("/Author")

        return ParsedContent(
            text="\n\n".join(pages) if pages else NO_TEXT_PLACEHOLDER,
            metadata=metadata,
            title=str(title) if title else None,
        )

    def _clean_pdf_text(self, text: str) -> str:
        """Clean common PDF extraction artifacts."""
        # Fix hyphenation at line breaks
        text = re.sub(r'-\n(\w)', r'\1', text)

        # Normalize whitespace
        text = re.sub(r'[ \t]+', ' ', text)

        # Fix multiple newlines
        text = re.sub(r'\n{3,}', '\n\n', text)

        return text.strip()


__all__ = ["PDFParser", "NO_TEXT_PLACEHOLDER"]
