"""
Base parser interface and factory.

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3

Parsers work on the raw bytes of an upload and are chosen by MIME type.
"""

import codecs
import re
from abc import ABC, abstractmethod
from typing import Optional, List, Tuple

from ..types import ParsedContent


def decode_bytes(data: bytes) -> Tuple[str, str]:
    """
    Decode upload bytes to text.

    A UTF-8 byte order mark is stripped; anything that is not valid
    UTF-8 is read as Latin-1, which never fails.

    Returns:
        (text, encoding name)
    """
    if data.startswith(codecs.BOM_UTF8):
        data = data[len(codecs.BOM_UTF8):]
    try:
        return data.decode("utf-8"), "utf-8"
    except UnicodeDecodeError:
        return data.decode("latin-1"), "latin-1"


def normalise_whitespace(text: str) -> str:
    """Collapse every whitespace run to one space."""
    return re.sub(r'\s+', ' ', text).strip()


class BaseParser(ABC):
    """Abstract base for upload parsers."""

    @abstractmethod
    def get_mime_types(self) -> List[str]:
        """Return the MIME types this parser handles."""
        pass

    @abstractmethod
    def parse(self, data: bytes) -> ParsedContent:
        """Parse the upload and return content."""
        pass

    @abstractmethod
    def get_file_type(self) -> str:
        """Return the file type identifier."""
        pass

    def can_parse(self, mime_type: str) -> bool:
        """Check if this parser can handle the MIME type."""
        return mime_type in self.get_mime_types()


def get_all_parsers() -> List[BaseParser]:
    """Get list of all available parsers."""
    from .plaintext import PlaintextParser
    from .markdown import MarkdownParser
    from .json_export import JSONParser
    from .csv_parser import CSVParser
    from .pdf import PDFParser
    from .docx import DocxParser
    from .excel import ExcelParser
    from .rtf import RTFParser
    from .xml_parser import XMLParser

    return [
        PlaintextParser(),
        MarkdownParser(),
        JSONParser(),
        CSVParser(),
        PDFParser(),
        DocxParser(),
        ExcelParser(),
        RTFParser(),
        XMLParser(),
    ]


def get_parser(mime_type: str) -> Optional[BaseParser]:
    """
    Get appropriate parser for a MIME type.

    Args:
        mime_type: Declared MIME type of the upload

    Returns:
        Parser instance or None if unsupported
    """
    for parser in get_all_parsers():
        if parser.can_parse(mime_type):
            return parser
    return None


def get_supported_mime_types() -> List[str]:
    """Get all supported MIME types."""
    mime_types = set()
    for parser in get_all_parsers():
        mime_types.update(parser.get_mime_types())
    return sorted(mime_types)


__all__ = [
    "BaseParser",
    "decode_bytes",
    "normalise_whitespace",
    "get_parser",
    "get_all_parsers",
    "get_supported_mime_types",
]
