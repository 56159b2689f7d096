"""
Upload parsers for the supported file formats.

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3
"""

from .base import (
    BaseParser,
    decode_bytes,
    get_parser,
    get_all_parsers,
    get_supported_mime_types,
)
from .plaintext import PlaintextParser
from .markdown import MarkdownParser
from .json_export import JSONParser
from .csv_parser import CSVParser
from .pdf import PDFParser
from .docx import DocxParser
from .excel import ExcelParser
from .rtf import RTFParser
from .xml_parser import XMLParser

__all__ = [
    "BaseParser",
    "decode_bytes",
    "get_parser",
    "get_all_parsers",
    "get_supported_mime_types",
    "PlaintextParser",
    "MarkdownParser",
    "JSONParser",
    "CSVParser",
    "PDFParser",
    "DocxParser",
    "ExcelParser",
    "RTFParser",
    "XMLParser",
]
