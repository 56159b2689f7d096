"""
CSV file parser.

Keeps only cells that look like prose: numbers, dates and short codes
are dropped so the analyzer sees the descriptive columns.

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3
"""

import csv
import re
from typing import List

from forge_engine.errors import CorruptedFileError

from .base import BaseParser, decode_bytes
from ..types import ParsedContent


DATE_PATTERN = re.compile(r'^\d{1,4}[-/]\d{1,2}[-/]\d{1,4}$')
CODE_PATTERN = re.compile(r'^[A-Z0-9_-]+$', re.IGNORECASE)


def is_text_column(value: str) -> bool:
    """True when a cell holds meaningful text."""
    if not value or len(value) < 3:
        return False
    try:
        float(value)
        return False
    except ValueError:
        pass
    if DATE_PATTERN.match(value):
        return False
    if CODE_PATTERN.match(value) and len(value) < 10:
        return False
    return True


class CSVParser(BaseParser):
    """
    Parse CSV uploads.

    Extracts:
    - Text cells, one output line per input row
    - Row counts
    """

    def get_mime_types(self) -> List[str]:
        return ["text/csv"]

    def get_file_type(self) -> str:
        return "csv"

    def parse(self, data: bytes) -> ParsedContent:
        """Parse CSV content and keep the text cells."""
        content, encoding = decode_bytes(data)

        lines = []
        total_rows = 0
        try:
            for row in csv.reader(content.splitlines()):
                total_rows += 1
                cells = [cell.strip() for cell in row]
                line = " ".join(cell for cell in cells if is_text_column(cell))
                if line.strip():
                    lines.append(line)
        except csv.Error as e:
            raise CorruptedFileError(f"Malformed CSV: {e}") from e

        return ParsedContent(
            text="\n".join(lines),
            encoding=encoding,
            metadata={
                "format": "csv",
                "total_rows": total_rows,
                "text_rows": len(lines),
            },
        )


__all__ = ["CSVParser", "is_text_column"]
