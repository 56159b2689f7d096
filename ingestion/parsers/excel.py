"""
Excel file parser (.xlsx).

Extracts cell text from spreadsheets.

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3
"""

import io
import zipfile
from datetime import datetime
from typing import List

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from forge_engine.errors import CorruptedFileError

from .base import BaseParser
from ..types import ParsedContent


NO_TEXT_PLACEHOLDER = "[XLSX contains no extractable text]"


class ExcelParser(BaseParser):
    """
    Parse Excel spreadsheets (.xlsx).

    Extracts:
    - Non-empty cell values as text
    - Sheet names and row counts
    """

    def get_mime_types(self) -> List[str]:
        return ["application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"]

    def get_file_type(self) -> str:
        return "excel"

    def parse(self, data: bytes) -> ParsedContent:
        """Parse workbook bytes and extract text content."""
        try:
            wb = load_workbook(io.BytesIO(data), data_only=True, read_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError) as e:
            raise CorruptedFileError(f"Unreadable XLSX: {e}") from e

        values = []
        total_rows = 0
        sheet_names = list(wb.sheetnames)

        for sheet_name in sheet_names:
            sheet = wb[sheet_name]
            for row in sheet.iter_rows(values_only=True):
                row_values = []
                for value in row:
                    if value is None:
                        continue
                    if isinstance(value, datetime):
                        value = value.isoformat()
                    text = str(value).strip()
                    if text:
                        row_values.append(text)
                if row_values:
                    total_rows += 1
                    values.extend(row_values)

        wb.close()

        return ParsedContent(
            text=" ".join(values) if values else NO_TEXT_PLACEHOLDER,
            metadata={
                "format": "excel",
                "sheet_count": len(sheet_names),
                "sheet_names": sheet_names,
                "total_rows": total_rows,
            },
        )


__all__ = ["ExcelParser", "NO_TEXT_PLACEHOLDER"]
