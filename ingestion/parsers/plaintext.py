"""
Plain text parser.
"""

import re
from typing import List

from .base import BaseParser, decode_bytes
from ..types import ParsedContent


class PlaintextParser(BaseParser):
    """Parse plain text uploads."""

    def get_mime_types(self) -> List[str]:
        return ["text/plain"]

    def get_file_type(self) -> str:
        return "text"

    def parse(self, data: bytes) -> ParsedContent:
        """
        Decode and clean plain text.

        Line endings are normalised, then all whitespace collapses to
        single spaces.
        """
        content, encoding = decode_bytes(data)
        return ParsedContent(
            text=self._clean_text(content),
            encoding=encoding,
            metadata={"format": "text"},
        )

    def _clean_text(self, text: str) -> str:
        text = text.replace("\r\n", "\n").replace("\r", "\n")
        text = re.sub(r'\n{3,}', '\n\n', text)
        text = text.replace("\t", " ")
        return re.sub(r'\s+', ' ', text).strip()
