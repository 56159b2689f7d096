"""
RTF parser.

Strips control words and groups; no formatting survives.
"""

import re
from typing import List

from .base import BaseParser, decode_bytes, normalise_whitespace
from ..types import ParsedContent


CONTROL_WORD = re.compile(r'\\[a-z]+-?\d*\s?')
GROUP_BRACE = re.compile(r'[{}]')


class RTFParser(BaseParser):
    """Parse Rich Text Format uploads."""

    def get_mime_types(self) -> List[str]:
        return ["application/rtf", "text/rtf"]

    def get_file_type(self) -> str:
        return "rtf"

    def parse(self, data: bytes) -> ParsedContent:
        content, encoding = decode_bytes(data)
        text = CONTROL_WORD.sub(' ', content)
        text = GROUP_BRACE.sub('', text)
        return ParsedContent(
            text=normalise_whitespace(text),
            encoding=encoding,
            metadata={"format": "rtf"},
        )


__all__ = ["RTFParser"]
