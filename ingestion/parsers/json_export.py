"""
JSON parser.

Walks the decoded document and keeps the human-readable strings.
"""

import json
from typing import Any, List

from forge_engine.errors import CorruptedFileError

from .base import BaseParser, decode_bytes
from ..types import ParsedContent


MAX_DEPTH = 10


def extract_text_from_object(obj: Any, depth: int = 0) -> str:
    """
    Collect text from a decoded JSON value.

    Top-level and array scalars are kept as-is; object members are kept
    when they are strings longer than two characters. Nesting deeper
    than MAX_DEPTH contributes nothing.
    """
    if depth > MAX_DEPTH:
        return ""
    if isinstance(obj, str):
        return obj
    if isinstance(obj, bool):
        return "true" if obj else "false"
    if isinstance(obj, (int, float)):
        return str(obj)
    if isinstance(obj, list):
        return " ".join(extract_text_from_object(item, depth + 1) for item in obj)
    if isinstance(obj, dict):
        texts = []
        for value in obj.values():
            if isinstance(value, str):
                if len(value) > 2:
                    texts.append(value)
            elif isinstance(value, (dict, list)):
                nested = extract_text_from_object(value, depth + 1)
                if nested:
                    texts.append(nested)
        return " ".join(texts)
    return ""


class JSONParser(BaseParser):
    """Parse JSON uploads."""

    def get_mime_types(self) -> List[str]:
        return ["application/json"]

    def get_file_type(self) -> str:
        return "json"

    def parse(self, data: bytes) -> ParsedContent:
        content, encoding = decode_bytes(data)
        try:
            decoded = json.loads(content)
        except json.JSONDecodeError as e:
            raise CorruptedFileError(f"Invalid JSON format: {e}") from e

        return ParsedContent(
            text=extract_text_from_object(decoded),
            encoding=encoding,
            metadata={"format": "json", "root_type": type(decoded).__name__},
        )


__all__ = ["JSONParser", "extract_text_from_object"]
