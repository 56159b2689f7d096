"""
Ingestion type definitions.

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any


@dataclass
class ParsedContent:
    """Result from a parser."""
    text: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    encoding: str = "utf-8"
    title: Optional[str] = None


@dataclass
class TextStats:
    """Word/character counts and a rough language guess for extracted text."""
    word_count: int
    character_count: int
    encoding: str = "UTF-8"
    language: str = "unknown"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wordCount": self.word_count,
            "characterCount": self.character_count,
            "encoding": self.encoding,
            "language": self.language,
        }


__all__ = [
    "ParsedContent",
    "TextStats",
]
