"""
Text Extraction Service v1.0

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3 - See LICENSE in repository root

Turns uploaded file bytes into plain text for effect generation.
"""

import logging
import re
from typing import Optional

from forge_engine.errors import (
    CorruptedFileError,
    EmptyFileError,
    ForgeError,
    UnsupportedFileTypeError,
)

from .types import ParsedContent, TextStats
from .parsers import get_parser, get_supported_mime_types

logger = logging.getLogger(__name__)


# Small function-word lists for a rough language guess
ENGLISH_WORDS = frozenset(["the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by"])
FRENCH_WORDS = frozenset(["le", "la", "les", "et", "ou", "mais", "dans", "sur", "à", "pour", "de", "avec"])
LANGUAGE_SAMPLE_WORDS = 100


def parse_upload(file_bytes: bytes, mime_type: str) -> ParsedContent:
    """
    Parse an upload with the parser registered for its MIME type.

    Raises:
        EmptyFileError: No bytes
        UnsupportedFileTypeError: No parser for the MIME type
        CorruptedFileError: The parser could not read the content
    """
    if not file_bytes:
        raise EmptyFileError()

    parser = get_parser(mime_type)
    if parser is None:
        raise UnsupportedFileTypeError(mime_type, get_supported_mime_types())

    try:
        parsed = parser.parse(file_bytes)
    except ForgeError:
        raise
    except Exception as e:
        raise CorruptedFileError(str(e)) from e

    logger.debug(
        f"Parsed {parser.get_file_type()} upload: {len(parsed.text)} chars"
    )
    return parsed


def extract_text(file_bytes: bytes, mime_type: str) -> str:
    """Plain text of an upload."""
    return parse_upload(file_bytes, mime_type).text


def detect_language(content: str) -> str:
    """Guess 'en', 'fr' or 'unknown' from the first hundred words."""
    words = content.lower().split()[:LANGUAGE_SAMPLE_WORDS]
    english = sum(1 for word in words if word in ENGLISH_WORDS)
    french = sum(1 for word in words if word in FRENCH_WORDS)
    if english > french:
        return "en"
    if french > english:
        return "fr"
    return "unknown"


def describe_text(content: Optional[str], encoding: str = "UTF-8") -> TextStats:
    """Word count, character count and language guess for extracted text."""
    content = content or ""
    return TextStats(
        word_count=len([w for w in re.split(r'\s+', content) if w]),
        character_count=len(content),
        encoding=encoding,
        language=detect_language(content),
    )


__all__ = [
    "parse_upload",
    "extract_text",
    "describe_text",
    "detect_language",
]
