"""
EffectForge Ingestion - Upload Text Extraction

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3 - See LICENSE in repository root
"""

from .types import (
    ParsedContent,
    TextStats,
)

from .service import (
    parse_upload,
    extract_text,
    describe_text,
    detect_language,
)

from .parsers import (
    BaseParser,
    decode_bytes,
    get_parser,
    get_all_parsers,
    get_supported_mime_types,
)


__all__ = [
    # Types
    "ParsedContent",
    "TextStats",
    # Extraction
    "parse_upload",
    "extract_text",
    "describe_text",
    "detect_language",
    # Parsers
    "BaseParser",
    "decode_bytes",
    "get_parser",
    "get_all_parsers",
    "get_supported_mime_types",
]
