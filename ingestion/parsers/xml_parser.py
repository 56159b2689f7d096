"""
XML parser using lxml.

Text nodes are joined with single spaces. Malformed documents are read
with lxml's recovering parser; if nothing can be recovered the tags are
stripped textually.

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3
"""

import re
from typing import List

from lxml import etree

from .base import BaseParser, decode_bytes, normalise_whitespace
from ..types import ParsedContent


TAG_PATTERN = re.compile(r'<[^>]*>')


class XMLParser(BaseParser):
    """Parse XML uploads."""

    def get_mime_types(self) -> List[str]:
        return ["application/xml", "text/xml"]

    def get_file_type(self) -> str:
        return "xml"

    def parse(self, data: bytes) -> ParsedContent:
        content, encoding = decode_bytes(data)
        # No entity expansion or network access for untrusted uploads
        parser = etree.XMLParser(
            recover=True,
            resolve_entities=False,
            no_network=True,
            huge_tree=False,
        )

        root = None
        try:
            root = etree.fromstring(data, parser=parser)
        except etree.XMLSyntaxError:
            root = None

        if root is not None:
            text = " ".join(root.itertext())
            recovered = len(parser.error_log) > 0
            metadata = {"format": "xml", "root_tag": root.tag, "recovered": recovered}
        else:
            text = TAG_PATTERN.sub(' ', content)
            metadata = {"format": "xml", "root_tag": None, "recovered": True}

        return ParsedContent(
            text=normalise_whitespace(text),
            encoding=encoding,
            metadata=metadata,
        )


__all__ = ["XMLParser"]
