"""
Markdown parser with YAML frontmatter extraction.
"""

import re
from typing import Dict, Any, List, Optional, Tuple

import yaml

from .base import BaseParser, decode_bytes
from ..types import ParsedContent


class MarkdownParser(BaseParser):
    """Parse Markdown uploads, stripping syntax but keeping line structure."""

    FRONTMATTER_PATTERN = re.compile(
        r'^---\s*\n(.*?)\n---\s*\n',
        re.DOTALL
    )

    # Applied in order
    SYNTAX_RULES = [
        (re.compile(r'^#{1,6}\s+', re.MULTILINE), ''),       # headings
        (re.compile(r'\*\*(.*?)\*\*'), r'\1'),               # bold
        (re.compile(r'\*(.*?)\*'), r'\1'),                   # italic
        (re.compile(r'\[(.*?)\]\(.*?\)'), r'\1'),            # links keep text
        (re.compile(r'`{1,3}[^`]*`{1,3}'), ''),              # code
        (re.compile(r'^\s*[-*+]\s+', re.MULTILINE), ''),     # list markers
    ]

    def get_mime_types(self) -> List[str]:
        return ["text/markdown"]

    def get_file_type(self) -> str:
        return "markdown"

    def parse(self, data: bytes) -> ParsedContent:
        """
        Extract body text and frontmatter from markdown.
        """
        content, encoding = decode_bytes(data)
        frontmatter, body = self._extract_frontmatter(content)

        for pattern, replacement in self.SYNTAX_RULES:
            body = pattern.sub(replacement, body)

        metadata = frontmatter.copy() if frontmatter else {}
        metadata["format"] = "markdown"
        title = frontmatter.get("title") if frontmatter else None

        return ParsedContent(
            text=body.strip(),
            metadata=metadata,
            encoding=encoding,
            title=str(title) if title else None,
        )

    def _extract_frontmatter(self, content: str) -> Tuple[Optional[Dict[str, Any]], str]:
        """
        Extract YAML frontmatter from content.

        Returns:
            Tuple of (frontmatter dict or None, body text)
        """
        match = self.FRONTMATTER_PATTERN.match(content)
        if not match:
            return None, content

        frontmatter_text = match.group(1)
        body = content[match.end():]

        try:
            frontmatter = yaml.safe_load(frontmatter_text)
            if not isinstance(frontmatter, dict):
                frontmatter = {"_raw": frontmatter_text}
            return frontmatter, body
        except yaml.YAMLError:
            return {"_raw": frontmatter_text}, body
