"""
EffectForge Ingestion Tests

Tests text extraction for each supported upload format.

Run with: pytest tests/test_parsers.py -v
"""

import io
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from forge_engine.errors import (
    CorruptedFileError,
    EmptyFileError,
    UnsupportedFileTypeError,
)
from ingestion import (
    decode_bytes,
    describe_text,
    detect_language,
    extract_text,
    get_parser,
    get_supported_mime_types,
    parse_upload,
)
from ingestion.parsers.csv_parser import is_text_column
from ingestion.parsers.json_export import extract_text_from_object, MAX_DEPTH


DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# =============================================================================
# DISPATCH
# =============================================================================

class TestDispatch:

    def test_supported_types(self):
        supported = get_supported_mime_types()
        for mime in ("text/plain", "text/markdown", "application/json", "text/csv",
                     "application/pdf", DOCX_MIME, XLSX_MIME, "application/rtf",
                     "text/rtf", "application/xml", "text/xml"):
            assert mime in supported

    def test_get_parser(self):
        assert get_parser("text/csv").get_file_type() == "csv"
        assert get_parser("image/png") is None

    def test_unsupported_type(self):
        with pytest.raises(UnsupportedFileTypeError) as exc:
            parse_upload(b"\x89PNG", "image/png")
        assert exc.value.status_code == 415

    def test_empty_upload(self):
        with pytest.raises(EmptyFileError):
            extract_text(b"", "text/plain")


# =============================================================================
# TEXT FORMATS
# =============================================================================

class TestTextFormats:

    def test_decode_strips_bom(self):
        assert decode_bytes(b"\xef\xbb\xbfglow") == ("glow", "utf-8")

    def test_decode_falls_back_to_latin1(self):
        text, encoding = decode_bytes(b"caf\xe9")
        assert text == "café"
        assert encoding == "latin-1"

    def test_plaintext_collapses_whitespace(self):
        data = b"Neon glow\r\n\r\n\r\n\tfast   pulse\n"
        assert extract_text(data, "text/plain") == "Neon glow fast pulse"

    def test_markdown_strips_syntax(self):
        data = b"# Title\n\n**Bold** and *soft* [glow](http://x.y)\n- item one\n"
        text = extract_text(data, "text/markdown")
        assert text == "Title\n\nBold and soft glow\nitem one"

    def test_markdown_frontmatter(self):
        data = b"---\ntitle: Neon Drift\nmood: calm\n---\nA slow neon fade\n"
        parsed = parse_upload(data, "text/markdown")

        assert parsed.title == "Neon Drift"
        assert parsed.metadata["mood"] == "calm"
        assert parsed.text == "A slow neon fade"

    def test_rtf(self):
        data = b"{\\rtf1\\ansi{\\fonttbl\\f0 Arial;}\\f0\\fs24 Glowing particle trail\\par}"
        text = extract_text(data, "application/rtf")
        assert "Glowing particle trail" in text
        assert "\\" not in text
        assert "{" not in text

    def test_xml(self):
        data = b"<effects><effect><name>Neon</name><desc>soft glow</desc></effect></effects>"
        assert extract_text(data, "application/xml") == "Neon soft glow"

    def test_xml_does_not_expand_entities(self):
        data = (b'<?xml version="1.0"?><!DOCTYPE r [<!ENTITY big "expanded">]>'
                b"<r>glow &big;</r>")
        assert "expanded" not in extract_text(data, "text/xml")


# =============================================================================
# STRUCTURED FORMATS
# =============================================================================

class TestJson:

    def test_object_keeps_long_strings(self):
        data = json.dumps({"name": "Neon glow", "id": "ab", "count": 3,
                           "tags": ["fast", "pulse"]}).encode()
        assert extract_text(data, "application/json") == "Neon glow fast pulse"

    def test_scalars(self):
        assert extract_text_from_object(True) == "true"
        assert extract_text_from_object([1, 2.5, "x"]) == "1 2.5 x"

    def test_depth_limit(self):
        nested = "deep text"
        for _ in range(MAX_DEPTH + 2):
            nested = [nested]
        assert extract_text_from_object(nested) == ""

    def test_invalid_json(self):
        with pytest.raises(CorruptedFileError):
            extract_text(b"{not json", "application/json")


class TestCsv:

    def test_keeps_text_cells(self):
        data = (b"id,date,price,description\n"
                b"FX1,2024-01-05,9.99,A glowing neon trail\n"
                b"FX2,2024-02-01,12,Smooth fading pulse\n")
        parsed = parse_upload(data, "text/csv")

        assert parsed.text == "description\nA glowing neon trail\nSmooth fading pulse"
        assert parsed.metadata["total_rows"] == 3

    def test_is_text_column(self):
        assert is_text_column("soft glow") is True
        assert is_text_column("42") is False
        assert is_text_column("2024/01/05") is False
        assert is_text_column("SKU_123") is False
        assert is_text_column("ab") is False


# =============================================================================
# BINARY FORMATS
# =============================================================================

class TestBinaryFormats:

    def test_docx(self):
        docx = pytest.importorskip("docx")
        document = docx.Document()
        document.add_paragraph("Neon glow burst")
        table = document.add_table(rows=1, cols=2)
        table.rows[0].cells[0].text = "fast"
        table.rows[0].cells[1].text = "pulse"
        buffer = io.BytesIO()
        document.save(buffer)

        assert extract_text(buffer.getvalue(), DOCX_MIME) == "Neon glow burst fast pulse"

    def test_xlsx(self):
        openpyxl = pytest.importorskip("openpyxl")
        workbook = openpyxl.Workbook()
        sheet = workbook.active
        sheet.append(["Spiral wave", 3])
        sheet.append([None, "cosmic glow"])
        buffer = io.BytesIO()
        workbook.save(buffer)

        assert extract_text(buffer.getvalue(), XLSX_MIME) == "Spiral wave 3 cosmic glow"

    def test_blank_pdf_gives_placeholder(self):
        pypdf = pytest.importorskip("pypdf")
        writer = pypdf.PdfWriter()
        writer.add_blank_page(width=200, height=200)
        buffer = io.BytesIO()
        writer.write(buffer)

        text = extract_text(buffer.getvalue(), "application/pdf")
        assert text == "[PDF contains no extractable text]"

    def test_corrupted_pdf(self):
        with pytest.raises(CorruptedFileError):
            extract_text(b"this is not a pdf", "application/pdf")

    def test_corrupted_docx(self):
        with pytest.raises(CorruptedFileError):
            extract_text(b"this is not a zip", DOCX_MIME)


# =============================================================================
# TEXT STATS
# =============================================================================

class TestTextStats:

    def test_counts(self):
        stats = describe_text("the glow and the pulse")
        assert stats.word_count == 5
        assert stats.character_count == 22
        assert stats.language == "en"

    def test_stats_dict(self):
        assert describe_text("").to_dict() == {
            "wordCount": 0,
            "characterCount": 0,
            "encoding": "UTF-8",
            "language": "unknown",
        }

    def test_language(self):
        assert detect_language("la lumière et le feu dans la nuit") == "fr"
        assert detect_language("neon glow pulse") == "unknown"
