"""
Tests for upload source items and routing helpers
=================================================

Run with: pytest tests/test_sources.py -v
"""

import pytest

from vin_verify.sources import SourceItem, decode_text, is_media, is_tabular


class TestSourceItem:
    """Tests for SourceItem."""
    
    def test_from_path(self, tmp_path):
        path = tmp_path / "fleet.csv"
        path.write_bytes(b"a,b\n")
        item = SourceItem.from_path(path)
        assert item.filename == "fleet.csv"
        assert item.content == b"a,b\n"
        assert "csv" in item.mime_type
    
    def test_unknown_suffix(self, tmp_path):
        path = tmp_path / "blob.unknownext"
        path.write_bytes(b"\x00")
        assert SourceItem.from_path(path).mime_type == "application/octet-stream"


class TestRouting:
    """Tests for is_tabular and is_media."""
    
    @pytest.mark.parametrize("filename,mime", [
        ("fleet.csv", "application/octet-stream"),
        ("FLEET.CSV", ""),
        ("export", "text/csv"),
    ])
    def test_tabular(self, filename, mime):
        assert is_tabular(SourceItem(filename, mime, b""))
    
    @pytest.mark.parametrize("mime", ["image/jpeg", "image/png", "application/pdf", "audio/wav", "video/mp4"])
    def test_media(self, mime):
        item = SourceItem("capture", mime, b"")
        assert is_media(item)
        assert not is_tabular(item)
    
    @pytest.mark.parametrize("mime", ["application/zip", "text/plain", ""])
    def test_neither(self, mime):
        item = SourceItem("notes.bin", mime, b"")
        assert not is_media(item)
        assert not is_tabular(item)


class TestDecodeText:
    """Tests for decode_text."""
    
    def test_utf8(self):
        assert decode_text("車台番号".encode("utf-8")) == "車台番号"
    
    def test_utf8_bom_stripped(self):
        assert decode_text("車台番号".encode("utf-8-sig")) == "車台番号"
    
    def test_shift_jis(self):
        assert decode_text("車台番号,所有者".encode("cp932")) == "車台番号,所有者"
    
    def test_undecodable(self):
        with pytest.raises(UnicodeDecodeError):
            decode_text(b"\x81\x20\x81\x20")
