"""
Unit tests for PDF page counting.
"""

import pytest

from quill.utils.pdf_processing import looks_like_pdf, page_count, page_count_from_bytes


@pytest.mark.unit
class TestPageCount:
    """Page counts come from the PDF structure."""

    @pytest.mark.parametrize("pages", [1, 2, 3])
    def test_from_bytes(self, make_pdf, pages):
        assert page_count_from_bytes(make_pdf(pages)) == pages

    def test_from_path(self, make_pdf, tmp_path):
        pdf_path = tmp_path / "resume.pdf"
        pdf_path.write_bytes(make_pdf(2))
        assert page_count(pdf_path) == 2

    @pytest.mark.parametrize("data", [b"", b"<html>not a pdf</html>"])
    def test_unreadable_bytes(self, data):
        with pytest.raises(ValueError):
            page_count_from_bytes(data)
        assert page_count(data) is None

    def test_missing_file(self, tmp_path):
        assert page_count(tmp_path / "absent.pdf") is None

    def test_magic_header(self, make_pdf):
        assert looks_like_pdf(make_pdf(1))
        assert not looks_like_pdf(b"<html>")
