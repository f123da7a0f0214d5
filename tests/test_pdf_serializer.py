import pytest
from reportlab.lib import colors

from errors import DocumentRenderError
from page_cursor import PageCursor, TextOp, LineOp, ImageOp
from pdf_serializer import finalize

from conftest import make_asset


def sealed_pages(n=1, font="Helvetica"):
    c = PageCursor(595.28, 841.89, 50)
    for i in range(n):
        if i:
            c.new_page()
        c.draw(TextOp(50, c.y, f"page text {i + 1}", font, 10, colors.black))
        c.draw(LineOp(50, 700, 545, 700, colors.grey, 1))
    return c.seal()


class TestFinalize:
    def test_produces_pdf(self):
        data = finalize(sealed_pages())
        assert data.startswith(b"%PDF")
        assert b"%%EOF" in data[-64:]

    def test_text_written_in_page_order(self):
        data = finalize(sealed_pages(3), compress=False)
        first = data.index(b"(page text 1) Tj")
        second = data.index(b"(page text 2) Tj")
        third = data.index(b"(page text 3) Tj")
        assert first < second < third

    def test_title_in_metadata(self):
        data = finalize(sealed_pages(), title="Invoice INV-0001", compress=False)
        assert b"Invoice INV-0001" in data

    def test_images_embedded(self):
        c = PageCursor(595.28, 841.89, 50)
        asset = make_asset(60, 30).fitted(30, 30)
        c.draw(ImageOp(asset, 50, 700, asset.target_width, asset.target_height))
        data = finalize(c.seal(), compress=False)
        assert b"/Subtype /Image" in data

    def test_compressed_streams_hide_text(self):
        data = finalize(sealed_pages(), compress=True)
        assert data.startswith(b"%PDF")
        assert b"(page text 1) Tj" not in data


class TestHardErrors:
    def test_no_pages(self):
        with pytest.raises(DocumentRenderError, match="no pages"):
            finalize([])

    def test_unsealed_page(self):
        c = PageCursor(100, 100, 10)
        with pytest.raises(DocumentRenderError, match="unsealed"):
            finalize(c.pages)

    def test_backend_failure_wrapped(self):
        with pytest.raises(DocumentRenderError, match="serialization failed"):
            finalize(sealed_pages(font="NoSuchFont-Bold"))
