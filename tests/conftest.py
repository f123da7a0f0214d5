"""Shared fixtures: in-memory images, a network-free asset loader, sample documents."""

import io
import struct
import zlib

import pytest
from PIL import Image

from asset_loader import AssetLoader
from config import Config
from document_spec import DocumentSpec, Tenant, Party, LineItem, Record
from errors import AssetLoadError
from page_cursor import TextOp, LineOp, ImageOp


def image_bytes(width=40, height=20, fmt="PNG", color=(60, 107, 91)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, fmt)
    return buf.getvalue()


def _png_chunk(kind: bytes, data: bytes) -> bytes:
    return struct.pack(">I", len(data)) + kind + data + struct.pack(">I", zlib.crc32(kind + data) & 0xFFFFFFFF)


def huge_png(width=20000, height=10000) -> bytes:
    """1-bit grayscale PNG whose header declares width x height; the pixel stream is a stub."""
    header = struct.pack(">IIBBBBB", width, height, 1, 0, 0, 0, 0)
    return (
        b"\x89PNG\r\n\x1a\n"
        + _png_chunk(b"IHDR", header)
        + _png_chunk(b"IDAT", zlib.compress(b"\x00"))
        + _png_chunk(b"IEND", b"")
    )


def make_asset(width=40, height=20, fmt="PNG"):
    return AssetLoader().decode(image_bytes(width, height, fmt), url=f"mem://{width}x{height}")


class FakeResponse:
    def __init__(self, status_code=200, content=b"", content_type="image/png"):
        self.status_code = status_code
        self.content = content
        self.headers = {"Content-Type": content_type} if content_type else {}


class FakeHttp:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.requests = []

    def get(self, url, params=None, timeout=None):
        self.requests.append({"url": url, "params": params, "timeout": timeout})
        if self.exc is not None:
            raise self.exc
        return self.response


class FakeLoader:
    """
    Stands in for AssetLoader. `assets` maps url -> Asset; unknown urls fail
    the same way an unreachable host does.
    """

    def __init__(self, assets=None, qr=None):
        self.assets = dict(assets or {})
        self.qr = qr
        self.calls = []

    def load(self, url, params=None):
        self.calls.append(("load", url))
        if url in self.assets:
            return self.assets[url]
        raise AssetLoadError(url, "fetch failed: ConnectionError")

    def load_qr(self, target, size=None):
        self.calls.append(("qr", target))
        if self.qr is None:
            raise AssetLoadError("https://qr.example/", "HTTP 503")
        return self.qr


def all_texts(pages, role=None):
    out = []
    for p in pages:
        out.extend(p.texts(role))
    return out


def signature(pages):
    """Comparable form of a page list (reportlab colors compared by rgb)."""
    sig = []
    for p in pages:
        ops = []
        for op in p.ops:
            if isinstance(op, TextOp):
                ops.append(("text", round(op.x, 3), round(op.y, 3), op.text, op.font, op.size, op.role, op.color.rgb()))
            elif isinstance(op, LineOp):
                ops.append(("line", round(op.x1, 3), round(op.y1, 3), round(op.x2, 3), round(op.y2, 3), op.color.rgb()))
            elif isinstance(op, ImageOp):
                ops.append(("image", op.role, round(op.x, 3), round(op.y, 3), op.width, op.height))
        sig.append(ops)
    return sig


@pytest.fixture(autouse=True)
def uncompressed_pdf(monkeypatch):
    monkeypatch.setattr(Config, "PDF_COMPRESSION", False)


@pytest.fixture
def acme_spec():
    return DocumentSpec(
        tenant=Tenant(business_name="Acme Co", brand_color="#3c6b5b"),
        record=Record.invoice(
            "INV-0001",
            issue_date="2025-09-01",
            due_date="2025-09-15",
            currency="EUR",
            subtotal=100.00,
            tax_total=23.00,
            total=123.00,
        ),
        party=Party(name="Rosa Maria", address="Rua Exemplo 123, Lisboa"),
        line_items=(LineItem("Service A", qty=1, unit_price=100.00, line_total=100.00),),
    )


@pytest.fixture
def many_items():
    def build(n, description="Consulting hour"):
        return tuple(
            LineItem(f"{description} {i}", qty=1, unit_price=10.0, line_total=10.0)
            for i in range(1, n + 1)
        )
    return build
