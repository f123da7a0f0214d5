# pdf_serializer.py
import io
import logging

from reportlab.pdfgen import canvas
from reportlab.lib.utils import ImageReader

from config import Config
from errors import DocumentRenderError
from page_cursor import Page, TextOp, LineOp, ImageOp

logger = logging.getLogger(__name__)


def _replay(pdf: canvas.Canvas, page: Page) -> None:
    for op in page.ops:
        if isinstance(op, TextOp):
            pdf.setFillColor(op.color)
            pdf.setFont(op.font, op.size)
            pdf.drawString(op.x, op.y, op.text)
        elif isinstance(op, LineOp):
            pdf.setStrokeColor(op.color)
            pdf.setLineWidth(op.width)
            pdf.line(op.x1, op.y1, op.x2, op.y2)
        elif isinstance(op, ImageOp):
            img = ImageReader(op.asset.image)
            pdf.drawImage(img, op.x, op.y, width=op.width, height=op.height, mask="auto")
        else:
            raise DocumentRenderError(f"unknown draw operation: {type(op).__name__}")


def finalize(pages: list[Page], *, title: str | None = None, compress: bool | None = None) -> bytes:
    """
    Write every sealed page, in order, into one in-memory PDF.

    This is the one place a render may fail hard: anything that goes wrong here
    is raised as DocumentRenderError.
    """
    if not pages:
        raise DocumentRenderError("nothing to serialize: document has no pages")
    if any(not p.sealed for p in pages):
        raise DocumentRenderError("refusing to serialize an unsealed page")

    compress = Config.PDF_COMPRESSION if compress is None else compress
    buf = io.BytesIO()
    try:
        first = pages[0]
        pdf = canvas.Canvas(buf, pagesize=(first.width, first.height), pageCompression=int(bool(compress)))
        if title:
            pdf.setTitle(title)
        for page in pages:
            pdf.setPageSize((page.width, page.height))
            _replay(pdf, page)
            pdf.showPage()
        pdf.save()
    except DocumentRenderError:
        raise
    except Exception as e:
        logger.exception("PDF serialization failed")
        raise DocumentRenderError(f"PDF serialization failed: {e}") from e

    data = buf.getvalue()
    if not data.startswith(b"%PDF"):
        raise DocumentRenderError("serializer produced a buffer without a PDF header")
    return data
