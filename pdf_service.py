# pdf_service.py
import os
import re
import logging

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from config import Config
from document_spec import DocumentSpec, Tenant, Party, LineItem, Record, RecordKind
from models import Document, Tenant as TenantRow, utcnow
from pdf_renderer import DocumentRenderer, RenderedDocument

logger = logging.getLogger(__name__)


def _safe_filename(name: str) -> str:
    # strip characters not allowed on Windows/mac paths
    return re.sub(r'[\\/*?:"<>|]', "", (name or "")).strip() or "Document"


def _clean(val) -> str | None:
    val = (val or "").strip()
    return val or None


def build_document_spec(doc: Document) -> DocumentSpec:
    """Resolve DB rows into the snapshot the renderer consumes."""
    t = doc.tenant
    tenant = Tenant(
        business_name=(t.business_name or t.slug or "").strip(),
        address=_clean(t.address),
        phone=_clean(t.phone),
        website=_clean(t.website),
        email=_clean(t.email),
        brand_color=_clean(t.brand_color),
        brand_accent=_clean(t.brand_accent),
        logo_url=_clean(t.logo_url),
        footer_text=_clean(t.footer_text),
    )

    amounts = dict(
        currency=(doc.currency or t.currency or "").strip(),
        notes=(doc.notes or "").strip(),
        subtotal=doc.subtotal or 0.0,
        tax_total=doc.tax_total or 0.0,
        total=doc.total or 0.0,
    )
    kind = RecordKind.parse(doc.kind)
    if kind is RecordKind.QUOTE:
        record = Record.quote(doc.number, quote_date=doc.issue_date or "", valid_until=doc.valid_until or "", **amounts)
    elif kind is RecordKind.RECEIPT:
        record = Record.receipt(doc.number, date=doc.issue_date or "", **amounts)
    else:
        record = Record.invoice(doc.number, issue_date=doc.issue_date or "", due_date=doc.due_date or "", **amounts)

    c = doc.client
    party = Party(
        name=_clean(c.name) if c else None,
        address=_clean(c.billing_address) if c else None,
        email=_clean(c.email) if c else None,
        phone=_clean(c.phone) if c else None,
    )

    items = tuple(
        LineItem(
            description=it.description or "",
            qty=it.qty or 0.0,
            unit_price=it.unit_price or 0.0,
            line_total=it.line_total or 0.0,
        )
        for it in doc.items
    )
    return DocumentSpec(tenant=tenant, record=record, party=party, line_items=items, qr_target=_clean(doc.qr_url))


def find_document(session, *, tenant_slug: str, document_id: int | None = None,
                  number: str | None = None, kind: str | None = None) -> Document:
    """
    Look a document up inside one tenant, by id first, then by number.
    Raises LookupError when nothing matches.
    """
    tenant = session.execute(
        select(TenantRow).where(TenantRow.slug == (tenant_slug or "").strip())
    ).scalar_one_or_none()
    if tenant is None:
        raise LookupError("tenant not found")

    base = select(Document).options(selectinload(Document.items)).where(Document.tenant_id == tenant.id)
    doc = None
    if document_id is not None:
        doc = session.execute(base.where(Document.id == document_id)).scalar_one_or_none()
    if doc is None and (number or "").strip():
        q = base.where(Document.number == number.strip())
        if kind:
            q = q.where(Document.kind == kind)
        doc = session.execute(q.order_by(Document.id.desc()).limit(1)).scalars().first()
    if doc is None:
        raise LookupError("document not found")
    return doc


def render_document_row(doc: Document, renderer: DocumentRenderer | None = None) -> RenderedDocument:
    renderer = renderer or DocumentRenderer()
    return renderer.render(build_document_spec(doc))


def generate_and_store_pdf(session, document_id: int, renderer: DocumentRenderer | None = None) -> str:
    """
    Generates (or regenerates) the PDF for a document.
    Saves to EXPORTS_DIR/<tenant-slug>/<number>.pdf and updates
    document.pdf_path + document.pdf_generated_at.

    Returns: absolute pdf path on disk.
    """
    doc = session.get(Document, document_id)
    if not doc:
        raise ValueError(f"Document not found: id={document_id}")

    rendered = render_document_row(doc, renderer)

    out_dir = os.path.join(Config.EXPORTS_DIR, _safe_filename(doc.tenant.slug))
    os.makedirs(out_dir, exist_ok=True)
    pdf_path = os.path.abspath(os.path.join(out_dir, f"{_safe_filename(doc.number)}.pdf"))
    with open(pdf_path, "wb") as fh:
        fh.write(rendered.content)

    doc.pdf_path = pdf_path
    doc.pdf_generated_at = utcnow()
    session.add(doc)
    session.commit()

    logger.info("Stored %s (%d bytes) -> %s", rendered.title, rendered.size, pdf_path)
    return pdf_path
