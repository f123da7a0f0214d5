# models.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    create_engine,
    String,
    Integer,
    Float,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    select,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
    sessionmaker,
)

DOCUMENT_KINDS = ("invoice", "quote", "receipt")
NUMBER_PREFIX = {"invoice": "INV", "quote": "QUO", "receipt": "REC"}


def utcnow() -> datetime:
    # naive UTC, matching the DateTime columns
    return datetime.now(timezone.utc).replace(tzinfo=None)


# -----------------------------
# SQLAlchemy base
# -----------------------------
class Base(DeclarativeBase):
    pass


# -----------------------------
# Tables
# -----------------------------
class Tenant(Base):
    """Business profile + branding used in every document header."""
    __tablename__ = "tenants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(80), unique=True, nullable=False, index=True)
    business_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")

    address: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="EUR")

    brand_color: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    brand_accent: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    logo_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    footer_text: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)


class Client(Base):
    __tablename__ = "clients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    billing_address: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)


class DocumentSequence(Base):
    """
    Last used sequence number per tenant and document kind.
    Used to generate numbers like INV-0001, QUO-0001, REC-0001.
    """
    __tablename__ = "document_sequences"
    __table_args__ = (UniqueConstraint("tenant_id", "kind", name="uq_document_sequences_tenant_kind"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    last_seq: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Document(Base):
    """
    Invoice, quote or receipt. `kind` picks which date columns are meaningful:
    invoice -> issue_date/due_date, quote -> issue_date/valid_until, receipt -> issue_date.
    """
    __tablename__ = "documents"
    __table_args__ = (UniqueConstraint("tenant_id", "kind", "number", name="uq_documents_tenant_kind_number"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id: Mapped[Optional[int]] = mapped_column(ForeignKey("clients.id", ondelete="SET NULL"), nullable=True)

    kind: Mapped[str] = mapped_column(String(16), nullable=False, default="invoice", index=True)
    number: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="")

    # Display text, stored as entered (e.g. 2025-09-01)
    issue_date: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    due_date: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    valid_until: Mapped[str] = mapped_column(String(32), nullable=False, default="")

    subtotal: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    tax_total: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    notes: Mapped[str] = mapped_column(String, nullable=False, default="")

    # Encoded into the QR block when set (payment / public view link)
    qr_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    # Stored PDF (file path on disk)
    pdf_path: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    pdf_generated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    tenant: Mapped["Tenant"] = relationship()
    client: Mapped[Optional["Client"]] = relationship()
    items: Mapped[list["DocumentItem"]] = relationship(
        back_populates="document",
        cascade="all, delete-orphan",
        order_by="DocumentItem.position",
    )

    # Convenience totals (computed, not stored)
    def items_total(self) -> float:
        return round(sum((it.line_total or 0.0) for it in self.items), 2)

    def recompute_totals(self) -> None:
        self.subtotal = self.items_total()
        self.total = round(self.subtotal + (self.tax_total or 0.0), 2)


class DocumentItem(Base):
    __tablename__ = "document_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    document_id: Mapped[int] = mapped_column(ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    qty: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    unit_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    line_total: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    document: Mapped["Document"] = relationship(back_populates="items")


# -----------------------------
# Engine / Session factory
# -----------------------------
def make_engine(db_url: str, echo: bool = False):
    """
    Create SQLAlchemy engine.
    Note: SQLite path must exist (instance/ folder); db_init.py creates it.
    """
    return create_engine(db_url, echo=echo, future=True)


def make_session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


# -----------------------------
# Document number generator
# -----------------------------
def next_document_number(session, tenant_id: int, kind: str, seq_width: int = 4) -> str:
    """
    Returns the next number for a tenant and kind, e.g. INV-0001.
    Run inside the transaction that inserts the document.
    """
    if kind not in NUMBER_PREFIX:
        raise ValueError(f"Unknown document kind: {kind}")

    seq_row = session.execute(
        select(DocumentSequence).where(
            DocumentSequence.tenant_id == tenant_id,
            DocumentSequence.kind == kind,
        )
    ).scalar_one_or_none()

    if seq_row is None:
        seq_row = DocumentSequence(tenant_id=tenant_id, kind=kind, last_seq=0)
        session.add(seq_row)
        session.flush()

    seq_row.last_seq += 1
    session.flush()

    return f"{NUMBER_PREFIX[kind]}-{seq_row.last_seq:0{seq_width}d}"
