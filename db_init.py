# db_init.py
import argparse
from pathlib import Path

from sqlalchemy import select

from config import Config
from models import Base, Tenant, Client, Document, DocumentItem, make_engine, make_session_factory, next_document_number

DEMO_SLUG = "demo"


def seed_demo(session) -> Document:
    """
    One tenant, one client and a two-line invoice, enough to try
    POST /documents/pdf locally. Re-running returns the existing invoice.
    """
    tenant = session.execute(select(Tenant).where(Tenant.slug == DEMO_SLUG)).scalar_one_or_none()
    if tenant is not None:
        return session.execute(
            select(Document).where(Document.tenant_id == tenant.id).order_by(Document.id.asc()).limit(1)
        ).scalars().first()

    tenant = Tenant(
        slug=DEMO_SLUG,
        business_name="Acme Co",
        address="Rua Augusta 100\n1100-053 Lisboa",
        email="billing@acme.example",
        currency="EUR",
        brand_color="#3c6b5b",
        footer_text="Acme Co, Lda. Payment by bank transfer within 15 days.",
    )
    session.add(tenant)
    session.flush()

    client = Client(tenant_id=tenant.id, name="Rosa Maria", billing_address="Rua Exemplo 123, Lisboa")
    session.add(client)
    session.flush()

    doc = Document(
        tenant_id=tenant.id,
        client_id=client.id,
        kind="invoice",
        number=next_document_number(session, tenant.id, "invoice"),
        currency="EUR",
        issue_date="2025-09-01",
        due_date="2025-09-15",
        tax_total=23.0,
        notes="Thank you for your business.",
    )
    doc.items = [
        DocumentItem(position=1, description="Service A", qty=1, unit_price=60.0, line_total=60.0),
        DocumentItem(position=2, description="Service B", qty=2, unit_price=20.0, line_total=40.0),
    ]
    doc.recompute_totals()
    session.add(doc)
    session.commit()
    return doc


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create tables and the exports directory.")
    parser.add_argument("--demo", action="store_true", help="Also insert a demo tenant with one invoice.")
    args = parser.parse_args(argv)

    # Ensure instance/ exists for SQLite local dev
    if Config.SQLALCHEMY_DATABASE_URI.startswith("sqlite"):
        Path("instance").mkdir(parents=True, exist_ok=True)

    Path(Config.EXPORTS_DIR).mkdir(parents=True, exist_ok=True)

    engine = make_engine(Config.SQLALCHEMY_DATABASE_URI, echo=Config.SQLALCHEMY_ECHO)
    Base.metadata.create_all(engine)

    print("Database initialized.")
    print(f"DB: {Config.SQLALCHEMY_DATABASE_URI}")
    print(f"Exports dir: {Config.EXPORTS_DIR}")

    if args.demo:
        SessionLocal = make_session_factory(engine)
        with SessionLocal() as s:
            doc = seed_demo(s)
            print(f"Demo tenant '{DEMO_SLUG}': {doc.kind} {doc.number} (id={doc.id})")


if __name__ == "__main__":
    main()
