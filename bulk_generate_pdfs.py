# bulk_generate_pdfs.py
import argparse
import os
from pathlib import Path

from config import Config, configure_logging
from errors import RenderingError
from models import Base, make_engine, make_session_factory, Document, Tenant, DOCUMENT_KINDS
from pdf_service import generate_and_store_pdf


def main(argv=None):
    parser = argparse.ArgumentParser(description="Bulk generate document PDFs.")
    parser.add_argument("--tenant", type=str, default="", help="Only generate PDFs for one tenant slug.")
    parser.add_argument("--kind", choices=DOCUMENT_KINDS, default=None, help="Only one document kind.")
    parser.add_argument("--all", action="store_true", help="Regenerate PDFs even if one already exists.")
    args = parser.parse_args(argv)

    configure_logging()
    if Config.SQLALCHEMY_DATABASE_URI.startswith("sqlite"):
        Path("instance").mkdir(parents=True, exist_ok=True)
    Path(Config.EXPORTS_DIR).mkdir(parents=True, exist_ok=True)

    engine = make_engine(Config.SQLALCHEMY_DATABASE_URI, echo=Config.SQLALCHEMY_ECHO)
    Base.metadata.create_all(engine)
    SessionLocal = make_session_factory(engine)

    with SessionLocal() as s:
        q = s.query(Document).order_by(Document.created_at.asc())
        if args.tenant:
            q = q.join(Tenant, Document.tenant_id == Tenant.id).filter(Tenant.slug == args.tenant.strip())
        if args.kind:
            q = q.filter(Document.kind == args.kind)

        docs = q.all()
        if not docs:
            print("No documents found for the given filter.")
            return 0

        total = len(docs)
        generated = 0
        skipped = 0
        failed = 0

        for i, doc in enumerate(docs, start=1):
            has_pdf = bool(doc.pdf_path) and os.path.exists(doc.pdf_path or "")
            if has_pdf and not args.all:
                skipped += 1
                print(f"[{i}/{total}] SKIP  {doc.number} (already has PDF)")
                continue
            try:
                path = generate_and_store_pdf(s, doc.id)
            except (RenderingError, OSError) as e:
                s.rollback()
                failed += 1
                print(f"[{i}/{total}] FAIL  {doc.number}  ({e})")
                continue
            generated += 1
            print(f"[{i}/{total}] DONE  {doc.number} -> {path}")

        print("\nBulk PDF generation complete.")
        print(f"Generated: {generated}")
        print(f"Skipped:   {skipped}")
        print(f"Failed:    {failed}")
        print(f"Exports:   {Config.EXPORTS_DIR}")
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
