# app.py
import io
import os
import logging
from pathlib import Path

from flask import Flask, request, jsonify, send_file, abort

from config import Config, configure_logging
from document_spec import DocumentSpec
from errors import DocumentRenderError
from models import Base, Document, make_engine, make_session_factory
from pdf_renderer import DocumentRenderer
from pdf_service import find_document, generate_and_store_pdf

logger = logging.getLogger(__name__)


def _ensure_dirs():
    Path("instance").mkdir(parents=True, exist_ok=True)
    Path(Config.EXPORTS_DIR).mkdir(parents=True, exist_ok=True)


def _bad(msg, status=400):
    return jsonify({"error": msg}), status


def _to_int(val):
    try:
        return int(val)
    except (TypeError, ValueError):
        return None


# -----------------------------
# App factory
# -----------------------------
def create_app(db_url: str | None = None, renderer: DocumentRenderer | None = None):
    _ensure_dirs()

    app = Flask(__name__)
    app.config.from_object(Config)

    engine = make_engine(db_url or Config.SQLALCHEMY_DATABASE_URI, echo=Config.SQLALCHEMY_ECHO)
    Base.metadata.create_all(engine)
    SessionLocal = make_session_factory(engine)
    doc_renderer = renderer or DocumentRenderer()

    def db_session():
        return SessionLocal()

    # -----------------------------
    # Stateless render: snapshot JSON in, PDF bytes out
    # -----------------------------
    @app.route("/render", methods=["POST"])
    def render_snapshot():
        payload = request.get_json(silent=True)
        try:
            spec = DocumentSpec.from_dict(payload)
        except ValueError as e:
            return _bad(str(e))

        try:
            rendered = doc_renderer.render(spec)
        except DocumentRenderError as e:
            logger.error("Render failed: %s", e)
            return _bad(f"document generation failed: {e}", 500)

        return send_file(
            io.BytesIO(rendered.content),
            mimetype="application/pdf",
            as_attachment=False,
            download_name=f"{spec.record.number}.pdf",
        )

    # -----------------------------
    # Stored documents
    # -----------------------------
    @app.route("/documents/pdf", methods=["POST"])
    def document_pdf_generate():
        b = request.get_json(silent=True) or {}
        tenant_slug = str(b.get("tenant") or "").strip()
        if not tenant_slug:
            return _bad("Missing 'tenant'")
        document_id = _to_int(b.get("document_id"))
        number = str(b.get("number") or "").strip()
        if document_id is None and not number:
            return _bad("Missing 'document_id' or 'number'")

        with db_session() as s:
            try:
                doc = find_document(s, tenant_slug=tenant_slug, document_id=document_id,
                                    number=number, kind=(b.get("kind") or None))
            except LookupError as e:
                return _bad(str(e), 404)
            try:
                path = generate_and_store_pdf(s, doc.id, renderer=doc_renderer)
            except DocumentRenderError as e:
                logger.error("Render failed for document %s: %s", doc.id, e)
                return _bad(f"document generation failed: {e}", 500)

            return jsonify({
                "id": doc.id,
                "kind": doc.kind,
                "number": doc.number,
                "pdfPath": path,
                "size": os.path.getsize(path),
            })

    @app.route("/documents/<int:document_id>/pdf")
    def document_pdf_download(document_id):
        with db_session() as s:
            doc = s.get(Document, document_id)
            if not doc or not doc.pdf_path or not os.path.exists(doc.pdf_path):
                abort(404)

            return send_file(
                doc.pdf_path,
                as_attachment=True,
                download_name=os.path.basename(doc.pdf_path),
                mimetype="application/pdf"
            )

    return app


if __name__ == "__main__":
    configure_logging()
    app = create_app()
    app.run(debug=True)
