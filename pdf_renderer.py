# pdf_renderer.py
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional

from reportlab.lib import colors

from asset_loader import Asset, AssetLoader
from color_resolver import resolve_color, DEFAULT_BRAND_COLOR, DEFAULT_ACCENT_COLOR
from document_spec import DocumentSpec
from errors import AssetLoadError, DocumentRenderError
from layout_theme import LayoutTheme, DEFAULT_THEME, WRAP
from page_cursor import PageCursor, Page, TextOp, LineOp, ImageOp
from pdf_serializer import finalize
from text_metrics import width_of, wrap_text, truncate_text, format_money, format_qty

logger = logging.getLogger(__name__)

MUTED = colors.HexColor("#666666")

# on_soft_failure(kind, url, error) with kind in {"logo", "qr"}
SoftFailureHook = Callable[[str, str, AssetLoadError], None]


@dataclass(frozen=True)
class RenderedDocument:
    content: bytes
    pages: tuple[Page, ...]
    title: str = ""

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def page_count(self) -> int:
        return len(self.pages)


class _RenderPass:
    """
    One top-to-bottom layout of a single document.
    Holds all per-render state so the renderer itself stays reusable.
    """

    def __init__(self, theme: LayoutTheme, spec: DocumentSpec, logo: Asset | None, qr: Asset | None):
        self.t = theme
        self.spec = spec
        self.record = spec.record
        self.logo = logo
        self.qr = qr
        self.brand = resolve_color(spec.tenant.brand_color, DEFAULT_BRAND_COLOR)
        self.accent = resolve_color(spec.tenant.brand_accent, DEFAULT_ACCENT_COLOR)
        self.has_footer = bool((spec.tenant.footer_text or "").strip())
        # keep the footer strip clear on whichever page ends up last
        self.reserve = theme.footer_reserve if self.has_footer else 0.0
        self.cursor = PageCursor(theme.page_width, theme.page_height, theme.margin_pt)

    # -----------------------------
    # Drawing helpers bound to the cursor
    # -----------------------------
    def need(self, height: float) -> bool:
        return self.cursor.ensure_space(height + self.reserve)

    def text(self, x, text, font=None, size=None, color=colors.black, y=None, role=""):
        self.cursor.draw(TextOp(
            x=x,
            y=self.cursor.y if y is None else y,
            text=str(text),
            font=font or self.t.font,
            size=size or self.t.body_font_pt,
            color=color,
            role=role,
        ))

    def right_text(self, x_right, text, font=None, size=None, color=colors.black, y=None, role=""):
        font = font or self.t.font
        size = size or self.t.body_font_pt
        w = width_of(text, font, size)
        self.text(x_right - w, text, font, size, color, y=y, role=role)

    def center_text(self, text, font=None, size=None, color=colors.black, role=""):
        font = font or self.t.font
        size = size or self.t.body_font_pt
        w = width_of(text, font, size)
        self.text((self.t.page_width - w) / 2, text, font, size, color, role=role)

    def rule(self, x1, x2, color, width=None, y=None):
        y = self.cursor.y if y is None else y
        self.cursor.draw(LineOp(x1, y, x2, y, color, width or self.t.rule_width_pt))

    def gap(self):
        self.cursor.advance(self.t.section_gap_pt)

    # -----------------------------
    # Sections, in print order
    # -----------------------------
    def run(self) -> list[Page]:
        self.header()
        self.accent_rule()
        self.metadata()
        self.party()
        self.items_table()
        self.totals()
        self.notes()
        self.qr_block()
        self.footer()
        return self.cursor.seal()

    def header(self):
        t = self.t
        top = self.cursor.top
        logo_h = 0.0
        if self.logo is not None:
            fitted = self.logo.fitted(t.logo_max_width, t.logo_max_height)
            logo_h = fitted.target_height
            self.cursor.draw(ImageOp(
                fitted, t.content_left, top - logo_h, fitted.target_width, logo_h, role="logo",
            ))

        y = top - t.header_font_pt
        self.right_text(t.content_right, self.spec.tenant.business_name, t.font_bold, t.header_font_pt, y=y, role="business_name")
        text_h = t.header_font_pt
        for ln in self.spec.tenant.contact_lines():
            y -= t.line_height_pt
            text_h += t.line_height_pt
            self.right_text(t.content_right, ln, y=y, role="contact")

        self.cursor.y = top - max(logo_h, text_h) - t.section_gap_pt

    def accent_rule(self):
        self.need(self.t.line_height_pt)
        self.rule(self.t.content_left, self.t.content_right, self.accent)
        self.cursor.advance(self.t.line_height_pt + 4)

    def metadata(self):
        t = self.t
        dates = [d for d in self.record.dates if (d.value or "").strip()]
        self.need(t.title_font_pt + 4 + len(dates) * t.line_height_pt)
        title = f"{self.record.kind.title} {self.record.number}".strip()
        self.right_text(t.content_right, title, t.font_bold, t.title_font_pt, self.brand, role="number")
        self.cursor.advance(t.title_font_pt + 4)
        for d in dates:
            self.right_text(t.content_right, f"{d.label}: {d.value}", role="date")
            self.cursor.advance(t.line_height_pt)
        self.gap()

    def party(self):
        t = self.t
        lines = self.spec.party.lines()
        if not lines:
            return
        self.need((len(lines) + 1) * t.line_height_pt)
        self.text(t.content_left, f"{self.record.kind.party_label}:", t.font_bold, t.label_font_pt, self.brand, role="party_label")
        self.cursor.advance(t.line_height_pt)
        for ln in lines:
            self.text(t.content_left, ln, size=t.body_font_pt + 1, role="party")
            self.cursor.advance(t.line_height_pt)
        self.gap()

    def table_header(self):
        t = self.t
        cols = t.column_offsets
        self.rule(t.content_left, t.content_right, self.accent)
        self.cursor.advance(t.line_height_pt)
        for x, label in ((cols.description, "Description"), (cols.qty, "Qty"), (cols.unit, "Unit"), (cols.total, "Total")):
            self.text(x, label, t.font_bold, t.body_font_pt, self.brand, role="table_header")
        self.cursor.advance(t.line_height_pt)

    def description_lines(self, description) -> list[str]:
        t = self.t
        if t.description_overflow == WRAP:
            return wrap_text(description, t.font, t.body_font_pt, t.description_width) or [""]
        return [truncate_text(description, t.font, t.body_font_pt, t.description_width)]

    def items_table(self):
        t = self.t
        cols = t.column_offsets
        cur = self.record.currency
        lh = t.line_height_pt
        # header plus at least one row stay together
        self.need(3 * lh)
        self.table_header()

        for item in self.spec.line_items:
            desc_lines = self.description_lines(item.description)
            if self.need(lh * len(desc_lines)):
                self.table_header()
            self.text(cols.description, desc_lines[0], role="item")
            self.text(cols.qty, format_qty(item.qty), role="item_cell")
            self.text(cols.unit, format_money(item.unit_price, cur), role="item_cell")
            self.text(cols.total, format_money(item.line_total, cur), role="item_cell")
            for i, extra in enumerate(desc_lines[1:], start=1):
                self.text(cols.description, extra, y=self.cursor.y - i * lh, role="item_cell")
            self.cursor.advance(lh * len(desc_lines))

    def totals(self):
        t = self.t
        lh = t.line_height_pt
        cur = self.record.currency
        self.need(6 + 4 * lh)
        self.cursor.advance(6)
        self.rule(t.totals_rule_left, t.content_right, colors.black)
        self.cursor.advance(lh)
        rows = (
            ("Subtotal", self.record.subtotal, False),
            ("Tax", self.record.tax_total, False),
            ("Total", self.record.total, True),
        )
        for label, value, bold in rows:
            font = t.font_bold if bold else t.font
            self.right_text(t.totals_label_right, label, font, role="totals_label")
            self.right_text(t.content_right, format_money(value, cur), font, role="totals_value")
            self.cursor.advance(lh)

    def notes(self):
        t = self.t
        raw = (self.record.notes or "").strip()
        if not raw:
            return
        body = []
        for para in raw.splitlines():
            body.extend(wrap_text(para, t.font, t.body_font_pt, t.content_width))
        if not body:
            return

        self.cursor.advance(10)
        self.need(2 * t.line_height_pt)
        self.center_text("Notes", t.font_bold, t.label_font_pt, self.brand, role="notes_title")
        self.cursor.advance(t.line_height_pt + 2)
        for ln in body:
            self.need(t.line_height_pt)
            self.center_text(ln, role="notes")
            self.cursor.advance(t.line_height_pt)

    def qr_block(self):
        if self.qr is None:
            return
        t = self.t
        fitted = self.qr.fitted(t.qr_size_pt, t.qr_size_pt)
        w, h = fitted.target_width, fitted.target_height
        self.gap()
        self.need(h + 2 * t.line_height_pt)
        self.cursor.draw(ImageOp(fitted, (t.page_width - w) / 2, self.cursor.y - h, w, h, role="qr"))
        self.cursor.advance(h + t.line_height_pt)
        self.center_text(self.record.kind.qr_caption, size=t.small_font_pt, color=MUTED, role="qr_caption")
        self.cursor.advance(t.line_height_pt)

    def footer(self):
        if not self.has_footer:
            return
        t = self.t
        # fixed offsets from the page bottom, independent of the cursor
        self.rule(t.content_left, t.content_right, MUTED, t.footer_rule_width_pt, y=t.footer_rule_offset)
        line = truncate_text(self.spec.tenant.footer_text.strip(), t.font, t.small_font_pt, t.content_width)
        self.text(t.content_left, line, size=t.small_font_pt, color=MUTED, y=t.footer_text_offset, role="footer")


class DocumentRenderer:
    def __init__(
        self,
        theme: LayoutTheme | None = None,
        loader: AssetLoader | None = None,
        on_soft_failure: Optional[SoftFailureHook] = None,
        parallel_fetch: bool = True,
    ):
        self.theme = theme or DEFAULT_THEME
        self.loader = loader or AssetLoader()
        self.on_soft_failure = on_soft_failure
        self.parallel_fetch = parallel_fetch

    # -----------------------------
    # Assets (soft failures end here)
    # -----------------------------
    def _absorb(self, kind: str, fetch, arg) -> Asset | None:
        try:
            return fetch(arg)
        except AssetLoadError as e:
            logger.warning("Skipping %s: %s", kind, e)
            if self.on_soft_failure is not None:
                self.on_soft_failure(kind, e.url, e)
            return None

    def fetch_assets(self, spec: DocumentSpec) -> tuple[Asset | None, Asset | None]:
        jobs = {}
        logo_url = (spec.tenant.logo_url or "").strip()
        if logo_url:
            jobs["logo"] = (self.loader.load, logo_url)
        if spec.qr_target:
            jobs["qr"] = (self.loader.load_qr, spec.qr_target)

        results: dict[str, Asset | None] = {}
        if self.parallel_fetch and len(jobs) > 1:
            with ThreadPoolExecutor(max_workers=2) as pool:
                futures = {k: pool.submit(self._absorb, k, fn, arg) for k, (fn, arg) in jobs.items()}
                results = {k: f.result() for k, f in futures.items()}
        else:
            for k, (fn, arg) in jobs.items():
                results[k] = self._absorb(k, fn, arg)
        return results.get("logo"), results.get("qr")

    def layout(self, spec: DocumentSpec, logo: Asset | None = None, qr: Asset | None = None) -> list[Page]:
        return _RenderPass(self.theme, spec, logo, qr).run()

    def render(self, spec: DocumentSpec) -> RenderedDocument:
        """
        Lay out and serialize one document.
        Raises DocumentRenderError and nothing else.
        """
        title = f"{spec.record.kind.title.title()} {spec.record.number}".strip()
        try:
            logo, qr = self.fetch_assets(spec)
            pages = self.layout(spec, logo, qr)
            content = finalize(pages, title=title)
        except DocumentRenderError:
            raise
        except Exception as e:
            logger.exception("Render failed for %s", title)
            raise DocumentRenderError(f"render failed: {e}") from e

        logger.info("Rendered %s: %d page(s), %d bytes", title, len(pages), len(content))
        return RenderedDocument(content=content, pages=tuple(pages), title=title)


def render_document(spec: DocumentSpec, *, theme: LayoutTheme | None = None, loader: AssetLoader | None = None,
                    on_soft_failure: Optional[SoftFailureHook] = None) -> RenderedDocument:
    return DocumentRenderer(theme=theme, loader=loader, on_soft_failure=on_soft_failure).render(spec)
