# layout_theme.py
from __future__ import annotations

from dataclasses import dataclass, field

from reportlab.lib.pagesizes import A4

TRUNCATE = "truncate"
WRAP = "wrap"


@dataclass(frozen=True)
class ColumnOffsets:
    description: float = 50.0
    qty: float = 300.0
    unit: float = 360.0
    total: float = 450.0


@dataclass(frozen=True)
class LayoutTheme:
    """
    Every position and font size the renderer uses.
    Units are PDF points, origin bottom-left.
    """
    page_width: float = A4[0]
    page_height: float = A4[1]
    margin_pt: float = 50.0
    line_height_pt: float = 14.0

    font: str = "Helvetica"
    font_bold: str = "Helvetica-Bold"
    header_font_pt: float = 20.0
    title_font_pt: float = 14.0
    label_font_pt: float = 12.0
    body_font_pt: float = 10.0
    small_font_pt: float = 8.0

    column_offsets: ColumnOffsets = field(default_factory=ColumnOffsets)
    column_gap_pt: float = 8.0
    # "truncate" keeps one line per item, "wrap" grows the row instead
    description_overflow: str = TRUNCATE

    # Totals: labels end at this x, values end at the right margin
    totals_label_right: float = 440.0
    totals_rule_left: float = 350.0

    logo_max_width: float = 140.0
    logo_max_height: float = 60.0
    qr_size_pt: float = 96.0

    section_gap_pt: float = 12.0
    rule_width_pt: float = 1.0
    footer_rule_width_pt: float = 0.5
    # Footer text baseline and rule, measured up from the page bottom
    footer_text_offset: float = 30.0
    footer_rule_offset: float = 44.0

    @property
    def content_left(self) -> float:
        return self.margin_pt

    @property
    def content_right(self) -> float:
        return self.page_width - self.margin_pt

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * self.margin_pt

    @property
    def description_width(self) -> float:
        return self.column_offsets.qty - self.column_offsets.description - self.column_gap_pt

    @property
    def footer_reserve(self) -> float:
        # Room kept free above the bottom margin on pages that may carry the footer
        return max(0.0, self.footer_rule_offset + self.line_height_pt - self.margin_pt)


DEFAULT_THEME = LayoutTheme()
