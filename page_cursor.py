# page_cursor.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from errors import DocumentRenderError


# -----------------------------
# Draw operations (replayed by pdf_serializer)
# -----------------------------
@dataclass(frozen=True)
class TextOp:
    x: float
    y: float
    text: str
    font: str
    size: float
    color: Any
    role: str = ""


@dataclass(frozen=True)
class LineOp:
    x1: float
    y1: float
    x2: float
    y2: float
    color: Any
    width: float = 1.0


@dataclass(frozen=True)
class ImageOp:
    asset: Any
    x: float
    y: float
    width: float
    height: float
    role: str = ""


DrawOp = Union[TextOp, LineOp, ImageOp]


@dataclass
class Page:
    width: float
    height: float
    margin: float
    y: Optional[float] = None
    ops: list = field(default_factory=list)
    sealed: bool = False

    def __post_init__(self):
        if self.y is None:
            self.y = self.top

    @property
    def top(self) -> float:
        return self.height - self.margin

    def add(self, op: DrawOp) -> None:
        if self.sealed:
            raise DocumentRenderError("write to a sealed page")
        self.ops.append(op)

    def texts(self, role: str | None = None) -> list[str]:
        return [
            op.text for op in self.ops
            if isinstance(op, TextOp) and (role is None or op.role == role)
        ]


class PageCursor:
    """
    Owns the page list for one render and the vertical write position.

    Pages live in a list with an index to the current one; a page that has
    been left behind is never written to again.
    """

    def __init__(self, width: float, height: float, margin: float):
        self.width = width
        self.height = height
        self.margin = margin
        self.pages: list[Page] = [self._blank()]
        self.index = 0
        self.sealed = False

    def _blank(self) -> Page:
        return Page(self.width, self.height, self.margin)

    @property
    def page(self) -> Page:
        return self.pages[self.index]

    @property
    def y(self) -> float:
        return self.page.y

    @y.setter
    def y(self, value: float) -> None:
        self.page.y = value

    @property
    def top(self) -> float:
        return self.height - self.margin

    @property
    def page_number(self) -> int:
        return self.index + 1

    def advance(self, amount: float) -> None:
        self.page.y -= amount

    def remaining(self) -> float:
        return self.page.y - self.margin

    def ensure_space(self, min_remaining: float) -> bool:
        """Start a new page if less than min_remaining is left. Returns True when it did."""
        if self.remaining() < min_remaining:
            self.new_page()
            return True
        return False

    def new_page(self) -> Page:
        if self.sealed:
            raise DocumentRenderError("cursor is sealed")
        self.pages.append(self._blank())
        self.index = len(self.pages) - 1
        return self.page

    def draw(self, op: DrawOp) -> None:
        if self.sealed:
            raise DocumentRenderError("cursor is sealed")
        self.page.add(op)

    def seal(self) -> list[Page]:
        for p in self.pages:
            p.sealed = True
        self.sealed = True
        return list(self.pages)
