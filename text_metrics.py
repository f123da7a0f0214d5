# text_metrics.py
import math
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext

from reportlab.pdfbase.pdfmetrics import stringWidth

ELLIPSIS = "..."


def width_of(text, font: str, size: float) -> float:
    return stringWidth(str(text or ""), font, size)


def wrap_text(text, font: str, size: float, max_width: float) -> list[str]:
    """
    Greedy word wrap on font metrics.

    Words are never split: a word wider than max_width gets a line of its own.
    Empty or whitespace-only input gives no lines at all.
    """
    words = str(text or "").split()
    lines = []
    current = ""
    for w in words:
        test = current + (" " if current else "") + w
        if not current or width_of(test, font, size) <= max_width:
            current = test
        else:
            lines.append(current)
            current = w
    if current:
        lines.append(current)
    return lines


def truncate_text(text, font: str, size: float, max_width: float) -> str:
    """Cut a single line down to max_width, marking the cut with '...'."""
    raw = str(text or "")
    if width_of(raw, font, size) <= max_width:
        return raw
    budget = max_width - width_of(ELLIPSIS, font, size)
    lo, hi = 0, len(raw)
    fit = 0
    while lo <= hi:
        mid = (lo + hi) // 2
        if width_of(raw[:mid], font, size) <= budget:
            fit = mid
            lo = mid + 1
        else:
            hi = mid - 1
    return raw[:fit].rstrip() + ELLIPSIS


def to_decimal(x) -> Decimal:
    if isinstance(x, bool) or x is None:
        return Decimal(0)
    if isinstance(x, float) and not math.isfinite(x):
        return Decimal(0)
    try:
        d = Decimal(str(x).strip())
    except (InvalidOperation, ValueError):
        return Decimal(0)
    return d if d.is_finite() else Decimal(0)


# Wide enough for any finite float amount; longer inputs fall back to 0
MONEY_PRECISION = 400
CENTS = Decimal("0.01")


def round_cents(x) -> Decimal:
    d = to_decimal(x)
    with localcontext() as ctx:
        ctx.prec = MONEY_PRECISION
        try:
            amount = d.quantize(CENTS, rounding=ROUND_HALF_UP)
        except InvalidOperation:
            return Decimal("0.00")
    if amount == 0:
        amount = abs(amount)
    return amount


def format_money(x, currency: str | None = None) -> str:
    """
    Two decimals, optional trailing currency code ("123.00 EUR").
    Anything that is not a number renders as 0.00.
    """
    amount = round_cents(x)
    cur = str(currency or "").strip()
    with localcontext() as ctx:
        ctx.prec = MONEY_PRECISION
        text = f"{amount:.2f}"
    return f"{text} {cur}" if cur else text


def format_qty(x) -> str:
    d = to_decimal(x)
    if d == 0 or d.adjusted() > MONEY_PRECISION:
        return "0"
    if d == d.to_integral_value():
        return format(d.to_integral_value(), "f")
    return format(d.normalize(), "f")
