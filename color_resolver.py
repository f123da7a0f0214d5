# color_resolver.py
import re

from reportlab.lib import colors

# Fallbacks when a tenant has no (or a broken) branding token
DEFAULT_BRAND_COLOR = colors.HexColor("#3b6b5c")
DEFAULT_ACCENT_COLOR = colors.HexColor("#cccccc")

_HEX_RE = re.compile(r"[0-9a-fA-F]+")


def resolve_color(token, fallback=DEFAULT_BRAND_COLOR):
    """
    Parse a "#RGB" / "#RRGGBB" token (leading # optional, any case).
    Anything else returns `fallback`; this never raises.
    """
    if not isinstance(token, str):
        return fallback
    raw = token.strip()
    if raw.startswith("#"):
        raw = raw[1:]
    if len(raw) not in (3, 6) or not _HEX_RE.fullmatch(raw):
        return fallback
    if len(raw) == 3:
        raw = "".join(ch * 2 for ch in raw)
    return colors.HexColor(f"#{raw.lower()}")
