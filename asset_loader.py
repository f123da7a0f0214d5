# asset_loader.py
from __future__ import annotations

import io
import logging
from dataclasses import dataclass, replace
from typing import Callable

import requests
from PIL import Image, UnidentifiedImageError

from config import Config
from errors import AssetLoadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Asset:
    """A decoded image, sized for one placement on one render."""
    image: Image.Image
    data: bytes
    format: str
    width: int
    height: int
    target_width: float = 0.0
    target_height: float = 0.0

    def fitted(self, max_w: float, max_h: float) -> "Asset":
        w, h = fit_within(self, max_w, max_h)
        return replace(self, target_width=w, target_height=h)


def fit_within(asset: Asset, max_w: float, max_h: float) -> tuple[float, float]:
    # never enlarges: scale is capped at 1
    iw = float(asset.width)
    ih = float(asset.height)
    if iw <= 0 or ih <= 0:
        return 0.0, 0.0
    scale = min(max_w / iw, max_h / ih, 1.0)
    scale = max(scale, 0.0)
    return iw * scale, ih * scale


def _pillow_decoder(fmt: str) -> Callable[[bytes], Image.Image]:
    def decode(data: bytes) -> Image.Image:
        img = Image.open(io.BytesIO(data), formats=[fmt])
        img.load()
        return img
    decode.format = fmt
    return decode


# Tried in order; the format named by the response Content-Type goes first.
DEFAULT_DECODERS = (
    _pillow_decoder("PNG"),
    _pillow_decoder("JPEG"),
)

_CONTENT_TYPE_FORMATS = {
    "image/png": "PNG",
    "image/jpeg": "JPEG",
    "image/jpg": "JPEG",
    "image/pjpeg": "JPEG",
}


class AssetLoader:
    def __init__(self, *, timeout: float | None = None, decoders=DEFAULT_DECODERS,
                 qr_service_url: str | None = None, http=None):
        self.timeout = Config.ASSET_FETCH_TIMEOUT if timeout is None else timeout
        self.decoders = tuple(decoders)
        self.qr_service_url = qr_service_url or Config.QR_SERVICE_URL
        # requests module or a requests.Session
        self.http = http or requests

    def load(self, url: str, params: dict | None = None) -> Asset:
        """
        Fetch and decode an image.
        Raises AssetLoadError on any transport, status or decode problem.
        """
        if not (url or "").strip():
            raise AssetLoadError(url or "", "empty url")
        try:
            r = self.http.get(url, params=params, timeout=self.timeout)
        except requests.Timeout as e:
            raise AssetLoadError(url, f"timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise AssetLoadError(url, f"fetch failed: {type(e).__name__}") from e

        if not (200 <= r.status_code < 300):
            raise AssetLoadError(url, f"HTTP {r.status_code}")
        content = r.content or b""
        if not content:
            raise AssetLoadError(url, "empty response body")

        ctype = (r.headers.get("Content-Type") or "").split(";")[0].strip().lower()
        return self.decode(content, url=url, content_type=ctype)

    def decode(self, content: bytes, *, url: str = "", content_type: str = "") -> Asset:
        hinted = _CONTENT_TYPE_FORMATS.get(content_type)
        ordered = sorted(self.decoders, key=lambda d: getattr(d, "format", None) != hinted)
        tried = []
        for decoder in ordered:
            fmt = getattr(decoder, "format", "?")
            try:
                img = decoder(content)
            except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, SyntaxError) as e:
                tried.append(fmt)
                logger.debug("Decoder %s rejected %s: %s", fmt, url, e)
                continue
            w, h = img.size
            return Asset(image=img, data=content, format=fmt, width=w, height=h)
        raise AssetLoadError(url, f"undecodable image (tried {', '.join(tried) or 'nothing'})")

    def qr_params(self, target: str, size: int | None = None) -> dict:
        px = int(size or Config.QR_IMAGE_SIZE)
        return {"size": f"{px}x{px}", "data": target}

    def load_qr(self, target: str, size: int | None = None) -> Asset:
        """Ask the external QR service to render `target` and load the result like a logo."""
        if not (target or "").strip():
            raise AssetLoadError(self.qr_service_url, "empty QR target")
        return self.load(self.qr_service_url, params=self.qr_params(target, size))
