# errors.py


class RenderingError(Exception):
    pass


class AssetLoadError(RenderingError):
    """
    A logo or QR image could not be fetched or decoded.
    Always absorbed by the renderer: the section is drawn without the image.
    """

    def __init__(self, url: str, reason: str):
        super().__init__(f"{reason} ({url})")
        self.url = url
        self.reason = reason


class DocumentRenderError(RenderingError):
    """The only error render_document() lets escape to its caller."""
