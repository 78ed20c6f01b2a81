"""Error taxonomy for card rendering.

Fatal errors abort the render and reach the caller. Non-fatal errors only cost a
decorative region (photo, QR) and are turned into warnings by the engine.
"""


class CardRenderError(Exception):
    """Base class for every rendering failure."""


class TemplateLoadError(CardRenderError):
    """The raster background template could not be read or decoded."""


class FontEmbedError(CardRenderError):
    """A font could not be registered for the PDF document."""


class DocumentSerializationError(CardRenderError):
    """The PDF canvas could not be assembled or saved."""


class EncodeError(CardRenderError):
    """The final byte serialization step failed."""


class NonFatalRenderError(CardRenderError):
    """A failure that degrades the card instead of aborting it."""

    code = "render_degraded"

    def __init__(self, message: str, code: str = ""):
        super().__init__(message)
        if code:
            self.code = code


class PhotoUnavailable(NonFatalRenderError):
    code = "photo_unavailable"


class QrEncodingError(NonFatalRenderError):
    code = "qr_encoding_failed"
