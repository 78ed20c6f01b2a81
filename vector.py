"""
Vector (PDF) card renderer.

Credit-card sized page: white text panel on the left, colour ramp on the right,
simplified circular photo in the middle and the QR code bottom-right.
"""

from __future__ import annotations

import logging
import threading
from io import BytesIO
from pathlib import Path
from typing import Dict, Optional

import config
from errors import CardRenderError, DocumentSerializationError, EncodeError, FontEmbedError
from gradients import GradientFill, gradient_fill_for
from models import BOLD, REGULAR, CardModel, CardRenderer

logger = logging.getLogger(__name__)

STANDARD_FONTS = {REGULAR: "Helvetica", BOLD: "Helvetica-Bold"}

_font_lock = threading.Lock()


def register_fonts(regular_path: str = "", bold_path: str = "") -> Dict[str, str]:
    """
    Make both font weights available to reportlab and return their names.

    With no paths the built-in Helvetica pair is used. TrueType files are
    registered once per process (registration is global in pdfmetrics).
    """
    from reportlab.pdfbase import pdfmetrics
    from reportlab.pdfbase.ttfonts import TTFont

    if not regular_path and not bold_path:
        names = dict(STANDARD_FONTS)
    elif regular_path and bold_path:
        names = {}
        with _font_lock:
            for weight, path in ((REGULAR, regular_path), (BOLD, bold_path)):
                name = f"MAF-{weight}-{Path(path).stem}"
                if name not in pdfmetrics.getRegisteredFontNames():
                    try:
                        pdfmetrics.registerFont(TTFont(name, path))
                    except Exception as e:
                        raise FontEmbedError(f"Could not embed {weight} font {path}: {e}") from e
                    logger.info("Registered %s font %s as %s", weight, path, name)
                names[weight] = name
    else:
        raise FontEmbedError("Both CARD_FONT_REGULAR and CARD_FONT_BOLD must be set to embed custom fonts")

    for name in names.values():
        try:
            pdfmetrics.getFont(name)
        except Exception as e:
            raise FontEmbedError(f"Font {name} is not available: {e}") from e
    return names


class VectorCardRenderer(CardRenderer):
    """Draws the card with reportlab primitives and serializes a one-page PDF."""

    media_type = "application/pdf"
    extension = "pdf"

    def __init__(
        self,
        *,
        gradient_fill: Optional[GradientFill] = None,
        font_regular: Optional[str] = None,
        font_bold: Optional[str] = None,
        compress: bool = True,
    ):
        self.gradient_fill = gradient_fill or gradient_fill_for(config.GRADIENT_FILL, config.GRADIENT_STEPS)
        self.font_regular = font_regular if font_regular is not None else config.CARD_FONT_REGULAR
        self.font_bold = font_bold if font_bold is not None else config.CARD_FONT_BOLD
        self.compress = compress
        self.photo_diameter = config.VECTOR_PHOTO_SOURCE_PX
        self.qr_size = config.VECTOR_QR_SOURCE_PX

    def render(self, model: CardModel, photo=None, qr=None) -> bytes:
        from reportlab.pdfgen import canvas

        fonts = register_fonts(self.font_regular, self.font_bold)

        buf = BytesIO()
        try:
            c = canvas.Canvas(
                buf,
                pagesize=(model.width, model.height),
                invariant=1,
                pageCompression=1 if self.compress else 0,
            )
            self._draw_background(c, model, fonts)
            if photo is not None:
                self._draw_photo(c, model, photo)
            self._draw_texts(c, model, fonts)
            if qr is not None:
                self._draw_qr(c, model, qr)
            c.showPage()
            c.save()
        except MemoryError as e:
            raise EncodeError(f"Out of memory while writing PDF card: {e}") from e
        except CardRenderError:
            raise
        except Exception as e:
            raise DocumentSerializationError(f"Could not build PDF card: {e}") from e
        return buf.getvalue()

    def _draw_background(self, c, model: CardModel, fonts: Dict[str, str]) -> None:
        w, h = model.width, model.height
        split = w * config.PANEL_SPLIT_RATIO

        c.setFillColorRGB(*config.WHITE)
        c.rect(0, 0, split, h, fill=1, stroke=0)
        self.gradient_fill.fill(c, split, 0, w - split, h, config.GRADIENT_TOP, config.GRADIENT_BOTTOM)

        c.setFont(fonts[REGULAR], 16)
        c.setFillColorRGB(*config.WHITE)
        c.drawString(w - 38, h - 20, "maf")

    def _draw_photo(self, c, model: CardModel, photo) -> None:
        from reportlab.lib.utils import ImageReader

        size = config.VECTOR_PHOTO_SIZE_PT
        cx, cy = model.width / 2, model.height / 2
        c.setFillColorRGB(*config.WHITE)
        c.circle(cx, cy, size / 2 + config.VECTOR_PHOTO_RING_PT, fill=1, stroke=0)
        c.drawImage(ImageReader(photo), cx - size / 2, cy - size / 2, size, size, mask="auto")

    def _draw_texts(self, c, model: CardModel, fonts: Dict[str, str]) -> None:
        for run in model.texts:
            c.setFont(fonts[run.weight], run.size)
            c.setFillColorRGB(*run.color)
            c.drawString(run.x, run.y, run.text)

    def _draw_qr(self, c, model: CardModel, qr) -> None:
        from reportlab.lib.utils import ImageReader

        size = config.VECTOR_QR_SIZE_PT
        pad = config.VECTOR_QR_PADDING_PT
        x = model.width - size - config.VECTOR_QR_MARGIN_PT
        y = config.VECTOR_QR_MARGIN_PT
        c.setFillColorRGB(*config.WHITE)
        c.rect(x - pad, y - pad, size + 2 * pad, size + 2 * pad, fill=1, stroke=0)
        c.drawImage(ImageReader(qr), x, y, size, size)
