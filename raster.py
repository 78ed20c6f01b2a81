"""
Raster (PNG) card renderer: template background, circular photo, QR, text.
"""

from __future__ import annotations

import functools
import logging
import os
from io import BytesIO
from pathlib import Path
from typing import Optional, Tuple

import config
from errors import EncodeError, TemplateLoadError
from models import BOLD, CardModel, CardRenderer

logger = logging.getLogger(__name__)

_APP_DIR = Path(__file__).resolve().parent

_REGULAR_FONT_CANDIDATES = [
    str(_APP_DIR / "assets" / "fonts" / "Montserrat-Regular.ttf"),
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/System/Library/Fonts/Supplemental/Arial.ttf",
    "/Library/Fonts/Arial.ttf",
]
_BOLD_FONT_CANDIDATES = [
    str(_APP_DIR / "assets" / "fonts" / "Montserrat-Bold.ttf"),
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/System/Library/Fonts/Supplemental/Arial Bold.ttf",
    "/Library/Fonts/Arial Bold.ttf",
]


@functools.lru_cache(maxsize=8)
def load_template(path: str, width: int, height: int):
    """
    Load the card template once per (path, size) and cover-fit it to the canvas.

    The cached image is shared across renders; callers must copy before drawing.
    """
    from PIL import Image, ImageOps

    try:
        with Image.open(path) as src:
            src.load()
            img = src.convert("RGBA")
    except (FileNotFoundError, OSError, ValueError) as e:
        raise TemplateLoadError(f"Could not load card template {path}: {e}") from e
    fitted = ImageOps.fit(img, (width, height), method=Image.Resampling.LANCZOS, centering=(0.5, 0.5))
    logger.info("Loaded card template %s (%dx%d -> %dx%d)", path, img.width, img.height, width, height)
    return fitted


@functools.lru_cache(maxsize=32)
def _load_font(weight: str, size_px: int, regular_path: str = "", bold_path: str = ""):
    """Load a TrueType font for a weight, falling back to Pillow's built-in font."""
    from PIL import ImageFont

    preferred = bold_path if weight == BOLD else regular_path
    candidates = [preferred] if preferred else []
    candidates += _BOLD_FONT_CANDIDATES if weight == BOLD else _REGULAR_FONT_CANDIDATES
    for path in candidates:
        if path and os.path.exists(path):
            try:
                return ImageFont.truetype(path, size_px)
            except OSError:
                logger.debug("Skipping unreadable font %s", path)
    return ImageFont.load_default(size=size_px)


def _rgb255(color: Tuple[float, float, float]) -> Tuple[int, int, int]:
    return tuple(int(round(c * 255)) for c in color)  # type: ignore[return-value]


def photo_origin(width: int, height: int, diameter: int) -> Tuple[int, int]:
    """Top-left corner of the photo sprite centred at (0.68*W, H/2)."""
    cx = width * config.RASTER_PHOTO_CENTER_X_RATIO
    cy = height / 2
    return int(cx - diameter / 2), int(cy - diameter / 2)


def qr_origin(width: int, height: int) -> Tuple[int, int]:
    return width - config.RASTER_QR_INSET, height - config.RASTER_QR_INSET


class RasterCardRenderer(CardRenderer):
    """Composites the card on a fixed-size template and encodes it as PNG."""

    media_type = "image/png"
    extension = "png"

    def __init__(
        self,
        template_path: Optional[str] = None,
        *,
        width: int = config.RASTER_WIDTH,
        height: int = config.RASTER_HEIGHT,
        draw_text: bool = config.RASTER_DRAW_TEXT,
        font_regular: Optional[str] = None,
        font_bold: Optional[str] = None,
    ):
        self.template_path = str(template_path or config.CARD_TEMPLATE_PATH)
        self.width = width
        self.height = height
        self.draw_text = draw_text
        self.font_regular = font_regular if font_regular is not None else config.CARD_FONT_REGULAR
        self.font_bold = font_bold if font_bold is not None else config.CARD_FONT_BOLD
        self.photo_diameter = config.RASTER_PHOTO_DIAMETER
        self.qr_size = config.RASTER_QR_SIZE

    def load_background(self):
        return load_template(self.template_path, self.width, self.height).copy()

    def compose(self, model: CardModel, photo=None, qr=None):
        """Build the RGBA canvas; photo is an RGBA sprite, qr an RGB bitmap."""
        card = self.load_background()

        if photo is not None:
            card.alpha_composite(photo.convert("RGBA"), dest=photo_origin(self.width, self.height, photo.width))
        if qr is not None:
            card.paste(qr.convert("RGBA"), qr_origin(self.width, self.height))
        if self.draw_text:
            self._draw_texts(card, model)
        return card

    def _draw_texts(self, card, model: CardModel) -> None:
        from PIL import ImageDraw, ImageFont

        draw = ImageDraw.Draw(card)
        sx = self.width / model.width
        sy = self.height / model.height
        for run in model.texts:
            font = _load_font(run.weight, max(1, int(round(run.size * sy))), self.font_regular, self.font_bold)
            x = run.x * sx
            y = self.height - run.y * sy
            if isinstance(font, ImageFont.FreeTypeFont):
                draw.text((x, y), run.text, font=font, fill=_rgb255(run.color), anchor="ls")
            else:
                # Bitmap fonts have no baseline anchor
                draw.text((x, y - run.size * sy), run.text, font=font, fill=_rgb255(run.color))

    def render(self, model: CardModel, photo=None, qr=None) -> bytes:
        card = self.compose(model, photo=photo, qr=qr)
        buf = BytesIO()
        try:
            card.convert("RGB").save(buf, format="PNG")
        except (OSError, ValueError, MemoryError) as e:
            raise EncodeError(f"Could not encode PNG card: {e}") from e
        return buf.getvalue()
