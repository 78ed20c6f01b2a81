"""
Data contract shared by the raster and vector card renderers.

A CardRenderRequest comes from the membership workflow; build_card_model turns it
into a CardModel (strings, fonts, colours, positions in points) that both
renderers draw from, so the PNG and the PDF cannot drift apart.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

import config
from qr import build_validation_url
from utils import format_cpf

logger = logging.getLogger(__name__)

Color = Tuple[float, float, float]

REGULAR = "regular"
BOLD = "bold"


@dataclass(frozen=True)
class CardRenderRequest:
    """Validated member record, supplied whole by the caller for a single render."""

    name: str
    cpf: str
    card_number: str
    qr_token: str
    photo_path: Optional[str] = None
    certification_date: Optional[str] = None

    def __post_init__(self):
        for attr in ("name", "cpf", "card_number", "qr_token"):
            value = getattr(self, attr)
            if value is None or not str(value).strip():
                raise ValueError(f"CardRenderRequest.{attr} is required")


@dataclass(frozen=True)
class TextRun:
    """One line of text; x/y are the baseline start in bottom-left point space."""

    text: str
    weight: str
    size: float
    color: Color
    x: float
    y: float


@dataclass
class RenderWarning:
    region: str
    code: str
    message: str


@dataclass
class RenderResult:
    """A rendered artifact plus the report of regions that had to be skipped."""

    content: bytes
    media_type: str
    filename: str
    warnings: List[RenderWarning] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.warnings)

    def has_warning(self, region: str) -> bool:
        return any(w.region == region for w in self.warnings)


@dataclass(frozen=True)
class CardModel:
    width: float
    height: float
    texts: Tuple[TextRun, ...]
    base_url: str
    qr_token: str
    card_number: str
    photo_path: Optional[str] = None

    @property
    def qr_payload(self) -> str:
        """Verification URL; raises QrEncodingError for unusable tokens."""
        return build_validation_url(self.base_url, self.qr_token)

    def text_strings(self) -> List[str]:
        return [t.text for t in self.texts]


class CardRenderer:
    """
    Turns a CardModel into output bytes.

    The engine prepares the optional regions at the sizes a renderer asks for
    (photo_diameter, qr_size in pixels) and passes None for any region it had to skip.
    """

    media_type = "application/octet-stream"
    extension = "bin"
    photo_diameter = 0
    qr_size = 0

    def render(self, model: CardModel, photo=None, qr=None) -> bytes:
        raise NotImplementedError


def certification_year(value: Optional[str]) -> Optional[int]:
    """Year of an ISO date/datetime string, or None when it cannot be read."""
    if not value or not str(value).strip():
        return None
    raw = str(value).strip()
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).year
    except ValueError:
        pass
    m = re.match(r"^(\d{4})\b", raw)
    if m:
        return int(m.group(1))
    logger.debug("Ignoring unreadable certification date %r", raw)
    return None


def build_card_model(request: CardRenderRequest, base_url: str) -> CardModel:
    """Lay out every text run of the card; the QR payload is resolved lazily."""
    width, height = float(config.PAGE_WIDTH), float(config.PAGE_HEIGHT)
    x = config.TEXT_X
    mid = height / 2

    texts = [TextRun(request.name.strip(), BOLD, 15, config.BLACK, x, mid + 30)]
    year = certification_year(request.certification_date)
    if year is not None:
        texts.append(
            TextRun(f"Habilitada desde {year}", REGULAR, 9, config.CERTIFICATION_GRAY, x, mid + 12)
        )
    texts.extend(
        [
            TextRun(format_cpf(request.cpf), REGULAR, 12, config.BLACK, x, mid - 6),
            TextRun("Código único:", BOLD, 7, config.BLACK, x, 35),
            TextRun(request.card_number.strip(), REGULAR, 8, config.CARD_NUMBER_GRAY, x, 22),
        ]
    )

    photo_path = (request.photo_path or "").strip() or None
    return CardModel(
        width=width,
        height=height,
        texts=tuple(texts),
        base_url=base_url,
        qr_token=request.qr_token.strip(),
        card_number=request.card_number.strip(),
        photo_path=photo_path,
    )
