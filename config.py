"""
Central configuration for the MAF card renderer.

Keep runtime-safe (no secrets in code). Deployment values come from the environment.
"""

import os
from pathlib import Path
from typing import Optional

_APP_DIR = Path(__file__).resolve().parent

# Verification link printed in the QR code: {base}/validar/{token}
DEFAULT_BASE_URL = "https://maf-card-system.vercel.app"
CARD_BASE_URL = os.environ.get("CARD_BASE_URL") or os.environ.get("NEXT_PUBLIC_APP_URL") or DEFAULT_BASE_URL

# Static assets
CARD_TEMPLATE_PATH = os.environ.get(
    "CARD_TEMPLATE_PATH", str(_APP_DIR / "assets" / "padrao_fundo_carteira.png")
)
CARD_FONT_REGULAR = os.environ.get("CARD_FONT_REGULAR", "")
CARD_FONT_BOLD = os.environ.get("CARD_FONT_BOLD", "")

# Photo storage (read-only boundary)
PHOTO_STORAGE_URL = os.environ.get("PHOTO_STORAGE_URL", "")
PHOTO_STORAGE_TOKEN = os.environ.get("PHOTO_STORAGE_TOKEN", "")
PHOTO_FETCH_TIMEOUT_S = float(os.environ.get("PHOTO_FETCH_TIMEOUT_S", "5"))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

# Raster card (template path)
RASTER_WIDTH = 1063
RASTER_HEIGHT = 591
RASTER_PHOTO_DIAMETER = 180
RASTER_PHOTO_CENTER_X_RATIO = 0.68
RASTER_QR_SIZE = 192
RASTER_QR_INSET = 232  # QR top-left at (W - inset, H - inset)
RASTER_DRAW_TEXT = os.environ.get("RASTER_DRAW_TEXT", "1") not in ("0", "false", "no")

# Vector card: credit-card proportions, 85.6mm x 53.98mm ~= 243 x 153 pt
PAGE_WIDTH = 243
PAGE_HEIGHT = 153
PANEL_SPLIT_RATIO = 0.55
GRADIENT_TOP = (0.16, 0.29, 0.36)
GRADIENT_BOTTOM = (0.40, 0.73, 0.73)
GRADIENT_STEPS = 100
GRADIENT_FILL = os.environ.get("GRADIENT_FILL", "strips")  # strips | native

VECTOR_QR_SOURCE_PX = 200
VECTOR_QR_SIZE_PT = 48
VECTOR_QR_MARGIN_PT = 15
VECTOR_QR_PADDING_PT = 4
VECTOR_PHOTO_SIZE_PT = 50
VECTOR_PHOTO_SOURCE_PX = 200
VECTOR_PHOTO_RING_PT = 3

# Text block (points, bottom-left origin)
TEXT_X = 25
BLACK = (0.0, 0.0, 0.0)
WHITE = (1.0, 1.0, 1.0)
CERTIFICATION_GRAY = (0.6, 0.6, 0.6)
CARD_NUMBER_GRAY = (0.5, 0.5, 0.5)


def require_base_url(value: Optional[str] = None) -> str:
    """Return the verification base URL without trailing slash, or fail loudly."""
    base = (value if value is not None else CARD_BASE_URL) or ""
    base = base.strip().rstrip("/")
    if not base:
        raise ValueError(
            "Missing verification base URL. Set CARD_BASE_URL (or NEXT_PUBLIC_APP_URL)."
        )
    return base
