"""
Member photo acquisition and circular masking.

Photo problems never block a card: every failure here surfaces as PhotoUnavailable,
which the engine turns into a warning and a photo-less card.
"""

from __future__ import annotations

import concurrent.futures
import logging
from io import BytesIO
from pathlib import Path
from typing import Optional, Protocol

from errors import PhotoUnavailable

logger = logging.getLogger(__name__)


class PhotoSource(Protocol):
    def fetch(self, key: str) -> bytes:
        ...


class LocalPhotoSource:
    """Photos stored on disk under a root directory, addressed by relative key."""

    def __init__(self, root: str):
        self.root = Path(root).resolve()

    def fetch(self, key: str) -> bytes:
        path = (self.root / key.lstrip("/")).resolve()
        if self.root not in path.parents:
            raise PhotoUnavailable(f"Photo key escapes storage root: {key!r}", code="photo_not_found")
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise PhotoUnavailable(f"Photo not found: {key}", code="photo_not_found") from e
        except OSError as e:
            raise PhotoUnavailable(f"Could not read photo {key}: {e}") from e


class HttpPhotoSource:
    """
    Photos served by an object-storage HTTP endpoint: GET {base_url}/{key}.

    Retry policy belongs to the caller; max_attempts defaults to a single try.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        timeout_s: float = 10,
        max_attempts: int = 1,
    ):
        self.base_url = (base_url or "").strip().rstrip("/")
        self.token = (token or "").strip()
        self.timeout_s = timeout_s
        self.max_attempts = max(1, int(max_attempts))

    def fetch(self, key: str) -> bytes:
        import requests

        url = f"{self.base_url}/{key.lstrip('/')}"
        headers = {"User-Agent": "maf-card-renderer/1.0"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        last_exc: Optional[Exception] = None
        for attempt in range(self.max_attempts):
            try:
                resp = requests.get(url, headers=headers, timeout=self.timeout_s)
            except requests.RequestException as e:
                last_exc = e
                logger.debug("Photo fetch attempt %d for %s failed: %s", attempt + 1, key, e)
                continue
            if resp.status_code == 404:
                raise PhotoUnavailable(f"Photo not found: {key}", code="photo_not_found")
            if resp.status_code != 200:
                last_exc = RuntimeError(f"HTTP {resp.status_code}")
                continue
            if not resp.content:
                raise PhotoUnavailable(f"Empty photo body for {key}")
            return resp.content
        raise PhotoUnavailable(f"Could not fetch photo {key}: {last_exc}")


def fetch_photo_with_timeout(source: PhotoSource, key: str, timeout_s: Optional[float]) -> bytes:
    """Fetch a photo, treating an expired bounded wait like a missing photo."""
    if not timeout_s:
        return source.fetch(key)
    pool = concurrent.futures.ThreadPoolExecutor(max_workers=1)
    future = pool.submit(source.fetch, key)
    try:
        return future.result(timeout=timeout_s)
    except concurrent.futures.TimeoutError as e:
        future.cancel()
        raise PhotoUnavailable(f"Photo fetch timed out after {timeout_s}s: {key}", code="photo_timeout") from e
    finally:
        # Don't wait for a hung fetch; its result is discarded.
        pool.shutdown(wait=False)


def decode_photo(data: bytes):
    """Decode raw bytes into an upright RGB image."""
    from PIL import Image, ImageOps

    try:
        img = Image.open(BytesIO(data))
        img.load()
        img = ImageOps.exif_transpose(img)
    except Exception as e:
        raise PhotoUnavailable(f"Could not decode photo: {e}", code="photo_decode_failed") from e
    if img.mode != "RGB":
        img = img.convert("RGB")
    return img


def make_circular_sprite(image, diameter: int):
    """
    Cut a photo into a circle of exactly `diameter` pixels.

    The source is cover-fitted (centre crop, no letterboxing), then a single-channel
    disk mask is applied destination-in: only pixels inside the disk keep alpha.

    Returns:
        RGBA image, transparent outside the inscribed circle
    """
    from PIL import Image, ImageChops, ImageDraw, ImageOps

    try:
        fitted = ImageOps.fit(image, (diameter, diameter), method=Image.Resampling.LANCZOS, centering=(0.5, 0.5))
        sprite = fitted.convert("RGBA")

        mask = Image.new("L", (diameter, diameter), 0)
        ImageDraw.Draw(mask).ellipse((0, 0, diameter - 1, diameter - 1), fill=255)

        alpha = ImageChops.multiply(sprite.getchannel("A"), mask)
        sprite.putalpha(alpha)
    except Exception as e:
        raise PhotoUnavailable(f"Could not mask photo: {e}", code="photo_mask_failed") from e
    return sprite
