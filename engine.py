"""
Card rendering engine: runs the raster and/or vector pipeline for one request.

Only the background template, fonts and final serialization are fatal. Photo and
QR problems are logged, recorded on the result as warnings, and the card is
rendered without that region.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional, Sequence, Union

import config
from errors import CardRenderError, NonFatalRenderError, PhotoUnavailable
from models import CardModel, CardRenderer, CardRenderRequest, RenderResult, RenderWarning, build_card_model
from photos import PhotoSource, decode_photo, fetch_photo_with_timeout, make_circular_sprite
from qr import encode_qr
from raster import RasterCardRenderer
from utils import card_filename
from vector import VectorCardRenderer

logger = logging.getLogger(__name__)

FORMATS = ("png", "pdf")


class CardRenderEngine:
    """Renders membership cards as PNG and PDF from a CardRenderRequest."""

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        photo_source: Optional[PhotoSource] = None,
        photo_timeout_s: Optional[float] = None,
        raster: Optional[RasterCardRenderer] = None,
        vector: Optional[VectorCardRenderer] = None,
    ):
        """
        Args:
            base_url: Verification site root; defaults to config.CARD_BASE_URL
            photo_source: Where photo keys are read from; None renders photo-less cards
            photo_timeout_s: Bounded wait for a photo fetch (None: wait indefinitely)
            raster: PNG renderer (default: template from config)
            vector: PDF renderer (default: gradient fill from config)
        """
        self.base_url = config.require_base_url(base_url)
        self.photo_source = photo_source
        self.photo_timeout_s = photo_timeout_s
        self.renderers: Dict[str, CardRenderer] = {
            "png": raster or RasterCardRenderer(),
            "pdf": vector or VectorCardRenderer(),
        }

    def build_model(self, request: CardRenderRequest) -> CardModel:
        return build_card_model(request, self.base_url)

    def render_png(self, request: CardRenderRequest) -> RenderResult:
        return self.render(request, ("png",))["png"]

    def render_pdf(self, request: CardRenderRequest) -> RenderResult:
        return self.render(request, ("pdf",))["pdf"]

    def render(self, request: CardRenderRequest, formats: Sequence[str] = FORMATS) -> Dict[str, RenderResult]:
        """Render the requested formats; the photo is fetched once and shared."""
        unknown = [f for f in formats if f not in self.renderers]
        if unknown:
            raise ValueError(f"Unknown card format(s): {unknown}")

        model = self.build_model(request)
        shared_warnings: List[RenderWarning] = []
        photo = self._load_photo(model, shared_warnings)

        results: Dict[str, RenderResult] = {}
        for fmt in formats:
            renderer = self.renderers[fmt]
            warnings = list(shared_warnings)
            sprite = self._prepare(
                "photo", lambda: make_circular_sprite(photo, renderer.photo_diameter), model, warnings
            ) if photo is not None else None
            qr = self._prepare("qr", lambda: encode_qr(model.qr_payload, renderer.qr_size), model, warnings)
            content = renderer.render(model, photo=sprite, qr=qr)
            results[fmt] = RenderResult(
                content=content,
                media_type=renderer.media_type,
                filename=card_filename(model.card_number, renderer.extension),
                warnings=warnings,
            )
            logger.info(
                "Rendered %s card %s (%d bytes, %d warning(s))",
                fmt, model.card_number, len(content), len(warnings),
            )
        return results

    def render_many(
        self,
        requests: Iterable[CardRenderRequest],
        formats: Sequence[str] = FORMATS,
        max_workers: int = 4,
        raise_errors: bool = True,
    ) -> List[Union[Dict[str, RenderResult], CardRenderError]]:
        """
        Render independent requests in parallel; results keep input order.

        With raise_errors=False a fatal failure of one card is returned in its slot
        instead of aborting the whole batch.
        """
        items = list(requests)
        if not items:
            return []

        def _one(req: CardRenderRequest):
            try:
                return self.render(req, formats)
            except CardRenderError as e:
                if raise_errors:
                    raise
                logger.error("Card %s failed: %s", req.card_number, e)
                return e

        with ThreadPoolExecutor(max_workers=max(1, int(max_workers))) as pool:
            return list(pool.map(_one, items))

    def _load_photo(self, model: CardModel, warnings: List[RenderWarning]):
        if not model.photo_path:
            return None
        if self.photo_source is None:
            self._warn(warnings, "photo", "photo_unavailable", "No photo source configured", model)
            return None

        def _fetch():
            try:
                data = fetch_photo_with_timeout(self.photo_source, model.photo_path, self.photo_timeout_s)
            except PhotoUnavailable:
                raise
            except Exception as e:
                # Storage backends raise their own error types
                raise PhotoUnavailable(f"Photo fetch failed for {model.photo_path}: {e}") from e
            return decode_photo(data)

        return self._prepare("photo", _fetch, model, warnings)

    def _prepare(self, region: str, step, model: CardModel, warnings: List[RenderWarning]):
        """Run an optional-region step; a non-fatal failure yields None and a warning."""
        try:
            return step()
        except NonFatalRenderError as e:
            self._warn(warnings, region, e.code, str(e), model)
            return None

    @staticmethod
    def _warn(warnings: List[RenderWarning], region: str, code: str, message: str, model: CardModel) -> None:
        logger.warning("Card %s rendered without %s: %s", model.card_number, region, message)
        warnings.append(RenderWarning(region=region, code=code, message=message))
