#!/usr/bin/env python3
"""
MAF Card Renderer
Renders membership identity cards (PNG and/or PDF) for approved members,
either one card from command-line fields or a batch from CSV/Excel.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import config
from data_loaders import load_render_requests
from engine import FORMATS, CardRenderEngine
from errors import CardRenderError
from logging_config import setup_logging
from models import CardRenderRequest, RenderResult
from photos import HttpPhotoSource, LocalPhotoSource
from raster import RasterCardRenderer


class CardBatchGenerator:
    """Renders cards and writes them to an output directory."""

    def __init__(self, engine: CardRenderEngine, output_dir: str = "output", formats: Sequence[str] = FORMATS):
        self.engine = engine
        self.output_dir = Path(output_dir)
        self.formats = tuple(formats)

    def write_results(self, results: Dict[str, RenderResult]) -> List[Path]:
        self.output_dir.mkdir(exist_ok=True, parents=True)
        written = []
        for result in results.values():
            path = self.output_dir / result.filename
            path.write_bytes(result.content)
            written.append(path)
        return written

    def generate_one(self, request: CardRenderRequest) -> List[Path]:
        return self.write_results(self.engine.render(request, self.formats))

    def generate_all(self, requests: List[CardRenderRequest], max_workers: int = 4) -> int:
        """Render every request; returns the number of cards that failed fatally."""
        print(f"Found {len(requests)} members to render")
        failures = 0
        rendered = self.engine.render_many(requests, self.formats, max_workers=max_workers, raise_errors=False)

        for i, (req, results) in enumerate(zip(requests, rendered), 1):
            if isinstance(results, CardRenderError):
                print(f"Error generating card for {req.name}: {results}")
                failures += 1
                continue
            paths = self.write_results(results)
            degraded = sorted({w.region for r in results.values() for w in r.warnings})
            note = f" (without {', '.join(degraded)})" if degraded else ""
            print(f"Card {i}/{len(requests)}: {req.name} -> {', '.join(p.name for p in paths)}{note}")

        print(f"\nCompleted! Rendered {len(requests) - failures} of {len(requests)} cards in '{self.output_dir}'")
        return failures


def build_engine(
    *,
    template: Optional[str] = None,
    base_url: Optional[str] = None,
    photos_dir: Optional[str] = None,
    photos_url: Optional[str] = None,
) -> CardRenderEngine:
    photo_source = None
    if photos_dir:
        photo_source = LocalPhotoSource(photos_dir)
    elif photos_url or config.PHOTO_STORAGE_URL:
        photo_source = HttpPhotoSource(
            photos_url or config.PHOTO_STORAGE_URL,
            token=config.PHOTO_STORAGE_TOKEN,
            timeout_s=config.PHOTO_FETCH_TIMEOUT_S,
        )
    return CardRenderEngine(
        base_url=base_url,
        photo_source=photo_source,
        photo_timeout_s=config.PHOTO_FETCH_TIMEOUT_S,
        raster=RasterCardRenderer(template),
    )


def _formats(value: str) -> Sequence[str]:
    return FORMATS if value == "both" else (value,)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Render MAF membership cards (PNG and PDF)")
    parser.add_argument("--template", default=None, help="Background template image (default: CARD_TEMPLATE_PATH)")
    parser.add_argument("--base-url", default=None, help="Verification site root (default: CARD_BASE_URL)")
    parser.add_argument("--photos-dir", default=None, help="Read member photos from this directory")
    parser.add_argument("--photos-url", default=None, help="Read member photos from this storage URL")
    parser.add_argument("-o", "--output", default="output", help="Output directory (default: output)")
    parser.add_argument("-f", "--format", choices=("png", "pdf", "both"), default="both")
    parser.add_argument("--log-level", default=config.LOG_LEVEL)
    sub = parser.add_subparsers(dest="command", required=True)

    one = sub.add_parser("render", help="Render a single card")
    one.add_argument("--name", required=True)
    one.add_argument("--cpf", required=True)
    one.add_argument("--card-number", required=True)
    one.add_argument("--token", required=True, help="Validation token encoded in the QR link")
    one.add_argument("--photo", default=None, help="Photo storage key")
    one.add_argument("--certification-date", default=None, help="ISO date, e.g. 2021-03-10")

    batch = sub.add_parser("batch", help="Render every member in a CSV/Excel file")
    batch.add_argument("data", help="Path to Excel (.xlsx) or CSV with member data")
    batch.add_argument("--sheet", default="Sheet1")
    batch.add_argument("--workers", type=int, default=4)

    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    try:
        engine = build_engine(
            template=args.template,
            base_url=args.base_url,
            photos_dir=args.photos_dir,
            photos_url=args.photos_url,
        )
    except ValueError as e:
        print(f"Error: {e}")
        return 1
    generator = CardBatchGenerator(engine, args.output, _formats(args.format))

    if args.command == "render":
        try:
            request = CardRenderRequest(
                name=args.name,
                cpf=args.cpf,
                card_number=args.card_number,
                qr_token=args.token,
                photo_path=args.photo,
                certification_date=args.certification_date,
            )
            paths = generator.generate_one(request)
        except (ValueError, CardRenderError) as e:
            print(f"Error rendering card: {e}")
            return 1
        for p in paths:
            print(f"✓ {p}")
        return 0

    try:
        requests = load_render_requests(args.data, sheet=args.sheet)
    except (OSError, ValueError, ImportError) as e:
        print(f"Error reading member data: {e}")
        return 1
    failures = generator.generate_all(requests, max_workers=args.workers)
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
