"""
Vertical colour ramps for the right-hand panel of the PDF card.

Two interchangeable fills: thin flat strips (works with any PDF viewer) or the
native shading operator of reportlab's canvas.
"""

from typing import List, Tuple

Color = Tuple[float, float, float]


def lerp_color(start: Color, end: Color, ratio: float) -> Color:
    return tuple(s + (e - s) * ratio for s, e in zip(start, end))  # type: ignore[return-value]


class GradientFill:
    """Paint a top-to-bottom ramp inside the rectangle (x, y, w, h)."""

    def fill(self, c, x: float, y: float, w: float, h: float, top: Color, bottom: Color) -> None:
        raise NotImplementedError


class StripGradientFill(GradientFill):
    def __init__(self, steps: int = 100):
        if steps < 1:
            raise ValueError("steps must be >= 1")
        self.steps = steps

    def strip_colors(self, top: Color, bottom: Color) -> List[Color]:
        return [lerp_color(top, bottom, i / self.steps) for i in range(self.steps)]

    def fill(self, c, x, y, w, h, top, bottom):
        strip_h = h / self.steps
        for i, color in enumerate(self.strip_colors(top, bottom)):
            c.setFillColorRGB(*color)
            # +1 overlap hides hairline seams between strips
            c.rect(x, y + h - (i + 1) * strip_h, w, strip_h + 1, fill=1, stroke=0)


class NativeGradientFill(GradientFill):
    def fill(self, c, x, y, w, h, top, bottom):
        from reportlab.lib.colors import Color as RLColor

        c.saveState()
        path = c.beginPath()
        path.rect(x, y, w, h)
        c.clipPath(path, stroke=0, fill=0)
        c.linearGradient(x, y + h, x, y, (RLColor(*top), RLColor(*bottom)), extend=False)
        c.restoreState()


def gradient_fill_for(name: str, steps: int = 100) -> GradientFill:
    name = (name or "strips").strip().lower()
    if name == "native":
        return NativeGradientFill()
    if name == "strips":
        return StripGradientFill(steps)
    raise ValueError(f"Unknown gradient fill: {name!r} (expected 'strips' or 'native')")
