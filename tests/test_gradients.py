import pytest

from gradients import NativeGradientFill, StripGradientFill, gradient_fill_for, lerp_color

TOP = (0.16, 0.29, 0.36)
BOTTOM = (0.40, 0.73, 0.73)


class _RecordingCanvas:
    def __init__(self):
        self.fills = []
        self.rects = []

    def setFillColorRGB(self, r, g, b):
        self.fills.append((r, g, b))

    def rect(self, x, y, w, h, fill=0, stroke=1):
        self.rects.append((x, y, w, h))


def test_lerp_color_endpoints():
    assert lerp_color(TOP, BOTTOM, 0) == TOP
    assert lerp_color(TOP, BOTTOM, 1) == pytest.approx(BOTTOM)
    assert lerp_color(TOP, BOTTOM, 0.5) == pytest.approx((0.28, 0.51, 0.545))


def test_strip_colors_follow_linear_ramp():
    colors = StripGradientFill(100).strip_colors(TOP, BOTTOM)
    assert len(colors) == 100
    assert colors[0] == TOP
    assert colors[50] == pytest.approx((0.28, 0.51, 0.545))
    assert colors[99] == pytest.approx(tuple(s + (e - s) * 0.99 for s, e in zip(TOP, BOTTOM)))


def test_strip_fill_covers_panel_top_to_bottom():
    c = _RecordingCanvas()
    StripGradientFill(100).fill(c, 133.65, 0, 109.35, 153, TOP, BOTTOM)

    assert len(c.rects) == 100
    first, last = c.rects[0], c.rects[-1]
    assert first[1] == pytest.approx(153 - 1.53)
    assert last[1] == pytest.approx(0)
    assert all(r[0] == 133.65 and r[2] == 109.35 for r in c.rects)
    assert c.fills[0] == TOP


def test_strip_fill_requires_steps():
    with pytest.raises(ValueError):
        StripGradientFill(0)


def test_gradient_fill_for():
    assert isinstance(gradient_fill_for("strips", 120), StripGradientFill)
    assert gradient_fill_for("strips", 120).steps == 120
    assert isinstance(gradient_fill_for("NATIVE"), NativeGradientFill)
    with pytest.raises(ValueError):
        gradient_fill_for("radial")
