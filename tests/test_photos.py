import threading

import pytest
import requests
from PIL import Image

from conftest import png_bytes
from errors import PhotoUnavailable
from photos import (
    HttpPhotoSource,
    LocalPhotoSource,
    decode_photo,
    fetch_photo_with_timeout,
    make_circular_sprite,
)


def _striped(width=300, height=100):
    """Green | red | blue vertical thirds."""
    img = Image.new("RGB", (width, height), (0, 200, 0))
    img.paste((200, 0, 0), (width // 3, 0, 2 * width // 3, height))
    img.paste((0, 0, 200), (2 * width // 3, 0, width, height))
    return img


def test_sprite_has_exact_diameter_and_transparent_corners():
    sprite = make_circular_sprite(Image.new("RGB", (400, 300), (10, 20, 30)), 180)
    assert sprite.size == (180, 180)
    assert sprite.mode == "RGBA"
    for corner in [(0, 0), (179, 0), (0, 179), (179, 179), (10, 10), (170, 170)]:
        assert sprite.getpixel(corner)[3] == 0
    assert sprite.getpixel((90, 90))[3] == 255
    # disk touches the edges at the midpoints
    assert sprite.getpixel((1, 90))[3] == 255
    assert sprite.getpixel((90, 178))[3] == 255


def test_sprite_is_cover_fitted_from_centre():
    sprite = make_circular_sprite(_striped(), 100)
    # The middle third fills the whole circle: no letterbox, no side stripes.
    r, g, b, _ = sprite.getpixel((50, 50))
    assert r > 190 and g < 10 and b < 10
    r, g, b, a = sprite.getpixel((3, 50))
    assert a == 255 and r > 150 and g < 60


def test_sprite_respects_existing_transparency():
    src = Image.new("RGBA", (100, 100), (255, 0, 0, 0))
    sprite = make_circular_sprite(src, 50)
    assert sprite.getpixel((25, 25))[3] == 0


def test_decode_photo_converts_to_rgb():
    img = decode_photo(png_bytes(Image.new("L", (20, 10), 128)))
    assert img.mode == "RGB"
    assert img.size == (20, 10)


def test_decode_photo_rejects_garbage():
    with pytest.raises(PhotoUnavailable) as exc:
        decode_photo(b"not an image")
    assert exc.value.code == "photo_decode_failed"


def test_local_source_reads_and_reports_missing(tmp_path):
    (tmp_path / "members").mkdir()
    (tmp_path / "members" / "a.png").write_bytes(b"abc")
    source = LocalPhotoSource(str(tmp_path))

    assert source.fetch("members/a.png") == b"abc"
    with pytest.raises(PhotoUnavailable) as exc:
        source.fetch("members/missing.png")
    assert exc.value.code == "photo_not_found"


def test_local_source_rejects_keys_outside_root(tmp_path):
    (tmp_path / "secret.txt").write_bytes(b"x")
    root = tmp_path / "photos"
    root.mkdir()
    with pytest.raises(PhotoUnavailable):
        LocalPhotoSource(str(root)).fetch("../secret.txt")


class _FakeResp:
    def __init__(self, status_code, content=b""):
        self.status_code = status_code
        self.content = content


def test_http_source_fetches_with_token(monkeypatch):
    seen = {}

    def fake_get(url, headers=None, timeout=None):
        seen.update(url=url, headers=headers, timeout=timeout)
        return _FakeResp(200, b"jpeg-bytes")

    monkeypatch.setattr(requests, "get", fake_get)
    source = HttpPhotoSource("https://store.example/photos/", token="s3cret", timeout_s=3)

    assert source.fetch("/m/1.jpg") == b"jpeg-bytes"
    assert seen["url"] == "https://store.example/photos/m/1.jpg"
    assert seen["headers"]["Authorization"] == "Bearer s3cret"
    assert seen["timeout"] == 3


def test_http_source_not_found(monkeypatch):
    monkeypatch.setattr(requests, "get", lambda *a, **k: _FakeResp(404))
    with pytest.raises(PhotoUnavailable) as exc:
        HttpPhotoSource("https://store.example").fetch("m/1.jpg")
    assert exc.value.code == "photo_not_found"


def test_http_source_connection_error_after_attempts(monkeypatch):
    calls = []

    def failing_get(*a, **k):
        calls.append(1)
        raise requests.ConnectionError("boom")

    monkeypatch.setattr(requests, "get", failing_get)
    with pytest.raises(PhotoUnavailable):
        HttpPhotoSource("https://store.example", max_attempts=2).fetch("m/1.jpg")
    assert len(calls) == 2


def test_fetch_with_timeout_expires():
    release = threading.Event()

    class SlowSource:
        def fetch(self, key):
            release.wait(5)
            return b"late"

    try:
        with pytest.raises(PhotoUnavailable) as exc:
            fetch_photo_with_timeout(SlowSource(), "k", 0.05)
        assert exc.value.code == "photo_timeout"
    finally:
        release.set()


def test_fetch_with_timeout_passthrough():
    class Source:
        def fetch(self, key):
            return key.encode()

    assert fetch_photo_with_timeout(Source(), "abc", 1) == b"abc"
    assert fetch_photo_with_timeout(Source(), "abc", None) == b"abc"
