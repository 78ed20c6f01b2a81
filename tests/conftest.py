from io import BytesIO

import pytest
from PIL import Image

from engine import CardRenderEngine
from errors import PhotoUnavailable
from models import CardRenderRequest
from raster import RasterCardRenderer
from vector import VectorCardRenderer

BASE_URL = "https://cards.example.org"
TEMPLATE_COLOR = (20, 60, 120)
PHOTO_COLOR = (220, 30, 30)


def png_bytes(img) -> bytes:
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


class MemoryPhotoSource:
    def __init__(self, photos=None):
        self.photos = dict(photos or {})
        self.calls = []

    def fetch(self, key):
        self.calls.append(key)
        if key not in self.photos:
            raise PhotoUnavailable(f"Photo not found: {key}", code="photo_not_found")
        return self.photos[key]


@pytest.fixture
def template_path(tmp_path):
    path = tmp_path / "template.png"
    Image.new("RGB", (1200, 800), TEMPLATE_COLOR).save(path)
    return str(path)


@pytest.fixture
def photo_source():
    return MemoryPhotoSource({"members/maria.png": png_bytes(Image.new("RGB", (300, 400), PHOTO_COLOR))})


@pytest.fixture
def card_engine(template_path, photo_source):
    return CardRenderEngine(
        base_url=BASE_URL,
        photo_source=photo_source,
        raster=RasterCardRenderer(template_path),
        vector=VectorCardRenderer(compress=False),
    )


@pytest.fixture
def maria():
    return CardRenderRequest(
        name="Maria Silva",
        cpf="123.456.789-00",
        card_number="MAF-ABC123",
        qr_token="deadbeef0123",
        photo_path=None,
        certification_date="2021-03-10",
    )
