"""QR payload encoding for the card verification link."""

import re

from errors import QrEncodingError

_URL_SAFE_TOKEN = re.compile(r"^[A-Za-z0-9._~-]+$")


def build_validation_url(base_url: str, token: str) -> str:
    """Return '{base_url}/validar/{token}'; the token must already be URL-safe."""
    token = (token or "").strip()
    if not _URL_SAFE_TOKEN.match(token):
        raise QrEncodingError(f"Validation token is not URL-safe: {token!r}")
    base = (base_url or "").strip().rstrip("/")
    return f"{base}/validar/{token}"


def encode_qr(payload: str, size_px: int):
    """
    Encode a payload as a square black-on-white QR bitmap.

    Medium error correction and a one-module quiet zone, scaled with
    nearest-neighbour so modules stay sharp.

    Args:
        payload: Text to encode (the verification URL)
        size_px: Output edge length in pixels

    Returns:
        PIL RGB image of exactly size_px x size_px
    """
    import qrcode
    from PIL import Image

    if not payload:
        raise QrEncodingError("Empty QR payload")
    try:
        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=1,
        )
        qr.add_data(payload)
        qr.make(fit=True)
        qr_img = qr.make_image(fill_color="black", back_color="white")
        get_img = getattr(qr_img, "get_image", None)
        if callable(get_img):
            qr_img = get_img()
        qr_img = qr_img.convert("RGB")
    except Exception as e:
        raise QrEncodingError(f"Could not encode QR payload: {e}") from e
    return qr_img.resize((size_px, size_px), Image.Resampling.NEAREST)
