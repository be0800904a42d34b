# shorttrack/utils/qr.py
from __future__ import annotations

import base64
from io import BytesIO

import qrcode


def qr_png(data: str, *, box_size: int = 6, border: int = 1) -> bytes:
    qr = qrcode.QRCode(box_size=box_size, border=border)
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    bio = BytesIO()
    img.save(bio, format="PNG")
    return bio.getvalue()


def qr_data_url(data: str) -> str:
    """PNG als data:-URL, direkt in <img src> verwendbar."""
    encoded = base64.b64encode(qr_png(data, box_size=8, border=2)).decode("ascii")
    return f"data:image/png;base64,{encoded}"
