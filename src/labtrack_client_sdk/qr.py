"""QR rasterizer: label payload text to PNG bytes.

Pure and synchronous. The module matrix comes from ``qrcode``; Pillow scales
it to the requested square and encodes the PNG that is attached to print
requests.
"""
from __future__ import annotations

import io

import qrcode
from PIL import Image
from qrcode.exceptions import DataOverflowError

from .exceptions import QrRenderError

DEFAULT_QR_SIZE = 240
DEFAULT_QR_MARGIN = 0
PNG_CONTENT_TYPE = "image/png"


def qr_matrix(text: str, margin: int = DEFAULT_QR_MARGIN) -> list[list[bool]]:
    """Module matrix (True = dark) including ``margin`` quiet-zone modules."""
    if not text:
        raise QrRenderError(code="QR_EMPTY_PAYLOAD", message="QR payload must not be empty")
    if margin < 0:
        raise QrRenderError(code="QR_INVALID_MARGIN", message=f"QR margin must be >= 0, got {margin}")
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=1,
        border=margin,
    )
    try:
        qr.add_data(text)
        qr.make(fit=True)
    except DataOverflowError as exc:
        raise QrRenderError(code="QR_PAYLOAD_TOO_LONG", message=str(exc) or "QR payload too long") from exc
    return [list(row) for row in qr.get_matrix()]


def render_qr_image(text: str, size: int = DEFAULT_QR_SIZE, margin: int = DEFAULT_QR_MARGIN) -> Image.Image:
    matrix = qr_matrix(text, margin)
    modules = len(matrix)
    if size < modules:
        raise QrRenderError(
            code="QR_SIZE_TOO_SMALL",
            message=f"QR needs at least {modules}px, got {size}px",
        )
    try:
        grid = Image.new("L", (modules, modules), 255)
        grid.putdata([0 if dark else 255 for row in matrix for dark in row])
        return grid.resize((size, size), Image.Resampling.NEAREST)
    except (OSError, ValueError, MemoryError) as exc:
        raise QrRenderError(code="QR_RENDER_FAILED", message=f"QR drawing failed: {exc}") from exc


def render_qr_png(text: str, size: int = DEFAULT_QR_SIZE, margin: int = DEFAULT_QR_MARGIN) -> bytes:
    image = render_qr_image(text, size, margin)
    buffer = io.BytesIO()
    try:
        image.save(buffer, format="PNG", optimize=False)
    except (OSError, ValueError) as exc:
        raise QrRenderError(code="QR_ENCODE_FAILED", message=f"PNG encoding failed: {exc}") from exc
    png = buffer.getvalue()
    if not png:
        raise QrRenderError(code="QR_ENCODE_FAILED", message="PNG encoder produced no bytes")
    return png
