"""QR renderer backed by segno (pure Python, no imaging dependency)."""

import math

import segno

from ordering.errors import QrGenerationFailed
from ordering.payment.qr.port import QrRenderer

# Medium error correction keeps codes readable off a phone screen
ERROR_CORRECTION = "m"


class SegnoQrRenderer(QrRenderer):
    def render(self, data: str, width: int, margin: int) -> str:
        try:
            qr = segno.make_qr(data, error=ERROR_CORRECTION)
            modules_wide, _ = qr.symbol_size(scale=1, border=margin)
            scale = max(1, math.ceil(width / modules_wide))
            return qr.png_data_uri(scale=scale, border=margin, dark="#000000", light="#ffffff")
        except ValueError as exc:
            raise QrGenerationFailed(f"Could not render payment QR code: {exc}") from exc
