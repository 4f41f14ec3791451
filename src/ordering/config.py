"""Storefront settings read from the environment.

Values are re-read on every call to ``get_settings()`` so a process (or a
test) can change them without restarting.
"""

import os
from dataclasses import dataclass

MIN_QR_WIDTH = 300


@dataclass(frozen=True)
class Settings:
    upi_id: str | None
    store_name: str
    tax_rate: float
    qr_width: int
    qr_margin: int
    max_upload_bytes: int


def get_settings() -> Settings:
    return Settings(
        upi_id=os.getenv("UPI_ID") or None,
        store_name=os.getenv("STORE_NAME", "VeggieStore"),
        tax_rate=float(os.getenv("TAX_RATE", "0.10")),
        qr_width=max(int(os.getenv("QR_WIDTH", "400")), MIN_QR_WIDTH),
        qr_margin=int(os.getenv("QR_MARGIN", "2")),
        max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024))),
    )
