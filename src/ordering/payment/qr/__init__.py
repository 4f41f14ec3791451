"""QR renderer factory.

Provides get_renderer() / set_renderer() to swap implementations:
- SegnoQrRenderer by default
- FakeQrRenderer for tests that need to control the outcome
"""

from ordering.payment.qr.port import QrRenderer
from ordering.payment.qr.segno_renderer import SegnoQrRenderer

_current_renderer: QrRenderer | None = None


def get_renderer() -> QrRenderer:
    global _current_renderer
    if _current_renderer is None:
        _current_renderer = SegnoQrRenderer()
    return _current_renderer


def set_renderer(renderer: QrRenderer) -> None:
    global _current_renderer
    _current_renderer = renderer


def reset_renderer() -> None:
    global _current_renderer
    _current_renderer = None
