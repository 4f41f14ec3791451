"""QR renderer port.

Renderers turn a payment-intent string into a scannable image. The order
lifecycle only ever talks to this interface.
"""

from abc import ABC, abstractmethod


class QrRenderer(ABC):
    @abstractmethod
    def render(self, data: str, width: int, margin: int) -> str:
        """Render ``data`` as a PNG data URI at least ``width`` pixels wide.

        Raises ``QrGenerationFailed`` when the payload cannot be encoded.
        """
        ...
