"""Fake QR renderer for development and testing.

Returns a recognisable data URI without encoding anything, and can be told
to fail so degraded checkout paths can be exercised.
"""

from ordering.errors import QrGenerationFailed
from ordering.payment.qr.port import QrRenderer


class FakeQrRenderer(QrRenderer):
    def __init__(self):
        self.should_succeed = True
        self.failure_reason = "QR rendering unavailable"
        self.calls: list[dict] = []

    def configure(self, should_succeed=True, failure_reason=None):
        self.should_succeed = should_succeed
        if failure_reason:
            self.failure_reason = failure_reason

    def render(self, data: str, width: int, margin: int) -> str:
        self.calls.append({"data": data, "width": width, "margin": margin})
        if not self.should_succeed:
            raise QrGenerationFailed(self.failure_reason)
        return f"data:image/png;base64,FAKE-{width}x{width}"

    def reset(self):
        self.should_succeed = True
        self.failure_reason = "QR rendering unavailable"
        self.calls.clear()
