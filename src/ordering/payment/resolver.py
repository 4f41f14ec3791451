"""PaymentPathResolver: what each payment method needs at checkout.

Cash on delivery needs nothing beyond the shipping address. A manual
payment needs a UPI payee (from the request, falling back to the store's
configured ``UPI_ID``) so the customer can be shown a QR code for the exact
order total. The customer later uploads a screenshot of the transfer.
"""

from dataclasses import dataclass

from ordering.config import Settings, get_settings
from ordering.payment.qr import get_renderer
from ordering.payment.qr.port import QrRenderer
from ordering.payment.upi import build_payment_uri, transaction_note, validate_payee
from ordering.pricing.engine import to_money

QR_UNAVAILABLE_NOTICE = "Payment screenshot required, QR unavailable"


@dataclass(frozen=True)
class PaymentIntent:
    payee: str
    amount: float
    transaction_note: str
    payment_uri: str
    image: str


class PaymentPathResolver:
    def __init__(self, renderer: QrRenderer | None = None, settings: Settings | None = None):
        self._renderer = renderer
        self._settings = settings

    @property
    def renderer(self) -> QrRenderer:
        return self._renderer or get_renderer()

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    @staticmethod
    def requires_screenshot(payment_method) -> bool:
        return payment_method == "manual_payment"

    def resolve_payee(self, payment_details=None) -> str:
        upi_id = (payment_details or {}).get("upi_id")
        return validate_payee(upi_id or self.settings.upi_id)

    def prepare(self, payment_method, total_amount, payment_details=None) -> PaymentIntent | None:
        """Build the payment intent for ``payment_method``.

        Returns None for cash on delivery. For manual payments raises
        ``MissingPayee``/``InvalidPayeeFormat`` when no usable payee exists
        and ``QrGenerationFailed`` when the code cannot be rendered.
        """
        if not self.requires_screenshot(payment_method):
            return None

        settings = self.settings
        payee = self.resolve_payee(payment_details)
        amount = float(to_money(total_amount))
        note = transaction_note(settings.store_name)
        payment_uri = build_payment_uri(payee, amount, note)
        image = self.renderer.render(payment_uri, width=settings.qr_width, margin=settings.qr_margin)

        return PaymentIntent(
            payee=payee,
            amount=amount,
            transaction_note=note,
            payment_uri=payment_uri,
            image=image,
        )
