"""PricingEngine: turns cart lines into priced, snapshot line items.

Prices are read from the live catalogue exactly once, here, and copied onto
the order. The order total is the plain sum of ``quantity * unit_price``.
Tax is a display figure derived from that total on demand and never stored.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from ordering.config import get_settings
from ordering.stock.ledger import StockLedger, StockLine

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PricedLine:
    product_id: str
    product_name: str
    quantity: int
    unit_price: float

    @property
    def line_total(self) -> Decimal:
        return to_money(self.unit_price) * self.quantity


@dataclass(frozen=True)
class PricedOrder:
    lines: tuple[PricedLine, ...]
    total_amount: float

    def stock_lines(self) -> list[StockLine]:
        return [StockLine(line.product_id, line.quantity) for line in self.lines]


def total_of(lines) -> float:
    """Sum ``quantity * unit_price`` over anything shaped like a line item."""
    return float(sum((to_money(line.unit_price) * line.quantity for line in lines), Decimal("0")))


def tax_for(total_amount, tax_rate=None) -> float:
    rate = get_settings().tax_rate if tax_rate is None else tax_rate
    return float(to_money(Decimal(str(total_amount)) * Decimal(str(rate))))


def grand_total_for(total_amount, tax_rate=None) -> float:
    return float(to_money(total_amount) + to_money(tax_for(total_amount, tax_rate)))


class PricingEngine:
    def __init__(self, ledger: StockLedger | None = None):
        self._ledger = ledger or StockLedger()

    def price(self, cart_items) -> PricedOrder:
        """Price ``cart_items`` (objects with ``product_id`` and ``quantity``).

        Raises ``ProductUnavailable``/``ProductInactive`` for missing or
        retired products and ``InsufficientStock`` when the stock check
        fails. Nothing is mutated.
        """
        stock_lines = [StockLine(str(item.product_id), item.quantity) for item in cart_items]
        products = self._ledger.check(stock_lines)

        lines = tuple(
            PricedLine(
                product_id=line.product_id,
                product_name=products[line.product_id].name,
                quantity=line.quantity,
                unit_price=float(to_money(products[line.product_id].price)),
            )
            for line in stock_lines
        )
        return PricedOrder(lines=lines, total_amount=total_of(lines))
