"""StockLedger: all-or-nothing reservation and restoration of product stock.

A reservation first validates every line (existence, active flag and
on-hand count, with duplicate lines for the same product summed) and only
then decrements. Nothing is written when any line fails, and the failure
reports every offending line at once.

Restoration is an unconditional re-increment. Whether an order's stock has
already been restored is tracked by the order's status, never here.
"""

from collections import OrderedDict
from dataclasses import dataclass

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.domain import logger
from ordering.errors import InsufficientStock, ProductInactive, ProductUnavailable
from ordering.stock.locks import stock_guard
from ordering.stock.product import Product


@dataclass(frozen=True)
class StockLine:
    product_id: str
    quantity: int


@dataclass(frozen=True)
class Reservation:
    """Outcome of a successful reserve: the per-product totals taken."""

    lines: tuple[StockLine, ...]

    @property
    def total_units(self) -> int:
        return sum(line.quantity for line in self.lines)


def consolidate(lines) -> "OrderedDict[str, int]":
    """Sum quantities per product, keeping first-seen order."""
    totals: OrderedDict[str, int] = OrderedDict()
    for line in lines:
        product_id = str(line.product_id)
        totals[product_id] = totals.get(product_id, 0) + int(line.quantity)
    return totals


class StockLedger:
    def __init__(self):
        self._repo = current_domain.repository_for(Product)

    def load_available(self, product_ids) -> dict[str, Product]:
        """Fetch every product, rejecting missing or inactive ones."""
        products = {}
        for product_id in product_ids:
            try:
                product = self._repo.get(product_id)
            except ObjectNotFoundError:
                raise ProductUnavailable({"product": [f'Product "{product_id}" is no longer available']})
            if not product.is_available():
                raise ProductInactive({"product": [f'Product "{product.name}" is no longer available']})
            products[product_id] = product
        return products

    def check(self, lines) -> dict[str, Product]:
        """Validate that every line can be satisfied, without mutating anything."""
        totals = consolidate(lines)
        products = self.load_available(totals.keys())

        shortfalls = [
            (products[product_id].name, quantity, products[product_id].stock)
            for product_id, quantity in totals.items()
            if products[product_id].stock < quantity
        ]
        if shortfalls:
            raise InsufficientStock(shortfalls)

        return products

    def reserve(self, lines) -> Reservation:
        with stock_guard():
            totals = consolidate(lines)
            products = self.check(lines)

            for product_id, quantity in totals.items():
                product = products[product_id]
                product.take(quantity)
                self._repo.add(product)

        reservation = Reservation(lines=tuple(StockLine(pid, qty) for pid, qty in totals.items()))
        logger.info("Reserved stock", products=len(reservation.lines), units=reservation.total_units)
        return reservation

    def restore(self, lines) -> None:
        with stock_guard():
            for product_id, quantity in consolidate(lines).items():
                try:
                    product = self._repo.get(product_id)
                except ObjectNotFoundError:
                    # Product removed from the catalogue since the order was placed
                    logger.warning("Skipped stock restore for missing product", product_id=product_id)
                    continue
                product.put_back(quantity)
                self._repo.add(product)
                logger.info("Restored stock", product_id=product_id, quantity=quantity, stock=product.stock)
