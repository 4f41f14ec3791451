"""Product aggregate: the persistent store behind stock and prices.

Catalogue management lives elsewhere; the ordering context only needs a
product's name, live price, active flag and on-hand count. Stock counters
are only ever changed through ``StockLedger``.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String

from ordering.domain import ordering


@ordering.aggregate
class Product:
    name: String(required=True, max_length=200)
    price: Float(required=True, min_value=0.0)
    stock: Integer(default=0)
    is_active: Boolean(default=True)
    created_at: DateTime()
    updated_at: DateTime()

    @invariant.post
    def stock_cannot_go_negative(self):
        if self.stock is not None and self.stock < 0:
            raise ValidationError({"stock": ["Stock cannot be negative"]})

    @classmethod
    def create(cls, name, price, stock=0, is_active=True):
        now = datetime.now(UTC)
        return cls(
            name=name,
            price=price,
            stock=stock,
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )

    def is_available(self) -> bool:
        return bool(self.is_active)

    def take(self, quantity: int) -> None:
        """Conditionally decrement stock: only when enough units are on hand."""
        if quantity > self.stock:
            raise ValidationError({"stock": [f'Insufficient stock for "{self.name}". Only {self.stock} available.']})
        self.stock -= quantity
        self.updated_at = datetime.now(UTC)

    def put_back(self, quantity: int) -> None:
        self.stock += quantity
        self.updated_at = datetime.now(UTC)
