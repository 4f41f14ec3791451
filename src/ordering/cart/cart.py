"""Shopping cart aggregate: the basket a customer checks out from.

Cart editing belongs to the storefront front end; the ordering context only
reads a customer's cart at checkout and empties it once the order is saved.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer
from protean.utils.globals import current_domain

from ordering.domain import ordering


@ordering.entity(part_of="ShoppingCart")
class CartItem:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()


@ordering.aggregate
class ShoppingCart:
    customer_id = Identifier(required=True)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, customer_id):
        now = datetime.now(UTC)
        return cls(customer_id=customer_id, created_at=now, updated_at=now)

    def is_empty(self) -> bool:
        return not self.items

    def add_item(self, product_id, quantity):
        """Add a product (or increase its quantity if already in the cart)."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        now = datetime.now(UTC)
        existing = next((i for i in self.items if str(i.product_id) == str(product_id)), None)
        if existing:
            existing.quantity += quantity
        else:
            self.add_items(CartItem(product_id=product_id, quantity=quantity, added_at=now))

        self.updated_at = now

    def clear(self):
        for item in list(self.items):
            self.remove_items(item)
        self.updated_at = datetime.now(UTC)


def cart_for_customer(customer_id) -> ShoppingCart | None:
    """Return the customer's cart, or None if they never created one."""
    repo = current_domain.repository_for(ShoppingCart)
    carts = repo._dao.query.filter(customer_id=str(customer_id)).all().items
    if not carts:
        return None
    return repo.get(carts[0].id)
