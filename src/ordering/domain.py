"""Ordering bounded context for the grocery storefront.

Owns the order lifecycle: pricing a cart, reserving stock, the two payment
paths (cash on delivery and manually verified UPI transfers), cancellation,
the refund sub-workflow and the notifications raised along the way.
"""

from protean.domain import Domain

from ordering.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

ordering = Domain(name="ordering")
