"""Read-back checks for writes that have silently gone missing before.

After a screenshot URL is saved, the order is fetched again outside the
unit of work and the stored value compared with what was written.
"""

from protean.utils.globals import current_domain

from ordering.domain import logger
from ordering.errors import PersistenceVerificationFailed
from ordering.order.order import Order


def verify_persisted(order_id, field, expected, read):
    """Re-read order ``order_id`` and check ``read(order) == expected``.

    Returns the freshly loaded order.
    """
    order = current_domain.repository_for(Order).get(order_id)
    actual = read(order)
    if actual != expected:
        logger.error(
            "Persisted value does not match written value",
            order_id=str(order_id),
            field=field,
            expected=expected,
            actual=actual,
        )
        raise PersistenceVerificationFailed(order_id, field, expected, actual)
    return order
