"""Process-wide guard around stock mutations.

Reserving stock is a read-check-decrement sequence whose writes only land
when the unit of work commits. Holding the guard across the whole command
(``process_with_stock_guard``) makes check, decrement and commit one step,
so two checkouts for the last units of a product cannot both succeed.
"""

import threading
from contextlib import contextmanager

from protean.utils.globals import current_domain

_guard = threading.RLock()


@contextmanager
def stock_guard():
    """Serialize every operation that reads and then changes stock.

    Usage:
        with stock_guard():
            ...  # check and mutate stock, then commit
    """
    with _guard:
        yield


def process_with_stock_guard(command):
    """Process a stock-touching command synchronously under the guard."""
    with stock_guard():
        return current_domain.process(command, asynchronous=False)
