"""Blob store factory.

Provides get_blob_store() / set_blob_store() to swap implementations. The
in-memory store is the default until a deployment installs a real one.
"""

from ordering.domain import logger
from ordering.errors import BlobStoreError
from ordering.media.memory_store import InMemoryBlobStore
from ordering.media.port import BlobStore

PAYMENT_SCREENSHOTS = "payment-screenshots"
REFUND_SCREENSHOTS = "refund-screenshots"

_current_store: BlobStore | None = None


def get_blob_store() -> BlobStore:
    global _current_store
    if _current_store is None:
        _current_store = InMemoryBlobStore()
    return _current_store


def set_blob_store(store: BlobStore) -> None:
    global _current_store
    _current_store = store


def reset_blob_store() -> None:
    global _current_store
    _current_store = None


def discard_blob(url: str | None) -> bool:
    """Best-effort delete. Failures are logged and reported as False."""
    if not url:
        return False
    try:
        get_blob_store().delete(url)
    except BlobStoreError as exc:
        logger.warning("Failed to delete blob", url=url, error=str(exc))
        return False
    return True
