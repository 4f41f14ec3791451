"""Blob store port.

Screenshots (payment proof, refund proof) are kept in an external image
store. The ordering context only ever stores bytes, gets a URL back, and
asks for URLs it no longer references to be deleted.
"""

from abc import ABC, abstractmethod


class BlobStore(ABC):
    @abstractmethod
    def store(self, content: bytes, folder: str, content_type: str | None = None) -> str:
        """Persist ``content`` and return its public URL.

        Raises ``BlobStoreError`` when the upload fails.
        """
        ...

    @abstractmethod
    def delete(self, url: str) -> None:
        """Remove the blob at ``url``. Raises ``BlobStoreError`` on failure."""
        ...
