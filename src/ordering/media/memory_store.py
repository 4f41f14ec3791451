"""In-memory blob store for development and testing.

Keeps uploaded bytes in a dict keyed by URL and records every call. Can be
configured to fail uploads or deletions.
"""

from uuid import uuid4

from ordering.errors import BlobStoreError
from ordering.media.port import BlobStore


class InMemoryBlobStore(BlobStore):
    def __init__(self, base_url="memory://blobs"):
        self.base_url = base_url
        self.blobs: dict[str, bytes] = {}
        self.calls: list[dict] = []
        self.fail_store = False
        self.fail_delete = False

    def configure(self, fail_store=False, fail_delete=False):
        self.fail_store = fail_store
        self.fail_delete = fail_delete

    def store(self, content: bytes, folder: str, content_type: str | None = None) -> str:
        self.calls.append({"method": "store", "folder": folder, "size": len(content)})
        if self.fail_store:
            raise BlobStoreError("Blob store rejected the upload")

        url = f"{self.base_url}/{folder}/{uuid4().hex}"
        self.blobs[url] = content
        return url

    def delete(self, url: str) -> None:
        self.calls.append({"method": "delete", "url": url})
        if self.fail_delete:
            raise BlobStoreError(f"Could not delete {url}")
        self.blobs.pop(url, None)

    def reset(self):
        self.blobs.clear()
        self.calls.clear()
        self.fail_store = False
        self.fail_delete = False
