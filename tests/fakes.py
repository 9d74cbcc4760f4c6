"""In-memory stand-ins for the store layer used across tests."""

import asyncio
import io
import itertools
from typing import Any, Callable, Dict, List, Optional

from PIL import Image

from core.exceptions import (
    FileDeleteError,
    FileUploadError,
    RecordNotFoundError,
    StorageError,
    TransportError,
)

BASE_URL = "https://test.supabase.co"
BUCKET = "product_images"


def png_bytes(size: tuple = (4, 4), color: str = "red") -> bytes:
    """Encode a tiny PNG with Pillow."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeSubscription:
    """Subscription handle recorded by FakeStoreClient."""

    def __init__(self, store: "FakeStoreClient", callback: Callable):
        self._store = store
        self.callback = callback
        self.cancelled = False

    @property
    def active(self) -> bool:
        return not self.cancelled

    async def cancel(self) -> None:
        if not self.cancelled:
            self.cancelled = True
            self._store.subscriptions.remove(self)


class FakeStoreClient:
    """Dict-backed StoreClient with change notifications and failure injection.

    Set ``fail_on`` to an operation name (``"create"``, ``"upload_blob"``,
    ``"delete_blob"``...) to make that call raise the error StoreClient would.
    """

    def __init__(self, documents: Optional[Dict[str, Dict[str, Any]]] = None):
        self.documents: Dict[str, Dict[str, Any]] = {}
        self.blobs: Dict[str, bytes] = {}
        self.calls: List[str] = []
        self.subscriptions: List[FakeSubscription] = []
        self.fail_on: set = set()
        self.bucket = BUCKET
        self._ids = itertools.count(1)

        for doc_id, fields in (documents or {}).items():
            self.documents[doc_id] = dict(fields)

    # documents

    async def list_all(self, collection: str):
        self._record("list_all")
        return [(doc_id, dict(fields)) for doc_id, fields in self.documents.items()]

    async def get_one(self, collection: str, doc_id: str):
        self._record("get_one")
        if doc_id not in self.documents:
            raise RecordNotFoundError(collection, doc_id)
        return dict(self.documents[doc_id])

    async def create(self, collection: str, fields: Dict[str, Any]) -> str:
        self._record("create")
        doc_id = f"doc-{next(self._ids)}"
        self.documents[doc_id] = dict(fields)
        self._emit("INSERT", doc_id)
        return doc_id

    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]):
        self._record("update")
        if doc_id not in self.documents:
            raise RecordNotFoundError(collection, doc_id)
        self.documents[doc_id].update(fields)
        self._emit("UPDATE", doc_id)
        return dict(self.documents[doc_id])

    async def delete(self, collection: str, doc_id: str) -> None:
        self._record("delete")
        if doc_id not in self.documents:
            raise RecordNotFoundError(collection, doc_id)
        del self.documents[doc_id]
        self._emit("DELETE", doc_id)

    # blobs

    async def upload_blob(self, path, data, content_type=None, on_progress=None) -> str:
        if on_progress:
            on_progress(0.0)
        self._record("upload_blob", FileUploadError(path, "injected"))
        self.blobs[path] = data
        if on_progress:
            on_progress(100.0)
        return self.public_url(path)

    async def delete_blob(self, url: str) -> bool:
        path = self.path_from_url(url)
        if not path:
            raise StorageError(f"URL does not point to bucket '{BUCKET}': {url}", code="FOREIGN_URL")
        self._record("delete_blob", FileDeleteError(path, "injected"))
        return self.blobs.pop(path, None) is not None

    def public_url(self, path: str) -> str:
        return f"{BASE_URL}/storage/v1/object/public/{BUCKET}/{path}"

    def path_from_url(self, url: str) -> Optional[str]:
        marker = f"/storage/v1/object/public/{BUCKET}/"
        if url and marker in url:
            return url.split(marker, 1)[1]
        return None

    # realtime

    async def watch(self, collection: str, on_change: Callable) -> FakeSubscription:
        self._record("watch")
        # Realtime handshake suspends the caller
        await asyncio.sleep(0)
        subscription = FakeSubscription(self, on_change)
        self.subscriptions.append(subscription)
        return subscription

    def _emit(self, event_type: str, doc_id: str) -> None:
        for subscription in list(self.subscriptions):
            subscription.callback({"eventType": event_type, "id": doc_id})

    def _record(self, operation: str, error: Exception = None) -> None:
        self.calls.append(operation)
        if operation in self.fail_on:
            raise error or TransportError(operation, "injected")
