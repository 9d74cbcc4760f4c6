# tests/test_repository.py

"""Tests for ProductRepository against the in-memory store."""

import unittest
from unittest.mock import AsyncMock, patch

from core.events import EventBus, EventType
from core.exceptions import (
    FileUploadError,
    RecordNotFoundError,
    RequiredFieldError,
    TransportError,
    ValidationError,
)
from products.models import ImageFile, ProductDraft
from products.repository import ProductRepository
from tests.fakes import FakeStoreClient, png_bytes


def _draft(**overrides) -> ProductDraft:
    """Create a valid draft with optional overrides."""
    values = dict(name="Widget", category="Tools", price="12.50", stock="3", sales="1")
    values.update(overrides)
    return ProductDraft(**values)


def _image(name: str = "widget.png") -> ImageFile:
    return ImageFile(name, png_bytes())


class RepositoryTestCase(unittest.IsolatedAsyncioTestCase):
    """Common setup: fake store, repository and recorded events."""

    def setUp(self) -> None:
        self.store = FakeStoreClient()
        self.events = []
        bus = EventBus()
        bus.subscribe_all(self.events.append)
        self.repo = ProductRepository(self.store, event_bus=bus, delete_replaced_images=False)

    def event_types(self) -> list:
        return [event.type for event in self.events]


class TestAdd(RepositoryTestCase):
    """ProductRepository.add behaviour."""

    async def test_add_then_fetch_all(self) -> None:
        product = await self.repo.add(_draft())
        self.assertTrue(product.id)

        products = await self.repo.fetch_all()
        matching = [p for p in products if p.id == product.id]
        self.assertEqual(len(matching), 1)
        self.assertEqual(
            (matching[0].name, matching[0].category, matching[0].price, matching[0].stock, matching[0].sales),
            ("Widget", "Tools", 12.5, 3, 1),
        )
        self.assertIsNone(matching[0].img_url)
        self.assertEqual(self.event_types(), [EventType.PRODUCT_CREATED])

    async def test_add_with_image_uploads_first(self) -> None:
        progress = []
        product = await self.repo.add(_draft(image=_image()), on_progress=progress.append)

        self.assertEqual(self.store.calls, ["upload_blob", "create"])
        self.assertEqual(progress, [0.0, 100.0])
        self.assertEqual(len(self.store.blobs), 1)
        path = next(iter(self.store.blobs))
        self.assertTrue(path.startswith("images/"))
        self.assertTrue(path.endswith("/widget.png"))
        self.assertEqual(product.img_url, self.store.public_url(path))
        self.assertEqual(self.store.documents[product.id]["imgUrl"], product.img_url)
        self.assertEqual(
            self.event_types(),
            [EventType.PRODUCT_IMAGE_UPLOADED, EventType.PRODUCT_CREATED],
        )

    async def test_same_filename_twice_keeps_both_images(self) -> None:
        first = await self.repo.add(_draft(image=_image()))
        second = await self.repo.add(_draft(image=_image()))
        self.assertNotEqual(first.img_url, second.img_url)
        self.assertEqual(len(self.store.blobs), 2)

    async def test_invalid_draft_makes_no_calls(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            await self.repo.add(_draft(price="abc", image=_image()))
        self.assertEqual(ctx.exception.fields, ["price"])
        self.assertEqual(self.store.calls, [])

    async def test_invalid_image_makes_no_calls(self) -> None:
        with self.assertRaises(ValidationError):
            await self.repo.add(_draft(image=ImageFile("widget.png", b"nope")))
        self.assertEqual(self.store.calls, [])

    async def test_failed_create_discards_uploaded_image(self) -> None:
        self.store.fail_on.add("create")
        with self.assertRaises(TransportError):
            await self.repo.add(_draft(image=_image()))
        self.assertEqual(self.store.blobs, {})
        self.assertEqual(self.store.documents, {})

    async def test_failed_upload_creates_nothing(self) -> None:
        self.store.fail_on.add("upload_blob")
        with self.assertRaises(FileUploadError):
            await self.repo.add(_draft(image=_image()))
        self.assertEqual(self.store.documents, {})
        self.assertNotIn("create", self.store.calls)


class TestUpdate(RepositoryTestCase):
    """ProductRepository.update behaviour."""

    async def test_partial_update(self) -> None:
        product = await self.repo.add(_draft())
        updated = await self.repo.update(product.id, ProductDraft(price="9.99"))
        self.assertEqual(updated.id, product.id)
        self.assertEqual(updated.price, 9.99)
        self.assertEqual(updated.name, "Widget")
        self.assertEqual(self.event_types()[-1], EventType.PRODUCT_UPDATED)

    async def test_partial_store_response_keeps_known_fields(self) -> None:
        product = await self.repo.add(_draft())
        with patch.object(self.store, "update", AsyncMock(return_value={"price": 9.5})):
            updated = await self.repo.update(product.id, ProductDraft(price="9.5"))
        self.assertEqual(updated.price, 9.5)
        self.assertEqual((updated.name, updated.category, updated.stock), ("Widget", "Tools", 3))

    async def test_invalid_numeric_leaves_store_unchanged(self) -> None:
        product = await self.repo.add(_draft())
        before = await self.repo.fetch_all()
        self.store.calls.clear()

        with self.assertRaises(ValidationError):
            await self.repo.update(product.id, ProductDraft(price="abc"))

        self.assertEqual(self.store.calls, [])
        self.assertEqual(await self.repo.fetch_all(), before)

    async def test_missing_id(self) -> None:
        with self.assertRaises(RequiredFieldError):
            await self.repo.update("", ProductDraft(price="1"))
        self.assertEqual(self.store.calls, [])

    async def test_unknown_id_uploads_nothing(self) -> None:
        with self.assertRaises(RecordNotFoundError):
            await self.repo.update("nope", ProductDraft(price="1", image=_image()))
        self.assertEqual(self.store.blobs, {})

    async def test_replaced_image_is_kept_by_default(self) -> None:
        product = await self.repo.add(_draft(image=_image("old.png")))
        updated = await self.repo.update(product.id, ProductDraft(image=_image("new.png")))

        self.assertNotEqual(updated.img_url, product.img_url)
        self.assertEqual(len(self.store.blobs), 2)

    async def test_replaced_image_deleted_when_enabled(self) -> None:
        self.repo.delete_replaced_images = True
        product = await self.repo.add(_draft(image=_image("old.png")))
        updated = await self.repo.update(product.id, ProductDraft(image=_image("new.png")))

        self.assertEqual(list(self.store.blobs), [self.store.path_from_url(updated.img_url)])
        self.assertIn(EventType.PRODUCT_IMAGE_DELETED, self.event_types())

    async def test_failed_update_discards_new_image(self) -> None:
        product = await self.repo.add(_draft(image=_image("old.png")))
        self.store.fail_on.add("update")

        with self.assertRaises(TransportError):
            await self.repo.update(product.id, ProductDraft(image=_image("new.png")))

        self.assertEqual(list(self.store.blobs), [self.store.path_from_url(product.img_url)])
        self.assertEqual(self.store.documents[product.id]["imgUrl"], product.img_url)


class TestRemove(RepositoryTestCase):
    """ProductRepository.remove behaviour."""

    async def test_remove_deletes_image_and_document(self) -> None:
        product = await self.repo.add(_draft(image=_image()))
        await self.repo.remove(product.id)

        self.assertEqual(self.store.blobs, {})
        self.assertEqual(await self.repo.fetch_all(), [])
        self.assertEqual(self.event_types()[-2:], [EventType.PRODUCT_IMAGE_DELETED, EventType.PRODUCT_DELETED])

    async def test_blob_failure_does_not_block_removal(self) -> None:
        product = await self.repo.add(_draft(image=_image()))
        self.store.fail_on.add("delete_blob")

        with self.assertLogs("products.repository", level="WARNING"):
            await self.repo.remove(product.id)

        self.assertEqual(await self.repo.fetch_all(), [])
        self.assertEqual(len(self.store.blobs), 1)

    async def test_foreign_image_url_does_not_block_removal(self) -> None:
        product = await self.repo.add(_draft(img_url="https://cdn.example/x.png"))
        with self.assertLogs("products.repository", level="WARNING"):
            await self.repo.remove(product.id)
        self.assertEqual(self.store.documents, {})

    async def test_remove_without_image(self) -> None:
        product = await self.repo.add(_draft())
        await self.repo.remove(product.id)
        self.assertNotIn("delete_blob", self.store.calls)
        self.assertEqual(self.store.documents, {})

    async def test_remove_unknown_id_is_not_found(self) -> None:
        with self.assertRaises(RecordNotFoundError):
            await self.repo.remove("nope")
        self.assertNotIn("delete", self.store.calls)

    async def test_remove_requires_id(self) -> None:
        with self.assertRaises(RequiredFieldError):
            await self.repo.remove("  ")
        self.assertEqual(self.store.calls, [])


class TestDefaults(unittest.IsolatedAsyncioTestCase):
    """Repository wired with process defaults."""

    async def test_publishes_on_process_bus(self) -> None:
        received = []
        EventBus().subscribe(EventType.PRODUCT_CREATED, received.append)
        repo = ProductRepository(FakeStoreClient())

        product = await repo.add(_draft())

        self.assertEqual([event.product_id for event in received], [product.id])


class TestGet(RepositoryTestCase):
    """ProductRepository.get behaviour."""

    async def test_get(self) -> None:
        product = await self.repo.add(_draft())
        self.assertEqual(await self.repo.get(product.id), product)


if __name__ == "__main__":
    unittest.main()
