#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ProductRepository - Operacje na produktach (baza dokumentów + Storage)

Odpowiedzialność:
- fetch_all / get / add / update / remove na kolekcji `products`
- Upload obrazu przed zapisem dokumentu (imgUrl = publiczny URL)
- Usuwanie obrazu razem z produktem (best-effort)
- Walidacja danych PRZED jakimkolwiek wywołaniem sieciowym

Zasady:
- Kolejność przy tworzeniu: walidacja → upload obrazu → INSERT
- Kolejność przy usuwaniu: odczyt imgUrl → usunięcie obrazu → DELETE
- Błąd usuwania obrazu jest logowany i NIE blokuje usunięcia dokumentu
- Update z nowym obrazem NIE usuwa starego pliku (chyba że włączono
  DELETE_REPLACED_IMAGES)
- Brak atomowości między uploadem a zapisem dokumentu: przerwanie procesu
  po uploadzie zostawia osierocony plik

Użycie:
    from products import create_product_repository

    repo = await create_product_repository()

    product = await repo.add(ProductDraft(
        name="Widget", category="Tools", price="12.50", stock="3", sales="0",
        image=ImageFile("widget.png", png_bytes)
    ))
    await repo.remove(product.id)
"""

from typing import Callable, List, Optional
import logging

from config import settings
from core.events import EventBus, EventType, create_event, get_event_bus
from core.exceptions import RequiredFieldError, StorageError
from core.store_client import StoreClient
from products.models import IMAGE_URL_FIELD, ImageFile, Product, ProductDraft
from products.paths import ImagePaths
from products.utils.images import inspect_image

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


class ProductRepository:
    """
    Repozytorium produktów - jedyny punkt wejścia warstwy prezentacji.

    Example:
        repo = ProductRepository(StoreClient(client))

        products = await repo.fetch_all()
        updated = await repo.update(product_id, ProductDraft(price="9.99"))
    """

    ENTITY_NAME = "Product"

    def __init__(
        self,
        store: StoreClient,
        collection: str = None,
        event_bus: EventBus = None,
        delete_replaced_images: bool = None
    ):
        """
        Args:
            store: StoreClient (dokumenty + Storage)
            collection: Nazwa kolekcji (domyślnie PRODUCTS_COLLECTION)
            event_bus: Event bus (domyślnie globalny)
            delete_replaced_images: Usuwaj stary obraz przy podmianie w update()
        """
        self.store = store
        self.collection = collection or settings.PRODUCTS_COLLECTION
        self.event_bus = event_bus or get_event_bus()
        if delete_replaced_images is None:
            delete_replaced_images = settings.DELETE_REPLACED_IMAGES
        self.delete_replaced_images = delete_replaced_images

    # =========================================================
    # READ
    # =========================================================

    async def fetch_all(self) -> List[Product]:
        """Wszystkie produkty, w kolejności zwróconej przez bazę"""
        documents = await self.store.list_all(self.collection)
        return [Product.from_document(doc_id, fields) for doc_id, fields in documents]

    async def get(self, product_id: str) -> Product:
        """
        Pobierz jeden produkt.

        Raises:
            RequiredFieldError: Brak id
            RecordNotFoundError: Produkt nie istnieje
        """
        self._require_id(product_id)
        fields = await self.store.get_one(self.collection, product_id)
        return Product.from_document(product_id, fields)

    # =========================================================
    # CREATE
    # =========================================================

    async def add(
        self,
        draft: ProductDraft,
        on_progress: Optional[ProgressCallback] = None
    ) -> Product:
        """
        Utwórz produkt (opcjonalnie z obrazem).

        Args:
            draft: Dane z formularza
            on_progress: Postęp uploadu obrazu w procentach

        Returns:
            Nowy produkt z id nadanym przez bazę

        Raises:
            ValidationError: Błędne pola (przed wywołaniem sieciowym)
            FileUploadError: Błąd uploadu obrazu
            TransportError: Błąd zapisu dokumentu
        """
        # ─────────────────────────────────────────────────────
        # KROK 0: Walidacja (bez sieci)
        # ─────────────────────────────────────────────────────

        fields = draft.to_fields(partial=False)
        content_type = self._inspect(draft.image)

        # ─────────────────────────────────────────────────────
        # KROK 1: Upload obrazu → imgUrl
        # ─────────────────────────────────────────────────────

        uploaded_url = None
        if draft.image is not None:
            uploaded_url = await self._upload_image(draft.image, content_type, on_progress)
            fields[IMAGE_URL_FIELD] = uploaded_url

        # ─────────────────────────────────────────────────────
        # KROK 2: INSERT dokumentu → id
        # ─────────────────────────────────────────────────────

        try:
            product_id = await self.store.create(self.collection, fields)
        except Exception:
            if uploaded_url:
                await self._discard_image(uploaded_url, reason="create failed")
            raise

        product = Product.from_document(product_id, fields)
        logger.info(f"[{self.ENTITY_NAME}] Created: {product_id}")
        self._publish(EventType.PRODUCT_CREATED, product_id=product_id, fields=fields)
        return product

    # =========================================================
    # UPDATE
    # =========================================================

    async def update(
        self,
        product_id: str,
        draft: ProductDraft,
        on_progress: Optional[ProgressCallback] = None
    ) -> Product:
        """
        Zaktualizuj produkt (pola None w drafcie pozostają bez zmian).

        Nowy obraz nadpisuje imgUrl; poprzedni plik zostaje w Storage,
        chyba że włączono delete_replaced_images.

        Returns:
            Produkt po aktualizacji

        Raises:
            ValidationError: Błędne pola lub brak id (przed wywołaniem sieciowym)
            RecordNotFoundError: Produkt nie istnieje
        """
        # KROK 0: Walidacja (bez sieci)
        self._require_id(product_id)
        fields = draft.to_fields(partial=True)
        content_type = self._inspect(draft.image)

        # KROK 1: Produkt musi istnieć zanim cokolwiek wyślemy
        existing = await self.get(product_id)

        # KROK 2: Upload nowego obrazu
        uploaded_url = None
        if draft.image is not None:
            uploaded_url = await self._upload_image(draft.image, content_type, on_progress)
            fields[IMAGE_URL_FIELD] = uploaded_url

        # KROK 3: UPDATE dokumentu
        try:
            updated_fields = await self.store.update(self.collection, product_id, fields)
        except Exception:
            if uploaded_url:
                await self._discard_image(uploaded_url, reason="update failed")
            raise

        # Baza zwraca pełny wiersz; scalenie z odczytem zachowuje pola spoza odpowiedzi
        product = existing.merged(updated_fields)
        logger.info(f"[{self.ENTITY_NAME}] Updated: {product_id}")
        self._publish(EventType.PRODUCT_UPDATED, product_id=product_id, fields=fields)

        # KROK 4: Stary obraz
        replaced_url = existing.img_url
        if uploaded_url and replaced_url and replaced_url != uploaded_url:
            if self.delete_replaced_images:
                await self._discard_image(replaced_url, reason="image replaced")
            else:
                logger.debug(f"[{self.ENTITY_NAME}] Keeping replaced image: {replaced_url}")

        return product

    # =========================================================
    # DELETE
    # =========================================================

    async def remove(self, product_id: str) -> None:
        """
        Usuń produkt razem z obrazem.

        Raises:
            RequiredFieldError: Brak id
            RecordNotFoundError: Produkt nie istnieje w chwili odczytu
        """
        self._require_id(product_id)

        # KROK 1: Odczyt imgUrl
        product = await self.get(product_id)

        # KROK 2: Usunięcie obrazu (best-effort)
        if product.img_url:
            await self._discard_image(product.img_url, reason="product removed")

        # KROK 3: DELETE dokumentu
        await self.store.delete(self.collection, product_id)

        logger.info(f"[{self.ENTITY_NAME}] Deleted: {product_id}")
        self._publish(EventType.PRODUCT_DELETED, product_id=product_id)

    # =========================================================
    # PRIVATE HELPERS
    # =========================================================

    def _require_id(self, product_id: str) -> None:
        if not product_id or not str(product_id).strip():
            raise RequiredFieldError("id", self.ENTITY_NAME)

    @staticmethod
    def _inspect(image: Optional[ImageFile]) -> Optional[str]:
        if image is None:
            return None
        detected = inspect_image(image.filename, image.data)
        return image.content_type or detected

    async def _upload_image(
        self,
        image: ImageFile,
        content_type: str,
        on_progress: Optional[ProgressCallback]
    ) -> str:
        path = ImagePaths.image(image.filename)
        url = await self.store.upload_blob(
            path,
            image.data,
            content_type=content_type,
            on_progress=on_progress
        )
        self._publish(EventType.PRODUCT_IMAGE_UPLOADED, path=path, url=url)
        return url

    async def _discard_image(self, url: str, reason: str) -> bool:
        """Usuń obraz; błąd jest logowany, nigdy nie propagowany"""
        try:
            deleted = await self.store.delete_blob(url)
        except StorageError as e:
            logger.warning(f"[{self.ENTITY_NAME}] Image cleanup failed ({reason}): {url} - {e}")
            return False

        if deleted:
            self._publish(EventType.PRODUCT_IMAGE_DELETED, url=url, reason=reason)
        return deleted

    def _publish(self, event_type: EventType, **data) -> None:
        self.event_bus.publish(create_event(event_type, data, source="products.repository"))


# =========================================================
# FACTORY
# =========================================================

async def create_product_repository(event_bus: EventBus = None) -> ProductRepository:
    """
    Utwórz ProductRepository na współdzielonym kliencie Supabase.

    Returns:
        Gotowy do użycia ProductRepository
    """
    from core.store_client import create_store_client

    store = await create_store_client()
    return ProductRepository(store, event_bus=event_bus)
