"""
StoreAdmin - Store Client
=========================
Cienka warstwa nad Supabase (AsyncClient): dokumenty w kolekcjach,
obiekty binarne w Storage i nasłuch zmian (Realtime).

Zasady:
- Każda metoda to jedno wywołanie SDK - bez ponowień i backoffu
- Dokument to (id, pola); `id` jest kluczem nadawanym przez bazę
  i nigdy nie jest zwracany jako pole
- Błędy SDK są tłumaczone na hierarchię z core.exceptions
- Brak pliku przy usuwaniu to NIE błąd (stan docelowy osiągnięty)
"""

from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import quote, unquote
import logging

from postgrest.exceptions import APIError
from supabase import AsyncClient

from config import settings
from core.exceptions import (
    FileDeleteError,
    FileUploadError,
    RecordNotFoundError,
    StorageError,
    TransportError,
)

logger = logging.getLogger(__name__)

# Postgres: invalid_text_representation (np. id spoza formatu uuid)
INVALID_ID_CODE = "22P02"

# (id, pola dokumentu)
Document = Tuple[str, Dict[str, Any]]

ChangeCallback = Callable[[Dict[str, Any]], None]
ProgressCallback = Callable[[float], None]


class Subscription:
    """
    Uchwyt aktywnego nasłuchu zmian kolekcji.

    `cancel()` zwalnia kanał Realtime; wywołanie wielokrotne jest bezpieczne.
    """

    def __init__(self, client: AsyncClient, channel, collection: str):
        self._client = client
        self._channel = channel
        self.collection = collection

    @property
    def active(self) -> bool:
        return self._channel is not None

    async def cancel(self) -> None:
        channel, self._channel = self._channel, None
        if channel is None:
            return

        try:
            await self._client.remove_channel(channel)
            logger.info(f"[Store] Stopped watching: {self.collection}")
        except Exception as e:
            # Kanał i tak jest porzucony - nie ma czego ponawiać
            logger.warning(f"[Store] Channel release failed for {self.collection}: {e}")


class StoreClient:
    """
    Operacje CRUD na kolekcjach i operacje na plikach w Storage.

    Example:
        client = await get_supabase_client()
        store = StoreClient(client)

        doc_id = await store.create("products", {"name": "Widget"})
        fields = await store.get_one("products", doc_id)
        url = await store.upload_blob("images/abc/widget.png", png_bytes)
    """

    ID_COLUMN = "id"

    def __init__(
        self,
        client: AsyncClient,
        bucket: str = None,
        base_url: str = None,
        schema: str = None
    ):
        """
        Args:
            client: Instancja AsyncClient (z SERVICE_ROLE_KEY)
            bucket: Bucket Storage na obrazy
            base_url: URL projektu Supabase (do budowy publicznych URL)
            schema: Schemat Postgres dla nasłuchu zmian
        """
        self.client = client
        self.bucket = bucket or settings.STORAGE_BUCKET
        self.base_url = (base_url or settings.SUPABASE_URL).rstrip("/")
        self.schema = schema or settings.DB_SCHEMA

    # ============================================================
    # Documents
    # ============================================================

    async def list_all(self, collection: str) -> List[Document]:
        """
        Pełny skan kolekcji, kolejność taka jak zwraca baza.

        Returns:
            Lista (id, pola)
        """
        try:
            response = await self.client.table(collection).select("*").execute()
        except Exception as e:
            logger.error(f"[Store] List failed: {collection} - {e}")
            raise TransportError(f"list {collection}", str(e)) from e

        return [self._split_row(row) for row in (response.data or [])]

    async def get_one(self, collection: str, doc_id: str) -> Dict[str, Any]:
        """
        Pobierz pola dokumentu.

        Raises:
            RecordNotFoundError: Jeśli dokument nie istnieje
        """
        try:
            response = await self.client.table(collection)\
                .select("*")\
                .eq(self.ID_COLUMN, doc_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            if self._is_invalid_id(e):
                logger.info(f"[Store] Get: malformed id {collection}/{doc_id}")
                raise RecordNotFoundError(collection, doc_id) from e
            logger.error(f"[Store] Get failed: {collection}/{doc_id} - {e}")
            raise TransportError(f"get {collection}/{doc_id}", str(e)) from e

        if not response.data:
            raise RecordNotFoundError(collection, doc_id)

        _, fields = self._split_row(response.data[0])
        return fields

    async def create(self, collection: str, fields: Dict[str, Any]) -> str:
        """
        Utwórz dokument; id nadaje baza.

        Returns:
            Id nowego dokumentu
        """
        # Id nigdy nie jest polem dokumentu
        data = {k: v for k, v in fields.items() if k != self.ID_COLUMN}

        try:
            response = await self.client.table(collection).insert(data).execute()
        except Exception as e:
            logger.error(f"[Store] Create failed: {collection} - {e}")
            raise TransportError(f"create {collection}", str(e)) from e

        if not response.data:
            raise TransportError(f"create {collection}", "no row returned")

        doc_id, _ = self._split_row(response.data[0])
        logger.info(f"[Store] Created: {collection}/{doc_id}")
        return doc_id

    async def update(
        self,
        collection: str,
        doc_id: str,
        fields: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Częściowa aktualizacja pól (id niezmienne).

        Returns:
            Pełne pola dokumentu po aktualizacji

        Raises:
            RecordNotFoundError: Jeśli dokument nie istnieje
        """
        data = {k: v for k, v in fields.items() if k != self.ID_COLUMN}
        if not data:
            # Nic do zmiany - wystarczy potwierdzić istnienie
            return await self.get_one(collection, doc_id)

        try:
            response = await self.client.table(collection)\
                .update(data)\
                .eq(self.ID_COLUMN, doc_id)\
                .execute()
        except Exception as e:
            if self._is_invalid_id(e):
                logger.info(f"[Store] Update: malformed id {collection}/{doc_id}")
                raise RecordNotFoundError(collection, doc_id) from e
            logger.error(f"[Store] Update failed: {collection}/{doc_id} - {e}")
            raise TransportError(f"update {collection}/{doc_id}", str(e)) from e

        if not response.data:
            raise RecordNotFoundError(collection, doc_id)

        logger.info(f"[Store] Updated: {collection}/{doc_id}")
        _, updated = self._split_row(response.data[0])
        return updated

    async def delete(self, collection: str, doc_id: str) -> None:
        """
        Usuń dokument.

        Raises:
            RecordNotFoundError: Jeśli dokument nie istnieje
        """
        try:
            response = await self.client.table(collection)\
                .delete()\
                .eq(self.ID_COLUMN, doc_id)\
                .execute()
        except Exception as e:
            if self._is_invalid_id(e):
                logger.info(f"[Store] Delete: malformed id {collection}/{doc_id}")
                raise RecordNotFoundError(collection, doc_id) from e
            logger.error(f"[Store] Delete failed: {collection}/{doc_id} - {e}")
            raise TransportError(f"delete {collection}/{doc_id}", str(e)) from e

        if not response.data:
            raise RecordNotFoundError(collection, doc_id)

        logger.info(f"[Store] Deleted: {collection}/{doc_id}")

    # ============================================================
    # Blobs
    # ============================================================

    async def upload_blob(
        self,
        path: str,
        data: bytes,
        content_type: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None
    ) -> str:
        """
        Upload pliku do Storage.

        Postęp (0-100) raportowany jest przez `on_progress` niezależnie
        od wyniku; SDK wysyła plik jednym żądaniem, więc kroki to 0 i 100.

        Args:
            path: Klucz obiektu (np. z ImagePaths)
            data: Dane binarne pliku
            content_type: MIME type (auto-detect jeśli None)
            on_progress: Opcjonalny odbiorca postępu w procentach

        Returns:
            Publiczny URL pliku

        Raises:
            FileUploadError: Błąd transportu
        """
        content_type = content_type or settings.get_mime_type(path)
        self._report_progress(on_progress, 0.0)

        try:
            # upsert jako STRING (wymagane przez Supabase!)
            await self.client.storage.from_(self.bucket).upload(
                path=path,
                file=data,
                file_options={
                    "content-type": content_type,
                    "upsert": "false"
                }
            )
        except Exception as e:
            logger.error(f"[Storage] Upload failed: {path} - {e}")
            raise FileUploadError(path, str(e)) from e

        self._report_progress(on_progress, 100.0)
        logger.info(f"[Storage] Upload: {path} ({len(data):,} bytes)")
        return self.public_url(path)

    async def delete_blob(self, url: str) -> bool:
        """
        Usuń plik wskazany publicznym URL.

        Returns:
            True jeśli plik usunięto, False jeśli już nie istniał

        Raises:
            StorageError: URL spoza bucketa lub błąd transportu
        """
        path = self.path_from_url(url)
        if not path:
            raise StorageError(
                f"URL does not point to bucket '{self.bucket}': {url}",
                code="FOREIGN_URL",
                details={"url": url, "bucket": self.bucket}
            )

        try:
            removed = await self.client.storage.from_(self.bucket).remove([path])
        except Exception as e:
            # Jeśli plik nie istnieje - to też sukces
            if "not found" in str(e).lower():
                logger.info(f"[Storage] Already absent: {path}")
                return False
            logger.error(f"[Storage] Delete failed: {path} - {e}")
            raise FileDeleteError(path, str(e)) from e

        if not removed:
            logger.info(f"[Storage] Already absent: {path}")
            return False

        logger.info(f"[Storage] Delete: {path}")
        return True

    # ============================================================
    # URL
    # ============================================================

    def public_url(self, path: str) -> str:
        """
        Publiczny URL obiektu.

        Example:
            >>> store.public_url("images/abc/widget.png")
            "https://xxx.supabase.co/storage/v1/object/public/product_images/images/abc/widget.png"
        """
        if not path:
            return ""
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{quote(path)}"

    def path_from_url(self, url: str) -> Optional[str]:
        """Wyciągnij klucz obiektu z publicznego lub podpisanego URL"""
        if not url:
            return None

        for kind in ("public", "sign"):
            marker = f"/storage/v1/object/{kind}/{self.bucket}/"
            if marker in url:
                # Usuń query params
                return unquote(url.split(marker, 1)[1].split('?')[0]) or None

        return None

    # ============================================================
    # Realtime
    # ============================================================

    async def watch(self, collection: str, on_change: ChangeCallback) -> Subscription:
        """
        Nasłuchuj zmian kolekcji (INSERT/UPDATE/DELETE).

        Args:
            collection: Nazwa kolekcji
            on_change: Wywoływane z payloadem zdarzenia w pętli zdarzeń

        Returns:
            Subscription - wywołaj `await sub.cancel()` aby zwolnić kanał
        """
        channel = None
        try:
            channel = self.client.channel(f"{collection}-changes")
            channel.on_postgres_changes(
                event="*",
                schema=self.schema,
                table=collection,
                callback=on_change
            )
            await channel.subscribe()
        except Exception as e:
            logger.error(f"[Store] Watch failed: {collection} - {e}")
            if channel is not None:
                await Subscription(self.client, channel, collection).cancel()
            raise TransportError(f"watch {collection}", str(e)) from e

        logger.info(f"[Store] Watching: {collection}")
        return Subscription(self.client, channel, collection)

    # ============================================================
    # Helpers
    # ============================================================

    @staticmethod
    def _is_invalid_id(error: Exception) -> bool:
        """Id, którego baza nie potrafi sparsować, nie wskazuje żadnego dokumentu"""
        return isinstance(error, APIError) and error.code == INVALID_ID_CODE

    def _split_row(self, row: Dict[str, Any]) -> Document:
        fields = dict(row)
        doc_id = fields.pop(self.ID_COLUMN, None)
        return str(doc_id), fields

    @staticmethod
    def _report_progress(on_progress: Optional[ProgressCallback], percent: float) -> None:
        if on_progress is None:
            return
        try:
            on_progress(percent)
        except Exception as e:
            logger.warning(f"[Storage] Progress callback error: {e}")


async def create_store_client() -> StoreClient:
    """Fabryka: StoreClient na współdzielonym kliencie Supabase"""
    from core.supabase_client import get_supabase_client

    client = await get_supabase_client()
    return StoreClient(client)
