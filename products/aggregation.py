#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
CategoryDistributionView - Rozkład produktów wg kategorii na żywo

Widok nasłuchuje zmian kolekcji `products` i po KAŻDEJ zmianie
(oraz przy starcie) przelicza od zera mapę kategoria → liczba produktów
z pełnego, aktualnego zestawu dokumentów. Brak aktualizacji przyrostowych -
kolekcje w panelu są małe.

Kolejność względem operacji użytkownika nie jest gwarantowana: projekcja
odzwierciedla add/update/remove z opóźnieniem propagacji Realtime.

Użycie:
    view = CategoryDistributionView(store)

    handle = await view.subscribe(lambda projection: print(projection))
    ...
    await handle.cancel()   # zwalnia kanał Realtime gdy to ostatni obserwator

    # lub jako context manager
    async with CategoryDistributionView(store) as view:
        print(view.current)
"""

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set
import asyncio
import contextlib
import logging

from config import settings
from core.store_client import StoreClient, Subscription

logger = logging.getLogger(__name__)

# kategoria → liczba produktów
CategoryProjection = Dict[str, int]
ProjectionObserver = Callable[[CategoryProjection], None]

UNCATEGORIZED = "Uncategorized"


def count_by_category(documents: Iterable[Mapping[str, Any]]) -> CategoryProjection:
    """
    Policz produkty w każdej kategorii.

    Args:
        documents: Pola dokumentów produktów

    Returns:
        Mapa kategoria → liczba (kolejność pierwszego wystąpienia)
    """
    counts: CategoryProjection = {}
    for fields in documents:
        category = fields.get("category") or UNCATEGORIZED
        counts[category] = counts.get(category, 0) + 1
    return counts


def as_chart_data(projection: CategoryProjection) -> List[Dict[str, Any]]:
    """Projekcja w formacie wykresu kołowego: [{'name': ..., 'value': ...}]"""
    return [{"name": category, "value": count} for category, count in projection.items()]


class ObserverHandle:
    """Uchwyt rejestracji obserwatora; `cancel()` jest idempotentne"""

    def __init__(self, view: "CategoryDistributionView", observer: ProjectionObserver):
        self._view = view
        self._observer = observer

    @property
    def active(self) -> bool:
        return self._observer is not None

    async def cancel(self) -> None:
        observer, self._observer = self._observer, None
        if observer is not None:
            await self._view.unsubscribe(observer)


class CategoryDistributionView:
    """
    Projekcja kategoria → liczba produktów, przeliczana po każdej zmianie.
    """

    def __init__(self, store: StoreClient, collection: str = None):
        self.store = store
        self.collection = collection or settings.PRODUCTS_COLLECTION

        self._observers: List[ProjectionObserver] = []
        self._subscription: Optional[Subscription] = None
        self._current: CategoryProjection = {}
        self._lock = asyncio.Lock()
        self._start_lock = asyncio.Lock()
        self._pending: Set[asyncio.Task] = set()

    # =========================================================
    # STAN
    # =========================================================

    @property
    def running(self) -> bool:
        return self._subscription is not None

    @property
    def current(self) -> CategoryProjection:
        """Ostatnio wyliczona projekcja (kopia)"""
        return dict(self._current)

    # =========================================================
    # OBSERWATORZY
    # =========================================================

    async def subscribe(self, observer: ProjectionObserver) -> ObserverHandle:
        """
        Zarejestruj obserwatora; uruchamia nasłuch przy pierwszym.

        Obserwator jest rejestrowany dopiero po udanym starcie i od razu
        dostaje bieżącą projekcję.
        """
        await self.start()

        self._observers.append(observer)
        self._notify_one(observer, self.current)

        return ObserverHandle(self, observer)

    async def unsubscribe(self, observer: ProjectionObserver) -> None:
        """Wyrejestruj obserwatora; zatrzymuje nasłuch po ostatnim"""
        if observer in self._observers:
            self._observers.remove(observer)

        if not self._observers:
            await self.stop()

    # =========================================================
    # CYKL ŻYCIA
    # =========================================================

    async def start(self) -> None:
        """
        Rozpocznij nasłuch i wylicz projekcję startową.

        Równoległe wywołania czekają na jeden start - kanał Realtime
        otwierany jest co najwyżej raz.
        """
        async with self._start_lock:
            if self.running:
                return

            self._subscription = await self.store.watch(self.collection, self._on_change)
            logger.info(f"[Categories] Watching {self.collection}")

            try:
                await self.refresh()
            except Exception:
                await self.stop()
                raise

    async def stop(self) -> None:
        """Zatrzymaj nasłuch i zwolnij kanał Realtime"""
        subscription, self._subscription = self._subscription, None

        pending = list(self._pending)
        for task in pending:
            task.cancel()
        for task in pending:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._pending.clear()

        if subscription is not None:
            await subscription.cancel()
            logger.info(f"[Categories] Stopped watching {self.collection}")

    async def __aenter__(self) -> "CategoryDistributionView":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    # =========================================================
    # PRZELICZANIE
    # =========================================================

    async def refresh(self) -> CategoryProjection:
        """
        Pobierz pełny zestaw dokumentów i przelicz projekcję od zera.

        Przeliczenia są serializowane - obserwatorzy dostają projekcje
        w kolejności pobrania snapshotów.
        """
        async with self._lock:
            documents = await self.store.list_all(self.collection)
            projection = count_by_category(fields for _, fields in documents)

            if not self.running:
                return projection

            self._current = projection
            logger.debug(f"[Categories] Recomputed: {projection}")

            for observer in list(self._observers):
                self._notify_one(observer, dict(projection))

            return dict(projection)

    def _on_change(self, payload: Dict[str, Any]) -> None:
        """Callback Realtime - planuje przeliczenie w pętli zdarzeń"""
        if not self.running:
            return

        logger.debug(f"[Categories] Change event: {payload.get('eventType', payload.get('type', '?'))}")
        task = asyncio.get_running_loop().create_task(self._refresh_after_change())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _refresh_after_change(self) -> None:
        try:
            await self.refresh()
        except Exception as e:
            # Kolejna zmiana spróbuje ponownie - nasłuch pozostaje aktywny
            logger.error(f"[Categories] Refresh failed: {e}")

    @staticmethod
    def _notify_one(observer: ProjectionObserver, projection: CategoryProjection) -> None:
        try:
            observer(projection)
        except Exception as e:
            logger.error(f"[Categories] Observer error: {e}", exc_info=True)
