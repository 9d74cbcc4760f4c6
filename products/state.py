#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Stan listy produktów dla widoku tabeli

Lista lokalna zmienia się WYŁĄCZNIE po udanej operacji repozytorium:
- add    → dopisz zwrócony produkt (z id nadanym przez bazę)
- update → podmień wpis o tym samym id
- remove → odfiltruj wpis o tym id

Wyszukiwanie to czysta funkcja nad listą lokalną - nigdy jej nie modyfikuje.
"""

from typing import Iterable, List, Optional
import logging

from products.models import Product, ProductDraft
from products.repository import ProductRepository, ProgressCallback

logger = logging.getLogger(__name__)


def filter_products(products: Iterable[Product], term: str) -> List[Product]:
    """
    Filtruj produkty po nazwie LUB kategorii (bez rozróżniania wielkości liter).

    Args:
        products: Lista produktów
        term: Fraza wyszukiwania; pusta = wszystkie

    Returns:
        Nowa lista pasujących produktów
    """
    needle = (term or "").strip().casefold()
    if not needle:
        return list(products)

    return [
        p for p in products
        if needle in p.name.casefold() or needle in p.category.casefold()
    ]


class ProductListState:
    """
    Lokalny stan listy produktów + fraza wyszukiwania.

    Example:
        state = ProductListState(repo)
        await state.load()

        state.set_search("wid")
        for product in state.visible:
            ...
    """

    def __init__(self, repository: ProductRepository):
        self.repository = repository
        self._products: List[Product] = []
        self._search_term = ""

    @property
    def products(self) -> List[Product]:
        """Wszystkie produkty (kopia)"""
        return list(self._products)

    @property
    def search_term(self) -> str:
        return self._search_term

    @property
    def visible(self) -> List[Product]:
        """Produkty po zastosowaniu filtra wyszukiwania"""
        return filter_products(self._products, self._search_term)

    def set_search(self, term: str) -> List[Product]:
        self._search_term = term or ""
        return self.visible

    # =========================================================
    # OPERACJE (repozytorium → stan lokalny)
    # =========================================================

    async def load(self) -> List[Product]:
        """Wczytaj pełną listę z bazy (zastępuje stan lokalny)"""
        self._products = await self.repository.fetch_all()
        logger.info(f"[ProductList] Loaded {len(self._products)} products")
        return self.products

    async def save(
        self,
        draft: ProductDraft,
        product_id: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None
    ) -> Product:
        """
        Zapisz formularz: bez id → add, z id → update.

        Przy błędzie wyjątek jest propagowany, a stan lokalny zostaje bez zmian.
        """
        if product_id:
            product = await self.repository.update(product_id, draft, on_progress=on_progress)
            self.apply_updated(product)
        else:
            product = await self.repository.add(draft, on_progress=on_progress)
            self.apply_added(product)
        return product

    async def delete(self, product_id: str) -> None:
        await self.repository.remove(product_id)
        self.apply_removed(product_id)

    # =========================================================
    # SCALANIE WYNIKÓW
    # =========================================================

    def apply_added(self, product: Product) -> None:
        self._products.append(product)

    def apply_updated(self, product: Product) -> bool:
        """Podmień wpis o tym samym id; False jeśli nie ma go w liście"""
        for index, current in enumerate(self._products):
            if current.id == product.id:
                self._products[index] = product
                return True
        logger.debug(f"[ProductList] Updated product not in list: {product.id}")
        return False

    def apply_removed(self, product_id: str) -> None:
        self._products = [p for p in self._products if p.id != product_id]
