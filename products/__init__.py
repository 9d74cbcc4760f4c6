#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Products Module - Moduł zarządzania produktami

Architektura:
─────────────────────────────────────────────────────────────
    Widok tabeli                    Wykres kategorii
    ProductListState                CategoryDistributionView
    (products.state)                (products.aggregation)
         │                                   ▲
         ▼                                   │ Realtime
    ProductRepository                        │
    (products.repository)                    │
         │                                   │
         ▼                                   │
    StoreClient (core.store_client) ─────────┘
         │
         ├──────────────────┐
         ▼                  ▼
    Supabase DB        Supabase Storage
─────────────────────────────────────────────────────────────

Użycie:
    from products import create_product_repository, ProductDraft, ImageFile

    repo = await create_product_repository()

    product = await repo.add(ProductDraft(
        name='Widget', category='Tools', price='12.50', stock='3', sales='0',
        image=ImageFile('widget.png', png_bytes)
    ))

    products = await repo.fetch_all()
    await repo.remove(product.id)

Rozkład kategorii na żywo:
    from products import CategoryDistributionView

    async with CategoryDistributionView(repo.store) as view:
        print(view.current)     # {'Tools': 2, 'Home': 1}
"""

# Repozytorium i factory
from products.repository import ProductRepository, create_product_repository

# Modele
from products.models import ImageFile, Product, ProductDraft

# Projekcja kategorii
from products.aggregation import (
    CategoryDistributionView,
    CategoryProjection,
    as_chart_data,
    count_by_category,
)

# Stan widoku
from products.state import ProductListState, filter_products

# Ścieżki Storage
from products.paths import ImagePaths

__all__ = [
    # Główny punkt wejścia
    'ProductRepository',
    'create_product_repository',

    # Modele
    'Product',
    'ProductDraft',
    'ImageFile',

    # Projekcja
    'CategoryDistributionView',
    'CategoryProjection',
    'count_by_category',
    'as_chart_data',

    # Stan widoku
    'ProductListState',
    'filter_products',

    # Pomocnicze
    'ImagePaths',
]

# Wersja modułu
__version__ = '2.0.0'
__author__ = 'StoreAdmin Team'
