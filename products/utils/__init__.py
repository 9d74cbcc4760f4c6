#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Products Utils - Narzędzia pomocnicze

Komponenty:
- inspect_image: lokalna walidacja obrazu (rozszerzenie, rozmiar, format)

Użycie:
    from products.utils import inspect_image

    content_type = inspect_image("widget.png", png_bytes)
"""

from products.utils.images import inspect_image

__all__ = [
    'inspect_image',
]
