#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Centralny moduł połączenia z Supabase

Jeden asynchroniczny klient (AsyncClient) na proces - tworzony leniwie.
Warstwa danych NIE sięga po niego globalnie: uchwyt jest przekazywany
jawnie do StoreClient (patrz core.store_client), co pozwala podmienić
go w testach.
"""

from typing import Optional
import logging

from supabase import AsyncClient, acreate_client

from config import settings

logger = logging.getLogger(__name__)

# Globalny klient Supabase
_supabase_client: Optional[AsyncClient] = None


async def get_supabase_client() -> AsyncClient:
    """
    Zwraca singleton instancję asynchronicznego klienta Supabase.

    Returns:
        AsyncClient: Klient Supabase (SERVICE_ROLE_KEY)

    Raises:
        ValueError: Jeśli brak konfiguracji
    """
    global _supabase_client

    if _supabase_client is None:
        settings.validate_config()
        _supabase_client = await acreate_client(
            settings.SUPABASE_URL,
            settings.SUPABASE_SERVICE_KEY
        )
        logger.info(f"[Supabase] Connected: {settings.SUPABASE_URL}")

    return _supabase_client


def reset_client():
    """
    Resetuj klienta (przydatne do testów).
    """
    global _supabase_client
    _supabase_client = None


async def test_connection() -> bool:
    """
    Testuj połączenie z Supabase.

    Returns:
        True jeśli połączenie działa
    """
    try:
        client = await get_supabase_client()

        # Prosty test - jeden wiersz z kolekcji produktów
        await client.table(settings.PRODUCTS_COLLECTION).select("id").limit(1).execute()

        logger.info("[Supabase] Connection test OK")
        return True

    except Exception as e:
        logger.error(f"[Supabase] Connection test failed: {e}")
        return False
