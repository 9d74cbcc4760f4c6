#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Konfiguracja aplikacji StoreAdmin
Warstwa danych panelu administracyjnego sklepu (produkty i ich obrazy)

UWAGA: Dane dostępowe do Supabase tylko przez .env / zmienne środowiskowe!
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Wczytaj zmienne środowiskowe z .env
load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# ============================================================
# SUPABASE - BAZA DOKUMENTÓW I STORAGE
# ============================================================

SUPABASE_URL = os.getenv("SUPABASE_URL", "").rstrip("/")

# SERVICE_ROLE_KEY - pełne uprawnienia (panel jednoosobowy, brak RLS)
SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY", "")

# Jedyna kolekcja obsługiwana przez warstwę danych
PRODUCTS_COLLECTION = os.getenv("PRODUCTS_COLLECTION", "products")

# Schemat Postgres nasłuchiwany przez Realtime
DB_SCHEMA = os.getenv("DB_SCHEMA", "public")

# ============================================================
# STORAGE - OBRAZY PRODUKTÓW
# ============================================================

# Bucket na zdjęcia produktów (musi być publiczny - imgUrl to public URL)
STORAGE_BUCKET = os.getenv("STORAGE_BUCKET", "product_images")

# Prefiks kluczy obiektów: images/{upload_id}/{oryginalna_nazwa}
IMAGE_PREFIX = os.getenv("IMAGE_PREFIX", "images").strip("/")

# Maksymalny rozmiar zdjęcia (10 MB)
MAX_IMAGE_SIZE_MB = int(os.getenv("MAX_IMAGE_SIZE_MB", "10"))
MAX_IMAGE_SIZE = MAX_IMAGE_SIZE_MB * 1024 * 1024

# Czy przy podmianie zdjęcia w update() usuwać poprzedni plik.
# Domyślnie NIE - stary plik zostaje w Storage (tak samo jak w panelu webowym).
DELETE_REPLACED_IMAGES = _env_bool("DELETE_REPLACED_IMAGES", "false")

# ============================================================
# LOGOWANIE
# ============================================================

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# ============================================================
# DOZWOLONE ROZSZERZENIA I MIME TYPES
# ============================================================

ALLOWED_IMAGES = {'.jpg', '.jpeg', '.png', '.gif', '.webp', '.bmp', '.tiff'}

MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".bmp": "image/bmp",
    ".webp": "image/webp",
    ".tiff": "image/tiff",
}


def get_mime_type(filename: str) -> str:
    """
    Zwróć MIME type dla pliku na podstawie rozszerzenia.

    Args:
        filename: Nazwa pliku lub ścieżka

    Returns:
        MIME type string
    """
    ext = Path(filename).suffix.lower()
    return MIME_TYPES.get(ext, "application/octet-stream")


def is_allowed_image(filename: str) -> bool:
    """Sprawdź czy plik ma rozszerzenie obrazu z białej listy"""
    return Path(filename).suffix.lower() in ALLOWED_IMAGES


# ============================================================
# WALIDACJA KONFIGURACJI
# ============================================================

def validate_config():
    """
    Sprawdź czy konfiguracja jest poprawna.
    Wywoływane przez fabrykę klienta przed połączeniem.
    """
    errors = []

    if not SUPABASE_URL:
        errors.append("SUPABASE_URL nie jest ustawiony")
    elif not SUPABASE_URL.startswith(("http://", "https://")):
        errors.append("SUPABASE_URL musi zaczynać się od http:// lub https://")

    if not SUPABASE_SERVICE_KEY:
        errors.append("SUPABASE_SERVICE_KEY nie jest ustawiony")

    if not PRODUCTS_COLLECTION:
        errors.append("PRODUCTS_COLLECTION nie może być pusty")

    if not STORAGE_BUCKET:
        errors.append("STORAGE_BUCKET nie może być pusty")

    if MAX_IMAGE_SIZE_MB <= 0:
        errors.append("MAX_IMAGE_SIZE_MB musi być dodatni")

    if errors:
        raise ValueError(f"Błędy konfiguracji: {', '.join(errors)}")

    return True
