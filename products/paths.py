#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ImagePaths - Klucze obrazów produktów w Supabase Storage

Zasady:
1. Wszystkie obrazy leżą pod prefiksem images/
2. Każdy upload dostaje własny folder {upload_id} → identyczne nazwy
   plików nie nadpisują się nawzajem
3. Zachowujemy oryginalną nazwę pliku (tylko nazwa, bez ścieżki)

Struktura w Storage:
    images/
    └── {upload_id}/
        └── {original_filename}   ← UNIKALNY per upload_id
"""

from pathlib import PurePosixPath, PureWindowsPath
import uuid

from config.settings import IMAGE_PREFIX


class ImagePaths:
    """
    Generator kluczy obrazów.

    Przykład użycia:
        path = ImagePaths.image("widget.png")
        # → "images/3f8ee668372a4fa5b75d00ca0f9b3716/widget.png"
    """

    PREFIX = IMAGE_PREFIX
    FALLBACK_NAME = "image"

    @staticmethod
    def image(filename: str, upload_id: str = None) -> str:
        """
        Klucz dla nowego obrazu.

        Args:
            filename: Oryginalna nazwa pliku
            upload_id: Identyfikator uploadu (domyślnie nowy UUID)

        Returns:
            Ścieżka: images/{upload_id}/{filename}
        """
        upload_id = upload_id or uuid.uuid4().hex
        return f"{ImagePaths.PREFIX}/{upload_id}/{ImagePaths.safe_filename(filename)}"

    @staticmethod
    def safe_filename(filename: str) -> str:
        """Zabezpiecz nazwę pliku - usuń ścieżkę, zostaw tylko nazwę"""
        # Nazwa z przeglądarki na Windows może zawierać backslashe
        name = PureWindowsPath(PurePosixPath(filename or "").name).name.strip()
        if name in ("", ".", ".."):
            return ImagePaths.FALLBACK_NAME
        return name
