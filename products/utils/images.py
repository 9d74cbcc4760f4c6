#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Walidacja obrazów przed wysłaniem do Storage

Sprawdzane lokalnie (bez sieci):
- rozszerzenie z białej listy
- rozmiar pliku
- czy dane dają się otworzyć jako obraz (Pillow)

Zwracany MIME type pochodzi z wykrytego formatu, a nie z rozszerzenia.
"""

import io
import logging

from PIL import Image, UnidentifiedImageError

from config.settings import (
    ALLOWED_IMAGES,
    MAX_IMAGE_SIZE,
    get_mime_type,
    is_allowed_image,
)
from core.exceptions import (
    FileTooLargeError,
    InvalidFieldValueError,
    InvalidFileTypeError,
)

logger = logging.getLogger(__name__)


def inspect_image(filename: str, data: bytes, max_size: int = MAX_IMAGE_SIZE) -> str:
    """
    Zweryfikuj obraz i zwróć jego MIME type.

    Args:
        filename: Oryginalna nazwa pliku
        data: Zawartość pliku
        max_size: Limit rozmiaru w bajtach

    Returns:
        MIME type wykrytego formatu

    Raises:
        InvalidFileTypeError: Rozszerzenie spoza białej listy
        FileTooLargeError: Plik przekracza limit
        InvalidFieldValueError: Pusty plik lub dane nie są obrazem
    """
    if not is_allowed_image(filename):
        raise InvalidFileTypeError(filename, sorted(ALLOWED_IMAGES))

    if not data:
        raise InvalidFieldValueError("image", filename, "file is empty")

    if len(data) > max_size:
        raise FileTooLargeError(
            filename,
            len(data) / (1024 * 1024),
            max_size / (1024 * 1024)
        )

    try:
        with Image.open(io.BytesIO(data)) as image:
            image_format = image.format
            image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        logger.debug(f"[Image] Rejected {filename}: {e}")
        raise InvalidFieldValueError("image", filename, "not a readable image")

    return Image.MIME.get(image_format or "", get_mime_type(filename))
