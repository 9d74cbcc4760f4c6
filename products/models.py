#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Modele produktów

- Product: produkt zapisany w bazie (z id nadanym przez bazę)
- ProductDraft: dane z formularza (surowe, jeszcze niezwalidowane)
- ImageFile: plik obrazu wybrany w formularzu

Kontrakt dokumentu w kolekcji `products`:
    { name: str, category: str, price: number, stock: int, sales: int, imgUrl?: str }
Id jest kluczem dokumentu - nigdy polem.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional
import logging
import math

from core.exceptions import ValidationError

logger = logging.getLogger(__name__)

# Nazwa pola z URL obrazu w dokumencie
IMAGE_URL_FIELD = "imgUrl"

TEXT_FIELDS = ("name", "category")
NUMERIC_FIELDS = ("price", "stock", "sales")


@dataclass(frozen=True)
class ImageFile:
    """Obraz do wysłania do Storage"""
    filename: str
    data: bytes = field(repr=False)
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class Product:
    """Produkt zapisany w bazie"""
    id: str
    name: str
    category: str
    price: float
    stock: int
    sales: int
    img_url: Optional[str] = None

    def to_document(self) -> Dict[str, Any]:
        """Pola dokumentu (bez id)"""
        doc = {
            "name": self.name,
            "category": self.category,
            "price": self.price,
            "stock": self.stock,
            "sales": self.sales,
        }
        if self.img_url:
            doc[IMAGE_URL_FIELD] = self.img_url
        return doc

    def merged(self, fields: Dict[str, Any]) -> "Product":
        """Nowa instancja z nadpisanymi polami dokumentu (id bez zmian)"""
        merged = {**self.to_document(), **fields}
        return Product.from_document(self.id, merged)

    @classmethod
    def from_document(cls, doc_id: str, fields: Dict[str, Any]) -> "Product":
        """
        Zbuduj Product z dokumentu bazy.

        Dokumenty zapisane poza panelem mogą mieć braki lub złe typy -
        takie wartości są zerowane z ostrzeżeniem zamiast przerywać listę.
        """
        return cls(
            id=str(doc_id),
            name=str(fields.get("name") or ""),
            category=str(fields.get("category") or ""),
            price=_coerce(doc_id, "price", fields.get("price"), float, 0.0),
            stock=_coerce(doc_id, "stock", fields.get("stock"), int, 0),
            sales=_coerce(doc_id, "sales", fields.get("sales"), int, 0),
            img_url=fields.get(IMAGE_URL_FIELD) or None,
        )


@dataclass(frozen=True)
class ProductDraft:
    """
    Dane produktu z formularza.

    Wartości liczbowe mogą przyjść jako tekst ("12.50"). Przy aktualizacji
    pole None oznacza "bez zmian".
    """
    name: Optional[str] = None
    category: Optional[str] = None
    price: Any = None
    stock: Any = None
    sales: Any = None
    img_url: Optional[str] = None
    image: Optional[ImageFile] = None

    def to_fields(self, partial: bool = False) -> Dict[str, Any]:
        """
        Zwaliduj i skonwertuj dane do pól dokumentu.

        Args:
            partial: True = aktualizacja (pola None są pomijane)

        Returns:
            Pola dokumentu gotowe do zapisu (bez obrazu)

        Raises:
            ValidationError: z listą wszystkich błędnych pól
        """
        fields: Dict[str, Any] = {}
        errors: Dict[str, str] = {}

        for name in TEXT_FIELDS:
            value = getattr(self, name)
            if value is None and partial:
                continue
            text = value.strip() if isinstance(value, str) else ""
            if not text:
                errors[name] = "must be non-empty text"
            else:
                fields[name] = text

        parsers = {"price": parse_price, "stock": parse_count, "sales": parse_count}
        for name in NUMERIC_FIELDS:
            value = getattr(self, name)
            if value is None and partial:
                continue
            try:
                fields[name] = parsers[name](value)
            except ValueError as e:
                errors[name] = str(e)

        if errors:
            raise ValidationError.for_fields("Product", errors)

        if self.img_url:
            fields[IMAGE_URL_FIELD] = self.img_url

        return fields


# =========================================================
# PARSOWANIE PÓL LICZBOWYCH
# =========================================================

def parse_price(value: Any) -> float:
    """
    Cena: nieujemna liczba dziesiętna.

    Raises:
        ValueError: Jeśli wartość nie jest poprawną ceną
    """
    if value is None or isinstance(value, bool):
        raise ValueError("must be a number")

    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValueError("must be a number")

    try:
        price = float(Decimal(str(value)))
    except (InvalidOperation, ValueError):
        raise ValueError("must be a number")

    if math.isnan(price) or math.isinf(price):
        raise ValueError("must be a finite number")
    if price < 0:
        raise ValueError("must not be negative")

    return price


def parse_count(value: Any) -> int:
    """
    Stan / sprzedaż: nieujemna liczba całkowita.

    Raises:
        ValueError: Jeśli wartość nie jest liczbą całkowitą >= 0
    """
    if value is None or isinstance(value, bool):
        raise ValueError("must be an integer")

    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError("must be an integer")
        count = int(value)
    elif isinstance(value, int):
        count = value
    else:
        # "12" i "12.0" z formularza są równoważne
        try:
            number = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError("must be an integer")
        if not number.is_finite() or number != number.to_integral_value():
            raise ValueError("must be an integer")
        count = int(number)

    if count < 0:
        raise ValueError("must not be negative")

    return count


def _coerce(doc_id: str, name: str, value: Any, type_, default):
    if value is None:
        return default
    try:
        return type_(value)
    except (TypeError, ValueError):
        logger.warning(f"[Product] {doc_id}: invalid '{name}' in store: {value!r}")
        return default
