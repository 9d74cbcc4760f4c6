"""
StoreAdmin - Własne wyjątki
===========================
Hierarchia wyjątków warstwy danych.

    StoreAdminError
    ├── ValidationError          (przed jakimkolwiek wywołaniem sieciowym)
    │   ├── RequiredFieldError
    │   ├── InvalidFieldValueError
    │   ├── InvalidFileTypeError
    │   └── FileTooLargeError
    ├── RecordNotFoundError      (cel operacji nie istnieje)
    ├── StorageError             (transport do Storage)
    │   ├── FileUploadError
    │   └── FileDeleteError
    └── TransportError           (pozostałe błędy wywołań bazy)
"""

from typing import Dict, List, Optional


class StoreAdminError(Exception):
    """Bazowy wyjątek dla wszystkich błędów StoreAdmin"""

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"[{self.code}] {self.message} | Details: {self.details}"
        return f"[{self.code}] {self.message}"


# ============================================================
# Validation Errors
# ============================================================

class ValidationError(StoreAdminError):
    """
    Błędy walidacji danych wejściowych.

    Atrybut `fields` zawiera posortowaną listę nazw błędnych pól,
    a `details['fields']` przyczynę dla każdego z nich.
    """

    def __init__(
        self,
        message: str,
        code: str = None,
        details: dict = None,
        fields: Optional[List[str]] = None
    ):
        super().__init__(message, code=code or "VALIDATION_ERROR", details=details)
        self.fields = sorted(fields or [])

    @classmethod
    def for_fields(cls, entity_type: str, reasons: Dict[str, str]) -> "ValidationError":
        """Zbiorczy błąd dla wielu pól naraz"""
        fields = sorted(reasons)
        return cls(
            f"{entity_type}: invalid fields: {', '.join(fields)}",
            details={"entity_type": entity_type, "fields": dict(reasons)},
            fields=fields
        )


class RequiredFieldError(ValidationError):
    """Brak wymaganego pola"""

    def __init__(self, field: str, entity_type: str = None):
        msg = f"Field '{field}' is required"
        if entity_type:
            msg = f"{entity_type}: {msg}"
        super().__init__(
            msg,
            code="REQUIRED_FIELD",
            details={"field": field},
            fields=[field]
        )


class InvalidFieldValueError(ValidationError):
    """Nieprawidłowa wartość pola"""

    def __init__(self, field: str, value, reason: str = None):
        msg = f"Invalid value for field '{field}': {value}"
        if reason:
            msg += f" - {reason}"
        super().__init__(
            msg,
            code="INVALID_FIELD_VALUE",
            details={"field": field, "value": str(value), "reason": reason},
            fields=[field]
        )


class InvalidFileTypeError(ValidationError):
    """Nieprawidłowy typ pliku"""

    def __init__(self, filename: str, allowed_types: list):
        super().__init__(
            f"Invalid file type: '{filename}'. Allowed: {', '.join(allowed_types)}",
            code="INVALID_FILE_TYPE",
            details={"filename": filename, "allowed_types": allowed_types},
            fields=["image"]
        )


class FileTooLargeError(ValidationError):
    """Plik jest za duży"""

    def __init__(self, filename: str, size_mb: float, max_size_mb: float):
        super().__init__(
            f"File '{filename}' is too large ({size_mb:.1f} MB). Maximum: {max_size_mb:.1f} MB",
            code="FILE_TOO_LARGE",
            details={
                "filename": filename,
                "size_mb": size_mb,
                "max_size_mb": max_size_mb
            },
            fields=["image"]
        )


# ============================================================
# Store Errors
# ============================================================

class RecordNotFoundError(StoreAdminError):
    """Rekord nie został znaleziony"""

    def __init__(self, entity_type: str, entity_id: str):
        super().__init__(
            f"{entity_type} with id '{entity_id}' not found",
            code="RECORD_NOT_FOUND",
            details={"entity_type": entity_type, "entity_id": entity_id}
        )
        self.entity_type = entity_type
        self.entity_id = entity_id


class TransportError(StoreAdminError):
    """Błąd wywołania bazy dokumentów (sieć, API, uprawnienia)"""

    def __init__(self, operation: str, reason: str = None):
        super().__init__(
            f"Store call failed: {operation}" + (f" - {reason}" if reason else ""),
            code="TRANSPORT_ERROR",
            details={"operation": operation, "reason": reason}
        )


# ============================================================
# Storage Errors
# ============================================================

class StorageError(StoreAdminError):
    """Błędy związane z Supabase Storage"""
    pass


class FileUploadError(StorageError):
    """Błąd podczas uploadu pliku"""

    def __init__(self, path: str, reason: str = None):
        super().__init__(
            f"Failed to upload file: {path}" + (f" - {reason}" if reason else ""),
            code="FILE_UPLOAD_ERROR",
            details={"path": path, "reason": reason}
        )


class FileDeleteError(StorageError):
    """Błąd podczas usuwania pliku"""

    def __init__(self, path: str, reason: str = None):
        super().__init__(
            f"Failed to delete file: {path}" + (f" - {reason}" if reason else ""),
            code="FILE_DELETE_ERROR",
            details={"path": path, "reason": reason}
        )
