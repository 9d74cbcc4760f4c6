#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StoreAdmin Core Module
======================
Wspólne komponenty warstwy danych.
"""

# Supabase client
from core.supabase_client import (
    get_supabase_client,
    reset_client,
    test_connection,
)

# Store client
from core.store_client import (
    StoreClient,
    Subscription,
    create_store_client,
)

# Exceptions
from core.exceptions import (
    StoreAdminError,
    ValidationError,
    RequiredFieldError,
    InvalidFieldValueError,
    InvalidFileTypeError,
    FileTooLargeError,
    RecordNotFoundError,
    TransportError,
    StorageError,
    FileUploadError,
    FileDeleteError,
)

# Events
from core.events import (
    EventType,
    Event,
    EventBus,
    EventHandler,
    Unsubscribe,
    create_event,
    get_event_bus,
    setup_event_logging,
)

# Logging
from core.logging_setup import setup_logging


__all__ = [
    # Supabase Client
    'get_supabase_client',
    'reset_client',
    'test_connection',

    # Store Client
    'StoreClient',
    'Subscription',
    'create_store_client',

    # Exceptions
    'StoreAdminError',
    'ValidationError',
    'RequiredFieldError',
    'InvalidFieldValueError',
    'InvalidFileTypeError',
    'FileTooLargeError',
    'RecordNotFoundError',
    'TransportError',
    'StorageError',
    'FileUploadError',
    'FileDeleteError',

    # Events
    'EventType',
    'Event',
    'EventBus',
    'EventHandler',
    'Unsubscribe',
    'create_event',
    'get_event_bus',
    'setup_event_logging',

    # Logging
    'setup_logging',
]
