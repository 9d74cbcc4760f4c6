"""
StoreAdmin - Konfiguracja logowania
===================================
"""

import logging

from config.settings import LOG_FORMAT, LOG_LEVEL


def setup_logging(level: str = None) -> None:
    """
    Skonfiguruj logging dla całej aplikacji.

    Args:
        level: Poziom logowania (domyślnie LOG_LEVEL z konfiguracji)
    """
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format=LOG_FORMAT
    )
