"""Shared utilities for the egg pool: errors, caching, HTTP, configuration, strings."""

# String utilities
from utils.strings import (
    capitalize,
    format_name,
    from_base64,
    normalize_whitespace,
    to_base64,
    to_slug,
)

# Caching
from utils.cache import CacheEntry, FileStorage, MemoryStorage, TTLCache

# HTTP utilities
from utils.http import RetryStrategy, SessionManager, get_json

# Configuration
from utils.config import AppConfig, Config, ReferenceConfig, StoreConfig

__all__ = [
    # Strings
    "capitalize",
    "format_name",
    "from_base64",
    "normalize_whitespace",
    "to_base64",
    "to_slug",
    # Cache
    "CacheEntry",
    "FileStorage",
    "MemoryStorage",
    "TTLCache",
    # HTTP
    "RetryStrategy",
    "SessionManager",
    "get_json",
    # Config
    "AppConfig",
    "Config",
    "ReferenceConfig",
    "StoreConfig",
]
