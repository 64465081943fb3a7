"""Environment defaults for the secure document cache.

Values are kept as read; ``CacheConfig`` validates them.
"""
import os

# Namespace prefix for every persisted cache entry.
CACHE_PREFIX = os.environ.get("FOI_CACHE_PREFIX", "foi_secure_")

# Entry lifetime in seconds (8 hours).
CACHE_TTL = os.environ.get("FOI_CACHE_TTL", str(8 * 60 * 60))

# AES-GCM key strength.
CACHE_KEY_BITS = 256

LOGGER_NAME = "foi.cache"
