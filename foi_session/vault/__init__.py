"""Secure Cache — Encrypted document storage bound to a browser-style session.

Security Note (Threat Model):
    Decrypted documents and the session key live in process memory for the
    session lifetime. A memory dump of the process could expose them.
    Persisted entries are ciphertext only and are useless once the session
    key is replaced or destroyed.
"""

from .config import CacheConfig
from .crypto import generate_hash, verify_hash
from .key_rotation import rotate_session_key
from .models import CacheEntry, CacheHit, CacheMiss, LookupResult
from .secure_cache import SecureDocumentCache
from .session_key import SessionInfo, SessionKey, SessionKeyManager
from .storage import BaseStorage, MemoryStorage, RedisStorage

__all__ = [
    "SecureDocumentCache",
    "SessionKeyManager",
    "SessionKey",
    "SessionInfo",
    "CacheConfig",
    "CacheEntry",
    "CacheHit",
    "CacheMiss",
    "LookupResult",
    "BaseStorage",
    "MemoryStorage",
    "RedisStorage",
    "rotate_session_key",
    "generate_hash",
    "verify_hash",
]
