"""FOI Session.

Session-scoped secure document cache for the FOI redaction workflow.
"""
from typing import Optional

from .version import __version__
from .data import ScratchSession
from .exceptions import (
    FOIError,
    EncryptionInitError,
    EncryptionError,
    DecryptionError,
    CacheWriteError,
    PanicClearError,
)
from .vault import (
    BaseStorage,
    CacheConfig,
    MemoryStorage,
    SecureDocumentCache,
    SessionKeyManager,
)
from .vault.secure_cache import Clock, utcnow


def create_secure_cache(
    storage: Optional[BaseStorage] = None,
    config: Optional[CacheConfig] = None,
    clock: Clock = utcnow,
) -> SecureDocumentCache:
    """Build a cache with its own key manager and scratch session.

    Meant to be called once by the application's composition root; the
    returned object is then passed to whatever needs it.
    """
    config = config or CacheConfig.from_env()
    return SecureDocumentCache(
        storage=storage if storage is not None else MemoryStorage(),
        key_manager=SessionKeyManager(config.key_bits),
        scratch=ScratchSession(),
        config=config,
        clock=clock,
    )


__all__ = [
    "__version__",
    "create_secure_cache",
    "SecureDocumentCache",
    "SessionKeyManager",
    "ScratchSession",
    "CacheConfig",
    "FOIError",
    "EncryptionInitError",
    "EncryptionError",
    "DecryptionError",
    "CacheWriteError",
    "PanicClearError",
]
