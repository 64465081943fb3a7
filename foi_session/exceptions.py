"""
Exceptions raised by the secure document cache.
"""
from typing import Any, Optional


class FOIError(Exception):
    """Base exception for the FOI session layer.

    Carries a machine readable ``code`` next to the message so callers can
    branch on the failure kind without parsing text.
    """

    default_code = "FOI_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.status_code = status_code
        self.details = details or {}

    def __repr__(self) -> str:
        return f"<{type(self).__name__} code={self.code} message={self.message!r}>"


class EncryptionInitError(FOIError):
    """Session key or IV generation failed."""
    default_code = "ENCRYPTION_INIT_FAILED"


class EncryptionError(FOIError):
    """A single encrypt operation failed."""
    default_code = "ENCRYPTION_FAILED"


class DecryptionError(FOIError):
    """A single decrypt operation failed (wrong key, tampered data, no session)."""
    default_code = "DECRYPTION_FAILED"


class CacheWriteError(FOIError):
    """Encrypting or persisting a cache entry failed; no entry was created."""
    default_code = "CACHE_FAILED"


class PanicClearError(FOIError):
    """The storage layer could not be wiped during a panic clear.

    This is the one cache failure that must reach the user.
    """
    default_code = "PANIC_CLEAR_FAILED"
