"""
Session Key Manager — the single AES-GCM key of a cache session.

One key (plus session IV and session id) exists per manager at a time.
Re-initializing replaces it, which makes every entry encrypted under the
previous key unreadable. Panic clear destroys it.

Security Note:
    The key is held as an opaque cipher handle and never exported,
    persisted or logged. Only session ids are logged.
"""
import uuid
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import NamedTuple, Optional

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..conf import LOGGER_NAME
from ..exceptions import DecryptionError, EncryptionInitError
from .crypto import KEY_BITS, generate_iv, new_cipher, encrypt, decrypt

logger = logging.getLogger(LOGGER_NAME)


@dataclass(frozen=True)
class SessionKey:
    """Key material of one session. ``key`` is excluded from repr."""

    session_id: str
    iv: bytes = field(repr=False)
    key: AESGCM = field(repr=False)
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class SessionInfo(NamedTuple):
    session_id: Optional[str]
    has_key: bool


class EncryptedPayload(NamedTuple):
    session_id: str
    iv: bytes
    ciphertext: bytes


class SessionKeyManager:
    """Owns the session key; sole mutator of it.

    Callers never see the key itself: they ask the manager to encrypt or
    decrypt on their behalf.
    """

    def __init__(self, key_bits: int = KEY_BITS):
        self._key_bits = key_bits
        self._session: Optional[SessionKey] = None

    def initialize_session(self) -> SessionKey:
        """Generate a brand-new key, IV and session id.

        Any existing key is replaced.

        Raises:
            EncryptionInitError: If key or IV generation fails.
        """
        try:
            cipher = new_cipher(self._key_bits)
            iv = generate_iv()
        except Exception as err:
            raise EncryptionInitError(
                "Failed to initialize encryption session",
                details={"error": str(err)},
            ) from err
        previous = self._session
        self._session = SessionKey(
            session_id=str(uuid.uuid4()), iv=iv, key=cipher,
        )
        if previous is not None:
            logger.info(
                "Session key replaced: %s -> %s",
                previous.session_id, self._session.session_id,
            )
        else:
            logger.info("Session initialized: %s", self._session.session_id)
        return self._session

    def ensure_session(self) -> SessionKey:
        """Return the active key, creating one if absent."""
        if self._session is None:
            return self.initialize_session()
        return self._session

    def get_session_info(self) -> SessionInfo:
        session = self._session
        return SessionInfo(
            session_id=session.session_id if session else None,
            has_key=session is not None,
        )

    @property
    def session_id(self) -> Optional[str]:
        return self._session.session_id if self._session else None

    def encrypt(self, plaintext: bytes) -> EncryptedPayload:
        """Encrypt under the active key with a fresh IV.

        Lazily initializes a session if none exists.
        """
        session = self.ensure_session()
        iv = generate_iv()
        ciphertext = encrypt(session.key, iv, plaintext)
        return EncryptedPayload(session.session_id, iv, ciphertext)

    def decrypt(self, iv: bytes, ciphertext: bytes) -> bytes:
        """Decrypt with the active key.

        Raises:
            DecryptionError: If there is no session, or authentication fails
                (e.g. the data was written under a previous key).
        """
        session = self._session
        if session is None:
            raise DecryptionError(
                "No encryption session available",
                code="ENCRYPTION_NO_SESSION",
                status_code=400,
            )
        return decrypt(session.key, iv, ciphertext)

    def destroy(self) -> bool:
        """Drop the active key. Returns True if a key existed."""
        session, self._session = self._session, None
        if session is not None:
            logger.info("Session key destroyed: %s", session.session_id)
        return session is not None
