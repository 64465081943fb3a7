"""
SecureDocumentCache — encrypted, expiring document cache bound to a session key.

Provides the public API of the secure cache:
- ``cache_document(document_id, data)`` — encrypt and persist document bytes
- ``lookup(document_id)`` — tagged Hit/Miss lookup with transparent decrypt
- ``get_cached_document(document_id)`` — plaintext bytes or None
- ``remove_cached_document(document_id)`` — idempotent removal
- ``get_cached_document_ids()`` / ``sweep_expired()`` — enumerate and purge
- ``panic_clear()`` — wipe every entry, the scratch session and the key

Read-path failures (expired, undecryptable or corrupted entries, storage read
errors) are normalized to a cache miss and the entry is removed. Write-path
and panic-clear failures propagate.

Security Note:
    Never log plaintext or ciphertext values. Only log document ids,
    session ids and operations.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Union

from ..conf import LOGGER_NAME
from ..data import ScratchSession
from ..exceptions import (
    CacheWriteError,
    DecryptionError,
    EncryptionError,
    EncryptionInitError,
    PanicClearError,
)
from .config import CacheConfig
from .crypto import (
    DocumentData,
    b64decode,
    b64encode,
    generate_hash,
    to_bytes,
    verify_hash,
)
from .models import (
    CacheEntry,
    CacheHit,
    CacheMiss,
    LookupResult,
    MISS_ABSENT,
    MISS_CLEARED,
    MISS_EXPIRED,
    MISS_STORAGE,
    MISS_UNREADABLE,
)
from .session_key import SessionInfo, SessionKeyManager
from .storage import BaseStorage

logger = logging.getLogger(LOGGER_NAME)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SecureDocumentCache:
    """Encrypted document cache.

    Every entry is encrypted under the single session key held by the
    :class:`SessionKeyManager`, each with its own random IV. Replacing or
    destroying the key turns all existing entries into misses.

    Writes capture a generation counter (``epoch``) when they start; a panic
    clear advances it, and any write that lands afterwards is discarded.
    """

    def __init__(
        self,
        storage: BaseStorage,
        key_manager: Optional[SessionKeyManager] = None,
        scratch: Optional[ScratchSession] = None,
        config: Optional[CacheConfig] = None,
        clock: Clock = utcnow,
    ):
        self._config = config or CacheConfig()
        self._storage = storage
        self._keys = key_manager or SessionKeyManager(self._config.key_bits)
        self._scratch = scratch if scratch is not None else ScratchSession()
        self._clock = clock
        self._epoch = 0
        self._clearing = 0

    @property
    def config(self) -> CacheConfig:
        return self._config

    @property
    def key_manager(self) -> SessionKeyManager:
        return self._keys

    @property
    def scratch(self) -> ScratchSession:
        return self._scratch

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def clearing(self) -> bool:
        return self._clearing > 0

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _validate_id(self, document_id: str) -> None:
        """Validate a document id.

        Raises:
            ValueError: If the id is not a non-empty string.
        """
        if not isinstance(document_id, str) or not document_id:
            raise ValueError("Document id cannot be empty")

    def _storage_key(self, document_id: str) -> str:
        return f"{self._config.key_prefix}{document_id}"

    async def _remove_quietly(self, key: str) -> None:
        """Delete on the read path; a failure is logged, never raised."""
        try:
            await self._storage.delete(key)
        except Exception as err:
            logger.error("Failed to remove cache entry %s: %s", key, err)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def cache_document(
        self, document_id: str, data: DocumentData,
    ) -> CacheEntry:
        """Encrypt and persist a document, replacing any previous entry.

        A session key is created if none exists.

        Args:
            document_id: Unique document identifier (non-empty).
            data: Document bytes, or text (UTF-8 encoded).

        Returns:
            The stored CacheEntry.

        Raises:
            ValueError: If document_id is empty.
            CacheWriteError: If encryption or the storage write fails, or
                a panic clear ran while the write was in flight.
        """
        self._validate_id(document_id)
        plaintext = to_bytes(data)
        epoch = self._epoch
        key = self._storage_key(document_id)

        # no key may be created while a panic clear is wiping storage
        if self._clearing:
            raise CacheWriteError(
                "Cache write rejected: panic clear in progress",
                code="CACHE_DISCARDED",
                details={"documentId": document_id},
            )

        try:
            payload = self._keys.encrypt(plaintext)
        except (EncryptionInitError, EncryptionError) as err:
            raise CacheWriteError(
                "Failed to cache document",
                details={"documentId": document_id, "error": err.code},
            ) from err

        entry = CacheEntry.create(
            document_id=document_id,
            encrypted_data=b64encode(payload.ciphertext),
            iv=b64encode(payload.iv),
            now=self._clock(),
            ttl=self._config.ttl,
        )

        try:
            await self._storage.set(key, entry.dumps(), ttl=self._config.entry_ttl)
        except Exception as err:
            raise CacheWriteError(
                "Failed to cache document",
                details={"documentId": document_id, "error": str(err)},
            ) from err

        if self._epoch != epoch:
            await self._remove_quietly(key)
            logger.warning(
                "Cache write for %s discarded: panic clear ran during the write",
                document_id,
            )
            raise CacheWriteError(
                "Cache write discarded by panic clear",
                code="CACHE_DISCARDED",
                details={"documentId": document_id},
            )

        logger.debug(
            "Cache set: document=%s session=%s", document_id, payload.session_id,
        )
        return entry

    async def lookup(self, document_id: str) -> LookupResult:
        """Load, check expiry and decrypt a cached document.

        Never raises for missing, expired or unreadable entries: those come
        back as a CacheMiss, and the offending entry is removed.

        Args:
            document_id: Document identifier.

        Returns:
            CacheHit with the plaintext, or CacheMiss with a reason.
        """
        self._validate_id(document_id)
        epoch = self._epoch
        key = self._storage_key(document_id)

        try:
            raw = await self._storage.get(key)
        except Exception as err:
            logger.error("Failed to read cached document %s: %s", document_id, err)
            return CacheMiss(MISS_STORAGE)

        if raw is None:
            return CacheMiss(MISS_ABSENT)
        if self._epoch != epoch or self._clearing:
            return CacheMiss(MISS_CLEARED)

        result = self._open_entry(document_id, raw)
        if isinstance(result, CacheMiss):
            await self._remove_quietly(key)
        return result

    def _open_entry(self, document_id: str, raw: bytes) -> LookupResult:
        """Parse, check expiry and decrypt a stored record. Removes nothing."""
        try:
            entry = CacheEntry.loads(raw)
            expired = entry.is_expired(self._clock())
        except (ValueError, TypeError) as err:
            logger.warning("Unreadable cache record for %s: %s", document_id, err)
            return CacheMiss(MISS_UNREADABLE)

        if expired:
            logger.debug("Cache entry expired: document=%s", document_id)
            return CacheMiss(MISS_EXPIRED)

        try:
            if entry.document_id != document_id:
                raise DecryptionError(
                    "Stored record belongs to another document",
                )
            plaintext = self._keys.decrypt(
                b64decode(entry.iv), b64decode(entry.encrypted_data),
            )
        except DecryptionError as err:
            logger.warning(
                "Failed to decrypt cached document %s (%s): %s",
                document_id, err.code, err.message,
            )
            return CacheMiss(MISS_UNREADABLE)

        return CacheHit(plaintext)

    async def purge_if_unreadable(self, document_id: str) -> bool:
        """Remove the entry unless it is live and decrypts under the active key.

        Unlike ``lookup`` this does not swallow storage errors.

        Returns:
            True if an entry was removed.
        """
        self._validate_id(document_id)
        key = self._storage_key(document_id)
        raw = await self._storage.get(key)
        if raw is None:
            return False
        if isinstance(self._open_entry(document_id, raw), CacheHit):
            return False
        await self._storage.delete(key)
        return True

    async def get_cached_document(self, document_id: str) -> Optional[bytes]:
        """Return the decrypted document, or None on a cache miss.

        A None means "re-fetch from the source of truth".
        """
        result = await self.lookup(document_id)
        if isinstance(result, CacheHit):
            return result.data
        return None

    async def remove_cached_document(self, document_id: str) -> None:
        """Remove a cached document. No error if it is absent."""
        self._validate_id(document_id)
        await self._storage.delete(self._storage_key(document_id))
        logger.debug("Cache entry removed: document=%s", document_id)

    async def get_cached_document_ids(self) -> list[str]:
        """List ids of all stored entries, including expired ones not yet swept."""
        prefix = self._config.key_prefix
        keys = await self._storage.keys(prefix)
        return [k[len(prefix):] for k in keys]

    async def sweep_expired(self) -> int:
        """Remove every expired or unreadable entry.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        removed = 0
        for document_id in await self.get_cached_document_ids():
            key = self._storage_key(document_id)
            raw = await self._storage.get(key)
            if raw is None:
                continue
            try:
                stale = CacheEntry.loads(raw).is_expired(now)
            except (ValueError, TypeError):
                stale = True
            if stale:
                await self._storage.delete(key)
                removed += 1
        if removed:
            logger.info("Expiry sweep removed %d cache entr(ies)", removed)
        return removed

    async def panic_clear(self) -> dict:
        """Irreversibly wipe all sensitive state.

        The key is destroyed and the scratch session cleared before the first
        suspension point, so nothing cached stays readable even if the
        storage wipe fails. Writes starting while the wipe runs are rejected,
        and the epoch advances again once it ends so writes that began
        earlier are discarded when they land.

        Returns:
            Counts of wiped entries and scratch items.

        Raises:
            PanicClearError: If the storage layer cannot be wiped.
        """
        self._clearing += 1
        self._epoch += 1
        self._keys.destroy()
        scratch_removed = self._scratch.clear()

        removed = 0
        try:
            for key in await self._storage.keys(self._config.key_prefix):
                await self._storage.delete(key)
                removed += 1
        except Exception as err:
            logger.error(
                "Panic clear failed after %d entr(ies): %s", removed, err,
            )
            raise PanicClearError(
                "Failed to clear cached data",
                details={"removed": removed, "error": str(err)},
            ) from err
        finally:
            self._epoch += 1
            self._clearing -= 1

        logger.info(
            "Panic clear completed: %d cache entr(ies), %d scratch item(s) wiped",
            removed, scratch_removed,
        )
        return {"entries": removed, "scratch": scratch_removed}

    def get_session_info(self) -> SessionInfo:
        return self._keys.get_session_info()

    @staticmethod
    def generate_hash(data: DocumentData) -> str:
        return generate_hash(data)

    @staticmethod
    def verify_hash(data: DocumentData, expected_hash: Union[str, bytes]) -> bool:
        return verify_hash(data, expected_hash)
