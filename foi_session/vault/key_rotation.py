"""
Session Key Rotation — replace the session key and purge stale entries.

Entries are bound to the key they were written under, so rotating the key
turns every existing entry into a miss. Rather than leaving them for lazy
removal on read, rotation purges them in batches right away. An entry is
only purged if it does not decrypt under the new key, so documents
re-cached while the purge runs are kept.

Security Note:
    Nothing is re-encrypted: rotation never resurrects old ciphertext.
"""
import logging
from typing import TYPE_CHECKING

from ..conf import LOGGER_NAME

if TYPE_CHECKING:
    from .secure_cache import SecureDocumentCache

logger = logging.getLogger(LOGGER_NAME)


async def rotate_session_key(
    cache: "SecureDocumentCache",
    batch_size: int = 100,
) -> dict:
    """Initialize a new session key and purge entries it cannot read.

    Args:
        cache: The cache whose session key is rotated.
        batch_size: Number of entries checked per batch.

    Returns:
        Stats dict with keys: total, purged, kept, errors.

    Raises:
        ValueError: If batch_size is not positive.
        EncryptionInitError: If the new key cannot be generated; existing
            entries are left untouched in that case.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")

    manager = cache.key_manager
    previous = manager.session_id
    session = manager.initialize_session()
    document_ids = await cache.get_cached_document_ids()
    stats = {"total": len(document_ids), "purged": 0, "kept": 0, "errors": 0}

    logger.info(
        "Starting session rotation from %s to %s (%d entries, batch_size=%d)",
        previous, session.session_id, len(document_ids), batch_size,
    )

    for offset in range(0, len(document_ids), batch_size):
        batch = document_ids[offset:offset + batch_size]
        logger.info(
            "Processing batch %d (%d entries)",
            (offset // batch_size) + 1, len(batch),
        )
        for document_id in batch:
            try:
                if await cache.purge_if_unreadable(document_id):
                    stats["purged"] += 1
                else:
                    stats["kept"] += 1
            except Exception as err:
                logger.error(
                    "Error purging cache entry document=%s: %s",
                    document_id, err,
                )
                stats["errors"] += 1

    logger.info("Session rotation complete: %s", stats)
    return stats
