"""
Cache Crypto Core — AES-GCM encryption, base64 transport and content hashing.

- Entry layer: session AES-256-GCM key → fresh 96-bit IV per entry → ciphertext
- Transport: ciphertext and IV are base64-encoded for storage-safe records
- Integrity: SHA-256 digests, base64-encoded

Security Note:
    Never log plaintext or ciphertext values.
    IVs are random 96-bit and drawn per entry, never reused under one key.
"""
import os
import base64
import binascii
import logging
from typing import Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import constant_time, hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..conf import LOGGER_NAME
from ..exceptions import DecryptionError, EncryptionError

logger = logging.getLogger(LOGGER_NAME)

IV_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16  # GCM tag
KEY_BITS = 256

DocumentData = Union[bytes, bytearray, memoryview, str]


def to_bytes(data: DocumentData) -> bytes:
    """Normalize document content to bytes; text is UTF-8 encoded."""
    if isinstance(data, str):
        return data.encode("utf-8")
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    raise TypeError(
        f"Document data must be bytes or str, got {type(data).__name__}"
    )


def generate_iv() -> bytes:
    """Return a fresh random 96-bit IV."""
    return os.urandom(IV_SIZE)


def new_cipher(bit_length: int = KEY_BITS) -> AESGCM:
    """Create an AES-GCM cipher around a freshly generated key.

    The raw key bytes go out of scope once the cipher holds them.
    """
    return AESGCM(AESGCM.generate_key(bit_length=bit_length))


# ---------------------------------------------------------------------------
# Encryption
# ---------------------------------------------------------------------------

def encrypt(cipher: AESGCM, iv: bytes, plaintext: bytes) -> bytes:
    """Encrypt plaintext under ``cipher`` with no associated data.

    Returns:
        ciphertext bytes (payload + 16 byte GCM tag).

    Raises:
        EncryptionError: If the primitive rejects the input.
    """
    try:
        return cipher.encrypt(iv, plaintext, None)
    except (ValueError, TypeError, OverflowError) as err:
        raise EncryptionError(
            "Failed to encrypt data", details={"error": str(err)},
        ) from err


def decrypt(cipher: AESGCM, iv: bytes, ciphertext: bytes) -> bytes:
    """Decrypt and authenticate ciphertext.

    Raises:
        DecryptionError: On a short payload, bad IV or failed authentication.
    """
    if len(iv) != IV_SIZE:
        raise DecryptionError(
            f"IV must be {IV_SIZE} bytes, got {len(iv)}"
        )
    if len(ciphertext) < TAG_SIZE:
        raise DecryptionError(
            f"ciphertext too short: {len(ciphertext)} bytes "
            f"(minimum {TAG_SIZE})"
        )
    try:
        return cipher.decrypt(iv, ciphertext, None)
    except InvalidTag as err:
        raise DecryptionError(
            "Failed to decrypt data: authentication failed"
        ) from err
    except (ValueError, TypeError) as err:
        raise DecryptionError(
            "Failed to decrypt data", details={"error": str(err)},
        ) from err


# ---------------------------------------------------------------------------
# Base64 transport
# ---------------------------------------------------------------------------

def b64encode(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def b64decode(value: str) -> bytes:
    """Strictly decode a base64 string.

    Raises:
        DecryptionError: If the value is not valid base64.
    """
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as err:
        raise DecryptionError("Stored value is not valid base64") from err


# ---------------------------------------------------------------------------
# Integrity
# ---------------------------------------------------------------------------

def generate_hash(data: DocumentData) -> str:
    """SHA-256 digest of document content, base64-encoded.

    Args:
        data: Document bytes or text.

    Returns:
        Base64 digest string.
    """
    digest = hashes.Hash(hashes.SHA256())
    digest.update(to_bytes(data))
    return b64encode(digest.finalize())


def verify_hash(data: DocumentData, expected_hash: Union[str, bytes]) -> bool:
    """Compare the digest of ``data`` against ``expected_hash`` in constant time.

    ``expected_hash`` is the base64 digest, as text or ASCII bytes. Any
    other type never matches.
    """
    if isinstance(expected_hash, str):
        expected = expected_hash.encode("utf-8")
    elif isinstance(expected_hash, (bytes, bytearray)):
        expected = bytes(expected_hash)
    else:
        return False
    actual = generate_hash(data)
    return constant_time.bytes_eq(actual.encode("ascii"), expected)
