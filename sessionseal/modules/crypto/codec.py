"""
Session token codec.

Tokens are two base64url parts joined by ";":

    signed:     base64url(payload) ; base64url(tag)
    encrypted:  base64url(iv)      ; base64url(ciphertext || poly1305 tag)

Signing uses HMAC-SHA-512 truncated to 32 bytes (libsodium crypto_auth).
Encryption derives a per-message key from the ring key and the IV with
HKDF-SHA256, then seals with ChaCha20-Poly1305.

Keys are tried active first. A match under a retired key succeeds with
rotated=True so the caller can re-seal under the active key on the next response.
"""

import base64
import binascii
import re
import secrets
from dataclasses import dataclass
from typing import Iterable, Literal, Optional, Tuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes, hmac
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

SEPARATOR = ";"
MAC_BYTES = 32
IV_BYTES = 24
NONCE_BYTES = 12
AEAD_TAG_BYTES = 16
HKDF_INFO = b"sessionseal/v1"

_BASE64URL = re.compile(r"[A-Za-z0-9_-]+={0,2}")


@dataclass(frozen=True)
class UnsealResult:
    """Uniform outcome of verify() and decrypt()."""

    success: bool
    payload: bytes = b""
    rotated: bool = False
    error: Optional[Literal["malformed", "authentication_failed"]] = None


_MALFORMED = UnsealResult(success=False, error="malformed")
_AUTH_FAILED = UnsealResult(success=False, error="authentication_failed")


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii")


def _b64decode(text: str) -> bytes:
    """Strict base64url decode; padding optional, encoding must be canonical."""
    if not _BASE64URL.fullmatch(text):
        raise ValueError("not base64url")

    stripped = text.rstrip("=")
    raw = base64.urlsafe_b64decode(stripped + "=" * (-len(stripped) % 4))

    # Reject encodings with non-zero unused trailing bits
    if _b64encode(raw).rstrip("=") != stripped:
        raise ValueError("non-canonical base64url")
    return raw


def _split(token: str) -> Optional[Tuple[bytes, bytes]]:
    if not isinstance(token, str):
        return None

    parts = token.split(SEPARATOR)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return None

    try:
        return _b64decode(parts[0]), _b64decode(parts[1])
    except (binascii.Error, ValueError):
        return None


def _mac(payload: bytes, key: bytes) -> bytes:
    h = hmac.HMAC(key, hashes.SHA512())
    h.update(payload)
    return h.finalize()[:MAC_BYTES]


def _message_key(key: bytes, iv: bytes) -> bytes:
    return HKDF(
        algorithm=hashes.SHA256(),
        length=32,
        salt=iv,
        info=HKDF_INFO,
    ).derive(key)


def sign(payload: bytes, key: bytes) -> str:
    """
    Sign payload with key.

    Args:
        payload: Raw bytes to protect
        key: Active ring key

    Returns:
        Signed token "base64url(payload);base64url(tag)"
    """
    return f"{_b64encode(payload)}{SEPARATOR}{_b64encode(_mac(payload, key))}"


def verify(token: str, keys: Iterable[bytes]) -> UnsealResult:
    """
    Verify a signed token against every key, active first.

    Never raises; malformed input and tag mismatches return success=False.
    """
    parts = _split(token)
    if parts is None:
        return _MALFORMED

    payload, tag = parts
    if len(tag) != MAC_BYTES:
        return _MALFORMED

    for index, key in enumerate(keys):
        if secrets.compare_digest(_mac(payload, key), tag):
            return UnsealResult(success=True, payload=payload, rotated=index > 0)

    return _AUTH_FAILED


def encrypt(payload: bytes, key: bytes, iv: Optional[bytes] = None) -> str:
    """
    Encrypt payload with key.

    Args:
        payload: Raw bytes to protect
        key: Active ring key
        iv: Optional 24-byte IV; a random one is generated when omitted.
            Passing one makes the output deterministic.

    Returns:
        Encrypted token "base64url(iv);base64url(ciphertext||tag)"
    """
    if iv is None:
        iv = secrets.token_bytes(IV_BYTES)
    if len(iv) != IV_BYTES:
        raise ValueError(f"IV must be {IV_BYTES} bytes")

    sealed = ChaCha20Poly1305(_message_key(key, iv)).encrypt(iv[:NONCE_BYTES], payload, None)
    return f"{_b64encode(iv)}{SEPARATOR}{_b64encode(sealed)}"


def decrypt(token: str, keys: Iterable[bytes]) -> UnsealResult:
    """
    Decrypt an encrypted token, trying every key, active first.

    The AEAD tag is the integrity check. Never raises.
    """
    parts = _split(token)
    if parts is None:
        return _MALFORMED

    iv, sealed = parts
    if len(iv) != IV_BYTES or len(sealed) < AEAD_TAG_BYTES:
        return _MALFORMED

    for index, key in enumerate(keys):
        try:
            payload = ChaCha20Poly1305(_message_key(key, iv)).decrypt(
                iv[:NONCE_BYTES], sealed, None
            )
        except InvalidTag:
            continue
        return UnsealResult(success=True, payload=payload, rotated=index > 0)

    return _AUTH_FAILED


def seal(payload: bytes, key: bytes, *, confidential: bool) -> str:
    """Encrypt when confidential, otherwise sign."""
    if confidential:
        return encrypt(payload, key)
    return sign(payload, key)


def unseal(token: str, keys: Iterable[bytes], *, confidential: bool) -> UnsealResult:
    """Counterpart of seal()."""
    if confidential:
        return decrypt(token, keys)
    return verify(token, keys)
