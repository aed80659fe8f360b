"""
Key ring for session token signing and encryption.

The first key is active and used for everything new. Later keys are retired:
they still verify and decrypt tokens issued before a rotation, so sessions
survive a key change without a forced logout.
"""

import base64
import binascii
import logging
import secrets
from dataclasses import dataclass
from typing import Iterable, Iterator, Tuple, Union

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ...errors import InvalidConfiguration

logger = logging.getLogger(__name__)

KEY_BYTES = 32
MIN_SALT_BYTES = 16
PBKDF2_ITERATIONS = 390_000


@dataclass(frozen=True)
class KeyRing:
    """Immutable ordered sequence of secret keys, active key first."""

    keys: Tuple[bytes, ...]

    def __post_init__(self):
        keys = tuple(self.keys)
        if not keys:
            raise InvalidConfiguration("KeyRing requires at least one key")

        for index, key in enumerate(keys):
            if not isinstance(key, bytes) or not key:
                raise InvalidConfiguration(f"Key at position {index} must be non-empty bytes")
            if len(key) < KEY_BYTES:
                logger.warning(
                    f"Key at position {index} is {len(key)} bytes; {KEY_BYTES} or more is recommended"
                )

        # frozen dataclass: normalise lists passed by callers into a tuple
        object.__setattr__(self, "keys", keys)

    @property
    def active(self) -> bytes:
        """Key used for all new signing and encryption."""
        return self.keys[0]

    @property
    def retired(self) -> Tuple[bytes, ...]:
        """Keys accepted for verification and decryption only."""
        return self.keys[1:]

    def __iter__(self) -> Iterator[bytes]:
        return iter(self.keys)

    def __len__(self) -> int:
        return len(self.keys)

    def __repr__(self) -> str:
        return f"KeyRing(<{len(self.keys)} keys>)"

    def rotate(self, new_key: bytes) -> "KeyRing":
        """
        Return a new ring with new_key active and every current key retired.

        Args:
            new_key: Key to promote to active

        Returns:
            New KeyRing; this ring is left unchanged
        """
        return KeyRing((new_key,) + self.keys)

    def prune(self, keep: int) -> "KeyRing":
        """
        Return a new ring holding only the first `keep` keys.

        Used to drop retired keys once their grace period is over.
        """
        if keep < 1:
            raise InvalidConfiguration("A KeyRing must keep at least one key")
        return KeyRing(self.keys[:keep])

    @staticmethod
    def generate_key() -> bytes:
        """Generate a random key suitable for a KeyRing."""
        return secrets.token_bytes(KEY_BYTES)

    @classmethod
    def from_base64(cls, encoded_keys: Iterable[str]) -> "KeyRing":
        """
        Build a ring from base64 encoded keys (standard or URL-safe alphabet).

        Args:
            encoded_keys: Encoded keys, active first

        Raises:
            InvalidConfiguration: If any key does not decode
        """
        keys = []
        for position, encoded in enumerate(encoded_keys):
            cleaned = encoded.strip()
            if not cleaned:
                continue
            normalised = cleaned.replace("-", "+").replace("_", "/")
            normalised += "=" * (-len(normalised) % 4)
            try:
                keys.append(base64.b64decode(normalised, validate=True))
            except (binascii.Error, ValueError) as e:
                raise InvalidConfiguration(f"Key at position {position} is not valid base64") from e
        return cls(tuple(keys))

    @classmethod
    def from_secret(
        cls,
        secret: Union[str, bytes],
        salt: Union[str, bytes],
        iterations: int = PBKDF2_ITERATIONS,
    ) -> "KeyRing":
        """
        Derive a single-key ring from a passphrase.

        Args:
            secret: Passphrase
            salt: At least 16 bytes, fixed per deployment so every process
                derives the same key
            iterations: PBKDF2 iteration count

        Returns:
            KeyRing holding one 32-byte derived key
        """
        if isinstance(secret, str):
            secret = secret.encode("utf-8")
        if isinstance(salt, str):
            salt = salt.encode("utf-8")

        if not secret:
            raise InvalidConfiguration("Session secret must not be empty")
        if len(salt) < MIN_SALT_BYTES:
            raise InvalidConfiguration(f"Session salt must be at least {MIN_SALT_BYTES} bytes")

        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_BYTES,
            salt=salt,
            iterations=iterations,
        )
        return cls((kdf.derive(secret),))
