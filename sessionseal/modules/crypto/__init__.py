"""
Crypto Module - Black Box Interface

Purpose: Turn session bytes into tamper-evident (optionally confidential) tokens
Interface: sign(), verify(), encrypt(), decrypt(), seal(), unseal(), UnsealResult
Hidden: MAC and AEAD algorithms, key derivation, base64url framing

Every decode path fails closed and returns an UnsealResult instead of raising.
"""

from .codec import UnsealResult, decrypt, encrypt, seal, sign, unseal, verify

__all__ = ["UnsealResult", "decrypt", "encrypt", "seal", "sign", "unseal", "verify"]
