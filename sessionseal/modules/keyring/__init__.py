"""
KeyRing Module - Black Box Interface

Purpose: Hold the active and retired secret keys
Interface: KeyRing, KeyRing.rotate(), KeyRing.from_base64(), KeyRing.from_secret()
Hidden: Key derivation parameters, key validation

Rotation never mutates a ring; callers build a new one and inject it.
"""

from .keyring import KeyRing

__all__ = ["KeyRing"]
