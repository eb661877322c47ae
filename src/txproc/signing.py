"""Signing capability consumed by tooling around a transaction processor.

The processor runtime itself never signs anything; clients that build and
submit transactions do. :class:`Signer` and :class:`Verifier` are the
contract; :class:`Ed25519Signer` and :class:`Ed25519Verifier` implement it
with PyNaCl.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey


class Signer(ABC):
    """Produce signatures with a private key held by the implementation."""

    @abstractmethod
    def sign(self, message: bytes) -> bytes:
        """Return the signature of *message*."""

    @abstractmethod
    def get_public_key(self) -> bytes:
        """Return the public key matching the private signing key."""


class Verifier(ABC):

    @abstractmethod
    def verify(self, message: bytes, signature: bytes, public_key: bytes) -> bool:
        """Return True if *signature* is valid for *message* and *public_key*."""


class Ed25519Signer(Signer):
    """Sign with an Ed25519 key; *private_key* is the 32-byte seed."""

    def __init__(self, private_key: bytes):
        self._key = SigningKey(private_key)

    @classmethod
    def generate(cls) -> "Ed25519Signer":
        return cls(bytes(SigningKey.generate()))

    def sign(self, message: bytes) -> bytes:
        return self._key.sign(message).signature

    def get_public_key(self) -> bytes:
        return bytes(self._key.verify_key)


class Ed25519Verifier(Verifier):

    def verify(self, message: bytes, signature: bytes, public_key: bytes) -> bool:
        try:
            VerifyKey(public_key).verify(message, signature)
            return True
        except (BadSignatureError, ValueError, TypeError):
            return False
