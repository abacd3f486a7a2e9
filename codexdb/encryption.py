"""AES-GCM authenticated encryption with a random nonce per message."""

from __future__ import annotations

import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

NONCE_SIZE = 12


class EncryptionError(ValueError):
    """Encryption or decryption failed."""


def _cipher(key: bytes) -> AESGCM:
    try:
        return AESGCM(bytes(key))
    except ValueError as exc:
        raise EncryptionError(f"failed to create cipher: {exc}") from exc


def encrypt(data: bytes, key: bytes) -> bytes:
    """Encrypt ``data``; the result is the nonce followed by ciphertext and tag."""
    cipher = _cipher(key)
    nonce = os.urandom(NONCE_SIZE)
    return nonce + cipher.encrypt(nonce, bytes(data), None)


def decrypt(data: bytes, key: bytes) -> bytes:
    """Decrypt data produced by :func:`encrypt`, checking its authenticity."""
    cipher = _cipher(key)
    data = bytes(data)
    if len(data) < NONCE_SIZE:
        raise EncryptionError("invalid ciphertext: too short")
    nonce, ciphertext = data[:NONCE_SIZE], data[NONCE_SIZE:]
    try:
        return cipher.decrypt(nonce, ciphertext, None)
    except InvalidTag as exc:
        raise EncryptionError("message authentication failed") from exc