import os

import pytest

from codexdb.encryption import EncryptionError, decrypt, encrypt

PLAINTEXT = b"this is a very secret message"


@pytest.fixture
def key():
    return os.urandom(32)


def test_encrypt_and_decrypt(key):
    ciphertext = encrypt(PLAINTEXT, key)
    assert decrypt(ciphertext, key) == PLAINTEXT


def test_ciphertext_layout(key):
    ciphertext = encrypt(PLAINTEXT, key)
    assert len(ciphertext) == 12 + len(PLAINTEXT) + 16


def test_wrong_key_fails(key):
    ciphertext = encrypt(PLAINTEXT, key)
    with pytest.raises(EncryptionError):
        decrypt(ciphertext, os.urandom(32))


def test_corrupted_ciphertext_fails(key):
    ciphertext = bytearray(encrypt(PLAINTEXT, key))
    ciphertext[-1] ^= 0xFF
    with pytest.raises(EncryptionError):
        decrypt(bytes(ciphertext), key)


@pytest.mark.parametrize("size", [16, 24, 32])
def test_valid_key_sizes(size):
    k = os.urandom(size)
    message = b"test message"
    assert decrypt(encrypt(message, k), k) == message


@pytest.mark.parametrize("size", [8, 15, 17, 33])
def test_encrypt_invalid_key_size(size):
    with pytest.raises(EncryptionError, match="failed to create cipher"):
        encrypt(b"test message", os.urandom(size))


@pytest.mark.parametrize("size", [8, 17, 33])
def test_decrypt_invalid_key_size(size, key):
    ciphertext = encrypt(b"test", key)
    with pytest.raises(EncryptionError):
        decrypt(ciphertext, bytes(size))


def test_empty_data(key):
    assert decrypt(encrypt(b"", key), key) == b""


def test_large_data(key):
    plaintext = os.urandom(1024 * 1024)
    assert decrypt(encrypt(plaintext, key), key) == plaintext


def test_decrypt_too_short(key):
    with pytest.raises(EncryptionError, match="too short"):
        decrypt(bytes([1, 2, 3]), key)


def test_non_deterministic(key):
    message = b"same message"
    first = encrypt(message, key)
    second = encrypt(message, key)
    assert first != second
    assert decrypt(first, key) == message
    assert decrypt(second, key) == message


def test_corrupted_nonce(key):
    ciphertext = bytearray(encrypt(b"test message", key))
    ciphertext[0] ^= 0xFF
    with pytest.raises(EncryptionError):
        decrypt(bytes(ciphertext), key)