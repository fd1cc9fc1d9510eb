"""Mapping of the cipher names in attestation responses to enums."""

from __future__ import annotations

from enum import Enum

from .clientlog import LogLevel, emit
from .types import (
    JSON_RESPONSE_BLOCK_MODE_CHAINING_GCM_VALUE,
    JSON_RESPONSE_BLOCK_PADDING_PKCS7_VALUE,
    JSON_RESPONSE_CIPHER_AES_VALUE,
)


class BlockCipherMode(Enum):
    CHAINING_MODE_GCM = "chaining_mode_gcm"
    INVALID = "invalid"


class BlockCipherPadding(Enum):
    PKCS7 = "pkcs7"
    INVALID = "invalid"


class CipherAlgorithm(Enum):
    AES = "aes"
    INVALID = "invalid"


def to_block_cipher_mode(text):
    """Return the block mode named by text; raise ValueError for any other name."""
    if text == JSON_RESPONSE_BLOCK_MODE_CHAINING_GCM_VALUE:
        return BlockCipherMode.CHAINING_MODE_GCM
    emit(LogLevel.ERROR, "Invalid Block mode")
    raise ValueError(f"Unsupported block mode:{text}")


def to_block_cipher_padding(text):
    """Return the padding scheme named by text; raise ValueError for any other name."""
    if text == JSON_RESPONSE_BLOCK_PADDING_PKCS7_VALUE:
        return BlockCipherPadding.PKCS7
    emit(LogLevel.ERROR, "Invalid Block padding")
    raise ValueError(f"Unsupported block padding:{text}")


def to_cipher_algorithm(text):
    """Return the cipher named by text; raise ValueError for any other name."""
    if text == JSON_RESPONSE_CIPHER_AES_VALUE:
        return CipherAlgorithm.AES
    emit(LogLevel.ERROR, "Invalid Cipher Algorithm")
    raise ValueError(f"Unsupported cipher algorithm:{text}")