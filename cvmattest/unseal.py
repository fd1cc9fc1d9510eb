"""Extraction of the encrypted token from an attestation response, and its decryption."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .clientlog import LogLevel, emit
from .converters import (
    BlockCipherMode,
    BlockCipherPadding,
    CipherAlgorithm,
    to_block_cipher_mode,
    to_block_cipher_padding,
    to_cipher_algorithm,
)
from .types import (
    JSON_RESPONSE_AUTHENTICATION_DATA_KEY,
    JSON_RESPONSE_BLOCK_KEY_SIZE_KEY,
    JSON_RESPONSE_BLOCK_MODE_KEY,
    JSON_RESPONSE_BLOCK_PADDING_KEY,
    JSON_RESPONSE_CIPHER_KEY,
    JSON_RESPONSE_ENC_INNER_KEY_KEY,
    JSON_RESPONSE_EXCRYPTION_PARAMETERS_KEY,
    JSON_RESPONSE_IV_KEY,
    JSON_RESPONSE_JWT_KEY,
    AttestationError,
    ErrorCode,
)

# Additional authenticated data the attestation service binds to the token.
_TRANSPORT_KEY_AAD = b"Transport Key"
_AES_KEY_LENGTHS = (128 // 8, 192 // 8, 256 // 8)
_MIN_GCM_TAG_LENGTH = 4


@dataclass
class EncryptionParameters:
    """How the token was encrypted: cipher, mode, padding, key size, IV and tag."""

    block_mode: BlockCipherMode = BlockCipherMode.INVALID
    block_padding: BlockCipherPadding = BlockCipherPadding.INVALID
    cipher_alg: CipherAlgorithm = CipherAlgorithm.INVALID
    key_size: int = 0
    iv: bytes = b""
    authentication_data: bytes = field(default=b"")


def _parse_error(message):
    emit(LogLevel.ERROR, message)
    return AttestationError(ErrorCode.ERROR_RESPONSE_PARSING, message)


def _decrypt_error(message):
    emit(LogLevel.ERROR, message)
    return AttestationError(ErrorCode.ERROR_JWT_DECRYPTION_FAILED, message)


def _as_string(value):
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    return ""


def _as_int(value):
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return int(value)
    return 0


def _b64decode(text):
    """Decode standard base64, tolerating missing padding."""
    padded = text + "=" * (-len(text) % 4)
    try:
        return base64.b64decode(padded, validate=False)
    except (binascii.Error, ValueError) as exc:
        raise _parse_error(f"Invalid base64 data: {exc}") from exc


def get_encryption_parameters(json_obj):
    """Read the encryption parameters from a parsed response; raise AttestationError if incomplete."""
    params_obj = json_obj.get(JSON_RESPONSE_EXCRYPTION_PARAMETERS_KEY)
    if not isinstance(params_obj, dict):
        raise _parse_error("Failed to get encryption parameters from response.")

    block_mode_str = _as_string(params_obj.get(JSON_RESPONSE_BLOCK_MODE_KEY))
    if not block_mode_str:
        raise _parse_error("Failed to get block mode from encryption parameters")
    try:
        block_mode = to_block_cipher_mode(block_mode_str)
    except ValueError as exc:
        raise _parse_error(f"Unsupported block mode:{block_mode_str}") from exc

    block_padding_str = _as_string(params_obj.get(JSON_RESPONSE_BLOCK_PADDING_KEY))
    if not block_padding_str:
        raise _parse_error("Failed to get block padding from encryption parameters")
    try:
        block_padding = to_block_cipher_padding(block_padding_str)
    except ValueError as exc:
        raise _parse_error(f"Unsupported block padding:{block_padding_str}") from exc

    cipher_str = _as_string(params_obj.get(JSON_RESPONSE_CIPHER_KEY))
    if not cipher_str:
        raise _parse_error("Failed to get cipher algorithm from encryption parameters")
    try:
        cipher = to_cipher_algorithm(cipher_str)
    except ValueError as exc:
        raise _parse_error(f"Unsupported cipher algorithm:{cipher_str}") from exc

    key_bits = _as_int(params_obj.get(JSON_RESPONSE_BLOCK_KEY_SIZE_KEY))
    if key_bits == 0:
        raise _parse_error("Failed to get key bits from encryption parameters")

    iv_str = _as_string(params_obj.get(JSON_RESPONSE_IV_KEY))
    if not iv_str:
        raise _parse_error("Failed to get iv from encryption parameters")

    auth_data_str = _as_string(json_obj.get(JSON_RESPONSE_AUTHENTICATION_DATA_KEY))
    if not auth_data_str:
        raise _parse_error("Failed to get authentication data response")

    return EncryptionParameters(
        block_mode=block_mode,
        block_padding=block_padding,
        cipher_alg=cipher,
        key_size=key_bits,
        iv=_b64decode(iv_str),
        authentication_data=_b64decode(auth_data_str),
    )


def get_encrypted_jwt(json_obj):
    """Return the encrypted token bytes from a parsed response."""
    jwt_str = _as_string(json_obj.get(JSON_RESPONSE_JWT_KEY))
    if not jwt_str:
        raise _parse_error("Failed to get jwt from response.")
    return _b64decode(jwt_str)


def get_encrypted_inner_key(json_obj):
    """Return the encrypted inner symmetric key bytes from a parsed response."""
    key_str = _as_string(json_obj.get(JSON_RESPONSE_ENC_INNER_KEY_KEY))
    if not key_str:
        raise _parse_error("Failed to get encrypted inner key from response.")
    return _b64decode(key_str)


def decrypt_jwt(encryption_params, decryption_key, jwt_encrypted):
    """Decrypt the token with AES-GCM and return it as text; raise AttestationError on failure."""
    if encryption_params.block_mode is not BlockCipherMode.CHAINING_MODE_GCM:
        raise _decrypt_error("Error: Unsupported block mode")
    if encryption_params.block_padding is not BlockCipherPadding.PKCS7:
        raise _decrypt_error("Error: Unsupported block padding")
    if encryption_params.cipher_alg is not CipherAlgorithm.AES:
        raise _decrypt_error("Error: Unsupported decryption algorithm")

    key = bytes(decryption_key)
    if len(key) not in _AES_KEY_LENGTHS:
        raise _decrypt_error("Openssl Error: Failed to get decryption algorithm")

    tag = bytes(encryption_params.authentication_data)
    try:
        mode = modes.GCM(
            bytes(encryption_params.iv),
            tag,
            min_tag_length=min(len(tag), 16) if len(tag) >= _MIN_GCM_TAG_LENGTH else 16,
        )
        decryptor = Cipher(algorithms.AES(key), mode).decryptor()
        decryptor.authenticate_additional_data(_TRANSPORT_KEY_AAD)
        plain_text = decryptor.update(bytes(jwt_encrypted)) + decryptor.finalize()
    except InvalidTag as exc:
        raise _decrypt_error("Openssl Error: authentication tag mismatch") from exc
    except ValueError as exc:
        raise _decrypt_error(f"Openssl Error:{exc}") from exc

    return plain_text.decode("utf-8", errors="replace")