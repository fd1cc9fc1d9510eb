import base64

import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from cvmattest.converters import BlockCipherMode, BlockCipherPadding, CipherAlgorithm
from cvmattest.types import AttestationError, ErrorCode
from cvmattest.unseal import (
    EncryptionParameters,
    decrypt_jwt,
    get_encrypted_inner_key,
    get_encrypted_jwt,
    get_encryption_parameters,
)

IV = bytes(range(12))
TAG_BYTES = bytes(range(100, 116))


def _b64(data):
    return base64.b64encode(data).decode("ascii")


def _response(**overrides):
    params = {
        "BlockMode": "ChainingModeGCM",
        "BlockPadding": "PKCS7",
        "Cipher": "AES",
        "KeySizeInBits": 256,
        "Iv": _b64(IV),
    }
    params.update(overrides.pop("params", {}))
    doc = {"EncryptionParams": params, "AuthenticationData": _b64(TAG_BYTES)}
    doc.update(overrides)
    return doc


def _encrypt(key, plain, aad=b"Transport Key", iv=IV):
    sealed = AESGCM(key).encrypt(iv, plain, aad)
    return sealed[:-16], sealed[-16:]


def _params(tag, iv=IV, **kw):
    values = dict(
        block_mode=BlockCipherMode.CHAINING_MODE_GCM,
        block_padding=BlockCipherPadding.PKCS7,
        cipher_alg=CipherAlgorithm.AES,
        key_size=256,
        iv=iv,
        authentication_data=tag,
    )
    values.update(kw)
    return EncryptionParameters(**values)


def test_get_encryption_parameters_reads_all_fields():
    params = get_encryption_parameters(_response())
    assert params.block_mode is BlockCipherMode.CHAINING_MODE_GCM
    assert params.block_padding is BlockCipherPadding.PKCS7
    assert params.cipher_alg is CipherAlgorithm.AES
    assert params.key_size == 256
    assert params.iv == IV
    assert params.authentication_data == TAG_BYTES


def test_missing_encryption_params():
    with pytest.raises(AttestationError) as info:
        get_encryption_parameters({"AuthenticationData": _b64(TAG_BYTES)})
    assert info.value.code is ErrorCode.ERROR_RESPONSE_PARSING
    assert info.value.description == "Failed to get encryption parameters from response."


def test_unsupported_block_mode():
    with pytest.raises(AttestationError) as info:
        get_encryption_parameters(_response(params={"BlockMode": "CBC"}))
    assert info.value.description == "Unsupported block mode:CBC"


def test_missing_block_padding():
    doc = _response()
    del doc["EncryptionParams"]["BlockPadding"]
    with pytest.raises(AttestationError) as info:
        get_encryption_parameters(doc)
    assert info.value.description == "Failed to get block padding from encryption parameters"


def test_unsupported_cipher():
    with pytest.raises(AttestationError) as info:
        get_encryption_parameters(_response(params={"Cipher": "DES"}))
    assert info.value.description == "Unsupported cipher algorithm:DES"


def test_zero_key_bits():
    with pytest.raises(AttestationError) as info:
        get_encryption_parameters(_response(params={"KeySizeInBits": 0}))
    assert info.value.description == "Failed to get key bits from encryption parameters"


def test_missing_iv():
    with pytest.raises(AttestationError) as info:
        get_encryption_parameters(_response(params={"Iv": ""}))
    assert info.value.description == "Failed to get iv from encryption parameters"


def test_missing_authentication_data():
    doc = _response()
    del doc["AuthenticationData"]
    with pytest.raises(AttestationError) as info:
        get_encryption_parameters(doc)
    assert info.value.description == "Failed to get authentication data response"


def test_get_encrypted_jwt_decodes_base64():
    payload = b"\x00\x01binary-token\xff"
    assert get_encrypted_jwt({"Jwt": _b64(payload)}) == payload


def test_get_encrypted_jwt_missing():
    with pytest.raises(AttestationError) as info:
        get_encrypted_jwt({})
    assert info.value.description == "Failed to get jwt from response."


def test_get_encrypted_inner_key_decodes_base64():
    payload = bytes(range(64))
    assert get_encrypted_inner_key({"EncryptedInnerKey": _b64(payload)}) == payload


def test_get_encrypted_inner_key_missing():
    with pytest.raises(AttestationError) as info:
        get_encrypted_inner_key({"EncryptedInnerKey": ""})
    assert info.value.description == "Failed to get encrypted inner key from response."


@pytest.mark.parametrize("key_len", [16, 24, 32])
def test_decrypt_jwt_round_trip(key_len):
    key = bytes(range(key_len))
    jwt = "header.payload.signature"
    cipher_text, tag = _encrypt(key, jwt.encode())
    assert decrypt_jwt(_params(tag), key, cipher_text) == jwt


def test_decrypt_jwt_from_response_round_trip():
    key = bytes(range(32))
    jwt = "eyJ.eyJ.sig"
    cipher_text, tag = _encrypt(key, jwt.encode())
    doc = _response(Jwt=_b64(cipher_text), AuthenticationData=_b64(tag))
    params = get_encryption_parameters(doc)
    assert decrypt_jwt(params, key, get_encrypted_jwt(doc)) == jwt


def test_decrypt_jwt_rejects_tampered_tag():
    key = bytes(range(32))
    cipher_text, tag = _encrypt(key, b"token-body")
    bad_tag = bytes([tag[0] ^ 1]) + tag[1:]
    with pytest.raises(AttestationError) as info:
        decrypt_jwt(_params(bad_tag), key, cipher_text)
    assert info.value.code is ErrorCode.ERROR_JWT_DECRYPTION_FAILED


def test_decrypt_jwt_requires_transport_key_aad():
    key = bytes(range(16))
    cipher_text, tag = _encrypt(key, b"token-body", aad=b"Other")
    with pytest.raises(AttestationError) as info:
        decrypt_jwt(_params(tag), key, cipher_text)
    assert info.value.code is ErrorCode.ERROR_JWT_DECRYPTION_FAILED


def test_decrypt_jwt_bad_key_length():
    with pytest.raises(AttestationError) as info:
        decrypt_jwt(_params(TAG_BYTES), bytes(10), b"abc")
    assert info.value.description == "Openssl Error: Failed to get decryption algorithm"


def test_decrypt_jwt_unsupported_mode():
    params = _params(TAG_BYTES, block_mode=BlockCipherMode.INVALID)
    with pytest.raises(AttestationError) as info:
        decrypt_jwt(params, bytes(32), b"abc")
    assert info.value.description == "Error: Unsupported block mode"


def test_decrypt_jwt_unsupported_padding():
    params = _params(TAG_BYTES, block_padding=BlockCipherPadding.INVALID)
    with pytest.raises(AttestationError) as info:
        decrypt_jwt(params, bytes(32), b"abc")
    assert info.value.description == "Error: Unsupported block padding"


def test_decrypt_jwt_unsupported_cipher():
    params = _params(TAG_BYTES, cipher_alg=CipherAlgorithm.INVALID)
    with pytest.raises(AttestationError) as info:
        decrypt_jwt(params, bytes(32), b"abc")
    assert info.value.description == "Error: Unsupported decryption algorithm"


def test_default_parameters_are_invalid():
    params = EncryptionParameters()
    assert params.block_mode is BlockCipherMode.INVALID
    assert params.key_size == 0
    with pytest.raises(AttestationError):
        decrypt_jwt(params, bytes(32), b"abc")