import pytest

from cvmattest.converters import (
    BlockCipherMode,
    BlockCipherPadding,
    CipherAlgorithm,
    to_block_cipher_mode,
    to_block_cipher_padding,
    to_cipher_algorithm,
)


def test_gcm_mode():
    assert to_block_cipher_mode("ChainingModeGCM") is BlockCipherMode.CHAINING_MODE_GCM


def test_pkcs7_padding():
    assert to_block_cipher_padding("PKCS7") is BlockCipherPadding.PKCS7


def test_aes_cipher():
    assert to_cipher_algorithm("AES") is CipherAlgorithm.AES


@pytest.mark.parametrize("text", ["", "chainingmodegcm", "ChainingModeCBC", "invalid"])
def test_unknown_mode_rejected(text):
    with pytest.raises(ValueError, match="Unsupported block mode"):
        to_block_cipher_mode(text)


@pytest.mark.parametrize("text", ["", "pkcs7", "OAEP", "invalid"])
def test_unknown_padding_rejected(text):
    with pytest.raises(ValueError, match="Unsupported block padding"):
        to_block_cipher_padding(text)


@pytest.mark.parametrize("text", ["", "aes", "DES", "invalid"])
def test_unknown_cipher_rejected(text):
    with pytest.raises(ValueError, match="Unsupported cipher algorithm"):
        to_cipher_algorithm(text)


def test_error_message_names_input():
    with pytest.raises(ValueError) as info:
        to_cipher_algorithm("Twofish")
    assert "Twofish" in str(info.value)