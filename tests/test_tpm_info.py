import base64

import pytest

from cvmattest.tpm_info import EphemeralKey, Pcr, PcrQuote, TpmInfo


def full_info():
    return TpmInfo(
        aik_cert=b"\x30\x82cert",
        aik_pub=b"pub-bytes",
        pcr_values=[Pcr(0, b"\x00" * 32), Pcr(7, b"\xff" * 32), Pcr(14, b"\x01\x02")],
        pcr_quote=PcrQuote(quote=b"quote-bytes", signature=b"sig-bytes"),
        encryption_key=EphemeralKey(
            encryption_key=b"enc-key",
            certify_info=b"certify",
            certify_info_signature=b"certify-sig",
        ),
    )


def test_full_info_validates():
    assert full_info().validate() is True


def test_empty_info_does_not_validate():
    assert TpmInfo().validate() is False


@pytest.mark.parametrize(
    "strip",
    [
        lambda i: setattr(i, "aik_cert", b""),
        lambda i: setattr(i, "aik_pub", b""),
        lambda i: setattr(i, "pcr_values", []),
        lambda i: setattr(i.encryption_key, "certify_info", b""),
        lambda i: setattr(i.encryption_key, "encryption_key", b""),
        lambda i: setattr(i.encryption_key, "certify_info_signature", b""),
    ],
)
def test_missing_value_fails_validation(strip):
    info = full_info()
    strip(info)
    assert info.validate() is False


def test_quote_is_not_required_for_validation():
    info = full_info()
    info.pcr_quote = PcrQuote()
    assert info.validate() is True


def test_json_keys():
    doc = full_info().to_json()
    assert set(doc) == {
        "AikCert",
        "AikPub",
        "PcrQuote",
        "PcrSignature",
        "EncKeyPub",
        "EncKeyCertifyInfo",
        "EncKeyCertifyInfoSignature",
        "PcrSet",
        "PCRs",
    }


def test_json_binary_fields_round_trip():
    info = full_info()
    doc = info.to_json()
    assert base64.b64decode(doc["AikCert"]) == info.aik_cert
    assert base64.b64decode(doc["AikPub"]) == info.aik_pub
    assert base64.b64decode(doc["PcrQuote"]) == info.pcr_quote.quote
    assert base64.b64decode(doc["PcrSignature"]) == info.pcr_quote.signature
    assert base64.b64decode(doc["EncKeyPub"]) == info.encryption_key.encryption_key
    assert base64.b64decode(doc["EncKeyCertifyInfo"]) == info.encryption_key.certify_info
    assert (
        base64.b64decode(doc["EncKeyCertifyInfoSignature"])
        == info.encryption_key.certify_info_signature
    )


def test_pcr_set_and_pcrs_keep_order():
    info = full_info()
    doc = info.to_json()
    assert doc["PcrSet"] == [pcr.index for pcr in info.pcr_values]
    assert [entry["Index"] for entry in doc["PCRs"]] == doc["PcrSet"]
    assert [base64.b64decode(entry["Digest"]) for entry in doc["PCRs"]] == [
        pcr.digest for pcr in info.pcr_values
    ]


def test_empty_info_json_has_empty_lists():
    doc = TpmInfo().to_json()
    assert doc["PcrSet"] == []
    assert doc["PCRs"] == []
    assert doc["AikCert"] == ""