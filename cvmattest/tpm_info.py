"""TPM evidence sent with an attestation request."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field

from .types import (
    JSON_AIK_CERT_KEY,
    JSON_AIK_PUB_KEY,
    JSON_ENC_KEY_CERTIFY_INFO,
    JSON_ENC_KEY_CERTIFY_INFO_SIGNATURE,
    JSON_ENC_PUB_KEY,
    JSON_PCR_DIGEST_KEY,
    JSON_PCR_INDEX_KEY,
    JSON_PCR_QUOTE_KEY,
    JSON_PCR_SET_KEY,
    JSON_PCR_SIGNATURE_KEY,
    JSON_PCRS_KEY,
)


def _b64(data):
    return base64.b64encode(bytes(data)).decode("ascii")


@dataclass
class Pcr:
    """One PCR register and its digest."""

    index: int
    digest: bytes = b""


@dataclass
class PcrQuote:
    """A quote over PCR values and its signature."""

    quote: bytes = b""
    signature: bytes = b""


@dataclass
class EphemeralKey:
    """Encryption key the attestation service uses to wrap its token key."""

    encryption_key: bytes = b""
    certify_info: bytes = b""
    certify_info_signature: bytes = b""


@dataclass
class TpmInfo:
    """TPM evidence: AIK, PCR values, PCR quote and ephemeral encryption key."""

    aik_cert: bytes = b""
    aik_pub: bytes = b""
    pcr_values: list[Pcr] = field(default_factory=list)
    pcr_quote: PcrQuote = field(default_factory=PcrQuote)
    encryption_key: EphemeralKey = field(default_factory=EphemeralKey)

    def validate(self):
        """Return True when every required TPM value is set."""
        return bool(
            self.aik_cert
            and self.aik_pub
            and self.pcr_values
            and self.encryption_key.certify_info
            and self.encryption_key.encryption_key
            and self.encryption_key.certify_info_signature
        )

    def to_json(self):
        """Return the evidence as a JSON-ready dict with base64 binary fields."""
        return {
            JSON_AIK_CERT_KEY: _b64(self.aik_cert),
            JSON_AIK_PUB_KEY: _b64(self.aik_pub),
            JSON_PCR_QUOTE_KEY: _b64(self.pcr_quote.quote),
            JSON_PCR_SIGNATURE_KEY: _b64(self.pcr_quote.signature),
            JSON_ENC_PUB_KEY: _b64(self.encryption_key.encryption_key),
            JSON_ENC_KEY_CERTIFY_INFO: _b64(self.encryption_key.certify_info),
            JSON_ENC_KEY_CERTIFY_INFO_SIGNATURE: _b64(self.encryption_key.certify_info_signature),
            JSON_PCR_SET_KEY: [pcr.index for pcr in self.pcr_values],
            JSON_PCRS_KEY: [
                {JSON_PCR_INDEX_KEY: pcr.index, JSON_PCR_DIGEST_KEY: _b64(pcr.digest)}
                for pcr in self.pcr_values
            ],
        }