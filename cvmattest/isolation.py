"""Isolation evidence sent with an attestation request."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from enum import Enum

from .types import (
    JSON_ISOLATION_EVIDENCE_KEY,
    JSON_ISOLATION_EVIDENCE_SNPREPORT,
    JSON_ISOLATION_EVIDENCE_VCEKCERT,
    JSON_ISOLATION_PROOF_KEY,
    JSON_ISOLATION_RUNTIME_DATA_KEY,
    JSON_ISOLATION_TYPE_KEY,
    JSON_ISOLATION_TYPE_SEVSNP,
    JSON_ISOLATION_TYPE_TVM,
)


class IsolationType(Enum):
    TRUSTED_LAUNCH = "trusted_launch"
    SEV_SNP = "sev_snp"


def _styled_json(value):
    """Serialise with tab indentation, sorted keys and ' : ' separators."""
    return json.dumps(value, indent="\t", separators=(",", " : "), sort_keys=True)


@dataclass
class IsolationInfo:
    """Isolation type of the VM and, for SEV-SNP, its hardware evidence."""

    isolation_type: IsolationType = IsolationType.TRUSTED_LAUNCH
    snp_report: bytes = b""
    runtime_data: bytes = b""
    vcek_cert: str = ""

    def validate(self):
        """Return False when SEV-SNP evidence is incomplete, True otherwise."""
        if self.isolation_type is IsolationType.SEV_SNP:
            return bool(self.snp_report and self.vcek_cert and self.runtime_data)
        return True

    def to_json(self):
        """Return the isolation info as a JSON-ready dict."""
        if self.isolation_type is IsolationType.TRUSTED_LAUNCH:
            return {JSON_ISOLATION_TYPE_KEY: JSON_ISOLATION_TYPE_TVM}

        report = base64.urlsafe_b64encode(bytes(self.snp_report)).decode("ascii").rstrip("=")
        proof = {
            JSON_ISOLATION_EVIDENCE_SNPREPORT: report,
            JSON_ISOLATION_EVIDENCE_VCEKCERT: self.vcek_cert,
        }
        proof_text = _styled_json(proof)
        return {
            JSON_ISOLATION_TYPE_KEY: JSON_ISOLATION_TYPE_SEVSNP,
            JSON_ISOLATION_EVIDENCE_KEY: {
                JSON_ISOLATION_PROOF_KEY: base64.b64encode(proof_text.encode("utf-8")).decode("ascii"),
                JSON_ISOLATION_RUNTIME_DATA_KEY: base64.b64encode(bytes(self.runtime_data)).decode("ascii"),
            },
        }