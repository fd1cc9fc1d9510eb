"""Confidential VM attestation client helpers: IMDS requests, evidence encoding, JWT unsealing and AK certificate renewal."""

__version__ = "0.1.0"

__all__ = [
    "certops",
    "clientlog",
    "converters",
    "http",
    "imds",
    "isolation",
    "telemetry",
    "tpm_info",
    "types",
    "unseal",
]