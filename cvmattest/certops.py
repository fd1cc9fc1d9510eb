"""Checks on the TPM attestation key certificate, and its renewal through the metadata service."""

from __future__ import annotations

import base64
import binascii
import json
import time
import uuid
from datetime import datetime, timezone

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.x509.oid import NameOID

from .clientlog import LogLevel, emit
from .telemetry import EventLevel, report_event
from .types import JSON_AK_CERT_PEM, JSON_AK_CERT_QUERY_ID, AttestationError, ErrorCode

CERTIFICATE_HEADER = "-----BEGIN CERTIFICATE-----\n"
CERTIFICATE_FOOTER = "\n-----END CERTIFICATE-----"
AK_RENEW_SYNC_API_VERSION = "2023-07-01"
AK_RENEW_ASYNC_API_VERSION = "2021-12-01"
AK_CERT_RENEWAL_THRESHOLD_DAYS = 90
QUERY_RENEWED_CERT_AFTER_SECONDS = 60
TRUSTED_VM_CERT_ISSUER_NAME_PREFIX = "/CN=MICROSOFT AZURE TRUSTED VM RSA"

_SECONDS_PER_DAY = 86400

_SHORT_NAMES = {
    NameOID.COMMON_NAME: "CN",
    NameOID.COUNTRY_NAME: "C",
    NameOID.LOCALITY_NAME: "L",
    NameOID.STATE_OR_PROVINCE_NAME: "ST",
    NameOID.ORGANIZATION_NAME: "O",
    NameOID.ORGANIZATIONAL_UNIT_NAME: "OU",
    NameOID.EMAIL_ADDRESS: "emailAddress",
    NameOID.SERIAL_NUMBER: "serialNumber",
    NameOID.DOMAIN_COMPONENT: "DC",
}


def remove_cert_header_and_footer(pem_cert):
    """Strip the PEM header, footer and line breaks, leaving the base64 body."""
    if not pem_cert:
        return ""
    cert = pem_cert.replace("\r", "")
    cert = cert.replace(CERTIFICATE_HEADER, "")
    cert = cert.replace(CERTIFICATE_FOOTER, "")
    return cert.replace("\n", "")


def der_to_pem(der):
    """Wrap DER certificate bytes in a single-line PEM envelope."""
    body = base64.b64encode(bytes(der)).decode("ascii")
    return CERTIFICATE_HEADER + body + CERTIFICATE_FOOTER


def parse_and_get_ak_cert(json_response):
    """Return the renewed AK certificate PEM from a renewal reply, or "" if absent or unparsable."""
    try:
        root = json.loads(json_response)
    except (TypeError, ValueError):
        return ""
    if not isinstance(root, dict):
        return ""

    ak_cert = root.get(JSON_AK_CERT_PEM, "")
    cert_query_id = root.get(JSON_AK_CERT_QUERY_ID, "")
    ak_cert = ak_cert if isinstance(ak_cert, str) else ""
    cert_query_id = cert_query_id if isinstance(cert_query_id, str) else ""

    emit(LogLevel.INFO, f"AK Cert Query guid: {cert_query_id}")
    emit(LogLevel.INFO, f"Renewed Ak Cert: {ak_cert}")
    if cert_query_id:
        report_event("AkRenew", cert_query_id, EventLevel.AK_CERT_QUERY_GUID)
    return ak_cert


def _load_cert(pem_cert):
    try:
        data = pem_cert.encode("ascii") if isinstance(pem_cert, str) else bytes(pem_cert)
        return x509.load_pem_x509_certificate(data)
    except (ValueError, TypeError, UnicodeEncodeError) as exc:
        emit(LogLevel.ERROR, "Unable to parse AK cert in memory")
        report_event(
            "AkRenew",
            "Unable to parse Ak Cert in memory",
            EventLevel.AK_RENEW_CERT_PARSING_FAILURE,
        )
        raise AttestationError(
            ErrorCode.ERROR_AK_CERT_PARSING, "Failed to pass Ak cert in memory"
        ) from exc


def _oneline(name):
    """Render a name the way OpenSSL's one-line form does: /C=../O=../CN=.."""
    parts = []
    for attribute in name:
        short = _SHORT_NAMES.get(attribute.oid, attribute.oid.dotted_string)
        parts.append(f"/{short}={attribute.value}")
    return "".join(parts)


def _not_after(cert):
    value = getattr(cert, "not_valid_after_utc", None)
    if value is None:
        value = cert.not_valid_after.replace(tzinfo=timezone.utc)
    return value


def _as_utc(now):
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def _days_until(cert, now):
    seconds = int((_not_after(cert) - _as_utc(now)).total_seconds())
    days = abs(seconds) // _SECONDS_PER_DAY
    return days if seconds >= 0 else -days


def _check_provisioned(cert):
    issuer = _oneline(cert.issuer)
    emit(LogLevel.INFO, f"Ak Cert issuer name {issuer}")
    report_event("AkCertProvisioning", issuer, EventLevel.AK_CERT_GET_ISSUER)

    subject = _oneline(cert.subject)
    emit(LogLevel.INFO, f"Ak Cert subject name {subject}")
    report_event("AkCertProvisioning", subject, EventLevel.AK_CERT_GET_SUBJECT)

    thumbprint = base64.b64encode(cert.fingerprint(hashes.SHA256())).decode("ascii")
    report_event("AkCertProvisioning", thumbprint, EventLevel.AK_CERT_GET_THUMBPRINT)

    if TRUSTED_VM_CERT_ISSUER_NAME_PREFIX in issuer:
        raise AttestationError(
            ErrorCode.ERROR_AK_CERT_PROVISIONING_FAILED, "AkCert provisioning failed"
        )
    return issuer


def days_until_expiry(pem_cert, now=None):
    """Whole days from now until the certificate's notAfter; negative once expired."""
    return _days_until(_load_cert(pem_cert), now)


def check_ak_cert_provisioned(pem_cert):
    """Return the issuer name; raise AttestationError if the certificate is a placeholder one."""
    return _check_provisioned(_load_cert(pem_cert))


def is_ak_cert_renewal_required(pem_cert, now=None):
    """True when the certificate has expired or expires within the next 90 days."""
    cert = _load_cert(pem_cert)
    _check_provisioned(cert)
    days_left = _days_until(cert, now)
    emit(LogLevel.INFO, f"Number of days left in AK cert expiry - {days_left}")
    report_event("AkRenew", str(days_left), EventLevel.AK_RENEW_CERT_DAYS_TILL_EXPIRY)
    return days_left <= AK_CERT_RENEWAL_THRESHOLD_DAYS


def _new_uuid():
    return str(uuid.uuid4())


class AkCertRenewer:
    """Renews the AK certificate through the metadata service and stores the result.

    read_cert returns the current certificate as DER bytes; write_cert stores
    the renewed certificate's DER bytes.
    """

    def __init__(self, imds, read_cert, write_cert, sleep=time.sleep, new_request_id=_new_uuid):
        self._imds = imds
        self._read_cert = read_cert
        self._write_cert = write_cert
        self._sleep = sleep
        self._new_request_id = new_request_id

    def _read_pem(self):
        try:
            pem = der_to_pem(self._read_cert())
        except AttestationError as exc:
            report_event(
                "AkRenew",
                "Failed to read Ak cert from TPM with error: " + exc.description,
                EventLevel.TPM_CERT_OPS,
            )
            raise
        except Exception as exc:
            emit(LogLevel.ERROR, f"Unknown Exception while reading the certificate from TPM: {exc}")
            report_event(
                "AkRenew",
                f"Failed to read Ak cert from TPM with error: {exc}",
                EventLevel.TPM_CERT_OPS,
            )
            raise AttestationError(ErrorCode.ERROR_TPM_INTERNAL_FAILURE, str(exc)) from exc
        report_event("AkRenew", "Successfully fetched the Ak Cert from TPM", EventLevel.TPM_CERT_OPS)
        emit(LogLevel.INFO, "Successfully fetched the AK cert from TPM")
        return pem

    def _fetch_renewed(self, ak_cert, vm_id):
        request_id = self._new_request_id()
        response = self._imds.renew_ak_cert(ak_cert, vm_id, request_id, AK_RENEW_SYNC_API_VERSION)
        report_event("AkRenew", response, EventLevel.AK_RENEW_RESPONSE)

        if response:
            report_event(
                "AkRenew",
                "Successfully retrived AkCert response from Thim",
                EventLevel.AK_RENEW_GET_RESPONSE_SUCCESS,
            )
            renewed = parse_and_get_ak_cert(response)
            if not renewed:
                emit(LogLevel.ERROR, "Failed to get AkCertPem from response.")
                report_event(
                    "AkRenew",
                    "Failed to get AkCertPem from response",
                    EventLevel.AK_RENEW_RESPONSE_PARSING_FAILURE,
                )
                raise AttestationError(
                    ErrorCode.ERROR_AK_CERT_RENEW, "Failed to get AkCert Pem from response"
                )
            return renewed

        emit(LogLevel.ERROR, "Failed to renew Ak cert using sync api")
        report_event(
            "AkRenew", "Failed to renew Ak Cert using sync api", EventLevel.AK_RENEW_EMPTY_CERT_RESPONSE
        )
        emit(LogLevel.INFO, "Retrying Ak renew using async api")
        request_id = self._new_request_id()
        query_guid = self._imds.renew_ak_cert(ak_cert, vm_id, request_id, AK_RENEW_ASYNC_API_VERSION)

        self._sleep(QUERY_RENEWED_CERT_AFTER_SECONDS)
        request_id = self._new_request_id()
        renewed = self._imds.query_ak_cert(query_guid, vm_id, request_id)
        if not renewed:
            emit(LogLevel.INFO, "Failed to query Ak cert using async api")
            report_event(
                "AkRenew",
                "Failed to query Ak Cert using async api",
                EventLevel.AK_RENEW_EMPTY_RENEWED_CERT,
            )
            raise AttestationError(
                ErrorCode.ERROR_AK_CERT_RENEW, "Failed to query Ak cert using async api"
            )
        return renewed

    def renew_and_replace(self):
        """Renew the AK certificate, store it and return the renewed PEM; raise AttestationError on failure."""
        try:
            vm_id = self._imds.get_vm_id()
            if not vm_id:
                emit(LogLevel.ERROR, "Failed to get vm id")
                report_event("AkRenew", "Failed to get vm id", EventLevel.AK_RENEW_EMPTY_VM_ID)
                raise AttestationError(ErrorCode.ERROR_AK_CERT_RENEW, "Failed to get VM id from IMDS")

            ak_cert = self._read_pem()
            renewed = self._fetch_renewed(ak_cert, vm_id)
            report_event("AkRenew", renewed, EventLevel.AK_RENEWED_CERT)

            body = remove_cert_header_and_footer(renewed)
            try:
                der = base64.b64decode(body + "=" * (-len(body) % 4))
            except (binascii.Error, ValueError) as exc:
                raise AttestationError(
                    ErrorCode.ERROR_AK_CERT_RENEW, f"Renewed AK cert is not valid base64: {exc}"
                ) from exc
            self._write_cert(der)
        except AttestationError:
            raise
        except Exception as exc:
            emit(LogLevel.ERROR, f"Unexpected error occured in RenewAndReplaceAkCert method {exc}")
            report_event(
                "AkRenew",
                "Unexpted Error in RenewAndReplaceAkCert",
                EventLevel.AK_RENEW_UNEXPECTED_ERROR,
            )
            raise AttestationError(
                ErrorCode.ERROR_AK_CERT_RENEW, "Unexpected error in RenewAndReplaceAkCert"
            ) from exc

        emit(LogLevel.INFO, "Successfully renewed AK cert")
        report_event("AkRenew", "Successfully renewed Ak Cert", EventLevel.AK_RENEW_SUCCESS)
        return renewed