"""Process-wide telemetry hook used by the client library."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum, auto


class EventLevel(Enum):
    """Kinds of telemetry events the library reports."""

    SUCCESS = auto()
    INIT_ERROR = auto()
    INTERNAL_ERROR = auto()
    PLATFORM_ERROR = auto()
    ATTESTATION_FAILURE = auto()
    DECRYPTION_FAILURE = auto()
    REPORT_HEALTH_FAILURE = auto()

    # AK renewal events
    AK_RENEW_CERT_PARSING_FAILURE = auto()
    AK_RENEW_CERT_EXPIRY_CALCULATION_FAILURE = auto()
    AK_RENEW_CERT_DAYS_TILL_EXPIRY = auto()
    AK_RENEW_UNEXPECTED_ERROR = auto()
    AK_RENEW_EMPTY_VM_ID = auto()
    AK_RENEW_EMPTY_CERT_RESPONSE = auto()
    AK_RENEW_EMPTY_RENEWED_CERT = auto()
    AK_RENEW_GET_RESPONSE_SUCCESS = auto()
    AK_RENEW_SUCCESS = auto()
    AK_RENEW_RESPONSE = auto()
    AK_RENEW_RESPONSE_PARSING_FAILURE = auto()
    AK_RENEW_RESPONSE_PARSING_SUCCESS = auto()
    AK_CERT_PROVISION_FAILURE = auto()
    AK_CERT_GET_ISSUER = auto()
    AK_GET_PUB = auto()
    AK_CERT_GET_SUBJECT = auto()
    AK_CERT_PARSING_FAILURE = auto()
    AK_CERT_GET_THUMBPRINT = auto()
    AK_RENEWED_CERT = auto()
    AK_CERT_QUERY_GUID = auto()
    TPM_CERT_OPS = auto()

    # IMDS events
    IMDS_GET_VM_ID = auto()
    IMDS_RENEW_AK = auto()
    IMDS_QUERY_AK = auto()
    IMDS_QUERY_VCEK_CERT = auto()
    IMDS_RENEW_AK_URL = auto()
    IMDS_AKRENEW_REQUEST_BODY = auto()

    VM_SECURITY_TYPE = auto()
    SNP_REPORT_STATUS = auto()
    CURL_CONNECTION_FAILURE = auto()


class TelemetryReporting(ABC):
    """Receiver of the library's telemetry events."""

    @abstractmethod
    def update_event(self, task_type, message, event_level):
        """Record one event for a task."""

    @abstractmethod
    def write_events(self):
        """Flush the recorded events; return True on success."""


_reporting: TelemetryReporting | None = None


def set_telemetry_reporting(reporting):
    """Install the telemetry receiver; None removes it."""
    global _reporting
    _reporting = reporting


def get_telemetry_reporting():
    """Return the installed telemetry receiver, or None."""
    return _reporting


def report_event(task_type, message, event_level):
    """Pass an event to the installed receiver, if there is one."""
    reporting = _reporting
    if reporting is not None:
        reporting.update_event(task_type, message, EventLevel(event_level))