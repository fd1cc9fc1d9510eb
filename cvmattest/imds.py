"""Instance metadata service queries: VM id, AK certificate renewal and VCEK certificates."""

from __future__ import annotations

import base64
import json
import time
from urllib.parse import quote

from .clientlog import LogLevel, emit
from .http import HttpClient, HttpVerb
from .telemetry import EventLevel, report_event
from .types import AttestationError, ErrorCode

IMDS_ENDPOINT = "http://169.254.169.254/metadata"
AK_RENEW_PATH = "/THIM/tvm/certificate/renew"
AK_QUERY_CERT_PATH = "/THIM/tvm/certificate/query"
AK_QUERY_API_VERSION = "2021-12-01"
VM_ID_QUERY_PATH = "/instance/compute/vmId"
VM_ID_API_VERSION = "2019-03-11"
VCEK_CERT_PATH = "/THIM/amd/certification"


def thim_ak_renew_endpoint(vm_id, request_id, api_version):
    """Return the URL that asks the THIM agent to renew the AK certificate."""
    url = (
        f"{IMDS_ENDPOINT}{AK_RENEW_PATH}?api-version={api_version}"
        f"&vmId={vm_id}&requestId={request_id}"
    )
    emit(LogLevel.INFO, f"AK renew url: {url}")
    report_event("AKRenew Url", url, EventLevel.IMDS_RENEW_AK_URL)
    return url


def thim_query_ak_endpoint(vm_id, request_id, cert_query_guid):
    """Return the URL that fetches a renewed AK certificate by its query guid."""
    url = (
        f"{IMDS_ENDPOINT}{AK_QUERY_CERT_PATH}?api-version={AK_QUERY_API_VERSION}"
        f"&vmId={vm_id}&requestId={request_id}&guid={cert_query_guid}"
    )
    emit(LogLevel.INFO, f"AK query url: {url}")
    return url


def vm_id_query_endpoint():
    """Return the URL that reports the VM id as plain text."""
    url = f"{IMDS_ENDPOINT}{VM_ID_QUERY_PATH}?api-version={VM_ID_API_VERSION}&format=text"
    emit(LogLevel.INFO, f"IMDS VM ID query url: {url}")
    return url


def url_encode(data):
    """Percent-encode every byte except the unreserved characters A-Z a-z 0-9 - . _ ~."""
    raw = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    return quote(raw, safe="")


class ImdsClient:
    """Metadata-service client whose calls return an empty string on any failure."""

    def __init__(self, session=None, sleep=time.sleep):
        self._http = HttpClient(session=session, sleep=sleep)

    def get_vm_id(self):
        """Return the VM id, or "" when it cannot be retrieved."""
        return self.invoke_http_request(vm_id_query_endpoint(), HttpVerb.GET)

    def renew_ak_cert(self, cert, vm_id, request_id, api_version):
        """Send the current AK certificate for renewal and return the service's reply, or ""."""
        if not cert or not vm_id or not request_id:
            emit(LogLevel.ERROR, "Invalid input parameter")
            report_event("AkRenew", "Invalid input parameter", EventLevel.IMDS_RENEW_AK)
            return ""

        url = thim_ak_renew_endpoint(vm_id, request_id, api_version)
        encoded_cert = url_encode(cert)
        emit(LogLevel.INFO, f"IMDS Ak renew request body: {encoded_cert}")
        report_event("AkRenew", encoded_cert, EventLevel.IMDS_AKRENEW_REQUEST_BODY)
        return self.invoke_http_request(url, HttpVerb.POST, encoded_cert)

    def query_ak_cert(self, cert_query_guid, vm_id, request_id):
        """Return the renewed AK certificate in PEM form, or ""."""
        if not cert_query_guid or not vm_id or not request_id:
            emit(LogLevel.ERROR, "Invalid input parameter")
            report_event("AkRenew", "Invalid input parameter", EventLevel.IMDS_QUERY_AK)
            return ""

        url = thim_query_ak_endpoint(vm_id, request_id, cert_query_guid)
        return self.invoke_http_request(url, HttpVerb.GET)

    def invoke_http_request(self, url, http_verb=HttpVerb.GET, request_body=""):
        """Send the request with retries and return the body, or "" on any failure."""
        if not url:
            emit(LogLevel.ERROR, "The URL can not be empty")
            return ""
        try:
            body = self._http.invoke_imds_request(url, http_verb, request_body)
        except AttestationError as exc:
            emit(LogLevel.ERROR, f"HTTP request failed: {exc.description or exc.code.name}")
            return ""
        emit(LogLevel.INFO, f"HTTP response retrieved: {body}")
        return body


def _as_string(value):
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    return ""


def get_vcek_cert(http_client=None):
    """Fetch the VCEK certificate and chain; return them concatenated and base64 encoded."""
    client = http_client if http_client is not None else HttpClient()
    url = IMDS_ENDPOINT + VCEK_CERT_PATH
    try:
        response = client.invoke_imds_request(url, HttpVerb.GET)
    except AttestationError as exc:
        emit(LogLevel.ERROR, f"Failed to retrieve VCek certificate from IMDS: {exc.description}")
        report_event(
            "Get VCekCert",
            "Failed to retrive VCek certificate from IMDS",
            EventLevel.IMDS_QUERY_VCEK_CERT,
        )
        raise

    try:
        root = json.loads(response)
    except ValueError as exc:
        emit(LogLevel.ERROR, "Invalid JSON reponse from IMDS")
        raise AttestationError(
            ErrorCode.ERROR_INVALID_JSON_RESPONSE, "Invalid JSON reponse from IMDS"
        ) from exc

    if not isinstance(root, dict):
        root = {}
    cert = _as_string(root.get("vcekCert"))
    chain = _as_string(root.get("certificateChain"))
    if not cert or not chain:
        emit(LogLevel.ERROR, "Empty VCek cert received from THIM")
        raise AttestationError(ErrorCode.ERROR_EMPTY_VCEK_CERT, "Empty VCek cert received from THIM")

    emit(LogLevel.DEBUG, "VCek cert received from IMDS successfully")
    return base64.b64encode((cert + chain).encode("utf-8")).decode("ascii")