"""HTTP requests to the instance metadata service, with retry and backoff."""

from __future__ import annotations

import time
from enum import Enum

import requests

from .clientlog import LogLevel, emit
from .types import AttestationError, ErrorCode

HTTP_STATUS_OK = 200
HTTP_STATUS_RESOURCE_NOT_FOUND = 404
HTTP_STATUS_TOO_MANY_REQUESTS = 429
HTTP_STATUS_INTERNAL_SERVER_ERROR = 500
MAX_RETRIES = 3
RETRY_BASE_DELAY_SECONDS = 30
DEFAULT_TIMEOUT_SECONDS = 300


class HttpVerb(Enum):
    GET = "GET"
    POST = "POST"


def _is_retryable(status):
    return (
        status in (HTTP_STATUS_RESOURCE_NOT_FOUND, HTTP_STATUS_TOO_MANY_REQUESTS)
        or status >= HTTP_STATUS_INTERNAL_SERVER_ERROR
    )


class HttpClient:
    """Client for metadata-service requests; failures raise AttestationError."""

    def __init__(self, session=None, sleep=time.sleep, timeout=DEFAULT_TIMEOUT_SECONDS):
        self._session = session if session is not None else requests.Session()
        self._sleep = sleep
        self._timeout = timeout

    def invoke_imds_request(self, url, http_verb=HttpVerb.GET, request_body="", content_type=""):
        """Send the request and return the response body.

        404, 429 and 5xx responses are retried up to three times with a
        30, 60 and 120 second backoff. content_type is a header line such as
        "Content-Type: application/json", or a bare content type.
        """
        headers = {"Metadata": "true"}
        if content_type:
            name, sep, value = content_type.partition(":")
            if sep:
                headers[name.strip()] = value.strip()
            else:
                headers["Content-Type"] = content_type.strip()

        data = None
        if http_verb is HttpVerb.POST:
            if not request_body:
                emit(LogLevel.ERROR, "Request body missing for POST request")
                raise AttestationError(
                    ErrorCode.ERROR_EMPTY_REQUEST_BODY, "Request body missing for POST request"
                )
            data = request_body.encode("utf-8") if isinstance(request_body, str) else bytes(request_body)

        retries = 0
        while True:
            try:
                response = self._session.request(
                    http_verb.value,
                    url,
                    headers=headers,
                    data=data,
                    timeout=self._timeout,
                    allow_redirects=False,
                )
            except requests.RequestException as exc:
                emit(LogLevel.ERROR, f"HTTP request failed:{exc}")
                raise AttestationError(
                    ErrorCode.ERROR_SENDING_CURL_REQUEST_FAILED,
                    f"Failed sending curl request with error:{exc}",
                ) from exc

            status = response.status_code
            body = response.text

            if status == HTTP_STATUS_OK:
                if not body:
                    emit(LogLevel.ERROR, "Empty response received")
                    raise AttestationError(ErrorCode.ERROR_EMPTY_RESPONSE, "Empty response received")
                return body

            if _is_retryable(status):
                if retries == MAX_RETRIES:
                    emit(LogLevel.ERROR, f"Http Request failed with error:{status} description:{body}")
                    raise AttestationError(ErrorCode.ERROR_HTTP_REQUEST_EXCEEDED_RETRIES, body)
                emit(
                    LogLevel.ERROR,
                    f"HTTP request failed with response code:{status} description:{body}",
                )
                emit(LogLevel.INFO, f"Retrying HTTP request:{retries}")
                self._sleep(RETRY_BASE_DELAY_SECONDS * 2**retries)
                retries += 1
                continue

            emit(LogLevel.ERROR, f"HTTP request failed with response code:{status} description:{body}")
            raise AttestationError(ErrorCode.ERROR_HTTP_REQUEST_FAILED, body)