# cvmattest

Building blocks for a confidential virtual machine attestation client:

- requests to the instance metadata service (IMDS), retried with a
  30, 60 and 120 second back-off on 404, 429 and 5xx responses;
- encoding TPM evidence (`TpmInfo`) and isolation evidence (`IsolationInfo`)
  into JSON-ready dicts;
- reading the encryption parameters, the encrypted JWT and the encrypted
  inner key out of a parsed attestation response, and decrypting the JWT
  with AES-GCM;
- checking whether the attestation key (AK) certificate needs renewal, and
  renewing it through the THIM endpoints of the metadata service.

## Installation

```
pip install cvmattest
```

## Errors

Failures are raised as `cvmattest.types.AttestationError`. It carries
`code` (an `ErrorCode`), `description` and `tpm_error_code`.

```python
from cvmattest.http import HttpClient, HttpVerb
from cvmattest.types import AttestationError, ErrorCode

client = HttpClient()
try:
    body = client.invoke_imds_request(
        "http://169.254.169.254/metadata/THIM/amd/certification", HttpVerb.GET
    )
except AttestationError as exc:
    if exc.code is ErrorCode.ERROR_HTTP_REQUEST_EXCEEDED_RETRIES:
        ...
```

`HttpClient(session=None, sleep=time.sleep, timeout=300)` accepts a
`requests.Session` and a sleep function, which makes it easy to test.
Every request sends the `Metadata: true` header; a POST without a body
raises `ERROR_EMPTY_REQUEST_BODY`, and a 200 response with an empty body
raises `ERROR_EMPTY_RESPONSE`.

## IMDS and THIM

```python
from cvmattest.http import HttpClient
from cvmattest.imds import ImdsClient, get_vcek_cert

imds = ImdsClient()
vm_id = imds.get_vm_id()  # "" on failure
vcek_chain_b64 = get_vcek_cert(HttpClient())
```

`ImdsClient` methods (`get_vm_id`, `renew_ak_cert`, `query_ak_cert`,
`invoke_http_request`) return an empty string on any failure instead of
raising. `get_vcek_cert` raises `AttestationError` and returns the VCEK
certificate followed by its chain, base64 encoded. The URL builders
`thim_ak_renew_endpoint`, `thim_query_ak_endpoint` and
`vm_id_query_endpoint`, and `url_encode`, are available on their own.

## Evidence

```python
from cvmattest.isolation import IsolationInfo, IsolationType

info = IsolationInfo(
    isolation_type=IsolationType.SEV_SNP,
    snp_report=b"...",
    runtime_data=b"...",
    vcek_cert="...",
)
if info.validate():
    payload = info.to_json()
```

`cvmattest.tpm_info.TpmInfo` works the same way, with `Pcr`, `PcrQuote`
and `EphemeralKey` holding the TPM values; binary fields are base64 encoded
by `to_json()`.

## Unsealing a JWT

```python
import json

from cvmattest.unseal import (
    decrypt_jwt,
    get_encrypted_inner_key,
    get_encrypted_jwt,
    get_encryption_parameters,
)

response = json.loads(response_text)
params = get_encryption_parameters(response)
jwt_ciphertext = get_encrypted_jwt(response)
inner_key_ciphertext = get_encrypted_inner_key(response)
# decrypt the inner key with the TPM, then:
jwt = decrypt_jwt(params, inner_key, jwt_ciphertext)
```

Missing or unsupported fields raise `AttestationError` with
`ERROR_RESPONSE_PARSING`; decryption failures raise it with
`ERROR_JWT_DECRYPTION_FAILED`. Only AES in GCM mode with 128, 192 or
256-bit keys is accepted.

## AK certificate renewal

`cvmattest.certops` offers `is_ak_cert_renewal_required(pem_cert, now=None)`,
which is true when the certificate has expired or expires within 90 days,
and raises `ERROR_AK_CERT_PROVISIONING_FAILED` when the certificate was
issued by the placeholder "MICROSOFT AZURE TRUSTED VM RSA" issuer. Also
there: `days_until_expiry`, `check_ak_cert_provisioned`, `der_to_pem`,
`remove_cert_header_and_footer` and `parse_and_get_ak_cert`.

```python
from cvmattest.certops import AkCertRenewer
from cvmattest.imds import ImdsClient

renewer = AkCertRenewer(ImdsClient(), read_cert=read_der, write_cert=write_der)
renewed_pem = renewer.renew_and_replace()
```

`read_cert` returns the current certificate as DER bytes and `write_cert`
stores the renewed one. The synchronous THIM renew API is tried first; if it
returns nothing, the asynchronous renew call is made, and after 60 seconds
the renewed certificate is queried.

## Logging and telemetry

Subclass `cvmattest.clientlog.AttestationLogger` (implementing
`log(tag, level, function, line, message)`) and install it with
`set_logger`; only the first logger installed is kept. Subclass
`cvmattest.telemetry.TelemetryReporting` (implementing `update_event` and
`write_events`) and install it with `set_telemetry_reporting`; passing
`None` removes it. With nothing installed, messages and events are dropped.

## What this package does not do

It does not talk to a TPM: reading the AK certificate and public key,
taking PCR quotes and decrypting the inner key are left to the caller,
whose results are passed in as bytes or callables. It does not send the
attestation request to the attestation service itself, and it provides no
command-line program.