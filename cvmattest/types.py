"""Result codes, errors, algorithm identifiers and parameter records of the client library."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum

CLIENT_PARAMS_VERSION = 1

# Keys and values of the attestation request and response documents.
JSON_OS_TYPE_KEY = "OSType"
JSON_OS_DISTRO_KEY = "OSDistro"
JSON_OS_VERSION_MAJOR_KEY = "OSVersionMajor"
JSON_OS_VERSION_MINOR_KEY = "OSVersionMinor"
JSON_OS_BUILD_KEY = "OSBuild"
JSON_TCG_LOGS_KEY = "TcgLogs"
JSON_CLIENT_PAYLOAD_KEY = "ClientPayload"
JSON_TPM_INFO_KEY = "TpmInfo"
JSON_AIK_CERT_KEY = "AikCert"
JSON_AIK_PUB_KEY = "AikPub"
JSON_ENC_PUB_KEY = "EncKeyPub"
JSON_ENC_KEY_CERTIFY_INFO = "EncKeyCertifyInfo"
JSON_PCR_QUOTE_KEY = "PcrQuote"
JSON_PCR_SIGNATURE_KEY = "PcrSignature"
JSON_ENC_KEY_CERTIFY_INFO_SIGNATURE = "EncKeyCertifyInfoSignature"
JSON_PCRS_KEY = "PCRs"
JSON_PCR_INDEX_KEY = "Index"
JSON_PCR_DIGEST_KEY = "Digest"
JSON_PROTOCOL_VERSION_KEY = "AttestationProtocolVersion"
JSON_ATTESTATION_INFO_KEY = "AttestationInfo"
JSON_PCR_SET_KEY = "PcrSet"
JSON_RESPONSE_EXCRYPTION_PARAMETERS_KEY = "EncryptionParams"
JSON_RESPONSE_HASH_KEY = "Hash"
JSON_RESPONSE_PCR_SET_KEY = "PcrSet"
JSON_RESPONSE_PCRS_KEY = "Pcrs"
JSON_RESPONSE_BLOCK_MODE_KEY = "BlockMode"
JSON_RESPONSE_BLOCK_PADDING_KEY = "BlockPadding"
JSON_RESPONSE_CIPHER_KEY = "Cipher"
JSON_RESPONSE_BLOCK_KEY_SIZE_KEY = "KeySizeInBits"
JSON_RESPONSE_IV_KEY = "Iv"
JSON_RESPONSE_AUTHENTICATION_DATA_KEY = "AuthenticationData"
JSON_RESPONSE_JWT_KEY = "Jwt"
JSON_RESPONSE_ENC_INNER_KEY_KEY = "EncryptedInnerKey"

JSON_RESPONSE_HASH_SHA1_VALUE = "Sha1"
JSON_RESPONSE_HASH_SHA256_VALUE = "Sha256"
JSON_RESPONSE_HASH_SHA384_VALUE = "Sha384"
JSON_RESPONSE_HASH_SHA512_VALUE = "Sha512"
JSON_RESPONSE_HASH_SM3_256_VALUE = "Sm3_256"
JSON_RESPONSE_BLOCK_MODE_CHAINING_GCM_VALUE = "ChainingModeGCM"
JSON_RESPONSE_BLOCK_PADDING_PKCS7_VALUE = "PKCS7"
JSON_RESPONSE_CIPHER_AES_VALUE = "AES"

JSON_HTTP_ERROR_LOWER_KEY = "error"
JSON_HTTP_ERROR_CODE_LOWER_KEY = "code"
JSON_HTTP_ERROR_MESSAGE_LOWER_KEY = "message"
JSON_HTTP_ERROR_KEY = "Error"
JSON_HTTP_ERROR_CODE_KEY = "Code"
JSON_HTTP_ERROR_MESSAGE_KEY = "Message"

JSON_ISOLATION_INFO_KEY = "IsolationInfo"
JSON_ISOLATION_TYPE_KEY = "Type"
JSON_ISOLATION_TYPE_TVM = "TrustedLaunch"
JSON_ISOLATION_TYPE_SEVSNP = "SevSnp"
JSON_ISOLATION_EVIDENCE_KEY = "Evidence"
JSON_ISOLATION_PROOF_KEY = "Proof"
JSON_ISOLATION_RUNTIME_DATA_KEY = "RunTimeData"
JSON_ISOLATION_EVIDENCE_SNPREPORT = "SnpReport"
JSON_ISOLATION_EVIDENCE_VCEKCERT = "VcekCertChain"
JSON_AK_CERT_PEM = "AkCertPem"
JSON_AK_CERT_QUERY_ID = "CertQueryId"

JSON_ARM_ID_KEY = "ArmID"
JSON_VM_HEALTH_STATUS_KEY = "HealthStatus"
JSON_VM_HEALTH_HEALTHY_VALUE = "Healthy"
JSON_VM_HEALTH_UNHEALTHY_VALUE = "Unhealthy"
JSON_VM_HEALTH_PLATFORM_ERROR_VALUE = "PlatformError"
JSON_REPORT_ATTESTATION_TOKEN_KEY = "AttestationToken"
JSON_REPORT_ATTESTATION_STATUS_MESSAGE_KEY = "AttestationStatusMessage"
JSON_REPORT_PLATFORM_ERROR_MESSAGE_KEY = "PlatformErrorMessage"
JSON_REPORT_AAS_ATTESTATION_URI = "AttestationUri"


class ErrorCode(IntEnum):
    """Result codes reported by the attestation client library."""

    SUCCESS = 0
    ERROR_CURL_INITIALIZATION = -1
    ERROR_RESPONSE_PARSING = -2
    ERROR_MSI_TOKEN_NOT_FOUND = -3
    ERROR_HTTP_REQUEST_EXCEEDED_RETRIES = -4
    ERROR_HTTP_REQUEST_FAILED = -5
    ERROR_ATTESTATION_FAILED = -6
    ERROR_SENDING_CURL_REQUEST_FAILED = -7
    ERROR_INVALID_INPUT_PARAMETER = -8
    ERROR_ATTESTATION_PARAMETERS_VALIDATION_FAILED = -9
    ERROR_FAILED_MEMORY_ALLOCATION = -10
    ERROR_FAILED_TO_GET_OS_INFO = -11
    ERROR_TPM_INTERNAL_FAILURE = -12
    ERROR_TPM_OPERATION_FAILURE = -13
    ERROR_JWT_DECRYPTION_FAILED = -14
    ERROR_JWT_DECRYPTION_TPM_ERROR = -15
    ERROR_INVALID_JSON_RESPONSE = -16
    ERROR_EMPTY_VCEK_CERT = -17
    ERROR_EMPTY_RESPONSE = -18
    ERROR_EMPTY_REQUEST_BODY = -19
    ERROR_HCL_REPORT_PARSING_FAILURE = -20
    ERROR_HCL_REPORT_EMPTY = -21
    ERROR_EXTRACTING_JWK_INFO = -22
    ERROR_CONVERTING_JWK_TO_RSA_PUB = -23
    ERROR_EVP_PKEY_ENCRYPT_INIT_FAILED = -24
    ERROR_EVP_PKEY_ENCRYPT_FAILED = -25
    ERROR_DATA_DECRYPTION_TPM_ERROR = -26
    ERROR_PARSING_DNS_INFO = -27
    ERROR_PARSING_ATTESTATION_RESPONSE = -28
    ERROR_AK_CERT_PROVISIONING_FAILED = -29
    ERROR_EMPTY_TD_QUOTE = -30
    ERROR_AK_CERT_PARSING = -31
    ERROR_AK_CERT_RENEW = -32


class AttestationError(Exception):
    """A failed attestation operation, carrying its error code and description."""

    def __init__(self, code, description="", tpm_error_code=0):
        code = ErrorCode(code)
        if code is ErrorCode.SUCCESS:
            raise ValueError("an AttestationError cannot carry the SUCCESS code")
        super().__init__(description or code.name)
        self.code = code
        self.description = description
        self.tpm_error_code = int(tpm_error_code)

    def __repr__(self):
        return (
            f"{type(self).__name__}(code={self.code.name}, "
            f"description={self.description!r}, tpm_error_code={self.tpm_error_code})"
        )


class OsType(Enum):
    LINUX = "linux"
    WINDOWS = "windows"
    INVALID = "invalid"


class RsaScheme(IntEnum):
    """RSA padding schemes, using their TPM 2.0 algorithm identifiers."""

    NULL = 0x0010
    RSAES = 0x0015
    OAEP = 0x0017


class RsaHashAlg(IntEnum):
    """Hash algorithms for RSA operations, using their TPM 2.0 algorithm identifiers."""

    SHA1 = 0x0004
    SHA256 = 0x000B
    SHA384 = 0x000C
    SHA512 = 0x000D


class EncryptionType(Enum):
    NONE = "none"


@dataclass
class OsInfo:
    """Operating system description sent with an attestation request."""

    type: OsType = OsType.INVALID
    distro_name: str = ""
    build: str = ""
    distro_version_major: int = 0
    distro_version_minor: int = 0


@dataclass
class ClientParameters:
    """What the caller hands to the library for an attestation request."""

    attestation_endpoint_url: str = ""
    client_payload: str | None = None
    version: int = CLIENT_PARAMS_VERSION