"""
Type definitions for request signing functionality

This module provides type definitions and data classes for the HMAC-SHA256
request authentication scheme used by the Volcengine visual API.
"""

from datetime import datetime
from typing import Dict, List, Optional, Union, Callable, Any
from dataclasses import dataclass, field
from enum import Enum

# Terminal element of the derivation chain and of the credential scope
SCOPE_TERMINATOR = "request"


class HttpMethod(str, Enum):
    """HTTP methods supported for signing"""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class SigningError(Exception):
    """
    Error class for signing operations

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Optional additional error details
    """

    def __init__(
        self,
        message: str,
        code: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (code: {self.code}, details: {self.details})"
        return f"{self.message} (code: {self.code})"

    def __repr__(self) -> str:
        return f"SigningError(message='{self.message}', code='{self.code}', details={self.details})"


class SigningErrorCodes:
    """Standard error codes for signing operations"""

    # Configuration errors
    INVALID_CONFIG = "INVALID_CONFIG"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"

    # Request errors
    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_METHOD = "INVALID_METHOD"
    INVALID_HOST = "INVALID_HOST"
    INVALID_PATH = "INVALID_PATH"
    INVALID_QUERY = "INVALID_QUERY"
    INVALID_HEADERS = "INVALID_HEADERS"
    MISSING_REQUIRED_HEADER = "MISSING_REQUIRED_HEADER"
    INVALID_BODY = "INVALID_BODY"

    # Validation errors
    INVALID_TIMESTAMP = "INVALID_TIMESTAMP"
    INVALID_SCOPE = "INVALID_SCOPE"


# Type aliases for convenience
HeaderDict = Dict[str, str]
QueryParams = Dict[str, Any]
RequestBody = Union[str, bytes, None]
Timestamp = Union[datetime, int, float, None]
TimestampGenerator = Callable[[], datetime]


def coerce_http_method(method: Union[HttpMethod, str]) -> HttpMethod:
    """
    Convert a method name to HttpMethod.

    Raises:
        SigningError: If the method is empty or not supported
    """
    if isinstance(method, HttpMethod):
        return method

    if not method or not isinstance(method, str):
        raise SigningError(
            "HTTP method cannot be empty",
            SigningErrorCodes.INVALID_METHOD,
            {"method": method}
        )

    try:
        return HttpMethod(method.strip().upper())
    except ValueError:
        raise SigningError(
            f"Unsupported HTTP method: {method}",
            SigningErrorCodes.INVALID_METHOD,
            {"method": method}
        )


@dataclass
class Credentials:
    """
    Access key pair issued by the provider

    Attributes:
        access_key_id: Public access key identifier, sent in the Credential field
        secret_access_key: Secret key seeding the signing key chain
    """
    access_key_id: str
    secret_access_key: str = field(repr=False)

    def __post_init__(self):
        """Validate credentials"""
        if not self.access_key_id or not isinstance(self.access_key_id, str):
            raise SigningError(
                "Access key ID cannot be empty",
                SigningErrorCodes.INVALID_CREDENTIALS,
                {"field": "access_key_id"}
            )

        if not self.secret_access_key or not isinstance(self.secret_access_key, str):
            raise SigningError(
                "Secret access key cannot be empty",
                SigningErrorCodes.INVALID_CREDENTIALS,
                {"field": "secret_access_key"}
            )


@dataclass
class SigningRequest:
    """
    Request to be signed

    Attributes:
        method: HTTP method (GET, POST, etc.)
        host: Target host, sent verbatim in the Host header
        path: Absolute request path, signed verbatim
        query: Query parameters, names unique
        headers: Request headers; content-type is required
        body: Exact body bytes that will be sent (string bodies are UTF-8 encoded)
    """
    method: HttpMethod
    host: str
    path: str
    query: QueryParams = field(default_factory=dict)
    headers: HeaderDict = field(default_factory=dict)
    body: RequestBody = None

    def __post_init__(self):
        """Validate request after initialization"""
        self.method = coerce_http_method(self.method)

        if not self.host or not isinstance(self.host, str):
            raise SigningError(
                "Request host cannot be empty",
                SigningErrorCodes.INVALID_HOST,
                {"host": self.host}
            )

        if not self.path or not isinstance(self.path, str):
            raise SigningError(
                "Request path cannot be empty",
                SigningErrorCodes.INVALID_PATH,
                {"path": self.path}
            )

        if not self.path.startswith('/'):
            raise SigningError(
                f"Request path must be absolute: {self.path}",
                SigningErrorCodes.INVALID_PATH,
                {"path": self.path}
            )

        if self.query is None:
            self.query = {}

        if not isinstance(self.query, dict):
            raise SigningError(
                "Query parameters must be a dictionary",
                SigningErrorCodes.INVALID_QUERY
            )

        if not isinstance(self.headers, dict):
            raise SigningError(
                "Headers must be a dictionary",
                SigningErrorCodes.INVALID_HEADERS
            )

        if self.body is not None and not isinstance(self.body, (str, bytes)):
            raise SigningError(
                f"Body must be string, bytes, or None, got {type(self.body)}",
                SigningErrorCodes.INVALID_BODY,
                {"body_type": str(type(self.body))}
            )

        # Normalize headers to lowercase for consistent processing
        normalized = {}
        for name, value in self.headers.items():
            key = name.lower()
            if key in normalized:
                raise SigningError(
                    f"Duplicate header: {name}",
                    SigningErrorCodes.INVALID_HEADERS,
                    {"header": key}
                )
            normalized[key] = value
        self.headers = normalized

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get('content-type')


@dataclass
class CanonicalForm:
    """
    Deterministic serialization of a request

    Attributes:
        method: Method line
        path: Path line, verbatim
        canonical_query: Sorted, percent-encoded query string
        canonical_headers: Newline-terminated header block
        signed_headers: Header names joined by ';'
        content_hash: Hex SHA-256 of the body
    """
    method: str
    path: str
    canonical_query: str
    canonical_headers: str
    signed_headers: str
    content_hash: str

    @property
    def canonical_request(self) -> str:
        return '\n'.join([
            self.method,
            self.path,
            self.canonical_query,
            self.canonical_headers,
            self.signed_headers,
            self.content_hash,
        ])


@dataclass(frozen=True)
class SigningKey:
    """
    Request-scoped key produced by the derivation chain.

    Key material is excluded from repr so it cannot leak through logging.
    """
    date_stamp: str
    region: str
    service: str
    k_date: bytes = field(repr=False)
    k_region: bytes = field(repr=False)
    k_service: bytes = field(repr=False)
    k_signing: bytes = field(repr=False)

    @property
    def scope(self) -> str:
        return f"{self.date_stamp}/{self.region}/{self.service}/{SCOPE_TERMINATOR}"


@dataclass
class SignatureResult:
    """
    Generated signature result

    Attributes:
        authorization: Authorization header value
        x_date: X-Date header value
        x_content_sha256: X-Content-Sha256 header value
        host: Host header value
        signature: Hex signature embedded in the authorization value
        credential_scope: date/region/service/request scope
        signed_headers: Signed header names joined by ';'
        canonical_request: Canonical request that was hashed
        string_to_sign: String that was signed
    """
    authorization: str
    x_date: str
    x_content_sha256: str
    host: str
    signature: str
    credential_scope: str
    signed_headers: str
    canonical_request: str
    string_to_sign: str

    def __post_init__(self):
        """Validate signature result"""
        if not self.authorization:
            raise ValueError("Authorization cannot be empty")

        if not self.signature:
            raise ValueError("Signature cannot be empty")

    @property
    def headers(self) -> HeaderDict:
        """Headers that must be attached to the outbound request."""
        return {
            'Host': self.host,
            'X-Date': self.x_date,
            'X-Content-Sha256': self.x_content_sha256,
            'Authorization': self.authorization,
        }

    @property
    def signed_header_names(self) -> List[str]:
        return self.signed_headers.split(';')
