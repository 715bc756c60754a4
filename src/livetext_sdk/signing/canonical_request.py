"""
Canonical request construction for HMAC-SHA256 request signing

This module serializes a request's method, path, query, the fixed set of
signed headers and the body hash into the canonical request string that is
hashed into the string to sign.
"""

from typing import Any, List, Tuple

from .types import (
    SigningRequest,
    CanonicalForm,
    SigningError,
    SigningErrorCodes,
    QueryParams,
)
from .utils import sha256_hex, uri_encode

# Always signed, always in this order, whatever headers the caller supplies
SIGNED_HEADER_NAMES: Tuple[str, ...] = ('host', 'x-date', 'x-content-sha256', 'content-type')
SIGNED_HEADERS = ';'.join(SIGNED_HEADER_NAMES)


class CanonicalRequestBuilder:
    """
    Canonical request builder for HMAC-SHA256 signatures
    """

    def __init__(self, request: SigningRequest, x_date: str):
        """
        Initialize canonical request builder.

        Args:
            request: Request being signed
            x_date: X-Date value captured for this signing call
        """
        self.request = request
        self.x_date = x_date

    def build(self) -> CanonicalForm:
        """
        Build the canonical form for signing.

        Returns:
            CanonicalForm: Canonical request components

        Raises:
            SigningError: If the request lacks a content-type or has malformed query parameters
        """
        content_type = self._require_content_type()
        content_hash = sha256_hex(self.request.body)

        return CanonicalForm(
            method=self.request.method.value,
            path=self.request.path,
            canonical_query=canonical_query_string(self.request.query),
            canonical_headers=self._build_headers_block(content_hash, content_type),
            signed_headers=SIGNED_HEADERS,
            content_hash=content_hash,
        )

    def _require_content_type(self) -> str:
        value = self.request.content_type

        if value is None or value == '':
            raise SigningError(
                "Required header not found: content-type",
                SigningErrorCodes.MISSING_REQUIRED_HEADER,
                {"header": "content-type", "available_headers": list(self.request.headers.keys())}
            )

        if not isinstance(value, str):
            raise SigningError(
                f"Header value must be a string: content-type={value!r}",
                SigningErrorCodes.INVALID_HEADERS,
                {"header": "content-type"}
            )

        return value

    def _build_headers_block(self, content_hash: str, content_type: str) -> str:
        values = {
            'host': self.request.host,
            'x-date': self.x_date,
            'x-content-sha256': content_hash,
            'content-type': content_type,
        }
        return ''.join(f'{name}:{values[name]}\n' for name in SIGNED_HEADER_NAMES)


def _query_value(key: str, value: Any) -> str:
    if value is None:
        return ''

    if isinstance(value, bool):
        return 'true' if value else 'false'

    if isinstance(value, (str, int, float)):
        return str(value)

    raise SigningError(
        f"Unsupported value for query parameter '{key}': {type(value).__name__}",
        SigningErrorCodes.INVALID_QUERY,
        {"parameter": key, "value_type": type(value).__name__}
    )


def canonical_query_pairs(query: QueryParams) -> List[Tuple[str, str]]:
    """
    Normalize query parameters into (name, value) pairs sorted by name bytes.

    Args:
        query: Mapping of parameter names to scalar values

    Returns:
        list: Unencoded pairs in canonical order

    Raises:
        SigningError: If two names collide once converted to strings or a value is not scalar
    """
    pairs = {}
    for key, value in query.items():
        name = str(key)
        if name in pairs:
            raise SigningError(
                f"Duplicate query parameter: {name}",
                SigningErrorCodes.INVALID_QUERY,
                {"parameter": name}
            )
        pairs[name] = _query_value(name, value)

    return sorted(pairs.items(), key=lambda item: item[0].encode('utf-8'))


def canonical_query_string(query: QueryParams) -> str:
    """
    Build the canonical query string.

    Args:
        query: Mapping of parameter names to values

    Returns:
        str: Percent-encoded key=value pairs joined by '&'
    """
    return '&'.join(
        f'{uri_encode(name)}={uri_encode(value)}'
        for name, value in canonical_query_pairs(query)
    )


def build_canonical_form(request: SigningRequest, x_date: str) -> CanonicalForm:
    """
    Build the canonical form of a request.

    Args:
        request: Request to serialize
        x_date: X-Date value for this signing call

    Returns:
        CanonicalForm: Canonical request components
    """
    return CanonicalRequestBuilder(request, x_date).build()


def build_canonical_request(request: SigningRequest, x_date: str) -> str:
    """
    Build the canonical request string.

    Args:
        request: Request to serialize
        x_date: X-Date value for this signing call

    Returns:
        str: Canonical request string
    """
    return build_canonical_form(request, x_date).canonical_request
