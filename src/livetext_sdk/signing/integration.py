"""
HTTP client integration for request signing

This module wraps a requests.Session so that every outbound request is signed
immediately before it is sent, and sent exactly as it was signed.
"""

import logging
from typing import Dict, Optional, Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .types import (
    SigningRequest,
    HeaderDict,
    QueryParams,
    RequestBody,
    SigningError,
    SigningErrorCodes,
)
from .canonical_request import canonical_query_string
from .hmac_signer import HmacSigner
from .signing_config import SigningConfig
from .utils import normalize_header_name

logger = logging.getLogger(__name__)

# Only idempotent methods are replayed; POST is never retried automatically
RETRY_METHODS = frozenset(["HEAD", "GET", "PUT", "DELETE", "OPTIONS"])
RETRY_STATUSES = (429, 500, 502, 503, 504)

# Caller headers that are always overwritten by the signed values
REPLACED_HEADERS = ('host', 'x-date', 'x-content-sha256', 'authorization')


def build_request_url(scheme: str, host: str, path: str, query: Optional[QueryParams] = None) -> str:
    """
    Build the URL that is actually requested.

    The query string is the canonical one, so the server sees exactly what
    was signed.
    """
    url = f"{scheme}://{host}{path}"
    query_string = canonical_query_string(query or {})
    if query_string:
        url = f"{url}?{query_string}"
    return url


def require_sent_as_signed(url: str, path: str, query_string: str) -> None:
    """
    Reject a request whose URL requests would rewrite before sending.

    requests re-encodes spaces and non-ASCII characters, uppercases percent
    escapes and removes dot segments. The path is signed verbatim, so it must
    already be in the form that goes on the wire.

    Raises:
        SigningError: If the sent path or query would differ from the signed one
    """
    signed_path_url = f"{path}?{query_string}" if query_string else path

    sent = requests.PreparedRequest()
    sent.prepare_url(url, None)

    if sent.path_url != signed_path_url:
        raise SigningError(
            f"Request path would not be sent as signed: {path}",
            SigningErrorCodes.INVALID_PATH,
            {"path": path, "sent_path": sent.path_url}
        )


class SigningSession:
    """
    HTTP session wrapper with automatic request signing.

    This class wraps a requests.Session and signs each outgoing request
    with the configured credentials. Signing errors are never swallowed; an
    unsigned request is never sent.
    """

    def __init__(
        self,
        signing_config: SigningConfig,
        session: Optional[requests.Session] = None,
        scheme: str = "https",
        timeout: float = 30.0,
        verify_ssl: bool = True,
        retry_attempts: int = 0,
        retry_backoff_factor: float = 0.3
    ):
        """
        Initialize signing session.

        Args:
            signing_config: Signing configuration
            session: Optional existing requests session to wrap
            scheme: URL scheme used to reach the host
            timeout: Default request timeout in seconds
            verify_ssl: Whether to verify SSL certificates
            retry_attempts: Retries for idempotent requests on transient statuses
            retry_backoff_factor: Backoff factor between retries
        """
        self.signer = HmacSigner(signing_config)
        self.signing_config = signing_config
        self.scheme = scheme
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.session = session or self._create_session(retry_attempts, retry_backoff_factor)

    def _create_session(self, retry_attempts: int, retry_backoff_factor: float) -> requests.Session:
        """Create HTTP session with retry logic."""
        session = requests.Session()

        if retry_attempts > 0:
            retry_strategy = Retry(
                total=retry_attempts,
                status_forcelist=RETRY_STATUSES,
                allowed_methods=RETRY_METHODS,
                backoff_factor=retry_backoff_factor,
            )
            adapter = HTTPAdapter(max_retries=retry_strategy)
            session.mount("http://", adapter)
            session.mount("https://", adapter)

        return session

    def request(
        self,
        method: str,
        host: str,
        path: str,
        query: Optional[QueryParams] = None,
        headers: Optional[HeaderDict] = None,
        body: RequestBody = None,
        timeout: Optional[float] = None
    ) -> requests.Response:
        """
        Sign and send a request.

        Args:
            method: HTTP method
            host: Target host
            path: Absolute request path
            query: Query parameters
            headers: Request headers; must include content-type
            body: Request body sent byte-for-byte as signed
            timeout: Per-call timeout overriding the session default

        Returns:
            requests.Response: HTTP response

        Raises:
            SigningError: If the request cannot be signed
            requests.exceptions.RequestException: On transport failures
        """
        prepared = self.prepare(method, host, path, query, headers, body)

        logger.debug(f"Sending signed {prepared['method']} request to {prepared['url']}")
        return self.session.request(
            prepared['method'],
            prepared['url'],
            headers=prepared['headers'],
            data=prepared['data'],
            timeout=timeout if timeout is not None else self.timeout,
            verify=self.verify_ssl,
        )

    def prepare(
        self,
        method: str,
        host: str,
        path: str,
        query: Optional[QueryParams] = None,
        headers: Optional[HeaderDict] = None,
        body: RequestBody = None
    ) -> Dict[str, Any]:
        """
        Sign a request and return the arguments it must be sent with.

        Returns:
            dict: method, url, headers and data for requests.Session.request

        Raises:
            SigningError: If the request is invalid or would not be sent exactly as signed
        """
        signing_request = SigningRequest(
            method=method,
            host=host,
            path=path,
            query=dict(query or {}),
            headers=dict(headers or {}),
            body=body,
        )

        url = build_request_url(self.scheme, host, path, signing_request.query)
        require_sent_as_signed(url, path, canonical_query_string(signing_request.query))

        result = self.signer.sign_request(signing_request)

        outgoing_headers = {
            name: value for name, value in (headers or {}).items()
            if normalize_header_name(name) not in REPLACED_HEADERS
        }
        outgoing_headers.update(result.headers)

        data = body.encode('utf-8') if isinstance(body, str) else body

        return {
            'method': signing_request.method.value,
            'url': url,
            'headers': outgoing_headers,
            'data': data,
        }

    def get(self, host: str, path: str, **kwargs) -> requests.Response:
        """Make GET request."""
        return self.request('GET', host, path, **kwargs)

    def post(self, host: str, path: str, **kwargs) -> requests.Response:
        """Make POST request."""
        return self.request('POST', host, path, **kwargs)

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()
        logger.debug("Signing session closed")

    def __enter__(self) -> 'SigningSession':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def create_signing_session(signing_config: SigningConfig, **kwargs) -> SigningSession:
    """
    Create a signing session.

    Args:
        signing_config: Signing configuration
        **kwargs: Additional SigningSession arguments

    Returns:
        SigningSession: Configured session
    """
    return SigningSession(signing_config, **kwargs)
