"""
HMAC-SHA256 request signer

This module assembles the signature for the Volcengine-style HMAC-SHA256
request authentication scheme: it hashes the canonical request, builds the
string to sign, signs it with the derived key and renders the Authorization
header value. The signer is stateless apart from its configuration and can be
shared between threads.
"""

import logging
from typing import Optional

from .types import (
    SigningRequest,
    SignatureResult,
    Timestamp,
)
from .utils import (
    format_x_date,
    generate_timestamp,
    sha256_hex,
    PerformanceTimer,
)
from .canonical_request import build_canonical_form
from .key_derivation import (
    build_credential_scope,
    compute_signature,
    derive_signing_key,
)
from .signing_config import SigningConfig, validate_signing_config

logger = logging.getLogger(__name__)

ALGORITHM = "HMAC-SHA256"


def build_string_to_sign(x_date: str, credential_scope: str, canonical_request: str) -> str:
    """
    Build the string to sign.

    Args:
        x_date: X-Date value
        credential_scope: date/region/service/request scope
        canonical_request: Canonical request string

    Returns:
        str: Algorithm, X-Date, scope and hashed canonical request joined by newlines
    """
    return '\n'.join([
        ALGORITHM,
        x_date,
        credential_scope,
        sha256_hex(canonical_request),
    ])


def build_authorization_header(
    access_key_id: str,
    credential_scope: str,
    signed_headers: str,
    signature: str
) -> str:
    """
    Render the Authorization header value.

    The separators are part of the wire format and must match exactly.
    """
    return (
        f"{ALGORITHM} Credential={access_key_id}/{credential_scope}, "
        f"SignedHeaders={signed_headers}, "
        f"Signature={signature}"
    )


class HmacSigner:
    """
    HMAC-SHA256 request signer

    Each call reads the clock once, so X-Date and the credential scope always
    agree even across a UTC day boundary.
    """

    def __init__(self, config: SigningConfig):
        """
        Initialize the signer with configuration.

        Args:
            config: Signing configuration

        Raises:
            SigningError: If configuration is invalid
        """
        validate_signing_config(config)
        self.config = config

    def sign_request(
        self,
        request: SigningRequest,
        timestamp: Timestamp = None
    ) -> SignatureResult:
        """
        Sign a request.

        Args:
            request: Request to sign
            timestamp: Optional signing time; the configured clock is read when omitted

        Returns:
            SignatureResult: Header values and the intermediate strings

        Raises:
            SigningError: If the request or timestamp is invalid
        """
        timer = PerformanceTimer()

        if timestamp is None:
            clock = self.config.timestamp_generator or generate_timestamp
            timestamp = clock()

        x_date = format_x_date(timestamp)
        date_stamp = x_date[:8]

        canonical = build_canonical_form(request, x_date)
        canonical_request = canonical.canonical_request

        credential_scope = build_credential_scope(date_stamp, self.config.region, self.config.service)
        string_to_sign = build_string_to_sign(x_date, credential_scope, canonical_request)

        signing_key = derive_signing_key(
            self.config.credentials.secret_access_key,
            date_stamp,
            self.config.region,
            self.config.service,
        )
        signature = compute_signature(signing_key, string_to_sign)

        authorization = build_authorization_header(
            self.config.credentials.access_key_id,
            credential_scope,
            canonical.signed_headers,
            signature,
        )

        elapsed_ms = timer.elapsed_ms()
        if elapsed_ms > 10:
            logger.warning(f"Signing operation took {elapsed_ms:.2f}ms (target: <10ms)")

        logger.debug(
            f"Signed {request.method.value} {request.host}{request.path} "
            f"with scope {credential_scope}"
        )

        return SignatureResult(
            authorization=authorization,
            x_date=x_date,
            x_content_sha256=canonical.content_hash,
            host=request.host,
            signature=signature,
            credential_scope=credential_scope,
            signed_headers=canonical.signed_headers,
            canonical_request=canonical_request,
            string_to_sign=string_to_sign,
        )


def create_signer(config: SigningConfig) -> HmacSigner:
    """
    Create a new HMAC-SHA256 signer.

    Args:
        config: Signing configuration

    Returns:
        HmacSigner: Configured signer instance
    """
    return HmacSigner(config)


def sign_request(
    request: SigningRequest,
    config: SigningConfig,
    timestamp: Optional[Timestamp] = None
) -> SignatureResult:
    """
    Sign a request with the given configuration.

    Args:
        request: Request to sign
        config: Signing configuration
        timestamp: Optional signing time

    Returns:
        SignatureResult: Signing result
    """
    signer = create_signer(config)
    return signer.sign_request(request, timestamp)
