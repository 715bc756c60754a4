"""
LiveText Python SDK - Request Signing Module

HMAC-SHA256 request authentication for the Volcengine visual API,
implemented without the provider SDK: canonical request construction, the
four-stage signing key chain and Authorization header assembly.
"""

from .types import (
    SigningRequest,
    Credentials,
    CanonicalForm,
    SigningKey,
    SignatureResult,
    SigningError,
    SigningErrorCodes,
    HttpMethod,
)

from .canonical_request import (
    CanonicalRequestBuilder,
    SIGNED_HEADER_NAMES,
    SIGNED_HEADERS,
    build_canonical_form,
    build_canonical_request,
    canonical_query_string,
)

from .key_derivation import (
    SCOPE_TERMINATOR,
    build_credential_scope,
    derive_signing_key,
    compute_signature,
    verify_signature,
)

from .hmac_signer import (
    ALGORITHM,
    HmacSigner,
    create_signer,
    sign_request,
    build_string_to_sign,
    build_authorization_header,
)

from .signing_config import (
    SigningConfig,
    SigningConfigBuilder,
    DEFAULT_SERVICE,
    DEFAULT_REGION,
    create_signing_config,
)

from .utils import (
    sha256_hex,
    hmac_sha256,
    uri_encode,
    generate_timestamp,
    format_x_date,
    parse_x_date,
)

from .integration import (
    SigningSession,
    create_signing_session,
    build_request_url,
    require_sent_as_signed,
)

# Public API exports
__all__ = [
    # Core signing functionality
    'HmacSigner',
    'create_signer',
    'sign_request',
    'build_string_to_sign',
    'build_authorization_header',
    'ALGORITHM',
    # Canonical request
    'CanonicalRequestBuilder',
    'SIGNED_HEADER_NAMES',
    'SIGNED_HEADERS',
    'build_canonical_form',
    'build_canonical_request',
    'canonical_query_string',
    # Key derivation
    'SCOPE_TERMINATOR',
    'build_credential_scope',
    'derive_signing_key',
    'compute_signature',
    'verify_signature',
    # Types
    'SigningRequest',
    'Credentials',
    'CanonicalForm',
    'SigningKey',
    'SignatureResult',
    'SigningError',
    'SigningErrorCodes',
    'HttpMethod',
    # Configuration
    'SigningConfig',
    'SigningConfigBuilder',
    'DEFAULT_SERVICE',
    'DEFAULT_REGION',
    'create_signing_config',
    # Utilities
    'sha256_hex',
    'hmac_sha256',
    'uri_encode',
    'generate_timestamp',
    'format_x_date',
    'parse_x_date',
    # HTTP Integration
    'SigningSession',
    'create_signing_session',
    'build_request_url',
    'require_sent_as_signed',
]
