"""
LiveText Python SDK
HMAC-SHA256 request signing and OCR proxy for the LiveText overlay
"""

from .version import __version__
from .exceptions import (
    LiveTextSDKError,
    ValidationError,
    ConfigurationError,
    ServerCommunicationError,
    AuthenticationError,
)
from .signing import (
    # Core signing functionality
    HmacSigner,
    create_signer,
    sign_request,
    # Types
    SigningRequest,
    Credentials,
    CanonicalForm,
    SigningKey,
    SignatureResult,
    SigningError,
    SigningErrorCodes,
    HttpMethod,
    # Key derivation
    derive_signing_key,
    verify_signature,
    # Configuration
    SigningConfig,
    SigningConfigBuilder,
    create_signing_config,
    # HTTP Integration
    SigningSession,
    create_signing_session,
)
from .config import Settings, load_settings
from .http_client import VisualApiClient, VisualApiConfig, create_client
from .server import create_app, ClientHandle

# Public API exports
__all__ = [
    '__version__',
    # Exceptions
    'LiveTextSDKError',
    'ValidationError',
    'ConfigurationError',
    'ServerCommunicationError',
    'AuthenticationError',
    # Request Signing - Core
    'HmacSigner',
    'create_signer',
    'sign_request',
    # Request Signing - Types
    'SigningRequest',
    'Credentials',
    'CanonicalForm',
    'SigningKey',
    'SignatureResult',
    'SigningError',
    'SigningErrorCodes',
    'HttpMethod',
    'derive_signing_key',
    'verify_signature',
    # Request Signing - Configuration
    'SigningConfig',
    'SigningConfigBuilder',
    'create_signing_config',
    # Request Signing - HTTP Integration
    'SigningSession',
    'create_signing_session',
    # Settings
    'Settings',
    'load_settings',
    # Visual API client and proxy
    'VisualApiClient',
    'VisualApiConfig',
    'create_client',
    'create_app',
    'ClientHandle',
]
