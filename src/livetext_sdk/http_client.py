"""
HTTP client for the Volcengine visual API

This module provides the client used by the proxy and the CLI to call the
provider's OCR action with signed requests. Provider responses are returned
as opaque JSON.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlencode

import requests

from .config.settings import (
    DEFAULT_API_HOST,
    DEFAULT_OCR_ACTION,
    DEFAULT_OCR_VERSION,
    Settings,
)
from .exceptions import AuthenticationError, ServerCommunicationError, ValidationError
from .signing.integration import SigningSession
from .signing.signing_config import SigningConfig

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
AUTH_FAILURE_STATUSES = (401, 403)


@dataclass
class VisualApiConfig:
    """Configuration for the visual API endpoint."""
    host: str = DEFAULT_API_HOST
    path: str = "/"
    scheme: str = "https"
    ocr_action: str = DEFAULT_OCR_ACTION
    ocr_version: str = DEFAULT_OCR_VERSION
    timeout: float = 30.0
    verify_ssl: bool = True
    retry_attempts: int = 0

    def __post_init__(self):
        """Validate endpoint configuration."""
        if not self.host:
            raise ValidationError("API host cannot be empty")

        if not self.path.startswith('/'):
            raise ValidationError(f"API path must be absolute: {self.path}")

        if self.scheme not in ('http', 'https'):
            raise ValidationError(f"Unsupported URL scheme: {self.scheme}")

        if self.timeout <= 0:
            raise ValidationError("Timeout must be positive")

        if self.retry_attempts < 0:
            raise ValidationError("Retry attempts must be non-negative")


def encode_form(pairs: List[Tuple[str, str]]) -> str:
    """Encode form fields in order as application/x-www-form-urlencoded."""
    return urlencode(pairs)


def _provider_error(data: Any) -> Tuple[str, str]:
    """Extract (code, message) from a provider error payload."""
    if isinstance(data, dict):
        metadata = data.get('ResponseMetadata')
        if isinstance(metadata, dict) and isinstance(metadata.get('Error'), dict):
            error = metadata['Error']
            return str(error.get('Code', 'HTTP_ERROR')), str(error.get('Message', ''))
        if 'message' in data:
            return str(data.get('code', 'HTTP_ERROR')), str(data['message'])
    return 'HTTP_ERROR', ''


class VisualApiClient:
    """
    Client for the Volcengine visual API.

    Every call is signed with the configured credentials. Transport failures,
    non-2xx statuses and malformed JSON are raised as ServerCommunicationError;
    rejected signatures as AuthenticationError.
    """

    def __init__(
        self,
        signing_config: SigningConfig,
        config: Optional[VisualApiConfig] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the client.

        Args:
            signing_config: Credentials, service and region for signing
            config: Endpoint configuration
            session: Optional requests session to send through
        """
        self.config = config or VisualApiConfig()
        self.signing_session = SigningSession(
            signing_config,
            session=session,
            scheme=self.config.scheme,
            timeout=self.config.timeout,
            verify_ssl=self.config.verify_ssl,
            retry_attempts=self.config.retry_attempts,
        )

        logger.info(f"Initialized visual API client for host: {self.config.host}")

    def call_action(
        self,
        action: str,
        version: str,
        form: Optional[List[Tuple[str, str]]] = None,
        timeout: Optional[float] = None
    ) -> Dict[str, Any]:
        """
        Invoke an API action with a form-encoded POST body.

        Args:
            action: Action query parameter
            version: Version query parameter
            form: Ordered form fields
            timeout: Per-call timeout in seconds

        Returns:
            dict: Provider response JSON

        Raises:
            AuthenticationError: If the provider rejects the signature
            ServerCommunicationError: On network, HTTP or JSON errors
        """
        if not action or not version:
            raise ValidationError("Action and version are required")

        body = encode_form(form or [])
        query = {'Action': action, 'Version': version}

        logger.debug(f"Calling {action} ({version}) on {self.config.host}")

        try:
            response = self.signing_session.post(
                self.config.host,
                self.config.path,
                query=query,
                headers={'Content-Type': FORM_CONTENT_TYPE},
                body=body,
                timeout=timeout,
            )
        except requests.exceptions.Timeout:
            effective = timeout if timeout is not None else self.config.timeout
            raise ServerCommunicationError(f"Request timeout after {effective} seconds", "TIMEOUT")
        except requests.exceptions.ConnectionError as e:
            raise ServerCommunicationError(f"Connection error: {e}", "CONNECTION_ERROR")
        except requests.exceptions.RequestException as e:
            raise ServerCommunicationError(f"Request failed: {e}", "REQUEST_FAILED")

        return self._handle_response(response)

    def _handle_response(self, response: requests.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            data = None
            decode_error = e
        else:
            decode_error = None

        if not response.ok:
            code, message = _provider_error(data)
            message = message or f'HTTP {response.status_code}: {response.reason}'
            details = {'status_code': response.status_code, 'code': code}

            if response.status_code in AUTH_FAILURE_STATUSES:
                logger.warning(f"Provider rejected request signature: {code}")
                raise AuthenticationError(
                    f"Authentication with provider failed: {message}",
                    http_status=response.status_code,
                    details=details,
                )

            raise ServerCommunicationError(
                f"Server request failed: {message}",
                "HTTP_ERROR",
                http_status=response.status_code,
                details=details,
            )

        if decode_error is not None:
            raise ServerCommunicationError(
                f"Invalid JSON response: {decode_error}",
                "INVALID_JSON",
                http_status=response.status_code,
            )

        return data

    def ocr_image(self, image_base64: str, timeout: Optional[float] = None) -> Dict[str, Any]:
        """
        Recognize text in an image with the OCRPdf action.

        Args:
            image_base64: Base64-encoded image without a data URL prefix
            timeout: Per-call timeout in seconds

        Returns:
            dict: Provider OCR response JSON
        """
        if not image_base64:
            raise ValidationError("image_base64 is required")

        form = [
            ('image_base64', image_base64),
            ('file_type', 'image'),
            ('version', 'v3'),
        ]
        return self.call_action(self.config.ocr_action, self.config.ocr_version, form, timeout)

    def close(self) -> None:
        """Close the HTTP session."""
        self.signing_session.close()

    def __enter__(self) -> 'VisualApiClient':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def create_client(settings: Settings, session: Optional[requests.Session] = None) -> VisualApiClient:
    """
    Create a visual API client from settings.

    Args:
        settings: Loaded settings; credentials are required
        session: Optional requests session

    Returns:
        VisualApiClient: Configured client

    Raises:
        ConfigurationError: If credentials are missing
    """
    api_config = VisualApiConfig(
        host=settings.api_host,
        ocr_action=settings.ocr_action,
        ocr_version=settings.ocr_version,
        timeout=settings.timeout,
        verify_ssl=settings.verify_ssl,
    )
    return VisualApiClient(settings.to_signing_config(), api_config, session=session)
