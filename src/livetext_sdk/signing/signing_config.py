"""
Configuration management for request signing

This module provides the signer configuration, a fluent builder and
validation. Credentials are always passed in explicitly; nothing here reads
the process environment.
"""

from typing import Optional
from dataclasses import dataclass

from .types import (
    Credentials,
    SigningError,
    SigningErrorCodes,
    TimestampGenerator,
)

# Volcengine visual API defaults
DEFAULT_SERVICE = "cv"
DEFAULT_REGION = "cn-north-1"


@dataclass
class SigningConfig:
    """
    Configuration for request signing

    Attributes:
        credentials: Access key pair
        service: Service identifier bound into the credential scope
        region: Region identifier bound into the credential scope
        timestamp_generator: Optional clock override returning a datetime
    """
    credentials: Credentials
    service: str = DEFAULT_SERVICE
    region: str = DEFAULT_REGION
    timestamp_generator: Optional[TimestampGenerator] = None

    def __post_init__(self):
        """Validate signing configuration"""
        validate_signing_config(self)


def validate_signing_config(config: SigningConfig) -> None:
    """
    Validate a signing configuration.

    Raises:
        SigningError: If any field is missing or of the wrong type
    """
    if not isinstance(config.credentials, Credentials):
        raise SigningError(
            "Credentials must be a Credentials instance",
            SigningErrorCodes.INVALID_CONFIG,
            {"field": "credentials"}
        )

    if not config.service or not isinstance(config.service, str):
        raise SigningError(
            "Service cannot be empty",
            SigningErrorCodes.INVALID_CONFIG,
            {"field": "service"}
        )

    if not config.region or not isinstance(config.region, str):
        raise SigningError(
            "Region cannot be empty",
            SigningErrorCodes.INVALID_CONFIG,
            {"field": "region"}
        )

    if '/' in config.service or '/' in config.region:
        raise SigningError(
            "Service and region cannot contain '/'",
            SigningErrorCodes.INVALID_CONFIG,
            {"service": config.service, "region": config.region}
        )

    if config.timestamp_generator is not None and not callable(config.timestamp_generator):
        raise SigningError(
            "Timestamp generator must be callable",
            SigningErrorCodes.INVALID_CONFIG,
            {"field": "timestamp_generator"}
        )


class SigningConfigBuilder:
    """
    Builder for creating signing configurations with fluent API
    """

    def __init__(self):
        self._access_key_id: Optional[str] = None
        self._secret_access_key: Optional[str] = None
        self._service: str = DEFAULT_SERVICE
        self._region: str = DEFAULT_REGION
        self._timestamp_generator: Optional[TimestampGenerator] = None

    def access_key_id(self, access_key_id: str) -> 'SigningConfigBuilder':
        """
        Set access key identifier.

        Args:
            access_key_id: Access key ID

        Returns:
            SigningConfigBuilder: Self for method chaining
        """
        self._access_key_id = access_key_id
        return self

    def secret_access_key(self, secret_access_key: str) -> 'SigningConfigBuilder':
        """
        Set secret access key.

        Args:
            secret_access_key: Secret key seeding the derivation chain

        Returns:
            SigningConfigBuilder: Self for method chaining
        """
        self._secret_access_key = secret_access_key
        return self

    def credentials(self, credentials: Credentials) -> 'SigningConfigBuilder':
        """Set both keys from a Credentials value."""
        self._access_key_id = credentials.access_key_id
        self._secret_access_key = credentials.secret_access_key
        return self

    def service(self, service: str) -> 'SigningConfigBuilder':
        self._service = service
        return self

    def region(self, region: str) -> 'SigningConfigBuilder':
        self._region = region
        return self

    def timestamp_generator(self, generator: TimestampGenerator) -> 'SigningConfigBuilder':
        """
        Override the clock, e.g. to pin signatures in tests.

        Args:
            generator: Callable returning the current datetime

        Returns:
            SigningConfigBuilder: Self for method chaining
        """
        self._timestamp_generator = generator
        return self

    def build(self) -> SigningConfig:
        """
        Build the signing configuration.

        Returns:
            SigningConfig: Validated configuration

        Raises:
            SigningError: If credentials are missing or configuration is invalid
        """
        if not self._access_key_id:
            raise SigningError(
                "Access key ID is required",
                SigningErrorCodes.INVALID_CONFIG,
                {"field": "access_key_id"}
            )

        if not self._secret_access_key:
            raise SigningError(
                "Secret access key is required",
                SigningErrorCodes.INVALID_CONFIG,
                {"field": "secret_access_key"}
            )

        return SigningConfig(
            credentials=Credentials(
                access_key_id=self._access_key_id,
                secret_access_key=self._secret_access_key,
            ),
            service=self._service,
            region=self._region,
            timestamp_generator=self._timestamp_generator,
        )


def create_signing_config() -> SigningConfigBuilder:
    """
    Create a new signing configuration builder.

    Returns:
        SigningConfigBuilder: New builder instance
    """
    return SigningConfigBuilder()
