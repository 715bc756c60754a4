"""
Settings management for the LiveText proxy and client

Settings are loaded from the process environment or from a JSON file at the
composition root (CLI, proxy server) and passed down explicitly. This is the
only module that reads credentials from the environment.
"""

import json
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from ..exceptions import ConfigurationError
from ..signing.signing_config import DEFAULT_REGION, DEFAULT_SERVICE, SigningConfig
from ..signing.types import Credentials

DEFAULT_API_HOST = "visual.volcengineapi.com"
DEFAULT_OCR_ACTION = "OCRPdf"
DEFAULT_OCR_VERSION = "2021-08-23"

# Environment variable -> settings field
ENVIRONMENT_VARIABLES = {
    'VOL_ACCESS_KEY_ID': 'access_key_id',
    'VOL_SECRET_ACCESS_KEY': 'secret_access_key',
    'LIVETEXT_API_HOST': 'api_host',
    'LIVETEXT_SERVICE': 'service',
    'LIVETEXT_REGION': 'region',
    'LIVETEXT_TIMEOUT': 'timeout',
    'LIVETEXT_VERIFY_SSL': 'verify_ssl',
    'LIVETEXT_LOG_LEVEL': 'log_level',
    'LIVETEXT_SERVICE_NAME': 'service_name',
}

_TRUE_VALUES = ('1', 'true', 'yes', 'on')
_FALSE_VALUES = ('0', 'false', 'no', 'off')


@dataclass
class Settings:
    """
    Proxy and client settings

    Attributes:
        access_key_id: Provider access key ID
        secret_access_key: Provider secret key
        api_host: Visual API host
        service: Service identifier for the credential scope
        region: Region identifier for the credential scope
        ocr_action: Action query parameter of the OCR call
        ocr_version: Version query parameter of the OCR call
        timeout: Outbound request timeout in seconds
        verify_ssl: Whether to verify SSL certificates
        log_level: Root logging level name
        service_name: Name reported by the proxy banner endpoint
    """
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = field(default=None, repr=False)
    api_host: str = DEFAULT_API_HOST
    service: str = DEFAULT_SERVICE
    region: str = DEFAULT_REGION
    ocr_action: str = DEFAULT_OCR_ACTION
    ocr_version: str = DEFAULT_OCR_VERSION
    timeout: float = 30.0
    verify_ssl: bool = True
    log_level: str = "INFO"
    service_name: str = "LiveText"

    def __post_init__(self):
        """Validate settings"""
        if not self.api_host:
            raise ConfigurationError("API host cannot be empty", "INVALID_SETTINGS")

        if not self.service or not self.region:
            raise ConfigurationError("Service and region cannot be empty", "INVALID_SETTINGS")

        try:
            self.timeout = float(self.timeout)
        except (TypeError, ValueError):
            raise ConfigurationError(f"Timeout must be a number: {self.timeout}", "INVALID_SETTINGS")

        if self.timeout <= 0:
            raise ConfigurationError("Timeout must be positive", "INVALID_SETTINGS")

        if isinstance(self.verify_ssl, str):
            self.verify_ssl = _parse_bool(self.verify_ssl, 'verify_ssl')

        if logging.getLevelName(str(self.log_level).upper()) not in _known_levels():
            raise ConfigurationError(f"Unknown log level: {self.log_level}", "INVALID_SETTINGS")
        self.log_level = str(self.log_level).upper()

    @property
    def has_credentials(self) -> bool:
        return bool(self.access_key_id and self.secret_access_key)

    def to_credentials(self) -> Credentials:
        """
        Build the credentials value passed to the signer.

        Raises:
            ConfigurationError: If either key is missing
        """
        if not self.has_credentials:
            raise ConfigurationError(
                "Missing Volcengine credentials",
                "MISSING_CREDENTIALS",
                {"required": ['VOL_ACCESS_KEY_ID', 'VOL_SECRET_ACCESS_KEY']}
            )
        return Credentials(self.access_key_id, self.secret_access_key)

    def to_signing_config(self) -> SigningConfig:
        """Convert to a signing configuration."""
        return SigningConfig(
            credentials=self.to_credentials(),
            service=self.service,
            region=self.region,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Settings':
        """
        Build settings from a mapping of field names.

        Raises:
            ConfigurationError: On unknown fields or invalid values
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(
                f"Unknown settings: {', '.join(unknown)}",
                "INVALID_FORMAT",
                {"unknown": unknown}
            )
        return cls(**dict(data))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        """
        Load settings from environment variables.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            Settings: Settings with defaults for unset variables
        """
        environ = os.environ if environ is None else environ
        data = {
            field_name: environ[variable]
            for variable, field_name in ENVIRONMENT_VARIABLES.items()
            if environ.get(variable)
        }
        return cls.from_dict(data)

    @classmethod
    def from_json(cls, json_string: str) -> 'Settings':
        """Load settings from JSON string"""
        try:
            data = json.loads(json_string)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Failed to parse settings JSON: {e}", "PARSE_ERROR")

        if not isinstance(data, dict):
            raise ConfigurationError("Settings JSON must be an object", "INVALID_FORMAT")

        return cls.from_dict(data)

    @classmethod
    def from_file(cls, file_path: Union[str, Path]) -> 'Settings':
        """Load settings from JSON file"""
        try:
            path = Path(file_path)
            with open(path, 'r', encoding='utf-8') as f:
                json_string = f.read()
        except OSError as e:
            raise ConfigurationError(f"Failed to read settings file: {e}", "FILE_ERROR")
        return cls.from_json(json_string)

    def merged_with_env(self, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        """Return a copy where set environment variables override file values."""
        environ = os.environ if environ is None else environ
        data: Dict[str, Any] = {f.name: getattr(self, f.name) for f in fields(self)}
        for variable, field_name in ENVIRONMENT_VARIABLES.items():
            if environ.get(variable):
                data[field_name] = environ[variable]
        return Settings.from_dict(data)


def _parse_bool(value: str, name: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Invalid boolean for {name}: {value}", "INVALID_SETTINGS")


def _known_levels():
    return (logging.CRITICAL, logging.ERROR, logging.WARNING, logging.INFO, logging.DEBUG)


def load_settings(file_path: Optional[Union[str, Path]] = None,
                  environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Load settings from an optional JSON file, then apply environment overrides.

    Args:
        file_path: Optional settings file
        environ: Mapping to read instead of os.environ

    Returns:
        Settings: Effective settings
    """
    if file_path is None:
        return Settings.from_env(environ)
    return Settings.from_file(file_path).merged_with_env(environ)


def configure_logging(settings: Settings) -> None:
    """Configure root logging from settings."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
