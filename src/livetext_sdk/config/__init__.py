"""
Configuration module for LiveText Python SDK

Settings loading from the environment and JSON files.
"""

from .settings import (
    Settings,
    ENVIRONMENT_VARIABLES,
    DEFAULT_API_HOST,
    DEFAULT_OCR_ACTION,
    DEFAULT_OCR_VERSION,
    load_settings,
    configure_logging,
)

__all__ = [
    'Settings',
    'ENVIRONMENT_VARIABLES',
    'DEFAULT_API_HOST',
    'DEFAULT_OCR_ACTION',
    'DEFAULT_OCR_VERSION',
    'load_settings',
    'configure_logging',
]
