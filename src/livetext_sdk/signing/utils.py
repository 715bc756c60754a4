"""
Utility functions for request signing

This module provides the hashing and HMAC primitives, timestamp handling and
percent-encoding used by the HMAC-SHA256 request signer.
"""

import time
import hashlib
import re
from datetime import datetime, timezone
from typing import Union
from urllib.parse import quote

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import hmac as crypto_hmac

from .types import (
    SigningError,
    SigningErrorCodes,
    RequestBody,
    Timestamp,
)

# ISO 8601 basic format, always UTC
X_DATE_FORMAT = '%Y%m%dT%H%M%SZ'
X_DATE_PATTERN = re.compile(r'^\d{8}T\d{6}Z$')

# RFC 3986 unreserved characters besides alphanumerics
UNRESERVED_CHARACTERS = '-_.~'


def _to_bytes(data: Union[str, bytes]) -> bytes:
    if isinstance(data, bytes):
        return data
    return data.encode('utf-8')


def sha256_hex(content: RequestBody) -> str:
    """
    Calculate the lowercase hex SHA-256 digest of a request body.

    Args:
        content: Request body content (string, bytes, or None)

    Returns:
        str: Hex digest; None and empty content hash the empty string
    """
    if content is None:
        content = b""
    elif not isinstance(content, (str, bytes)):
        raise SigningError(
            f"Content must be string, bytes, or None, got {type(content)}",
            SigningErrorCodes.INVALID_BODY,
            {"content_type": str(type(content))}
        )

    return hashlib.sha256(_to_bytes(content)).hexdigest()


def hmac_sha256(key: Union[str, bytes], data: Union[str, bytes]) -> bytes:
    """
    Compute a raw HMAC-SHA256 digest.

    Args:
        key: HMAC key; strings are UTF-8 encoded
        data: Message; strings are UTF-8 encoded

    Returns:
        bytes: 32-byte digest
    """
    h = crypto_hmac.HMAC(_to_bytes(key), hashes.SHA256())
    h.update(_to_bytes(data))
    return h.finalize()


def to_hex(data: bytes) -> str:
    """
    Convert bytes to lowercase hex string.

    Args:
        data: Bytes to convert

    Returns:
        str: Lowercase hex string
    """
    return data.hex().lower()


def uri_encode(value: str) -> str:
    """Percent-encode everything except RFC 3986 unreserved characters."""
    return quote(value, safe=UNRESERVED_CHARACTERS)


def generate_timestamp() -> datetime:
    """
    Read the current UTC time.

    Returns:
        datetime: Timezone-aware UTC datetime
    """
    return datetime.now(timezone.utc)


def resolve_timestamp(timestamp: Timestamp) -> datetime:
    """
    Normalize a caller-supplied timestamp to a whole-second UTC datetime.

    Naive datetimes are taken to be UTC already; numbers are Unix epoch seconds.

    Raises:
        SigningError: If the value cannot be interpreted as a timestamp
    """
    if timestamp is None:
        timestamp = generate_timestamp()

    if isinstance(timestamp, bool):
        raise SigningError(
            f"Invalid timestamp: {timestamp}",
            SigningErrorCodes.INVALID_TIMESTAMP,
            {"timestamp": timestamp}
        )

    if isinstance(timestamp, (int, float)):
        try:
            timestamp = datetime.fromtimestamp(timestamp, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise SigningError(
                f"Invalid timestamp: {timestamp}",
                SigningErrorCodes.INVALID_TIMESTAMP,
                {"timestamp": timestamp, "original_error": str(e)}
            )

    if not isinstance(timestamp, datetime):
        raise SigningError(
            f"Timestamp must be a datetime or epoch seconds, got {type(timestamp)}",
            SigningErrorCodes.INVALID_TIMESTAMP,
            {"timestamp_type": str(type(timestamp))}
        )

    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    else:
        timestamp = timestamp.astimezone(timezone.utc)

    return timestamp.replace(microsecond=0)


def format_x_date(timestamp: Timestamp) -> str:
    """
    Format a timestamp as the X-Date header value (YYYYMMDDTHHMMSSZ).

    Args:
        timestamp: Datetime or epoch seconds; converted to UTC first

    Returns:
        str: X-Date value
    """
    return resolve_timestamp(timestamp).strftime(X_DATE_FORMAT)


def parse_x_date(value: str) -> datetime:
    """
    Parse an X-Date value back into a UTC datetime.

    Raises:
        SigningError: If the value is not in YYYYMMDDTHHMMSSZ format
    """
    if not isinstance(value, str) or not X_DATE_PATTERN.match(value):
        raise SigningError(
            f"Invalid X-Date value: {value}",
            SigningErrorCodes.INVALID_TIMESTAMP,
            {"x_date": value}
        )

    try:
        return datetime.strptime(value, X_DATE_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError as e:
        raise SigningError(
            f"Invalid X-Date value: {value}",
            SigningErrorCodes.INVALID_TIMESTAMP,
            {"x_date": value, "original_error": str(e)}
        )


def normalize_header_name(name: str) -> str:
    """
    Normalize header name to lowercase for consistent processing.

    Args:
        name: Header name to normalize

    Returns:
        str: Lowercase header name
    """
    return name.lower().strip()


class PerformanceTimer:
    """Simple performance timer for monitoring signing operations."""

    def __init__(self):
        self.start_time = time.perf_counter()

    def elapsed_ms(self) -> float:
        """Get elapsed time in milliseconds."""
        return (time.perf_counter() - self.start_time) * 1000
