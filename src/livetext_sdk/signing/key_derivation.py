"""
Signing key derivation for HMAC-SHA256 request signing

The long-lived secret key is narrowed through four chained HMAC-SHA256
operations into a key bound to one day, one region and one service. Every
intermediate key is raw bytes; only the final signature is hex-encoded.
"""

import re

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import hmac as crypto_hmac

from .types import SCOPE_TERMINATOR, SigningKey, SigningError, SigningErrorCodes
from .utils import hmac_sha256, to_hex

DATE_STAMP_PATTERN = re.compile(r'^\d{8}$')


def _validate_scope(date_stamp: str, region: str, service: str) -> None:
    if not isinstance(date_stamp, str) or not DATE_STAMP_PATTERN.match(date_stamp):
        raise SigningError(
            f"Date stamp must be YYYYMMDD: {date_stamp}",
            SigningErrorCodes.INVALID_SCOPE,
            {"date_stamp": date_stamp}
        )

    if not region:
        raise SigningError(
            "Region cannot be empty",
            SigningErrorCodes.INVALID_SCOPE,
            {"field": "region"}
        )

    if not service:
        raise SigningError(
            "Service cannot be empty",
            SigningErrorCodes.INVALID_SCOPE,
            {"field": "service"}
        )


def build_credential_scope(date_stamp: str, region: str, service: str) -> str:
    """
    Build the credential scope string.

    Args:
        date_stamp: Date in YYYYMMDD format
        region: Region identifier, e.g. "cn-north-1"
        service: Service identifier, e.g. "cv"

    Returns:
        str: "date/region/service/request"
    """
    return f"{date_stamp}/{region}/{service}/{SCOPE_TERMINATOR}"


def derive_signing_key(
    secret_access_key: str,
    date_stamp: str,
    region: str,
    service: str
) -> SigningKey:
    """
    Derive the request-scoped signing key.

    Args:
        secret_access_key: Long-lived secret key
        date_stamp: Date in YYYYMMDD format
        region: Region identifier
        service: Service identifier

    Returns:
        SigningKey: All four stages of the chain with their scope

    Raises:
        SigningError: If the secret is empty or the scope is malformed
    """
    if not secret_access_key:
        raise SigningError(
            "Secret access key cannot be empty",
            SigningErrorCodes.INVALID_CREDENTIALS,
            {"field": "secret_access_key"}
        )

    _validate_scope(date_stamp, region, service)

    k_date = hmac_sha256(secret_access_key, date_stamp)
    k_region = hmac_sha256(k_date, region)
    k_service = hmac_sha256(k_region, service)
    k_signing = hmac_sha256(k_service, SCOPE_TERMINATOR)

    return SigningKey(
        date_stamp=date_stamp,
        region=region,
        service=service,
        k_date=k_date,
        k_region=k_region,
        k_service=k_service,
        k_signing=k_signing,
    )


def compute_signature(signing_key: SigningKey, string_to_sign: str) -> str:
    """
    Sign a string to sign with a derived key.

    Returns:
        str: Lowercase hex HMAC-SHA256 signature
    """
    return to_hex(hmac_sha256(signing_key.k_signing, string_to_sign))


def verify_signature(signing_key: SigningKey, string_to_sign: str, signature: str) -> bool:
    """
    Check a hex signature against a string to sign in constant time.

    Args:
        signing_key: Derived key to verify with
        string_to_sign: String the signature claims to cover
        signature: Hex-encoded signature

    Returns:
        bool: True if the signature was produced by this key over this string
    """
    try:
        expected = bytes.fromhex(signature)
    except (TypeError, ValueError):
        return False

    h = crypto_hmac.HMAC(signing_key.k_signing, hashes.SHA256())
    h.update(string_to_sign.encode('utf-8'))
    try:
        h.verify(expected)
    except InvalidSignature:
        return False
    return True
