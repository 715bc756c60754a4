#!/usr/bin/env python3
"""
LiveText Python SDK - Request Signing Example

This example demonstrates how to sign Volcengine visual API requests with
HMAC-SHA256, inspect the intermediate strings and send a signed OCR call.
"""

import base64
import os
import sys
import time
from datetime import datetime, timezone

# Add src to path for development
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from livetext_sdk import (
    # Request signing
    create_signing_config,
    HmacSigner,
    SigningRequest,
    HttpMethod,
    SigningError,
    # HTTP integration
    create_signing_session,
    Settings,
    create_client,
    LiveTextSDKError,
)
from livetext_sdk.signing import derive_signing_key, verify_signature


def basic_signing_example():
    """Demonstrate basic request signing workflow"""
    print("=== Basic Request Signing Example ===")

    # 1. Create signing configuration
    print("1. Creating signing configuration...")
    config = (create_signing_config()
              .access_key_id("AKID")
              .secret_access_key("SECRET")
              .service("cv")
              .region("cn-north-1")
              .build())

    print(f"   Access key ID: {config.credentials.access_key_id}")
    print(f"   Scope: {config.region}/{config.service}")

    # 2. Create a sample request
    print("\n2. Creating sample OCR request...")
    request = SigningRequest(
        method=HttpMethod.POST,
        host="example.com",
        path="/",
        query={"Action": "OCRPdf", "Version": "2021-08-23"},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        body="image_base64=abc&file_type=image&version=v3",
    )

    print(f"   Method: {request.method.value}")
    print(f"   Target: {request.host}{request.path}")
    print(f"   Body length: {len(request.body)} bytes")

    # 3. Sign the request at a fixed time so the output is reproducible
    print("\n3. Signing the request...")
    signer = HmacSigner(config)

    start_time = time.perf_counter()
    result = signer.sign_request(request, datetime(2024, 1, 1, tzinfo=timezone.utc))
    end_time = time.perf_counter()

    print(f"   Signing completed in {(end_time - start_time) * 1000:.2f}ms")

    # 4. Display results
    print("\n4. Headers to attach:")
    for name, value in result.headers.items():
        print(f"   {name}: {value}")

    print("\n5. Canonical request that was hashed:")
    print("   " + "\n   ".join(result.canonical_request.split('\n')))

    print("\n6. String to sign:")
    print("   " + "\n   ".join(result.string_to_sign.split('\n')))

    return result


def scope_binding_example(result):
    """Show that a signature only verifies under the key for its own scope"""
    print("\n\n=== Scope Binding Example ===")

    same_day = derive_signing_key("SECRET", "20240101", "cn-north-1", "cv")
    next_day = derive_signing_key("SECRET", "20240102", "cn-north-1", "cv")
    other_region = derive_signing_key("SECRET", "20240101", "cn-beijing", "cv")

    for label, key in [("same scope", same_day), ("next day", next_day), ("other region", other_region)]:
        valid = verify_signature(key, result.string_to_sign, result.signature)
        print(f"   {label:12s} {key.scope:35s} valid={valid}")


def error_handling_example():
    """Demonstrate signing errors"""
    print("\n\n=== Error Handling Example ===")

    config = create_signing_config().access_key_id("AKID").secret_access_key("SECRET").build()
    signer = HmacSigner(config)

    request = SigningRequest(
        method="POST",
        host="example.com",
        path="/",
        body="no content type",
    )

    try:
        signer.sign_request(request)
    except SigningError as e:
        print(f"   Signing refused: {e.message} ({e.code})")


def live_ocr_example(image_path):
    """Send a signed OCR request using credentials from the environment"""
    print("\n\n=== Live OCR Example ===")

    settings = Settings.from_env()
    if not settings.has_credentials:
        print("   Set VOL_ACCESS_KEY_ID and VOL_SECRET_ACCESS_KEY to run this example")
        return

    with open(image_path, 'rb') as f:
        image_base64 = base64.b64encode(f.read()).decode('ascii')

    try:
        with create_client(settings) as client:
            response = client.ocr_image(image_base64)
        print(f"   Response keys: {sorted(response)}")
    except LiveTextSDKError as e:
        print(f"   OCR failed: {e} ({e.error_code})")


def session_example():
    """Show what a signing session would send"""
    print("\n\n=== Signing Session Example ===")

    config = create_signing_config().access_key_id("AKID").secret_access_key("SECRET").build()
    with create_signing_session(config) as session:
        prepared = session.prepare(
            "POST",
            "visual.volcengineapi.com",
            "/",
            query={"Version": "2021-08-23", "Action": "OCRPdf"},
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            body="image_base64=abc&file_type=image&version=v3",
        )

    print(f"   URL: {prepared['url']}")
    print(f"   Headers: {sorted(prepared['headers'])}")


if __name__ == '__main__':
    signed = basic_signing_example()
    scope_binding_example(signed)
    error_handling_example()
    session_example()

    if len(sys.argv) > 1:
        live_ocr_example(sys.argv[1])
