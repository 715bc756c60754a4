"""
Test suite for HMAC-SHA256 request signing functionality

This module tests canonical request construction, signing key derivation,
signature assembly and signer configuration.
"""

import hashlib
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from livetext_sdk.signing import (
    # Core signing
    HmacSigner,
    create_signer,
    sign_request,
    build_string_to_sign,
    build_authorization_header,
    # Canonical request
    SIGNED_HEADERS,
    build_canonical_form,
    build_canonical_request,
    canonical_query_string,
    # Key derivation
    SCOPE_TERMINATOR,
    build_credential_scope,
    derive_signing_key,
    compute_signature,
    verify_signature,
    # Types
    SigningKey,
    SigningRequest,
    Credentials,
    SigningError,
    SigningErrorCodes,
    HttpMethod,
    # Configuration
    SigningConfig,
    create_signing_config,
    # Utilities
    sha256_hex,
    hmac_sha256,
    uri_encode,
    format_x_date,
    parse_x_date,
)

EMPTY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"

GOLDEN_BODY = "image_base64=abc&file_type=image&version=v3"
GOLDEN_BODY_SHA256 = "723e60e3f484c191738e1d779825dde1b6ed43f8fd33cf2b195440d5089ddc8c"
GOLDEN_CANONICAL_SHA256 = "71f719d6da8380ca82fd138873e54eaac30c33e377a259d9d3680abcb75fc672"
GOLDEN_K_DATE = "f580047a88a04eb08e7781dca0f028fc99b4758647a50f3f91a37191628a0bbd"
GOLDEN_K_SIGNING = "27f488370a285c624a0dbe6ecfa75300fc84c81d0b1582d91936f3bf75c38457"
GOLDEN_SIGNATURE = "0af2cb19284b23b0af37aa9b125327ec62418fcb871a461232f42e5dad2de0db"
GOLDEN_AUTHORIZATION = (
    "HMAC-SHA256 Credential=AKID/20240101/cn-north-1/cv/request, "
    "SignedHeaders=host;x-date;x-content-sha256;content-type, "
    f"Signature={GOLDEN_SIGNATURE}"
)
GOLDEN_TIME = datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


def make_request(**overrides) -> SigningRequest:
    fields = dict(
        method="POST",
        host="example.com",
        path="/",
        query={"Action": "OCRPdf", "Version": "2021-08-23"},
        headers={"content-type": "application/x-www-form-urlencoded"},
        body=GOLDEN_BODY,
    )
    fields.update(overrides)
    return SigningRequest(**fields)


def make_config(**overrides) -> SigningConfig:
    fields = dict(
        credentials=Credentials("AKID", "SECRET"),
        service="cv",
        region="cn-north-1",
    )
    fields.update(overrides)
    return SigningConfig(**fields)


class TestSigningUtilities:
    """Test hashing, encoding and timestamp helpers"""

    def test_empty_body_hash(self):
        assert sha256_hex("") == EMPTY_SHA256
        assert sha256_hex(b"") == EMPTY_SHA256
        assert sha256_hex(None) == EMPTY_SHA256

    def test_body_hash_matches_bytes(self):
        assert sha256_hex(GOLDEN_BODY) == GOLDEN_BODY_SHA256
        assert sha256_hex(GOLDEN_BODY.encode("utf-8")) == GOLDEN_BODY_SHA256

    def test_unicode_body_hashed_as_utf8(self):
        text = "识别文字"
        assert sha256_hex(text) == hashlib.sha256(text.encode("utf-8")).hexdigest()

    def test_invalid_body_type(self):
        with pytest.raises(SigningError):
            sha256_hex(123)

    def test_hmac_sha256_rfc4231_vector(self):
        """RFC 4231 test case 2"""
        digest = hmac_sha256(b"Jefe", "what do ya want for nothing?")
        assert digest.hex() == "5bdcc146bf60754e6a042426089575c75a003f089d2739839dec58b964ec3843"

    def test_uri_encode_keeps_unreserved(self):
        assert uri_encode("AZaz09-_.~") == "AZaz09-_.~"

    def test_uri_encode_escapes_reserved(self):
        assert uri_encode("a b") == "a%20b"
        assert uri_encode("a+b/c=d&e") == "a%2Bb%2Fc%3Dd%26e"
        assert uri_encode("*!'()") == "%2A%21%27%28%29"
        assert uri_encode("文") == "%E6%96%87"

    def test_format_x_date(self):
        assert format_x_date(GOLDEN_TIME) == "20240101T000000Z"

        # Sub-second precision is dropped
        assert format_x_date(datetime(2024, 5, 6, 7, 8, 9, 999999, tzinfo=timezone.utc)) == "20240506T070809Z"

        # Offsets are converted to UTC
        shanghai = timezone(timedelta(hours=8))
        assert format_x_date(datetime(2024, 1, 1, 8, 0, 0, tzinfo=shanghai)) == "20240101T000000Z"
        assert format_x_date(datetime(2024, 1, 1, 7, 59, 59, tzinfo=shanghai)) == "20231231T235959Z"

        # Naive datetimes are treated as UTC, numbers as epoch seconds
        assert format_x_date(datetime(2024, 1, 1)) == "20240101T000000Z"
        assert format_x_date(1704067200) == "20240101T000000Z"

    def test_format_x_date_rejects_garbage(self):
        with pytest.raises(SigningError) as exc_info:
            format_x_date("yesterday")
        assert exc_info.value.code == SigningErrorCodes.INVALID_TIMESTAMP

        with pytest.raises(SigningError):
            format_x_date(True)

    def test_parse_x_date(self):
        assert parse_x_date("20240101T000000Z") == GOLDEN_TIME

        for invalid in ["2024-01-01T00:00:00Z", "20240101T000000", "20241301T000000Z", ""]:
            with pytest.raises(SigningError):
                parse_x_date(invalid)


class TestSigningRequest:
    """Test request validation at the boundary"""

    def test_method_coercion(self):
        request = make_request(method="post")
        assert request.method == HttpMethod.POST

    def test_invalid_method(self):
        with pytest.raises(SigningError) as exc_info:
            make_request(method="")
        assert exc_info.value.code == SigningErrorCodes.INVALID_METHOD

        with pytest.raises(SigningError):
            make_request(method="FETCH")

    def test_invalid_path(self):
        with pytest.raises(SigningError) as exc_info:
            make_request(path="")
        assert exc_info.value.code == SigningErrorCodes.INVALID_PATH

        with pytest.raises(SigningError):
            make_request(path="relative/path")

    def test_invalid_host(self):
        with pytest.raises(SigningError) as exc_info:
            make_request(host="")
        assert exc_info.value.code == SigningErrorCodes.INVALID_HOST

    def test_headers_normalized(self):
        request = make_request(headers={"Content-Type": "application/json"})
        assert request.headers == {"content-type": "application/json"}
        assert request.content_type == "application/json"

    def test_case_folded_duplicate_headers_rejected(self):
        with pytest.raises(SigningError) as exc_info:
            make_request(headers={
                "Content-Type": "application/json",
                "content-type": "application/x-www-form-urlencoded",
            })
        assert exc_info.value.code == SigningErrorCodes.INVALID_HEADERS
        assert exc_info.value.details == {"header": "content-type"}

    def test_invalid_body(self):
        with pytest.raises(SigningError) as exc_info:
            make_request(body={"not": "serialized"})
        assert exc_info.value.code == SigningErrorCodes.INVALID_BODY

    def test_credentials_required(self):
        with pytest.raises(SigningError) as exc_info:
            Credentials("", "SECRET")
        assert exc_info.value.code == SigningErrorCodes.INVALID_CREDENTIALS

        with pytest.raises(SigningError):
            Credentials("AKID", "")

    def test_secret_not_in_repr(self):
        assert "SECRET" not in repr(Credentials("AKID", "SECRET"))


class TestCanonicalRequest:
    """Test canonical request construction"""

    def test_golden_canonical_request(self):
        canonical = build_canonical_request(make_request(), "20240101T000000Z")

        assert canonical == "\n".join([
            "POST",
            "/",
            "Action=OCRPdf&Version=2021-08-23",
            "host:example.com",
            "x-date:20240101T000000Z",
            f"x-content-sha256:{GOLDEN_BODY_SHA256}",
            "content-type:application/x-www-form-urlencoded",
            "",
            "host;x-date;x-content-sha256;content-type",
            GOLDEN_BODY_SHA256,
        ])
        assert sha256_hex(canonical) == GOLDEN_CANONICAL_SHA256

    def test_canonical_form_fields(self):
        form = build_canonical_form(make_request(), "20240101T000000Z")

        assert form.method == "POST"
        assert form.path == "/"
        assert form.canonical_query == "Action=OCRPdf&Version=2021-08-23"
        assert form.canonical_headers.endswith("\n")
        assert form.signed_headers == SIGNED_HEADERS
        assert form.content_hash == GOLDEN_BODY_SHA256

    def test_query_order_independent(self):
        assert canonical_query_string({"B": 2, "A": 1}) == "A=1&B=2"
        assert canonical_query_string({"A": 1, "B": 2}) == "A=1&B=2"

    def test_query_sorted_by_byte_value(self):
        # Uppercase sorts before lowercase
        assert canonical_query_string({"b": "1", "C": "2", "a": "3"}) == "C=2&a=3&b=1"

    def test_query_encoding(self):
        assert canonical_query_string({"q": "a b", "k~": "x/y"}) == "k~=x%2Fy&q=a%20b"

    def test_query_empty_values(self):
        assert canonical_query_string({"flag": None, "empty": ""}) == "empty=&flag="

    def test_query_empty(self):
        assert canonical_query_string({}) == ""

    def test_query_rejects_colliding_names(self):
        with pytest.raises(SigningError) as exc_info:
            canonical_query_string({1: "a", "1": "b"})
        assert exc_info.value.code == SigningErrorCodes.INVALID_QUERY

    def test_query_rejects_lists(self):
        with pytest.raises(SigningError):
            canonical_query_string({"ids": ["1", "2"]})

    def test_header_order_fixed_regardless_of_input(self):
        request_a = make_request(headers={
            "X-Custom": "ignored",
            "Content-Type": "application/json",
            "Host": "other.example.com",
        })
        request_b = make_request(headers={"content-type": "application/json"})

        form_a = build_canonical_form(request_a, "20240101T000000Z")
        form_b = build_canonical_form(request_b, "20240101T000000Z")

        assert form_a.canonical_headers == form_b.canonical_headers
        names = [line.split(":", 1)[0] for line in form_a.canonical_headers.splitlines()]
        assert names == ["host", "x-date", "x-content-sha256", "content-type"]
        assert form_a.signed_headers == "host;x-date;x-content-sha256;content-type"
        # Host comes from the request target, not the header map
        assert "host:example.com\n" in form_a.canonical_headers

    def test_path_used_verbatim(self):
        form = build_canonical_form(make_request(path="/api/v1/"), "20240101T000000Z")
        assert form.path == "/api/v1/"

        form = build_canonical_form(make_request(path="/a//b/../c"), "20240101T000000Z")
        assert form.path == "/a//b/../c"

    def test_missing_content_type_rejected(self):
        with pytest.raises(SigningError) as exc_info:
            build_canonical_request(make_request(headers={}), "20240101T000000Z")
        assert exc_info.value.code == SigningErrorCodes.MISSING_REQUIRED_HEADER

    def test_empty_content_type_rejected(self):
        with pytest.raises(SigningError):
            build_canonical_request(make_request(headers={"content-type": ""}), "20240101T000000Z")

    def test_no_undefined_fallback(self):
        request = make_request(headers={"accept": "application/json"})
        with pytest.raises(SigningError):
            build_canonical_request(request, "20240101T000000Z")


class TestKeyDerivation:
    """Test the four-stage signing key chain"""

    def test_golden_chain(self):
        key = derive_signing_key("SECRET", "20240101", "cn-north-1", "cv")

        assert key.k_date.hex() == GOLDEN_K_DATE
        assert key.k_signing.hex() == GOLDEN_K_SIGNING
        assert len(key.k_region) == 32
        assert len(key.k_service) == 32

    def test_chain_uses_raw_bytes(self):
        key = derive_signing_key("SECRET", "20240101", "cn-north-1", "cv")

        assert key.k_region == hmac_sha256(key.k_date, "cn-north-1")
        assert key.k_service == hmac_sha256(key.k_region, "cv")
        assert key.k_signing == hmac_sha256(key.k_service, "request")

    def test_scope(self):
        key = derive_signing_key("SECRET", "20240101", "cn-north-1", "cv")
        assert key.scope == "20240101/cn-north-1/cv/request"
        assert build_credential_scope("20240101", "cn-north-1", "cv") == key.scope

    def test_scope_of_directly_built_key(self):
        key = SigningKey(
            date_stamp="20240102",
            region="cn-beijing",
            service="imagex",
            k_date=b"d",
            k_region=b"r",
            k_service=b"s",
            k_signing=b"k",
        )
        assert key.scope == build_credential_scope("20240102", "cn-beijing", "imagex")
        assert key.scope.endswith("/" + SCOPE_TERMINATOR)

    def test_key_material_not_in_repr(self):
        key = derive_signing_key("SECRET", "20240101", "cn-north-1", "cv")
        text = repr(key)
        assert GOLDEN_K_SIGNING not in text
        assert "k_signing" not in text

    def test_scope_binding(self):
        """A key derived for one day cannot verify a string to sign for another"""
        key_day1 = derive_signing_key("SECRET", "20240101", "cn-north-1", "cv")
        key_day2 = derive_signing_key("SECRET", "20240102", "cn-north-1", "cv")

        string_to_sign = build_string_to_sign(
            "20240102T000000Z",
            build_credential_scope("20240102", "cn-north-1", "cv"),
            "canonical",
        )
        signature = compute_signature(key_day2, string_to_sign)

        assert verify_signature(key_day2, string_to_sign, signature)
        assert not verify_signature(key_day1, string_to_sign, signature)

    def test_region_and_service_binding(self):
        base = derive_signing_key("SECRET", "20240101", "cn-north-1", "cv")
        other_region = derive_signing_key("SECRET", "20240101", "cn-beijing", "cv")
        other_service = derive_signing_key("SECRET", "20240101", "cn-north-1", "imagex")

        assert base.k_signing != other_region.k_signing
        assert base.k_signing != other_service.k_signing

        signature = compute_signature(base, "payload")
        assert not verify_signature(other_region, "payload", signature)
        assert not verify_signature(other_service, "payload", signature)

    def test_verify_rejects_malformed_signature(self):
        key = derive_signing_key("SECRET", "20240101", "cn-north-1", "cv")
        assert not verify_signature(key, "payload", "not-hex")
        assert not verify_signature(key, "payload", "")

    def test_invalid_scope(self):
        with pytest.raises(SigningError) as exc_info:
            derive_signing_key("SECRET", "2024-01-01", "cn-north-1", "cv")
        assert exc_info.value.code == SigningErrorCodes.INVALID_SCOPE

        with pytest.raises(SigningError):
            derive_signing_key("SECRET", "20240101", "", "cv")

        with pytest.raises(SigningError):
            derive_signing_key("SECRET", "20240101", "cn-north-1", "")

        with pytest.raises(SigningError):
            derive_signing_key("", "20240101", "cn-north-1", "cv")


class TestHmacSigner:
    """Test the signature assembler end to end"""

    def setup_method(self):
        """Set up test fixtures"""
        self.config = make_config()
        self.signer = HmacSigner(self.config)

    def teardown_method(self):
        """Clean up test fixtures"""
        self.config = None
        self.signer = None

    def test_golden_authorization(self):
        result = self.signer.sign_request(make_request(), GOLDEN_TIME)

        assert result.authorization == GOLDEN_AUTHORIZATION
        assert result.signature == GOLDEN_SIGNATURE
        assert result.x_date == "20240101T000000Z"
        assert result.x_content_sha256 == GOLDEN_BODY_SHA256
        assert result.credential_scope == "20240101/cn-north-1/cv/request"

    def test_golden_string_to_sign(self):
        result = self.signer.sign_request(make_request(), GOLDEN_TIME)

        assert result.string_to_sign == "\n".join([
            "HMAC-SHA256",
            "20240101T000000Z",
            "20240101/cn-north-1/cv/request",
            GOLDEN_CANONICAL_SHA256,
        ])

    def test_result_headers(self):
        result = self.signer.sign_request(make_request(), GOLDEN_TIME)

        assert result.headers == {
            "Host": "example.com",
            "X-Date": "20240101T000000Z",
            "X-Content-Sha256": GOLDEN_BODY_SHA256,
            "Authorization": GOLDEN_AUTHORIZATION,
        }
        assert result.signed_header_names == ["host", "x-date", "x-content-sha256", "content-type"]

    def test_equivalent_timestamps_give_same_signature(self):
        shanghai = timezone(timedelta(hours=8))
        for timestamp in [
            1704067200,
            datetime(2024, 1, 1),
            datetime(2024, 1, 1, 8, 0, 0, tzinfo=shanghai),
            datetime(2024, 1, 1, 0, 0, 0, 500000, tzinfo=timezone.utc),
        ]:
            assert self.signer.sign_request(make_request(), timestamp).authorization == GOLDEN_AUTHORIZATION

    def test_determinism(self):
        first = self.signer.sign_request(make_request(), GOLDEN_TIME)
        second = self.signer.sign_request(make_request(), GOLDEN_TIME)
        assert first == second

    def test_body_tamper_changes_signature(self):
        original = self.signer.sign_request(make_request(), GOLDEN_TIME)
        tampered = self.signer.sign_request(
            make_request(body=GOLDEN_BODY.replace("abc", "abd")),
            GOLDEN_TIME
        )

        assert tampered.x_content_sha256 != original.x_content_sha256
        assert tampered.signature != original.signature

    def test_path_method_query_tamper_changes_signature(self):
        original = self.signer.sign_request(make_request(), GOLDEN_TIME).signature

        variants = [
            make_request(path="/ocr"),
            make_request(method="PUT"),
            make_request(query={"Action": "OCRNormal", "Version": "2021-08-23"}),
            make_request(query={"Action": "OCRPdf", "Version": "2021-08-23", "Extra": ""}),
            make_request(headers={"content-type": "application/json"}),
            make_request(host="visual.volcengineapi.com"),
        ]
        signatures = {self.signer.sign_request(request, GOLDEN_TIME).signature for request in variants}

        assert original not in signatures
        assert len(signatures) == len(variants)

    def test_query_order_does_not_change_signature(self):
        forward = make_request(query={"Action": "OCRPdf", "Version": "2021-08-23"})
        reverse = make_request(query={"Version": "2021-08-23", "Action": "OCRPdf"})

        assert (self.signer.sign_request(forward, GOLDEN_TIME).authorization
                == self.signer.sign_request(reverse, GOLDEN_TIME).authorization)

    def test_header_order_does_not_change_signature(self):
        a = make_request(headers={"Content-Type": "application/x-www-form-urlencoded", "Accept": "*/*"})
        b = make_request(headers={"accept": "*/*", "content-type": "application/x-www-form-urlencoded"})

        assert (self.signer.sign_request(a, GOLDEN_TIME).authorization
                == self.signer.sign_request(b, GOLDEN_TIME).authorization
                == GOLDEN_AUTHORIZATION)

    def test_empty_body(self):
        result = self.signer.sign_request(make_request(body=""), GOLDEN_TIME)
        assert result.x_content_sha256 == EMPTY_SHA256

        result = self.signer.sign_request(make_request(method="GET", body=None), GOLDEN_TIME)
        assert result.x_content_sha256 == EMPTY_SHA256

    def test_credentials_change_signature(self):
        other = HmacSigner(make_config(credentials=Credentials("AKID", "OTHER")))
        assert other.sign_request(make_request(), GOLDEN_TIME).signature != GOLDEN_SIGNATURE

        other_id = HmacSigner(make_config(credentials=Credentials("AKID2", "SECRET")))
        result = other_id.sign_request(make_request(), GOLDEN_TIME)
        # Access key ID is not part of the signed material, only the header
        assert result.signature == GOLDEN_SIGNATURE
        assert result.authorization.startswith("HMAC-SHA256 Credential=AKID2/")

    def test_clock_read_once(self):
        clock = Mock(return_value=datetime(2024, 1, 1, 23, 59, 59, 999999, tzinfo=timezone.utc))
        signer = HmacSigner(make_config(timestamp_generator=clock))

        result = signer.sign_request(make_request())

        assert clock.call_count == 1
        assert result.x_date == "20240101T235959Z"
        assert result.credential_scope.startswith("20240101/")

    def test_explicit_timestamp_skips_clock(self):
        clock = Mock(return_value=GOLDEN_TIME)
        signer = HmacSigner(make_config(timestamp_generator=clock))

        signer.sign_request(make_request(), datetime(2025, 6, 1, tzinfo=timezone.utc))
        clock.assert_not_called()

    def test_default_clock_produces_basic_format(self):
        result = self.signer.sign_request(make_request())
        assert parse_x_date(result.x_date).tzinfo == timezone.utc
        assert result.credential_scope.startswith(result.x_date[:8] + "/")

    def test_missing_content_type_fails_before_signing(self):
        with pytest.raises(SigningError) as exc_info:
            self.signer.sign_request(make_request(headers={}), GOLDEN_TIME)
        assert exc_info.value.code == SigningErrorCodes.MISSING_REQUIRED_HEADER

    def test_non_utf8_body_propagates(self):
        with pytest.raises(UnicodeEncodeError):
            self.signer.sign_request(make_request(body="\ud800"), GOLDEN_TIME)

    def test_module_level_helpers(self):
        assert sign_request(make_request(), self.config, GOLDEN_TIME).authorization == GOLDEN_AUTHORIZATION
        assert isinstance(create_signer(self.config), HmacSigner)

    def test_build_authorization_header_format(self):
        value = build_authorization_header("AK", "20240101/r/s/request", "host;x-date", "abc")
        assert value == "HMAC-SHA256 Credential=AK/20240101/r/s/request, SignedHeaders=host;x-date, Signature=abc"


class TestSigningConfiguration:
    """Test signing configuration and builder"""

    def test_builder(self):
        clock = Mock(return_value=GOLDEN_TIME)
        config = (create_signing_config()
                  .access_key_id("AKID")
                  .secret_access_key("SECRET")
                  .service("cv")
                  .region("cn-north-1")
                  .timestamp_generator(clock)
                  .build())

        assert config.credentials.access_key_id == "AKID"
        assert config.service == "cv"
        assert config.region == "cn-north-1"
        assert HmacSigner(config).sign_request(make_request()).authorization == GOLDEN_AUTHORIZATION

    def test_builder_defaults(self):
        config = create_signing_config().credentials(Credentials("AKID", "SECRET")).build()
        assert config.service == "cv"
        assert config.region == "cn-north-1"

    def test_builder_requires_credentials(self):
        with pytest.raises(SigningError) as exc_info:
            create_signing_config().secret_access_key("SECRET").build()
        assert exc_info.value.code == SigningErrorCodes.INVALID_CONFIG

        with pytest.raises(SigningError):
            create_signing_config().access_key_id("AKID").build()

    def test_config_validation(self):
        with pytest.raises(SigningError):
            make_config(service="")

        with pytest.raises(SigningError):
            make_config(region="")

        with pytest.raises(SigningError):
            make_config(region="cn/north")

        with pytest.raises(SigningError):
            make_config(credentials=("AKID", "SECRET"))

        with pytest.raises(SigningError):
            make_config(timestamp_generator="now")

    def test_signing_error_formatting(self):
        error = SigningError("Bad", "CODE", {"field": "x"})
        assert str(error) == "Bad (code: CODE, details: {'field': 'x'})"
        assert str(SigningError("Bad", "CODE")) == "Bad (code: CODE)"
