# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for s3signer/signer.py."""

import base64
import hashlib
import hmac
import logging
from datetime import datetime

import httpx
import pytest

from s3signer.canonical import HeaderEntry, SignInfo
from s3signer.credentials import Credentials, SigningError
from s3signer.signer import (
    RequestSigner,
    UnsupportedMethodError,
    build_string_to_sign,
    canonical_header_block,
    format_authorization,
)
from tests.conftest import EMPTY_MD5, FIXED_DATE, FIXED_NOW


def _expected_signature(secret: str, string_to_sign: str) -> str:
    digest = hmac.new(
        secret.encode(), string_to_sign.encode(), hashlib.sha1
    ).digest()
    return base64.b64encode(digest).decode()


def _info(canonical: tuple[HeaderEntry, ...] = ()) -> SignInfo:
    return SignInfo(
        plain_headers=(
            HeaderEntry("Content-Type", "text/plain"),
            HeaderEntry("Host", "s3.example.com"),
            HeaderEntry("Content-MD5", EMPTY_MD5),
            HeaderEntry("Date", FIXED_DATE),
        ),
        canonical_headers=canonical,
        body_hash=EMPTY_MD5,
    )


class TestStringToSign:
    """Tests for build_string_to_sign and canonical_header_block."""

    def test_without_vendor_headers(self) -> None:
        """No canonical line and no blank line before the resource."""
        result = build_string_to_sign("GET", _info(), "/bucket/key")
        assert result == (
            f"GET\n{EMPTY_MD5}\ntext/plain\n{FIXED_DATE}\n/bucket/key"
        )
        assert "\n\n" not in result

    def test_with_vendor_headers(self) -> None:
        """Vendor lines sit between the date and the resource."""
        info = _info(
            (
                HeaderEntry("x-amz-acl", "Private"),
                HeaderEntry("X-Amz-Meta-A", "1,2"),
            )
        )
        result = build_string_to_sign("PUT", info, "/b/k")
        assert result == (
            f"PUT\n{EMPTY_MD5}\ntext/plain\n{FIXED_DATE}\n"
            "x-amz-acl:private\nx-amz-meta-a:1,2\n/b/k"
        )

    def test_block_empty(self) -> None:
        """An empty group renders as an empty string."""
        assert canonical_header_block(()) == ""

    def test_no_trailing_newline(self) -> None:
        """The string ends with the resource."""
        info = _info((HeaderEntry("x-amz-acl", "private"),))
        assert build_string_to_sign("PUT", info, "/k").endswith(
            "x-amz-acl:private\n/k"
        )

    def test_format_authorization(self) -> None:
        """Scheme, access key and signature are combined."""
        assert format_authorization("AWS", "AK", "c2ln") == "AWS AK:c2ln"


class TestResource:
    """Tests for RequestSigner.resource."""

    def test_no_prefix(self) -> None:
        """The path is used as-is."""
        signer = RequestSigner()
        url = httpx.URL("https://s3.example.com/bucket/key")
        assert signer.resource(url) == "/bucket/key"

    def test_prefix_removed(self) -> None:
        """The endpoint prefix is removed from the path."""
        signer = RequestSigner("/storage")
        url = httpx.URL("https://s3.example.com/storage/bucket/key")
        assert signer.resource(url) == "/bucket/key"

    def test_query_excluded(self) -> None:
        """Query parameters are not part of the resource."""
        signer = RequestSigner()
        url = httpx.URL("https://s3.example.com/bucket?prefix=a")
        assert signer.resource(url) == "/bucket"

    def test_encoded_path_kept(self) -> None:
        """Percent-encoding of the request path is preserved."""
        signer = RequestSigner()
        url = httpx.URL("https://s3.example.com/bucket/my%20key")
        assert signer.resource(url) == "/bucket/my%20key"


class TestSign:
    """Tests for RequestSigner.sign."""

    def test_empty_put_scenario(self, credentials: Credentials) -> None:
        """PUT with no body, no vendor headers and no content type."""
        request = httpx.Request("PUT", "https://s3.example.com/bucket/key")
        authorization, info = RequestSigner().sign(
            request, credentials, FIXED_NOW
        )

        expected_sts = (
            f"PUT\n{EMPTY_MD5}\napplication/octet-stream\n"
            f"{FIXED_DATE}\n/bucket/key"
        )
        signature = _expected_signature(credentials.secret_key, expected_sts)
        assert authorization == f"AWS AKIDEXAMPLE:{signature}"
        assert info.plain_value("Content-Type") == "application/octet-stream"
        assert info.plain_value("Host") == "s3.example.com"
        assert info.plain_value("Content-MD5") == EMPTY_MD5

    def test_duplicate_vendor_header_scenario(
        self, credentials: Credentials
    ) -> None:
        """Duplicate vendor keys are signed as one comma-joined line."""
        request = httpx.Request(
            "PUT",
            "https://s3.example.com/bucket/key",
            headers=[("x-amz-meta-a", "2"), ("x-amz-meta-a", "1")],
        )
        authorization, _ = RequestSigner().sign(
            request, credentials, FIXED_NOW
        )
        expected_sts = (
            f"PUT\n{EMPTY_MD5}\napplication/octet-stream\n"
            f"{FIXED_DATE}\nx-amz-meta-a:1,2\n/bucket/key"
        )
        signature = _expected_signature(credentials.secret_key, expected_sts)
        assert authorization == f"AWS AKIDEXAMPLE:{signature}"

    def test_deterministic_for_fixed_time(
        self, credentials: Credentials
    ) -> None:
        """Same inputs and instant give byte-identical authorization."""
        signer = RequestSigner()

        def make() -> httpx.Request:
            return httpx.Request(
                "PUT",
                "https://s3.example.com/b/k",
                headers={"x-amz-acl": "private"},
                content=b"payload",
            )

        first, _ = signer.sign(make(), credentials, FIXED_NOW)
        second, _ = signer.sign(make(), credentials, FIXED_NOW)
        assert first == second

    def test_time_changes_signature(self, credentials: Credentials) -> None:
        """A different instant gives a different signature."""
        signer = RequestSigner()
        request = httpx.Request("GET", "https://s3.example.com/b/k")
        first, _ = signer.sign(request, credentials, FIXED_NOW)
        second, _ = signer.sign(
            request, credentials, datetime(2023, 3, 12, 0, 0, 1)
        )
        assert first != second

    def test_custom_scheme(self, credentials: Credentials) -> None:
        """The scheme identifier is configurable."""
        signer = RequestSigner(scheme="ECS")
        request = httpx.Request("GET", "https://s3.example.com/b")
        authorization, _ = signer.sign(request, credentials, FIXED_NOW)
        assert authorization.startswith("ECS AKIDEXAMPLE:")

    def test_post_rejected(self, credentials: Credentials) -> None:
        """POST cannot be signed."""
        request = httpx.Request(
            "POST", "https://s3.example.com/b/k", content=b"x"
        )
        with pytest.raises(UnsupportedMethodError) as exc_info:
            RequestSigner().sign(request, credentials, FIXED_NOW)
        assert exc_info.value.method == "POST"
        assert "use PUT" in str(exc_info.value)
        assert isinstance(exc_info.value, SigningError)

    def test_string_to_sign_logged_at_debug(
        self, credentials: Credentials, caplog: pytest.LogCaptureFixture
    ) -> None:
        """The string to sign is logged for debugging."""
        request = httpx.Request("GET", "https://s3.example.com/b/k")
        with caplog.at_level(logging.DEBUG, logger="s3signer.signer"):
            RequestSigner().sign(request, credentials, FIXED_NOW)
        assert any("/b/k" in r.getMessage() for r in caplog.records)


class TestSignRequest:
    """Tests for RequestSigner.sign_request."""

    def test_headers_replaced(self, credentials: Credentials) -> None:
        """Signed copy carries generated, vendor and auth headers."""
        request = httpx.Request(
            "PUT",
            "https://s3.example.com/bucket/key",
            headers={"X-Amz-Acl": "private", "User-Agent": "tests"},
            content=b"data",
        )
        signed = RequestSigner().sign_request(request, credentials, FIXED_NOW)

        assert signed.headers["Date"] == FIXED_DATE
        assert signed.headers["Host"] == "s3.example.com"
        assert signed.headers["Content-Type"] == "application/octet-stream"
        assert signed.headers["x-amz-acl"] == "private"
        assert signed.headers["User-Agent"] == "tests"
        assert signed.headers["Authorization"].startswith("AWS AKIDEXAMPLE:")
        assert len(signed.headers.get_list("Host")) == 1
        assert signed.read() == b"data"

    def test_original_not_mutated(self, credentials: Credentials) -> None:
        """The caller's request keeps its headers."""
        request = httpx.Request("GET", "https://s3.example.com/bucket/key")
        before = list(request.headers.raw)
        RequestSigner().sign_request(request, credentials, FIXED_NOW)
        assert list(request.headers.raw) == before
        assert "Authorization" not in request.headers

    def test_authorization_last(self, credentials: Credentials) -> None:
        """Authorization follows the plain and vendor headers."""
        request = httpx.Request(
            "GET",
            "https://s3.example.com/b",
            headers={"x-amz-meta-z": "1"},
        )
        signed = RequestSigner().sign_request(request, credentials, FIXED_NOW)
        keys = [k.lower() for k, _ in signed.headers.raw]
        assert keys[-1] == b"authorization"
        assert keys[-2] == b"x-amz-meta-z"

    def test_default_time_stamped(self, credentials: Credentials) -> None:
        """Without an explicit time the current GMT time is used."""
        request = httpx.Request("GET", "https://s3.example.com/b")
        signed = RequestSigner().sign_request(request, credentials)
        assert signed.headers["Date"].endswith(" GMT")
