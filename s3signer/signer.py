# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Version 2 request signing (HMAC-SHA1).

The string to sign is the newline-joined sequence::

    <METHOD>
    <base64 MD5 of body>
    <content type>
    <RFC 2822 date>
    <lower(key):lower(value) per vendor header>   (omitted when none)
    <resource path>

and the header sent is ``Authorization: AWS <access_key>:<signature>``
where the signature is base64 HMAC-SHA1 of that string keyed with the
secret key.

POST is refused: this scheme is only implemented for bodies sent with
PUT, so signing a POST would produce a signature the server rejects.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

import httpx

from s3signer.canonical import HeaderEntry, SignInfo, build_sign_info
from s3signer.constants import (
    AUTH_HEADER,
    DEFAULT_CANONICAL_PREFIX,
    DEFAULT_CONTENT_TYPE,
    DEFAULT_SCHEME,
)
from s3signer.credentials import Credentials, SigningError
from s3signer.dates import gmt0_now, to_rfc2822_string
from s3signer.hashing import hmac_sha1_base64


logger = logging.getLogger(__name__)


class UnsupportedMethodError(SigningError):
    """Raised for request methods the v2 signer cannot sign (POST)."""

    def __init__(self, method: str) -> None:
        super().__init__(
            f"{method} request authentication is not implemented, "
            f"use PUT requests"
        )
        self.method = method


UNSUPPORTED_METHODS = frozenset({"POST"})


def canonical_header_block(headers: Sequence[HeaderEntry]) -> str:
    """Render vendor headers as ``key:value`` lines, lower-cased.

    Returns an empty string when there are no vendor headers.
    """
    return "\n".join(
        f"{entry.key.lower()}:{entry.value.lower()}" for entry in headers
    )


def build_string_to_sign(
    method: str, sign_info: SignInfo, resource: str
) -> str:
    """Assemble the string to sign for one request.

    Args:
        method: HTTP method, upper case.
        sign_info: Canonicalized headers and body hash.
        resource: Path with the endpoint prefix removed.

    Returns:
        String to sign, without a trailing newline.
    """
    lines = [
        method,
        sign_info.body_hash,
        sign_info.content_type,
        sign_info.date,
    ]
    block = canonical_header_block(sign_info.canonical_headers)
    if block:
        lines.append(block)
    lines.append(resource)
    return "\n".join(lines)


def format_authorization(scheme: str, access_key: str, signature: str) -> str:
    """``<scheme> <access_key>:<signature>``."""
    return f"{scheme} {access_key}:{signature}"


class RequestSigner:
    """Signs ``httpx`` requests with the v2 scheme.

    Args:
        endpoint_prefix: Path prefix of the service endpoint. It is
            removed from the URL path (plain substring removal) to get
            the signed resource.
        scheme: Scheme identifier in the ``Authorization`` header.
        canonical_prefix: Prefix of vendor headers that are signed.
        default_content_type: Content type assumed when none is set.
    """

    def __init__(
        self,
        endpoint_prefix: str = "",
        *,
        scheme: str = DEFAULT_SCHEME,
        canonical_prefix: str = DEFAULT_CANONICAL_PREFIX,
        default_content_type: str = DEFAULT_CONTENT_TYPE,
    ) -> None:
        self.endpoint_prefix = endpoint_prefix
        self.scheme = scheme
        self.canonical_prefix = canonical_prefix
        self.default_content_type = default_content_type

    def resource(self, url: httpx.URL) -> str:
        """Signed resource for *url*: its encoded path minus the prefix."""
        path = url.raw_path.split(b"?", 1)[0].decode("ascii")
        if self.endpoint_prefix:
            path = path.replace(self.endpoint_prefix, "")
        return path

    def sign(
        self,
        request: httpx.Request,
        credentials: Credentials,
        now: datetime,
    ) -> tuple[str, SignInfo]:
        """Compute the ``Authorization`` value for *request*.

        Args:
            request: Request to sign; not modified.
            credentials: Key pair to sign with.
            now: GMT wall-clock time stamped into the ``Date`` header.

        Returns:
            ``(authorization, sign_info)``.

        Raises:
            UnsupportedMethodError: If the method is POST.
        """
        method = request.method.upper()
        if method in UNSUPPORTED_METHODS:
            raise UnsupportedMethodError(method)

        sign_info = build_sign_info(
            request,
            to_rfc2822_string(now),
            canonical_prefix=self.canonical_prefix,
            default_content_type=self.default_content_type,
        )
        string_to_sign = build_string_to_sign(
            method, sign_info, self.resource(request.url)
        )
        logger.debug(
            "String to sign for %s %s:\n%s",
            method,
            request.url,
            string_to_sign,
        )

        signature = hmac_sha1_base64(credentials.secret_key, string_to_sign)
        authorization = format_authorization(
            self.scheme, credentials.access_key, signature
        )
        return authorization, sign_info

    def sign_request(
        self,
        request: httpx.Request,
        credentials: Credentials,
        now: datetime | None = None,
    ) -> httpx.Request:
        """Return a signed copy of *request*.

        The copy carries the plain headers, then the vendor headers,
        then ``Authorization``, and shares the original body stream. The
        original request is left untouched so it can be signed again.

        Args:
            request: Request to sign.
            credentials: Key pair to sign with.
            now: Signing time. Defaults to ``gmt0_now()``.
        """
        if now is None:
            now = gmt0_now()
        authorization, sign_info = self.sign(request, credentials, now)

        headers = [
            *sign_info.plain_headers,
            *sign_info.canonical_headers,
            HeaderEntry(AUTH_HEADER, authorization),
        ]
        return httpx.Request(
            request.method,
            request.url,
            headers=[tuple(h) for h in headers],
            stream=request.stream,
            extensions=request.extensions,
        )
