# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Digests used by the v2 signing scheme.

Both helpers return base64 text. Failures from ``hashlib`` (for example
MD5 disabled in a FIPS build) are not caught: they mean the environment
cannot sign at all.
"""

import base64
import hashlib
import hmac


def _to_bytes(data: str | bytes) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return data


def md5_base64(data: bytes) -> str:
    """Base64-encoded MD5 digest of *data*.

    Used as the ``Content-MD5`` header and as the body hash line of the
    string to sign.
    """
    return base64.b64encode(hashlib.md5(data).digest()).decode("ascii")


def hmac_sha1_base64(key: str | bytes, message: str | bytes) -> str:
    """Base64-encoded HMAC-SHA1 of *message* keyed with *key*.

    Args:
        key: Secret key; strings are UTF-8 encoded.
        message: String to sign; strings are UTF-8 encoded.

    Returns:
        Signature as base64 text.
    """
    digest = hmac.new(
        _to_bytes(key), _to_bytes(message), hashlib.sha1
    ).digest()
    return base64.b64encode(digest).decode("ascii")
