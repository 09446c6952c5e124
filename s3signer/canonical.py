# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Header canonicalization for v2 request signing.

Incoming headers are split into three groups:

- vendor headers (``x-amz-*`` by default), which are sorted, merged and
  folded into the string to sign,
- the ``Content-Type`` header, replaced by a default when missing,
- everything else, passed through unsigned.

The signer then appends ``Content-Type``, ``Host``, ``Content-MD5`` and
``Date`` to the plain group. Incoming copies of the generated headers are
discarded, so each of them occurs exactly once in the signed request.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import NamedTuple

import httpx

from s3signer.constants import (
    CONTENT_MD5_HEADER,
    CONTENT_TYPE_HEADER,
    DATE_HEADER,
    DEFAULT_CANONICAL_PREFIX,
    DEFAULT_CONTENT_TYPE,
    GENERATED_HEADERS,
    HOST_HEADER,
)
from s3signer.hashing import md5_base64


class HeaderEntry(NamedTuple):
    """Single header line."""

    key: str
    value: str


@dataclass(frozen=True)
class SignInfo:
    """Headers and body hash computed for one signing attempt.

    Attributes:
        plain_headers: Headers sent as-is, ending with the generated
            ``Content-Type``, ``Host``, ``Content-MD5`` and ``Date``.
        canonical_headers: Vendor headers, sorted and merged.
        body_hash: Base64 MD5 of the body; same value as ``Content-MD5``.
    """

    plain_headers: tuple[HeaderEntry, ...]
    canonical_headers: tuple[HeaderEntry, ...]
    body_hash: str

    def plain_value(self, name: str) -> str | None:
        """Value of the last plain header called *name* (any case)."""
        lowered = name.lower()
        for entry in reversed(self.plain_headers):
            if entry.key.lower() == lowered:
                return entry.value
        return None

    @property
    def content_type(self) -> str:
        value = self.plain_value(CONTENT_TYPE_HEADER)
        assert value is not None
        return value

    @property
    def date(self) -> str:
        value = self.plain_value(DATE_HEADER)
        assert value is not None
        return value


@dataclass(frozen=True)
class HeaderGroups:
    """Result of ``split_headers``."""

    plain: tuple[HeaderEntry, ...]
    canonical: tuple[HeaderEntry, ...]
    content_type: HeaderEntry


def split_headers(
    headers: Iterable[tuple[str, str]],
    *,
    canonical_prefix: str = DEFAULT_CANONICAL_PREFIX,
    default_content_type: str = DEFAULT_CONTENT_TYPE,
) -> HeaderGroups:
    """Partition raw headers into plain, canonical and content type.

    Canonical header keys are lower-cased here, which is how they are
    rendered in the string to sign and which keeps duplicates adjacent
    after sorting regardless of the caller's casing.

    Args:
        headers: ``(key, value)`` pairs in request order.
        canonical_prefix: Case-insensitive prefix of vendor headers.
        default_content_type: Used when no ``Content-Type`` is present.

    Returns:
        The three groups; ``canonical`` is not yet sorted.
    """
    prefix = canonical_prefix.lower()
    plain: list[HeaderEntry] = []
    canonical: list[HeaderEntry] = []
    content_type = HeaderEntry(CONTENT_TYPE_HEADER, default_content_type)

    for key, value in headers:
        lowered = key.lower()
        if lowered.startswith(prefix):
            canonical.append(HeaderEntry(lowered, value))
        elif lowered == CONTENT_TYPE_HEADER.lower():
            content_type = HeaderEntry(CONTENT_TYPE_HEADER, value)
        elif lowered in GENERATED_HEADERS:
            continue
        else:
            plain.append(HeaderEntry(key, value))

    return HeaderGroups(
        plain=tuple(plain),
        canonical=tuple(canonical),
        content_type=content_type,
    )


def normalize_canonical_headers(
    headers: Iterable[HeaderEntry],
) -> tuple[HeaderEntry, ...]:
    """Sort vendor headers by ``key:value`` and merge repeated keys.

    Entries with the same key end up next to each other after the sort,
    so merging walks the sorted list once and joins the values of each
    run with commas, keeping sorted order::

        [("x-amz-meta-a", "2"), ("x-amz-meta-a", "1")]
        -> (("x-amz-meta-a", "1,2"),)
    """
    ordered = sorted(headers, key=lambda h: f"{h.key}:{h.value}")

    merged: list[HeaderEntry] = []
    for entry in ordered:
        if merged and merged[-1].key.lower() == entry.key.lower():
            last = merged[-1]
            merged[-1] = HeaderEntry(last.key, f"{last.value},{entry.value}")
        else:
            merged.append(entry)
    return tuple(merged)


def request_header_items(request: httpx.Request) -> list[tuple[str, str]]:
    """Header pairs of *request* with their original casing."""
    encoding = request.headers.encoding
    return [
        (key.decode(encoding), value.decode(encoding))
        for key, value in request.headers.raw
    ]


def build_sign_info(
    request: httpx.Request,
    date_string: str,
    *,
    canonical_prefix: str = DEFAULT_CANONICAL_PREFIX,
    default_content_type: str = DEFAULT_CONTENT_TYPE,
) -> SignInfo:
    """Collect everything needed to sign *request*.

    The request body must already be loaded (``httpx`` does this for
    in-memory content and for auth flows that require the body).

    ``Host`` is the bare URL host: a non-default port (e.g. MinIO on
    ``localhost:9000``) is not included in the signed header.

    Args:
        request: Request to sign; it is not modified.
        date_string: Value for the ``Date`` header.
        canonical_prefix: Prefix of vendor headers.
        default_content_type: Content type used when none is set.

    Returns:
        SignInfo for this attempt.
    """
    groups = split_headers(
        request_header_items(request),
        canonical_prefix=canonical_prefix,
        default_content_type=default_content_type,
    )
    body_hash = md5_base64(request.content)

    plain = [
        *groups.plain,
        groups.content_type,
        HeaderEntry(HOST_HEADER, request.url.host),
        HeaderEntry(CONTENT_MD5_HEADER, body_hash),
        HeaderEntry(DATE_HEADER, date_string),
    ]
    return SignInfo(
        plain_headers=tuple(plain),
        canonical_headers=normalize_canonical_headers(groups.canonical),
        body_hash=body_hash,
    )
