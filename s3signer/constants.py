# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Header names and defaults of the v2 signing scheme."""

AUTH_HEADER = "Authorization"
CONTENT_TYPE_HEADER = "Content-Type"
CONTENT_MD5_HEADER = "Content-MD5"
DATE_HEADER = "Date"
HOST_HEADER = "Host"

#: Headers the signer generates itself; incoming copies are discarded.
GENERATED_HEADERS = frozenset(
    {
        AUTH_HEADER.lower(),
        CONTENT_MD5_HEADER.lower(),
        DATE_HEADER.lower(),
        HOST_HEADER.lower(),
    }
)

#: Scheme identifier in ``Authorization: AWS <access_key>:<signature>``.
DEFAULT_SCHEME = "AWS"

#: Prefix of vendor headers that take part in the signature.
DEFAULT_CANONICAL_PREFIX = "x-amz-"

DEFAULT_CONTENT_TYPE = "application/octet-stream"

#: Response codes that trigger a credential refresh and one retry.
AUTH_FAILURE_STATUSES = frozenset({400, 403})
