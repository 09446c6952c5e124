# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Version 2 (HMAC-SHA1) request signing for S3-compatible storage.

Typical use::

    config = SignerConfig.from_yaml()
    store = CredentialsStore(
        config.credentials(), refresher=SignerConfig.reloader()
    )
    with create_client(config, store) as client:
        client.put("/bucket/key", content=b"data").raise_for_status()
"""

from s3signer.auth import SigningState, SigningV2Auth
from s3signer.canonical import HeaderEntry, SignInfo
from s3signer.client import build_auth, create_async_client, create_client
from s3signer.config import ConfigError, SignerConfig
from s3signer.credentials import (
    CredentialRefreshError,
    Credentials,
    CredentialsStore,
    SigningError,
)
from s3signer.signer import RequestSigner, UnsupportedMethodError


__all__ = [
    "ConfigError",
    "CredentialRefreshError",
    "Credentials",
    "CredentialsStore",
    "HeaderEntry",
    "RequestSigner",
    "SignInfo",
    "SignerConfig",
    "SigningError",
    "SigningState",
    "SigningV2Auth",
    "UnsupportedMethodError",
    "build_auth",
    "create_async_client",
    "create_client",
]
