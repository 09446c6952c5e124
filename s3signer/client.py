# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""``httpx`` clients with v2 signing attached."""

from typing import Any

import httpx

from s3signer.auth import SigningV2Auth
from s3signer.config import SignerConfig
from s3signer.credentials import CredentialsStore
from s3signer.signer import RequestSigner


def build_auth(
    config: SignerConfig, store: CredentialsStore | None = None
) -> SigningV2Auth:
    """Signer and auth flow for *config*.

    Without *store*, a new store is seeded from the config's credentials
    and has no refresher, so a 400/403 is returned without a retry.
    """
    if store is None:
        store = CredentialsStore(config.credentials())
    signer = RequestSigner(
        config.endpoint_prefix,
        scheme=config.scheme,
        canonical_prefix=config.canonical_prefix,
        default_content_type=config.default_content_type,
    )
    return SigningV2Auth(signer, store)


def create_client(
    config: SignerConfig,
    store: CredentialsStore | None = None,
    **kwargs: Any,
) -> httpx.Client:
    """Synchronous client for ``config.endpoint``.

    Extra keyword arguments go to ``httpx.Client`` (e.g. ``transport``).
    """
    kwargs.setdefault("timeout", config.timeout)
    return httpx.Client(
        base_url=config.endpoint, auth=build_auth(config, store), **kwargs
    )


def create_async_client(
    config: SignerConfig,
    store: CredentialsStore | None = None,
    **kwargs: Any,
) -> httpx.AsyncClient:
    """Asynchronous counterpart of ``create_client``."""
    kwargs.setdefault("timeout", config.timeout)
    return httpx.AsyncClient(
        base_url=config.endpoint, auth=build_auth(config, store), **kwargs
    )
