# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""``httpx`` auth flow that signs requests and retries once on 400/403.

Each logical request goes through::

    INITIAL -> SIGNED_SENT -> DONE
                           -> REFRESH_RETRY_SENT -> DONE

On a 400 or 403 the credentials store is refreshed (blocking in
``httpx.Client``, awaited in ``httpx.AsyncClient``), the *original*
request is signed again with the new credentials and sent one more time.
Whatever comes back from the retry is returned to the caller. If the
refresh fails, the first response is returned.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, Generator
from enum import Enum

import httpx

from s3signer.constants import AUTH_FAILURE_STATUSES
from s3signer.credentials import CredentialRefreshError, CredentialsStore
from s3signer.signer import RequestSigner


logger = logging.getLogger(__name__)


class SigningState(Enum):
    """Progress of one logical request through the auth flow."""

    INITIAL = "initial"
    SIGNED_SENT = "signed_sent"
    REFRESH_RETRY_SENT = "refresh_retry_sent"
    DONE = "done"


class SigningV2Auth(httpx.Auth):
    """Signs every request and retries once after refreshing credentials.

    Args:
        signer: Signer holding the endpoint prefix and scheme settings.
        store: Credentials shared by all requests of the client.
    """

    requires_request_body = True

    def __init__(self, signer: RequestSigner, store: CredentialsStore) -> None:
        self.signer = signer
        self.store = store

    @staticmethod
    def needs_retry(response: httpx.Response) -> bool:
        """Whether *response* signals rejected credentials."""
        return response.status_code in AUTH_FAILURE_STATUSES

    def _send(
        self, request: httpx.Request, state: SigningState
    ) -> httpx.Request:
        # Credentials are read here, i.e. after any refresh has returned.
        signed = self.signer.sign_request(request, self.store.credentials)
        _log_state(request, state)
        return signed

    def sync_auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        request.read()
        _log_state(request, SigningState.INITIAL)

        response = yield self._send(request, SigningState.SIGNED_SENT)
        if self.needs_retry(response):
            _log_rejection(request, response)
            try:
                self.store.refresh_blocking()
            except CredentialRefreshError as e:
                _log_refresh_failure(request, e)
            else:
                yield self._send(request, SigningState.REFRESH_RETRY_SENT)

        _log_state(request, SigningState.DONE)

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        await request.aread()
        _log_state(request, SigningState.INITIAL)

        response = yield self._send(request, SigningState.SIGNED_SENT)
        if self.needs_retry(response):
            _log_rejection(request, response)
            try:
                await self.store.refresh()
            except CredentialRefreshError as e:
                _log_refresh_failure(request, e)
            else:
                yield self._send(request, SigningState.REFRESH_RETRY_SENT)

        _log_state(request, SigningState.DONE)


def _log_state(request: httpx.Request, state: SigningState) -> None:
    logger.debug("%s %s: %s", request.method, request.url, state.value)


def _log_rejection(request: httpx.Request, response: httpx.Response) -> None:
    logger.info(
        "%s %s rejected with %d, refreshing credentials",
        request.method,
        request.url,
        response.status_code,
    )


def _log_refresh_failure(
    request: httpx.Request, error: CredentialRefreshError
) -> None:
    logger.warning(
        "Not retrying %s %s: %s", request.method, request.url, error
    )
