# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Access key / secret key pair and the store that owns it.

One ``CredentialsStore`` is created per client and shared by every
request that client signs. The store hands out immutable ``Credentials``
snapshots; a refresh swaps the whole snapshot under a lock, so readers
never observe a key pair that is half old and half new. Concurrent
refreshes are allowed and the last one to finish wins.

How new credentials are obtained is up to the refresher callable given
to the store. It may be a plain function or a coroutine function.
"""

import asyncio
import inspect
import logging
import threading
from collections.abc import Awaitable, Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from s3signer.logging import SecretFilter


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credentials:
    """Shared-secret credential pair.

    Attributes:
        access_key: Public key id, sent in the ``Authorization`` header.
        secret_key: HMAC key, never sent.
    """

    access_key: str
    secret_key: str = field(repr=False)


CredentialsRefresher = Callable[[], Credentials | Awaitable[Credentials]]


class SigningError(Exception):
    """Base exception for request signing failures."""


class CredentialRefreshError(SigningError):
    """Raised when new credentials could not be obtained."""


async def _await(awaitable: Awaitable[Credentials]) -> Credentials:
    return await awaitable


def _run_to_completion(awaitable: Awaitable[Credentials]) -> Credentials:
    """Block until *awaitable* finishes, on a private event loop.

    Inside a running loop the private loop lives on a worker thread,
    since ``asyncio.run`` cannot nest.
    """
    coro = _await(awaitable)
    try:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(coro)
        with ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()
    finally:
        # No-op once awaited; otherwise avoids "never awaited" warnings.
        coro.close()
        if inspect.iscoroutine(awaitable):
            awaitable.close()


class CredentialsStore:
    """Thread-safe holder of the current ``Credentials``.

    Args:
        credentials: Initial credential pair.
        refresher: Callable returning fresh ``Credentials`` (or an
            awaitable of them). Without one, ``refresh`` always fails.
    """

    def __init__(
        self,
        credentials: Credentials,
        refresher: CredentialsRefresher | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._refresher = refresher
        SecretFilter.register_secret(credentials.secret_key)
        self._credentials = credentials

    @property
    def credentials(self) -> Credentials:
        """Current snapshot."""
        with self._lock:
            return self._credentials

    @property
    def access_key(self) -> str:
        return self.credentials.access_key

    @property
    def secret_key(self) -> str:
        return self.credentials.secret_key

    def update(self, credentials: Credentials) -> None:
        """Replace the stored pair in one step."""
        if not isinstance(credentials, Credentials):
            raise CredentialRefreshError(
                f"Expected Credentials, got {type(credentials).__name__}"
            )
        SecretFilter.register_secret(credentials.secret_key)
        with self._lock:
            previous = self._credentials
            self._credentials = credentials
        if previous.access_key != credentials.access_key:
            logger.info(
                "Credentials updated (access key %s -> %s)",
                previous.access_key,
                credentials.access_key,
            )
        else:
            logger.info(
                "Credentials updated (access key %s)", credentials.access_key
            )

    async def refresh(self) -> Credentials:
        """Fetch new credentials from the refresher and store them.

        Returns:
            The newly stored credentials.

        Raises:
            CredentialRefreshError: No refresher is configured, the
                refresher raised, or it returned something else than
                ``Credentials``.
        """
        refresher = self._require_refresher()
        try:
            if inspect.iscoroutinefunction(refresher):
                result = await refresher()
            else:
                # Sync refreshers do I/O; keep the event loop running.
                result = await asyncio.to_thread(refresher)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            raise CredentialRefreshError(
                f"Credential refresh failed: {e}"
            ) from e
        self.update(result)
        return result

    def refresh_blocking(self) -> Credentials:
        """Synchronous ``refresh``, used by ``httpx.Client``.

        An awaitable returned by the refresher is driven to completion
        on its own event loop, on a worker thread when the caller is
        already inside a running loop.

        Raises:
            CredentialRefreshError: Same conditions as ``refresh``.
        """
        refresher = self._require_refresher()
        try:
            result = refresher()
            if inspect.isawaitable(result):
                result = _run_to_completion(result)
        except Exception as e:
            raise CredentialRefreshError(
                f"Credential refresh failed: {e}"
            ) from e
        self.update(result)
        return result

    def _require_refresher(self) -> CredentialsRefresher:
        if self._refresher is None:
            raise CredentialRefreshError("No credentials refresher configured")
        return self._refresher
