# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Shared pytest fixtures."""

from collections.abc import Iterator
from datetime import datetime

import pytest

from s3signer.credentials import Credentials
from s3signer.logging import SecretFilter


#: Sunday; renders as ``Sun, 12 Mar 2023 00:00:00 GMT``.
FIXED_NOW = datetime(2023, 3, 12, 0, 0, 0)
FIXED_DATE = "Sun, 12 Mar 2023 00:00:00 GMT"

EMPTY_MD5 = "1B2M2Y8AsgTpgAmY7PhCfg=="


@pytest.fixture(autouse=True)
def _clear_secrets() -> Iterator[None]:
    """Keep the process-wide redaction registry isolated per test."""
    SecretFilter.clear_secrets()
    yield
    SecretFilter.clear_secrets()


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(access_key="AKIDEXAMPLE", secret_key="secret-one")


@pytest.fixture
def fresh_credentials() -> Credentials:
    return Credentials(access_key="AKIDEXAMPLE", secret_key="secret-two")
