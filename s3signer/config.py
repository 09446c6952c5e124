# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Client configuration loaded from YAML.

The default location follows the XDG Base Directory Specification:

    ``$XDG_CONFIG_HOME/s3signer/s3signer.yaml``
    (typically ``~/.config/s3signer/s3signer.yaml``)

Example::

    endpoint: https://s3.example.com
    endpoint_prefix: /storage
    access_key: !env S3_ACCESS_KEY
    secret_key: !env S3_SECRET_KEY

``!env`` tags resolve values from environment variables. ``.env`` files
in the XDG config directory and in the working directory are loaded once
before the first config is read.
"""

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from platformdirs import user_config_path

from s3signer.constants import (
    DEFAULT_CANONICAL_PREFIX,
    DEFAULT_CONTENT_TYPE,
    DEFAULT_SCHEME,
)
from s3signer.credentials import Credentials
from s3signer.logging import SecretFilter


logger = logging.getLogger(__name__)

_APP_NAME = "s3signer"

_DEFAULT_TIMEOUT = 30.0

_dotenv_loaded = False


class ConfigError(Exception):
    """Invalid or missing configuration."""


def get_config_path() -> Path:
    """Default config file path (``~/.config/s3signer/s3signer.yaml``)."""
    return user_config_path(_APP_NAME) / "s3signer.yaml"


def get_dotenv_path() -> Path:
    """``.env`` file next to the default config file."""
    return user_config_path(_APP_NAME) / ".env"


def load_dotenv_once() -> None:
    """Load ``.env`` files on first call, do nothing afterwards.

    The XDG file is loaded first; ``python-dotenv`` does not overwrite
    variables that are already set, so it wins over the working
    directory's ``.env``.
    """
    global _dotenv_loaded
    if _dotenv_loaded:
        return

    for path in (get_dotenv_path(), Path.cwd() / ".env"):
        if path.exists():
            load_dotenv(path)
            logger.debug("Loaded .env from %s", path)
    _dotenv_loaded = True


def reset_dotenv_state() -> None:
    """Allow ``load_dotenv_once`` to run again. For testing."""
    global _dotenv_loaded
    _dotenv_loaded = False


# ---------------------------------------------------------------------------
# YAML tags
# ---------------------------------------------------------------------------


class _EnvVar:
    """Placeholder for an unresolved ``!env VAR_NAME`` tag."""

    def __init__(self, var_name: str) -> None:
        self.var_name = var_name


def _env_constructor(loader: yaml.SafeLoader, node: yaml.Node) -> _EnvVar:
    value = loader.construct_scalar(node)
    return _EnvVar(str(value))


def _make_loader() -> type[yaml.SafeLoader]:
    """YAML loader that understands ``!env``."""

    class EnvLoader(yaml.SafeLoader):
        pass

    EnvLoader.add_constructor("!env", _env_constructor)
    return EnvLoader


def _resolve_str(value: object, name: str, default: str | None = None) -> str:
    """Resolve a config value to a string.

    Args:
        value: Raw YAML value, possibly an ``_EnvVar``.
        name: Field name for error messages.
        default: Returned when the value is absent. Without a default
            the value is required.

    Raises:
        ConfigError: If a required value is absent or empty.
    """
    if isinstance(value, _EnvVar):
        resolved = os.environ.get(value.var_name)
        if resolved is None and default is None:
            raise ConfigError(
                f"Required config '{name}': environment variable "
                f"'{value.var_name}' is not set"
            )
    elif value is None:
        resolved = None
    elif isinstance(value, (dict, list)):
        raise ConfigError(f"Config '{name}' must be a scalar")
    else:
        resolved = str(value)

    if resolved is None:
        if default is None:
            raise ConfigError(f"Required config '{name}' is missing")
        return default
    if not resolved and default is None:
        raise ConfigError(f"Required config '{name}' is empty")
    return resolved


def _resolve_float(value: object, name: str, default: float) -> float:
    raw = _resolve_str(value, name, default="")
    if raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(
            f"Config '{name}' must be a number, got {raw!r}"
        ) from e


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SignerConfig:
    """Settings for a signing client.

    Attributes:
        endpoint: Base URL of the S3-compatible service.
        access_key: Access key id.
        secret_key: Secret key (never logged).
        endpoint_prefix: Path prefix removed from the signed resource.
        scheme: Scheme identifier in the ``Authorization`` header.
        canonical_prefix: Prefix of signed vendor headers.
        default_content_type: Content type signed when none is set.
        timeout: Transport timeout in seconds.
    """

    endpoint: str
    access_key: str
    secret_key: str = field(repr=False)
    endpoint_prefix: str = ""
    scheme: str = DEFAULT_SCHEME
    canonical_prefix: str = DEFAULT_CANONICAL_PREFIX
    default_content_type: str = DEFAULT_CONTENT_TYPE
    timeout: float = _DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        SecretFilter.register_secret(self.secret_key)

    def credentials(self) -> Credentials:
        return Credentials(
            access_key=self.access_key, secret_key=self.secret_key
        )

    @classmethod
    def from_yaml(cls, config_path: Path | None = None) -> "SignerConfig":
        """Load configuration from a YAML file.

        Args:
            config_path: Path to the file. Defaults to
                ``get_config_path()``.

        Raises:
            ConfigError: If the file is missing, is not a mapping, or a
                required value is absent.
        """
        load_dotenv_once()

        if config_path is None:
            config_path = get_config_path()

        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            try:
                raw = yaml.load(f, Loader=_make_loader())
            except yaml.YAMLError as e:
                raise ConfigError(
                    f"Invalid YAML in {config_path}: {e}"
                ) from e

        if not isinstance(raw, dict):
            raise ConfigError(
                f"Config file must be a YAML mapping: {config_path}"
            )

        config = cls._from_raw(raw)
        logger.debug(
            "Loaded config from %s (endpoint %s)", config_path, config.endpoint
        )
        return config

    @classmethod
    def _from_raw(cls, raw: dict[str, Any]) -> "SignerConfig":
        return cls(
            endpoint=_resolve_str(raw.get("endpoint"), "endpoint"),
            access_key=_resolve_str(raw.get("access_key"), "access_key"),
            secret_key=_resolve_str(raw.get("secret_key"), "secret_key"),
            endpoint_prefix=_resolve_str(
                raw.get("endpoint_prefix"), "endpoint_prefix", default=""
            ),
            scheme=_resolve_str(
                raw.get("scheme"), "scheme", default=DEFAULT_SCHEME
            ),
            canonical_prefix=_resolve_str(
                raw.get("canonical_prefix"),
                "canonical_prefix",
                default=DEFAULT_CANONICAL_PREFIX,
            ),
            default_content_type=_resolve_str(
                raw.get("default_content_type"),
                "default_content_type",
                default=DEFAULT_CONTENT_TYPE,
            ),
            timeout=_resolve_float(
                raw.get("timeout"), "timeout", default=_DEFAULT_TIMEOUT
            ),
        )

    @staticmethod
    def reloader(
        config_path: Path | None = None,
    ) -> Callable[[], Credentials]:
        """Refresher that re-reads credentials from the config file.

        The returned callable loads the file again on every call, so
        rotated keys written to the file or to the environment are
        picked up. Suitable as ``CredentialsStore`` refresher.
        """

        def reload() -> Credentials:
            return SignerConfig.from_yaml(config_path).credentials()

        return reload
