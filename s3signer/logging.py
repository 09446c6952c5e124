# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Logging setup with redaction of signing secrets.

Secret keys held by a ``CredentialsStore`` are registered with
``SecretFilter`` as soon as the store sees them, so a string to sign or
an exception message that happens to contain one never reaches a log
handler in clear text.

Usage:
    # In entry points
    from s3signer.logging import configure_logging
    configure_logging(level=logging.DEBUG)

    # In library modules
    import logging
    logger = logging.getLogger(__name__)
"""

import logging
import re
from typing import ClassVar


REDACTED = "[REDACTED]"


class SecretFilter(logging.Filter):
    """Logging filter that replaces registered secrets with ``[REDACTED]``.

    The registry is process-wide: every handler carrying the filter
    redacts every secret registered through any store.
    """

    _secrets: ClassVar[set[str]] = set()
    _pattern: ClassVar[re.Pattern[str] | None] = None

    def filter(self, record: logging.LogRecord) -> bool:
        """Redact secrets in the message and string arguments.

        Returns:
            Always True; records are rewritten, never dropped.
        """
        pattern = self._pattern
        if pattern is None:
            return True
        record.msg = pattern.sub(REDACTED, str(record.msg))
        if isinstance(record.args, tuple):
            record.args = tuple(
                pattern.sub(REDACTED, arg) if isinstance(arg, str) else arg
                for arg in record.args
            )
        return True

    @classmethod
    def register_secret(cls, secret: str) -> None:
        """Add *secret* to the redaction set. Empty strings are ignored."""
        if secret and secret not in cls._secrets:
            cls._secrets.add(secret)
            cls._rebuild_pattern()

    @classmethod
    def clear_secrets(cls) -> None:
        """Forget all registered secrets. For testing."""
        cls._secrets.clear()
        cls._pattern = None

    @classmethod
    def _rebuild_pattern(cls) -> None:
        # Longest first so a secret containing another is redacted whole.
        escaped = [
            re.escape(s) for s in sorted(cls._secrets, key=len, reverse=True)
        ]
        cls._pattern = re.compile("|".join(escaped)) if escaped else None


def configure_logging(
    level: int = logging.INFO,
    format_string: str | None = None,
    add_secret_filter: bool = True,
) -> None:
    """Install a single stream handler on the root logger.

    Args:
        level: Root logger level.
        format_string: Custom format. Defaults to time, name, level and
            message.
        add_secret_filter: Whether the handler redacts registered secrets.
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(format_string))
    if add_secret_filter:
        handler.addFilter(SecretFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for existing_handler in root_logger.handlers[:]:
        root_logger.removeHandler(existing_handler)
    root_logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Thin wrapper around ``logging.getLogger``."""
    return logging.getLogger(name)
