"""
Site secret providers.

The site secret is the default salt for salted digests, the default key for
HMACs, and the signing key for anti-forgery tokens. It is injected into the
facade through a SecretProvider instead of being read from a global, so
tests and host applications can supply their own.

Rotating the secret invalidates every salted digest, HMAC and token that
relied on the default.
"""

import logging
from typing import Optional, Protocol, Union, runtime_checkable

from hashgate.app.config import HashSettings, is_dev_environment

logger = logging.getLogger(__name__)

# Development fallback only; never accepted outside ENV=TEST/DEV
DEV_SITE_SECRET = "dev-site-secret-change-in-production"


class MissingSiteSecretError(RuntimeError):
    """Raised when no site secret is configured outside development."""


@runtime_checkable
class SecretProvider(Protocol):
    """Source of process-wide secret material."""

    def get_site_secret(self) -> bytes:
        ...


def _as_bytes(secret: Union[str, bytes]) -> bytes:
    return secret.encode("utf-8") if isinstance(secret, str) else bytes(secret)


class StaticSecretProvider:
    """Provider for an explicitly supplied secret."""

    def __init__(self, secret: Union[str, bytes]):
        secret_bytes = _as_bytes(secret)
        if not secret_bytes:
            raise ValueError("Site secret must not be empty")
        self._secret = secret_bytes

    def get_site_secret(self) -> bytes:
        return self._secret

    def __repr__(self) -> str:
        return "StaticSecretProvider(secret=**********)"


class SettingsSecretProvider:
    """
    Provider backed by HashSettings.site_secret.

    When the setting is empty and ENV is TEST or DEV, the fixed development
    secret is used and a warning is logged once. Otherwise the first call
    raises MissingSiteSecretError.
    """

    def __init__(self, settings: HashSettings):
        self._settings = settings
        self._resolved: Optional[bytes] = None

    def get_site_secret(self) -> bytes:
        if self._resolved is None:
            self._resolved = self._resolve()
        return self._resolved

    def _resolve(self) -> bytes:
        if self._settings.site_secret is not None:
            return _as_bytes(self._settings.site_secret.get_secret_value())

        if is_dev_environment():
            logger.warning(
                "HASHGATE_SITE_SECRET is not set; using the development site secret"
            )
            return _as_bytes(DEV_SITE_SECRET)

        raise MissingSiteSecretError(
            "HASHGATE_SITE_SECRET must be set outside ENV=TEST/DEV"
        )

    def __repr__(self) -> str:
        return "SettingsSecretProvider()"
