"""
HashFacade: one null-safe entry point for hashing operations.

Covers password hashing, digests of arbitrary data and files, HMACs,
anti-forgery tokens, cache keys and multi-algorithm digests. The facade
owns the policy (algorithm validation, canonicalization, secret
defaulting, timing-safe comparison) and delegates the cryptography to
hashlib/hmac, argon2-cffi and python-jose.

Failure idioms:
- Soft failure (None / False): unsupported algorithm, missing or
  unreadable file, unresolved attachment, HMAC mismatch, rejected token,
  wrong password.
- Hard failure (CanonicalizationError): the value cannot be canonicalized.
- TypeError: a salt or key that is neither str nor bytes.

Secret material (site secret, salts, keys, passwords) is never logged.
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Union

from hashgate.app.config import HashSettings, load_settings
from hashgate.app.models.hashing import AlgorithmMode, HashResult, TokenState
from hashgate.app.security.site_secret import SecretProvider, SettingsSecretProvider
from hashgate.app.services.algorithms import is_supported, supported_algorithms
from hashgate.app.services.attachments import FileRegistry, NullFileRegistry, ResourceId
from hashgate.app.services.c14n import RawInput, to_bytes
from hashgate.app.services.hashing import (
    constant_time_equals,
    digest_file,
    digest_hex,
    hmac_hex,
)
from hashgate.app.services.passwords import PasswordPrimitive
from hashgate.app.services.tokens import TokenPrimitive

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHM = "sha256"
CACHE_KEY_ALGORITHM = "md5"
CACHE_KEY_FALLBACK_ALGORITHM = "sha256"
DEFAULT_MULTI_ALGORITHMS = ("md5", "sha1", "sha256")

SecretInput = Union[str, bytes]


def _secret_bytes(value: SecretInput) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise TypeError(f"Salt/key must be str or bytes, got {type(value).__name__}")


class HashFacade:
    """
    Stateless hashing operations bound to one configuration.

    Args:
        settings: HashSettings (defaults to the process-wide settings)
        secret_provider: Source of the site secret (defaults to the settings)
        file_registry: Resolver used by hash_attachment()
        clock: Time source for token issue/verification (defaults to time.time)
    """

    def __init__(
        self,
        settings: Optional[HashSettings] = None,
        secret_provider: Optional[SecretProvider] = None,
        file_registry: Optional[FileRegistry] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.settings = settings or load_settings()
        self._secrets = secret_provider or SettingsSecretProvider(self.settings)
        self._files = file_registry or NullFileRegistry()
        self._clock = clock
        self._passwords: Optional[PasswordPrimitive] = None
        self._tokens: Optional[TokenPrimitive] = None

    # ------------------------------------------------------------------
    # Algorithm validation
    # ------------------------------------------------------------------

    def is_supported(self, algorithm: str, mode: Union[AlgorithmMode, str] = AlgorithmMode.DIGEST) -> bool:
        return is_supported(algorithm, mode)

    def supported_algorithms(self, mode: Union[AlgorithmMode, str] = AlgorithmMode.DIGEST) -> List[str]:
        return supported_algorithms(mode)

    # ------------------------------------------------------------------
    # Digests
    # ------------------------------------------------------------------

    def _resolve_secret(self, supplied: SecretInput) -> bytes:
        """An empty salt/key means "use the site secret"."""
        secret = _secret_bytes(supplied)
        if secret:
            return secret
        return self._secrets.get_site_secret()

    def _digest(self, data: bytes, algorithm: str, salt: bytes) -> str:
        # bytes-then-salt order is part of the contract
        return digest_hex(algorithm, data + salt)

    def digest_result(
        self, value: RawInput, algorithm: str = DEFAULT_ALGORITHM, salt: SecretInput = ""
    ) -> HashResult:
        """
        Salted digest of ``value`` as a typed result.

        Raises:
            CanonicalizationError: If value cannot be canonicalized
        """
        if not is_supported(algorithm, AlgorithmMode.DIGEST):
            logger.debug("Unsupported digest algorithm %r", algorithm)
            return HashResult.unsupported(str(algorithm))

        data = to_bytes(value)
        return HashResult.ok(algorithm, self._digest(data, algorithm, self._resolve_secret(salt)))

    def hash_data(
        self, value: RawInput, algorithm: str = DEFAULT_ALGORITHM, salt: SecretInput = ""
    ) -> Optional[str]:
        """
        Hash any value: digest(algorithm, canonical_bytes + salt).

        An empty salt is replaced by the site secret.

        Returns:
            Hex digest, or None if the algorithm is not supported

        Raises:
            CanonicalizationError: If value cannot be canonicalized
        """
        return self.digest_result(value, algorithm, salt).value_or_none()

    def hash_file(self, path: Union[str, "os.PathLike[str]"], algorithm: str = DEFAULT_ALGORITHM) -> Optional[str]:
        """
        Hash file contents, streamed in chunks.

        Returns:
            Hex digest, or None if the file is missing/unreadable, the
            algorithm is unsupported, or reading fails
        """
        file_path = Path(path)
        if not file_path.is_file() or not os.access(file_path, os.R_OK):
            logger.debug("File not found or not readable: %s", file_path)
            return None

        if not is_supported(algorithm, AlgorithmMode.DIGEST):
            logger.debug("Unsupported digest algorithm %r", algorithm)
            return None

        try:
            return digest_file(algorithm, file_path, self.settings.file_chunk_size)
        except OSError as e:
            logger.debug("Failed to read %s: %s", file_path, type(e).__name__)
            return None

    def hash_attachment(self, resource_id: ResourceId, algorithm: str = DEFAULT_ALGORITHM) -> Optional[str]:
        """Resolve a managed-file id and hash the file. None if it cannot be resolved."""
        file_path = self._files.resolve_path(resource_id)
        if file_path is None:
            logger.debug("Attachment %r could not be resolved", resource_id)
            return None
        return self.hash_file(file_path, algorithm)

    def cache_key(self, value: RawInput, prefix: str = "") -> str:
        """
        Deterministic cache key for ``value``.

        Unsalted md5 of the canonical bytes, so every process derives the
        same key. Falls back to sha256 on interpreters without md5.
        """
        algorithm = CACHE_KEY_ALGORITHM
        if not is_supported(algorithm, AlgorithmMode.DIGEST):
            algorithm = CACHE_KEY_FALLBACK_ALGORITHM

        digest = self._digest(to_bytes(value), algorithm, b"")
        return f"{prefix}_{digest}" if prefix else digest

    def multi_hash(
        self,
        value: RawInput,
        algorithms: Iterable[str] = DEFAULT_MULTI_ALGORITHMS,
        salt: SecretInput = "",
    ) -> Dict[str, str]:
        """
        Hash one value with several algorithms.

        Unsupported algorithms are omitted from the result.

        Raises:
            CanonicalizationError: If value cannot be canonicalized
        """
        usable = []
        for algorithm in algorithms:
            if is_supported(algorithm, AlgorithmMode.DIGEST):
                usable.append(algorithm)
            else:
                logger.debug("Skipping unsupported digest algorithm %r", algorithm)

        if not usable:
            return {}

        data = to_bytes(value)
        resolved_salt = self._resolve_secret(salt)
        return {algorithm: self._digest(data, algorithm, resolved_salt) for algorithm in usable}

    # ------------------------------------------------------------------
    # HMAC
    # ------------------------------------------------------------------

    def hmac_result(
        self, value: RawInput, key: SecretInput = "", algorithm: str = DEFAULT_ALGORITHM
    ) -> HashResult:
        """
        HMAC of ``value`` as a typed result. An empty key means the site secret.

        Raises:
            CanonicalizationError: If value cannot be canonicalized
        """
        if not is_supported(algorithm, AlgorithmMode.HMAC):
            logger.debug("Unsupported HMAC algorithm %r", algorithm)
            return HashResult.unsupported(str(algorithm))

        data = to_bytes(value)
        return HashResult.ok(algorithm, hmac_hex(algorithm, data, self._resolve_secret(key)))

    def compute_hmac(
        self, value: RawInput, key: SecretInput = "", algorithm: str = DEFAULT_ALGORITHM
    ) -> Optional[str]:
        """Hex HMAC of ``value``, or None if the algorithm is not supported."""
        return self.hmac_result(value, key, algorithm).value_or_none()

    def verify_hmac(
        self,
        value: RawInput,
        expected: str,
        key: SecretInput = "",
        algorithm: str = DEFAULT_ALGORITHM,
    ) -> bool:
        """Recompute the HMAC and compare it to ``expected`` in constant time."""
        calculated = self.compute_hmac(value, key, algorithm)
        if calculated is None:
            return False
        if not isinstance(expected, (str, bytes)):
            return False
        return constant_time_equals(expected, calculated)

    # ------------------------------------------------------------------
    # Passwords
    # ------------------------------------------------------------------

    @property
    def passwords(self) -> PasswordPrimitive:
        if self._passwords is None:
            self._passwords = PasswordPrimitive(self.settings)
        return self._passwords

    def hash_password(self, plaintext: str) -> str:
        """Argon2id hash embedding its own parameters and salt."""
        return self.passwords.hash(plaintext)

    def verify_password(self, plaintext: str, stored_hash: str) -> bool:
        return self.passwords.verify(plaintext, stored_hash)

    def needs_rehash(self, stored_hash: str) -> bool:
        """True if stored_hash should be regenerated under the current parameters."""
        return self.passwords.needs_rehash(stored_hash)

    # ------------------------------------------------------------------
    # Anti-forgery tokens
    # ------------------------------------------------------------------

    @property
    def tokens(self) -> TokenPrimitive:
        if self._tokens is None:
            self._tokens = TokenPrimitive(
                self._secrets.get_site_secret(),
                lifetime_seconds=self.settings.token_lifetime_seconds,
                algorithm=self.settings.token_algorithm,
                clock=self._clock,
            )
        return self._tokens

    def issue_token(self, action: str, subject: str = "") -> str:
        return self.tokens.issue(action, subject)

    def token_state(self, token: str, action: str, subject: str = "") -> TokenState:
        """Three-state verification result (valid, valid_expiring, invalid)."""
        return self.tokens.verify(token, action, subject)

    def verify_token(self, token: str, action: str, subject: str = "") -> bool:
        """True for a valid or aging token, False otherwise."""
        return self.token_state(token, action, subject).accepted


@lru_cache(maxsize=1)
def get_facade() -> HashFacade:
    """Process-wide facade built from environment settings."""
    return HashFacade(load_settings())


# Module-level shortcuts over the default facade

def hash_data(value: RawInput, algorithm: str = DEFAULT_ALGORITHM, salt: SecretInput = "") -> Optional[str]:
    return get_facade().hash_data(value, algorithm, salt)


def hash_file(path: Union[str, "os.PathLike[str]"], algorithm: str = DEFAULT_ALGORITHM) -> Optional[str]:
    return get_facade().hash_file(path, algorithm)


def compute_hmac(value: RawInput, key: SecretInput = "", algorithm: str = DEFAULT_ALGORITHM) -> Optional[str]:
    return get_facade().compute_hmac(value, key, algorithm)


def verify_hmac(value: RawInput, expected: str, key: SecretInput = "", algorithm: str = DEFAULT_ALGORITHM) -> bool:
    return get_facade().verify_hmac(value, expected, key, algorithm)


def hash_password(plaintext: str) -> str:
    return get_facade().hash_password(plaintext)


def verify_password(plaintext: str, stored_hash: str) -> bool:
    return get_facade().verify_password(plaintext, stored_hash)


def issue_token(action: str, subject: str = "") -> str:
    return get_facade().issue_token(action, subject)


def verify_token(token: str, action: str, subject: str = "") -> bool:
    return get_facade().verify_token(token, action, subject)


def cache_key(value: RawInput, prefix: str = "") -> str:
    return get_facade().cache_key(value, prefix)


def multi_hash(value: RawInput, algorithms: Iterable[str] = DEFAULT_MULTI_ALGORITHMS) -> Dict[str, str]:
    return get_facade().multi_hash(value, algorithms)


def hash_attachment(resource_id: ResourceId, algorithm: str = DEFAULT_ALGORITHM) -> Optional[str]:
    return get_facade().hash_attachment(resource_id, algorithm)


def needs_rehash(stored_hash: str) -> bool:
    return get_facade().needs_rehash(stored_hash)


def token_state(token: str, action: str, subject: str = "") -> TokenState:
    return get_facade().token_state(token, action, subject)
