"""
Password hashing primitive (Argon2id via argon2-cffi).

Hashes embed the algorithm, version, cost parameters and salt, so a hash
produced under older parameters keeps verifying after the configuration is
upgraded; needs_rehash() reports when a stored hash should be replaced.
Verification runs in constant time inside libargon2.
"""

import logging
from typing import Union

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from hashgate.app.config import HashSettings

logger = logging.getLogger(__name__)

Plaintext = Union[str, bytes]


class PasswordPrimitive:
    """Argon2id hasher configured from HashSettings."""

    def __init__(self, settings: HashSettings):
        self._hasher = PasswordHasher(
            time_cost=settings.argon2_time_cost,
            memory_cost=settings.argon2_memory_cost,
            parallelism=settings.argon2_parallelism,
        )

    def hash(self, plaintext: Plaintext) -> str:
        """Hash a password. Returns an encoded "$argon2id$..." string."""
        return self._hasher.hash(plaintext)

    def verify(self, plaintext: Plaintext, stored_hash: str) -> bool:
        """
        Verify a password against a stored hash.

        Returns False for a mismatch and for malformed or foreign hashes.
        """
        try:
            return self._hasher.verify(stored_hash, plaintext)
        except VerificationError:
            return False
        except InvalidHashError:
            logger.debug("Password verification against a malformed hash")
            return False

    def needs_rehash(self, stored_hash: str) -> bool:
        """True when stored_hash was not produced with the current parameters."""
        try:
            return self._hasher.check_needs_rehash(stored_hash)
        except InvalidHashError:
            return True
