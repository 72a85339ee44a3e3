"""
Digest and HMAC primitives.

Thin wrappers over hashlib/hmac producing lowercase hexadecimal strings.
Callers are expected to have validated the algorithm name already
(see hashgate.app.services.algorithms); these functions do not soft-fail.
"""

import hashlib
import hmac
import os
from typing import Union

DEFAULT_CHUNK_SIZE = 65536

PathLike = Union[str, "os.PathLike[str]"]


def digest_hex(algorithm: str, data: bytes) -> str:
    """
    Compute a digest of ``data`` and return it as lowercase hex.

    Example:
        >>> digest_hex("sha256", b"hello")
        '2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824'
    """
    return hashlib.new(algorithm, data).hexdigest()


def digest_file(algorithm: str, path: PathLike, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """
    Stream a file through a digest without loading it into memory.

    Args:
        algorithm: Validated digest algorithm name
        path: File to read
        chunk_size: Bytes read per iteration

    Returns:
        Lowercase hex digest of the file contents

    Raises:
        OSError: If the file cannot be opened or read
    """
    hasher = hashlib.new(algorithm)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


def hmac_hex(algorithm: str, data: bytes, key: bytes) -> str:
    """Compute HMAC(key, data) with the named hash and return lowercase hex."""
    return hmac.new(key, data, algorithm).hexdigest()


def constant_time_equals(expected: Union[str, bytes], actual: Union[str, bytes]) -> bool:
    """
    Timing-safe equality for secret-derived values.

    Strings are compared as UTF-8 bytes so non-ASCII input does not raise.
    """
    if isinstance(expected, str):
        expected = expected.encode("utf-8")
    if isinstance(actual, str):
        actual = actual.encode("utf-8")
    return hmac.compare_digest(expected, actual)
