"""
Algorithm validation for digest and HMAC operations.

The supported sets are enumerated from the running interpreter's hashlib
(and therefore its OpenSSL build). Names listed by
hashlib.algorithms_available are probed once, and only those that can
actually produce a fixed-length hex digest are kept. Variable-length XOFs
(shake_128/shake_256) and legacy algorithms disabled in the OpenSSL
provider drop out here.

Lookups are exact and case-sensitive: "sha256" is supported, "SHA256" is not.
"""

import hashlib
import hmac
import logging
from functools import lru_cache
from typing import FrozenSet, List, Union

from hashgate.app.models.hashing import AlgorithmMode

logger = logging.getLogger(__name__)

_PROBE_KEY = b"hashgate-probe"


def _digest_usable(name: str) -> bool:
    try:
        hashlib.new(name, b"").hexdigest()
    except (ValueError, TypeError):
        return False
    return True


def _hmac_usable(name: str) -> bool:
    try:
        hmac.new(_PROBE_KEY, b"", name).hexdigest()
    except (ValueError, TypeError):
        return False
    return True


@lru_cache(maxsize=None)
def _enumerate(mode: AlgorithmMode) -> FrozenSet[str]:
    probe = _digest_usable if mode is AlgorithmMode.DIGEST else _hmac_usable
    usable = frozenset(name for name in hashlib.algorithms_available if probe(name))
    logger.debug("Enumerated %d %s algorithms", len(usable), mode.value)
    return usable


def is_supported(algorithm: str, mode: Union[AlgorithmMode, str] = AlgorithmMode.DIGEST) -> bool:
    """
    Check an algorithm name against the enumerated list for ``mode``.

    Args:
        algorithm: Algorithm name, e.g. "sha256"
        mode: AlgorithmMode.DIGEST or AlgorithmMode.HMAC (or their string values)

    Returns:
        True if the name is in the platform's list for that mode
    """
    if not isinstance(algorithm, str):
        return False
    return algorithm in _enumerate(AlgorithmMode(mode))


def supported_algorithms(mode: Union[AlgorithmMode, str] = AlgorithmMode.DIGEST) -> List[str]:
    """Sorted list of algorithm names usable in ``mode``."""
    return sorted(_enumerate(AlgorithmMode(mode)))
