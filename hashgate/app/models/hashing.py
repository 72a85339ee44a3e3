"""
Result and state models for hashgate operations.

Digest and HMAC computations produce a HashResult internally; the public
facade collapses it to ``str | None``. Canonicalization failures are not a
result variant here because they are raised (CanonicalizationError).
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class AlgorithmMode(str, Enum):
    """Which enumerated algorithm list a name is checked against."""
    DIGEST = "digest"
    HMAC = "hmac"


class HashStatus(str, Enum):
    """Outcome of a digest or HMAC computation."""
    OK = "ok"
    UNSUPPORTED = "unsupported"


class TokenState(str, Enum):
    """Anti-forgery token verification outcome."""
    VALID = "valid"
    VALID_EXPIRING = "valid_expiring"
    INVALID = "invalid"

    @property
    def accepted(self) -> bool:
        return self is not TokenState.INVALID


class HashResult(BaseModel):
    """Typed result of a digest/HMAC computation."""

    model_config = ConfigDict(frozen=True)

    status: HashStatus
    algorithm: str
    value: Optional[str] = None

    @classmethod
    def ok(cls, algorithm: str, value: str) -> "HashResult":
        return cls(status=HashStatus.OK, algorithm=algorithm, value=value)

    @classmethod
    def unsupported(cls, algorithm: str) -> "HashResult":
        return cls(status=HashStatus.UNSUPPORTED, algorithm=algorithm)

    @property
    def is_ok(self) -> bool:
        return self.status is HashStatus.OK

    def value_or_none(self) -> Optional[str]:
        """Collapse to the public soft-failure form."""
        return self.value if self.is_ok else None
