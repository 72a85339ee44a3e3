"""
Anti-forgery tokens scoped to an action label.

Tokens are compact JWTs signed with a key derived from the site secret.
The action label and optional subject (user or session id) are embedded
only as keyed hashes, so a token does not reveal what it authorizes.

Freshness follows a two-window scheme: a token is VALID during the first
half of its lifetime, VALID_EXPIRING during the second half, and INVALID
once the lifetime has elapsed.

Claims:
- act: HMAC-SHA256(token_key, action) hex
- sbj: HMAC-SHA256(token_key, subject) hex
- iat: issue time (unix seconds)
- exp: iat + lifetime
- jti: random nonce so two tokens issued in the same second differ
"""

import hmac
import hashlib
import logging
import secrets
import time
from typing import Callable, Optional

from jose import JWTError, jwt

from hashgate.app.models.hashing import TokenState
from hashgate.app.services.hashing import constant_time_equals

logger = logging.getLogger(__name__)

TOKEN_KEY_PURPOSE = b"hashgate.anti-forgery.v1"

# Tolerated clock skew for tokens stamped slightly in the future
CLOCK_SKEW_SECONDS = 60


def derive_token_key(site_secret: bytes) -> str:
    """Derive the token signing key so it never equals the raw salt/HMAC default."""
    return hmac.new(site_secret, TOKEN_KEY_PURPOSE, hashlib.sha256).hexdigest()


class TokenPrimitive:
    """Issue and verify action-scoped anti-forgery tokens."""

    def __init__(
        self,
        site_secret: bytes,
        lifetime_seconds: int = 86400,
        algorithm: str = "HS256",
        clock: Optional[Callable[[], float]] = None,
    ):
        self._key = derive_token_key(site_secret)
        self._lifetime = lifetime_seconds
        self._algorithm = algorithm
        self._clock = clock or time.time

    def _bind(self, value: str) -> str:
        return hmac.new(self._key.encode("ascii"), value.encode("utf-8"), hashlib.sha256).hexdigest()

    def issue(self, action: str, subject: str = "") -> str:
        """
        Issue a token for ``action``.

        Args:
            action: Action label the token authorizes
            subject: Optional user/session identifier the token is bound to

        Returns:
            Signed token string
        """
        now = int(self._clock())
        claims = {
            "act": self._bind(action),
            "sbj": self._bind(subject),
            "iat": now,
            "exp": now + self._lifetime,
            "jti": secrets.token_urlsafe(8),
        }
        return jwt.encode(claims, self._key, algorithm=self._algorithm)

    def verify(self, token: str, action: str, subject: str = "") -> TokenState:
        """
        Check a token against ``action`` and ``subject``.

        Returns:
            TokenState.VALID, TokenState.VALID_EXPIRING or TokenState.INVALID
        """
        if not isinstance(token, str) or not token:
            logger.debug("Token rejected for action %r: empty token", action)
            return TokenState.INVALID

        try:
            claims = jwt.decode(
                token,
                self._key,
                algorithms=[self._algorithm],
                options={
                    "verify_signature": True,
                    # iat/exp are evaluated below against the injected clock;
                    # jose turns require_exp into a wall-clock expiry check
                    "verify_exp": False,
                },
            )
        except JWTError as e:
            logger.debug("Token rejected for action %r: %s", action, type(e).__name__)
            return TokenState.INVALID

        bound_action = claims.get("act")
        bound_subject = claims.get("sbj")
        if not isinstance(bound_action, str) or not isinstance(bound_subject, str):
            logger.debug("Token rejected for action %r: malformed claims", action)
            return TokenState.INVALID

        action_ok = constant_time_equals(bound_action, self._bind(action))
        subject_ok = constant_time_equals(bound_subject, self._bind(subject))
        if not (action_ok and subject_ok):
            logger.debug("Token rejected for action %r: scope mismatch", action)
            return TokenState.INVALID

        return self._freshness(claims.get("iat"), claims.get("exp"), action)

    def _freshness(self, issued_at, expires_at, action: str) -> TokenState:
        for stamp in (issued_at, expires_at):
            if not isinstance(stamp, int) or isinstance(stamp, bool):
                logger.debug("Token rejected for action %r: missing or malformed timestamps", action)
                return TokenState.INVALID

        now = self._clock()
        if issued_at > now + CLOCK_SKEW_SECONDS:
            logger.debug("Token rejected for action %r: issued in the future", action)
            return TokenState.INVALID
        if now >= expires_at:
            logger.debug("Token rejected for action %r: expired", action)
            return TokenState.INVALID

        halfway = issued_at + (expires_at - issued_at) / 2
        if now <= halfway:
            return TokenState.VALID
        return TokenState.VALID_EXPIRING
