"""
Anti-forgery guard for FastAPI routes.

Usage:
    @router.post("/posts/{post_id}/delete")
    async def delete_post(
        post_id: int,
        token_state: TokenState = Depends(require_token("delete-post")),
    ):
        ...

The token is read from a request header (X-CSRF-Token by default) and
checked against the action label with the default HashFacade. Tests and
host applications can swap the facade through
``app.dependency_overrides[get_facade]``.
"""

from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request, status

from hashgate.app.models.hashing import TokenState
from hashgate.app.services.facade import HashFacade, get_facade

DEFAULT_TOKEN_HEADER = "X-CSRF-Token"


def require_token(
    action: str,
    header: str = DEFAULT_TOKEN_HEADER,
    subject: Optional[Callable[[Request], str]] = None,
):
    """
    Dependency factory enforcing a valid anti-forgery token for ``action``.

    Args:
        action: Action label the token must have been issued for
        header: Request header carrying the token
        subject: Optional callable deriving the bound subject (user or
            session id) from the request

    Returns:
        Dependency function returning the TokenState on success
    """

    async def token_checker(
        request: Request,
        facade: HashFacade = Depends(get_facade),
    ) -> TokenState:
        token = request.headers.get(header)
        if not token:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "error": "missing_token",
                    "message": f"Anti-forgery token required in '{header}' header",
                },
            )

        bound_subject = subject(request) if subject is not None else ""
        state = facade.token_state(token, action, bound_subject)
        if not state.accepted:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "error": "invalid_token",
                    "message": f"Anti-forgery token is invalid or expired for action '{action}'",
                },
            )
        return state

    return token_checker
