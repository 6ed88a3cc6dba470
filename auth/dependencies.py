"""
auth/dependencies.py -- FastAPI Depends() helpers for bearer authentication.

Protected routes accept exactly one credential: the
`Authorization: Bearer <token>` header minted by /signup, /signin or
/google-auth. Only the token's subject (the account id) is trusted; route
handlers fetch anything else they need from the store.

Missing and invalid tokens are indistinguishable to the client: both raise
InvalidToken ("Access token is required", HTTP 403).

Layer rule: no imports from api/, blog/, or media/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.tokens import verify_access_token


def bearer_token(request: Request) -> str | None:
    """Return the raw token from the Authorization header, or None."""
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_account_id(request: Request) -> int:
    """Require a valid bearer token and return its account id.

    Use as a FastAPI dependency:
        @router.post("/create-blog")
        def route(account_id: int = Depends(get_current_account_id)): ...
    """
    return verify_access_token(bearer_token(request))
