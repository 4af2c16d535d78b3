# app/core/auth.py
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError

from app.core.config import get_settings

settings = get_settings()

# HTTP Bearer scheme:
# - auto_error=False => we raise our own 401 with a consistent message
bearer_scheme = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a Supabase access token (JWT).

    Verification:
      - signature (HS256 using SUPABASE_JWT_SECRET)
      - expiration time (exp)
      - audience is NOT verified (Supabase 'aud' may vary)

    Args:
        token: raw JWT from the Authorization header.

    Returns:
        Decoded JWT claims.

    Raises:
        HTTPException(401): if token is invalid/expired.
    """
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.SUPABASE_JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def get_token_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> dict[str, Any]:
    """
    Resolve and verify the JWT claims of the caller.

    Raises:
        HTTPException(401): if no Authorization header is present.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return decode_access_token(credentials.credentials)


def require_user_id(claims: dict[str, Any] = Depends(get_token_claims)) -> str:
    """
    Enforce authentication and return the caller's user id.

    The id is the auth provider's `sub` claim and is used verbatim as
    `profiles.user_id` (no UUID coercion: Firebase-style uids are allowed).

    Raises:
        HTTPException(401): if the token carries no `sub`.
    """
    sub = claims.get("sub")
    if not sub:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing sub",
        )
    return str(sub)


def require_service_role(claims: dict[str, Any] = Depends(get_token_claims)) -> dict[str, Any]:
    """
    Enforce the Supabase service role.

    Bulk maintenance routes (QCS sync/diagnostics) are only callable by
    backend jobs holding the service role key.

    Raises:
        HTTPException(403): if the token's `role` claim is not service_role.
    """
    if claims.get("role") != "service_role":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Service role required",
        )
    return claims
