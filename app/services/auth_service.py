# app/services/auth_service.py
"""
Role-based access guard for all agency routes.

Tokens are issued by the external identity provider (Cognito user pool);
the agency roles travel in the `cognito:groups` claim (see ROLE_CLAIM).
When JWT_SECRET is unset the token is only decoded structurally, which is
how the registry has always run behind the identity provider. Setting
JWT_SECRET turns on signature verification.

Usage in a router:
    @router.put("/...", dependencies=[Depends(require_roles(Role.ONT))])
"""

from dataclasses import dataclass, field
from typing import Optional

import jwt
from fastapi import HTTPException, Request, status

from app.config import settings
from app.utils.logger import get_logger

logger = get_logger(__name__)

BEARER_PREFIX = "Bearer "


class Role:
    DOUANE = "DOUANE"          # customs
    ONT = "ONT"                # national transport office (carte grise)
    ASSURANCE = "ASSURANCE"    # insurance bureaus
    MAIRIE = "MAIRIE"          # municipal tax office (vignette)
    MTS = "MTS"                # technical inspection
    POLICE = "POLICE"
    ETAT = "ETAT"              # central state dashboard


@dataclass
class CallerIdentity:
    username: Optional[str]
    roles: set[str] = field(default_factory=set)


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Return the raw token from an `Authorization: Bearer <token>` header, or 401."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication token missing",
            headers={"WWW-Authenticate": "Bearer"},
        )
    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication token missing",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token


def decode_claims(token: str) -> dict:
    """Decode the token payload. Verifies the signature only when JWT_SECRET is set."""
    try:
        if settings.JWT_SECRET:
            return jwt.decode(
                token,
                settings.JWT_SECRET,
                algorithms=settings.JWT_ALGORITHMS,
                options={"verify_aud": False},
            )
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as e:
        logger.warning(f"[AUTH] Rejected token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )


def roles_from_claims(claims: dict) -> set[str]:
    raw = claims.get(settings.ROLE_CLAIM) or []
    if isinstance(raw, str):
        raw = [raw]
    return {str(r).upper() for r in raw}


def decode_roles(token: str) -> set[str]:
    return roles_from_claims(decode_claims(token))


def require_roles(*allowed_roles: str):
    """
    Build a dependency that lets the request through when the caller holds
    at least one of `allowed_roles`. With no roles, any valid token passes.
    """
    allowed = {r.upper() for r in allowed_roles}

    async def guard(request: Request) -> CallerIdentity:
        token = extract_bearer_token(request.headers.get("Authorization"))
        claims = decode_claims(token)
        roles = roles_from_claims(claims)
        caller = CallerIdentity(
            username=claims.get("cognito:username") or claims.get("username") or claims.get("sub"),
            roles=roles,
        )
        if allowed and not (roles & allowed):
            logger.warning(
                f"[AUTH] {caller.username} roles={sorted(roles)} denied on "
                f"{request.method} {request.url.path} (needs {sorted(allowed)})"
            )
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permission denied")
        return caller

    return guard


# Any authenticated caller, regardless of agency
require_authenticated = require_roles()
