"""Bearer-token authentication for FastAPI.

Session tokens are RS256 JWTs verified against the identity provider's JWKS
endpoint. Only the caller's identity is established here; whether the caller
owns an athlete is checked by the services.
"""

from dataclasses import dataclass
from functools import lru_cache

import jwt as pyjwt
import structlog
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import PyJWKClient

from gridiron.core.config import get_settings

logger = structlog.get_logger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthenticatedUser:
    """Caller identity extracted from a verified session token."""

    user_id: str
    claims: dict


@lru_cache
def get_jwks_client() -> PyJWKClient:
    """Create a cached JWKS client for the configured endpoint."""
    settings = get_settings()
    if not settings.auth_jwks_url:
        raise RuntimeError("AUTH_JWKS_URL is not configured")
    return PyJWKClient(settings.auth_jwks_url, cache_keys=True, lifespan=300)


def decode_session_token(token: str) -> AuthenticatedUser:
    """Verify signature and timing claims of a session token.

    Raises ``HTTPException(401)`` on any validation failure.
    """
    try:
        signing_key = get_jwks_client().get_signing_key_from_jwt(token)
        payload = pyjwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            options={
                "verify_exp": True,
                "verify_nbf": True,
                "verify_aud": False,  # checked against settings in validate_claims
                "require": ["sub", "exp", "iat"],
            },
        )
    except pyjwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except pyjwt.MissingRequiredClaimError as exc:
        raise HTTPException(status_code=401, detail=f"Missing required claim: {exc}")
    except pyjwt.InvalidTokenError as exc:
        raise HTTPException(status_code=401, detail=f"Invalid token: {exc}")

    sub = payload.get("sub")
    if not sub:
        raise HTTPException(status_code=401, detail="Token missing sub claim")

    return AuthenticatedUser(user_id=sub, claims=payload)


def validate_claims(
    claims: dict,
    issuer: str,
    allowed_parties: list[str],
    allowed_audiences: list[str],
) -> None:
    """Check issuer, authorized party and (when configured) audience claims.

    Raises ``HTTPException(401)`` on mismatch.
    """
    if issuer and claims.get("iss") != issuer:
        raise HTTPException(status_code=401, detail="Invalid issuer (iss mismatch)")

    azp = claims.get("azp")
    if azp is not None and azp not in allowed_parties:
        raise HTTPException(status_code=401, detail="Unauthorized origin (azp mismatch)")

    if not allowed_audiences:
        return

    aud = claims.get("aud")
    if isinstance(aud, str):
        audiences = {aud}
    elif isinstance(aud, list) and all(isinstance(v, str) for v in aud):
        audiences = set(aud)
    else:
        raise HTTPException(status_code=401, detail="Missing or invalid aud claim")

    if not audiences.intersection(allowed_audiences):
        raise HTTPException(status_code=401, detail="Unauthorized audience (aud mismatch)")


async def require_auth(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> AuthenticatedUser:
    """FastAPI dependency that authenticates the caller.

    Usage::

        @router.get("/protected")
        async def protected(user: AuthenticatedUser = Depends(require_auth)):
            ...
    """
    if credentials is None:
        raise HTTPException(status_code=401, detail="Missing authorization header")

    user = decode_session_token(credentials.credentials)

    settings = get_settings()
    validate_claims(
        user.claims,
        issuer=settings.auth_issuer,
        allowed_parties=settings.auth_allowed_parties,
        allowed_audiences=settings.auth_allowed_audiences,
    )

    # Downstream error handlers log the caller
    request.state.user_id = user.user_id

    return user
