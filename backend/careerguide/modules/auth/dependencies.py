from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Callable, Iterable, Optional

from careerguide.core.exceptions import InvalidTokenError, MissingTokenError, RoleNotAllowedError
from careerguide.core.logging_config import logger, set_user_id
from careerguide.schemas.auth import Principal
from careerguide.schemas.enums import Role
from careerguide.services.firebase import get_identity_provider
from careerguide.services.store import IdentityProvider

# auto_error=False so a missing header becomes our 401 envelope instead of FastAPI's 403
security = HTTPBearer(auto_error=False)


async def authenticate(
    token: Optional[str],
    identity: IdentityProvider,
    allowed_roles: Iterable[str],
) -> Principal:
    """Verify a bearer token and check its role claim against the allow-list"""
    if not token:
        raise MissingTokenError()

    try:
        claims = await identity.verify_id_token(token)
    except Exception as e:
        logger.log_auth_event("verify_token", success=False, reason=str(e))
        raise InvalidTokenError()

    principal = Principal.from_claims(claims)
    allowed = [r.value if isinstance(r, Role) else r for r in allowed_roles]
    if principal.role not in allowed:
        logger.log_auth_event(
            "role_check", success=False, user_email=principal.email,
            reason=f"role {principal.role!r} not in {allowed}"
        )
        raise RoleNotAllowedError(principal.role, allowed)

    set_user_id(principal.uid, principal.role)
    return principal


def require_roles(*roles: Role, allow_query_token: bool = False) -> Callable:
    """Dependency factory gating an endpoint to the given roles

    Streaming endpoints pass allow_query_token=True since EventSource
    cannot set headers; the token then comes from `?token=`.
    """

    async def dependency(
        request: Request,
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
        identity: IdentityProvider = Depends(get_identity_provider),
    ) -> Principal:
        token = credentials.credentials if credentials else None
        if not token and allow_query_token:
            token = request.query_params.get("token")
        return await authenticate(token, identity, roles)

    return dependency


get_current_student = require_roles(Role.STUDENT)
get_current_institution = require_roles(Role.INSTITUTION)
get_current_company = require_roles(Role.COMPANY)
