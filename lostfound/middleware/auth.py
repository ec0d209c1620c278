"""
Lost & Found API — Authorization gate

Routes pick one of three gates:
  Public        : no dependency, handler always runs
  Authenticated : Depends(require_principal): valid Bearer token required
  Role-gated    : Depends(admin_only) / Depends(guard_and_admin): runs the
                  authenticated gate first, then checks the role

A request is rejected at the first failing check: missing header → 401,
invalid token → 401, role outside the allowed set → 403. An
authentication failure is never reported as 403.
"""
from fastapi import Depends, Request

from lostfound.core.errors import Forbidden, Unauthorized
from lostfound.core.security import Principal, TokenCodec, TokenError, TokenExpired
from lostfound.models.enums import Role

BEARER_PREFIX = "Bearer "


def authenticate(authorization: str | None, codec: TokenCodec) -> Principal:
    """Turn an Authorization header value into a Principal or raise Unauthorized."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise Unauthorized("Unauthorized: Missing or invalid authorization token")

    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise Unauthorized("Unauthorized: Missing or invalid authorization token")

    try:
        return codec.validate(token)
    except TokenExpired:
        raise Unauthorized("Unauthorized: Token has expired")
    except TokenError:
        raise Unauthorized("Unauthorized: Invalid token")


def check_role(principal: Principal | None, allowed: frozenset[Role], denial: str) -> Principal:
    if principal is None:
        raise Unauthorized("Unauthorized: Authentication required")
    if principal.role not in allowed:
        raise Forbidden(denial)
    return principal


async def require_principal(request: Request) -> Principal:
    """
    Validates the Bearer token and attaches the principal to request.state.
    """
    principal = authenticate(request.headers.get("Authorization"), request.app.state.token_codec)
    request.state.principal = principal
    return principal


class RoleGate:
    """Dependency allowing only principals whose role is in `roles`."""

    def __init__(self, *roles: Role, denial: str):
        self.roles = frozenset(roles)
        self.denial = denial

    async def __call__(self, principal: Principal = Depends(require_principal)) -> Principal:
        return check_role(principal, self.roles, self.denial)


admin_only = RoleGate(Role.ADMIN, denial="Forbidden: Admin access required")
guard_and_admin = RoleGate(Role.GUARD, Role.ADMIN, denial="Forbidden: Guard or admin access required")
