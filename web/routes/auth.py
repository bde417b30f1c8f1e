"""
Authentication routes and the access-control gate.

Every protected route declares the roles it accepts through require_role;
the dependency rejects before the handler body runs.
"""
import logging
from typing import Callable, Iterable, Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import ORJSONResponse

from core.exceptions import AuthenticationError, AuthorizationError
from core.models import Actor
from core.permissions import ADMIN_ROLES, ANY_ROLE, Role, is_allowed
from core.store import get_client
from web.config import COOKIE_SECURE, SESSION_COOKIE, SESSION_MAX_AGE
from web.schemas import LoginRequest
from web.services.auth_service import (
    create_session,
    read_session,
    resolve_actor,
    sign_in_with_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


async def get_current_actor(request: Request, client=Depends(get_client)) -> Optional[Actor]:
    """
    Resolve the caller from the session cookie.

    Returns None for anonymous callers, bad signatures, and sessions whose
    profile has been removed.
    """
    user_id = read_session(request.cookies.get(SESSION_COOKIE))
    return await resolve_actor(client, user_id)


def require_role(
    *roles: Role,
    deny_status: int = 401,
    deny_message: str = "Unauthorized",
) -> Callable:
    """
    FastAPI dependency factory for role-based access control.

    Usage:
        @router.get("/admin/orders")
        async def list_orders(actor: Actor = Depends(require_role(Role.ADMIN, Role.SUPER_ADMIN))):
            ...

    Args:
        roles: Roles allowed to proceed
        deny_status: Status for an authenticated actor outside the allowed roles
        deny_message: Error message for that rejection
    """
    allowed = frozenset(roles)

    async def check_role(actor: Optional[Actor] = Depends(get_current_actor)) -> Actor:
        if actor is None:
            raise AuthenticationError()
        if not is_allowed(actor.role, allowed):
            logger.info(
                f"Access denied for {actor.id}",
                extra={"role": actor.role, "allowed": sorted(r.value for r in allowed)},
            )
            raise AuthorizationError(deny_message, status_code=deny_status)
        return actor

    return check_role


def _roles(values: Iterable[Role]) -> tuple:
    return tuple(sorted(values, key=lambda r: r.value))


# Back-office routes answer 401 for every rejection
require_admin = require_role(*_roles(ADMIN_ROLES))

# Analytics administration tells "not signed in" (401) from "not an admin" (403)
require_admin_forbidden = require_role(*_roles(ADMIN_ROLES), deny_status=403, deny_message="Forbidden")

# Any signed-in actor
require_user = require_role(*_roles(ANY_ROLE))


@router.post("/auth/login")
async def login(body: LoginRequest, client=Depends(get_client)):
    """Password sign-in; sets the signed session cookie."""
    user = await sign_in_with_password(body.email.strip(), body.password)
    actor = await resolve_actor(client, user["id"])
    if actor is None:
        raise AuthenticationError("Profile not found")

    response = ORJSONResponse({"ok": True, "user": actor.to_dict()})
    response.set_cookie(
        key=SESSION_COOKIE,
        value=create_session(actor.id),
        max_age=SESSION_MAX_AGE,
        httponly=True,
        samesite="lax",
        secure=COOKIE_SECURE,
    )
    logger.info(f"User {actor.id} logged in", extra={"role": actor.role})
    return response


@router.post("/auth/logout")
async def logout(response: Response):
    """Log out by clearing the session cookie."""
    response.delete_cookie(SESSION_COOKIE)
    return {"ok": True}


@router.get("/api/me")
async def get_current_user_info(actor: Actor = Depends(require_user)):
    """Current actor with role."""
    return {"user": actor.to_dict()}
