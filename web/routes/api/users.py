"""Admin user management and role endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from core.exceptions import AuthorizationError, ValidationError
from core.models import Actor
from core.permissions import ASSIGNABLE_ROLES, can_assign_role, get_all_roles
from core.repositories.orders_repo import OrdersRepository
from core.repositories.users_repo import USER_SORTS, UsersRepository
from core.store import get_client
from core.validators import is_descending, parse_filter, validate_search_term, validate_sort
from web.routes.auth import require_admin
from ._deps import limiter, page_request, read_json

router = APIRouter()
logger = logging.getLogger(__name__)


# ─── User Management ──────────────────────────────────────────────────────────

@router.get("/admin/users")
@limiter.limit("30/minute")
async def list_users(
    request: Request,
    q: Optional[str] = None,
    role: Optional[str] = None,
    sort: Optional[str] = None,
    order: Optional[str] = None,
    page: Optional[str] = None,
    page_size: Optional[str] = Query(None, alias="pageSize"),
    admin: Actor = Depends(require_admin),
    client=Depends(get_client),
):
    """List profiles (admin only). q matches full name or email."""
    role_filter = parse_filter(role)
    result = await UsersRepository(client).list_users(
        page_request(page, page_size),
        term=validate_search_term(q),
        role=role_filter if role_filter in ASSIGNABLE_ROLES else None,
        sort=validate_sort(sort, USER_SORTS),
        descending=is_descending(order),
    )
    return result.to_dict()


@router.get("/admin/users/{user_id}")
@limiter.limit("30/minute")
async def get_user(
    request: Request,
    user_id: str,
    admin: Actor = Depends(require_admin),
    client=Depends(get_client),
):
    """Get one profile with its most recent orders (admin only)."""
    profile = await UsersRepository(client).get_user(user_id)
    orders = await OrdersRepository(client).orders_for_user(user_id)
    return {"data": profile, "orders": orders}


@router.patch("/admin/users/{user_id}")
@limiter.limit("10/minute")
async def update_user_role(
    request: Request,
    user_id: str,
    admin: Actor = Depends(require_admin),
    client=Depends(get_client),
):
    """
    Change a profile's role.

    Only a super_admin may grant super_admin; the check happens before any write.
    """
    payload = await read_json(request)
    role = payload.get("role")
    if not isinstance(role, str) or role not in ASSIGNABLE_ROLES:
        raise ValidationError("role", "Invalid role", role)
    if not can_assign_role(admin.role, role):
        logger.warning(f"Role escalation to {role} refused for {admin.id}")
        raise AuthorizationError("Insufficient privileges")

    row = await UsersRepository(client).set_role(user_id, role, changed_by=admin.id)
    return {"data": row}


@router.get("/admin/roles")
@limiter.limit("30/minute")
async def list_roles(request: Request, admin: Actor = Depends(require_admin)):
    """Assignable roles with descriptions (admin only)."""
    return {"roles": get_all_roles()}
