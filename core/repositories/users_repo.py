"""Profiles repository: session actor lookup and back-office user management."""
from typing import Any, Dict, Optional

from core.exceptions import NotFoundError
from core.observability import get_logger
from core.pagination import Page, PageRequest
from core.queries import ListQuery
from core.repositories.base import BaseRepository

logger = get_logger(__name__)

USER_SORTS = ("created_at", "full_name", "email", "role")


class UsersRepository(BaseRepository):
    """Repository for profiles."""

    async def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Profile of a session actor, or None when the profile is gone."""
        return await self.fetch_one(
            self.table("profiles").select("id, email, full_name, role").eq("id", user_id).maybe_single(),
            "get_profile",
            "profiles",
        )

    async def get_user(self, user_id: str) -> Dict[str, Any]:
        profile = await self.fetch_one(
            self.table("profiles").select("*").eq("id", user_id).maybe_single(),
            "get_user",
            "profiles",
        )
        if profile is None:
            raise NotFoundError("User not found")
        return profile

    async def list_users(
        self,
        request: PageRequest,
        term: str = "",
        role: Optional[str] = None,
        sort: str = "created_at",
        descending: bool = True,
    ) -> Page:
        return await (
            ListQuery("profiles", request)
            .search(["full_name", "email"], term)
            .where("role", role)
            .order_by(sort, descending)
            .fetch(self.client)
        )

    async def set_role(self, user_id: str, role: str, changed_by: str) -> Dict[str, Any]:
        """Set a profile's role. Callers check escalation rights first."""
        row = await self.update_by_id("profiles", user_id, {"role": role}, not_found="User not found")
        logger.info(
            "User role changed",
            extra={"target_user_id": user_id, "role": role, "changed_by": changed_by},
        )
        return row
