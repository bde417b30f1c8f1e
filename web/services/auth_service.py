"""
Session and password authentication service.

Sessions are itsdangerous-signed cookies carrying only the actor id; the role
is looked up from profiles on every request so role changes apply at once.
"""
import logging
from typing import Any, Dict, Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from supabase import AuthError

from core.config import config
from core.exceptions import AuthenticationError
from core.models import Actor
from core.repositories.users_repo import UsersRepository
from core.store import create_auth_client
from web.config import SESSION_MAX_AGE

logger = logging.getLogger(__name__)

SECRET_KEY = config.web.secret_key
if not SECRET_KEY:
    raise RuntimeError("SESSION_SECRET_KEY must be set")
session_serializer = URLSafeTimedSerializer(SECRET_KEY, salt="storefront-session")


def create_session(user_id: str) -> str:
    """Sign a session token for an actor id."""
    return session_serializer.dumps({"user_id": user_id})


def read_session(token: Optional[str]) -> Optional[str]:
    """
    Verify a session token.

    Returns:
        The actor id, or None if the token is missing, tampered with, or expired
    """
    if not token:
        return None
    try:
        data = session_serializer.loads(token, max_age=SESSION_MAX_AGE)
    except SignatureExpired:
        logger.info("Expired session cookie")
        return None
    except BadSignature:
        logger.warning("Invalid session signature")
        return None
    if not isinstance(data, dict):
        return None
    return data.get("user_id") or None


async def resolve_actor(client, user_id: Optional[str]) -> Optional[Actor]:
    """Load the actor behind a session; None when its profile no longer exists."""
    if not user_id:
        return None
    profile = await UsersRepository(client).get_profile(user_id)
    if not profile:
        logger.info(f"Session for unknown profile {user_id}")
        return None
    return Actor(
        id=profile["id"],
        role=profile.get("role") or "user",
        email=profile.get("email"),
        full_name=profile.get("full_name"),
    )


async def sign_in_with_password(email: str, password: str) -> Dict[str, Any]:
    """
    Check credentials against the auth service.

    A throwaway anon-key client performs the sign-in so the shared service
    client never switches to a user token.

    Returns:
        {"id": ..., "email": ...} for the signed-in user

    Raises:
        AuthenticationError: If the credentials are rejected
    """
    auth_client = await create_auth_client()
    try:
        result = await auth_client.auth.sign_in_with_password({"email": email, "password": password})
    except AuthError as e:
        logger.info(f"Password sign-in rejected for {email}: {e.message}")
        raise AuthenticationError("Invalid email or password")
    finally:
        await auth_client.postgrest.aclose()

    user = result.user
    if user is None:
        raise AuthenticationError("Invalid email or password")
    return {"id": user.id, "email": user.email}
