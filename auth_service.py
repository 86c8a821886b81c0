"""Supabase backed authentication and permission lookup."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from adapters.supabase_client import SupabaseClient
from exceptions import ControlPanelException
from permissions import resolve_permissions


class AuthError(RuntimeError):
    def __init__(self, message: str, status: int = 401, code: str = "AUTH_ERROR"):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code


@dataclass
class AuthContext:
    user: Dict[str, Any]
    profile: Optional[Dict[str, Any]]
    access_token: str
    permissions: Dict[str, bool] = field(default_factory=dict)

    @property
    def user_id(self) -> Optional[str]:
        return self.user.get("id")

    @property
    def role(self) -> str:
        return (self.profile or {}).get("role") or "user"

    @property
    def role_id(self) -> Optional[str]:
        return (self.profile or {}).get("role_id")

    @property
    def is_active(self) -> bool:
        return bool((self.profile or {}).get("is_active"))

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user": {"id": self.user_id, "email": self.user.get("email")},
            "profile": self.profile,
            "role": self.role,
            "is_active": self.is_active,
            "permissions": self.permissions,
        }


class SupabaseAuthService:
    """Resolves Supabase access tokens into users, profiles and permissions."""

    PROFILE_TABLE = "profiles"

    def __init__(self, supabase: SupabaseClient, roles_api=None):
        self._supabase = supabase
        self._roles_api = roles_api
        self.logger = logging.getLogger(self.__class__.__name__)

    @staticmethod
    def extract_token(headers, cookies, cookie_name: str = "sb-access-token") -> Optional[str]:
        """Bearer token first, then the session cookie."""
        auth_header = headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header[7:].strip()
            if token:
                return token
        token = cookies.get(cookie_name)
        return token or None

    async def get_profile(self, user_id: str, access_token: Optional[str] = None) -> Optional[Dict[str, Any]]:
        rows, _ = await self._supabase.select(
            self.PROFILE_TABLE,
            {"select": "*", "id": f"eq.{user_id}", "limit": "1"},
            access_token=access_token,
        )
        return rows[0] if rows else None

    async def get_permission_rows(self, role_id: Optional[str]) -> List[Dict[str, Any]]:
        if not role_id or self._roles_api is None:
            return []
        try:
            return await self._roles_api.get_permissions(role_id)
        except ControlPanelException as exc:
            # the role table still applies
            self.logger.warning(f"Loading permissions of role {role_id} failed: {exc.message}")
            return []

    async def resolve_access_token(self, token: Optional[str], with_permissions: bool = True) -> AuthContext:
        if not token:
            raise AuthError("Not authenticated", 401, "UNAUTHENTICATED")

        user = await self._supabase.get_user(token)
        if not user or not user.get("id"):
            raise AuthError("Invalid or expired session", 401, "INVALID_TOKEN")

        profile = await self.get_profile(user["id"], token)
        context = AuthContext(user=user, profile=profile, access_token=token)

        if with_permissions:
            rows = await self.get_permission_rows(context.role_id)
            context.permissions = resolve_permissions(context.role, context.role_id, rows)
        return context
