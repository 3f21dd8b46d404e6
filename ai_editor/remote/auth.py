"""Resolvers for the signed-in user that scopes every remote project call."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import httpx
from pydantic import BaseModel
from supabase import AsyncClient, AuthError

logger = logging.getLogger(__name__)


class CurrentUser(BaseModel):
    id: str
    email: str | None = None


class UserResolver(ABC):
    """Source of the current user identity."""

    @abstractmethod
    async def get_current_user(self) -> CurrentUser | None:
        """Return the signed-in user, or None when there is no session."""
        ...


class StaticUserResolver(UserResolver):
    """Always resolves to the same user (or to nobody)."""

    def __init__(self, user: CurrentUser | None) -> None:
        self.user = user

    async def get_current_user(self) -> CurrentUser | None:
        return self.user


class SupabaseUserResolver(UserResolver):
    """Resolve the user behind an access token with Supabase Auth.

    Session expiry or any transport error resolves to None; the stores
    treat that exactly like a signed-out user.
    """

    def __init__(self, client: AsyncClient, access_token: str | None = None) -> None:
        self.client = client
        self.access_token = access_token

    async def get_current_user(self) -> CurrentUser | None:
        try:
            response = await self.client.auth.get_user(self.access_token)
        except (AuthError, httpx.HTTPError) as exc:
            logger.warning("[AUTH] failed to resolve user: %s", exc)
            return None
        if response is None or response.user is None:
            return None
        return CurrentUser(id=response.user.id, email=response.user.email)
