# src/weekly_planner/auth/identity.py

"""
Identity bootstrap.

Runs once per process before any data access:
  resume existing session -> custom token sign-in (if a token was supplied) -> anonymous sign-in

Exactly one step succeeds and yields the user id; if even anonymous sign-in fails
an AuthError is raised and nothing is retried.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import StrEnum

from ..core.errors import AuthError
from ..core.ports import IdentityProvider

logger = logging.getLogger(__name__)


class AuthMethod(StrEnum):
    RESUMED = "resumed"
    TOKEN = "token"
    ANONYMOUS = "anonymous"


@dataclass(frozen=True, slots=True)
class Session:
    user_id: str
    method: AuthMethod
    auth_ready: bool = True


class IdentityBootstrap:
    def __init__(self, provider: IdentityProvider, *, initial_auth_token: str | None = None) -> None:
        self._provider = provider
        self._token = (initial_auth_token or "").strip() or None
        self._session: Session | None = None
        self._lock = asyncio.Lock()

    @property
    def session(self) -> Session | None:
        return self._session

    async def establish(self) -> Session:
        async with self._lock:
            if self._session is None:
                self._session = await self._establish()
            return self._session

    async def _establish(self) -> Session:
        try:
            user_id = await self._provider.restore()
        except Exception:
            logger.exception("Session restore failed; signing in again.")
            user_id = None

        if user_id:
            logger.info("Resumed session user=%s", user_id)
            return Session(user_id=user_id, method=AuthMethod.RESUMED)

        if self._token:
            try:
                ident = await self._provider.sign_in_with_token(self._token)
                logger.info("Signed in with custom token user=%s", ident.user_id)
                return Session(user_id=ident.user_id, method=AuthMethod.TOKEN)
            except Exception:
                logger.exception("Custom token sign-in failed; falling back to anonymous.")

        try:
            ident = await self._provider.sign_in_anonymously()
        except Exception as e:
            logger.exception("Anonymous sign-in failed.")
            raise AuthError() from e

        logger.info("Signed in anonymously user=%s", ident.user_id)
        return Session(user_id=ident.user_id, method=AuthMethod.ANONYMOUS)
