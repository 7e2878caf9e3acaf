# src/weekly_planner/auth/local_provider.py

from __future__ import annotations

import contextlib
import hashlib
import hmac
import json
import logging
import os
import time
import uuid
from collections.abc import Callable
from pathlib import Path
from typing import Any

from ..core.errors import IdentityProviderError
from ..core.ports import AuthStateCallback, Identity

logger = logging.getLogger(__name__)


def _sign(user_id: str, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), user_id.encode("utf-8"), hashlib.sha256).hexdigest()


def mint_custom_token(user_id: str, secret: str) -> str:
    """Issue a token accepted by LocalIdentityProvider.sign_in_with_token."""
    if not user_id:
        raise ValueError("user_id is required")
    if not secret:
        raise ValueError("secret is required")
    return f"{user_id}.{_sign(user_id, secret)}"


def _load_json(path: Path) -> dict[str, Any]:
    raw = path.read_text("utf-8")
    val = json.loads(raw)
    if isinstance(val, dict):
        return val
    raise ValueError("Expected JSON object")


def _atomic_write_json(path: Path, data: dict[str, Any]) -> None:
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps(data, ensure_ascii=False), "utf-8")
    os.replace(tmp, path)
    with contextlib.suppress(Exception):
        # Best-effort: not critical on Windows or restricted FS.
        os.chmod(path, 0o600)


class LocalIdentityProvider:
    """
    File-backed identity provider.

    Why we persist session.json:
    - it lets the next run resume the same user id (and so the same document),
    - it is the local equivalent of a remembered auth session.

    Custom tokens are "<user_id>.<hex HMAC-SHA256(secret, user_id)>".
    """

    def __init__(self, session_path: str | Path, *, auth_secret: str | None = None) -> None:
        self._session_path = Path(session_path)
        self._secret = auth_secret or None
        self._user_id: str | None = None
        self._observers: list[AuthStateCallback] = []

    @property
    def current_user(self) -> str | None:
        return self._user_id

    async def restore(self) -> str | None:
        if not self._session_path.exists():
            return None
        try:
            data = _load_json(self._session_path)
            user_id = str(data.get("user_id") or "").strip()
            if not user_id:
                raise ValueError("session.json is missing user_id")
            if "/" in user_id:
                raise ValueError(f"session.json has an invalid user_id: {user_id!r}")
        except Exception as e:
            logger.warning("Failed to restore session from %s: %r", self._session_path, e)
            return None

        self._set_user(user_id)
        return user_id

    async def sign_in_with_token(self, token: str) -> Identity:
        if not self._secret:
            raise IdentityProviderError("custom tokens are not enabled (no auth secret configured)")

        user_id, sep, signature = (token or "").strip().rpartition(".")
        if not sep or not user_id or not signature or "/" in user_id:
            raise IdentityProviderError("malformed custom token")
        if not hmac.compare_digest(signature, _sign(user_id, self._secret)):
            raise IdentityProviderError("custom token signature mismatch")

        return self._complete_sign_in(user_id, "token")

    async def sign_in_anonymously(self) -> Identity:
        return self._complete_sign_in(f"anon-{uuid.uuid4().hex}", "anonymous")

    async def sign_out(self) -> None:
        with contextlib.suppress(FileNotFoundError):
            self._session_path.unlink()
        logger.info("Signed out user=%s", self._user_id)
        self._set_user(None)

    def on_auth_state_changed(self, callback: AuthStateCallback) -> Callable[[], None]:
        self._observers.append(callback)
        callback(self._user_id)

        def unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._observers.remove(callback)

        return unsubscribe

    # ---- internals ----

    def _complete_sign_in(self, user_id: str, method: str) -> Identity:
        session_data = {"user_id": user_id, "method": method, "created_at": time.time()}
        try:
            self._session_path.parent.mkdir(parents=True, exist_ok=True)
            _atomic_write_json(self._session_path, session_data)
        except OSError as e:
            raise IdentityProviderError(f"failed to persist session: {e!r}") from e

        logger.debug("Session saved to %s (user=%s)", self._session_path, user_id)
        self._set_user(user_id)
        return Identity(user_id=user_id, method=method)

    def _set_user(self, user_id: str | None) -> None:
        self._user_id = user_id
        for cb in list(self._observers):
            try:
                cb(user_id)
            except Exception:
                logger.exception("Auth state observer failed.")
