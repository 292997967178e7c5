"""
Authentication Service
Sign-in, sign-out and session restore for the store client
"""

from typing import Any, Dict, Optional, Tuple, Union
from pathlib import Path
import os
import pydantic

from storeapp.api.client import StoreApiClient
from storeapp.core.config import settings
from storeapp.core.exceptions import (
    InsufficientPermissionsError, SessionError, StoreAppException, ValidationError
)
from storeapp.core.logging import get_logger
from storeapp.schemas.auth import LoginRequest, LoginResponse, UserProfile

logger = get_logger("security")

SESSION_EXPIRED = "Session expired. Please sign in again."
ADMIN_PORTAL_DENIED = "Only Admin, CEO or COO can use the admin portal"
SIGN_IN_FAILED = "Unable to sign in"

LOGIN_MODES = ("admin", "user")


class TokenStore:
    """Keeps the session token on disk between runs"""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path or settings.TOKEN_STORE_PATH).expanduser()

    def load(self) -> Optional[str]:
        try:
            token = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        return token or None

    def save(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(token, encoding="utf-8")
        os.chmod(self.path, 0o600)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class AuthService:
    """Service for the signed-in session"""

    def __init__(self, client: StoreApiClient, token_store: Optional[TokenStore] = None):
        self.client = client
        self.token_store = token_store or TokenStore()
        self.token: Optional[str] = None
        self.current_user: Optional[UserProfile] = None
        self.admin_login_error = ""
        self.user_login_error = ""
        self.checking_session = False
        # Bumped whenever a new authenticated session begins
        self.data_version = 0

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token and self.current_user)

    @property
    def role(self) -> Optional[str]:
        return self.current_user.role if self.current_user else None

    def can_use_admin_portal(self) -> bool:
        return self.role in settings.ADMIN_PORTAL_ROLES

    def require_token(self) -> str:
        if not self.token:
            raise SessionError("Not signed in")
        return self.token

    async def restore_session(self) -> Tuple[bool, Any]:
        """
        Validate a previously stored token
        Returns (success, user_or_message); no stored token is (False, None)
        """
        self.checking_session = True
        self.admin_login_error = ""
        self.user_login_error = ""

        stored = self.token_store.load()
        if not stored:
            self.checking_session = False
            return False, None

        try:
            data = await self.client.session(stored)
            user = UserProfile.model_validate(data)
        except (StoreAppException, pydantic.ValidationError) as e:
            message = getattr(e, "message", None) or SESSION_EXPIRED
            logger.warning(f"Stored session rejected: {message}")
            self.token_store.clear()
            self.token = None
            self.current_user = None
            self.admin_login_error = message
            self.user_login_error = message
            self.checking_session = False
            return False, message

        self._start_session(stored, user)
        self.checking_session = False
        logger.info(f"Session restored for {user.email or user.id}")
        return True, user

    async def login(
        self,
        mode: str,
        credentials: Union[LoginRequest, Dict[str, Any]]
    ) -> Tuple[bool, Any]:
        """
        Sign in through the admin portal or the user workspace
        Returns (success, user_or_message)
        """
        if mode not in LOGIN_MODES:
            raise ValidationError(f"Unknown login mode: {mode}")
        self._set_login_error(mode, "")

        try:
            if not isinstance(credentials, LoginRequest):
                credentials = LoginRequest.model_validate(credentials)
            data = await self.client.login(credentials.to_payload())
            response = LoginResponse.model_validate(data)
            if mode == "admin" and (
                response.user is None or response.user.role not in settings.ADMIN_PORTAL_ROLES
            ):
                raise InsufficientPermissionsError(ADMIN_PORTAL_DENIED)
        except pydantic.ValidationError:
            message = SIGN_IN_FAILED
            self._set_login_error(mode, message)
            logger.warning(f"{mode} sign-in failed: malformed credentials or response")
            return False, message
        except StoreAppException as e:
            message = e.message or SIGN_IN_FAILED
            self._set_login_error(mode, message)
            logger.warning(f"{mode} sign-in failed for {credentials.email}: {message}")
            return False, message

        self.token_store.save(response.token)
        self._start_session(response.token, response.user)
        self.admin_login_error = ""
        self.user_login_error = ""
        logger.info(f"{mode} sign-in for {credentials.email}")
        return True, response.user

    async def logout(self) -> Tuple[bool, Optional[str]]:
        """
        Sign out; local state is reset whatever the backend answers
        """
        token = self.token
        result: Tuple[bool, Optional[str]] = (True, None)
        if token:
            try:
                await self.client.logout(token)
            except StoreAppException as e:
                logger.warning(f"Sign-out request failed: {e.message}")
                result = (False, e.message or "Unable to sign out")

        self.token_store.clear()
        self.token = None
        self.current_user = None
        self.admin_login_error = ""
        self.user_login_error = ""
        self.checking_session = False
        logger.info("Signed out")
        return result

    def _start_session(self, token: str, user: Optional[UserProfile]) -> None:
        self.token = token
        self.current_user = user
        self.data_version += 1

    def _set_login_error(self, mode: str, message: str) -> None:
        if mode == "admin":
            self.admin_login_error = message
        else:
            self.user_login_error = message
