"""Login, profile refresh and logout flows on top of the session store."""
from typing import Optional

from mall_client.api.admin import AdminApi
from mall_client.api.users import UserApi
from mall_client.errors import ApiError, AuthenticationError
from mall_client.logging import get_logger
from .models import LoginResult, UserProfile
from .session import SessionStore

logger = get_logger(__name__)


class AuthService:
    """
    Ties the user/admin endpoints to the session store.

    Usage:
        auth = AuthService(session, UserApi(pipeline))
        await auth.login_by_phone("13800000000", "123456")
        await auth.restore()   # on startup
    """

    def __init__(self, session: SessionStore, users: UserApi, admin: Optional[AdminApi] = None):
        self._session = session
        self._users = users
        self._admin = admin

    async def _complete_login(self, result: LoginResult) -> UserProfile:
        if result.user is not None:
            self._session.login(result.token, result.user)
            return result.user
        # Login payload carried only a token
        self._session.set_token(result.token)
        return await self.refresh_profile()

    async def login_by_phone(self, phone: str, code: str) -> UserProfile:
        result = await self._users.login_by_phone(phone, code)
        return await self._complete_login(result)

    async def login_by_wechat(self, code: str) -> UserProfile:
        result = await self._users.login_by_wechat(code)
        return await self._complete_login(result)

    async def admin_login(self, username: str, password: str) -> UserProfile:
        if self._admin is None:
            raise RuntimeError("AuthService was built without an AdminApi")
        result = await self._admin.login(username, password)
        self._session.set_token(result.token)
        return await self.refresh_profile()

    async def refresh_profile(self) -> UserProfile:
        """
        Fetch the current user into the session.

        Any API failure ends the session before the error is re-raised.
        """
        try:
            if self._admin is not None:
                profile = await self._admin.get_user_info()
            else:
                profile = await self._users.get_profile()
        except ApiError:
            self._session.logout()
            raise
        self._session.set_profile(profile)
        return profile

    async def update_profile(self, **fields) -> UserProfile:
        """Save profile fields remotely, then merge them into the cache."""
        profile = await self._users.update_profile(**fields)
        self._session.update_profile(**profile.model_dump(exclude_unset=True))
        return profile

    async def restore(self) -> Optional[UserProfile]:
        """
        Re-validate a token restored from storage.

        Authentication failures leave the session logged out; transient
        failures keep the cached profile so the app works offline.
        """
        if not self._session.is_logged_in:
            return None
        try:
            if self._admin is not None:
                profile = await self._admin.get_user_info()
            else:
                profile = await self._users.get_profile()
        except AuthenticationError:
            logger.info("Stored session is no longer valid")
            return None
        except ApiError as e:
            logger.warning("Could not refresh profile, keeping cached copy: %s", e)
            return self._session.profile
        self._session.set_profile(profile)
        return profile

    async def logout(self) -> None:
        """Best-effort remote logout; the local session is always cleared."""
        try:
            if self._admin is not None and self._session.is_logged_in:
                await self._admin.logout()
        except ApiError as e:
            logger.warning("Remote logout failed: %s", e)
        finally:
            self._session.logout()
