"""Session store: bearer token and cached profile, persisted across restarts."""
import threading
from typing import Any, Optional, Union

from pydantic import ValidationError

from mall_client.logging import get_logger, mask_token
from mall_client.storage import KeyValueStorage, StorageKeys
from .models import UserProfile

logger = get_logger(__name__)

DEFAULT_NICKNAME = "User"


class SessionStore:
    """
    Single source of truth for "am I authenticated".

    A profile is never held without a token: logout clears both, and a
    profile restored or set while logged out is discarded.
    """

    def __init__(self, storage: KeyValueStorage, keys: Optional[StorageKeys] = None):
        self._storage = storage
        self._keys = keys or StorageKeys()
        self._lock = threading.RLock()
        self._token: Optional[str] = None
        self._profile: Optional[UserProfile] = None
        # Set by expire(), cleared by the next login
        self._expiry_reported = False
        self._restore()

    def _restore(self) -> None:
        token = self._storage.get(self._keys.token)
        self._token = token if isinstance(token, str) and token else None

        raw_profile = self._storage.get(self._keys.user_info)
        if raw_profile is None:
            return
        if self._token is None:
            logger.warning("Dropping stored profile without a token")
            self._storage.remove(self._keys.user_info)
            return
        try:
            self._profile = UserProfile.model_validate(raw_profile)
        except ValidationError as e:
            logger.warning("Dropping unreadable stored profile: %s", e)
            self._storage.remove(self._keys.user_info)

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def profile(self) -> Optional[UserProfile]:
        return self._profile

    @property
    def is_logged_in(self) -> bool:
        return bool(self._token)

    @property
    def avatar(self) -> str:
        if self._profile and self._profile.avatar:
            return self._profile.avatar
        return ""

    @property
    def nickname(self) -> str:
        """Nickname, falling back to phone, then a generic label."""
        if self._profile:
            return self._profile.nickname or self._profile.phone or DEFAULT_NICKNAME
        return DEFAULT_NICKNAME

    def set_token(self, token: str) -> None:
        with self._lock:
            self._token = token or None
            if self._token:
                self._expiry_reported = False
                self._storage.set(self._keys.token, self._token)
            else:
                # No profile may outlive its token
                self._profile = None
                self._storage.remove(self._keys.token)
                self._storage.remove(self._keys.user_info)
            logger.debug("Session token set: %s", mask_token(self._token))

    def set_profile(self, profile: Union[UserProfile, dict, None]) -> None:
        with self._lock:
            if profile is not None and not self._token:
                logger.warning("Ignoring profile update while logged out")
                return
            if profile is None:
                self._profile = None
                self._storage.remove(self._keys.user_info)
                return
            if not isinstance(profile, UserProfile):
                try:
                    profile = UserProfile.model_validate(profile)
                except ValidationError as e:
                    logger.warning("Ignoring invalid profile: %s", e)
                    return
            self._profile = profile
            self._storage.set(self._keys.user_info, profile.model_dump(mode="json"))

    def login(self, token: str, profile: Union[UserProfile, dict, None]) -> None:
        with self._lock:
            self.set_token(token)
            self.set_profile(profile)
            logger.info("Logged in as %s", self.nickname)

    def logout(self) -> bool:
        """
        Clear token and profile together. Safe to call repeatedly.

        Returns:
            True if a session was actually ended by this call
        """
        with self._lock:
            had_session = self._token is not None or self._profile is not None
            self._token = None
            self._profile = None
            self._storage.remove(self._keys.token)
            self._storage.remove(self._keys.user_info)
            if had_session:
                logger.info("Session cleared")
            return had_session

    def update_profile(self, **fields: Any) -> None:
        """Merge fields into the cached profile; no-op when there is none."""
        with self._lock:
            if self._profile is None:
                return
            self.set_profile({**self._profile.model_dump(), **fields})

    def expire(self) -> bool:
        """
        End the session because the server rejected its credentials.

        Returns:
            True only for the first expiry since the last login, so callers
            can send the user to the login page exactly once
        """
        with self._lock:
            self.logout()
            if self._expiry_reported:
                return False
            self._expiry_reported = True
            return True
