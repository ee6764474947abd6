"""Auth package: session store and user models.

AuthService lives in mall_client.auth.service; it is not re-exported here
because it depends on the API wrappers, which depend on the session store.
"""
from .models import LoginResult, UserProfile
from .session import SessionStore

__all__ = ["LoginResult", "SessionStore", "UserProfile"]
