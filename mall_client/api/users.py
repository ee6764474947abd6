"""Storefront user endpoints."""
from typing import Any, Optional

from mall_client.auth.models import LoginResult, UserProfile
from mall_client.services.request import RequestPipeline


class UserApi:
    """Login, registration and profile calls of the storefront."""

    def __init__(self, pipeline: RequestPipeline):
        self._pipeline = pipeline

    async def send_sms_code(self, phone: str, type: str = "login") -> None:
        """Send a verification code; type is "login" or "register"."""
        await self._pipeline.post("/user/sms/send", json={"phone": phone, "type": type})

    async def login_by_phone(self, phone: str, code: str, type: str = "sms") -> LoginResult:
        data = await self._pipeline.post(
            "/user/login", json={"phone": phone, "code": code, "type": type}
        )
        return LoginResult.model_validate(data)

    async def login_by_wechat(self, code: str) -> LoginResult:
        data = await self._pipeline.post("/user/wechat/login", json={"code": code})
        return LoginResult.model_validate(data)

    async def register(
        self,
        phone: str,
        code: str,
        password: Optional[str] = None,
        nickname: Optional[str] = None,
    ) -> LoginResult:
        payload = {"phone": phone, "code": code}
        if password is not None:
            payload["password"] = password
        if nickname is not None:
            payload["nickname"] = nickname
        data = await self._pipeline.post("/user/register", json=payload)
        return LoginResult.model_validate(data)

    async def get_profile(self) -> UserProfile:
        data = await self._pipeline.get("/user/profile")
        return UserProfile.model_validate(data)

    async def update_profile(self, **fields: Any) -> UserProfile:
        """Update nickname, avatar, gender, birthday or email."""
        data = await self._pipeline.put("/user/profile", json=fields)
        return UserProfile.model_validate(data or fields)

    async def upload_avatar(self, filename: str, content: bytes) -> str:
        """Upload an avatar image and return its URL."""
        data = await self._pipeline.post("/user/avatar", files={"file": (filename, content)})
        if isinstance(data, dict):
            return data.get("url", "")
        return str(data or "")
