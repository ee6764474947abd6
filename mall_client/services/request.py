"""
Request pipeline for the mall REST API.

Every call goes through RequestPipeline.request():
- the session token is attached as a bearer credential
- the response is classified, in this order:
  transport > authentication > HTTP status > envelope code > success
- an authentication failure clears the session and redirects to login
  before the error reaches the caller

Usage:
    pipeline = RequestPipeline(session, navigator, settings)
    products = await pipeline.get("/products", params={"page": 1})
"""
from typing import Any, Optional

import httpx
from pydantic import BaseModel, ValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from mall_client.auth.session import SessionStore
from mall_client.config import Settings
from mall_client.errors import (
    ERROR_FORBIDDEN,
    ERROR_MALFORMED_RESPONSE,
    ERROR_NETWORK,
    ERROR_NOT_FOUND,
    ERROR_REQUEST_FAILED,
    ERROR_SERVER,
    ERROR_SESSION_EXPIRED,
    ERROR_TIMEOUT,
    ApiError,
    ApplicationError,
    AuthenticationError,
    HTTPStatusError,
    NotFoundError,
    PermissionDeniedError,
    ServerError,
    TransportError,
)
from mall_client.logging import get_logger, sanitize_string_for_logging
from .navigation import Navigator, NullNavigator

logger = get_logger(__name__)

UNAUTHENTICATED = 401
IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


class ApiResponse(BaseModel):
    """Uniform response envelope: {code, message, data}."""
    code: int
    message: str = ""
    data: Any = None


def _parse_envelope(response: httpx.Response) -> Optional[ApiResponse]:
    """Envelope carried by the body, or None when the body is not one."""
    try:
        payload = response.json()
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    try:
        return ApiResponse.model_validate(payload)
    except ValidationError:
        return None


class RequestPipeline:
    """Mediates every outbound call; holds no session state of its own."""

    retry_wait = wait_exponential(multiplier=0.5, max=4)

    def __init__(
        self,
        session: SessionStore,
        navigator: Optional[Navigator] = None,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or Settings()
        self._session = session
        self._navigator = navigator or NullNavigator()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self.settings.base_url,
            timeout=httpx.Timeout(self.settings.timeout),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "RequestPipeline":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def _build_headers(self, token: Optional[str], extra: Optional[dict]) -> dict:
        headers = dict(extra or {})
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        attempts = self.settings.retry_attempts if method in IDEMPOTENT_METHODS else 1
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(max(1, attempts)),
            wait=self.retry_wait,
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        ):
            with attempt:
                return await self._client.request(method, url, **kwargs)

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[dict] = None,
        json: Any = None,
        data: Optional[dict] = None,
        files: Optional[dict] = None,
        headers: Optional[dict] = None,
    ) -> Any:
        """
        Send a request and return the envelope's data.

        Raises:
            TransportError: no response received
            AuthenticationError: 401 (session already cleared)
            PermissionDeniedError, NotFoundError, ServerError, HTTPStatusError:
                other HTTP failures
            ApplicationError: HTTP success with a failing envelope code
        """
        response = await self._perform(
            method, url, params=params, json=json, data=data, files=files, headers=headers
        )
        return self._classify(response)

    async def download(self, url: str, *, params: Optional[dict] = None) -> bytes:
        """
        GET a file body (exports). Failures are classified like request();
        an envelope with a failing code is an ApplicationError.
        """
        response = await self._perform("GET", url, params=params)
        return self._classify(response, raw=True)

    async def _perform(
        self, method: str, url: str, *, headers: Optional[dict] = None, **kwargs
    ) -> httpx.Response:
        method = method.upper()
        token = self._session.token
        safe_url = sanitize_string_for_logging(url, 200)
        logger.debug("%s %s", method, safe_url)

        try:
            return await self._send(method, url, headers=self._build_headers(token, headers), **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("Timeout on %s %s", method, safe_url)
            raise TransportError(ERROR_TIMEOUT, timeout=True) from e
        except httpx.RequestError as e:
            logger.warning("Network error on %s %s: %s", method, safe_url, e)
            raise TransportError(ERROR_NETWORK) from e

    async def get(self, url: str, **kwargs) -> Any:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs) -> Any:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs) -> Any:
        return await self.request("PUT", url, **kwargs)

    async def patch(self, url: str, **kwargs) -> Any:
        return await self.request("PATCH", url, **kwargs)

    async def delete(self, url: str, **kwargs) -> Any:
        return await self.request("DELETE", url, **kwargs)

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def _classify(self, response: httpx.Response, raw: bool = False) -> Any:
        status = response.status_code
        safe_url = sanitize_string_for_logging(str(response.request.url), 200)
        envelope = _parse_envelope(response)
        code = envelope.code if envelope else None
        server_message = envelope.message if envelope and envelope.message else None

        if status == UNAUTHENTICATED or code == UNAUTHENTICATED:
            self._expire_session()
            raise AuthenticationError(
                server_message or ERROR_SESSION_EXPIRED, status_code=status, code=code
            )

        if not response.is_success:
            error = self._status_error(status, server_message, code)
            logger.warning("%s %s failed: %s", response.request.method, safe_url, error)
            raise error

        if envelope is None:
            if raw:
                return response.content
            raise ApplicationError(ERROR_MALFORMED_RESPONSE, status_code=status)

        if envelope.code not in self.settings.success_codes:
            logger.warning(
                "%s %s rejected: code=%s message=%s",
                response.request.method,
                safe_url,
                envelope.code,
                sanitize_string_for_logging(envelope.message),
            )
            raise ApplicationError(
                envelope.message or ERROR_REQUEST_FAILED, status_code=status, code=envelope.code
            )

        return response.content if raw else envelope.data

    @staticmethod
    def _status_error(status: int, message: Optional[str], code: Optional[int]) -> ApiError:
        if status == 403:
            return PermissionDeniedError(message or ERROR_FORBIDDEN, status_code=status, code=code)
        if status == 404:
            return NotFoundError(message or ERROR_NOT_FOUND, status_code=status, code=code)
        if status >= 500:
            return ServerError(message or ERROR_SERVER, status_code=status, code=code)
        return HTTPStatusError(message or ERROR_REQUEST_FAILED, status_code=status, code=code)

    def _expire_session(self) -> None:
        """
        Clear the session, then send the user to login.

        Concurrent 401s all clear the session, but only the first expiry since
        the last login navigates, so the redirect happens once.
        """
        if not self._session.expire():
            return
        try:
            self._navigator.redirect_to_login()
        except Exception:
            logger.exception("Login redirect failed")
