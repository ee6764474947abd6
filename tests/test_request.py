"""Tests for the request pipeline: credentials, classification, auth cascade."""
import asyncio
import json

import httpx
import pytest
from tenacity import wait_none

from conftest import RecordingNavigator, envelope
from mall_client.config import Settings
from mall_client.errors import (
    ApiError,
    ApplicationError,
    AuthenticationError,
    HTTPStatusError,
    NotFoundError,
    PermissionDeniedError,
    ServerError,
    TransportError,
)
from mall_client.services.navigation import CallbackNavigator
from mall_client.services.request import RequestPipeline


def read_json_body(content: bytes):
    return json.loads(content)


# =============================================================================
# Outbound
# =============================================================================


@pytest.mark.asyncio
async def test_bearer_token_attached_when_logged_in(make_pipeline, logged_in_session):
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        return envelope({"ok": True})

    pipeline = make_pipeline(handler)
    assert await pipeline.get("/user/profile") == {"ok": True}
    assert seen["auth"] == "Bearer token-abc123"


@pytest.mark.asyncio
async def test_no_authorization_header_when_logged_out(make_pipeline):
    seen = {}

    def handler(request):
        seen["has_auth"] = "Authorization" in request.headers
        return envelope([])

    await make_pipeline(handler).get("/products")
    assert seen["has_auth"] is False


@pytest.mark.asyncio
async def test_params_and_json_are_forwarded(make_pipeline):
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = request.content
        seen["method"] = request.method
        return envelope(None)

    pipeline = make_pipeline(handler)
    await pipeline.get("/products", params={"page": 2})
    assert seen["url"].endswith("/api/products?page=2")

    await pipeline.post("/user/login", json={"phone": "1"})
    assert seen["method"] == "POST"
    assert read_json_body(seen["body"]) == {"phone": "1"}


# =============================================================================
# Classification
# =============================================================================


@pytest.mark.asyncio
async def test_success_returns_data(make_pipeline):
    pipeline = make_pipeline(lambda request: envelope({"id": 1}, message="ok"))
    assert await pipeline.get("/products/1") == {"id": 1}


@pytest.mark.asyncio
async def test_timeout_is_transport_error(make_pipeline, logged_in_session):
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(TransportError) as exc_info:
        await make_pipeline(handler).get("/products")

    assert exc_info.value.timeout is True
    assert logged_in_session.is_logged_in is True


@pytest.mark.asyncio
async def test_connection_error_is_transport_error(make_pipeline, logged_in_session, navigator):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(TransportError) as exc_info:
        await make_pipeline(handler).get("/products")

    assert exc_info.value.timeout is False
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
    assert logged_in_session.is_logged_in is True
    assert navigator.calls == 0


@pytest.mark.asyncio
async def test_failure_logs_sanitized_url(make_pipeline, caplog):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    url = "/products/search?keyword=" + "x" * 300
    with caplog.at_level("WARNING", logger="mall_client"):
        with pytest.raises(TransportError):
            await make_pipeline(handler).get(url)

    message = caplog.records[-1].getMessage()
    assert url not in message
    assert url[:200] + "..." in message


@pytest.mark.asyncio
async def test_undecodable_body_is_transport_error(make_pipeline, logged_in_session):
    def handler(request):
        return httpx.Response(
            200, headers={"Content-Encoding": "gzip"}, stream=httpx.ByteStream(b"not gzip at all")
        )

    with pytest.raises(TransportError) as exc_info:
        await make_pipeline(handler).get("/products")

    assert isinstance(exc_info.value.__cause__, httpx.DecodingError)
    assert logged_in_session.is_logged_in is True


@pytest.mark.asyncio
async def test_http_401_clears_session_then_redirects(make_pipeline, logged_in_session, navigator):
    pipeline = make_pipeline(lambda request: envelope(None, code=401, message="token expired", status=401))

    with pytest.raises(AuthenticationError) as exc_info:
        await pipeline.get("/user/profile")

    assert exc_info.value.message == "token expired"
    assert logged_in_session.token is None
    assert logged_in_session.profile is None
    assert navigator.calls == 1
    # Session was already cleared when navigation happened
    assert navigator.token_at_redirect == [None]


@pytest.mark.asyncio
async def test_envelope_401_with_http_200_is_authentication_error(make_pipeline, logged_in_session, navigator):
    pipeline = make_pipeline(lambda request: envelope(None, code=401, message="unauthorized"))

    with pytest.raises(AuthenticationError):
        await pipeline.get("/orders")

    assert logged_in_session.is_logged_in is False
    assert navigator.calls == 1


@pytest.mark.asyncio
async def test_envelope_401_preempts_http_500(make_pipeline, logged_in_session):
    pipeline = make_pipeline(lambda request: envelope(None, code=401, status=500))

    with pytest.raises(AuthenticationError):
        await pipeline.get("/orders")

    assert logged_in_session.is_logged_in is False


@pytest.mark.asyncio
async def test_401_without_json_body_uses_default_message(make_pipeline, logged_in_session):
    pipeline = make_pipeline(lambda request: httpx.Response(401, text="Unauthorized"))

    with pytest.raises(AuthenticationError) as exc_info:
        await pipeline.get("/orders")

    assert exc_info.value.message == "Session expired, please log in again"
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_concurrent_401s_redirect_once(make_pipeline, logged_in_session, navigator):
    async def handler(request):
        await asyncio.sleep(0)
        return httpx.Response(401, json={"code": 401, "message": "expired", "data": None})

    pipeline = make_pipeline(handler)
    results = await asyncio.gather(
        *(pipeline.get(f"/orders/{i}") for i in range(5)), return_exceptions=True
    )

    assert all(isinstance(r, AuthenticationError) for r in results)
    assert logged_in_session.token is None
    assert logged_in_session.profile is None
    assert navigator.calls == 1


@pytest.mark.asyncio
async def test_anonymous_401_still_redirects(make_pipeline, session, navigator):
    pipeline = make_pipeline(lambda request: httpx.Response(401))

    with pytest.raises(AuthenticationError):
        await pipeline.get("/orders")

    assert navigator.calls == 1


@pytest.mark.asyncio
async def test_concurrent_anonymous_401s_redirect_once(make_pipeline, session, navigator):
    async def handler(request):
        await asyncio.sleep(0)
        return httpx.Response(401)

    pipeline = make_pipeline(handler)
    results = await asyncio.gather(
        *(pipeline.get(f"/orders/{i}") for i in range(5)), return_exceptions=True
    )

    assert all(isinstance(r, AuthenticationError) for r in results)
    assert navigator.calls == 1


@pytest.mark.asyncio
async def test_expiry_after_new_login_redirects_again(make_pipeline, logged_in_session, navigator):
    pipeline = make_pipeline(lambda request: httpx.Response(401))

    with pytest.raises(AuthenticationError):
        await pipeline.get("/orders")
    logged_in_session.login("token-new", {"id": 1})
    with pytest.raises(AuthenticationError):
        await pipeline.get("/orders")

    assert navigator.calls == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status,error_cls",
    [
        (403, PermissionDeniedError),
        (404, NotFoundError),
        (500, ServerError),
        (502, ServerError),
        (503, ServerError),
        (400, HTTPStatusError),
        (429, HTTPStatusError),
    ],
)
async def test_http_status_classification(make_pipeline, logged_in_session, navigator, status, error_cls):
    pipeline = make_pipeline(lambda request: httpx.Response(status, text="nope"))

    with pytest.raises(error_cls) as exc_info:
        await pipeline.get("/anything")

    assert exc_info.value.status_code == status
    assert logged_in_session.is_logged_in is True
    assert navigator.calls == 0


@pytest.mark.asyncio
async def test_http_error_prefers_server_message(make_pipeline):
    pipeline = make_pipeline(lambda request: envelope(None, code=404, message="product gone", status=404))

    with pytest.raises(NotFoundError) as exc_info:
        await pipeline.get("/products/9")

    assert exc_info.value.message == "product gone"


@pytest.mark.asyncio
async def test_envelope_failure_surfaces_message_verbatim(make_pipeline, logged_in_session):
    pipeline = make_pipeline(lambda request: envelope(None, code=400, message="库存不足"))

    with pytest.raises(ApplicationError) as exc_info:
        await pipeline.post("/orders", json={})

    assert exc_info.value.message == "库存不足"
    assert exc_info.value.code == 400
    assert logged_in_session.is_logged_in is True


@pytest.mark.asyncio
async def test_non_envelope_body_is_application_error(make_pipeline):
    pipeline = make_pipeline(lambda request: httpx.Response(200, text="<html>"))

    with pytest.raises(ApplicationError):
        await pipeline.get("/products")


@pytest.mark.asyncio
async def test_custom_success_codes(make_pipeline):
    pipeline = make_pipeline(
        lambda request: envelope({"x": 1}, code=0),
        settings=Settings(base_url="http://mall.test/api", success_codes=frozenset({0, 200})),
    )
    assert await pipeline.get("/x") == {"x": 1}


@pytest.mark.asyncio
async def test_all_errors_share_base_class(make_pipeline):
    pipeline = make_pipeline(lambda request: httpx.Response(418))
    with pytest.raises(ApiError):
        await pipeline.get("/teapot")


# =============================================================================
# Late responses, retries, collaborators
# =============================================================================


@pytest.mark.asyncio
async def test_late_success_does_not_resurrect_session(make_pipeline, logged_in_session):
    release = asyncio.Event()

    async def handler(request):
        if request.url.path.endswith("/slow"):
            await release.wait()
            return envelope({"late": True})
        return httpx.Response(401)

    pipeline = make_pipeline(handler)
    slow = asyncio.create_task(pipeline.get("/slow"))
    await asyncio.sleep(0)

    with pytest.raises(AuthenticationError):
        await pipeline.get("/fast")
    release.set()

    assert await slow == {"late": True}
    assert logged_in_session.is_logged_in is False


@pytest.mark.asyncio
async def test_transport_errors_retried_for_get(make_pipeline, monkeypatch):
    monkeypatch.setattr(RequestPipeline, "retry_wait", wait_none())
    attempts = []

    def handler(request):
        attempts.append(request.method)
        if len(attempts) < 3:
            raise httpx.ConnectError("flaky", request=request)
        return envelope("ok")

    pipeline = make_pipeline(
        handler, settings=Settings(base_url="http://mall.test/api", retry_attempts=3)
    )
    assert await pipeline.get("/ping") == "ok"
    assert len(attempts) == 3


@pytest.mark.asyncio
async def test_post_is_never_retried(make_pipeline, monkeypatch):
    monkeypatch.setattr(RequestPipeline, "retry_wait", wait_none())
    attempts = []

    def handler(request):
        attempts.append(request.method)
        raise httpx.ConnectError("down", request=request)

    pipeline = make_pipeline(
        handler, settings=Settings(base_url="http://mall.test/api", retry_attempts=3)
    )
    with pytest.raises(TransportError):
        await pipeline.post("/orders", json={})
    assert attempts == ["POST"]


@pytest.mark.asyncio
async def test_http_errors_are_not_retried(make_pipeline, monkeypatch):
    monkeypatch.setattr(RequestPipeline, "retry_wait", wait_none())
    attempts = []

    def handler(request):
        attempts.append(1)
        return httpx.Response(500)

    pipeline = make_pipeline(
        handler, settings=Settings(base_url="http://mall.test/api", retry_attempts=3)
    )
    with pytest.raises(ServerError):
        await pipeline.get("/x")
    assert len(attempts) == 1


@pytest.mark.asyncio
async def test_failing_navigator_still_raises_authentication_error(make_pipeline, logged_in_session):
    def boom():
        raise RuntimeError("router not mounted")

    pipeline = make_pipeline(lambda request: httpx.Response(401), navigator=CallbackNavigator(boom))

    with pytest.raises(AuthenticationError):
        await pipeline.get("/orders")
    assert logged_in_session.is_logged_in is False


@pytest.mark.asyncio
async def test_owned_client_is_closed(session):
    pipeline = RequestPipeline(session, settings=Settings(base_url="http://mall.test/api"))
    async with pipeline:
        pass
    assert pipeline._client.is_closed


@pytest.mark.asyncio
async def test_injected_client_is_left_open(session):
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: envelope(None)))
    pipeline = RequestPipeline(session, RecordingNavigator(), client=client)
    await pipeline.aclose()
    assert not client.is_closed
    await client.aclose()
