"""Daraja client and C2B URL registration."""

import json

import httpx
import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.api.v1.mpesa import service
from schoolfees.core.exceptions import ServiceError
from schoolfees.core.models import Tenant
from schoolfees.integrations.daraja import DarajaClient, DarajaError, PRODUCTION_BASE_URL, SANDBOX_BASE_URL


def _daraja(handler, **kwargs) -> DarajaClient:
    options = {
        "consumer_key": "key",
        "consumer_secret": "secret",
        "callback_base_url": "https://fees.example.com/",
        "transport": httpx.MockTransport(handler),
    }
    options.update(kwargs)
    return DarajaClient(**options)


def _happy_handler(seen: list):
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path == "/oauth/v1/generate":
            return httpx.Response(200, json={"access_token": "tok123", "expires_in": "3599"})
        if request.url.path == "/mpesa/c2b/v1/registerurl":
            return httpx.Response(
                200,
                json={"OriginatorCoversationID": "abc", "ResponseCode": "0", "ResponseDescription": "success"},
            )
        return httpx.Response(404)

    return handler


def test_base_url_follows_environment() -> None:
    assert DarajaClient("k", "s").base_url == SANDBOX_BASE_URL
    assert DarajaClient("k", "s", environment="Production").base_url == PRODUCTION_BASE_URL


@pytest.mark.asyncio
async def test_access_token_uses_basic_auth() -> None:
    seen = []
    token = await _daraja(_happy_handler(seen)).get_access_token()

    assert token == "tok123"
    assert seen[0].url.params["grant_type"] == "client_credentials"
    assert seen[0].headers["Authorization"].startswith("Basic ")


@pytest.mark.asyncio
async def test_access_token_requires_credentials() -> None:
    client = _daraja(_happy_handler([]), consumer_key=None)
    with pytest.raises(DarajaError, match="not configured"):
        await client.get_access_token()


@pytest.mark.asyncio
async def test_access_token_auth_failure() -> None:
    client = _daraja(lambda request: httpx.Response(401, text="Invalid credentials"))
    with pytest.raises(DarajaError, match="Auth failed: 401"):
        await client.get_access_token()


@pytest.mark.asyncio
async def test_access_token_missing_from_response() -> None:
    client = _daraja(lambda request: httpx.Response(200, json={"expires_in": "3599"}))
    with pytest.raises(DarajaError, match="access_token missing"):
        await client.get_access_token()


@pytest.mark.asyncio
async def test_access_token_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(DarajaError, match="Network error"):
        await _daraja(handler).get_access_token()


@pytest.mark.asyncio
async def test_register_c2b_urls_posts_callbacks() -> None:
    seen = []
    data = await _daraja(_happy_handler(seen)).register_c2b_urls("600100")

    assert data["ResponseDescription"] == "success"
    register = seen[-1]
    assert register.headers["Authorization"] == "Bearer tok123"
    body = json.loads(register.content)
    assert body == {
        "ShortCode": "600100",
        "ResponseType": "Completed",
        "ConfirmationURL": "https://fees.example.com/api/v1/mpesa/c2b/confirmation",
        "ValidationURL": "https://fees.example.com/api/v1/mpesa/c2b/validation",
    }


@pytest.mark.asyncio
async def test_register_c2b_urls_requires_https_callback() -> None:
    seen = []
    client = _daraja(_happy_handler(seen), callback_base_url="http://localhost:8000")
    with pytest.raises(DarajaError, match="HTTPS"):
        await client.register_c2b_urls("600100")
    assert seen == []


@pytest.mark.asyncio
async def test_register_c2b_urls_rejected_by_daraja() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/oauth/v1/generate":
            return httpx.Response(200, json={"access_token": "tok123"})
        return httpx.Response(400, json={"errorMessage": "Invalid ShortCode"})

    with pytest.raises(DarajaError, match="registration failed: 400"):
        await _daraja(handler).register_c2b_urls("600100")


# --- Service / HTTP ---
@pytest.mark.asyncio
async def test_register_for_tenant_uses_school_shortcode(db_session: AsyncSession, tenant: Tenant) -> None:
    tenant_id = tenant.id
    seen = []

    result = await service.register_c2b_urls(db_session, tenant_id, client=_daraja(_happy_handler(seen)))

    assert result.short_code == "600100"
    assert result.daraja_response["ResponseCode"] == "0"
    assert json.loads(seen[-1].content)["ShortCode"] == "600100"


@pytest.mark.asyncio
async def test_register_without_shortcode(db_session: AsyncSession) -> None:
    t = Tenant(name="No Paybill Academy")
    db_session.add(t)
    await db_session.commit()

    with pytest.raises(ServiceError) as exc_info:
        await service.register_c2b_urls(db_session, t.id, client=_daraja(_happy_handler([])))
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_register_daraja_failure_is_bad_gateway(db_session: AsyncSession, tenant: Tenant) -> None:
    client = _daraja(lambda request: httpx.Response(500, text="upstream down"))

    with pytest.raises(ServiceError) as exc_info:
        await service.register_c2b_urls(db_session, tenant.id, client=client)
    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
async def test_register_endpoint_admin_only(client: AsyncClient, current_user, monkeypatch) -> None:
    fake = _daraja(_happy_handler([]))
    monkeypatch.setattr(service.DarajaClient, "from_settings", lambda: fake)

    forbidden = await client.post("/api/v1/mpesa/c2b/register")
    current_user.role = "SCHOOL_ADMIN"
    allowed = await client.post("/api/v1/mpesa/c2b/register")

    assert forbidden.status_code == 403
    assert allowed.status_code == 200
    assert allowed.json()["short_code"] == "600100"
