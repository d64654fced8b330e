import uuid

import pytest
from fastapi import HTTPException
from httpx import ASGITransport, AsyncClient
from jose import jwt

from schoolfees.auth.dependencies import get_current_user
from schoolfees.auth.rbac import require_roles
from schoolfees.auth.schemas import CurrentUser
from schoolfees.core.config import settings
from schoolfees.main import app


def _token(secret: str = None, **claims) -> str:
    return jwt.encode(claims, secret or settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


@pytest.mark.asyncio
async def test_token_claims_become_current_user() -> None:
    user_id, tenant_id = uuid.uuid4(), uuid.uuid4()

    user = await get_current_user(_token(user_id=str(user_id), tenant_id=str(tenant_id), role="FINANCE"))

    assert user.id == user_id
    assert user.tenant_id == tenant_id
    assert user.role == "FINANCE"


@pytest.mark.asyncio
async def test_sub_claim_is_accepted_as_user_id() -> None:
    user_id = uuid.uuid4()

    user = await get_current_user(_token(sub=str(user_id), tenant_id=str(uuid.uuid4()), role="PARENT"))

    assert user.id == user_id


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "token",
    [
        "not-a-jwt",
        _token(secret="wrong-secret", user_id=str(uuid.uuid4()), tenant_id=str(uuid.uuid4()), role="FINANCE"),
        _token(user_id=str(uuid.uuid4()), role="FINANCE"),
        _token(user_id="not-a-uuid", tenant_id=str(uuid.uuid4()), role="FINANCE"),
    ],
)
async def test_invalid_tokens_rejected(token: str) -> None:
    with pytest.raises(HTTPException) as exc_info:
        await get_current_user(token)
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_require_roles() -> None:
    checker = require_roles("SCHOOL_ADMIN", "FINANCE")
    finance = CurrentUser(id=uuid.uuid4(), tenant_id=uuid.uuid4(), role="FINANCE")
    parent = CurrentUser(id=uuid.uuid4(), tenant_id=uuid.uuid4(), role="PARENT")

    assert await checker(current_user=finance) is finance
    with pytest.raises(HTTPException) as exc_info:
        await checker(current_user=parent)
    assert exc_info.value.status_code == 403


@pytest.mark.asyncio
async def test_missing_bearer_token_is_unauthorized() -> None:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get("/api/v1/vote-heads")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_health() -> None:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
