import uuid
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.core.models import SchoolClass, Tenant, VoteHead


async def _create_schedule(client: AsyncClient, class_id, amount="10000", period="2025") -> dict:
    response = await client.post(
        "/api/v1/fee-schedules",
        json={"class_id": str(class_id), "amount": amount, "academic_period": period},
    )
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_create_fee_schedule(client: AsyncClient, school_class) -> None:
    data = await _create_schedule(client, school_class.id)

    assert Decimal(data["amount"]) == Decimal("10000")
    assert data["academic_period"] == "2025"
    assert Decimal(data["items_total"]) == Decimal("0")


@pytest.mark.asyncio
async def test_create_fee_schedule_for_other_school_class(client: AsyncClient, db_session: AsyncSession, tenant) -> None:
    other = Tenant(name="Other School")
    db_session.add(other)
    await db_session.flush()
    cl = SchoolClass(tenant_id=other.id, name="Form 2")
    db_session.add(cl)
    await db_session.commit()

    response = await client.post(
        "/api/v1/fee-schedules",
        json={"class_id": str(cl.id), "amount": "5000", "academic_period": "2025"},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid class"


@pytest.mark.asyncio
async def test_items_total_may_differ_from_amount(client: AsyncClient, school_class, vote_heads) -> None:
    schedule = await _create_schedule(client, school_class.id)
    for key, amount in (("tuition", "6000"), ("rmi", "2500")):
        response = await client.post(
            f"/api/v1/fee-schedules/{schedule['id']}/items",
            json={"vote_head_id": str(vote_heads[key].id), "amount": amount},
        )
        assert response.status_code == 201

    listed = await client.get("/api/v1/fee-schedules", params={"class_id": str(school_class.id)})

    assert listed.status_code == 200
    data = listed.json()
    assert len(data) == 1
    assert Decimal(data[0]["amount"]) == Decimal("10000")
    assert Decimal(data[0]["items_total"]) == Decimal("8500")


@pytest.mark.asyncio
async def test_list_items_in_priority_order(client: AsyncClient, school_class, vote_heads) -> None:
    schedule = await _create_schedule(client, school_class.id)
    for key in ("activity", "tuition"):
        await client.post(
            f"/api/v1/fee-schedules/{schedule['id']}/items",
            json={"vote_head_id": str(vote_heads[key].id), "amount": "1000"},
        )

    response = await client.get(f"/api/v1/fee-schedules/{schedule['id']}/items")

    assert response.status_code == 200
    assert [(i["vote_head_name"], i["priority"]) for i in response.json()] == [("Tuition", 1), ("Activity", 3)]


@pytest.mark.asyncio
async def test_add_item_unknown_schedule(client: AsyncClient, vote_heads) -> None:
    response = await client.post(
        f"/api/v1/fee-schedules/{uuid.uuid4()}/items",
        json={"vote_head_id": str(vote_heads["tuition"].id), "amount": "1000"},
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_add_item_with_other_school_vote_head(client: AsyncClient, db_session: AsyncSession, school_class) -> None:
    schedule = await _create_schedule(client, school_class.id)
    other = Tenant(name="Other School")
    db_session.add(other)
    await db_session.flush()
    vh = VoteHead(tenant_id=other.id, name="Tuition", priority=1)
    db_session.add(vh)
    await db_session.commit()

    response = await client.post(
        f"/api/v1/fee-schedules/{schedule['id']}/items",
        json={"vote_head_id": str(vh.id), "amount": "1000"},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid vote head"


@pytest.mark.asyncio
async def test_negative_amount_rejected(client: AsyncClient, school_class) -> None:
    response = await client.post(
        "/api/v1/fee-schedules",
        json={"class_id": str(school_class.id), "amount": "-1", "academic_period": "2025"},
    )

    assert response.status_code == 422
