import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import uuid
from decimal import Decimal
from typing import AsyncGenerator, Dict

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from schoolfees.auth.dependencies import get_current_user
from schoolfees.auth.schemas import CurrentUser
from schoolfees.core.enums import PaymentMethod
from schoolfees.core.models import Payment, SchoolClass, Student, Tenant, VoteHead, VoteHeadBalance
from schoolfees.db.session import Base, get_db
from schoolfees.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture()
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database per test."""
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session
    await engine.dispose()


@pytest.fixture()
async def tenant(db_session: AsyncSession) -> Tenant:
    t = Tenant(name="Kiharu High School", mpesa_shortcode="600100")
    db_session.add(t)
    await db_session.commit()
    return t


@pytest.fixture()
async def school_class(db_session: AsyncSession, tenant: Tenant) -> SchoolClass:
    cl = SchoolClass(tenant_id=tenant.id, name="Form 1")
    db_session.add(cl)
    await db_session.commit()
    return cl


@pytest.fixture()
async def student(db_session: AsyncSession, tenant: Tenant, school_class: SchoolClass) -> Student:
    s = Student(
        tenant_id=tenant.id,
        full_name="Wanjiku Kamau",
        enrollment_number="ADM001",
        class_id=school_class.id,
    )
    db_session.add(s)
    await db_session.commit()
    return s


@pytest.fixture()
async def vote_heads(db_session: AsyncSession, tenant: Tenant) -> Dict[str, VoteHead]:
    heads = {
        "tuition": VoteHead(tenant_id=tenant.id, name="Tuition", priority=1, is_active=True),
        "rmi": VoteHead(tenant_id=tenant.id, name="R&MI", priority=2, is_active=True),
        "activity": VoteHead(tenant_id=tenant.id, name="Activity", priority=3, is_active=True),
    }
    db_session.add_all(heads.values())
    await db_session.commit()
    return heads


async def add_balance(db: AsyncSession, student: Student, vote_head: VoteHead, amount) -> VoteHeadBalance:
    bal = VoteHeadBalance(
        tenant_id=student.tenant_id,
        student_id=student.id,
        vote_head_id=vote_head.id,
        balance=Decimal(str(amount)),
    )
    db.add(bal)
    await db.commit()
    return bal


async def add_payment(db: AsyncSession, student: Student, amount, method: PaymentMethod = PaymentMethod.CASH) -> Payment:
    p = Payment(
        tenant_id=student.tenant_id,
        student_id=student.id,
        amount=Decimal(str(amount)),
        method=method.value,
    )
    db.add(p)
    await db.flush()
    return p


@pytest.fixture()
def current_user(tenant: Tenant) -> CurrentUser:
    return CurrentUser(id=uuid.uuid4(), tenant_id=tenant.id, role="FINANCE")


@pytest.fixture()
async def client(db_session: AsyncSession, current_user: CurrentUser) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the app, sharing the test session and caller identity."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    async def override_current_user() -> CurrentUser:
        return current_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_current_user
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
