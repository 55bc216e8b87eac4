from datetime import date

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from main import app
from database import Base, get_db
from models.ledger_entry import LedgerEntry
from models.material import Material
from models.phase import Phase
from models.phase_photo import PhasePhoto
from models.project import Project
from models.project_member import ProjectMember
from models.user import User
from routers import rate_limit
from services.session_token import create_session_token


OWNER_ID = "user-owner"
OTHER_ID = "user-other"
PROJECT_ID = "project-villa"


def auth_header(user_id: str, role=None, permissions=None) -> dict:
    token = create_session_token(user_id, f"{user_id}@local.invalid", role=role, permissions=permissions)
    return {"Authorization": f"Bearer {token['token']}"}


@pytest.fixture(autouse=True)
def reset_local_rate_limit_counters():
    """Keep in-memory rate-limit state isolated between tests."""
    previous = getattr(app.state, "disable_rate_limits", False)
    app.state.disable_rate_limits = True
    rate_limit._local_counters.clear()
    yield
    rate_limit._local_counters.clear()
    app.state.disable_rate_limits = previous


async def seed_project(session: AsyncSession) -> None:
    """Two users and one fully populated project owned by OWNER_ID."""
    session.add_all(
        [
            User(id=OWNER_ID, email="owner@local.invalid", full_name="Owner"),
            User(id=OTHER_ID, email="other@local.invalid", full_name="Other"),
            Project(
                id=PROJECT_ID,
                created_by=OWNER_ID,
                name="Hillside Villa",
                description="Two-storey residence",
                status="active",
                location="Pune",
                start_date=date(2026, 1, 5),
                end_date=date(2026, 12, 20),
                budget=4500000.0,
            ),
            Phase(
                id="phase-foundation",
                project_id=PROJECT_ID,
                name="Foundation",
                start_date=date(2026, 1, 5),
                end_date=date(2026, 2, 28),
                status="completed",
                estimated_cost=600000.0,
                contractor_name="Rao Builders",
            ),
            LedgerEntry(
                id="ledger-cement",
                project_id=PROJECT_ID,
                phase_id="phase-foundation",
                entry_type="expense",
                amount=120000.0,
                gst_amount=21600.0,
                category="Cement",
                date=date(2026, 1, 20),
            ),
            LedgerEntry(
                id="ledger-advance",
                project_id=PROJECT_ID,
                phase_id="phase-foundation",
                entry_type="income",
                amount=500000.0,
                gst_amount=0.0,
                category="Client advance",
                date=date(2026, 1, 6),
            ),
            Material(
                id="material-steel",
                project_id=PROJECT_ID,
                name="TMT steel",
                unit_cost=65.0,
                qty_required=8000.0,
                status="ordered",
            ),
            PhasePhoto(
                id="photo-footing",
                project_id=PROJECT_ID,
                phase_id="phase-foundation",
                photo_url="https://cdn.local.invalid/footing.jpg",
            ),
            ProjectMember(
                id="member-engineer",
                project_id=PROJECT_ID,
                name="Asha Kulkarni",
                email="asha@local.invalid",
                role_name="Site Engineer",
                status="active",
                active=True,
            ),
        ]
    )
    await session.commit()


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    db_path = tmp_path / "buildmyhomes.db"
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with maker() as session:
        await seed_project(session)

    yield maker
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def api_client(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client, session_maker

    app.dependency_overrides.pop(get_db, None)
