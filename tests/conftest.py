"""Shared fixtures: in-memory database, ASGI client, recording notifier, seed data."""
import os

# Settings are cached on first import, so the environment comes first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-company-secret"
os.environ["CANDIDATE_JWT_SECRET"] = "test-candidate-secret"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LOG_TO_FILE"] = "0"

from datetime import timedelta
from types import SimpleNamespace

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event, func, select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from jobboard import models  # noqa: F401  registers tables
from jobboard.database import Base, get_db
from jobboard.main import app
from jobboard.middleware.auth import create_company_token
from jobboard.models import Candidate, Company, Job
from jobboard.services.notifier import Notifier, get_notifier
from jobboard.services.otp_store import MemoryExpiringStore, get_otp_store
from jobboard.utils import metrics
from jobboard.utils.dates import utcnow

CANDIDATE_SECRET = "test-candidate-secret"
RESUME_URL = "https://files.example.com/resumes/casey.pdf"


class RecordingNotifier(Notifier):
    """Keeps every email instead of sending it; can be told to fail."""
    name = "recording"

    def __init__(self):
        super().__init__("no-reply@test.local")
        self.sent = []
        self.fail = False

    async def deliver(self, to, subject, html):
        if self.fail:
            raise ConnectionError("smtp down")
        self.sent.append({"to": to, "subject": subject, "html": html})


def company_headers(company_id: int) -> dict:
    return {"token": create_company_token(company_id)}


def candidate_token(subject: str) -> str:
    return jwt.encode(
        {"sub": subject, "exp": utcnow() + timedelta(hours=1)}, CANDIDATE_SECRET, algorithm="HS256"
    )


def candidate_headers(subject: str) -> dict:
    return {"Authorization": f"Bearer {candidate_token(subject)}"}


async def count_rows(session_factory, model) -> int:
    async with session_factory() as session:
        return await session.scalar(select(func.count()).select_from(model))


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics.reset()
    yield
    metrics.reset()


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Enforce foreign keys the way Postgres does
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def otp_store():
    return MemoryExpiringStore()


@pytest_asyncio.fixture
async def client(session_factory, notifier, otp_store):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_otp_store] = lambda: otp_store

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def seed(session_factory):
    """Acme (A) owns the backend job, Globex (B) owns the data job; Casey has a resume."""
    async with session_factory() as session:
        acme = Company(name="Acme", email="hr@acme.test", password=Company.hash_password("acme-pass"))
        globex = Company(name="Globex", email="jobs@globex.test", password=Company.hash_password("globex-pass"))
        session.add_all([acme, globex])
        await session.flush()

        backend_job = Job(company_id=acme.id, title="Backend Engineer", location="Remote")
        data_job = Job(company_id=globex.id, title="Data Analyst", location="Berlin")
        casey = Candidate(id="user_casey", name="Casey", email="casey@mail.test", resume=RESUME_URL)
        robin = Candidate(id="user_robin", name="Robin", email="robin@mail.test", resume=RESUME_URL)
        session.add_all([backend_job, data_job, casey, robin])
        await session.commit()

        return SimpleNamespace(
            acme_id=acme.id,
            globex_id=globex.id,
            backend_job_id=backend_job.id,
            data_job_id=data_job.id,
            casey_id=casey.id,
            robin_id=robin.id,
        )


@pytest_asyncio.fixture
async def application_id(client, seed):
    """Casey's pending application to Acme's backend job."""
    response = await client.post(
        "/api/users/apply",
        json={"jobId": seed.backend_job_id},
        headers=candidate_headers(seed.casey_id),
    )
    assert response.status_code == 200, response.text
    return response.json()["application"]["id"]


@pytest.fixture
def as_company():
    """Headers for a company caller: as_company(company_id)."""
    return company_headers


@pytest.fixture
def as_candidate():
    """Headers for a candidate caller: as_candidate(candidate_id)."""
    return candidate_headers


@pytest.fixture
def row_count(session_factory):
    """Awaitable row count per model, read through a fresh session."""
    async def _count(model):
        return await count_rows(session_factory, model)
    return _count
