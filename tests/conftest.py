import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./.pytest-safeprep.db")
os.environ.setdefault("JWT_SECRET", "test-secret-0123456789abcdef0123456789abcdef")
os.environ["SEED_DATA"] = "false"

import pytest
from httpx import ASGITransport, AsyncClient, Client

from safeprep.core.security import hash_password
from safeprep.db.session import build_engine, build_session_factory, create_all, get_session_factory
from safeprep.models import AdminUser, Profile


RUN_INTEGRATION = os.getenv("RUN_INTEGRATION") == "1"
BASE_URL = os.getenv("BASE_URL", "http://localhost:10723")
TEST_PASSWORD = "Pwd-safeprep-1"


@pytest.fixture(scope="session")
def base_url() -> str:
    return BASE_URL


@pytest.fixture(scope="session")
def client(base_url: str):
    with Client(base_url=base_url, timeout=20.0) as c:
        yield c


@pytest.fixture(scope="session")
def integration_enabled() -> bool:
    return RUN_INTEGRATION


@pytest.fixture
async def sessions(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'safeprep.db'}")
    await create_all(engine)
    yield build_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def add_rows(sessions):
    async def _add(*rows):
        async with sessions() as db:
            db.add_all(rows)
            await db.commit()
        return rows[0] if len(rows) == 1 else rows

    return _add


@pytest.fixture
def make_user(add_rows):
    async def _make(email: str, admin_level: str | None = None, display_name: str | None = None) -> Profile:
        user = await add_rows(
            Profile(email=email, display_name=display_name or email.split("@")[0], password_hash=hash_password(TEST_PASSWORD))
        )
        if admin_level:
            await add_rows(AdminUser(user_id=user.id, admin_level=admin_level, permissions={}))
        return user

    return _make


@pytest.fixture
async def api(sessions):
    from safeprep.main import app

    app.dependency_overrides[get_session_factory] = lambda: sessions
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def login(api, make_user):
    async def _login(email: str, admin_level: str | None = None) -> dict[str, str]:
        await make_user(email, admin_level=admin_level)
        resp = await api.post("/v1/auth/sign-in", json={"email": email, "password": TEST_PASSWORD})
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}

    return _login


@pytest.fixture
def password() -> str:
    return TEST_PASSWORD
