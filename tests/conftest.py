import pytest
from httpx import ASGITransport, AsyncClient

from jewel_ledger.core.config import Settings
from jewel_ledger.utils.database import Database


@pytest.fixture
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def session(database):
    async with database.session_factory() as s:
        yield s


@pytest.fixture
def app(database):
    from main import create_app

    settings = Settings(DATABASE_URL=database.url, REMINDERS_ENABLED=False, CREATE_TABLES=False)
    return create_app(settings=settings, database=database)


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
