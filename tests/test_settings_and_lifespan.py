from jewel_ledger.core.config import Settings
from jewel_ledger.core.constants import SETTING_DEFAULT_PAGE_SIZE, SETTING_REMINDER_DAYS_AHEAD
from jewel_ledger.models.system_settings_model import SystemSetting
from jewel_ledger.services.settings_service import get_int_setting, get_setting, seed_default_settings


def test_database_url_built_from_parts():
    s = Settings(DATABASE_URL=None, DB_HOST="db", DB_PORT="None", DB_NAME="shop", DB_USER="u", DB_PASS="p")
    assert s.DATABASE_URL == "postgresql+asyncpg://u:p@db:5432/shop"


def test_explicit_database_url_wins():
    s = Settings(DATABASE_URL="sqlite+aiosqlite:///x.db")
    assert s.DATABASE_URL == "sqlite+aiosqlite:///x.db"


async def test_seed_keeps_existing_values(session):
    session.add(SystemSetting(key=SETTING_DEFAULT_PAGE_SIZE, value="25"))
    await session.commit()

    created = await seed_default_settings(session, Settings(DEFAULT_PAGE_SIZE=10, REMINDER_DAYS_AHEAD=5))
    assert created == 1
    assert await get_int_setting(session, SETTING_DEFAULT_PAGE_SIZE, 10) == 25
    assert await get_int_setting(session, SETTING_REMINDER_DAYS_AHEAD, 3) == 5

    assert await seed_default_settings(session, Settings()) == 0


async def test_non_numeric_setting_falls_back(session):
    session.add(SystemSetting(key="SOMETHING", value="lots"))
    await session.commit()
    assert await get_setting(session, "SOMETHING", "x") == "lots"
    assert await get_int_setting(session, "SOMETHING", 7) == 7
    assert await get_int_setting(session, "MISSING", 9) == 9


async def test_lifespan_seeds_and_runs_scheduler(database):
    from main import create_app

    settings = Settings(
        DATABASE_URL=database.url,
        CREATE_TABLES=True,
        REMINDERS_ENABLED=True,
        REMINDER_INTERVAL_SECONDS=3600,
    )
    app = create_app(settings=settings, database=database)

    async with app.router.lifespan_context(app):
        assert app.state.reminders.running
        async with database.session_factory() as s:
            assert await get_setting(s, SETTING_REMINDER_DAYS_AHEAD, "") == "3"

    assert not app.state.reminders.running
    # a database handed in from outside is left open
    assert app.state.database is database
