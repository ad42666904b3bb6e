import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from jewel_ledger.core.config import Settings, settings as default_settings
from jewel_ledger.core.exceptions import LedgerError
from jewel_ledger.routers import (
    accounts_router,
    business_expenses_router,
    customers_router,
    dashboard_router,
    interest_router,
    notifications_router,
    settings_router,
    trades_router,
    transactions_router,
)
from jewel_ledger.services.payments import AccountLocks
from jewel_ledger.services.reminders import ReminderScheduler
from jewel_ledger.services.settings_service import seed_default_settings
from jewel_ledger.utils.database import Database

log = logging.getLogger("jewel_ledger")


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or default_settings

    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_database = app.state.database is None
        if owns_database:
            app.state.database = Database(settings.DATABASE_URL, echo=settings.DB_ECHO)

        db = app.state.database
        if settings.CREATE_TABLES:
            # DEV ONLY – no migrations yet
            await db.create_all()

        log.info("Seeding default settings")
        async with db.session_factory() as session:
            await seed_default_settings(session, settings)

        scheduler = None
        if settings.REMINDERS_ENABLED:
            scheduler = ReminderScheduler(db, settings.REMINDER_INTERVAL_SECONDS, settings.REMINDER_DAYS_AHEAD)
            scheduler.start()
        app.state.reminders = scheduler

        try:
            yield
        finally:
            if scheduler is not None:
                await scheduler.stop()
            if owns_database:
                await db.dispose()
                app.state.database = None

    app = FastAPI(title="Jewel Ledger Backend API", version="1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.account_locks = AccountLocks()

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError):
        if exc.status_code >= 500:
            log.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    # Routers
    app.include_router(customers_router.router)
    app.include_router(accounts_router.router)
    app.include_router(interest_router.router)
    app.include_router(transactions_router.router)
    app.include_router(trades_router.router)
    app.include_router(business_expenses_router.router)
    app.include_router(notifications_router.router)
    app.include_router(dashboard_router.router)
    app.include_router(settings_router.router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/")
    def root():
        return {"message": "Jewel Ledger Backend is running!!"}

    return app


app = create_app()
