"""PhishGuard - FastAPI app entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from phishguard.core.clock import SystemClock
from phishguard.core.config import get_settings
from phishguard.routers import auth, dashboard, sessions
from phishguard.services.seeding import seed_items
from phishguard.store.memory import MemoryRecordStore

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def _open_store():
    if settings.store_backend == "memory":
        return MemoryRecordStore()

    from phishguard.db.base import Base
    from phishguard.db.session import AsyncSessionLocal, engine
    from phishguard.store.sql import SqlAlchemyRecordStore

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return SqlAlchemyRecordStore(AsyncSessionLocal, engine=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.store = await _open_store()
    app.state.clock = SystemClock()
    if settings.seed_items:
        await seed_items(app.state.store)
    logger.info("PhishGuard ready (store=%s)", settings.store_backend)

    yield

    await app.state.store.close()
    logger.info("PhishGuard stopped")


app = FastAPI(
    title=settings.app_name,
    description="Phishing assessment and incident risk engine",
    lifespan=lifespan,
)

app.include_router(auth.router)
app.include_router(sessions.router)
app.include_router(dashboard.router)


@app.get("/health")
async def health():
    return {"status": "ok"}
