import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.router import api_router
from app.config import settings
from app.database import async_session_factory, create_schema, engine
from app.draft_store import DraftStore, SqlDraftStorage
from app.middleware.logging import RequestLoggingMiddleware

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
)

logger = logging.getLogger("shipdraft")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Initialize Sentry if DSN is configured
    if settings.sentry_dsn:
        try:
            import sentry_sdk
            sentry_sdk.init(
                dsn=settings.sentry_dsn,
                traces_sample_rate=0.1,
                environment=settings.environment,
            )
            logger.info("Sentry initialized (env=%s)", settings.environment)
        except Exception as e:
            logger.warning("Failed to initialize Sentry: %s", e)

    await create_schema()
    storage = SqlDraftStorage(async_session_factory)

    store = DraftStore(storage, settings.draft_namespace)
    restored = await store.load()
    app.state.draft_store = store

    logger.info(
        "Starting shipment draft backend (env=%s, restored_draft=%s)",
        settings.environment,
        restored,
    )
    yield
    logger.info("Shutting down shipment draft backend")
    await engine.dispose()


app = FastAPI(
    title="Shipment Draft Service",
    description="Shipment drafts filled by hand or from extracted trade documents, with field provenance and price estimates",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

app.include_router(api_router, prefix="/api")
