import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from blogapi.config import settings
from blogapi.database import engine
from blogapi.errors import register_exception_handlers
from blogapi.logging_config import configure_logging
from blogapi.middleware import RequestMetricsMiddleware
from blogapi.routers import adsense, auth, categories, posts, tags, users
from blogapi.services import adsense_service

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    configure_logging()
    # Fail fast on a database the AdSense upsert cannot run against.
    adsense_service.upsert_insert_for(engine.dialect.name)
    logger.info("Blog API %s starting (env=%s)", VERSION, settings.APP_ENV)
    yield
    # Shutdown
    await engine.dispose()
    logger.info("Blog API stopped")


app = FastAPI(
    title="Blog Platform API",
    description="Role-gated blog backend: users, categories, tags, posts and AdSense settings",
    version=VERSION,
    lifespan=lifespan,
)

# Middleware
app.add_middleware(RequestMetricsMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(categories.router)
app.include_router(tags.router)
app.include_router(posts.router)
app.include_router(adsense.router)


@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "version": VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
