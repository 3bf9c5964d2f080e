# orderdesk/main.py
import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from orderdesk import __version__
from orderdesk.api.exception_handlers import register_exception_handlers
from orderdesk.api.router import api_router
from orderdesk.core.config import settings
from orderdesk.core.rate_limit import InMemoryRateLimitStore, run_sweeper

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    sweeper = asyncio.create_task(
        run_sweeper(app.state.rate_limiter, settings.RATE_LIMIT_SWEEP_SECONDS))
    logger.info("%s started", settings.PROJECT_NAME)
    try:
        yield
    finally:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.state.rate_limiter = InMemoryRateLimitStore()

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(api_router, prefix=settings.API_V1_STR)


# Health
@app.get(f"{settings.API_V1_STR}/health", tags=["health"])
def health():
    return {"status": "ok", "version": __version__}


@app.get("/")
def root():
    return {"message": f"{settings.PROJECT_NAME} API running", "version": "v1"}
