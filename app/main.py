"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.errors import DomainError, domain_error_handler
from app.middleware import BodySizeLimitMiddleware, RequestLoggingMiddleware
from app.routers import bids, requests, reviews, users

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Service marketplace starting (env=%s)", settings.env)

    yield

    from app.database import engine
    from app.redis import redis_pool
    await redis_pool.disconnect()
    await engine.dispose()


app = FastAPI(
    title="Service Marketplace",
    description="Service requests, worker bidding, assignment and reviews",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS - restrict to configured origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Middleware (last added runs outermost)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_body_bytes)

app.add_exception_handler(DomainError, domain_error_handler)  # type: ignore[arg-type]

# Routers
app.include_router(users.router)
app.include_router(requests.router)
app.include_router(bids.router)
app.include_router(reviews.router)


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}
