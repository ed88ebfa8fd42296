"""
Main FastAPI application
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from foodloop.config import get_settings
from foodloop.database import engine, Base, get_db
from foodloop.errors import FoodLoopError
from foodloop import models  # noqa: F401  registers tables on Base.metadata
from foodloop.services.identity import init_identity_verifier
from foodloop.api import auth, listings, claims, notifications, analytics
from foodloop.utils.helpers import utcnow
from foodloop.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")

    # Identity provider client lives for the whole process
    init_identity_verifier(settings)

    yield

    await engine.dispose()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FoodLoopError)
async def foodloop_error_handler(request: Request, exc: FoodLoopError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logging.getLogger("foodloop.db").error(
        f"{request.method} {request.url.path} failed", exc_info=exc
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Database error", "code": "internal_error"},
    )


# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(listings.router, prefix="/api/listings", tags=["Listings"])
app.include_router(claims.router, prefix="/api/claims", tags=["Claims"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["Notifications"])
app.include_router(analytics.router, prefix="/api/analytics", tags=["Analytics"])


@app.get("/")
async def root():
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Store connectivity probe"""
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "error": "database unreachable"},
        )
    return {"status": "healthy", "timestamp": utcnow().isoformat()}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "foodloop.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
