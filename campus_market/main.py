from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from contextlib import asynccontextmanager
import logging

from campus_market.config import settings
from campus_market.database import init_db, close_db, async_session_maker
from campus_market.core.rate_limit import limiter
from campus_market.tasks.scheduler import start_scheduler, stop_scheduler
from campus_market.services.settings_service import settings_service

# Import routers
from campus_market.api import (
    auth,
    users,
    allowed_domains,
    sellers,
    seller_reviews,
    categories,
    products,
    orders,
    commissions,
    wallet,
    withdrawals,
    scheduler,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.DEBUG else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# Reduce SQLAlchemy log verbosity
logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    logger.info(f"Starting {settings.APP_NAME}...")

    await init_db()

    # Seed runtime settings
    async with async_session_maker() as db:
        await settings_service.initialize_default_settings(db)

    if settings.SCHEDULER_ENABLED:
        start_scheduler()

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down...")
    if settings.SCHEDULER_ENABLED:
        stop_scheduler()
    await close_db()
    logger.info("Application shutdown complete")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Campus marketplace API - sellers, orders and seller wallet settlement",
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None
)

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router, prefix=f"{settings.API_V1_PREFIX}/auth", tags=["Authentication"])
app.include_router(users.router, prefix=f"{settings.API_V1_PREFIX}/users", tags=["Users"])
app.include_router(
    allowed_domains.router, prefix=f"{settings.API_V1_PREFIX}/allowed-domains", tags=["Allowed Domains"]
)
app.include_router(sellers.router, prefix=f"{settings.API_V1_PREFIX}/sellers", tags=["Sellers"])
app.include_router(
    seller_reviews.router, prefix=f"{settings.API_V1_PREFIX}/seller-reviews", tags=["Seller Reviews"]
)
app.include_router(categories.router, prefix=f"{settings.API_V1_PREFIX}/categories", tags=["Categories"])
app.include_router(products.router, prefix=f"{settings.API_V1_PREFIX}/products", tags=["Products"])
app.include_router(orders.router, prefix=f"{settings.API_V1_PREFIX}/orders", tags=["Orders"])
app.include_router(commissions.router, prefix=f"{settings.API_V1_PREFIX}/commissions", tags=["Commissions"])
app.include_router(wallet.router, prefix=f"{settings.API_V1_PREFIX}/wallet", tags=["Wallet"])
app.include_router(withdrawals.router, prefix=f"{settings.API_V1_PREFIX}/withdrawals", tags=["Withdrawals"])
app.include_router(scheduler.router, prefix=f"{settings.API_V1_PREFIX}/scheduler", tags=["Scheduler"])


@app.get("/")
async def root():
    response = {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }
    if settings.DEBUG:
        response["docs"] = "/docs"
    return response


@app.get("/health")
async def health_check():
    """Health check endpoint with database connectivity check"""
    from sqlalchemy import text

    health_status = {
        "status": "ok",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION
    }

    try:
        async with async_session_maker() as db:
            await db.execute(text("SELECT 1"))
        health_status["database"] = "connected"
    except Exception as e:
        health_status["status"] = "unhealthy"
        health_status["database"] = f"disconnected: {str(e)}"
        logger.error(f"Health check failed: {e}")

    return health_status


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "campus_market.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
