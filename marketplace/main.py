import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from marketplace.api.common import to_http_exception
from marketplace.api.routes import auth_routes, contracts, conversations, missions, users
from marketplace.auth_config import auth_backend, fastapi_users
from marketplace.core.config import settings
from marketplace.db import check_database_health
from marketplace.services.exceptions import ServiceError
from marketplace.services.migration_service import run_migrations

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Runs migrations and verifies the schema before serving."""
    logger.info("Starting application...")
    try:
        if settings.RUN_MIGRATIONS_ON_STARTUP:
            await run_migrations()
        await check_database_health()
        logger.info("Database health check passed - application ready")
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        logger.error("Application startup aborted due to database issues")
        raise

    yield

    logger.info("Application shutting down...")


app = FastAPI(title="Freelance marketplace", lifespan=lifespan)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    """Service errors raised outside route bodies, e.g. by role dependencies."""
    http_exc = to_http_exception(exc)
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


app.include_router(
    fastapi_users.get_auth_router(auth_backend), prefix="/auth/jwt", tags=["auth"]
)
app.include_router(auth_routes.auth_api_router, prefix="/auth", tags=["auth"])
app.include_router(users.users_api_router)
app.include_router(conversations.conversations_router_instance)
app.include_router(missions.missions_router_instance)
app.include_router(contracts.contracts_router_instance)


@app.get("/health")
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}
