"""FastAPI application entry point."""
import asyncio
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from careerai.config import settings
from careerai.database import engine, get_db
from careerai.exceptions import (
    ConfigurationError, ReviewValidationError, GatewayError, GatewayTimeoutError,
    PersistenceError, NotFoundError, UploadRejectedError,
)
from careerai.models import Base

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and seed defaults on startup, start the scheduler."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if settings.SEED_DEFAULTS:
        from careerai.services.seed_defaults import seed_all_defaults
        from careerai.database import async_session
        async with async_session() as session:
            await seed_all_defaults(session)

    scheduler_task = None
    if settings.LOW_SKILL_SWEEP_ENABLED:
        from careerai.services.scheduler import scheduler_loop
        scheduler_task = asyncio.create_task(scheduler_loop())

    yield

    # Cleanup
    if scheduler_task:
        scheduler_task.cancel()
    await engine.dispose()


app = FastAPI(
    title="CareerAI API",
    version="1.0.0",
    description="Backend API for the CareerAI career coach.",
    lifespan=lifespan,
)

# CORS
origins = [o.strip() for o in settings.CORS_ORIGINS.split(",")]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error mapping
@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.exception_handler(ReviewValidationError)
async def review_validation_error_handler(request: Request, exc: ReviewValidationError):
    return JSONResponse(
        status_code=400,
        content={"detail": exc.reason, "questionId": exc.question_id, "reason": exc.reason},
    )


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError):
    status = 504 if isinstance(exc, GatewayTimeoutError) else 502
    return JSONResponse(status_code=status, content={"detail": str(exc), "turnId": exc.turn_id})


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(UploadRejectedError)
async def upload_rejected_handler(request: Request, exc: UploadRejectedError):
    return JSONResponse(status_code=413 if exc.too_large else 400, content={"detail": str(exc)})


@app.get("/api/health")
async def health_check():
    """Verify API and database connectivity."""
    try:
        async for db in get_db():
            await db.execute(text("SELECT 1"))
            return {"status": "ok", "database": "connected"}
    except Exception as e:
        return {"status": "error", "database": str(e)}


# Register routers
from careerai.routes.chat import router as chat_router
from careerai.routes.files import router as files_router, public_router as public_files_router
from careerai.routes.prompts import router as prompts_router
from careerai.routes.reviews import router as reviews_router, admin_router as reviews_admin_router
from careerai.routes.notifications import router as notifications_router, admin_router as notifications_admin_router
from careerai.routes.skills import router as skills_router
app.include_router(chat_router)
app.include_router(files_router)
app.include_router(public_files_router)
app.include_router(prompts_router)
app.include_router(reviews_router)
app.include_router(reviews_admin_router)
app.include_router(notifications_router)
app.include_router(notifications_admin_router)
app.include_router(skills_router)
