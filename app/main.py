from contextlib import asynccontextmanager
import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.logging import configure_logging
from app.database import configure_database
from app import models  # noqa: F401
from app.routers.auth import router as auth_router
from app.routers.budgets import router as budgets_router
from app.routers.check_ins import router as check_ins_router
from app.routers.jobs import router as jobs_router
from app.routers.mobile import router as mobile_router
from app.routers.mobile_worker import router as mobile_worker_router
from app.routers.safety import router as safety_router
from app.routers.sites import router as sites_router
from app.routers.tasks import router as tasks_router
from app.routers.teams import router as teams_router
from app.routers.users import router as users_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    configure_database()
    logger.info("Sitework API starting", extra={"env": os.getenv("ENV")})
    yield


app = FastAPI(
    title="Sitework Construction API",
    lifespan=lifespan,
)


def _cors_origins() -> list:
    raw = os.getenv("CORS_ORIGIN", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def catch_unhandled_exceptions(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled exception", extra={"path": request.url.path, "method": request.method})
        return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code >= 500:
        logger.error("Server error", extra={"path": request.url.path, "detail": exc.detail})
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": f"{location}: {message}" if location else message,
        },
    )


app.include_router(auth_router)
app.include_router(users_router)
app.include_router(teams_router)
app.include_router(sites_router)
app.include_router(jobs_router)
app.include_router(tasks_router)
app.include_router(budgets_router)
app.include_router(safety_router)
app.include_router(check_ins_router)
app.include_router(mobile_router)
app.include_router(mobile_worker_router)


@app.get("/")
def root():
    return {"status": "Sitework Construction API running"}


@app.get("/health")
def health():
    return {
        "status": "ok",
        "version": "1.0.0",
    }
