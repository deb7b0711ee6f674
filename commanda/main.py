import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from commanda.core.config import CORS_ORIGINS, DATABASE_URL
from commanda.core.database import Base, engine
from commanda.core.errors import CommandaError
from commanda.core.logging_setup import configure_logging
from commanda.core.startup_checks import ensure_migrations_applied, validate_environment
from commanda.middleware.observability import ObservabilityMiddleware
import commanda.models  # noqa: F401  garante os models antes do create_all
import commanda.services.order_events  # noqa: F401  registra handlers do event bus
import commanda.services.order_notifications  # noqa: F401
import commanda.services.subscription_jobs  # noqa: F401

from commanda.routers.orders import router as orders_router
from commanda.routers.public_menu import router as public_menu_router
from commanda.routers.tenant_api import router as tenant_api_router
from commanda.routers.webhooks import router as webhooks_router
from commanda.routers.whatsapp import router as whatsapp_router

configure_logging()

logger = logging.getLogger(__name__)
STARTUP_PREFIX = "[STARTUP]"
REPO_ROOT = Path(__file__).resolve().parents[1]
ALEMBIC_CONFIG_PATH = Path(
    os.getenv("ALEMBIC_CONFIG", str(REPO_ROOT / "alembic.ini"))
)


@asynccontextmanager
async def lifespan(_: FastAPI):
    _startup_tasks()
    yield


app = FastAPI(
    title="Commanda API",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ObservabilityMiddleware)


@app.exception_handler(CommandaError)
async def commanda_error_handler(request: Request, exc: CommandaError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info("invalid request %s %s errors=%s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=422, content={"success": False, "error": "Requisição inválida"})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "error": "Erro interno"})


def _startup_tasks() -> None:
    try:
        validate_environment()
        # Em dev (sqlite) as tabelas são criadas direto. Em produção, use migrations.
        if DATABASE_URL.startswith("sqlite"):
            Base.metadata.create_all(bind=engine)
        ensure_migrations_applied(engine=engine, alembic_config_path=ALEMBIC_CONFIG_PATH)
    except Exception:
        logger.exception("%s ERROR startup failed", STARTUP_PREFIX)
        raise


# Routers
app.include_router(orders_router)
app.include_router(tenant_api_router)
app.include_router(public_menu_router)
app.include_router(whatsapp_router)
app.include_router(webhooks_router)


@app.get("/")
def root():
    return {"status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}
