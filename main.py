import logging
import subprocess
import sys
import time
import traceback
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import click
import uvicorn
from alembic import command
from alembic.config import Config
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError as PydanticValidationError
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from learnify.core.config import Settings, settings as default_settings
from learnify.core.database import Database
from learnify.core.exceptions import AppException
from learnify.core.limiter import build_limiter, custom_rate_limit_exceeded_handler
from learnify.core.security import JWTManager, TokenBlacklist
from learnify.routers import routes
from learnify.services.health import HealthService
from learnify.utils.mailer import MailSender
from learnify.utils.media_store import MediaStore
from learnify.utils.payment import PaymentGateway

BASE_DIR = Path(__file__).parent


# ============================================================================
# Logging Configuration
# ============================================================================
def setup_logging(settings: Settings = default_settings):
    """Configure logging for the application."""
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    if settings.debug:
        log_level = min(log_level, logging.DEBUG)
    log_format = "%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] %(message)s"

    log_file = Path(settings.log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    handlers = [
        logging.StreamHandler(sys.stdout),
        logging.FileHandler(log_file, mode="a", encoding="utf-8"),
    ]

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=handlers,
        force=True,  # Override any existing configuration
    )

    # Suppress verbose third-party logs
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)

    return logging.getLogger(__name__)


logger = setup_logging()


# ============================================================================
# Error rendering
# ============================================================================
def _error_body(settings: Settings, status_code: int, message: str, exc: Exception, details=None):
    body = {
        "success": False,
        "status": "fail" if 400 <= status_code < 500 else "error",
        "message": message,
    }
    if details is not None:
        body["details"] = details
    if not settings.production:
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return body


def register_exception_handlers(app: FastAPI, settings: Settings):
    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        if exc.status_code >= 500:
            logger.error(f"{exc.__class__.__name__} on {request.method} {request.url.path}: {exc.message}")
        else:
            logger.warning(f"{exc.__class__.__name__} on {request.method} {request.url.path}: {exc.message}")

        status_code, message = exc.status_code, exc.message
        if settings.production and not exc.is_operational:
            status_code, message = 500, "Something went wrong!"
        return JSONResponse(
            status_code=status_code,
            content=_error_body(settings, status_code, message, exc, exc.details),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
        details = [
            {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg")}
            for err in exc.errors()
        ]
        message = "; ".join(f"{d['field']}: {d['message']}" for d in details) or "Invalid input data"
        return JSONResponse(
            status_code=400,
            content=_error_body(settings, 400, message, exc, details),
        )

    @app.exception_handler(PydanticValidationError)
    async def pydantic_exception_handler(request: Request, exc: PydanticValidationError):
        logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
        details = [
            {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg")}
            for err in exc.errors()
        ]
        message = "; ".join(f"{d['field']}: {d['message']}" for d in details) or "Invalid input data"
        return JSONResponse(
            status_code=400,
            content=_error_body(settings, 400, message, exc, details),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            message = f"Can't find {request.url.path} on this server!"
        else:
            message = str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(settings, exc.status_code, message, exc),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
        message = "Something went wrong!" if settings.production else str(exc)
        return JSONResponse(status_code=500, content=_error_body(settings, 500, message, exc))

    app.add_exception_handler(RateLimitExceeded, custom_rate_limit_exceeded_handler)


# ============================================================================
# Application Factory
# ============================================================================
def create_app(
    settings: Optional[Settings] = None,
    *,
    database: Optional[Database] = None,
    media_store: Optional[MediaStore] = None,
    payment_gateway: Optional[PaymentGateway] = None,
    mail_sender: Optional[MailSender] = None,
) -> FastAPI:
    """
    Build the application. Collaborators not passed in are created from
    settings when the lifespan starts and released when it ends.
    """
    settings = settings or default_settings
    storage_dir = Path(settings.upload_dir)
    storage_dir.mkdir(parents=True, exist_ok=True)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("=" * 80)
        logger.info("Starting application...")
        logger.info("=" * 80)

        state = app.state
        try:
            state.database = database or Database(settings)
            state.database.create_all()
            logger.info("✓ Database tables ready")

            state.media_store = media_store or MediaStore.from_settings(settings)
            state.payment_gateway = payment_gateway or PaymentGateway.from_settings(settings)
            state.mail_sender = mail_sender or MailSender(settings)
            state.jwt_manager = JWTManager(settings)
            state.token_blacklist = TokenBlacklist.from_settings(settings)
            state.started_at = time.time()

            logger.info(f"Storage directory: {storage_dir.absolute()}")
            logger.info("✓ Application startup completed successfully")
        except Exception as e:
            logger.error(f"✗ Failed during startup: {e}", exc_info=True)
            raise

        yield  # Application is running

        logger.info("Shutting down application...")
        state.token_blacklist.close()
        if database is None:
            state.database.dispose()
        logger.info("✓ Application shutdown completed")

    app = FastAPI(
        title=settings.app_name,
        description=settings.app_description,
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # ------------------------------------------------------------------------
    # Middleware
    # ------------------------------------------------------------------------
    limiter = build_limiter(settings)
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        response.headers["X-Process-Time"] = f"{time.time() - start_time:.4f}"
        return response

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    register_exception_handlers(app, settings)

    # ------------------------------------------------------------------------
    # Health Check Endpoints
    # ------------------------------------------------------------------------
    @app.get("/")
    async def root():
        """Root endpoint with basic application info."""
        return {
            "app_name": settings.app_name,
            "version": settings.app_version,
            "status": "healthy",
            "environment": "production" if settings.production else "development",
        }

    @app.get("/health")
    @limiter.limit(settings.rate_limit_health)
    def health_check(request: Request):
        """Database and process health; 503 while the database is unreachable."""
        report, healthy = HealthService(
            request.app.state.database, request.app.state.started_at
        ).check()
        return JSONResponse(status_code=200 if healthy else 503, content=report)

    # ------------------------------------------------------------------------
    # Static Files & Routes
    # ------------------------------------------------------------------------
    app.mount("/storage", StaticFiles(directory=str(storage_dir.absolute())), name="storage")

    for router in routes:
        app.include_router(router, prefix=settings.api_prefix)

    logger.info(f"✓ Registered {len(routes)} routers under {settings.api_prefix}")
    return app


app = create_app()


# ============================================================================
# CLI Commands
# ============================================================================
@click.group()
def cli():
    """Learnify application management CLI."""
    pass


def run_migrations():
    alembic_cfg = Config(str(BASE_DIR / "alembic.ini"))
    try:
        command.upgrade(alembic_cfg, "head")
    except Exception as e:
        logger.error(f"Migration failed: {e}")
        raise click.ClickException(f"Migration failed: {e}")
    logger.info("Migrations completed successfully")


@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind the server to")
@click.option("--port", default=8000, help="Port to run the server on")
@click.option("--reload", is_flag=True, help="Enable auto-reload (development only)")
def dev(host: str, port: int, reload: bool):
    """Run development server with Uvicorn."""
    logger.info("Starting development server...")
    logger.info(f"  - Host: {host}")
    logger.info(f"  - Port: {port}")
    logger.info(f"  - Reload: {reload}")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=reload,
        log_level="debug",
        access_log=True,
    )


@cli.command()
@click.option("--host", default="0.0.0.0", help="Host to bind the server to")
@click.option("--port", default=8000, help="Port to run the server on")
@click.option("--workers", default=4, help="Number of worker processes")
@click.option("--skip-migrations", is_flag=True, help="Do not run alembic before starting")
def prod(host: str, port: int, workers: int, skip_migrations: bool):
    """Run production server with Gunicorn."""
    if not skip_migrations:
        logger.info("Running database migrations...")
        run_migrations()

    logger.info("Starting production server with Gunicorn...")
    logger.info(f"  - Host: {host}")
    logger.info(f"  - Port: {port}")
    logger.info(f"  - Workers: {workers}")

    cmd = [
        "gunicorn",
        "main:app",
        "--worker-class",
        "uvicorn.workers.UvicornWorker",
        "--workers",
        str(workers),
        "--bind",
        f"{host}:{port}",
        "--access-logfile",
        "-",
        "--error-logfile",
        "-",
        "--log-level",
        "info",
        "--timeout",
        "120",
        "--graceful-timeout",
        "30",
        "--keep-alive",
        "5",
    ]

    try:
        subprocess.run(cmd, check=True)
    except subprocess.CalledProcessError as e:
        logger.error(f"Gunicorn failed to start: {e}")
        raise click.ClickException(str(e))
    except FileNotFoundError:
        logger.error("Gunicorn not found. Install it with: pip install gunicorn")
        raise click.ClickException("Gunicorn not installed")


@cli.command()
def migrate():
    """Apply database migrations."""
    run_migrations()


@cli.command()
def info():
    """Display application information."""
    settings = default_settings
    click.echo(f"Application: {settings.app_name}")
    click.echo(f"Version: {settings.app_version}")
    click.echo(f"Debug Mode: {settings.debug}")
    click.echo(f"Production: {settings.production}")
    click.echo(f"API Prefix: {settings.api_prefix}")
    click.echo(f"Storage Directory: {Path(settings.upload_dir).absolute()}")
    click.echo(f"Log File: {Path(settings.log_file).absolute()}")


if __name__ == "__main__":
    cli()
