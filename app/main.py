import logging
import sys
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.author_client import author_client
from app.config import settings
from app.database import dispose_engine
from app.exceptions import DiaryServiceError
from app.middleware import TimingMiddleware
from app.routers import diaries, metrics

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    # Third-party loggers are chatty at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    if not settings.DEBUG:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging()
    await author_client.connect()
    logger.info("Diary service starting (profile=%s)", settings.APP_ENV)
    yield
    # Shutdown
    await author_client.disconnect()
    await dispose_engine()
    logger.info("Diary service stopped")


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DiaryServiceError)
    async def handle_service_error(request: Request, exc: DiaryServiceError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.error_code, "message": exc.message},
            headers={"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None,
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        # Details stay in the log; the client gets an opaque 500.
        logger.error(
            "Unexpected error on %s %s: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred",
            },
        )


app = FastAPI(
    title="Diary API",
    description="Diary posts and likes for the diary service",
    version="1.0.0",
    docs_url="/api/diary/swagger",
    redoc_url=None,
    openapi_url="/api/diary/swagger/openapi.json",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(TimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    # Credentials cannot be combined with a wildcard origin.
    allow_credentials="*" not in settings.cors_origins_list,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Routers
app.include_router(metrics.router)
app.include_router(diaries.router)

@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host=settings.BIND_HOST, port=settings.PORT)
