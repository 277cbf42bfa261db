"""
RootStudy - Backend API
FastAPI over a document store (SQLite/SQLAlchemy or JSON files), Cloudinary
for binaries, plus thin proxies to the AI providers.

Install dependencies:
pip install -e ".[test]"

Run server (from services/api):
uvicorn main:create_app --factory --host 0.0.0.0 --port 8000
"""

import contextvars
import logging
import time
import uuid
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from adapters.base import StorageAdapter
from core.ai_clients import ImageGenerationClient, TextGenerationClient, VideoSearchClient
from core.asset_store import AssetStore
from core.errors import BadRequest, RootStudyError, StoreError
from core.pdf_service import PdfService
from core.publication import PublicationService
from routers import ai as ai_router
from routers import groups as groups_router
from routers import pages as pages_router
from routers import pdf as pdf_router
from schemas import HealthCheck
from settings import Settings, get_settings

API_VERSION = "1.0"

# ========== Request Context for Tracing ==========
request_id_var = contextvars.ContextVar("request_id", default=None)

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


# ============================================================================
# STORAGE ADAPTER INITIALIZATION
# ============================================================================

def build_storage(settings: Settings) -> StorageAdapter:
    """
    Pick the storage adapter from STORAGE_BACKEND.

    Any failure here (unknown backend, unreachable database) is fatal: it is
    logged and re-raised so the process does not start half-configured.
    """
    backend = settings.storage_backend.lower()
    logger.info(f"Storage Backend: {backend.upper()}")

    try:
        if backend == "sqlite":
            from adapters.sqlite import SqliteAdapter

            adapter = SqliteAdapter.from_url(settings.db_url)
            logger.info(f"✓ SQL adapter initialized ({settings.db_url.split('://')[0]})")
            return adapter

        if backend == "json":
            from adapters.json import JsonAdapter

            adapter = JsonAdapter(settings.json_data_dir)
            logger.info(f"✓ JSON adapter initialized ({settings.json_data_dir})")
            return adapter

        raise ValueError(f"Unsupported storage backend: {backend}")
    except Exception as e:
        logger.error(f"✗ Failed to initialize storage backend {backend!r}: {e}")
        raise


# ============================================================================
# FASTAPI APP
# ============================================================================

def create_app(
    settings: Optional[Settings] = None,
    *,
    storage: Optional[StorageAdapter] = None,
    assets: Optional[AssetStore] = None,
    text_client: Optional[TextGenerationClient] = None,
    image_client: Optional[ImageGenerationClient] = None,
    video_client: Optional[VideoSearchClient] = None,
) -> FastAPI:
    """
    Build the app and every long-lived collaborator once.

    Anything passed in is used as-is (tests inject fakes); everything else
    is built from settings.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    storage = storage if storage is not None else build_storage(settings)
    assets = assets if assets is not None else AssetStore.from_settings(settings)
    text_client = text_client or TextGenerationClient.from_settings(settings)
    image_client = image_client or ImageGenerationClient.from_settings(settings)
    video_client = video_client or VideoSearchClient.from_settings(settings)

    app = FastAPI(
        title="RootStudy API",
        description="Backend API for the RootStudy teacher authoring tool",
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.settings = settings
    app.state.storage_backend = settings.storage_backend.lower()
    app.state.storage_adapter = storage
    app.state.asset_store = assets
    app.state.text_client = text_client
    app.state.image_client = image_client
    app.state.video_client = video_client
    app.state.pdf_service = PdfService(
        storage,
        assets,
        max_size_bytes=settings.max_pdf_size_bytes,
        max_pages=settings.max_pdf_pages,
        tmp_dir=settings.upload_tmp_dir,
    )
    app.state.publication_service = PublicationService(
        storage,
        assets,
        tmp_dir=settings.upload_tmp_dir,
        max_upload_bytes=settings.max_upload_bytes,
        expose_error_details=settings.expose_error_details,
    )

    # ========== Request Tracing Middleware ==========
    @app.middleware("http")
    async def request_tracing_middleware(request: Request, call_next):
        """Add request_id and timing to all requests."""
        request_id = str(uuid.uuid4())[:8]
        request_id_var.set(request_id)
        started = time.time()

        response = await call_next(request)

        latency_ms = round((time.time() - started) * 1000, 2)
        logger.info(
            f"[{request_id}] {request.method} {request.url.path} "
            f"-> {response.status_code} ({latency_ms} ms)"
        )
        response.headers["X-Request-ID"] = request_id
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_origins_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ========== Error Handlers ==========
    @app.exception_handler(RootStudyError)
    async def rootstudy_error_handler(request: Request, exc: RootStudyError):
        if exc.status_code >= 500:
            logger.error(f"[{request_id_var.get()}] {exc.code}: {exc.message}")
        else:
            logger.info(f"[{request_id_var.get()}] {exc.code}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        parts = []
        for err in exc.errors():
            loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
            parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
        err = BadRequest("; ".join(parts) or "Invalid request")
        return JSONResponse(status_code=err.status_code, content=err.to_response())

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "message": "Internal server error", "error": "INTERNAL_ERROR"},
        )

    # ============================================================================
    # HEALTH ENDPOINTS
    # ============================================================================
    @app.get("/")
    async def root():
        """API root endpoint"""
        return {
            "message": "RootStudy API",
            "version": API_VERSION,
            "backend": app.state.storage_backend,
            "status": "running",
            "docs": "/docs",
        }

    @app.get("/healthz", response_model=HealthCheck)
    async def healthz():
        """Liveness: the process is up and answering."""
        return HealthCheck(status="ok", backend=app.state.storage_backend)

    @app.get("/readyz")
    async def readyz():
        """
        Readiness: the storage backend answers a ping.
        Returns 200 if ready, 503 if not ready.
        """
        try:
            app.state.storage_adapter.ping()
        except StoreError as e:
            logger.error(f"Readiness check failed: {e.message}")
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={
                    "status": "not_ready",
                    "backend": app.state.storage_backend,
                    "error": e.message,
                    "timestamp": time.time(),
                },
            )
        return {
            "status": "ready",
            "backend": app.state.storage_backend,
            "timestamp": time.time(),
        }

    # ========== Routers ==========
    app.include_router(groups_router.router)
    app.include_router(pages_router.router)
    app.include_router(pdf_router.router)
    app.include_router(ai_router.router)

    @app.on_event("startup")
    async def startup_event():
        logger.info("RootStudy API starting up...")
        logger.info(f"Storage Backend: {app.state.storage_backend.upper()}")
        logger.info(f"Allowed origins: {settings.get_origins_list()}")
        if not settings.cloudinary_configured:
            logger.warning("Cloudinary is not configured; uploads will return 500")

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("RootStudy API shutting down...")
        for client in (app.state.text_client, app.state.image_client, app.state.video_client):
            await client.aclose()
        engine = getattr(app.state.storage_adapter, "engine", None)
        if engine is not None:
            engine.dispose()

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:create_app", factory=True, host="0.0.0.0", port=get_settings().port)
