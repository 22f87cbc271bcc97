from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import time
import logging

from app.config.settings import settings
from app.core.exceptions import KiloShareError
from app.shared.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)

def setup_middleware(app: FastAPI):
    """Configure all middleware for the application"""

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request, call_next):
        start_time = time.time()

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            f"{request.method} {request.url.path} - "
            f"Status: {response.status_code} - "
            f"Time: {process_time:.4f}s"
        )

        return response

def setup_exception_handlers(app: FastAPI):
    """Convertir los errores de dominio en ErrorResponse"""

    @app.exception_handler(KiloShareError)
    async def kiloshare_error_handler(request: Request, exc: KiloShareError):
        if exc.status_code >= 500:
            logger.error(f"❌ {request.method} {request.url.path}: {exc.message}")
        else:
            logger.info(f"⚠️ {request.method} {request.url.path} → {exc.error_code}: {exc.message}")

        body = ErrorResponse(
            message=exc.message,
            error_code=exc.error_code,
            details=exc.details
        )
        return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))
