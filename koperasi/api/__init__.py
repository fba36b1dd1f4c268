"""
Koperasi Governance API Application Factory
"""

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import get_config
from ..logging_config import setup_logging, get_logger, log_action
from ..messages import normalize_locale
from .auth import get_cooperative_system, error_body
from .meetings import router as meetings_router
from .middleware import RequestLoggingMiddleware


logger = get_logger("koperasi.api")


def _request_error_body(exc: RequestValidationError, locale: str) -> dict:
    """First offending field as a localized validation failure"""
    errors = exc.errors()
    if errors and errors[0].get("type") == "missing":
        field = errors[0]["loc"][-1]
        return error_body("validation_failure", "missing_field", locale, {"field": field})
    return error_body("validation_failure", "invalid_request", locale)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    config = get_config()
    setup_logging(
        level=config.log_level,
        log_format=config.log_format,
        log_file=config.log_file
    )

    app = FastAPI(
        title=config.api_title,
        description="Meeting, attendance and voting core of the cooperative",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(meetings_router, prefix="/meetings", tags=["Meetings"])

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        """Malformed bodies and parameters answer like any other validation failure"""
        system = get_cooperative_system()
        locale = normalize_locale(request.headers.get("accept-language"), system.config.default_locale)
        log_action(
            logger, "warning", "Request rejected by schema",
            action="validate_request", resource=request.url.path,
            extra={"errors": [{"loc": list(e.get("loc", ())), "type": e.get("type")} for e in exc.errors()]}
        )
        return JSONResponse(status_code=400, content={"detail": _request_error_body(exc, locale)})

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "koperasi_governance_api",
            "version": __version__
        }

    @app.get("/")
    async def get_api_info():
        """Get API information"""
        return {
            "name": config.api_title,
            "version": __version__,
            "description": "Meeting, attendance and voting core of the cooperative",
            "endpoints": {
                "docs": "/docs",
                "health": "/health",
                "meetings": "/meetings",
                "vote": "/meetings/vote",
            }
        }

    return app


app = create_app()


def run_server(host: str = "0.0.0.0", port: int = 8090, debug: bool = False, workers: int = 1):
    """Run the FastAPI server; reload mode always runs a single worker"""
    uvicorn.run(
        "koperasi.api:app",
        host=host,
        port=port,
        reload=debug,
        workers=None if debug else workers,
        log_level="info"
    )
