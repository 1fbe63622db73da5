import logging
from contextlib import asynccontextmanager
from typing import Any, Optional, cast

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from string_registry import limiter as limiter_module
from string_registry.config import Settings, get_settings
from string_registry.errors import RegistryError
from string_registry.logging import RequestLoggingMiddleware, init_logging
from string_registry.routes import router
from string_registry.schemas import ErrorResponse
from string_registry.services import StringRegistry, create_registry

logger = logging.getLogger("string_registry")


def _error_body(message: str, details: Any = None) -> dict:
    return ErrorResponse(error=message, details=details).model_dump(exclude_none=True)


async def registry_error_handler(request: Request, exc: RegistryError):
    logger.warning(
        "%s: %s %s -> %s | %s",
        type(exc).__name__,
        request.method,
        request.url.path,
        exc.status_code,
        exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, exc.details))


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    logger.warning(
        "HTTPException: %s %s -> %s | detail=%s",
        request.method,
        request.url.path,
        exc.status_code,
        exc.detail,
    )
    message = exc.detail if isinstance(exc.detail, str) else "Error"
    return JSONResponse(status_code=exc.status_code, content=_error_body(message), headers=exc.headers)


def _summarize_errors(errors: Any) -> list:
    return [{k: v for k, v in err.items() if k in ("type", "loc", "msg")} for err in errors]


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if request.method == "POST":
        # Missing field or invalid JSON -> 400, wrong type -> 422
        missing = any(err.get("type") in {"missing", "field_required"} for err in errors)
        json_invalid = any(err.get("type") in {"json_invalid", "model_attributes_type"} for err in errors)
        if missing or json_invalid:
            status, message = 400, "Invalid request body or missing 'value' field"
        else:
            status, message = 422, "Invalid data type for 'value' (must be string)"
    else:
        status, message = 400, "Invalid query parameter values"
    logger.warning("ValidationError: %s %s -> %s | errors=%s", request.method, request.url.path, status, errors)
    return JSONResponse(status_code=status, content=_error_body(message, _summarize_errors(errors)))


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=_error_body("Internal server error"))


def create_app(
    settings: Optional[Settings] = None,
    registry: Optional[StringRegistry] = None,
) -> FastAPI:
    settings = settings or get_settings()
    init_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "registry", None) is None:
            app.state.registry = create_registry(settings)
        logger.info("%s ready with %d strings", settings.app_name, len(app.state.registry))
        try:
            yield
        finally:
            logger.info("Shutdown complete")

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        description=(
            "Analyze strings, store them by SHA-256 hash and query them with "
            "structured filters or a small set of natural language phrases."
        ),
        lifespan=lifespan,
    )
    app.state.registry = registry
    app.state.limiter = limiter_module.create_limiter(settings)

    app.add_middleware(RequestLoggingMiddleware)
    mw = cast(Any, limiter_module.get_middleware())
    app.add_middleware(mw)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RegistryError, registry_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/", tags=["Health"])
    def root():
        return {
            "message": f"{settings.app_name} running. Visit /docs for API documentation.",
            "endpoints": {
                "POST /strings": "Analyze and store a string",
                "GET /strings/{string_value}": "Get a stored string",
                "GET /strings": "List strings with optional filters",
                "GET /strings/filter-by-natural-language": "Filter with a natural language query",
                "DELETE /strings/{string_value}": "Delete a string",
            },
        }

    app.include_router(router)
    return app


app = create_app()
