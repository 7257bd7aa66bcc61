import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

# Import all models to ensure Base.metadata is populated
from storefront.models import Category, CategoryClosure  # noqa: F401

from storefront.api.v1.router import api_router
from storefront.core.config import settings
from storefront.core.exceptions import CategoryError
from storefront.core.logging_config import setup_logging
from storefront.db.init_db import init_database
from storefront.db.session import engine

logger = logging.getLogger(__name__)


def create_app(init_db: bool = True) -> FastAPI:
    """Build the application. Tests pass init_db=False and create their own schema."""
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description="E-commerce backend: hierarchical category management",
        openapi_url="/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[{"name": "categories", "description": "Category tree management"}],
        redirect_slashes=False,  # Disable automatic 307 redirects between /route and /route/
    )

    @app.exception_handler(CategoryError)
    async def category_error_handler(request: Request, exc: CategoryError):
        """NotFound -> 404, Conflict -> 409, InvalidOperation -> 400"""
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message},
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        """Handle database integrity errors (unique constraints, foreign keys)"""
        error_msg = str(exc.orig) if exc.orig else str(exc)
        if "unique" in error_msg.lower():
            detail = "The record already exists."
            status_code = 409
        else:
            detail = "The operation conflicts with related records."
            status_code = 400

        logger.warning("Integrity error at %s: %s", request.url.path, error_msg)
        return JSONResponse(
            status_code=status_code,
            content={"detail": detail},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle Pydantic validation errors with cleaner messages"""
        errors = []
        for error in exc.errors():
            field = ".".join(str(x) for x in error["loc"] if x != "body")
            msg = error["msg"]
            errors.append(f"{field}: {msg}")

        return JSONResponse(
            status_code=422,
            content={"detail": "Validation error", "errors": errors},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error at %s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal Server Error. Please contact support."},
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH", "HEAD"],
        allow_headers=["*"],
        max_age=3600,  # Cache preflight requests for 1 hour
    )

    @app.middleware("http")
    async def resolve_trailing_slash(request, call_next):
        """
        Ensure routes defined with a trailing slash still work without it,
        without issuing an HTTP redirect.
        """
        path = request.scope.get("path", "")
        if path and not path.endswith("/"):
            alt_path = f"{path}/"
            available_paths = {
                getattr(route, "path", None)
                for route in app.router.routes
                if getattr(route, "path", None)
            }
            if alt_path in available_paths:
                request.scope["path"] = alt_path
        return await call_next(request)

    if init_db:
        @app.on_event("startup")
        async def on_startup() -> None:
            # Create tables and indexes that do not exist yet
            await init_database(engine)

            if settings.SEED_CATEGORIES:
                from storefront.core.seed import run_seed
                await run_seed()

    app.include_router(api_router, prefix=settings.API_V1_STR)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "message": "Storefront backend is running"}

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("storefront.main:app", host="0.0.0.0", port=8000, reload=False)
