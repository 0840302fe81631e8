"""
Main entrypoint for the Centrum Listings API.

This module assembles the FastAPI application: it sets up logging,
builds the listing store, registers the error handlers and includes
the routers.  The ``create_app`` function builds and configures the
app, which is then instantiated at module import time as ``app``, so
it can be served with uvicorn::

    uvicorn centrum_api.app.main:app --reload
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.endpoints import pages
from .api.router import router as api_router
from .core.config import Settings, settings
from .core.logging_config import setup_logging
from .services.listing_store import ListingStore, create_store


logger = logging.getLogger(__name__)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP errors as ``{"error": "<message>"}``."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are client errors like any other: 400."""
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


def create_app(
    store: Optional[ListingStore] = None,
    app_settings: Optional[Settings] = None,
) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    store : Optional[ListingStore]
        Store to serve listings from.  When omitted, one is built from
        ``app_settings.store_backend``.
    app_settings : Optional[Settings]
        Settings to use instead of the module-level ``settings``.

    Returns
    -------
    FastAPI
        A configured application instance.
    """
    app_settings = app_settings or settings

    # Logging first so that store construction below can log.
    setup_logging(app_settings.log_level, app_settings.log_file or None)

    app = FastAPI(
        title=app_settings.project_name,
        version=app_settings.api_version,
        debug=app_settings.debug,
    )
    app.state.settings = app_settings
    app.state.store = store if store is not None else create_store(app_settings)

    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(api_router, prefix="/api")
    app.include_router(pages.router)

    # Remaining static assets (images, scripts) are served from the same
    # directory; mounted last so it never shadows the routes above.
    static_dir = app_settings.resolve_path(app_settings.static_dir)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="static")
    else:
        logger.info("Static directory %s not found; page serving disabled", static_dir)

    if app_settings.admin_required and not (app_settings.admin_pin and app_settings.admin_secret):
        logger.warning("ADMIN_REQUIRED is set but ADMIN_PIN/ADMIN_SECRET are missing; writes will be refused")

    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
