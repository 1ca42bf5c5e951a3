from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

try:
    from .config import CONFIG
    from .db import FamilyStore, get_store
    from .errors import FamilyTreeError, StoreUnavailable
    from .middleware import AuthMiddleware
    from .queries import ping
    from .routes import admin as admin_routes
    from .routes import family as family_routes
except ImportError:  # pragma: no cover
    # Support running with CWD=family_api (e.g., `python -m uvicorn main:app`).
    from config import CONFIG
    from db import FamilyStore, get_store
    from errors import FamilyTreeError, StoreUnavailable
    from middleware import AuthMiddleware
    from queries import ping
    from routes import admin as admin_routes
    from routes import family as family_routes

log = logging.getLogger(__name__)


def create_app(store: Optional[FamilyStore] = None) -> FastAPI:
    """Build the API. A prebuilt *store* is used as is and not closed on shutdown."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = store is None
        app.state.store = store or FamilyStore.from_config(CONFIG)
        if owned:
            app.state.store.open()
        try:
            yield
        finally:
            if owned:
                app.state.store.close()

    app = FastAPI(title="Family Tree API", version="0.1.0", lifespan=lifespan)
    app.state.store = store

    app.add_middleware(AuthMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CONFIG.cors_origin_list(),
        allow_methods=["GET"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(FamilyTreeError)
    async def _family_error(request: Request, exc: FamilyTreeError) -> JSONResponse:
        headers = None
        if isinstance(exc, StoreUnavailable):
            log.error("store unavailable on %s: %s", request.url.path, exc.message, exc_info=exc.__cause__)
            headers = {"Retry-After": "5"}
        return JSONResponse(exc.to_json(), status_code=exc.status_code, headers=headers)

    @app.get("/", include_in_schema=False)
    def banner() -> PlainTextResponse:
        return PlainTextResponse("Family Tree API is running")

    @app.get("/health")
    def health(store: FamilyStore = Depends(get_store)) -> dict[str, str]:
        with store.connection() as conn:
            ping(conn)
        return {"status": "ok"}

    app.include_router(family_routes.router)
    app.include_router(admin_routes.router)
    return app


def configure_logging(level: str = CONFIG.log_level) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


configure_logging()
app = create_app()
