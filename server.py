# server.py
import logging
import os
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database
from pymongo.errors import PyMongoError

from supplyhub import __version__
from supplyhub.app_config import Settings, configure_logging, load_settings
from supplyhub.errors import DomainError
from supplyhub.identity import IdentityVerifier
from supplyhub.mongo import ensure_indexes, init_mongo

logger = logging.getLogger("supplyhub.server")


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainError)
    async def _domain_error(request: Request, exc: DomainError):
        return JSONResponse(status_code=exc.status_code, content=exc.payload())

    @app.exception_handler(RequestValidationError)
    async def _bad_request(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"ok": False, "message": _validation_message(exc)})

    @app.exception_handler(PyMongoError)
    async def _db_error(request: Request, exc: PyMongoError):
        logger.exception("Database error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"ok": False, "message": "Database error"})

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"ok": False, "message": "Unexpected server error"})


def create_app(
    settings: Optional[Settings] = None,
    db: Optional[Database] = None,
    verifier: Optional[IdentityVerifier] = None,
) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings)

    app = FastAPI(title="Street Supply API", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if db is None:
        db = init_mongo(settings.mongo_uri)
    ensure_indexes(db)

    app.state.settings = settings
    app.state.db = db
    app.state.verifier = verifier or IdentityVerifier.from_settings(settings)

    install_error_handlers(app)

    # --- include routers ---
    from supplyhub.api.agent_api import router as agent_router
    from supplyhub.api.auth_api import router as auth_router
    from supplyhub.api.distributor_api import router as distributor_router
    from supplyhub.api.tracking_api import router as tracking_router
    from supplyhub.api.vendor_api import router as vendor_router

    app.include_router(auth_router)
    app.include_router(distributor_router)
    app.include_router(vendor_router)
    app.include_router(agent_router)
    app.include_router(tracking_router)

    # --- diagnostics ---
    @app.get("/_health")
    def _health():
        return {"ok": True, "service": "street-supply-api", "ts": int(datetime.now(timezone.utc).timestamp())}

    logger.info("Street Supply API ready (%d routes)", len(app.routes))
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=int(os.getenv("PORT", 8000)))
