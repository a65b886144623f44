"""
Networking app auth service — application entry point.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware import register_exception_handlers, register_middleware
from auth.jwt import TokenIssuer, build_token_issuer
from auth.routes import router as auth_router
from auth.service import AuthService
from config.settings import config
from database.session import build_engine, build_session_factory, init_models
from database.user_store import SqlAlchemyUserStore, UserStore

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
for _noisy in ("httpcore", "httpx", "sqlalchemy.engine", "asyncio"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def create_app(
    store: Optional[UserStore] = None,
    tokens: Optional[TokenIssuer] = None,
) -> FastAPI:
    """
    Build the application.  Without an explicit ``store`` the SQL store is
    wired to ``config.database_url`` and its tables are created on startup.
    """
    app = FastAPI(
        title="Networking Auth Service",
        version="1.0.0",
        description="Registration, login and profile endpoints.",
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middleware(app)
    register_exception_handlers(app)

    engine = None
    if store is None:
        engine = build_engine()
        store = SqlAlchemyUserStore(build_session_factory(engine))

    app.state.auth_service = AuthService(store, tokens or build_token_issuer())

    # Routes
    app.include_router(auth_router, prefix="/api")

    @app.get("/health", tags=["meta"])
    async def health() -> dict:
        return {"status": "ok"}

    @app.on_event("startup")
    async def on_startup():
        if engine is not None:
            logger.info("Ensuring database tables exist…")
            await init_models(engine)
        logger.info("Application ready to accept requests.")

    @app.on_event("shutdown")
    async def on_shutdown():
        if engine is not None:
            await engine.dispose()

    return app


if __name__ == "__main__":
    uvicorn.run(
        "main:create_app",
        factory=True,
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
