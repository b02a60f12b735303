import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from jobledger.application import get_ledger_service
from jobledger.core.logging import setup_logging
from jobledger.core.settings import get_settings
from jobledger.routes import dashboard, ledgers

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)
    get_ledger_service().configure(settings)

    app = FastAPI(title="Job Ledger Earnings API", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(ledgers.router, prefix="/api")
    app.include_router(dashboard.router, prefix="/api")

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "Job Ledger Earnings API",
                "docs": "/docs",
                "health": "/api/ledgers",
            }
        )

    logger.info("application configured (timezone=%s, first_weekday=%d)", settings.timezone, settings.first_weekday)
    return app


app = create_app()
