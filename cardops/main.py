"""
CardOps API - FastAPI Application
Operations backend for a trading-card grading service
"""
from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cardops.core.config import settings
from cardops.core.database import Database
from cardops.core.exceptions import register_exception_handlers
from cardops.services.audit_service import AuditLogger
from cardops.services.notification_service import EmailNotifier, Notifier

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    database: Database = app.state.database
    if settings.DEBUG or database.url.startswith("sqlite"):
        # Production schemas are managed by alembic
        database.create_all()
    yield
    database.dispose()


def create_app(
    database: Optional[Database] = None,
    notifier: Optional[Notifier] = None
) -> FastAPI:
    """
    Build the application

    Args:
        database: Store handle; built from DATABASE_URL when omitted
        notifier: Outbound mail channel; EmailNotifier when omitted
    """
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title=settings.APP_NAME,
        description="Grading request progress tracking and buyback approvals",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    database = database or Database(settings.DATABASE_URL, echo=settings.SQL_ECHO)
    app.state.database = database
    app.state.notifier = notifier or EmailNotifier(settings)
    app.state.audit_logger = AuditLogger(database)

    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=settings.cors_origins_list != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "environment": settings.APP_ENV
        }

    @app.get("/health/db", tags=["Health"])
    async def db_health_check(request: Request):
        """Database connection health check"""
        try:
            request.app.state.database.ping()
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return JSONResponse(
                status_code=503,
                content={"status": "unhealthy", "connection_test": False},
            )
        return {"status": "healthy", "connection_test": True}

    from cardops.api import admin, approvals, auth, messages, payments, public, requests

    app.include_router(auth.router, prefix="/api/v1/auth", tags=["Authentication"])
    app.include_router(public.router, prefix="/api/v1/public", tags=["Public"])
    app.include_router(requests.router, prefix="/api/v1", tags=["Requests"])
    app.include_router(approvals.router, prefix="/api/v1/approvals", tags=["Approvals"])
    app.include_router(messages.router, prefix="/api/v1", tags=["Messages"])
    app.include_router(payments.router, prefix="/api/v1", tags=["Payments"])
    app.include_router(admin.router, prefix="/api/v1", tags=["Admin"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "cardops.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
