# pos_backend/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from pos_backend import configure_logging
from pos_backend.auth import get_current_user
from pos_backend.config import DEV_JWT_SECRET, Settings, load_settings
from pos_backend.db import build_engine, init_db
from pos_backend.errors import PosError
from pos_backend.routers import auth as auth_router
from pos_backend.routers import bills, customers, items, payments, refunds, reports, transactions

logger = logging.getLogger("pos.api")


def _describe(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.jwt_secret == DEV_JWT_SECRET:
            logger.warning("POS_JWT_SECRET not set, using the development secret")
        engine = build_engine(settings.database_url)
        init_db(engine)
        app.state.engine = engine
        logger.info("storage ready")
        try:
            yield
        finally:
            engine.dispose()
            logger.info("storage closed")

    app = FastAPI(title="Retail POS Billing", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(PosError)
    async def pos_error_handler(request: Request, exc: PosError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": _describe(exc)})

    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error("storage failure on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Storage failure"})

    # Routers
    authed = [Depends(get_current_user)]
    app.include_router(auth_router.router, prefix="/auth", tags=["Auth"])
    app.include_router(items.router, prefix="/items", tags=["Items"], dependencies=authed)
    app.include_router(customers.router, prefix="/customers", tags=["Customers"], dependencies=authed)
    app.include_router(bills.router, prefix="/bills", tags=["Bills"], dependencies=authed)
    app.include_router(payments.router, prefix="/payments", tags=["Payments"], dependencies=authed)
    app.include_router(refunds.router, prefix="/refunds", tags=["Refunds"], dependencies=authed)
    app.include_router(transactions.router, prefix="/transactions", tags=["Transactions"], dependencies=authed)
    app.include_router(reports.router, prefix="/reports", tags=["Reports"])

    @app.get("/")
    def home():
        return {"message": "Welcome to Retail POS Billing"}

    return app


app = create_app()
