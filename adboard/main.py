"""
AdBoard - billboard rental administration API.
Pricing, installation costs, contract totals, installment plans and printable documents,
with audit logging and request tracing.
"""
from typing import Callable, Awaitable, Dict, Any
from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from sqlalchemy.orm import Session
import time
from uuid import uuid4

from adboard.core.config import settings
from adboard.core.database import SessionLocal, get_db, init_db
from adboard.core.logger import logger
from adboard.core.state import LookupState, get_lookups
from adboard.billboards.router import router as billboards_router
from adboard.billing.router import router as billing_router
from adboard.contracts.router import router as contracts_router
from adboard.customers.router import router as customers_router
from adboard.documents.router import router as documents_router
from adboard.expenses.router import router as expenses_router
from adboard.installation.router import router as installation_router
from adboard.partnerships.router import router as partnerships_router
from adboard.pricing.router import router as pricing_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle management (startup/shutdown hooks)."""
    # Startup
    logger.info(f"Initializing {settings.APP_NAME} v{settings.VERSION}")
    init_db()
    logger.info("Database initialized")

    db = SessionLocal()
    try:
        app.state.lookups.load(db)
    finally:
        db.close()

    yield

    # Shutdown
    logger.info("Shutting down application")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Billboard rental administration: pricing, contracts, installments and printable documents.",
    lifespan=lifespan
)
app.state.lookups = LookupState()

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Middleware for distributed tracing and logging
@app.middleware("http")
async def add_correlation_id(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    """
    Middleware for distributed tracing.
    Injects a unique Correlation ID into the request context and propagates it to the response headers.
    """
    correlation_id = request.headers.get("X-Correlation-ID", str(uuid4()))
    request.state.correlation_id = correlation_id

    start_time = time.time()

    logger.info(
        f"Request: {request.method} {request.url.path}",
        extra={"correlation_id": correlation_id}
    )

    response = await call_next(request)

    process_time = time.time() - start_time
    response.headers["X-Correlation-ID"] = correlation_id
    response.headers["X-Process-Time"] = str(process_time)

    logger.info(
        f"Response: {response.status_code} | {process_time:.3f}s",
        extra={"correlation_id": correlation_id}
    )

    return response


# Router Registration
app.include_router(pricing_router, prefix="/pricing")
app.include_router(installation_router, prefix="/installation")
app.include_router(billboards_router, prefix="/billboards")
app.include_router(contracts_router, prefix="/contracts")
app.include_router(billing_router, prefix="/billing")
app.include_router(customers_router, prefix="/customers")
app.include_router(documents_router, prefix="/documents")
app.include_router(expenses_router, prefix="/expenses")
app.include_router(partnerships_router, prefix="/partnerships")


@app.post("/settings/refresh", tags=["Settings"])
def refresh_lookups(request: Request, db: Session = Depends(get_db)) -> Dict[str, Any]:
    """Reloads prices, sizes and form lookups after the tables were edited outside the API."""
    state: LookupState = request.app.state.lookups
    state.refresh(db)
    return state.snapshot()


@app.get("/settings/lookups", tags=["Settings"])
def get_lookup_values(state: LookupState = Depends(get_lookups)) -> Dict[str, Any]:
    """Values used to fill admin forms (categories, levels, sizes, cities, ad types)."""
    return state.snapshot()


@app.get("/api-info", tags=["Health"])
def api_info() -> Dict[str, Any]:
    """
    Endpoint exposing API metadata and service discovery links.
    """
    return {
        "app": settings.APP_NAME,
        "version": settings.VERSION,
        "status": "online",
        "endpoints": {
            "quote": "/pricing/quote",
            "installation_cost": "/installation/cost",
            "billboards": "/billboards/",
            "contract_preview": "/contracts/preview",
            "contracts": "/contracts/",
            "payments": "/billing/payments",
            "duplicates": "/customers/duplicates",
            "fee_pool": "/expenses/pool",
            "shared_billboards": "/partnerships/",
            "documents": "/documents/contracts/{contract_id}/{kind}",
            "docs": "/docs",
            "redoc": "/redoc"
        }
    }


@app.get("/health", tags=["Health"])
def health_check() -> Dict[str, str]:
    """
    Liveness endpoint for orchestration systems.
    """
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.VERSION
    }


# Global Exception Handler
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Returns HTTP errors with the request's correlation id attached."""
    correlation_id = getattr(request.state, "correlation_id", "N/A")

    logger.info(
        f"HTTPException: {exc.status_code} | {exc.detail}",
        extra={"correlation_id": correlation_id}
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "correlation_id": correlation_id}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception barrier.
    Captures unhandled exceptions, logs stack traces with Correlation IDs,
    and returns a sanitized 500 Internal Server Error response.
    """
    correlation_id = getattr(request.state, "correlation_id", "N/A")

    logger.error(
        f"Unhandled exception: {str(exc)}",
        exc_info=True,
        extra={"correlation_id": correlation_id}
    )

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal Server Error",
            "correlation_id": correlation_id
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "adboard.main:app",
        host="0.0.0.0",  # nosec
        port=8000,
        reload=settings.DEBUG
    )
