# order_hub/main.py
# Order Hub - sales order creation API
from __future__ import annotations
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from order_hub.settings import settings
from order_hub.errors import OrderHubError
from order_hub.database import init_db, close_db, check_db_health
from order_hub.logging_setup import setup_logging
from order_hub.routers.sales_orders import router as sales_orders_router

log = logging.getLogger(__name__)

VERSION = "1.0.0"

# ---------------------------------------------------------
# Lifespan: logging + database init/cleanup
# ---------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    log_path = setup_logging(settings)
    await init_db()
    log.info("order hub %s started, logging to %s", VERSION, log_path)
    yield
    await close_db()
    log.info("order hub stopped")

# ---------------------------------------------------------
# FastAPI app + CORS
# ---------------------------------------------------------
app = FastAPI(
    title="Order Hub API",
    version=VERSION,
    description="Sales orders from scanner input - GTIN/barcode resolution, totals, attachments",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)

app.include_router(sales_orders_router)

# ---------------------------------------------------------
# Error payloads: {"kind": ..., "message": ...}
# ---------------------------------------------------------
@app.exception_handler(OrderHubError)
async def order_hub_error_handler(request: Request, exc: OrderHubError):
    if exc.status_code >= 500:
        log.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)
    else:
        log.warning("%s %s -> %s %s: %s", request.method, request.url.path, exc.status_code, exc.kind, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={
            "kind": "ValidationFailure",
            "message": "Request could not be processed",
            "details": {"errors": jsonable_encoder(exc.errors())},
        },
    )

# ---------------------------------------------------------
# Endpoints
# ---------------------------------------------------------
@app.get("/health")
async def health():
    """Health check endpoint with database status."""
    result = {"status": "ok", "version": VERSION}
    db_health = await check_db_health()
    result["database"] = db_health
    if db_health.get("status") != "healthy":
        result["status"] = "degraded"
    return result
