from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from voltran.api.routers import auth, dashboard, materials, transactions
from voltran.core.config import settings
from voltran.core.errors import LedgerError, MaterialBusy
from voltran.core.logging_config import configure_logging
from voltran.db.session import engine
from voltran.schemas.common import Health

logger = logging.getLogger("voltran")


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("api starting: env=%s origins=%s", settings.app_env, ",".join(settings.allowed_origin_list))
    try:
        yield
    finally:
        await engine.dispose()


app = FastAPI(title="Voltran Inventory API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "%s %s -> %s (%.1fms)",
        request.method, request.url.path, response.status_code, (time.perf_counter() - started) * 1000,
    )
    return response


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    headers = {"Retry-After": "1"} if isinstance(exc, MaterialBusy) else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
    return JSONResponse(
        status_code=400,
        content={
            "error": f"{field or 'request'}: {first.get('msg', 'invalid input')}",
            "code": "validation_error",
            "field": field or None,
        },
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error: %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal Server Error", "code": "internal_error"})


app.include_router(auth.router)
app.include_router(materials.router)
app.include_router(transactions.router)
app.include_router(dashboard.router)


@app.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return "Voltran Inventory API is running"


@app.get("/api/health", response_model=Health)
async def health() -> Health:
    return Health(status="ok", timestamp=datetime.now(timezone.utc))
