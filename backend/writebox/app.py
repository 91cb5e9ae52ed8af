"""FastAPI application setup for Writebox."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from writebox.api.dependencies import (
    close_workspace,
    get_ai_service,
    get_app_settings,
    get_file_index,
    get_recognizer,
    get_workspace,
)
from writebox.api.routes_ai import router as ai_router
from writebox.api.routes_files import router as files_router
from writebox.api.routes_workspace import router as workspace_router
from writebox.core.logging import configure_logging, get_logger
from writebox.core.metrics import metrics_response
from writebox.gateway.client import GatewayError
from writebox.gateway.service import EmptyInputError

configure_logging()
logger = get_logger(__name__)

app = FastAPI(
    title="Writebox",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_app_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(ai_router, prefix="/api", tags=["ai"])
app.include_router(files_router, prefix="/api/files", tags=["files"])
app.include_router(workspace_router, prefix="/api/workspace", tags=["workspace"])


@app.exception_handler(EmptyInputError)
async def empty_input_handler(_request: Request, exc: EmptyInputError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(GatewayError)
async def gateway_error_handler(_request: Request, exc: GatewayError) -> JSONResponse:
    logger.warning("Generative request failed: %s", exc)
    return JSONResponse(status_code=500, content={"error": str(exc)})


@app.on_event("startup")
async def startup() -> None:
    """Warm up core singletons on startup."""
    get_app_settings()
    get_ai_service()
    get_file_index()
    get_recognizer()
    await get_workspace()


@app.on_event("shutdown")
async def shutdown() -> None:
    await close_workspace()


@app.get("/health", tags=["admin"])
def health() -> dict[str, bool]:
    """Simple liveness check."""
    return {"ok": True}


@app.get("/metrics", tags=["admin"], summary="Prometheus metrics")
async def get_metrics():
    return metrics_response()
