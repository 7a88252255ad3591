"""FastAPI application setup for Crop RAG."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from crop_rag.api.dependencies import (
    get_answer_generator,
    get_app_settings,
    get_embedding_service,
    get_ingest_pipeline,
    get_qa_service,
    get_vector_store,
)
from crop_rag.api.routes_admin import router as admin_router
from crop_rag.api.routes_ingest import router as ingest_router
from crop_rag.api.routes_query import router as query_router
from crop_rag.core.errors import CropRagError
from crop_rag.core.logging import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)

app = FastAPI(
    title="Crop RAG",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://127.0.0.1:5000",
        "http://localhost:5000",
        "http://localhost:3000",
    ],
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

app.include_router(ingest_router, prefix="/ingest", tags=["ingest"])
app.include_router(query_router, prefix="", tags=["qa"])
app.include_router(admin_router, prefix="", tags=["admin"])


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}" for error in exc.errors()
    )
    return JSONResponse(status_code=400, content={"error": "validation_error", "message": details})


@app.exception_handler(CropRagError)
async def crop_rag_error_handler(request: Request, exc: CropRagError) -> JSONResponse:
    logger.error("%s failed: %s", request.url.path, exc.message)
    return JSONResponse(status_code=exc.http_status, content=exc.to_payload())


@app.on_event("startup")
async def startup() -> None:
    """Warm up core singletons on startup."""
    get_app_settings()
    get_vector_store()
    get_embedding_service()
    get_answer_generator()
    get_ingest_pipeline()
    get_qa_service()


@app.get("/health", tags=["admin"])
def health() -> dict[str, bool]:
    """Simple liveness check."""
    return {"ok": True}
