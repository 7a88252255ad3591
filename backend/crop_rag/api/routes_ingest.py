"""Ingest API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse

from crop_rag.api.dependencies import get_ingest_pipeline
from crop_rag.core.errors import CropRagError
from crop_rag.core.logging import get_logger
from crop_rag.core.metrics import REQUEST_COUNT
from crop_rag.ingest.pipeline import IngestPipeline
from crop_rag.ingest.types import UploadedFile
from crop_rag.models.dto import ErrorResponse, FileResult, IngestResponse

logger = get_logger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=IngestResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Ingest uploaded documents",
)
async def ingest_files(
    files: list[UploadFile] | None = File(default=None),
    pipeline: IngestPipeline = Depends(get_ingest_pipeline),
) -> IngestResponse | JSONResponse:
    uploads = [
        UploadedFile(filename=upload.filename or "upload.txt", content=await upload.read())
        for upload in files or []
    ]
    try:
        report = await pipeline.ingest(uploads)
    except CropRagError as exc:
        REQUEST_COUNT.labels(endpoint="ingest", method="POST", status=str(exc.http_status)).inc()
        if exc.http_status < 500:
            return JSONResponse(status_code=exc.http_status, content=exc.to_payload())
        logger.error("Document ingestion failed: %s", exc.message)
        return JSONResponse(
            status_code=exc.http_status,
            content={"error": exc.code, "message": f"Document ingestion failed: {exc.message}"},
        )
    except Exception as exc:
        logger.exception("Document ingestion failed")
        REQUEST_COUNT.labels(endpoint="ingest", method="POST", status="500").inc()
        return JSONResponse(
            status_code=500,
            content={"error": str(exc) or "ingest_failed", "message": f"Document ingestion failed: {exc}"},
        )

    REQUEST_COUNT.labels(endpoint="ingest", method="POST", status="200").inc()
    return IngestResponse(
        inserted=report.inserted,
        message=f"Successfully ingested {report.inserted} document chunks",
        files=[FileResult(**outcome.to_dict()) for outcome in report.files],
    )
