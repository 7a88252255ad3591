"""Question answering API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from crop_rag.api.dependencies import get_qa_service
from crop_rag.core.errors import CropRagError
from crop_rag.core.logging import get_logger
from crop_rag.core.metrics import REQUEST_COUNT
from crop_rag.models.dto import ErrorResponse, QARequest, QAResponse
from crop_rag.retrieval.qa import QAService, classify_error

logger = get_logger(__name__)

router = APIRouter()


@router.post(
    "/qa",
    response_model=QAResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Answer a question from the ingested documents",
)
async def answer_question(
    request: QARequest,
    service: QAService = Depends(get_qa_service),
) -> QAResponse | JSONResponse:
    try:
        answer = await service.ask(request.query, top_k=request.top_k)
    except CropRagError as exc:
        REQUEST_COUNT.labels(endpoint="qa", method="POST", status=str(exc.http_status)).inc()
        if exc.http_status < 500:
            return JSONResponse(status_code=exc.http_status, content=exc.to_payload())
        logger.error("Question answering failed: %s", exc.message)
        return JSONResponse(status_code=exc.http_status, content={"error": exc.code, "message": classify_error(exc)})
    except Exception as exc:
        logger.exception("Question answering failed")
        REQUEST_COUNT.labels(endpoint="qa", method="POST", status="500").inc()
        return JSONResponse(
            status_code=500,
            content={"error": str(exc) or "qa_failed", "message": classify_error(exc)},
        )

    REQUEST_COUNT.labels(endpoint="qa", method="POST", status="200").inc()
    return QAResponse(**answer.to_dict())
