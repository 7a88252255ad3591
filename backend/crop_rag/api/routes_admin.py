"""Administrative routes for the vector store."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from crop_rag.api.dependencies import get_vector_store
from crop_rag.core.logging import get_logger
from crop_rag.core.metrics import metrics_response
from crop_rag.models.dto import ClearResponse, StoreStatsResponse
from crop_rag.retrieval.vector_store import VectorStore

logger = get_logger(__name__)

router = APIRouter()


@router.get("/store", response_model=StoreStatsResponse, summary="Describe the vector store")
async def store_stats(store: VectorStore = Depends(get_vector_store)) -> StoreStatsResponse:
    return StoreStatsResponse(records=store.size, dim=store.dim, sources=store.sources())


@router.delete("/store", response_model=ClearResponse, summary="Remove every stored vector")
async def clear_store(store: VectorStore = Depends(get_vector_store)) -> ClearResponse:
    logger.warning("Clearing vector store with %d records", store.size)
    store.clear()
    return ClearResponse()


@router.get("/metrics", summary="Prometheus metrics")
def metrics() -> Response:
    return metrics_response()
