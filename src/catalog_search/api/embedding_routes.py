"""
Embeddings Routes

This module exposes admin endpoints for:
- Querying embedding index statistics
- Triggering a full background rebuild of both indexes

Both are protected by the admin API key.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from typing import Annotated, Optional

from .models import EmbeddingStatsResponse, OperationResult, RebuildRequest
from .dependencies import get_vector_store, get_embedder
from .security import verify_admin
from ..config import settings
from ..db import VectorStore
from ..embeddings.embedder import Embedder
from ..embeddings.jobs import rebuild_in_progress, run_catalog_index_task

router = APIRouter(
    prefix="/embeddings",
    tags=["embeddings"],
    dependencies=[Depends(verify_admin)],
)


@router.get(
    "/stats",
    response_model=EmbeddingStatsResponse,
    summary="Get embedding index statistics",
)
async def get_embedding_stats(
    store: Annotated[VectorStore, Depends(get_vector_store)],
    embedder: Annotated[Embedder, Depends(get_embedder)],
) -> EmbeddingStatsResponse:
    """
    Return per-index row counts. ``by_model_version`` exposes rows embedded
    by a model other than the current one, which searches ignore.
    """
    stats = await store.get_stats()
    return EmbeddingStatsResponse(
        model_version=embedder.model_version,
        products=stats["products"],
        accessories=stats["accessories"],
    )


@router.post(
    "/rebuild",
    summary="Rebuild all catalog embeddings in the background",
    response_model=OperationResult,
    status_code=status.HTTP_202_ACCEPTED,
)
async def rebuild_embeddings(
    background_tasks: BackgroundTasks,
    embedder: Annotated[Embedder, Depends(get_embedder)],
    req: Optional[RebuildRequest] = None,
) -> OperationResult:
    """
    Queue a full re-index of the catalog. Refused with 409 while another
    rebuild is running in this process.
    """
    if rebuild_in_progress():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A rebuild is already in progress",
        )

    req = req or RebuildRequest()
    background_tasks.add_task(
        run_catalog_index_task,
        embedder,
        pacing_delay=settings.indexing_pacing_delay,
        include_products=req.include_products,
        include_accessories=req.include_accessories,
    )

    return OperationResult(
        status="queued",
        details={
            "include_products": req.include_products,
            "include_accessories": req.include_accessories,
        },
    )
