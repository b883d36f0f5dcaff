"""
Search Routes

This module defines the semantic search endpoints over the catalog
embedding indexes, plus the feedback endpoint used to rate results.

Searches are rate limited per client IP and every executed search is
logged; the returned ``search_log_id`` is the handle for feedback.
"""

import logging
import time
from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from .models import (
    SearchRequest,
    SearchResponse,
    SearchResult,
    SearchResults,
    SearchFeedbackRequest,
    SearchFeedbackResponse,
)
from .dependencies import get_search_service, get_rate_limiter, get_search_log_store
from .security import get_client_ip, get_user_agent
from ..core.errors import StorageError
from ..db import SearchRateLimiter, SearchLogStore
from ..embeddings.models import IndexScope, SearchMatch
from ..search.service import SearchService

logger = logging.getLogger("catalog.api.search")

router = APIRouter(prefix="/search", tags=["search"])


def _result_ids(scope: IndexScope, matches: List[SearchMatch]) -> List[int]:
    if scope is IndexScope.ACCESSORIES:
        return [m.key.accessory_id for m in matches if m.key.accessory_id is not None]
    return [m.key.product_id for m in matches if m.key.product_id is not None]


@router.post(
    "",
    response_model=SearchResponse,
    summary="Semantic catalog search",
    status_code=status.HTTP_200_OK,
)
async def search(
    req: SearchRequest,
    request: Request,
    response: Response,
    service: Annotated[SearchService, Depends(get_search_service)],
    limiter: Annotated[SearchRateLimiter, Depends(get_rate_limiter)],
    search_logs: Annotated[SearchLogStore, Depends(get_search_log_store)],
) -> SearchResponse:
    """
    Search the product or accessory index with a natural-language query.

    Embedding and storage failures are mapped to 502/503 by the global
    error handlers.
    """
    user_ip = get_client_ip(request)
    quota = await limiter.check_limit(user_ip)
    rate_headers = {
        "X-RateLimit-Limit": str(quota.limit),
        "X-RateLimit-Reset": quota.reset_at.isoformat(),
    }

    if not quota.allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many searches. Please wait a moment.",
            headers={
                **rate_headers,
                "X-RateLimit-Remaining": "0",
                "Retry-After": str(max(1, round(quota.reset_at.timestamp() - time.time()))),
            },
        )

    started = time.perf_counter()
    try:
        matches = await service.search(req.scope, req.query, req.limit)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    execution_time_ms = int((time.perf_counter() - started) * 1000)

    search_log_id = None
    try:
        search_log_id = await search_logs.record_search(
            query=req.query.strip(),
            scope=req.scope.value,
            results_ids=_result_ids(req.scope, matches),
            top_similarity=matches[0].similarity if matches else None,
            execution_time_ms=execution_time_ms,
            user_ip=user_ip,
            user_agent=get_user_agent(request),
        )
    except StorageError:
        logger.exception("Failed to save search log for %s", user_ip)

    response.headers.update(rate_headers)
    response.headers["X-RateLimit-Remaining"] = str(max(0, quota.remaining - 1))

    return SearchResponse(
        success=True,
        search_log_id=search_log_id,
        results=SearchResults(
            matches=[SearchResult.from_match(m) for m in matches],
            total=len(matches),
        ),
    )


@router.post(
    "/feedback",
    response_model=SearchFeedbackResponse,
    summary="Rate the results of a logged search",
)
async def search_feedback(
    req: SearchFeedbackRequest,
    search_logs: Annotated[SearchLogStore, Depends(get_search_log_store)],
) -> SearchFeedbackResponse:
    """
    Attach ``helpful`` / ``not_helpful`` feedback (and optionally the
    clicked product) to a logged search.
    """
    updated = await search_logs.record_feedback(
        search_log_id=req.search_log_id,
        feedback=req.feedback,
        clicked_product_id=req.clicked_product_id,
    )
    if not updated:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Search log {req.search_log_id} not found",
        )

    logger.info("Feedback saved: %s for search #%d", req.feedback, req.search_log_id)
    return SearchFeedbackResponse(success=True, message="Feedback saved")
