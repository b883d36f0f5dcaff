"""
Search Log Persistence

Records executed searches and the user feedback attached to them.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .models import SearchLog
from ..core.errors import StorageError


class SearchLogStore:
    """
    Writes to the ``search_logs`` table.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def record_search(
        self,
        query: str,
        scope: str,
        results_ids: List[int],
        top_similarity: Optional[float],
        execution_time_ms: int,
        user_ip: str,
        user_agent: str,
        source: str = "api",
    ) -> int:
        """
        Persist one executed search and return its id.
        """
        log = SearchLog(
            query=query,
            scope=scope,
            results_count=len(results_ids),
            results_ids=results_ids,
            top_similarity=top_similarity,
            execution_time_ms=execution_time_ms,
            user_ip=user_ip,
            user_agent=user_agent,
            source=source,
        )
        try:
            self._session.add(log)
            await self._session.flush()
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            raise StorageError(f"Failed to save search log: {type(exc).__name__}") from exc

        return log.id

    async def record_feedback(
        self,
        search_log_id: int,
        feedback: str,
        clicked_product_id: Optional[int] = None,
    ) -> bool:
        """
        Attach user feedback to a logged search.

        Returns False when no log with ``search_log_id`` exists.
        """
        values = {
            "user_feedback": feedback,
            "feedback_at": datetime.now(timezone.utc),
        }
        if clicked_product_id is not None:
            values["user_clicked_product_id"] = clicked_product_id

        stmt = update(SearchLog).where(SearchLog.id == search_log_id).values(**values)

        try:
            result = await self._session.execute(stmt)
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            raise StorageError(f"Failed to save feedback: {type(exc).__name__}") from exc

        return result.rowcount > 0
