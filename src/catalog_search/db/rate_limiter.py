"""
Rate Limiter

Provides per-IP search rate limiting over a sliding time window.
Counts rows of ``search_logs`` so every logged search consumes quota.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import NamedTuple, Optional

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .models import SearchLog
from ..config import settings

logger = logging.getLogger("catalog.rate_limiter")


class RateLimitStatus(NamedTuple):
    """Status of a client's search quota for the current window."""
    allowed: bool
    remaining: int
    limit: int
    reset_at: datetime


class SearchRateLimiter:
    """
    Sliding-window search limiter using PostgreSQL for persistence.

    Fails open: if the quota lookup itself fails the request is allowed and
    the failure is logged and the session rolled back so later statements
    on it still run.
    """

    def __init__(
        self,
        session: AsyncSession,
        max_requests: Optional[int] = None,
        window_seconds: Optional[int] = None,
    ) -> None:
        """
        Initialize with an async database session.

        Parameters
        ----------
        session : AsyncSession
            SQLAlchemy async session for database operations.
        max_requests : Optional[int]
            Searches allowed per window. Defaults to settings.
        window_seconds : Optional[int]
            Window length in seconds. Defaults to settings.
        """
        self._session = session
        self._max_requests = max_requests or settings.search_rate_limit_max_requests
        self._window = timedelta(
            seconds=window_seconds or settings.search_rate_limit_window_seconds
        )

    async def check_limit(self, user_ip: str) -> RateLimitStatus:
        """
        Check whether ``user_ip`` may run another search now.

        Parameters
        ----------
        user_ip : str
            Client IP address.

        Returns
        -------
        RateLimitStatus
            Whether the request is allowed and the remaining quota.
        """
        now = datetime.now(timezone.utc)
        reset_at = now + self._window
        window_start = now - self._window

        try:
            result = await self._session.execute(
                select(func.count())
                .select_from(SearchLog)
                .where(
                    SearchLog.user_ip == user_ip,
                    SearchLog.created_at >= window_start,
                )
            )
            request_count = result.scalar() or 0
        except SQLAlchemyError:
            logger.exception("Rate limit lookup failed for %s; allowing request", user_ip)
            # The session is shared with the search that follows; PostgreSQL
            # refuses further statements until the failed transaction ends.
            await self._reset_session()
            return RateLimitStatus(
                allowed=True,
                remaining=self._max_requests,
                limit=self._max_requests,
                reset_at=reset_at,
            )

        return RateLimitStatus(
            allowed=request_count < self._max_requests,
            remaining=max(0, self._max_requests - request_count),
            limit=self._max_requests,
            reset_at=reset_at,
        )

    async def _reset_session(self) -> None:
        try:
            await self._session.rollback()
        except SQLAlchemyError:
            logger.exception("Rollback after failed rate limit lookup failed")
