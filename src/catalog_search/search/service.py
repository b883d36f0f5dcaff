"""
Semantic Search Service

Answers a free-text query by embedding it with the same client used for
indexing and asking the embedding store for the nearest rows of one index.

Responsibilities
----------------
- Validate the query
- Embed the query
- Run a thresholded nearest-neighbour search on the requested scope
- Warn when the scope was indexed with a different embedding model
- Return ranked matches (empty when nothing meets the threshold)

Errors from the embedder (``ConfigurationError``, ``ServiceError``) and from
the store (``StorageError``) propagate unchanged.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from ..embeddings.embedder import Embedder
from ..embeddings.models import IndexScope, SearchMatch

logger = logging.getLogger("catalog.search")

DEFAULT_SIMILARITY_THRESHOLD = 0.7
DEFAULT_LIMIT = 10


class SearchService:
    """
    Single-shot semantic search over the product or accessory index.
    """

    def __init__(
        self,
        embedder: Embedder,
        store,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
        default_limit: int = DEFAULT_LIMIT,
    ) -> None:
        """
        Parameters
        ----------
        embedder : Embedder
            Client used to embed queries. Must use the same model as indexing.

        store : VectorStore | MemoryVectorStore
            Embedding store to query.

        similarity_threshold : float
            Minimum cosine similarity for a row to be returned.

        default_limit : int
            Number of matches returned when a search names no limit.
        """
        self.embedder = embedder
        self.store = store
        self.similarity_threshold = similarity_threshold
        self.default_limit = default_limit

    async def search(
        self,
        scope: IndexScope,
        query_text: str,
        limit: Optional[int] = None,
    ) -> List[SearchMatch]:
        """
        Return up to ``limit`` matches for ``query_text`` in ``scope``,
        most similar first. ``limit`` defaults to ``default_limit``.

        Raises
        ------
        ValueError
            If the query is blank or the limit is not positive.
        """
        query = query_text.strip()
        if not query:
            raise ValueError("Search query must not be empty.")
        if limit is None:
            limit = self.default_limit
        if limit < 1:
            raise ValueError("Search limit must be at least 1.")

        query_embedding = await self.embedder.embed(query)

        matches = await self.store.query_nearest(
            scope,
            query_embedding,
            self.similarity_threshold,
            limit,
            self.embedder.model_version,
        )

        if not matches:
            await self._warn_on_model_mismatch(scope)

        logger.info(
            "Search on %s for %r returned %d matches",
            scope.value,
            query,
            len(matches),
        )
        return matches

    async def _warn_on_model_mismatch(self, scope: IndexScope) -> None:
        # Rows embedded by another model are never compared against the query.
        current = self.embedder.model_version
        others = await self.store.other_model_versions(scope, current)
        if others:
            logger.warning(
                "Index %s holds embeddings from %s but queries use %s; "
                "rebuild the index to search it",
                scope.value,
                ", ".join(others),
                current,
            )
