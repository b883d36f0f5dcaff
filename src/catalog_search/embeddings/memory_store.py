"""
In-Memory Vector Store

This module implements an in-process embedding store with the same async
interface as the pgvector-backed ``VectorStore``. It receives the rows of a
``--dry-run`` indexing pass, which embeds the catalog without writing to the
embedding tables.

Key Properties
--------------
- Upsert keyed by the full entity key (idempotent re-indexing)
- Cosine similarity over L2-normalized numpy vectors
- Stable tie order (insertion order of the key)
- Rows from different model versions are never compared
- Thread-safe via an internal lock
"""

from __future__ import annotations

from dataclasses import dataclass
from threading import RLock
from typing import Dict, List, Optional

import numpy as np

from ..core.errors import StorageError
from .models import IndexKey, IndexScope, SearchMatch


@dataclass(frozen=True)
class StoredEntity:
    """One stored row."""

    key: IndexKey
    content: str
    vector: np.ndarray
    model_version: str


class MemoryVectorStore:
    """
    Dict-backed embedding store with explicit per-scope separation.
    """

    def __init__(self) -> None:
        self._rows: Dict[IndexScope, Dict[str, StoredEntity]] = {
            scope: {} for scope in IndexScope
        }
        self._dim: Optional[int] = None
        self._lock = RLock()

    # ------------------------------------------------------------------
    # Internal Helpers
    # ------------------------------------------------------------------

    def _normalize(self, embedding: List[float]) -> np.ndarray:
        vector = np.asarray(embedding, dtype="float32")
        if vector.ndim != 1 or vector.size == 0:
            raise StorageError("Embedding vectors must be non-empty 1-D float lists.")

        if self._dim is not None and vector.size != self._dim:
            raise StorageError(
                f"Inconsistent embedding dimensionality: got {vector.size}, "
                f"store holds {self._dim}."
            )

        norm = np.linalg.norm(vector)
        if norm == 0:
            return vector
        return vector / norm

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def commit(self) -> None:
        """Writes are applied immediately; nothing to commit."""

    async def rollback(self) -> None:
        """Writes are applied immediately; nothing to roll back."""

    async def upsert(
        self,
        key: IndexKey,
        content: str,
        embedding: List[float],
        model_version: str,
    ) -> None:
        """
        Insert or replace the row for ``key``.
        """
        with self._lock:
            vector = self._normalize(embedding)
            if self._dim is None:
                self._dim = int(vector.size)

            self._rows[key.scope][key.entity_key] = StoredEntity(
                key=key,
                content=content,
                vector=vector,
                model_version=model_version,
            )

    async def query_nearest(
        self,
        scope: IndexScope,
        query_embedding: List[float],
        similarity_threshold: float,
        limit: int,
        model_version: str,
    ) -> List[SearchMatch]:
        """
        Return up to ``limit`` rows of ``scope`` whose cosine similarity to
        the query meets the threshold, most similar first.
        """
        with self._lock:
            candidates = [
                row
                for row in self._rows[scope].values()
                if row.model_version == model_version
            ]
            if not candidates or limit <= 0:
                return []

            q = self._normalize(query_embedding)
            matrix = np.vstack([row.vector for row in candidates])
            scores = matrix @ q

            # argsort on the negated scores with a stable sort keeps insertion
            # order among equal similarities.
            order = np.argsort(-scores, kind="stable")

            results: List[SearchMatch] = []
            for idx in order:
                score = float(scores[idx])
                if score < similarity_threshold:
                    break

                row = candidates[int(idx)]
                results.append(
                    SearchMatch(key=row.key, similarity=score, content=row.content)
                )
                if len(results) >= limit:
                    break

            return results

    async def other_model_versions(self, scope: IndexScope, model_version: str) -> List[str]:
        """Model versions other than ``model_version`` present in ``scope``."""
        with self._lock:
            return sorted(
                {
                    row.model_version
                    for row in self._rows[scope].values()
                    if row.model_version != model_version
                }
            )

    async def get(self, key: IndexKey) -> Optional[StoredEntity]:
        with self._lock:
            return self._rows[key.scope].get(key.entity_key)

    def __len__(self) -> int:
        with self._lock:
            return sum(len(rows) for rows in self._rows.values())

    async def get_stats(self) -> dict:
        """
        Return row counts per index, per level and per model version.
        """
        with self._lock:
            stats: Dict[str, dict] = {}
            for scope, rows in self._rows.items():
                by_level = {level.value: 0 for level in scope.levels()}
                by_version: Dict[str, int] = {}
                for row in rows.values():
                    level = row.key.level.value
                    by_level[level] = by_level.get(level, 0) + 1
                    by_version[row.model_version] = by_version.get(row.model_version, 0) + 1

                stats[scope.value] = {
                    "total_vectors": len(rows),
                    "by_level": by_level,
                    "by_model_version": by_version,
                }
            return stats
