"""
Vector Store

PostgreSQL + pgvector based storage and similarity search for catalog
embeddings. Two indexes are kept apart: the product hierarchy
(``product_embeddings``) and accessories (``accessory_embeddings``).
"""

from __future__ import annotations

from typing import Dict, List, Type, Union

from sqlalchemy import select, func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .models import ProductEmbedding, AccessoryEmbedding
from ..core.errors import StorageError
from ..embeddings.models import IndexKey, IndexScope, SearchMatch

EmbeddingModel = Union[Type[ProductEmbedding], Type[AccessoryEmbedding]]


def model_for_scope(scope: IndexScope) -> EmbeddingModel:
    if scope is IndexScope.ACCESSORIES:
        return AccessoryEmbedding
    return ProductEmbedding


class VectorStore:
    """
    PostgreSQL-backed embedding store using pgvector cosine distance.

    Every database failure is surfaced as ``StorageError``; nothing is
    retried here.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize with an async database session.

        Parameters
        ----------
        session : AsyncSession
            SQLAlchemy async session for database operations.
        """
        self._session = session

    async def commit(self) -> None:
        """
        Commit the current transaction.
        """
        try:
            await self._session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(f"Commit failed: {type(exc).__name__}") from exc

    async def rollback(self) -> None:
        """
        Discard any uncommitted writes.
        """
        try:
            await self._session.rollback()
        except SQLAlchemyError as exc:
            raise StorageError(f"Rollback failed: {type(exc).__name__}") from exc

    async def upsert(
        self,
        key: IndexKey,
        content: str,
        embedding: List[float],
        model_version: str,
    ) -> None:
        """
        Insert a row or replace the row with the same key tuple.

        Executed as a single ``INSERT ... ON CONFLICT DO UPDATE`` statement.

        Parameters
        ----------
        key : IndexKey
            Identifying key tuple; its level selects the target table.
        content : str
            The exact text that was embedded.
        embedding : List[float]
            Vector produced by the embedding model.
        model_version : str
            Identifier of the model that produced ``embedding``.
        """
        model = model_for_scope(key.scope)
        values = {
            "entity_key": key.entity_key,
            "level": key.level.value,
            "content": content,
            "embedding": embedding,
            "model_version": model_version,
        }
        if model is AccessoryEmbedding:
            values["accessory_id"] = key.accessory_id
        else:
            values.update(
                product_id=key.product_id,
                variant_id=key.variant_id,
                configuration_id=key.configuration_id,
            )

        stmt = pg_insert(model).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[model.entity_key],
            set_={
                "content": stmt.excluded.content,
                "embedding": stmt.excluded.embedding,
                "model_version": stmt.excluded.model_version,
                "updated_at": func.now(),
            },
        )

        try:
            await self._session.execute(stmt)
            await self._session.flush()
        except SQLAlchemyError as exc:
            raise StorageError(
                f"Upsert failed for {key.entity_key}: {type(exc).__name__}"
            ) from exc

    async def query_nearest(
        self,
        scope: IndexScope,
        query_embedding: List[float],
        similarity_threshold: float,
        limit: int,
        model_version: str,
    ) -> List[SearchMatch]:
        """
        Search one index by cosine similarity.

        Parameters
        ----------
        scope : IndexScope
            Which index to search.
        query_embedding : List[float]
            Query vector.
        similarity_threshold : float
            Minimum similarity (``1 - cosine_distance``) to include.
        limit : int
            Maximum number of matches.
        model_version : str
            Only rows embedded by this model are compared.

        Returns
        -------
        List[SearchMatch]
            Matches ordered by descending similarity.
        """
        model = model_for_scope(scope)
        cosine_distance = model.embedding.cosine_distance(query_embedding)
        similarity = (1 - cosine_distance).label("similarity")

        if model is AccessoryEmbedding:
            key_columns = (model.accessory_id,)
        else:
            key_columns = (model.product_id, model.variant_id, model.configuration_id)

        stmt = (
            select(*key_columns, model.content, similarity)
            .where(model.model_version == model_version)
            .where(1 - cosine_distance >= similarity_threshold)
            .order_by(cosine_distance, model.id)
            .limit(limit)
        )

        try:
            result = await self._session.execute(stmt)
            rows = result.all()
        except SQLAlchemyError as exc:
            raise StorageError(
                f"Similarity query failed on {scope.value}: {type(exc).__name__}"
            ) from exc

        matches: List[SearchMatch] = []
        for row in rows:
            if model is AccessoryEmbedding:
                key = IndexKey(accessory_id=row.accessory_id)
            else:
                key = IndexKey(
                    product_id=row.product_id,
                    variant_id=row.variant_id,
                    configuration_id=row.configuration_id,
                )
            matches.append(
                SearchMatch(key=key, similarity=float(row.similarity), content=row.content)
            )

        return matches

    async def other_model_versions(self, scope: IndexScope, model_version: str) -> List[str]:
        """
        Return the model versions in ``scope`` other than ``model_version``.

        A non-empty result means part of the index cannot be compared with
        queries embedded by ``model_version``.
        """
        model = model_for_scope(scope)
        stmt = (
            select(model.model_version)
            .where(model.model_version != model_version)
            .distinct()
            .order_by(model.model_version)
        )

        try:
            result = await self._session.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as exc:
            raise StorageError(
                f"Model version lookup failed on {scope.value}: {type(exc).__name__}"
            ) from exc

    async def get_stats(self) -> dict:
        """
        Return row counts per index, per level and per model version.
        """
        stats: Dict[str, dict] = {}

        try:
            for scope in IndexScope:
                model = model_for_scope(scope)

                level_rows = await self._session.execute(
                    select(model.level, func.count()).group_by(model.level)
                )
                by_level = {level.value: 0 for level in scope.levels()}
                by_level.update({row[0]: row[1] for row in level_rows.all()})

                version_rows = await self._session.execute(
                    select(model.model_version, func.count()).group_by(model.model_version)
                )
                by_version = {row[0]: row[1] for row in version_rows.all()}

                stats[scope.value] = {
                    "total_vectors": sum(by_level.values()),
                    "by_level": by_level,
                    "by_model_version": by_version,
                }
        except SQLAlchemyError as exc:
            raise StorageError(f"Stats query failed: {type(exc).__name__}") from exc

        return stats

