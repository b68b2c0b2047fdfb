"""
Collection Lifecycle

Keeps the destination collection in step with the active embedding provider:
created on first use, verified on every access, and destroyed and recreated
when its vector size no longer matches the provider's declared dimension.
Recreation discards every stored point and is the only data-loss path in the
server.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Literal, Optional, Tuple

from qdrant_client import AsyncQdrantClient, models

from ..config import Settings
from ..embeddings.embedder import EmbeddingProvider
from .errors import StoreFailure, classify_store_failure, to_store_error

logger = logging.getLogger("ragdocs.collection")

EnsureAction = Literal["created", "recreated", "verified"]


class CollectionManager:
    """
    Ensures the collection exists with the provider's vector dimension.
    """

    def __init__(
        self,
        client: AsyncQdrantClient,
        provider: EmbeddingProvider,
        settings: Settings,
    ) -> None:
        self._client = client
        self._provider = provider
        self._settings = settings

    @property
    def endpoint(self) -> str:
        return self._settings.qdrant_url

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ensure_collection(self, name: Optional[str] = None) -> EnsureAction:
        """
        Create, verify or recreate the collection.

        Returns
        -------
        str
            ``"created"``, ``"recreated"`` or ``"verified"``.

        Raises
        ------
        StoreConnectivityError, StoreAuthError, StoreError
            For any store failure other than the benign "not found" during
            verification and "already exists" during creation.
        """
        name = name or self._settings.collection_name
        required = self._provider.get_vector_size()
        logger.debug("Required vector size for collection '%s': %d", name, required)

        try:
            response = await self._client.get_collections()
        except Exception as exc:
            raise to_store_error(exc, "collection initialize/verify", self.endpoint) from exc

        if name not in {c.name for c in response.collections}:
            logger.info(
                "Collection '%s' not found. Creating with vector size %d.",
                name,
                required,
            )
            await self._create(name, required)
            return "created"

        exists, current = await self._read_vector_size(name)
        if not exists:
            await self._create(name, required)
            return "created"

        if current is None:
            logger.warning(
                "Could not determine vector size for collection '%s'. "
                "Recreating it; all stored points will be discarded.",
                name,
            )
            await self._recreate(name, required)
            return "recreated"

        if current != required:
            logger.warning(
                "Vector size mismatch for collection '%s': current=%d, required=%d. "
                "Recreating it; all stored points will be discarded.",
                name,
                current,
                required,
            )
            await self._recreate(name, required)
            return "recreated"

        logger.debug("Collection '%s' vector size (%d) matches.", name, current)
        return "verified"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _read_vector_size(self, name: str) -> Tuple[bool, Optional[int]]:
        """Return (exists, size); size is None when it cannot be read."""
        try:
            info = await self._client.get_collection(collection_name=name)
        except Exception as exc:
            if classify_store_failure(exc) is StoreFailure.NOT_FOUND:
                logger.info("Collection '%s' disappeared during verification.", name)
                return False, None
            raise to_store_error(exc, "collection verify", self.endpoint) from exc

        vectors = getattr(getattr(getattr(info, "config", None), "params", None), "vectors", None)
        size = getattr(vectors, "size", None)
        return True, size if isinstance(size, int) else None

    def _create_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {}
        if self._settings.qdrant_api_key is not None:
            options["optimizers_config"] = models.OptimizersConfigDiff(default_segment_number=2)
            options["replication_factor"] = 2
        return options

    async def _create(self, name: str, size: int) -> None:
        try:
            await self._client.create_collection(
                collection_name=name,
                vectors_config=models.VectorParams(
                    size=size,
                    distance=models.Distance.COSINE,
                ),
                **self._create_options(),
            )
        except Exception as exc:
            if classify_store_failure(exc) is StoreFailure.ALREADY_EXISTS:
                logger.warning("Collection '%s' already exists, skipping creation.", name)
                return
            raise to_store_error(exc, "collection create", self.endpoint) from exc

        logger.info("Collection '%s' created with vector size %d.", name, size)

    async def _recreate(self, name: str, size: int) -> None:
        try:
            await self._client.delete_collection(collection_name=name)
        except Exception as exc:
            if classify_store_failure(exc) is not StoreFailure.NOT_FOUND:
                raise to_store_error(exc, "collection recreate", self.endpoint) from exc

        logger.warning("Collection '%s' deleted.", name)
        await self._create(name, size)
