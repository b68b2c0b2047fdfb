"""
Embedding Providers

This module normalizes the supported embedding backends behind one capability:
turn a piece of text into a fixed-length vector, and declare that length up
front so the vector collection can be sized before anything is embedded.

Backends
--------
- ``ollama``: a local Ollama model server
- ``openai``: the OpenAI embeddings API, or any compatible alternate endpoint
- ``google``: the Google Gemini embeddings API

Every provider talks HTTP through ``httpx``. Network and response failures are
raised as ``EmbeddingBackendError`` and are never retried here; retry policy
belongs to the caller.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Any, ClassVar, Dict, List, Optional, Tuple

import httpx

from ..config import Settings
from ..core.errors import (
    ConfigurationError,
    EmbeddingBackendError,
    EmbeddingDimensionError,
)

logger = logging.getLogger("ragdocs.embedder")


# Model name fragment -> vector dimension. Order matters: the first fragment
# contained in the configured model name wins.
ModelTable = Tuple[Tuple[str, int], ...]


@lru_cache(maxsize=None)
def _lookup_dimension(
    provider: str,
    model: str,
    table: ModelTable,
    fallback: int,
) -> int:
    """
    Resolve the vector size of ``model`` from its provider's table.

    Results are cached per (provider, model), so the fallback warning for an
    unknown model is logged once per process, not on every lookup.
    """
    for fragment, size in table:
        if fragment in model:
            return size

    logger.warning(
        "Unknown vector size for %s model %s, defaulting to %d. Please verify.",
        provider,
        model,
        fallback,
    )
    return fallback


async def _post_json(
    url: str,
    payload: Dict[str, Any],
    headers: Dict[str, str],
    timeout: float,
    transport: Optional[httpx.AsyncBaseTransport],
    provider: str,
) -> Dict[str, Any]:
    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        try:
            response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error(
                "Embedding request to %s failed (%s): %s",
                provider,
                type(exc).__name__,
                str(exc),
            )
            raise EmbeddingBackendError(
                f"Failed to generate embeddings with {provider}: {type(exc).__name__}"
            ) from exc

    try:
        data = response.json()
    except ValueError as exc:
        raise EmbeddingBackendError(
            f"{provider} returned a non-JSON embedding response."
        ) from exc

    if not isinstance(data, dict):
        raise EmbeddingBackendError(f"{provider} returned an unexpected response shape.")
    return data


def _as_vector(raw: Any, provider: str) -> List[float]:
    if not isinstance(raw, list) or not raw or not all(
        isinstance(x, (float, int)) and not isinstance(x, bool) for x in raw
    ):
        raise EmbeddingBackendError(
            f"{provider} returned an invalid embedding vector: must be a non-empty float list."
        )
    return [float(x) for x in raw]


# ---------------------------------------------------------------------
# Provider Interface
# ---------------------------------------------------------------------

class EmbeddingProvider(ABC):
    """
    Capability interface implemented once per backend.

    The only state shared through the base class is the model name; the
    declared dimension is a static property of that name.
    """

    name: ClassVar[str]
    default_model: ClassVar[str]
    known_models: ClassVar[ModelTable]
    fallback_dimension: ClassVar[int]

    def __init__(self, model: Optional[str] = None) -> None:
        self.model = model or self.default_model

    def get_vector_size(self) -> int:
        return _lookup_dimension(
            self.name,
            self.model,
            self.known_models,
            self.fallback_dimension,
        )

    async def generate_embeddings(self, text: str) -> List[float]:
        """
        Embed a single text.

        Raises
        ------
        EmbeddingBackendError
            If the backend fails or answers with a malformed payload.
        EmbeddingDimensionError
            If the vector length disagrees with ``get_vector_size()``.
        """
        logger.debug(
            "Generating %s embeddings (%s) for text: %s...",
            self.name,
            self.model,
            text[:50],
        )
        vector = await self._request_embedding(text)

        expected = self.get_vector_size()
        if len(vector) != expected:
            raise EmbeddingDimensionError(
                f"{self.name} model {self.model} returned a vector of size "
                f"{len(vector)}, expected {expected}."
            )
        return vector

    @abstractmethod
    async def _request_embedding(self, text: str) -> List[float]:
        """Call the backend and return the raw vector."""


# ---------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------

class OllamaProvider(EmbeddingProvider):
    name = "ollama"
    default_model = "nomic-embed-text"
    known_models = (
        ("nomic-embed-text", 768),
        ("mxbai-embed-large", 1024),
        ("all-minilm", 384),
    )
    fallback_dimension = 768

    def __init__(
        self,
        model: Optional[str] = None,
        base_url: str = "http://127.0.0.1:11434",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(model)
        self._endpoint = base_url.rstrip("/") + "/api/embeddings"
        self._timeout = timeout
        self._transport = transport

    async def _request_embedding(self, text: str) -> List[float]:
        data = await _post_json(
            self._endpoint,
            {"model": self.model, "prompt": text},
            {},
            self._timeout,
            self._transport,
            self.name,
        )
        return _as_vector(data.get("embedding"), self.name)


class OpenAIProvider(EmbeddingProvider):
    name = "openai"
    default_model = "text-embedding-3-small"
    known_models = (
        ("text-embedding-3-small", 1536),
        ("text-embedding-3-large", 3072),
        ("ada-002", 1536),
    )
    fallback_dimension = 1536

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(model)
        self._api_key = api_key
        self._endpoint = (base_url or "https://api.openai.com/v1").rstrip("/") + "/embeddings"
        self._timeout = timeout
        self._transport = transport

    async def _request_embedding(self, text: str) -> List[float]:
        data = await _post_json(
            self._endpoint,
            {"model": self.model, "input": text},
            {"Authorization": f"Bearer {self._api_key}"},
            self._timeout,
            self._transport,
            self.name,
        )

        # { "data": [ {"embedding": [...]}, ... ] }
        records = data.get("data")
        if not isinstance(records, list) or not records:
            raise EmbeddingBackendError("openai response missing 'data' records.")

        first = records[0]
        if not isinstance(first, dict) or "embedding" not in first:
            raise EmbeddingBackendError(f"Malformed openai embedding record: {first!r}")

        return _as_vector(first["embedding"], self.name)


class GoogleProvider(EmbeddingProvider):
    name = "google"
    default_model = "embedding-001"
    known_models = (
        ("gemini-embedding-001", 3072),
        ("text-embedding-004", 768),
        ("embedding-001", 768),
    )
    fallback_dimension = 768

    API_BASE: ClassVar[str] = "https://generativelanguage.googleapis.com/v1beta"

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(model)
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    async def _request_embedding(self, text: str) -> List[float]:
        model_path = self.model if self.model.startswith("models/") else f"models/{self.model}"
        data = await _post_json(
            f"{self.API_BASE}/{model_path}:embedContent",
            {"model": model_path, "content": {"parts": [{"text": text}]}},
            {"x-goog-api-key": self._api_key},
            self._timeout,
            self._transport,
            self.name,
        )

        embedding = data.get("embedding")
        if not isinstance(embedding, dict) or "values" not in embedding:
            raise EmbeddingBackendError("google embedding object did not contain values.")

        return _as_vector(embedding["values"], self.name)


# ---------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------

def create_embedding_provider(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> EmbeddingProvider:
    """
    Build the provider selected by configuration.

    Raises
    ------
    ConfigurationError
        If the selected provider's credentials are missing or the provider is
        unknown. No network activity happens before this check.
    """
    provider = settings.embedding_provider.strip().lower()
    model = settings.embedding_model

    if provider == "ollama":
        return OllamaProvider(
            model=model,
            base_url=settings.ollama_url,
            timeout=settings.http_timeout,
            transport=transport,
        )

    if provider == "openai":
        if settings.openai_api_key is None or not settings.openai_api_key.get_secret_value():
            raise ConfigurationError(
                "OpenAI API key (OPENAI_API_KEY) is required for openai provider"
            )
        return OpenAIProvider(
            api_key=settings.openai_api_key.get_secret_value(),
            model=model,
            base_url=settings.openai_base_url,
            timeout=settings.http_timeout,
            transport=transport,
        )

    if provider == "google":
        if settings.gemini_api_key is None or not settings.gemini_api_key.get_secret_value():
            raise ConfigurationError(
                "Google Gemini API key (GEMINI_API_KEY) is required for google provider"
            )
        return GoogleProvider(
            api_key=settings.gemini_api_key.get_secret_value(),
            model=model,
            timeout=settings.http_timeout,
            transport=transport,
        )

    raise ConfigurationError(f"Unknown embedding provider specified: {provider}")
