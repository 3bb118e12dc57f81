"""
Embedding provider client, versioned embedding cache, and the batching service
the semantic matcher talks to.
"""

import logging
import os
import threading
from typing import Dict, List, Optional, Sequence

import numpy as np
import requests
from cachetools import TTLCache

from . import config
from .retry import RetryPolicy

logger = logging.getLogger(__name__)


class EmbeddingProviderError(RuntimeError):
    """Embedding request failed; status_code is None for transport errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class EmbeddingProvider:
    """Anything that turns a batch of texts into one vector per text."""

    def embed(self, texts: Sequence[str]) -> List[List[float]]:
        raise NotImplementedError


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """
    Client for an OpenAI-compatible /embeddings endpoint.

    Request:  POST {base_url}/embeddings  {"model": ..., "input": [texts]}
    Response: {"data": [{"index": i, "embedding": [floats]}, ...]}
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = config.EMBEDDING_API_BASE,
        model: str = config.EMBEDDING_MODEL,
        timeout: int = config.REQUEST_TIMEOUT,
    ):
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout

        self.session = requests.Session()
        self.session.headers.update({
            "User-Agent": config.USER_AGENT,
            "Content-Type": "application/json",
        })
        if self.api_key:
            self.session.headers.update({"Authorization": f"Bearer {self.api_key}"})

    def embed(self, texts: Sequence[str]) -> List[List[float]]:
        try:
            response = self.session.post(
                f"{self.base_url}/embeddings",
                json={"model": self.model, "input": list(texts)},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise EmbeddingProviderError(str(e), e.response.status_code) from e
        except requests.exceptions.RequestException as e:
            raise EmbeddingProviderError(str(e)) from e

        data = response.json().get("data", [])
        data = sorted(data, key=lambda item: item.get("index", 0))
        return [item["embedding"] for item in data]


def get_embedding_provider() -> Optional[EmbeddingProvider]:
    """Provider configured from the environment, or None without an API key."""
    if not os.getenv("OPENAI_API_KEY"):
        logger.info("OPENAI_API_KEY not set, semantic matching unavailable")
        return None
    return OpenAIEmbeddingProvider()


class EmbeddingCache:
    """
    Bounded, expiring memo of text -> embedding.

    Keys carry the cache-format version, so bumping EMBEDDING_CACHE_VERSION
    (e.g. after changing title normalization) invalidates every entry.
    """

    def __init__(
        self,
        maxsize: int = config.EMBEDDING_CACHE_MAXSIZE,
        ttl: float = config.EMBEDDING_CACHE_TTL,
        version: str = config.EMBEDDING_CACHE_VERSION,
    ):
        self.version = version
        # TTLCache is not thread-safe, the matcher runs in executor threads
        self._cache: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl)
        self._lock = threading.Lock()

    @property
    def maxsize(self) -> int:
        return int(self._cache.maxsize)

    @property
    def ttl(self) -> float:
        return self._cache.ttl

    def key(self, text: str) -> str:
        return f"{self.version}:{text}"

    def get(self, text: str) -> Optional[np.ndarray]:
        with self._lock:
            return self._cache.get(self.key(text))

    def set(self, text: str, vector: np.ndarray) -> None:
        with self._lock:
            self._cache[self.key(text)] = vector

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def __contains__(self, text: str) -> bool:
        with self._lock:
            return self.key(text) in self._cache


class EmbeddingService:
    """
    Batches, caches and retries embedding requests.

    A batch that still fails after retries is skipped: its texts simply get no
    vector, so they take no part in semantic matching. Provider errors never
    escape this class.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        cache: Optional[EmbeddingCache] = None,
        retry_policy: Optional[RetryPolicy] = None,
        batch_size: int = config.EMBEDDING_BATCH_SIZE,
    ):
        self.provider = provider
        self.cache = cache if cache is not None else EmbeddingCache()
        self.retry_policy = retry_policy or RetryPolicy()
        self.batch_size = max(1, batch_size)

    def embed(self, texts: Sequence[str]) -> Dict[str, np.ndarray]:
        """
        Embed texts, reusing cached vectors.

        Args:
            texts: Normalized titles (duplicates are embedded once)

        Returns:
            Mapping of text -> vector for every text that could be embedded
        """
        vectors: Dict[str, np.ndarray] = {}
        missing: List[str] = []
        for text in dict.fromkeys(texts):
            cached = self.cache.get(text)
            if cached is not None:
                vectors[text] = cached
            else:
                missing.append(text)

        if missing:
            logger.info(
                f"Embedding {len(missing)} texts ({len(vectors)} cached) "
                f"in batches of {self.batch_size}"
            )

        for start in range(0, len(missing), self.batch_size):
            batch = missing[start:start + self.batch_size]
            try:
                result = self.retry_policy.call(self.provider.embed, batch)
            except (EmbeddingProviderError, requests.exceptions.RequestException) as e:
                logger.warning(
                    f"Embedding batch {start // self.batch_size + 1} failed, "
                    f"skipping {len(batch)} texts: {e}"
                )
                continue

            if len(result) != len(batch):
                logger.warning(
                    f"Embedding batch returned {len(result)} vectors for {len(batch)} texts, skipping"
                )
                continue

            for text, raw in zip(batch, result):
                vector = np.asarray(raw, dtype=float)
                self.cache.set(text, vector)
                vectors[text] = vector

        return vectors


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine similarity of two vectors; 0.0 when either has zero norm."""
    norm = float(np.linalg.norm(a) * np.linalg.norm(b))
    if norm == 0.0:
        return 0.0
    return float(np.dot(a, b) / norm)
