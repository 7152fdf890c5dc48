"""
Semantic similarity between an expected answer and the user's answer.

Optional collaborator: when it returns None the engine keeps the fast local
score from ResponseScorer.
"""

import logging
import os
from typing import List, Optional, Sequence

import numpy as np
from langchain_openai import OpenAIEmbeddings

from .config import EngineConfig
from .errors import ExternalProviderError

logger = logging.getLogger(__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> Optional[float]:
    """Cosine similarity clamped to [0, 1]; None for mismatched or empty vectors."""
    vec1 = np.asarray(a, dtype=float)
    vec2 = np.asarray(b, dtype=float)
    if vec1.size == 0 or vec1.shape != vec2.shape:
        return None

    norm1 = np.linalg.norm(vec1)
    norm2 = np.linalg.norm(vec2)
    if norm1 == 0 or norm2 == 0:
        return 0.0

    similarity = np.dot(vec1 / norm1, vec2 / norm2)
    # Negative similarity counts as unrelated
    return float(np.clip(similarity, 0.0, 1.0))


class EmbeddingSimilarityScorer:
    """
    Similarity via OpenAI embeddings.

    Pass `embeddings` to use any object with an `embed_documents(texts)`
    method; otherwise an OpenAIEmbeddings client is created when
    OPENAI_API_KEY is set.
    """

    def __init__(self, embeddings=None, model: str = "text-embedding-3-small",
                 api_key: Optional[str] = None):
        self.embeddings = embeddings
        if self.embeddings is None:
            api_key = api_key or os.getenv("OPENAI_API_KEY")
            if api_key:
                try:
                    self.embeddings = OpenAIEmbeddings(model=model, api_key=api_key)
                except Exception as e:
                    logger.warning("Could not initialize OpenAI embeddings: %s", e)

    @classmethod
    def from_config(cls, config: EngineConfig) -> "EmbeddingSimilarityScorer":
        return cls(model=config.EMBEDDING_MODEL)

    @property
    def available(self) -> bool:
        return self.embeddings is not None

    def similarity(self, expected: Optional[str], actual: Optional[str]) -> Optional[float]:
        if not self.available:
            return None
        if not expected or not expected.strip() or not actual or not actual.strip():
            return None

        try:
            vectors = self._embed([expected, actual])
        except ExternalProviderError as e:
            logger.warning("Cosine similarity failed: %s", e)
            return None

        return cosine_similarity(vectors[0], vectors[1])

    def _embed(self, texts: List[str]) -> List[List[float]]:
        try:
            vectors = self.embeddings.embed_documents(texts)
        except Exception as e:
            raise ExternalProviderError(str(e)) from e
        if len(vectors) != len(texts):
            raise ExternalProviderError(f"expected {len(texts)} embeddings, got {len(vectors)}")
        return vectors
