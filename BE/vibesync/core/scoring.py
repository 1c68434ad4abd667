"""
VibeSync Vector Scoring Utilities
데모 인메모리 인덱스용 벡터 연산
"""

import numpy as np
from typing import Sequence


def to_unit_vector(values: Sequence[float]) -> np.ndarray:
    """float32 L2 정규화 벡터로 변환 (영벡터는 그대로)"""
    vec = np.asarray(values, dtype=np.float32)
    norm = np.linalg.norm(vec)
    if norm == 0:
        return vec
    return vec / norm


def batch_cosine_similarity(
    query_vec: np.ndarray,
    embeddings: np.ndarray
) -> np.ndarray:
    """
    쿼리 벡터와 임베딩 행렬 간의 코사인 유사도 계산

    Args:
        query_vec: (D,) 쿼리 벡터
        embeddings: (N, D) 임베딩 행렬

    Returns:
        (N,) 유사도 배열 (N=0이면 빈 배열)
    """
    if embeddings.size == 0:
        return np.zeros(0, dtype=np.float32)

    if embeddings.shape[1] != query_vec.shape[0]:
        raise ValueError(
            f"Dimension mismatch: query={query_vec.shape[0]}, index={embeddings.shape[1]}"
        )

    query_norm = query_vec / (np.linalg.norm(query_vec) + 1e-8)
    emb_norms = embeddings / (np.linalg.norm(embeddings, axis=1, keepdims=True) + 1e-8)

    return np.dot(emb_norms, query_norm)
