"""Cosine similarity between embedding vectors."""

import math
from typing import Optional, Sequence

import structlog

logger = structlog.get_logger(__name__)


def dot_product(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    return sum(a * b for a, b in zip(vec_a, vec_b))


def magnitude(vec: Sequence[float]) -> float:
    return math.sqrt(sum(v * v for v in vec))


def cosine_similarity(
    vec_a: Optional[Sequence[float]], vec_b: Optional[Sequence[float]]
) -> float:
    """Compute cosine similarity between two vectors.

    Similarity is a soft ranking signal, so invalid input degrades to 0.0
    instead of raising.

    Args:
        vec_a: First vector
        vec_b: Second vector

    Returns:
        dot(a, b) / (|a| * |b|), or 0.0 if either vector is missing or empty,
        the lengths differ, or either magnitude is zero
    """
    if not vec_a or not vec_b or len(vec_a) != len(vec_b):
        logger.warning(
            "Invalid vectors for cosine similarity",
            vec_a_len=len(vec_a) if vec_a else 0,
            vec_b_len=len(vec_b) if vec_b else 0,
        )
        return 0.0

    mag_a = magnitude(vec_a)
    mag_b = magnitude(vec_b)
    if mag_a == 0 or mag_b == 0:
        return 0.0

    return dot_product(vec_a, vec_b) / (mag_a * mag_b)
