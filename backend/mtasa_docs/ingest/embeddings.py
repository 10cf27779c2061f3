"""Embedding utilities."""

from __future__ import annotations

import hashlib
import math
import re
import sys
from array import array

_PUNCT_RE = re.compile(r"[^\w\s]", re.ASCII)
MIN_TOKEN_LENGTH = 3


class EmbeddingModel:
    """Lightweight hashed bag-of-terms embedding with deterministic output.

    Tokens hash into ``dim`` buckets; bucket collisions are accepted. Every
    component is rounded to float32 so a vector survives the blob round trip
    unchanged.
    """

    _instances: dict[int, "EmbeddingModel"] = {}

    def __init__(self, dim: int = 384) -> None:
        if dim <= 0:
            raise ValueError("Embedding dimension must be positive")
        self._dim = dim

    @classmethod
    def get(cls, dim: int = 384) -> "EmbeddingModel":
        if dim not in cls._instances:
            cls._instances[dim] = EmbeddingModel(dim=dim)
        return cls._instances[dim]

    @property
    def dim(self) -> int:
        return self._dim

    def embed(self, text: str) -> list[float]:
        tokens = tokenize(text)
        vector = [0.0] * self._dim
        if not tokens:
            return vector
        counts: dict[int, int] = {}
        for token in tokens:
            slot = _hash_token(token, self._dim)
            counts[slot] = counts.get(slot, 0) + 1
        scale = math.sqrt(len(tokens) + 1)
        for slot, count in counts.items():
            vector[slot] = count / scale
        _normalize(vector)
        return list(array("f", vector))

    def as_bytes(self, vector: list[float]) -> bytes:
        """Pack a vector as little-endian float32."""
        if len(vector) != self._dim:
            raise ValueError("Vector dimension mismatch")
        arr = array("f", vector)
        if sys.byteorder == "big":
            arr.byteswap()
        return arr.tobytes()

    def from_bytes(self, blob: bytes) -> list[float]:
        arr = array("f")
        arr.frombytes(blob)
        if sys.byteorder == "big":
            arr.byteswap()
        if len(arr) != self._dim:
            raise ValueError(f"Stored vector has {len(arr)} dimensions, expected {self._dim}")
        return list(arr)


def tokenize(text: str) -> list[str]:
    """Lowercase, turn punctuation into spaces and keep tokens of 3+ characters."""
    cleaned = _PUNCT_RE.sub(" ", text.lower())
    return [token for token in cleaned.split() if len(token) >= MIN_TOKEN_LENGTH]


def _hash_token(token: str, dim: int) -> int:
    digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
    value = int.from_bytes(digest, "big")
    return value % dim


def _normalize(vector: list[float]) -> None:
    norm = math.sqrt(sum(value * value for value in vector))
    if norm == 0:
        return
    inv = 1.0 / norm
    for idx, value in enumerate(vector):
        vector[idx] = value * inv


def l2_distance(a: list[float], b: list[float]) -> float:
    return math.sqrt(sum((x - y) * (x - y) for x, y in zip(a, b)))


__all__ = ["EmbeddingModel", "tokenize", "l2_distance"]
