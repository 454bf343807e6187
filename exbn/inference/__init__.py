from exbn.inference.base import BaseInference, evidence_indices, Marginals
from exbn.inference.enumeration import EnumerationInference, infer
from exbn.inference.vectorized import VectorizedEnumerationInference

__all__ = [
    "BaseInference",
    "EnumerationInference",
    "VectorizedEnumerationInference",
    "Marginals",
    "evidence_indices",
    "infer",
]
