from exbn.core.errors import (
    BIFParseError,
    CPTLookupError,
    CycleError,
    EvidenceError,
    ExbnError,
    NetworkError,
    PermutationError,
    StateSpaceError,
)
from exbn.core.registry import INFERENCE_REGISTRY, register_inference

__all__ = [
    "ExbnError",
    "NetworkError",
    "CycleError",
    "PermutationError",
    "CPTLookupError",
    "EvidenceError",
    "StateSpaceError",
    "BIFParseError",
    "INFERENCE_REGISTRY",
    "register_inference",
]
