# Ensure the inference registry is populated on import.
from exbn import inference as _inference  # noqa: F401
from exbn.bif import parse_bif, parse_evidence, read_bif
from exbn.bn import ExactBN
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
from exbn.core.registry import INFERENCE_REGISTRY
from exbn.cpt import conditional_probability, cpt_row_index
from exbn.defaults import defaults
from exbn.inference import infer
from exbn.network import Evidence, Network, Variable
from exbn.topology import reindex, topological_network, topological_order

__version__ = "0.1.0"

__all__ = [
    "ExactBN",
    "Network",
    "Variable",
    "Evidence",
    "topological_order",
    "reindex",
    "topological_network",
    "conditional_probability",
    "cpt_row_index",
    "infer",
    "parse_bif",
    "read_bif",
    "parse_evidence",
    "INFERENCE_REGISTRY",
    "defaults",
    "ExbnError",
    "NetworkError",
    "CycleError",
    "PermutationError",
    "CPTLookupError",
    "EvidenceError",
    "StateSpaceError",
    "BIFParseError",
]
