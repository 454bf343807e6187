from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional

from exbn.core.errors import EvidenceError, NetworkError, StateSpaceError
from exbn.core.utils import state_space_size
from exbn.network import Evidence, Network
from exbn.topology import is_topologically_indexed

logger = logging.getLogger(__name__)

Marginals = Dict[str, Dict[str, float]]


def evidence_indices(network: Network, evidence: Optional[Evidence]) -> Dict[int, int]:
    """Map observed variable ids to observed value indices.

    Unknown variables or values raise :class:`EvidenceError` so that a typo
    never silently yields the unconditioned distribution.
    """
    out: Dict[int, int] = {}
    for name, value in (evidence or {}).items():
        if name not in network:
            raise EvidenceError(
                f"Evidence names unknown variable '{name}'. "
                f"Available: {network.names()}"
            )
        var = network.variable(name)
        if value not in var.values:
            raise EvidenceError(
                f"Evidence value '{value}' is not a value of '{name}'. "
                f"Available: {list(var.values)}"
            )
        out[var.id] = var.values.index(value)
    return out


def zero_marginals(network: Network) -> Marginals:
    return {var.name: {v: 0.0 for v in var.values} for var in network}


class BaseInference:
    """Exact inference over a topologically reindexed network.

    Subclasses implement :meth:`_joint_marginals`, returning unnormalized
    ``P(variable = value, evidence)`` per variable together with the total
    mass ``P(evidence)``.
    """

    def __init__(
        self,
        strict: bool = True,
        zero_tol: float = 1e-12,
        max_states: Optional[int] = None,
        show_progress: bool = False,
        **kwargs,
    ):
        if kwargs:
            raise TypeError(
                f"{type(self).__name__} got unexpected parameters {sorted(kwargs)}"
            )
        self.strict = bool(strict)
        self.zero_tol = float(zero_tol)
        self.max_states = None if max_states is None else int(max_states)
        self.show_progress = bool(show_progress)

    def infer(
        self, network: Network, evidence: Optional[Evidence] = None
    ) -> Marginals:
        if not is_topologically_indexed(network):
            if self.strict:
                raise NetworkError(
                    "infer() needs a topologically reindexed network; "
                    "see exbn.topology.topological_network"
                )
            logger.warning("Network is not topologically indexed; results are best effort")
        observed = evidence_indices(network, evidence)
        if len(network) == 0:
            return {}
        self._check_state_space(network)

        marginals, total = self._joint_marginals(network, observed)

        if not observed:
            return marginals
        if total <= self.zero_tol:
            logger.warning(
                "Evidence %s has probability %.3g under the model; "
                "returning all-zero distributions",
                dict(evidence or {}),
                total,
            )
            return zero_marginals(network)
        posterior = {
            name: {value: p / total for value, p in dist.items()}
            for name, dist in marginals.items()
        }
        # observed variables are exactly degenerate, not 1.0 up to rounding
        for var_id, val_idx in observed.items():
            var = network.variable(var_id)
            posterior[var.name] = {
                v: 1.0 if i == val_idx else 0.0 for i, v in enumerate(var.values)
            }
        return posterior

    def _joint_marginals(
        self, network: Network, observed: Mapping[int, int]
    ) -> tuple[Marginals, float]:
        raise NotImplementedError

    def _check_state_space(self, network: Network) -> None:
        if self.max_states is None:
            return
        total = state_space_size(network.cardinalities())
        if total > self.max_states:
            raise StateSpaceError(
                f"Joint state space has {total} configurations, "
                f"above max_states={self.max_states}"
            )

    def get_params(self) -> Dict[str, object]:
        return {
            "strict": self.strict,
            "zero_tol": self.zero_tol,
            "max_states": self.max_states,
            "show_progress": self.show_progress,
        }


def query_marginals(marginals: Marginals, query: Optional[List[str]]) -> Marginals:
    if query is None:
        return marginals
    missing = [q for q in query if q not in marginals]
    if missing:
        raise KeyError(f"Unknown query variables {missing}")
    return {q: marginals[q] for q in query}
