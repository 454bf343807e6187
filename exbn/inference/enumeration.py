from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional, Tuple

from tqdm import tqdm

from exbn.core.registry import register_inference
from exbn.cpt import conditional_probability
from exbn.inference.base import BaseInference, Marginals
from exbn.network import Evidence, Network

logger = logging.getLogger(__name__)

Config = Tuple[int, ...]


@register_inference("enumeration")
class EnumerationInference(BaseInference):
    """Full joint enumeration with a frontier keyed by configuration tuples.

    Variables are expanded in id order, which for a reindexed network is
    topological: every parent is already assigned when a child is resolved.
    Branches that disagree with the evidence stay in the frontier with
    probability zero.
    """

    def _joint_marginals(
        self, network: Network, observed: Mapping[int, int]
    ) -> tuple[Marginals, float]:
        frontier: Dict[Config, float] = {(): 1.0}
        for var in tqdm(
            network,
            total=len(network),
            desc="Enumerating",
            disable=not self.show_progress,
        ):
            expanded: Dict[Config, float] = {}
            fixed = observed.get(var.id)
            for config, prob in frontier.items():
                for val_idx in range(var.cardinality):
                    if fixed is not None and val_idx != fixed:
                        expanded[config + (val_idx,)] = 0.0
                        continue
                    cond = conditional_probability(
                        var, config, val_idx, network, strict=self.strict
                    )
                    expanded[config + (val_idx,)] = prob * cond
            frontier = expanded
            logger.debug("Expanded '%s': %d configurations", var.name, len(frontier))

        marginals: Marginals = {
            var.name: {v: 0.0 for v in var.values} for var in network
        }
        variables = list(network)
        total = 0.0
        for config, prob in frontier.items():
            total += prob
            for var, val_idx in zip(variables, config):
                marginals[var.name][var.values[val_idx]] += prob
        return marginals, total


def infer(
    network: Network, evidence: Optional[Evidence] = None, **kwargs
) -> Marginals:
    """Marginal of every variable of a reindexed ``network`` given ``evidence``."""
    return EnumerationInference(**kwargs).infer(network, evidence)
