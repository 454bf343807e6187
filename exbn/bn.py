from __future__ import annotations

import json
import os
from importlib import metadata
from pathlib import Path
from typing import Any, Dict, List, Optional

import networkx as nx

from exbn.bif import parse_bif, read_bif
from exbn.config_cast import coerce_numbers, INFERENCE_SCHEMAS
from exbn.core.registry import INFERENCE_REGISTRY
from exbn.defaults import ConfigItem, defaults, load_configs
from exbn.inference.base import Marginals, query_marginals
from exbn.io import network_from_dict, network_to_dict
from exbn.network import Evidence, Network
from exbn.topology import reindex, topological_order


def _get_exbn_version() -> Optional[str]:
    try:
        return metadata.version("exbn")
    except metadata.PackageNotFoundError:
        return None


class ExactBN:
    """Exact inference on a discrete Bayesian network.

    The network is validated, sorted and reindexed once; every query then
    enumerates the joint of the reindexed copy with the selected method.
    """

    def __init__(
        self,
        network: Network,
        strict: bool = True,
        validate: bool = True,
        atol: float = 1e-6,
    ) -> None:
        if validate:
            network.validate(atol=atol)
        self.strict = bool(strict)
        self.network = network
        self.topological_order: List[int] = topological_order(network, strict=strict)
        self.reindexed: Network = reindex(network, self.topological_order)
        self.config = load_configs()

        self._inference = None
        self._inference_config: Optional[Dict[str, Any]] = None
        self.set_inference_method("enumeration")

    # ----------------- construction -----------------
    @classmethod
    def from_bif(cls, path: str | Path, **kwargs) -> "ExactBN":
        return cls(read_bif(path), **kwargs)

    @classmethod
    def from_bif_string(cls, text: str, **kwargs) -> "ExactBN":
        return cls(parse_bif(text), **kwargs)

    @property
    def dag(self) -> nx.DiGraph:
        return self.network.to_networkx()

    # ----------------- configuration -----------------
    def set_inference_method(self, method, **kwargs):
        if isinstance(method, ConfigItem):
            name, base_params = method.name, dict(method.params)
        elif isinstance(method, str):
            key = method.lower().strip()
            if key not in INFERENCE_REGISTRY:
                raise ValueError(
                    f"Unknown inference method '{method}'. Available: {list(INFERENCE_REGISTRY.keys())}"
                )
            name, base_params = key, defaults.inference_params(key)
        elif callable(method):
            self._inference = method
            self._inference_config = {
                "callable": True,
                "name": getattr(method, "__qualname__", str(method)),
            }
            return
        else:
            raise TypeError("method must be a string, ConfigItem, or callable")
        params = {**base_params, "strict": self.strict, **kwargs}
        params = coerce_numbers(params, INFERENCE_SCHEMAS.get(name, {}))
        inference_cls = INFERENCE_REGISTRY[name]
        self._inference = inference_cls(**params)
        self._inference_config = {"name": name, "params": params}

    # ----------------- inference -----------------
    def infer(
        self,
        evidence: Optional[Evidence] = None,
        query: Optional[List[str]] = None,
    ) -> Marginals:
        evidence = dict(evidence or {})
        if hasattr(self._inference, "infer"):
            marginals = self._inference.infer(self.reindexed, evidence)
        else:
            marginals = self._inference(self.reindexed, evidence)
        return query_marginals(marginals, query)

    def marginal(self, name: str, evidence: Optional[Evidence] = None) -> Dict[str, float]:
        return self.infer(evidence, query=[name])[name]

    # ----------------- persistence -----------------
    def save(self, path: str, *, include_configs: bool = True) -> None:
        cfg = self._inference_config
        if include_configs and cfg and cfg.get("callable"):
            raise ValueError(f"Cannot serialize callable inference method: {cfg.get('name')}")
        payload: Dict[str, Any] = {
            "meta": {"exbn_version": _get_exbn_version(), "strict": self.strict},
            "network": network_to_dict(self.network),
            "topological_order": [self.network.id_to_name[i] for i in self.topological_order],
        }
        if include_configs:
            payload["config"] = {"inference": cfg}
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)

    @classmethod
    def load(cls, path: str) -> "ExactBN":
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
        meta = payload.get("meta", {})
        bn = cls(network_from_dict(payload["network"]), strict=meta.get("strict", True))
        inference_cfg = (payload.get("config") or {}).get("inference")
        if inference_cfg and inference_cfg.get("name") and not inference_cfg.get("callable"):
            bn.set_inference_method(
                inference_cfg["name"], **(inference_cfg.get("params") or {})
            )
        return bn
