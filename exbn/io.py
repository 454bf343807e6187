from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

import pandas as pd

from exbn.inference.base import Marginals
from exbn.network import Network, Variable

NETWORK_FORMAT_VERSION = 1
MARGINAL_FORMATS = (".csv", ".json")


# ---------------- network ----------------


def network_to_dict(network: Network) -> Dict[str, Any]:
    return {
        "version": NETWORK_FORMAT_VERSION,
        "variables": [
            {
                "name": var.name,
                "values": list(var.values),
                "parents": list(var.parents),
                "cpt": [list(row) for row in var.cpt],
            }
            for var in network
        ],
    }


def network_from_dict(payload: Dict[str, Any]) -> Network:
    version = payload.get("version", NETWORK_FORMAT_VERSION)
    if version != NETWORK_FORMAT_VERSION:
        raise ValueError(f"Unsupported network format version {version}")
    variables = [
        Variable(
            name=entry["name"],
            values=tuple(entry["values"]),
            parents=tuple(entry.get("parents") or ()),
            cpt=tuple(tuple(row) for row in entry.get("cpt") or ()),
        )
        for entry in payload.get("variables", [])
    ]
    return Network.from_variables(variables)


def save_network(network: Network, path: str | Path) -> None:
    path = str(path)
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(network_to_dict(network), f, indent=2)


def load_network(path: str | Path) -> Network:
    with open(path, "r", encoding="utf-8") as f:
        return network_from_dict(json.load(f))


# ---------------- marginals ----------------


def marginals_to_frame(marginals: Marginals) -> pd.DataFrame:
    rows = [
        {"variable": name, "value": value, "probability": float(p)}
        for name, dist in marginals.items()
        for value, p in dist.items()
    ]
    return pd.DataFrame(rows, columns=["variable", "value", "probability"])


def save_marginals(
    marginals: Marginals, path: str | Path, extra: Optional[Dict[str, Any]] = None
) -> None:
    """Write marginals as CSV (long format) or JSON depending on the suffix."""
    path = str(path)
    _, ext = os.path.splitext(path)
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    if ext == ".csv":
        marginals_to_frame(marginals).to_csv(path, index=False)
    elif ext == ".json":
        payload: Dict[str, Any] = {"marginals": marginals}
        if extra:
            payload.update(extra)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
    else:
        raise ValueError(f"Unsupported output format: {path}")
