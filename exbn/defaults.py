from __future__ import annotations

import copy
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from types import SimpleNamespace
from typing import Dict

import yaml

from exbn.config_cast import coerce_numbers, INFERENCE_SCHEMAS


@dataclass
class ConfigItem:
    name: str
    params: Dict

    def to_dict(self) -> Dict:
        return {"name": self.name, **copy.deepcopy(self.params)}


class ConfigNamespace(SimpleNamespace):
    def __getitem__(self, item):
        return getattr(self, item)


@lru_cache(maxsize=None)
def _load_category(category: str) -> Dict[str, Dict]:
    items: Dict[str, Dict] = {}
    base = resources.files("exbn.configs")
    cat_dir = base / category
    if cat_dir.is_dir():
        for path in sorted(cat_dir.iterdir(), key=lambda p: p.name):
            if path.name.endswith(".yaml"):
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                name = data.pop("name", path.stem)
                schema = INFERENCE_SCHEMAS.get(name, {}) if category == "inference" else {}
                items[path.stem] = {"name": name, "params": coerce_numbers(data, schema)}
    return items


def load_configs() -> ConfigNamespace:
    categories = {}
    for category in ["inference"]:
        items = {
            key: ConfigItem(name=entry["name"], params=copy.deepcopy(entry["params"]))
            for key, entry in _load_category(category).items()
        }
        categories[category] = ConfigNamespace(**items)
    return ConfigNamespace(**categories)


def _resolve_name(name_or_item) -> str:
    if isinstance(name_or_item, str):
        return name_or_item.lower().strip()
    if hasattr(name_or_item, "name"):
        return getattr(name_or_item, "name")
    raise TypeError("name_or_item must be a string or ConfigItem")


def _get_item(category: str, name_or_item) -> Dict:
    items = _load_category(category)
    name = _resolve_name(name_or_item)
    if name in items:
        return items[name]
    for entry in items.values():
        if entry["name"] == name:
            return entry
    raise ValueError(
        f"Unknown {category} config '{name}'. Available: {list(items.keys())}"
    )


class Defaults:
    def inference(self, name_or_item) -> Dict:
        entry = _get_item("inference", name_or_item)
        params = copy.deepcopy(entry["params"])
        return {"name": entry["name"], **params}

    def inference_params(self, name_or_item) -> Dict:
        params = self.inference(name_or_item)
        params.pop("name")
        return params


defaults = Defaults()
