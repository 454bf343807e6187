from __future__ import annotations

from typing import Any, Dict

import numpy as np
import torch


def coerce_scalar(value: Any) -> Any:
    if isinstance(value, (np.generic,)):
        return value.item()
    if isinstance(value, torch.Tensor) and value.ndim == 0:
        return value.item()
    return value


def _is_numeric_string(value: str) -> bool:
    try:
        float(value)
        return True
    except ValueError:
        return False


def _coerce_number(value: Any, target_type: type, key: str) -> Any:
    value = coerce_scalar(value)
    if isinstance(value, bool):
        raise ValueError(
            f"Invalid parameter {key}={value!r} (expected {target_type.__name__})."
        )
    if isinstance(value, str):
        raw = value.strip()
        if not _is_numeric_string(raw):
            raise ValueError(
                f"Invalid parameter {key}='{value}' (expected {target_type.__name__})."
            )
        value = float(raw) if target_type is float else int(float(raw))
    try:
        return target_type(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(
            f"Invalid parameter {key}='{value}' (expected {target_type.__name__})."
        ) from exc


def _coerce_bool(value: Any, key: str) -> bool:
    value = coerce_scalar(value)
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        raw = value.strip().lower()
        if raw in {"true", "1", "yes"}:
            return True
        if raw in {"false", "0", "no"}:
            return False
    raise ValueError(f"Invalid parameter {key}='{value}' (expected bool).")


def optional(caster: type):
    def _coerce(value: Any, key: str):
        if value is None or (isinstance(value, str) and value.strip().lower() in {"", "none", "null"}):
            return None
        if caster is bool:
            return _coerce_bool(value, key)
        return _coerce_number(value, caster, key)

    return _coerce


def _coerce_str(value: Any, key: str) -> str:
    value = coerce_scalar(value)
    if value is None:
        raise ValueError(f"Invalid parameter {key}=None (expected str).")
    return str(value).strip()


def coerce_numbers(values: Dict[str, Any], schema: Dict[str, Any]) -> Dict[str, Any]:
    coerced = dict(values)
    for key, caster in schema.items():
        if key not in coerced:
            continue
        val = coerced[key]
        if caster is int:
            coerced[key] = _coerce_number(val, int, key)
        elif caster is float:
            coerced[key] = _coerce_number(val, float, key)
        elif caster is bool:
            coerced[key] = _coerce_bool(val, key)
        elif callable(caster):
            coerced[key] = caster(val, key)
        else:
            coerced[key] = coerce_scalar(val)
    return coerced


BASE_INFERENCE_SCHEMA = {
    "strict": bool,
    "zero_tol": float,
    "max_states": optional(int),
    "show_progress": bool,
}

INFERENCE_SCHEMAS = {
    "enumeration": dict(BASE_INFERENCE_SCHEMA),
    "vectorized": {
        **BASE_INFERENCE_SCHEMA,
        "device": _coerce_str,
        "dtype": _coerce_str,
    },
}
