from __future__ import annotations

from typing import Callable, Dict, Type, TypeVar

T = TypeVar("T")

INFERENCE_REGISTRY: Dict[str, Type] = {}


def _register(registry: Dict[str, Type], name: str) -> Callable[[Type[T]], Type[T]]:
    key = name.lower().strip()

    def decorator(cls: Type[T]) -> Type[T]:
        if key in registry:
            raise ValueError(f"Duplicate registry key '{key}' for {cls.__name__}")
        registry[key] = cls
        return cls

    return decorator


def register_inference(name: str) -> Callable[[Type[T]], Type[T]]:
    return _register(INFERENCE_REGISTRY, name)
