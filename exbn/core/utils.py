from __future__ import annotations

from typing import Optional, Sequence

import torch


def resolve_device(device: Optional[str | torch.device]) -> torch.device:
    if device is None or (isinstance(device, str) and device.lower() == "auto"):
        return torch.device("cuda" if torch.cuda.is_available() else "cpu")
    return torch.device(device)


def resolve_dtype(dtype: Optional[str | torch.dtype]) -> torch.dtype:
    if dtype is None:
        return torch.float64
    if isinstance(dtype, torch.dtype):
        return dtype
    key = str(dtype).replace("torch.", "").strip().lower()
    resolved = getattr(torch, key, None)
    if not isinstance(resolved, torch.dtype) or not resolved.is_floating_point:
        raise ValueError(f"Unsupported dtype '{dtype}' (expected a float dtype)")
    return resolved


def mixed_radix_index(digits: Sequence[int], radices: Sequence[int]) -> int:
    """Encode ``digits`` with the last position least significant."""
    if len(digits) != len(radices):
        raise ValueError(
            f"Expected {len(radices)} digits, got {len(digits)}"
        )
    idx = 0
    mult = 1
    for v, c in zip(reversed(digits), reversed(radices)):
        idx += int(v) * mult
        mult *= int(c)
    return idx


def mixed_radix_digits(index: int, radices: Sequence[int]) -> tuple[int, ...]:
    """Inverse of :func:`mixed_radix_index`."""
    out = []
    for c in reversed(radices):
        index, v = divmod(int(index), int(c))
        out.append(v)
    return tuple(reversed(out))


def state_space_size(cards: Sequence[int]) -> int:
    total = 1
    for c in cards:
        total *= int(c)
    return total
