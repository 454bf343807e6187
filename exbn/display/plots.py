from __future__ import annotations

import math
import os
import sys
from typing import Iterable, Optional

import numpy as np

from exbn.inference.base import Marginals


def plots_enabled() -> bool:
    return os.getenv("EXBN_SKIP_PLOTS", "0") not in ("1", "true", "True")


def _import_plt():
    if not plots_enabled():
        return None
    try:
        import matplotlib.pyplot as plt
    except ImportError:  # pragma: no cover - import guard
        if not os.getenv("CI"):
            print(
                "matplotlib is not installed; skipping plots. Install it with 'pip install matplotlib'.",
                file=sys.stderr,
            )
        return None
    return plt


def _finalize_figure(fig, save_path: Optional[str], show: bool) -> None:
    plt = _import_plt()
    if plt is None:
        return
    fig.tight_layout()
    if save_path:
        directory = os.path.dirname(save_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        fig.savefig(save_path, bbox_inches="tight", dpi=150)
    if show:
        plt.show()
    plt.close(fig)


def plot_marginals(
    marginals: Marginals,
    variables: Optional[Iterable[str]] = None,
    save_path: Optional[str] = None,
    show: bool = False,
    title: Optional[str] = None,
):
    """Bar chart of each variable's distribution, one subplot per variable."""
    plt = _import_plt()
    if plt is None:
        return None
    names = list(variables) if variables is not None else list(marginals)
    if not names:
        return None
    unknown = [n for n in names if n not in marginals]
    if unknown:
        raise KeyError(f"Unknown variables {unknown}")

    ncols = min(3, len(names))
    nrows = math.ceil(len(names) / ncols)
    fig, axes = plt.subplots(nrows, ncols, figsize=(4 * ncols, 3 * nrows), squeeze=False)
    for ax, name in zip(axes.flat, names):
        labels = list(marginals[name])
        probs = np.asarray([marginals[name][v] for v in labels], dtype=float)
        ax.bar(np.arange(len(labels)), probs, color="tab:blue")
        ax.set_xticks(np.arange(len(labels)))
        ax.set_xticklabels(labels)
        ax.set_ylim(0.0, 1.0)
        ax.set_title(f"P({name})")
    for ax in list(axes.flat)[len(names):]:
        ax.axis("off")
    if title:
        fig.suptitle(title)
    _finalize_figure(fig, save_path, show)
    return fig
