from __future__ import annotations

import logging
import math
from typing import Mapping, Optional

import torch
from tqdm import tqdm

from exbn.core.errors import CPTLookupError
from exbn.core.registry import register_inference
from exbn.core.utils import resolve_device, resolve_dtype
from exbn.inference.base import BaseInference, Marginals
from exbn.network import Network, Variable

logger = logging.getLogger(__name__)


@register_inference("vectorized")
class VectorizedEnumerationInference(BaseInference):
    """Full joint enumeration on a flat tensor.

    After expanding variables ``0..k`` the frontier is a 1-D tensor of length
    ``prod(cards[:k + 1])`` whose position is the mixed-radix encoding of the
    configuration, variable ``0`` most significant. Expanding a variable is
    an outer product of the frontier with the CPT rows selected by the
    parents' digits, so the final frontier reshaped to ``cards`` is the joint
    distribution restricted to the evidence.
    """

    def __init__(
        self,
        device: Optional[str | torch.device] = "cpu",
        dtype: Optional[str | torch.dtype] = "float64",
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.device = resolve_device(device)
        self.dtype = resolve_dtype(dtype)

    def get_params(self):
        params = super().get_params()
        params.update(
            {"device": str(self.device), "dtype": str(self.dtype).replace("torch.", "")}
        )
        return params

    def _table(self, var: Variable, network: Network) -> torch.Tensor:
        """CPT as a dense ``[rows, card]`` tensor; unreachable holes are zero."""
        n_rows = math.prod(network.variables[p].cardinality for p in var.parents)
        card = var.cardinality
        short = [
            r
            for r in range(n_rows)
            if r >= len(var.cpt) or len(var.cpt[r]) < card
        ]
        if short:
            exc = CPTLookupError(
                f"CPT of '{var.name}' is missing entries for rows {short} "
                f"(expected {n_rows} rows of width {card})",
                variable=var.name,
                row=short[0],
            )
            if self.strict:
                raise exc
            logger.error("%s", exc)

        table = torch.zeros(n_rows, card, dtype=self.dtype)
        for r, row in enumerate(var.cpt[:n_rows]):
            width = min(len(row), card)
            table[r, :width] = torch.tensor(row[:width], dtype=self.dtype)
        return table.to(self.device)

    @torch.no_grad()
    def _joint_marginals(
        self, network: Network, observed: Mapping[int, int]
    ) -> tuple[Marginals, float]:
        cards = network.cardinalities()
        frontier = torch.ones(1, device=self.device, dtype=self.dtype)

        for k, var in enumerate(
            tqdm(network, total=len(network), desc="Enumerating", disable=not self.show_progress)
        ):
            table = self._table(var, network)
            size = frontier.shape[0]
            late = [p for p in var.parents if network.name_to_id[p] >= k]
            if late:
                exc = CPTLookupError(
                    f"Parents {late} of '{var.name}' are not assigned before id {k}",
                    variable=var.name,
                )
                if self.strict:
                    raise exc
                logger.error("%s", exc)
                probs = torch.zeros(size, var.cardinality, device=self.device, dtype=self.dtype)
            elif var.parents:
                flat = torch.arange(size, device=self.device)
                rows = torch.zeros(size, device=self.device, dtype=torch.long)
                for parent in var.parents:
                    pid = network.name_to_id[parent]
                    stride = math.prod(cards[pid + 1 : k])
                    digit = torch.div(flat, stride, rounding_mode="floor") % cards[pid]
                    rows = rows * cards[pid] + digit
                probs = table.index_select(0, rows)  # [size, card]
            else:
                probs = table[0].expand(size, -1)

            weights = frontier.unsqueeze(-1) * probs
            fixed = observed.get(var.id)
            if fixed is not None:
                mask = torch.zeros(var.cardinality, device=self.device, dtype=self.dtype)
                mask[fixed] = 1.0
                weights = weights * mask
            frontier = weights.reshape(-1)
            logger.debug("Expanded '%s': %d configurations", var.name, frontier.shape[0])

        joint = frontier.reshape(cards)
        marginals: Marginals = {}
        for j, var in enumerate(network):
            dims = tuple(d for d in range(len(cards)) if d != j)
            marg = joint.sum(dim=dims) if dims else joint
            marginals[var.name] = dict(zip(var.values, marg.cpu().tolist()))
        return marginals, float(frontier.sum().item())
