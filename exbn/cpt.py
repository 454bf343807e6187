from __future__ import annotations

import logging
from typing import List, Sequence

from exbn.core.errors import CPTLookupError
from exbn.core.utils import mixed_radix_index
from exbn.network import Network, Variable

logger = logging.getLogger(__name__)


def cpt_row_index(parent_indices: Sequence[int], parent_cards: Sequence[int]) -> int:
    """Row of a CPT for one parent configuration.

    Mixed-radix encoding with the parent listed last as least significant
    digit. The BIF reader lays rows out the same way.
    """
    return mixed_radix_index(parent_indices, parent_cards)


def parent_indices(
    variable: Variable, ancestor_config: Sequence[int], network: Network
) -> List[int]:
    """Value indices of ``variable``'s parents read from ``ancestor_config``.

    ``ancestor_config`` is indexed by the ids of ``network``, which must be
    the topologically reindexed network.
    """
    out = []
    for parent in variable.parents:
        pid = network.name_to_id[parent]
        if pid >= len(ancestor_config):
            raise CPTLookupError(
                f"Parent '{parent}' (id {pid}) of '{variable.name}' is not assigned "
                f"in an ancestor configuration of length {len(ancestor_config)}",
                variable=variable.name,
            )
        out.append(int(ancestor_config[pid]))
    return out


def conditional_probability(
    variable: Variable,
    ancestor_config: Sequence[int],
    value_index: int,
    network: Network,
    strict: bool = True,
) -> float:
    """P(variable = values[value_index] | parents as set in ancestor_config).

    Out-of-range lookups raise :class:`CPTLookupError` when ``strict``;
    otherwise they are logged and evaluate to ``0.0``.
    """
    try:
        if not variable.parents:
            row = 0
        else:
            cards = [network.variables[p].cardinality for p in variable.parents]
            row = cpt_row_index(
                parent_indices(variable, ancestor_config, network), cards
            )
        if row >= len(variable.cpt) or not 0 <= value_index < len(variable.cpt[row]):
            raise CPTLookupError(
                f"CPT lookup out of bounds for '{variable.name}' at row {row} / "
                f"value {value_index} (table has {len(variable.cpt)} rows)",
                variable=variable.name,
                row=row,
                column=value_index,
            )
    except CPTLookupError as exc:
        if strict:
            raise
        logger.error("%s", exc)
        return 0.0
    return variable.cpt[row][value_index]
