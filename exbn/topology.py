from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Sequence, Tuple

import networkx as nx

from exbn.core.errors import CycleError, PermutationError
from exbn.network import Network

logger = logging.getLogger(__name__)


def topological_order(network: Network, strict: bool = True) -> List[int]:
    """Order variable ids so that every parent precedes its children.

    Depth-first search started from every unvisited id in ascending order,
    children visited in adjacency order; a node is emitted once all of its
    descendants are finished and the result is the reverse of that postorder.
    Ties between independent nodes are therefore resolved deterministically.

    A back edge to a node still on the DFS stack means the graph has a cycle.
    With ``strict`` a :class:`CycleError` is raised. Otherwise the cycle is
    logged and the traversal goes on, yielding an order that is not
    topological for the nodes involved.
    """
    n = len(network)
    visited = [False] * n
    on_stack = [False] * n
    postorder: List[int] = []

    for root in range(n):
        if visited[root]:
            continue
        visited[root] = True
        on_stack[root] = True
        stack: List[Tuple[int, Iterator[int]]] = [(root, iter(network.adjacency[root]))]
        while stack:
            u, children = stack[-1]
            advanced = False
            for v in children:
                if on_stack[v]:
                    _report_cycle(network, u, v, strict)
                if not visited[v]:
                    visited[v] = True
                    on_stack[v] = True
                    stack.append((v, iter(network.adjacency[v])))
                    advanced = True
                    break
            if not advanced:
                stack.pop()
                on_stack[u] = False
                postorder.append(u)

    postorder.reverse()
    return postorder


def _report_cycle(network: Network, u: int, v: int, strict: bool) -> None:
    src, dst = network.id_to_name[u], network.id_to_name[v]
    if strict:
        try:
            cycle = nx.find_cycle(network.to_networkx(), source=dst)
            path = " -> ".join([a for a, _ in cycle] + [cycle[-1][1]])
        except nx.NetworkXNoCycle:
            path = f"{src} -> {dst}"
        raise CycleError(
            f"Cycle detected: edge {src} (id {u}) -> {dst} (id {v}) closes {path}",
            edge=(src, dst),
        )
    logger.warning(
        "Cycle detected: edge %s (id %d) -> %s (id %d); order will not be topological",
        src,
        u,
        dst,
        v,
    )


def reindex(original: Network, order: Sequence[int]) -> Network:
    """Return a copy of ``original`` whose ids equal positions in ``order``.

    Names, values, parents and CPTs are copied unchanged; only ids and the
    adjacency lists are relabelled. When ``order`` is topological every edge
    of the result goes from a smaller id to a larger one.
    """
    order = [int(i) for i in order]
    n = len(original)
    if len(order) != n or sorted(order) != list(range(n)):
        raise PermutationError(
            f"Order {order} is not a permutation of the {n} variable ids"
        )

    old_to_new: Dict[int, int] = {old: new for new, old in enumerate(order)}
    variables = {}
    adjacency: List[Tuple[int, ...]] = []
    for old in order:
        var = original.variable(old)
        variables[var.name] = var.with_id(old_to_new[old])
        adjacency.append(tuple(old_to_new[c] for c in original.adjacency[old]))

    return Network(
        variables=variables,
        adjacency=tuple(adjacency),
        name_to_id={name: var.id for name, var in variables.items()},
        id_to_name={var.id: name for name, var in variables.items()},
    )


def topological_network(network: Network, strict: bool = True) -> Network:
    return reindex(network, topological_order(network, strict=strict))


def is_topologically_indexed(network: Network) -> bool:
    return all(u < v for u, children in enumerate(network.adjacency) for v in children)
