from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, Iterator, List, Mapping, Tuple

import networkx as nx

from exbn.core.errors import NetworkError

# Evidence maps a variable name to one of its declared value labels.
Evidence = Mapping[str, str]


@dataclass(frozen=True)
class Variable:
    """A discrete random variable and its conditional probability table.

    ``cpt`` holds one row per parent configuration. Rows are laid out in
    mixed-radix order over the parents' cardinalities with the parent listed
    last in ``parents`` varying fastest, so for ``parents == ("b", "c")`` with
    binary domains the rows are ``(b0, c0), (b0, c1), (b1, c0), (b1, c1)``.
    """

    name: str
    values: Tuple[str, ...]
    parents: Tuple[str, ...] = ()
    cpt: Tuple[Tuple[float, ...], ...] = ()
    id: int = -1

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", tuple(str(v) for v in self.values))
        object.__setattr__(self, "parents", tuple(str(p) for p in self.parents))
        object.__setattr__(
            self, "cpt", tuple(tuple(float(p) for p in row) for row in self.cpt)
        )

    @property
    def cardinality(self) -> int:
        return len(self.values)

    def value_index(self, value: str) -> int:
        try:
            return self.values.index(value)
        except ValueError:
            raise KeyError(
                f"'{value}' is not a value of '{self.name}'. "
                f"Available: {list(self.values)}"
            ) from None

    def value_label(self, index: int) -> str:
        if 0 <= index < len(self.values):
            return self.values[index]
        raise IndexError(f"'{self.name}' has no value at index {index}")

    def with_id(self, new_id: int) -> "Variable":
        return replace(self, id=int(new_id))


@dataclass(frozen=True)
class Network:
    """Discrete Bayesian network keyed both by variable name and by id.

    ``adjacency[i]`` lists the ids of the children of variable ``i``. Ids are
    contiguous from zero; whether they follow declaration order or
    topological order depends on how the instance was built (see
    :func:`exbn.topology.reindex`).
    """

    variables: Dict[str, Variable]
    adjacency: Tuple[Tuple[int, ...], ...]
    name_to_id: Dict[str, int] = field(default_factory=dict)
    id_to_name: Dict[int, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.name_to_id:
            object.__setattr__(
                self, "name_to_id", {v.name: v.id for v in self.variables.values()}
            )
        if not self.id_to_name:
            object.__setattr__(
                self, "id_to_name", {i: n for n, i in self.name_to_id.items()}
            )
        n = len(self.variables)
        if sorted(self.id_to_name) != list(range(n)):
            raise NetworkError(
                f"Variable ids must be contiguous from 0, got {sorted(self.id_to_name)}"
            )
        if len(self.adjacency) != n:
            raise NetworkError(
                f"Adjacency has {len(self.adjacency)} entries for {n} variables"
            )
        for name, var in self.variables.items():
            if var.name != name or self.name_to_id.get(name) != var.id:
                raise NetworkError(f"Inconsistent id mapping for variable '{name}'")

    # ----------------- construction -----------------
    @classmethod
    def from_variables(cls, variables: Iterable[Variable]) -> "Network":
        """Build a network, numbering variables in the order given."""
        ordered: List[Variable] = []
        seen = set()
        for i, var in enumerate(variables):
            if var.name in seen:
                raise NetworkError(f"Duplicate variable '{var.name}'")
            seen.add(var.name)
            ordered.append(var.with_id(i))

        name_to_id = {v.name: v.id for v in ordered}
        children: List[List[int]] = [[] for _ in ordered]
        for var in ordered:
            for parent in var.parents:
                if parent not in name_to_id:
                    raise NetworkError(
                        f"Variable '{var.name}' references unknown parent '{parent}'"
                    )
                children[name_to_id[parent]].append(var.id)

        return cls(
            variables={v.name: v for v in ordered},
            adjacency=tuple(tuple(c) for c in children),
            name_to_id=name_to_id,
            id_to_name={v.id: v.name for v in ordered},
        )

    # ----------------- read access -----------------
    def __len__(self) -> int:
        return len(self.variables)

    def __contains__(self, name: object) -> bool:
        return name in self.variables

    def __iter__(self) -> Iterator[Variable]:
        for i in range(len(self.variables)):
            yield self.variables[self.id_to_name[i]]

    def variable(self, key: str | int) -> Variable:
        if isinstance(key, int):
            if key not in self.id_to_name:
                raise KeyError(f"No variable with id {key}")
            return self.variables[self.id_to_name[key]]
        if key not in self.variables:
            raise KeyError(
                f"Unknown variable '{key}'. Available: {list(self.variables)}"
            )
        return self.variables[key]

    def names(self) -> List[str]:
        return [self.id_to_name[i] for i in range(len(self.variables))]

    def parents_of(self, name: str) -> List[str]:
        return list(self.variable(name).parents)

    def children_of(self, name: str) -> List[str]:
        return [self.id_to_name[c] for c in self.adjacency[self.name_to_id[name]]]

    def edges(self) -> List[Tuple[str, str]]:
        return [
            (self.id_to_name[u], self.id_to_name[v])
            for u, children in enumerate(self.adjacency)
            for v in children
        ]

    def cardinalities(self) -> List[int]:
        return [var.cardinality for var in self]

    def to_networkx(self) -> nx.DiGraph:
        g = nx.DiGraph()
        for var in self:
            g.add_node(var.name, id=var.id, values=list(var.values))
        g.add_edges_from(self.edges())
        return g

    # ----------------- validation -----------------
    def validate(self, atol: float = 1e-6) -> None:
        """Check the structural and numerical invariants of the network."""
        for var in self:
            if not var.values:
                raise NetworkError(f"Variable '{var.name}' has an empty domain")
            if len(set(var.values)) != len(var.values):
                raise NetworkError(f"Variable '{var.name}' has duplicate values")
            for parent in var.parents:
                if parent not in self.variables:
                    raise NetworkError(
                        f"Variable '{var.name}' references unknown parent '{parent}'"
                    )
            if len(set(var.parents)) != len(var.parents):
                raise NetworkError(f"Variable '{var.name}' lists a parent twice")

            expected_rows = math.prod(
                self.variables[p].cardinality for p in var.parents
            )
            if len(var.cpt) != expected_rows:
                raise NetworkError(
                    f"CPT of '{var.name}' has {len(var.cpt)} rows, "
                    f"expected {expected_rows}"
                )
            for r, row in enumerate(var.cpt):
                if len(row) != var.cardinality:
                    raise NetworkError(
                        f"CPT row {r} of '{var.name}' has {len(row)} entries, "
                        f"expected {var.cardinality}"
                    )
                if any(p < 0.0 for p in row):
                    raise NetworkError(
                        f"CPT row {r} of '{var.name}' has a negative entry"
                    )
                if abs(sum(row) - 1.0) > atol:
                    raise NetworkError(
                        f"CPT row {r} of '{var.name}' sums to {sum(row):.6g}"
                    )

        expected = _children_from_parents(self)
        actual = [sorted(c) for c in self.adjacency]
        if expected != actual:
            raise NetworkError("Adjacency does not match the parent relation")


def _children_from_parents(network: Network) -> List[List[int]]:
    children: List[List[int]] = [[] for _ in range(len(network))]
    for var in network:
        for parent in var.parents:
            children[network.name_to_id[parent]].append(var.id)
    return [sorted(c) for c in children]
