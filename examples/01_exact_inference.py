#!/usr/bin/env python3
# examples/01_exact_inference.py
from __future__ import annotations

from exbn import ExactBN, Network, Variable


def build_network() -> Network:
    """
    a -> {b, c}, {b, c} -> d, {a, c, d} -> e; all binary.
    """
    tf = ("true", "false")
    return Network.from_variables(
        [
            Variable("a", tf, cpt=[[0.5, 0.5]]),
            Variable("b", tf, ("a",), [[0.8, 0.2], [0.3, 0.7]]),
            Variable("c", tf, ("a",), [[0.6, 0.4], [0.2, 0.8]]),
            Variable(
                "d",
                tf,
                ("b", "c"),
                [[0.9, 0.1], [0.7, 0.3], [0.6, 0.4], [0.1, 0.9]],
            ),
            Variable(
                "e",
                tf,
                ("a", "c", "d"),
                [
                    [0.95, 0.05],
                    [0.85, 0.15],
                    [0.75, 0.25],
                    [0.5, 0.5],
                    [0.8, 0.2],
                    [0.6, 0.4],
                    [0.3, 0.7],
                    [0.1, 0.9],
                ],
            ),
        ]
    )


def main():
    bn = ExactBN(build_network())

    print("=== Prior marginals ===")
    for name, dist in bn.infer().items():
        print(f"P({name}):", dist)

    print("\n=== P(. | a=true) ===")
    for name, dist in bn.infer({"a": "true"}).items():
        print(f"P({name} | a=true):", dist)

    # Diagnostic query: observe an effect, ask about the cause.
    print("\nP(a | e=false):", bn.marginal("a", {"e": "false"}))


if __name__ == "__main__":
    main()
