from __future__ import annotations

import argparse
import logging
import os
import sys
from importlib import resources
from typing import List, Optional

from exbn.bif import parse_bif, parse_evidence, read_bif
from exbn.bn import ExactBN
from exbn.core.errors import ExbnError
from exbn.core.registry import INFERENCE_REGISTRY
from exbn.display import plot_marginals
from exbn.io import MARGINAL_FORMATS, save_marginals
from exbn.network import Network

logger = logging.getLogger(__name__)

SUM_TOL = 1e-9


def load_default_network() -> Network:
    text = (resources.files("exbn.data") / "gradient.bif").read_text(encoding="utf-8")
    return parse_bif(text)


def _print_network(bn: ExactBN) -> None:
    network = bn.network
    print("--- Parsed Bayesian Network ---")
    for var in network:
        print(f"Variable: {var.name} (ID: {var.id})")
        print(f"  Values: {' '.join(var.values)}")
        if var.parents:
            print(f"  Parents: {' '.join(var.parents)}")
        print("  CPT:")
        for row in var.cpt:
            print("    " + " ".join(f"{p:g}" for p in row))
        print()

    print("--- Adjacency List (DAG) ---")
    for var in network:
        children = " ".join(
            f"{network.id_to_name[c]} (ID {c})" for c in network.adjacency[var.id]
        )
        print(f"{var.name} (ID {var.id}) -> {children}")
    print()

    print("--- Topological Order (original IDs) ---")
    print(
        " ".join(
            f"{network.id_to_name[i]} (Original ID {i})" for i in bn.topological_order
        )
    )
    print()

    print("--- Reordered Adjacency List (Topological IDs) ---")
    reindexed = bn.reindexed
    for var in reindexed:
        children = " ".join(
            f"{reindexed.id_to_name[c]} (NEW ID {c})" for c in reindexed.adjacency[var.id]
        )
        print(f"{var.name} (NEW ID {var.id}) -> {children}")
    print()


def _print_marginals(marginals, evidence, query: Optional[str]) -> None:
    print("--- Calculated Probabilities ---")
    for name, dist in marginals.items():
        if name in evidence:
            print(f"P({name} = {evidence[name]}) is fixed by evidence.")
            continue
        if query and name != query:
            continue
        print(f"P({name}{' | E' if evidence else ''}):")
        for value, p in dist.items():
            print(f"  {value} -> {p:.6g}")
        total = sum(dist.values())
        print(f"  (Sum: {total:.6g})")
        if abs(total - 1.0) > SUM_TOL:
            logger.warning("Probabilities for %s do not sum to 1.0 (%.12g)", name, total)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="exbn",
        description="Exact marginals of a discrete Bayesian network by full enumeration.",
    )
    parser.add_argument("-f", "--file", type=str, default=None, help="BIF file (.bif or .bif.gz)")
    parser.add_argument(
        "-e", "--evidence", type=str, default=None, help="Observed values, e.g. 'a=true,c=false'"
    )
    parser.add_argument("-q", "--query", type=str, default=None, help="Only print this variable")
    parser.add_argument(
        "--method", type=str, default="enumeration", choices=sorted(INFERENCE_REGISTRY)
    )
    parser.add_argument(
        "--lenient",
        action="store_true",
        help="Log cycles and CPT lookup errors instead of failing",
    )
    parser.add_argument("--show-network", action="store_true")
    parser.add_argument("--output", type=str, default=None, help="Write marginals (.csv or .json)")
    parser.add_argument("--plot", type=str, default=None, help="Save a bar chart of the marginals")
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.output and os.path.splitext(args.output)[1] not in MARGINAL_FORMATS:
        parser.error(f"--output must end with one of {', '.join(MARGINAL_FORMATS)}")

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(message)s",
    )

    try:
        if args.file:
            network = read_bif(args.file)
        else:
            logger.info("No BIF file provided, using the bundled 'gradient.bif'")
            network = load_default_network()
        evidence = parse_evidence(args.evidence)
        if evidence:
            logger.info("Evidence: %s", evidence)

        bn = ExactBN(network, strict=not args.lenient)
        bn.set_inference_method(args.method)
        if args.query and args.query not in network:
            parser.error(f"unknown query variable '{args.query}'")
        if args.show_network:
            _print_network(bn)

        marginals = bn.infer(evidence)
    except (ExbnError, OSError) as exc:
        logger.error("%s", exc)
        return 1

    _print_marginals(marginals, evidence, args.query)

    if args.output:
        save_marginals(marginals, args.output, extra={"evidence": evidence})
        logger.info("Wrote %s", args.output)
    if args.plot:
        names = [args.query] if args.query else None
        if plot_marginals(marginals, variables=names, save_path=args.plot) is not None:
            logger.info("Wrote %s", args.plot)
    return 0


if __name__ == "__main__":
    sys.exit(main())
