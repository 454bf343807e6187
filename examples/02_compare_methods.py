#!/usr/bin/env python3
# examples/02_compare_methods.py
from __future__ import annotations

import time
from importlib import resources

from exbn import ExactBN, INFERENCE_REGISTRY, parse_bif


def main():
    text = (resources.files("exbn.data") / "gradient.bif").read_text(encoding="utf-8")
    bn = ExactBN(parse_bif(text))
    evidence = {"d": "true", "e": "false"}

    results = {}
    for method in INFERENCE_REGISTRY:
        bn.set_inference_method(method)
        t0 = time.perf_counter()
        results[method] = bn.infer(evidence)
        print(f"{method:>12s}: {1000 * (time.perf_counter() - t0):.2f} ms")

    ref = results["enumeration"]
    for method, res in results.items():
        worst = max(
            abs(res[n][v] - ref[n][v]) for n in ref for v in ref[n]
        )
        print(f"{method:>12s}: max |diff| vs enumeration = {worst:.2e}")


if __name__ == "__main__":
    main()
