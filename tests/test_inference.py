import itertools
import logging
import math
import os
import random

import pytest
from exbn import (
    CPTLookupError,
    EvidenceError,
    ExactBN,
    infer,
    Network,
    NetworkError,
    StateSpaceError,
    topological_network,
    Variable,
)
from exbn.core.registry import INFERENCE_REGISTRY
from tqdm.auto import tqdm

TF = ("true", "false")
METHODS = sorted(INFERENCE_REGISTRY)


def _random_network(seed: int, n_max: int = 6) -> Network:
    rng = random.Random(seed)
    n = rng.randint(1, n_max)
    names = [f"v{i}" for i in range(n)]
    domains = {name: tuple(f"s{k}" for k in range(rng.randint(2, 3))) for name in names}
    variables = []
    for i, name in enumerate(names):
        parents = tuple(rng.sample(names[:i], k=min(i, rng.randint(0, 3))))
        n_rows = math.prod(len(domains[p]) for p in parents)
        cpt = []
        for _ in range(n_rows):
            weights = [rng.random() for _ in domains[name]]
            if rng.random() < 0.2:
                weights[0] = 0.0
            total = sum(weights)
            cpt.append([w / total for w in weights])
        variables.append(Variable(name, domains[name], parents, cpt))
    # declare out of topological order
    rng.shuffle(variables)
    return Network.from_variables(variables)


def _brute_force(network: Network, evidence=None):
    """Marginals from the product of CPT entries over every full assignment."""
    evidence = evidence or {}
    variables = list(network)
    marginals = {v.name: {x: 0.0 for x in v.values} for v in variables}
    total = 0.0
    for assignment in itertools.product(*(v.values for v in variables)):
        state = dict(zip((v.name for v in variables), assignment))
        if any(state[k] != val for k, val in evidence.items()):
            continue
        p = 1.0
        for v in variables:
            combos = list(itertools.product(*(network.variable(q).values for q in v.parents)))
            row = combos.index(tuple(state[q] for q in v.parents))
            p *= v.cpt[row][v.values.index(state[v.name])]
        total += p
        for name, value in state.items():
            marginals[name][value] += p
    if not evidence:
        return marginals
    return {n: {x: p / total for x, p in d.items()} for n, d in marginals.items()}


def _assert_close(left, right, tol=1e-9):
    assert left.keys() == right.keys()
    for name in left:
        assert left[name].keys() == right[name].keys()
        for value in left[name]:
            assert left[name][value] == pytest.approx(right[name][value], abs=tol)


def test_inference_methods_suite(gradient_bn):
    bar = tqdm(METHODS, desc="Inference", disable=bool(os.getenv("CI")))
    for method in bar:
        bar.set_description(f"Testing Inference: {method}")
        gradient_bn.set_inference_method(method)
        marginals = gradient_bn.infer()
        assert list(marginals) == ["a", "c", "b", "d", "e"]
        for dist in marginals.values():
            assert sum(dist.values()) == pytest.approx(1.0, abs=1e-9)
        assert marginals["a"]["true"] == pytest.approx(0.5)
        assert marginals["b"]["true"] == pytest.approx(0.55)
        assert marginals["c"]["true"] == pytest.approx(0.4)
        assert marginals["d"]["true"] == pytest.approx(0.549)


@pytest.mark.parametrize("method", METHODS)
def test_posterior_values(gradient_bn, method):
    gradient_bn.set_inference_method(method)
    post = gradient_bn.infer({"a": "true"})
    assert post["a"] == {"true": 1.0, "false": 0.0}
    assert post["b"]["true"] == pytest.approx(0.8)
    assert post["c"]["true"] == pytest.approx(0.6)
    assert post["d"]["true"] == pytest.approx(0.736)
    assert post["e"]["true"] == pytest.approx(0.8184)

    # diagnostic direction: P(a | b = true) = 0.5 * 0.8 / 0.55
    assert gradient_bn.marginal("a", {"b": "true"})["true"] == pytest.approx(0.4 / 0.55)


@pytest.mark.parametrize("method", METHODS)
def test_root_marginal_equals_cpt_row(gradient_bn, method):
    gradient_bn.set_inference_method(method)
    dist = gradient_bn.marginal("a")
    assert list(dist.values()) == pytest.approx(list(gradient_bn.network.variable("a").cpt[0]))


@pytest.mark.parametrize("method", METHODS)
def test_evidence_is_degenerate_and_rest_normalized(gradient_bn, method):
    gradient_bn.set_inference_method(method)
    evidence = {"c": "false", "e": "true"}
    post = gradient_bn.infer(evidence)
    assert post["c"] == {"true": 0.0, "false": 1.0}
    assert post["e"] == {"true": 1.0, "false": 0.0}
    for dist in post.values():
        assert sum(dist.values()) == pytest.approx(1.0, abs=1e-9)
    _assert_close(post, _brute_force(gradient_bn.network, evidence))


@pytest.mark.parametrize("method", METHODS)
def test_infer_is_idempotent(gradient_bn, method):
    gradient_bn.set_inference_method(method)
    first = gradient_bn.infer({"d": "false"})
    second = gradient_bn.infer({"d": "false"})
    assert first == second


@pytest.mark.parametrize("seed", range(12))
def test_engines_match_brute_force_on_random_networks(seed):
    network = _random_network(seed)
    bn = ExactBN(network)
    expected = _brute_force(network)
    rng = random.Random(seed)
    observed = rng.choice(list(network))
    evidence = {observed.name: rng.choice(observed.values)}
    for method in METHODS:
        bn.set_inference_method(method)
        _assert_close(bn.infer(), expected)
        post = bn.infer(evidence)
        if all(p == 0.0 for p in post[observed.name].values()):
            # evidence with probability zero under the model
            continue
        _assert_close(post, _brute_force(network, evidence))


@pytest.mark.parametrize("method", METHODS)
def test_zero_probability_evidence_returns_zeros(method, caplog):
    network = Network.from_variables(
        [
            Variable("x", TF, cpt=[[1.0, 0.0]]),
            Variable("y", TF, ("x",), [[0.5, 0.5], [0.5, 0.5]]),
        ]
    )
    bn = ExactBN(network)
    bn.set_inference_method(method)
    with caplog.at_level(logging.WARNING, logger="exbn.inference.base"):
        post = bn.infer({"x": "false"})
    assert post == {"x": {"true": 0.0, "false": 0.0}, "y": {"true": 0.0, "false": 0.0}}
    assert all(not math.isnan(p) for dist in post.values() for p in dist.values())
    assert "probability" in caplog.text


@pytest.mark.parametrize("evidence", [{"z": "true"}, {"a": "maybe"}])
def test_unknown_evidence_raises(gradient_bn, evidence):
    for method in METHODS:
        gradient_bn.set_inference_method(method)
        with pytest.raises(EvidenceError):
            gradient_bn.infer(evidence)


def test_state_space_limit(gradient_bn):
    for method in METHODS:
        gradient_bn.set_inference_method(method, max_states=16)
        with pytest.raises(StateSpaceError):
            gradient_bn.infer()
        gradient_bn.set_inference_method(method, max_states=32)
        assert gradient_bn.infer()["a"]["true"] == pytest.approx(0.5)


def test_functional_infer_requires_reindexed_network(gradient_network):
    unsorted = Network.from_variables(
        [
            Variable("y", TF, ("x",), [[0.5, 0.5], [0.5, 0.5]]),
            Variable("x", TF, cpt=[[0.5, 0.5]]),
        ]
    )
    with pytest.raises(NetworkError):
        infer(unsorted)
    marginals = infer(topological_network(gradient_network), {"a": "true"})
    assert marginals["b"]["true"] == pytest.approx(0.8)


def test_empty_network_has_no_marginals():
    bn = ExactBN(Network.from_variables([]))
    for method in METHODS:
        bn.set_inference_method(method)
        assert bn.infer() == {}


def test_lenient_cycle_runs_to_completion(caplog):
    network = Network.from_variables(
        [
            Variable("x", TF, ("y",), [[0.5, 0.5], [0.5, 0.5]]),
            Variable("y", TF, ("x",), [[0.5, 0.5], [0.5, 0.5]]),
        ]
    )
    bn = ExactBN(network, strict=False)
    for method in METHODS:
        bn.set_inference_method(method)
        with caplog.at_level(logging.ERROR):
            marginals = bn.infer()
        assert set(marginals) == {"x", "y"}
        assert all(p == 0.0 for dist in marginals.values() for p in dist.values())


def test_short_cpt_strict_and_lenient(caplog):
    # y is missing the row for x = false; built without validation
    network = Network.from_variables(
        [
            Variable("x", TF, cpt=[[0.5, 0.5]]),
            Variable("y", TF, ("x",), [[0.9, 0.1]]),
        ]
    )
    for method in METHODS:
        with pytest.raises(CPTLookupError):
            INFERENCE_REGISTRY[method]().infer(network)

    results = {}
    for method in METHODS:
        caplog.clear()
        with caplog.at_level(logging.ERROR):
            results[method] = INFERENCE_REGISTRY[method](strict=False).infer(network)
        assert any(r.levelno == logging.ERROR for r in caplog.records)

    for marginals in results.values():
        assert marginals["x"] == pytest.approx({"true": 0.5, "false": 0.0})
        assert marginals["y"] == pytest.approx({"true": 0.45, "false": 0.05})
    _assert_close(results["enumeration"], results["vectorized"])


def test_query_filter(gradient_bn):
    out = gradient_bn.infer({"a": "true"}, query=["b", "d"])
    assert list(out) == ["b", "d"]
    with pytest.raises(KeyError):
        gradient_bn.infer(query=["nope"])


def test_vectorized_options(gradient_bn):
    gradient_bn.set_inference_method("vectorized", dtype="float32", show_progress=True)
    params = gradient_bn._inference.get_params()
    assert params["dtype"] == "float32"
    assert params["device"] == "cpu"
    assert gradient_bn.marginal("d")["true"] == pytest.approx(0.549, abs=1e-5)
    with pytest.raises(ValueError):
        gradient_bn.set_inference_method("vectorized", dtype="int64")
