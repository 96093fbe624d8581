"""
Benchmark harness for the comparison-bridge drivers.

Runs each driver over a sweep of bit widths and problem sizes, provisions
the modulus chain the driver needs, checks the decrypted output against the
plaintext reference and records wall time plus operation counts.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np

from ..bridge.base import ComparisonBridge
from ..context import BackendType, Context, ContextManager
from ..drivers import decision_tree, floyd_warshall, range_filter, reference, sorting
from ..drivers.base import DriverResult
from ..params.resolver import BridgeStrategy, ParameterSet, resolve

logger = logging.getLogger(__name__)


def format_duration(seconds: float) -> str:
    """Human-readable duration, truncated to the largest whole unit."""
    if seconds < 1.0:
        return f"{int(seconds * 1000)} ms"
    if seconds < 60.0:
        return f"{int(seconds)} s"
    if seconds < 3600.0:
        return f"{int(seconds / 60)} min"
    if seconds < 86400.0:
        return f"{int(seconds / 3600)} hr"
    return f"{int(seconds / 86400)} days"


# =============================================================================
# Benchmark Configuration / Results
# =============================================================================

@dataclass
class BenchmarkConfig:
    """One driver run."""
    driver: str = "sort"
    strategy: BridgeStrategy = BridgeStrategy.SCHEME_SWITCHING
    bit_width: int = 8
    size: int = 4  # tree depth, array length, node count or row count
    slot_count: int = 8
    backend: BackendType = BackendType.SIMULATION
    seed: int = 42

    def to_dict(self) -> Dict[str, Any]:
        return {
            'driver': self.driver,
            'strategy': self.strategy.value,
            'bit_width': self.bit_width,
            'size': self.size,
            'slot_count': self.slot_count,
            'backend': self.backend.value,
            'seed': self.seed,
        }


@dataclass
class BenchmarkResult:
    """Outcome of one driver run."""
    config: BenchmarkConfig
    correct: bool = False
    setup_time_s: float = 0.0
    eval_time_s: float = 0.0
    depth: int = 0
    operations: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.config.to_dict(),
            'correct': self.correct,
            'setup_time_s': self.setup_time_s,
            'eval_time_s': self.eval_time_s,
            'depth': self.depth,
            'operations': self.operations,
            'error': self.error,
        }


# =============================================================================
# Per-driver cases
# =============================================================================

def _decrypt_int(context: Context, ct) -> int:
    return int(round(float(context.decrypt(ct, 1)[0])))


def _tree_case(params: ParameterSet, size: int, rng: np.random.Generator):
    top = min(1 << (params.bit_width - 1), params.comparison_bound // 2)
    tree = decision_tree.DecisionTree(
        depth=size,
        thresholds=rng.integers(0, top, (1 << size) - 1).tolist(),
        leaf_values=rng.integers(0, top, 1 << size).tolist(),
    )
    features = rng.integers(0, top, tree.num_internal).tolist()

    def run(context: Context, bridge: ComparisonBridge) -> Tuple[DriverResult, bool]:
        encrypted = decision_tree.encrypt_tree(context, tree)
        result = decision_tree.DecisionTreeEvaluator(context, bridge).evaluate(
            encrypted, decision_tree.encrypt_features(context, features)
        )
        expected = reference.plaintext_decision_tree(tree.thresholds, tree.leaf_values, features)
        return result, _decrypt_int(context, result.output) == expected

    return decision_tree.required_depth(params, size), run


def _sort_case(params: ParameterSet, size: int, rng: np.random.Generator):
    top = min(1 << (params.bit_width - 1), params.comparison_bound)
    values = rng.choice(np.arange(1, top), size=size, replace=False).tolist()

    def run(context: Context, bridge: ComparisonBridge) -> Tuple[DriverResult, bool]:
        elements = [context.encrypt_broadcast(v) for v in values]
        result = sorting.RankSorter(context, bridge).sort(elements)
        got = [_decrypt_int(context, ct) for ct in result.output]
        return result, got == sorted(values)

    return sorting.required_depth(params), run


def _floyd_case(params: ParameterSet, size: int, rng: np.random.Generator):
    infinity = floyd_warshall.default_infinity(params)
    max_weight = max(1, infinity // max(1, size))
    edges = [
        (u, v, int(rng.integers(1, max_weight + 1)))
        for u in range(size) for v in range(size)
        if u != v and rng.random() < 0.5
    ]
    weights = floyd_warshall.adjacency_matrix(size, edges, infinity)

    def run(context: Context, bridge: ComparisonBridge) -> Tuple[DriverResult, bool]:
        result = floyd_warshall.FloydWarshall(context, bridge).evaluate(
            floyd_warshall.encrypt_matrix(context, weights)
        )
        expected, _ = reference.plaintext_floyd_warshall(weights, track_predecessors=False)
        got = np.array([[_decrypt_int(context, ct) for ct in row] for row in result.output])
        return result, bool(np.array_equal(got, expected))

    return floyd_warshall.required_depth(params, size), run


def _range_case(params: ParameterSet, size: int, rng: np.random.Generator):
    rows = min(size, params.slot_count)
    top = min(1 << (params.bit_width - 1), params.comparison_bound)
    values = rng.integers(0, top, rows)
    predicate = range_filter.RangePredicate('value', top // 4, top // 2)

    def run(context: Context, bridge: ComparisonBridge) -> Tuple[DriverResult, bool]:
        columns = {'value': context.encrypt(values)}
        result = range_filter.RangeFilter(context, bridge).evaluate(
            columns, [predicate], num_rows=rows
        )
        expected = reference.plaintext_range_mask({'value': values}, [('value', predicate.lo, predicate.hi)])
        got = np.rint(context.decrypt(result.output, rows)).astype(np.int64)
        count = _decrypt_int(context, result.intermediates['count'])
        return result, bool(np.array_equal(got, expected)) and count == int(np.sum(expected))

    return range_filter.required_depth(params, 1), run


CASES: Dict[str, Callable] = {
    "decision_tree": _tree_case,
    "sort": _sort_case,
    "floyd_warshall": _floyd_case,
    "range_filter": _range_case,
}


# =============================================================================
# Runner
# =============================================================================

def run_benchmark(config: BenchmarkConfig) -> BenchmarkResult:
    """Set up, run and verify one driver."""
    if config.driver not in CASES:
        raise ValueError(f"Unknown driver '{config.driver}'. Valid: {list(CASES)}")

    result = BenchmarkResult(config=config)
    rng = np.random.default_rng(config.seed)

    base = resolve(config.bit_width, config.slot_count, strategy=config.strategy)
    depth, run = CASES[config.driver](base, config.size, rng)
    params = base.with_depth(max(depth, base.multiplicative_depth))
    result.depth = params.multiplicative_depth

    start = time.perf_counter()
    context = ContextManager.build(params, backend=config.backend, seed=config.seed)
    bridge = ComparisonBridge.create(context)
    result.setup_time_s = time.perf_counter() - start

    start = time.perf_counter()
    driver_result, result.correct = run(context, bridge)
    result.eval_time_s = time.perf_counter() - start
    result.operations = driver_result.to_dict()

    if not result.correct:
        logger.warning(f"{config.driver} output differs from plaintext reference: {config.to_dict()}")
    return result


def run_sweep(
    drivers: List[str],
    strategies: List[BridgeStrategy],
    bit_widths: List[int],
    sizes: List[int],
    **kwargs,
) -> List[BenchmarkResult]:
    """Run every combination; failures are recorded rather than raised."""
    results = []
    for driver in drivers:
        for strategy in strategies:
            for bits in bit_widths:
                for size in sizes:
                    config = BenchmarkConfig(
                        driver=driver, strategy=strategy, bit_width=bits, size=size, **kwargs
                    )
                    logger.info(f"Running {driver} [{strategy.value}, {bits}-bit, size {size}]")
                    try:
                        results.append(run_benchmark(config))
                    except Exception as e:
                        logger.error(f"{driver} failed: {e}")
                        results.append(BenchmarkResult(config=config, error=str(e)))
    return results


def format_table(results: List[BenchmarkResult]) -> str:
    """Fixed-width results table."""
    header = (
        f"{'driver':<16}{'strategy':<20}{'bits':>5}{'size':>6}{'depth':>7}"
        f"{'compares':>10}{'mults':>8}{'setup':>10}{'eval':>10}  status"
    )
    lines = [header, "-" * len(header)]
    for r in results:
        c = r.config
        status = "ERROR: " + r.error if r.error else ("ok" if r.correct else "MISMATCH")
        lines.append(
            f"{c.driver:<16}{c.strategy.value:<20}{c.bit_width:>5}{c.size:>6}{r.depth:>7}"
            f"{r.operations.get('comparisons', 0):>10}{r.operations.get('multiplications', 0):>8}"
            f"{format_duration(r.setup_time_s):>10}{format_duration(r.eval_time_s):>10}  {status}"
        )
    return "\n".join(lines)


def summarize(results: List[BenchmarkResult]) -> Tuple[int, int]:
    """(correct runs, total runs)."""
    return sum(1 for r in results if r.correct), len(results)
