#!/usr/bin/env python3
"""
Fast-path benchmark for the strided slice engine.

Times the identity, contiguous-lead, row-copy and generic walker paths
against plain NumPy basic indexing on the same input.
"""

from __future__ import annotations

import argparse
import time
from dataclasses import dataclass
from typing import Any, Callable, List

import numpy as np

from stridex import SliceConfig, SliceEngine


@dataclass
class BenchmarkResult:
    case: str
    path: str
    min_s: float
    mean_s: float
    numpy_min_s: float
    iterations: int


CASES = {
    "identity": (Ellipsis,),
    "lead_rows": (slice(16, 1000),),
    "inner_block": (slice(16, 1000), slice(8, 500)),
    "reversed": (slice(None, None, -1), slice(None, None, 3)),
}


def _time(fn: Callable[[], Any], iterations: int) -> List[float]:
    samples = []
    for _ in range(iterations):
        start = time.perf_counter()
        fn()
        samples.append(time.perf_counter() - start)
    return samples


def run(size: int, iterations: int, fast_paths: bool) -> List[BenchmarkResult]:
    rng = np.random.default_rng(0)
    x = rng.normal(size=(size, size)).astype(np.float32)
    results = []
    for name, key in CASES.items():
        engine = SliceEngine(SliceConfig(fast_paths=fast_paths, explain_timings=False))
        engine.slice(x, key)
        path = engine.logs[-1]["op"]["path"]
        ours = _time(lambda: engine.slice(x, key), iterations)
        reference = _time(lambda: np.array(x[key], copy=True), iterations)
        results.append(
            BenchmarkResult(
                case=name,
                path=path,
                min_s=min(ours),
                mean_s=sum(ours) / len(ours),
                numpy_min_s=min(reference),
                iterations=iterations,
            )
        )
    return results


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--size", type=int, default=2048)
    parser.add_argument("--iterations", type=int, default=20)
    parser.add_argument("--no-fast-paths", action="store_true")
    args = parser.parse_args()

    for result in run(args.size, args.iterations, fast_paths=not args.no_fast_paths):
        print(
            f"{result.case:12s} path={result.path:16s} "
            f"min={result.min_s * 1e3:8.3f}ms mean={result.mean_s * 1e3:8.3f}ms "
            f"numpy={result.numpy_min_s * 1e3:8.3f}ms"
        )


if __name__ == "__main__":
    main()
