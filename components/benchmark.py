"""
Timing harness for `TSTMap` operations.

`run_benchmark` builds a map from a key workload and times every public
operation family (insert, hit/miss lookup, removal, partial-match,
near-neighbor search, teardown), returning one row per operation as a
pandas DataFrame. `tombstone_growth` shows that repeated insert/remove cycles
over one key set leave the node count unchanged.
"""

import logging
import string
import time
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

import numpy as np
import pandas as pd

from components.workload import WorkLoad
from tst.tst_map import TSTMap

logger = logging.getLogger(__name__)

KEY_KINDS = ("words", "ips")


@dataclass
class BenchConfig:
    """
    Configuration for run_benchmark
        num_keys: int, keys generated when none are passed in
        key_kind: str, "words" or "ips"
        p_freq: float, prefix clustering for word keys (0 -> 1)
        repeats: int, timed repetitions per operation; the median is reported
        max_mismatches: int, budget for the near_search queries
        wildcard_p: float, wildcard probability for partial_match patterns
        num_queries: int, number of search queries per search operation
        case_insensitive: bool, build every map with str.casefold collation
        seed: int, seed for every generator
    """
    num_keys: int = 500
    key_kind: str = "words"
    p_freq: float = 0.0
    repeats: int = 3
    max_mismatches: int = 1
    wildcard_p: float = 0.3
    num_queries: int = 100
    case_insensitive: bool = False
    seed: Optional[int] = None

    def __post_init__(self):
        if self.num_keys < 1:
            raise ValueError("num_keys must be positive")
        if self.key_kind not in KEY_KINDS:
            raise ValueError(f"key_kind must be one of {KEY_KINDS}")
        if not 0.0 <= self.p_freq <= 1.0:
            raise ValueError("p_freq must be between 0 and 1")
        if self.repeats < 1:
            raise ValueError("repeats must be positive")
        if self.max_mismatches < 0:
            raise ValueError("max_mismatches must be >= 0")
        if self.num_queries < 1:
            raise ValueError("num_queries must be positive")


def collation(config: BenchConfig):
    return str.casefold if config.case_insensitive else None


def generate_keys(config: BenchConfig) -> List[str]:
    wl = WorkLoad(seed=config.seed)
    if config.key_kind == "ips":
        return wl.ips(config.num_keys)
    return wl.words(config.num_keys, p_freq=config.p_freq)


def build_map(keys: Iterable[str], collate=None) -> TSTMap:
    """Build a map storing each key's position as its value."""
    m = TSTMap(collate=collate)
    for i, k in enumerate(keys):
        m.insert(k, i)
    return m


def time_operation(fn: Callable, items, repeats: int = 3, setup: Optional[Callable] = None):
    """Run `fn(item)` over `items` `repeats` times.

    `setup()`, when given, runs before every repetition and its result is
    passed as the first argument: `fn(state, item)`.

    Returns
    -------
    tuple[np.ndarray, int]
        Wall time of each repetition in seconds, and the number of truthy /
        non-empty results of the last repetition.
    """
    times = np.empty(repeats)
    hits = 0
    for r in range(repeats):
        state = setup() if setup is not None else None
        hits = 0
        start = time.perf_counter()
        if setup is None:
            for item in items:
                if fn(item):
                    hits += 1
        else:
            for item in items:
                if fn(state, item):
                    hits += 1
        times[r] = time.perf_counter() - start
    return times, hits


def _row(operation, times, n_ops, hits):
    median = float(np.median(times))
    return {
        "operation": operation,
        "n_ops": n_ops,
        "median_s": median,
        "min_s": float(np.min(times)),
        "per_op_us": (median / n_ops * 1e6) if n_ops else 0.0,
        "hits": hits,
    }


def run_benchmark(config: BenchConfig, keys: Optional[List[str]] = None) -> pd.DataFrame:
    """Time every operation family of `TSTMap` over one workload."""
    if keys is None:
        keys = generate_keys(config)
    wl = WorkLoad(seed=config.seed)
    collate = collation(config)
    distinct = {}
    for k in keys:
        distinct.setdefault(collate(k) if collate else k, k)
    unique = list(distinct.values())
    queries = unique[:config.num_queries]
    alphabet = string.digits if config.key_kind == "ips" else string.ascii_lowercase
    misses = [k + "~" for k in queries]
    patterns = wl.patterns(queries, wildcard_p=config.wildcard_p)
    typos = wl.typos(queries, max_typos=config.max_mismatches, alphabet=alphabet)
    logger.info("Benchmarking %d keys (%d unique), %d queries", len(keys), len(unique), len(queries))

    rows = []
    times, _ = time_operation(
        lambda m, kv: m.insert(kv[1], kv[0]) is not None,
        list(enumerate(keys)), config.repeats, setup=lambda: TSTMap(collate=collate))
    rows.append(_row("insert", times, len(keys), len(unique)))

    m = build_map(keys, collate)
    times, hits = time_operation(lambda k: k in m, unique, config.repeats)
    rows.append(_row("find_hit", times, len(unique), hits))
    times, hits = time_operation(lambda k: k in m, misses, config.repeats)
    rows.append(_row("find_miss", times, len(misses), hits))
    times, hits = time_operation(m.partial_match, patterns, config.repeats)
    rows.append(_row("partial_match", times, len(patterns), hits))
    times, hits = time_operation(
        lambda q: m.near_search(q, config.max_mismatches), typos, config.repeats)
    rows.append(_row("near_search", times, len(typos), hits))
    times, hits = time_operation(
        lambda mm, k: mm.remove(k), unique, config.repeats, setup=lambda: build_map(keys, collate))
    rows.append(_row("remove", times, len(unique), hits))
    times, _ = time_operation(
        lambda mm, _: mm.clear(), [None], config.repeats, setup=lambda: build_map(keys, collate))
    rows.append(_row("clear", times, 1, 0))
    return pd.DataFrame(rows)


def tombstone_growth(keys: List[str], cycles: int = 5, collate=None) -> pd.DataFrame:
    """Insert and remove `keys` `cycles` times, recording size and node count.

    Removal only tombstones values, so the node count after each cycle stays
    at the count reached by the first insertion pass.
    """
    if cycles < 1:
        raise ValueError("cycles must be positive")
    m = TSTMap(collate=collate)
    rows = []
    for cycle in range(1, cycles + 1):
        for i, k in enumerate(keys):
            m.insert(k, i)
        rows.append({"cycle": cycle, "phase": "inserted", "size": m.size(), "nodes": m.count_nodes()})
        for k in keys:
            m.remove(k)
        rows.append({"cycle": cycle, "phase": "removed", "size": m.size(), "nodes": m.count_nodes()})
    return pd.DataFrame(rows)
