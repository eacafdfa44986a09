"""Empirical evaluation of a sized prefilter.

Performs a deterministic 80/20 split of unique items (sorted), builds the
filter from the 80% training set at the requested tolerance, and runs five
checks:

1. Membership on the training set (should be all present)
2. False positive rate on the held-out set, against the configured tolerance
   and the fill-based estimate
3. Collision analysis using simple modifications of held-out items
4. Filter properties and memory usage
5. Insertion and query throughput

Run with ``python -m bf_prefilter.evaluation`` or ``bloom-filter-builder evaluate``.
"""
from __future__ import annotations

import time
import uuid
from typing import Dict, List, Optional, Tuple

from .bloom_filter import DEFAULT_MURMUR_SEED, BloomFilter
from .formatting import estimated_false_positive_rate, fill_ratio


NUM_ITEMS = 100_000
FALSE_POSITIVE_TOLERANCE = 0.01
QUERY_OPS = 1_000_000


def build_split(
    words: List[str],
    false_positive_tolerance: float = FALSE_POSITIVE_TOLERANCE,
    *,
    murmur_seed: int = DEFAULT_MURMUR_SEED,
) -> Tuple[BloomFilter, List[str], List[str]]:
    """Create a deterministic 80/20 split and build the filter from the 80%.

    Returns (bloom_filter, training_words, test_words).
    """
    words = sorted(set(words))
    split = max(1, int(len(words) * 0.8))
    train = words[:split]
    test = words[split:]

    bloom = BloomFilter.from_items(train, false_positive_tolerance, murmur_seed=murmur_seed)
    return bloom, train, test


def check_membership(bloom: BloomFilter, train: List[str]) -> List[str]:
    """Verify all training items are present; returns the missing ones."""
    print("TEST A: Membership on training set")
    missing = [w for w in train if w not in bloom]
    print(f"  Training items: {len(train)}")
    print(f"  Missing after insertion: {len(missing)} (expected 0)")
    if missing:
        print(f"  Example missing: {missing[:5]}")
    print()
    return missing


def measure_false_positives(bloom: BloomFilter, train: List[str], test: List[str]) -> Optional[float]:
    """Measure empirical false positive rate on the held-out set."""
    print("TEST B: False positive rate on held-out items")
    train_set = set(train)
    test_filtered = [w for w in test if w not in train_set]

    if not test_filtered:
        print("  No held-out items available for testing.")
        print()
        return None

    false_positives = sum(1 for w in test_filtered if w in bloom)
    fpr = false_positives / len(test_filtered)

    print(f"  Held-out items: {len(test_filtered)}")
    print(f"  False positives: {false_positives}")
    print(f"  Empirical FPR: {fpr:.6f} ({fpr*100:.4f}%)")
    print(f"  Configured tolerance: {bloom.false_positive_tolerance}")
    print(f"  Estimated FPR from fill ratio: {estimated_false_positive_rate(bloom):.6f}")
    print()
    return fpr


def analyze_collisions(bloom: BloomFilter, train: List[str], test: List[str]) -> Optional[float]:
    """Analyze collision rate using simple item modifications."""
    print("TEST C: Collision analysis with simple modifications of held-out items")
    sample = test[:500]
    modifications = []

    for word in sample:
        modifications.append(word + "x")
        if len(word) > 1:
            modifications.append(word[:-1] + "z")
        modifications.append("x" + word)

    # Drop variants that happen to be real items
    known = set(train) | set(test)
    modifications = [m for m in modifications if m not in known]

    if not modifications:
        print("  No modifications available for testing.")
        print()
        return None

    false_positives = sum(1 for m in modifications if m in bloom)
    rate = false_positives / len(modifications)

    print(f"  Variants tested: {len(modifications)}")
    print(f"  False positives from variants: {false_positives}")
    print(f"  Collision rate: {rate:.6f} ({rate*100:.4f}%)")
    print()
    return rate


def show_properties(bloom: BloomFilter, train: List[str]) -> Dict[str, float]:
    """Display filter memory and configuration properties."""
    print("TEST D: Filter properties")
    bytes_len = bloom.num_bytes
    mb = bytes_len / (1024 * 1024)
    bytes_per_item = bytes_len / len(train)

    print(f"  Filter size (bits): {bloom.num_bits}")
    print(f"  Filter size (bytes): {bytes_len}")
    print(f"  Filter size (MB): {mb:.2f}")
    print(f"  Number of hash functions: {bloom.num_hashes}")
    print(f"  Items inserted: {len(train)}")
    print(f"  Bytes per item: {bytes_per_item:.4f}")
    print(f"  Fill ratio: {fill_ratio(bloom) * 100:.2f}%")
    print()

    return {
        "num_bits": bloom.num_bits,
        "num_bytes": bytes_len,
        "num_hashes": bloom.num_hashes,
        "bytes_per_item": bytes_per_item,
    }


def measure_performance(
    bloom: BloomFilter,
    train: List[str],
    test: List[str],
    query_ops: int = QUERY_OPS,
) -> Dict[str, float]:
    """Measure insertion and query throughput (ops/sec)."""
    print("TEST E: Performance Benchmarking")

    print("  Benchmarking Insertions...")
    # Fresh filter with identical dimensions
    bench_filter = BloomFilter(
        bloom.num_bits,
        bloom.num_hashes,
        bloom.num_items,
        bloom.false_positive_tolerance,
        murmur_seed=bloom.murmur_seed,
    )

    start_time = time.perf_counter()
    for word in train:
        bench_filter.add(word)
    insert_time = time.perf_counter() - start_time

    ops_per_sec = len(train) / insert_time if insert_time > 0 else float("inf")
    print(f"    - Inserted {len(train)} items in {insert_time:.4f} sec")
    print(f"    - Insertion Throughput: {ops_per_sec:,.0f} ops/sec")

    print("  Benchmarking Queries...")
    queries = test or train
    repeats = (query_ops // len(queries)) + 1
    large_test_set = (queries * repeats)[:query_ops]

    start_time = time.perf_counter()
    for word in large_test_set:
        _ = word in bench_filter
    query_time = time.perf_counter() - start_time

    query_ops_per_sec = len(large_test_set) / query_time if query_time > 0 else float("inf")
    print(f"    - Performed {len(large_test_set)} queries in {query_time:.4f} sec")
    print(f"    - Query Throughput: {query_ops_per_sec:,.0f} ops/sec")
    print()

    return {
        "insert_count": len(train),
        "insert_time": insert_time,
        "insert_ops_per_sec": ops_per_sec,
        "query_count": len(large_test_set),
        "query_time": query_time,
        "query_ops_per_sec": query_ops_per_sec,
    }


def generate_synthetic_data(n: int = NUM_ITEMS) -> List[str]:
    """Generate n unique random strings."""
    print(f"Generating {n} synthetic items...")
    return [str(uuid.uuid4()) for _ in range(n)]


def run_all(
    num_items: int = NUM_ITEMS,
    false_positive_tolerance: float = FALSE_POSITIVE_TOLERANCE,
    *,
    murmur_seed: int = DEFAULT_MURMUR_SEED,
    words: Optional[List[str]] = None,
    query_ops: int = QUERY_OPS,
) -> Dict[str, object]:
    """Run every check and return the collected measurements."""
    if words is None:
        words = generate_synthetic_data(num_items)
    print(f"Unique items: {len(set(words))}")

    print("=" * 60)
    print(f"Running Prefilter Evaluation (80/20 split, p={false_positive_tolerance})")
    print("=" * 60)
    print()

    bloom, train, test = build_split(words, false_positive_tolerance, murmur_seed=murmur_seed)

    results: Dict[str, object] = {
        "missing": check_membership(bloom, train),
        "false_positive_rate": measure_false_positives(bloom, train, test),
        "collision_rate": analyze_collisions(bloom, train, test),
        "properties": show_properties(bloom, train),
        "performance": measure_performance(bloom, train, test, query_ops),
    }

    print("=" * 60)
    print("Evaluation completed successfully!")
    print("=" * 60)
    return results


if __name__ == "__main__":
    run_all()
