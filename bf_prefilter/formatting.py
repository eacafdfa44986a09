"""Human-readable rendering of a prefilter's parameters and bit buffer."""
from __future__ import annotations

from typing import List

import xxhash

from .bloom_filter import BloomFilter


BYTES_PER_ROW = 8


def fill_ratio(bloom: BloomFilter) -> float:
    """Fraction of buffer bits that are set."""
    total_bits = bloom.num_bytes * 8
    if total_bits == 0:
        return 0.0
    return bloom.count_set_bits() / total_bits


def estimated_false_positive_rate(bloom: BloomFilter) -> float:
    """Empirical estimate ``fill_ratio ** num_hashes``.

    Tracks how full the buffer actually is, so it drifts away from the
    configured tolerance as items beyond the design count are added.
    """
    return fill_ratio(bloom) ** bloom.num_hashes


def fingerprint(bloom: BloomFilter) -> str:
    """xxHash64 hex digest of the bit buffer."""
    return xxhash.xxh64(bloom.data).hexdigest()


def _format_byte(byte: int) -> str:
    digits = f"{byte:08b}"
    return f"{digits[:4]} {digits[4:]}"


def render_bits(data: bytes, indent: str = "    ") -> List[str]:
    """Return the buffer as rows of eight bytes, MSB first within each byte."""
    lines = []
    for start in range(0, len(data), BYTES_PER_ROW):
        row = data[start:start + BYTES_PER_ROW]
        end = min(start + BYTES_PER_ROW - 1, len(data) - 1)
        lines.append("")
        lines.append(f"{indent}Byte {start}-{end}:")
        lines.append(indent + " ".join(_format_byte(b) for b in row))
    return lines


def describe(bloom: BloomFilter) -> str:
    """Full diagnostic dump: parameters, bit visualization and fill statistics."""
    data = bloom.data
    total_bits = len(data) * 8
    ratio = fill_ratio(bloom)

    lines = [
        "BloomFilter {",
        f"  numberOfBits: {bloom.num_bits}",
        f"  numberOfHashes: {bloom.num_hashes}",
        f"  falsePositiveTolerance: {bloom.false_positive_tolerance}",
        f"  numberOfItems: {bloom.num_items}",
        f"  murmurSeed: 0x{bloom.murmur_seed:X}",
        f"  bitArray.count: {len(data)} bytes",
        "  bitArray data:",
        f"    Bloom Filter Bits (Total: {total_bits} bits)",
        "    " + "=" * 50,
    ]
    lines.extend(render_bits(data))
    lines.extend([
        "",
        "    Summary:",
        f"    Total bits: {total_bits}",
        f"    Set bits: {bloom.count_set_bits()}",
        f"    Fill ratio: {ratio * 100:.2f}%",
        "  ",
        "  Statistics:",
        f"    Estimated false positive rate: {estimated_false_positive_rate(bloom):.6f}",
        "}",
    ])
    return "\n".join(lines)
