"""Property-list container for persisted prefilters.

A filter file is an XML plist dictionary with exactly these keys::

    bitVectorData           <data>     raw bit buffer (base64)
    falsePositiveTolerance  <real>
    murmurSeed              <integer>  unsigned 32-bit
    numberOfBits            <integer>
    numberOfBytes           <integer>  length of bitVectorData
    numberOfHashes          <integer>
    numberOfItems           <integer>
"""
from __future__ import annotations

import contextlib
import logging
import os
import plistlib
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Type, Union
from xml.parsers.expat import ExpatError

from .bloom_filter import BloomFilter
from .errors import PlistFormatError


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

_REQUIRED_KEYS: Dict[str, Tuple[Type, ...]] = {
    "bitVectorData": (bytes,),
    "falsePositiveTolerance": (float, int),
    "murmurSeed": (int,),
    "numberOfBits": (int,),
    "numberOfBytes": (int,),
    "numberOfHashes": (int,),
    "numberOfItems": (int,),
}


@dataclass(frozen=True)
class FilterPlist:
    """Decoded contents of a filter file."""

    bit_vector_data: bytes
    false_positive_tolerance: float
    murmur_seed: int
    number_of_bits: int
    number_of_bytes: int
    number_of_hashes: int
    number_of_items: int

    def to_filter(self) -> BloomFilter:
        return BloomFilter.from_data(
            self.bit_vector_data,
            false_positive_tolerance=self.false_positive_tolerance,
            num_items=self.number_of_items,
            num_bits=self.number_of_bits,
            num_hashes=self.number_of_hashes,
            murmur_seed=self.murmur_seed,
        )


def to_plist_bytes(bloom: BloomFilter, num_items: Optional[int] = None) -> bytes:
    """Serialize ``bloom`` to XML plist bytes.

    ``num_items`` overrides the item count recorded in the filter, for
    filters built with explicit dimensions whose final item count differs.
    """
    data = bloom.data
    document = {
        "bitVectorData": data,
        "falsePositiveTolerance": float(bloom.false_positive_tolerance),
        "murmurSeed": bloom.murmur_seed,
        "numberOfBits": bloom.num_bits,
        "numberOfBytes": len(data),
        "numberOfHashes": bloom.num_hashes,
        "numberOfItems": bloom.num_items if num_items is None else num_items,
    }
    return plistlib.dumps(document, fmt=plistlib.FMT_XML, sort_keys=True)


def dump(bloom: BloomFilter, path: PathLike, num_items: Optional[int] = None) -> None:
    """Write ``bloom`` to ``path`` as an XML plist.

    The document goes to a temporary file in the same directory first and is
    then renamed over ``path``, so a failed write never leaves a partial file.
    """
    payload = to_plist_bytes(bloom, num_items)
    target = Path(path)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{target.name}.", suffix=".tmp", dir=target.parent
    )
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(payload)
        os.replace(tmp_name, target)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp_name)
        raise
    logger.debug("wrote %d bytes of plist to %s", len(payload), path)


def _check_value(key: str, value: Any) -> None:
    expected = _REQUIRED_KEYS[key]
    if isinstance(value, bool) or not isinstance(value, expected):
        raise PlistFormatError(
            f"key {key!r} has unexpected type {type(value).__name__}"
        )


def loads(payload: bytes) -> FilterPlist:
    """Parse filter plist bytes."""
    try:
        document = plistlib.loads(payload)
    except (plistlib.InvalidFileException, ExpatError, ValueError) as exc:
        raise PlistFormatError(f"invalid plist format: {exc}") from exc

    if not isinstance(document, dict):
        raise PlistFormatError("invalid plist format: top-level object is not a dictionary")

    missing = sorted(key for key in _REQUIRED_KEYS if key not in document)
    if missing:
        raise PlistFormatError(f"missing required plist keys: {', '.join(missing)}")
    for key in _REQUIRED_KEYS:
        _check_value(key, document[key])

    parsed = FilterPlist(
        bit_vector_data=bytes(document["bitVectorData"]),
        false_positive_tolerance=float(document["falsePositiveTolerance"]),
        murmur_seed=document["murmurSeed"],
        number_of_bits=document["numberOfBits"],
        number_of_bytes=document["numberOfBytes"],
        number_of_hashes=document["numberOfHashes"],
        number_of_items=document["numberOfItems"],
    )
    if parsed.number_of_bytes != len(parsed.bit_vector_data):
        logger.warning(
            "numberOfBytes is %d but bitVectorData holds %d bytes",
            parsed.number_of_bytes, len(parsed.bit_vector_data),
        )
    return parsed


def load(path: PathLike) -> FilterPlist:
    """Read and parse the filter plist at ``path``."""
    payload = Path(path).read_bytes()
    logger.debug("read %d bytes of plist from %s", len(payload), path)
    return loads(payload)
