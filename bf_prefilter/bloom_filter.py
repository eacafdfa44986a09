"""Bloom filter compatible with the URL-filtering prefilter format.

Positions come from FNV and MurmurHash3 x86_32 combined with
Kirsch-Mitzenmacher double hashing (see :mod:`bf_prefilter.hashing`). The bit
buffer, the bit/hash counts and the murmur seed are everything a reader needs
to answer queries, so filters written here can be loaded by any other
implementation of the format and vice versa.

Instances are not thread-safe; callers sharing a filter across threads must
serialize access themselves.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Union

from .bit_store import BitStore
from .errors import InvalidParameterError
from .hashing import MASK32, derive_indices
from .sizing import optimal_parameters


logger = logging.getLogger(__name__)

DEFAULT_MURMUR_SEED = 0x9747B28C


def _validate(
    num_bits: int,
    num_hashes: int,
    num_items: int,
    false_positive_tolerance: float,
    murmur_seed: int,
) -> None:
    if num_bits <= 0:
        raise InvalidParameterError("num_bits must be positive")
    if num_hashes <= 0:
        raise InvalidParameterError("num_hashes must be positive")
    if num_items < 0:
        raise InvalidParameterError("num_items must be non-negative")
    if not 0.0 < false_positive_tolerance < 1.0:
        raise InvalidParameterError(
            "false positive tolerance must be between 0.0 and 1.0 (exclusive)"
        )
    if not 0 <= murmur_seed <= MASK32:
        raise InvalidParameterError("murmur_seed must be an unsigned 32-bit integer")


class BloomFilter:
    """Prefilter backed by a packed bit buffer.

    Build one with :meth:`from_items` (sized automatically), with explicit
    dimensions through the constructor, or reload a persisted buffer with
    :meth:`from_data`.
    """

    def __init__(
        self,
        num_bits: int,
        num_hashes: int,
        num_items: int,
        false_positive_tolerance: float,
        *,
        murmur_seed: int = DEFAULT_MURMUR_SEED,
        bit_array: Optional[Union[bytes, bytearray]] = None,
    ) -> None:
        """Create a filter with explicit dimensions, empty unless ``bit_array`` is given.

        Args:
            num_bits: Number of addressable bits.
            num_hashes: Number of positions probed per item.
            num_items: Expected item count, kept for reporting.
            false_positive_tolerance: Design error rate, kept for reporting.
            murmur_seed: Seed for MurmurHash3.
            bit_array: Existing buffer to wrap instead of allocating one from
                ``num_bits``.

        Raises:
            InvalidParameterError: If any parameter is out of range.
        """
        _validate(num_bits, num_hashes, num_items, false_positive_tolerance, murmur_seed)

        self._num_bits = num_bits
        self._num_hashes = num_hashes
        self._num_items = num_items
        self._false_positive_tolerance = false_positive_tolerance
        self._murmur_seed = murmur_seed
        if bit_array is not None:
            self._bits = BitStore(data=bit_array)
        else:
            self._bits = BitStore(num_bits)

    @classmethod
    def from_items(
        cls,
        items: Sequence[str],
        false_positive_tolerance: float,
        *,
        murmur_seed: int = DEFAULT_MURMUR_SEED,
    ) -> "BloomFilter":
        """Size a filter for ``items`` at ``false_positive_tolerance`` and add them all."""
        items = list(items)
        if not items:
            raise InvalidParameterError("items must not be empty")

        num_bits, num_hashes = optimal_parameters(len(items), false_positive_tolerance)
        bloom = cls(
            num_bits,
            num_hashes,
            len(items),
            false_positive_tolerance,
            murmur_seed=murmur_seed,
        )
        bloom.update(items)
        return bloom

    @classmethod
    def from_data(
        cls,
        data: Union[bytes, bytearray],
        false_positive_tolerance: float,
        num_items: int,
        num_bits: int,
        num_hashes: int,
        murmur_seed: int = DEFAULT_MURMUR_SEED,
    ) -> "BloomFilter":
        """Rebuild a filter from a previously persisted bit buffer.

        The buffer is used verbatim. A length that disagrees with ``num_bits``
        is accepted so externally produced filters still load; positions past
        the end of the buffer simply read as unset.
        """
        if not data:
            raise InvalidParameterError("data cannot be empty")

        _validate(num_bits, num_hashes, num_items, false_positive_tolerance, murmur_seed)

        expected = (num_bits + 7) // 8
        if len(data) != expected:
            logger.warning(
                "bit buffer holds %d bytes but %d bits need %d; loading anyway",
                len(data), num_bits, expected,
            )

        return cls(
            num_bits,
            num_hashes,
            num_items,
            false_positive_tolerance,
            murmur_seed=murmur_seed,
            bit_array=data,
        )

    def add(self, item: str) -> None:
        """Insert ``item`` into the filter."""
        for bit_index in self._hashes(item):
            self._bits.set_bit(bit_index)

    def update(self, items: Iterable[str]) -> None:
        """Insert all ``items`` into the filter."""
        for item in items:
            self.add(item)

    def contains(self, item: str) -> bool:
        """Return True if ``item`` may be present, False if definitely absent."""
        for bit_index in self._hashes(item):
            if not self._bits.is_bit_set(bit_index):
                return False
        return True

    __contains__ = contains

    def _hashes(self, item: str) -> List[int]:
        return derive_indices(item, self._num_hashes, self._num_bits, self._murmur_seed)

    @property
    def num_bits(self) -> int:
        return self._num_bits

    @property
    def num_hashes(self) -> int:
        return self._num_hashes

    @property
    def num_items(self) -> int:
        return self._num_items

    @property
    def false_positive_tolerance(self) -> float:
        return self._false_positive_tolerance

    @property
    def murmur_seed(self) -> int:
        return self._murmur_seed

    @property
    def data(self) -> bytes:
        """Raw bit buffer, exactly as persisted."""
        return self._bits.data

    @property
    def num_bytes(self) -> int:
        return len(self._bits)

    def count_set_bits(self) -> int:
        return self._bits.count_set_bits()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(num_bits={self._num_bits}, "
            f"num_hashes={self._num_hashes}, num_items={self._num_items}, "
            f"false_positive_tolerance={self._false_positive_tolerance}, "
            f"murmur_seed=0x{self._murmur_seed:X})"
        )
