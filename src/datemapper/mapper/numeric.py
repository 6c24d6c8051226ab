"""Sortable numeric term encoding for 64-bit longs.

Implements the trie-style numeric encoding used by the index engine:
- long_to_prefix_coded: full or reduced precision term bytes
- prefix_coded_to_long: inverse of the above
- split_long_range: decompose an inclusive range into per-precision
  term ranges, each precision level dropping ``precision_step`` low bits

Encoded terms start with a shift byte (``0x20 + shift``) followed by the
sign-flipped value in 7-bit groups, so byte order equals numeric order
for terms of the same shift.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

LONG_MIN = -(1 << 63)
LONG_MAX = (1 << 63) - 1

_MASK64 = (1 << 64) - 1
_SIGN_BIT = 1 << 63
SHIFT_START_LONG = 0x20


def to_signed64(value: int) -> int:
    """Wrap an arbitrary int to a signed 64-bit value."""
    value &= _MASK64
    if value & _SIGN_BIT:
        return value - (1 << 64)
    return value


def long_to_prefix_coded(value: int, shift: int = 0) -> bytes:
    """Encode a long as sortable prefix-coded term bytes.

    Args:
        value: Signed 64-bit value
        shift: Number of low bits dropped (0..63); 0 is full precision

    Returns:
        Encoded term bytes
    """
    if shift < 0 or shift > 63:
        raise ValueError("Illegal shift value, must be 0..63")
    n_chars = (((63 - shift) * 37) >> 8) + 1
    sortable_bits = ((value & _MASK64) ^ _SIGN_BIT) >> shift
    encoded = bytearray(n_chars + 1)
    encoded[0] = SHIFT_START_LONG + shift
    while n_chars > 0:
        encoded[n_chars] = sortable_bits & 0x7F
        n_chars -= 1
        sortable_bits >>= 7
    return bytes(encoded)


def prefix_coded_shift(data: bytes) -> int:
    """Return the shift stored in the first byte of an encoded term."""
    shift = data[0] - SHIFT_START_LONG
    if shift < 0 or shift > 63:
        raise ValueError(
            "Invalid shift value in prefixCoded bytes (is encoded value really a LONG?)"
        )
    return shift


def prefix_coded_to_long(data: bytes) -> int:
    """Decode prefix-coded term bytes back to a signed long."""
    shift = prefix_coded_shift(data)
    sortable_bits = 0
    for position, byte in enumerate(data[1:], start=1):
        if byte > 0x7F:
            raise ValueError(
                "Invalid prefixCoded numerical value representation "
                f"(byte {byte:x} at position {position} is invalid)"
            )
        sortable_bits = ((sortable_bits << 7) | byte) & _MASK64
    return to_signed64(((sortable_bits << shift) & _MASK64) ^ _SIGN_BIT)


def bytes_to_long(data: bytes) -> int:
    """Decode an 8-byte big-endian binary long."""
    if len(data) != 8:
        raise ValueError(f"expected 8 bytes for a long, got {len(data)}")
    return int.from_bytes(data, "big", signed=True)


@dataclass(frozen=True)
class PrefixCodedRange:
    """One term range visited at a single precision level.

    Attributes:
        shift: Low bits dropped at this precision level
        min_value: Inclusive lower bound (full-precision value)
        max_value: Inclusive upper bound (full-precision value)
    """

    shift: int
    min_value: int
    max_value: int

    @property
    def lower_term(self) -> bytes:
        return long_to_prefix_coded(self.min_value, self.shift)

    @property
    def upper_term(self) -> bytes:
        return long_to_prefix_coded(self.max_value, self.shift)


def split_long_range(
    min_bound: int,
    max_bound: int,
    precision_step: int,
) -> List[PrefixCodedRange]:
    """Split an inclusive long range into per-precision term ranges.

    Bounds at each level are trimmed to the part not covered by a coarser
    level; the remaining middle is passed on with ``precision_step`` more
    low bits dropped, until the coarsest usable level is reached.

    Args:
        min_bound: Inclusive lower bound
        max_bound: Inclusive upper bound
        precision_step: Bits added per precision level (>= 1)

    Returns:
        Term ranges, finest precision first. Empty when min > max.
    """
    if precision_step < 1:
        raise ValueError("precisionStep must be >=1")
    ranges: List[PrefixCodedRange] = []
    if min_bound > max_bound:
        return ranges

    shift = 0
    while True:
        # 64-bit shift semantics: shifting by 64 is a shift by 0
        diff = to_signed64(1 << ((shift + precision_step) & 63))
        step_mask = to_signed64(1 << (precision_step & 63)) - 1
        mask = to_signed64(step_mask << shift)

        has_lower = (min_bound & mask) != 0
        has_upper = (max_bound & mask) != mask
        next_min = to_signed64(min_bound + diff if has_lower else min_bound) & ~mask
        next_max = to_signed64(max_bound - diff if has_upper else max_bound) & ~mask
        lower_wrapped = next_min < min_bound
        upper_wrapped = next_max > max_bound

        if (
            shift + precision_step >= 64
            or next_min > next_max
            or lower_wrapped
            or upper_wrapped
        ):
            ranges.append(_make_range(min_bound, max_bound, shift))
            break

        if has_lower:
            ranges.append(_make_range(min_bound, min_bound | mask, shift))
        if has_upper:
            ranges.append(_make_range(max_bound & ~mask, max_bound, shift))

        min_bound = next_min
        max_bound = next_max
        shift += precision_step

    return ranges


def _make_range(min_bound: int, max_bound: int, shift: int) -> PrefixCodedRange:
    max_bound |= (1 << shift) - 1
    return PrefixCodedRange(shift=shift, min_value=min_bound, max_value=to_signed64(max_bound))
