"""Immutable bit vector cell used for pass-through transaction columns."""
from typing import Iterable, Tuple

import numpy as np

from subgroup_miner.exceptions import ConfigurationError

HEX_DIGITS = set('0123456789abcdefABCDEF')


class BitVector:
    """
    Fixed-length vector of bits, stored as the sorted positions of set bits.

    Args:
        length: Number of bits
        bits: Positions of set bits, each in [0, length)
    """

    __slots__ = ('_length', '_bits')

    def __init__(self, length: int, bits: Iterable[int] = ()):
        if length < 0:
            raise ConfigurationError(f"Bit vector length must be >= 0, got {length}")
        positions = tuple(sorted(set(int(b) for b in bits)))
        if positions and (positions[0] < 0 or positions[-1] >= length):
            raise ConfigurationError(
                f"Bit positions {positions} out of range for a vector of length {length}")
        self._length = int(length)
        self._bits = positions

    @classmethod
    def from_bit_string(cls, text: str) -> 'BitVector':
        """Character i of ``text`` ('0' or '1') becomes bit i."""
        text = text.strip()
        if any(c not in '01' for c in text):
            raise ConfigurationError(f"Invalid bit string '{text}'")
        return cls(len(text), (i for i, c in enumerate(text) if c == '1'))

    @classmethod
    def from_hex_string(cls, text: str) -> 'BitVector':
        """Hex number; the rightmost digit holds bits 0-3."""
        text = text.strip()
        if not text or any(c not in HEX_DIGITS for c in text):
            raise ConfigurationError(f"Invalid hex string '{text}'")
        value = int(text, 16)
        length = 4 * len(text)
        return cls(length, (i for i in range(length) if (value >> i) & 1))

    @classmethod
    def from_id_string(cls, text: str, length: int = None) -> 'BitVector':
        """Whitespace separated positions of the set bits."""
        try:
            positions = [int(token) for token in text.split()]
        except ValueError:
            raise ConfigurationError(f"Invalid id string '{text}'")
        if length is None:
            length = max(positions) + 1 if positions else 0
        return cls(length, positions)

    @classmethod
    def from_array(cls, values) -> 'BitVector':
        array = np.asarray(values)
        if array.ndim != 1:
            raise ConfigurationError(f"Expected a 1-D array, got shape {array.shape}")
        return cls(array.shape[0], np.flatnonzero(array).tolist())

    @property
    def length(self) -> int:
        return self._length

    @property
    def set_bits(self) -> Tuple[int, ...]:
        return self._bits

    @property
    def cardinality(self) -> int:
        return len(self._bits)

    def to_numpy(self) -> np.ndarray:
        array = np.zeros(self._length, dtype=bool)
        array[list(self._bits)] = True
        return array

    def to_bit_string(self) -> str:
        bits = set(self._bits)
        return ''.join('1' if i in bits else '0' for i in range(self._length))

    def __len__(self):
        return self._length

    def __contains__(self, position):
        return position in self._bits

    def __eq__(self, other):
        if not isinstance(other, BitVector):
            return NotImplemented
        return self._length == other._length and self._bits == other._bits

    def __hash__(self):
        return hash((self._length, self._bits))

    def __repr__(self):
        return f"BitVector(length={self._length}, bits={list(self._bits)})"


def is_bit_vector_value(value) -> bool:
    if isinstance(value, BitVector):
        return True
    return isinstance(value, np.ndarray) and value.ndim == 1 and value.dtype == np.bool_
