import numpy as np
import pytest

from subgroup_miner.exceptions import ConfigurationError
from subgroup_miner.preprocessing.bitvector import BitVector, is_bit_vector_value


def test_from_bit_string():
    vector = BitVector.from_bit_string('1010')
    assert vector.length == 4
    assert vector.set_bits == (0, 2)
    assert vector.to_bit_string() == '1010'


def test_from_hex_string():
    assert BitVector.from_hex_string('A').set_bits == (1, 3)
    vector = BitVector.from_hex_string('1F')
    assert vector.length == 8
    assert vector.set_bits == (0, 1, 2, 3, 4)


def test_from_id_string():
    vector = BitVector.from_id_string('3 0 5')
    assert vector.length == 6
    assert vector.set_bits == (0, 3, 5)
    assert BitVector.from_id_string('1', length=10).length == 10
    assert BitVector.from_id_string('').length == 0


@pytest.mark.parametrize("parse, text", [
    (BitVector.from_bit_string, '10x1'),
    (BitVector.from_hex_string, 'G1'),
    (BitVector.from_hex_string, ''),
    (BitVector.from_id_string, '1 two'),
])
def test_invalid_strings(parse, text):
    with pytest.raises(ConfigurationError):
        parse(text)


def test_positions_must_fit_length():
    with pytest.raises(ConfigurationError):
        BitVector(3, [3])
    with pytest.raises(ConfigurationError):
        BitVector.from_id_string('4', length=2)


def test_numpy_conversion():
    vector = BitVector.from_array(np.array([False, True, True]))
    assert vector.set_bits == (1, 2)
    assert vector.to_numpy().tolist() == [False, True, True]
    assert vector.cardinality == 2
    assert 1 in vector and 0 not in vector


def test_equality_and_hash():
    assert BitVector(4, [2, 0]) == BitVector.from_bit_string('1010')
    assert BitVector(4, [0]) != BitVector(5, [0])
    assert len({BitVector(4, [0, 2]), BitVector.from_bit_string('1010')}) == 1


def test_is_bit_vector_value():
    assert is_bit_vector_value(BitVector(1))
    assert is_bit_vector_value(np.array([True, False]))
    assert not is_bit_vector_value(np.array([1, 0]))
    assert not is_bit_vector_value('101')
