import heapq
import logging
import random

import pytest

import huffman
from huffman import (
    EmptyInputError,
    HuffmanCoder,
    HuffmanError,
    HuffmanNode,
    IncompleteSequenceError,
    InvalidBitError,
    NotBuiltError,
    TraversalError,
    UnknownSymbolError,
)


def _built(data):
    coder = HuffmanCoder()
    coder.build(data)
    return coder

def _optimal_cost(frequencies):
    # total weighted path length of an optimal prefix code
    weights = list(frequencies)
    if len(weights) == 1:
        return weights[0]
    heapq.heapify(weights)
    cost = 0
    while len(weights) > 1:
        merged = heapq.heappop(weights) + heapq.heappop(weights)
        cost += merged
        heapq.heappush(weights, merged)
    return cost

def _assert_prefix_free(codes):
    values = list(codes.values())
    for i, a in enumerate(values):
        for j, b in enumerate(values):
            if i != j:
                assert not b.startswith(a), f"{a!r} is a prefix of {b!r}"


# Round trips

@pytest.mark.parametrize("data", [
    b"hello world",
    b"ab",
    b"abcdefghij",
    b"abababababababab",
    b"Hello!\nWorld?\t123\r\n",
    b"The quick brown fox jumps over the lazy dog. " * 1000,
    bytes(range(256)),
    b"\x00\x00\x00\xff",
])
def test_roundtrip(data):
    coder = _built(data)
    encoded = coder.encode(data)
    assert set(encoded) <= {"0", "1"}
    assert coder.decode(encoded) == data


def test_roundtrip_random_bytes():
    rng = random.Random(7)
    for n in (1, 2, 3, 50, 4096):
        data = bytes(rng.getrandbits(8) for _ in range(n))
        coder = _built(data)
        assert coder.decode(coder.encode(data)) == data


def test_encode_subset_of_alphabet():
    coder = _built(b"abracadabra")
    assert coder.decode(coder.encode(b"cab")) == b"cab"


def test_empty_encode_and_decode():
    coder = _built(b"abc")
    assert coder.encode(b"") == ""
    assert coder.decode("") == b""


def test_accepts_bytearray_and_memoryview():
    coder = _built(bytearray(b"mississippi"))
    assert coder.decode(coder.encode(memoryview(b"mississippi"))) == b"mississippi"


# Tables

def test_frequencies():
    coder = _built(b"aaabbc")
    assert dict(coder.frequencies) == {ord("a"): 3, ord("b"): 2, ord("c"): 1}


def test_frequency_conservation():
    data = b"The quick brown fox jumps over the lazy dog"
    coder = _built(data)
    assert sum(coder.frequencies.values()) == len(data)


@pytest.mark.parametrize("data", [
    b"abcdefghij",
    b"hello world",
    b"aaaaaaaaaaaaaaaaaaaabbbbbccd",
    b"The quick brown fox jumps over the lazy dog. " * 50,
    bytes(range(256)),
    bytes(range(256)) + b"\x00" * 5000 + b"\x01" * 900,
    b"\x00\x00\x00\xff",
])
def test_codes_are_prefix_free(data):
    coder = _built(data)
    _assert_prefix_free(coder.codes)


def test_codes_cover_alphabet():
    data = b"compression"
    coder = _built(data)
    assert set(coder.codes) == set(data)
    assert all(set(code) <= {"0", "1"} and code for code in coder.codes.values())


@pytest.mark.parametrize("data", [
    b"aaaaaaaaaaaaaaaaaaaabbbbbccd",
    b"abcdefghij",
    b"mississippi river",
    b"aabbccdd",
])
def test_encoded_length_is_optimal(data):
    coder = _built(data)
    expected = _optimal_cost(coder.frequencies.values())
    assert len(coder.encode(data)) == expected


def test_equal_frequencies_give_balanced_codes():
    coder = _built(bytes(range(256)))
    assert {len(code) for code in coder.codes.values()} == {8}


def test_skewed_input_compresses():
    data = b"aaaaaaaaaaaaaaaaaaaabbbbbccd"
    coder = _built(data)
    assert len(coder.encode(data)) < len(data) * 8
    assert len(coder.codes[ord("a")]) == 1


def test_tables_are_read_only():
    coder = _built(b"abc")
    with pytest.raises(TypeError):
        coder.codes[ord("a")] = "1"
    with pytest.raises(TypeError):
        coder.frequencies[ord("a")] = 9


# Single distinct symbol

def test_single_symbol():
    coder = _built(b"aaaa")
    assert dict(coder.codes) == {ord("a"): "0"}
    assert coder.encode(b"aaaa") == "0000"
    assert coder.decode("0000") == b"aaaa"


def test_single_byte_input():
    coder = _built(b"\x00")
    assert coder.encode(b"\x00") == "0"
    assert coder.decode("000") == b"\x00\x00\x00"


def test_single_symbol_rejects_one_bit():
    coder = _built(b"zzz")
    with pytest.raises(InvalidBitError) as excinfo:
        coder.decode("0010")
    assert excinfo.value.bit == "1"
    assert excinfo.value.position == 2


def test_single_symbol_tree_shape():
    root = huffman.build_huffman_tree({65: 3})
    assert root.symbol is None
    assert root.right is None
    assert root.left.is_leaf and root.left.symbol == 65
    assert root.frequency == 3


# Lifecycle

def test_is_built():
    coder = HuffmanCoder()
    assert not coder.is_built
    assert coder.root is None
    coder.build(b"test")
    assert coder.is_built


def test_unbuilt_tables_are_empty():
    coder = HuffmanCoder()
    assert dict(coder.codes) == {}
    assert dict(coder.frequencies) == {}


def test_rebuild_tree():
    coder = _built(b"aaa")
    assert coder.decode(coder.encode(b"aaa")) == b"aaa"

    coder.build(b"xyz")
    assert set(coder.codes) == {ord("x"), ord("y"), ord("z")}
    assert dict(coder.frequencies) == {ord("x"): 1, ord("y"): 1, ord("z"): 1}
    assert coder.decode(coder.encode(b"xyz")) == b"xyz"
    with pytest.raises(UnknownSymbolError):
        coder.encode(b"a")


def test_rebuild_keeps_old_snapshot():
    coder = _built(b"aaa")
    old_codes = coder.codes
    coder.build(b"xyz")
    assert dict(old_codes) == {ord("a"): "0"}


def test_failed_build_keeps_state():
    coder = _built(b"ab")
    codes = dict(coder.codes)
    with pytest.raises(EmptyInputError):
        coder.build(b"")
    assert dict(coder.codes) == codes
    assert coder.decode(coder.encode(b"ba")) == b"ba"


# Errors

def test_empty_input_throws():
    with pytest.raises(EmptyInputError):
        HuffmanCoder().build(b"")


def test_encode_before_build_throws():
    with pytest.raises(NotBuiltError):
        HuffmanCoder().encode(b"x")


def test_decode_before_build_throws():
    with pytest.raises(NotBuiltError):
        HuffmanCoder().decode("01")


def test_decode_invalid_characters_throws():
    coder = _built(b"ab")
    with pytest.raises(InvalidBitError) as excinfo:
        coder.decode("012")
    assert excinfo.value.bit == "2"
    assert excinfo.value.position == 2


def test_decode_invalid_character_before_incomplete_tail():
    coder = _built(b"aaaabc")
    with pytest.raises(InvalidBitError):
        coder.decode("1x")


def test_decode_incomplete_sequence_throws():
    coder = _built(b"abc")
    encoded = coder.encode(b"abc")
    with pytest.raises(IncompleteSequenceError):
        coder.decode(encoded[:-1])


def test_decode_incomplete_skewed():
    # 'a' takes one bit, so 'b' and 'c' take two
    coder = _built(b"aaaabc")
    code = coder.encode(b"c")
    assert len(code) == 2
    with pytest.raises(IncompleteSequenceError) as excinfo:
        coder.decode(coder.encode(b"ab") + code[:1])
    assert excinfo.value.trailing_bits == 1


def test_encode_unknown_symbol_throws():
    coder = _built(b"ab")
    with pytest.raises(UnknownSymbolError) as excinfo:
        coder.encode(b"c")
    assert excinfo.value.symbol == ord("c")


def test_traversal_error_on_malformed_tree():
    # right subtree is missing its '1' branch
    root = HuffmanNode(None, 3,
                       left=HuffmanNode(ord("a"), 1),
                       right=HuffmanNode(None, 2, left=HuffmanNode(ord("b"), 2)))
    assert huffman.huffman_decode("010", root) == b"ab"
    with pytest.raises(TraversalError) as excinfo:
        huffman.huffman_decode("11", root)
    assert excinfo.value.position == 1


def test_str_input_is_rejected():
    with pytest.raises(TypeError):
        HuffmanCoder().build("abc")


@pytest.mark.parametrize("error, base", [
    (EmptyInputError, ValueError),
    (NotBuiltError, RuntimeError),
    (UnknownSymbolError, ValueError),
    (InvalidBitError, ValueError),
    (TraversalError, RuntimeError),
    (IncompleteSequenceError, ValueError),
])
def test_error_hierarchy(error, base):
    assert issubclass(error, HuffmanError)
    assert issubclass(error, base)


# Module functions

def test_build_huffman_tree_frequencies_sum():
    ft = huffman.build_frequency_table(b"abracadabra")
    root = huffman.build_huffman_tree(ft)
    assert root.frequency == 11
    assert huffman.tree_depth(root) == max(len(c) for c in huffman.generate_huffman_codes(root).values())


def test_build_huffman_tree_empty_table():
    with pytest.raises(EmptyInputError):
        huffman.build_huffman_tree({})


def test_generate_codes_for_bare_leaf():
    assert huffman.generate_huffman_codes(HuffmanNode(7, 5)) == {7: "0"}


def test_functional_roundtrip():
    data = b"functional interface"
    root = huffman.build_huffman_tree(huffman.build_frequency_table(data))
    codes = huffman.generate_huffman_codes(root)
    assert huffman.huffman_decode(huffman.huffman_encode(data, codes), root) == data


# Logging

def test_build_skips_depth_walk_without_debug(monkeypatch):
    def fail(root):
        raise AssertionError("tree_depth called")
    monkeypatch.setattr(huffman, "tree_depth", fail)
    monkeypatch.setattr(huffman.logger, "isEnabledFor", lambda level: False)
    coder = _built(b"abracadabra")
    assert coder.is_built


def test_build_logs_depth_with_debug(caplog):
    caplog.set_level(logging.DEBUG, logger="huffman")
    _built(b"aaaabc")
    assert "3 distinct symbols, depth 2" in caplog.text
