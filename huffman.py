import heapq
import logging
from collections import Counter
from types import MappingProxyType
from typing import Dict, Mapping, Optional

logger = logging.getLogger(__name__)


# Errors

class HuffmanError(Exception):
    """Base class for every error raised by the Huffman coder."""


class EmptyInputError(HuffmanError, ValueError):
    def __init__(self):
        super().__init__("Input text cannot be empty")


class NotBuiltError(HuffmanError, RuntimeError):
    def __init__(self):
        super().__init__("Tree not built. Call build() first.")


class UnknownSymbolError(HuffmanError, ValueError):
    def __init__(self, symbol: int):
        self.symbol = symbol
        super().__init__(f"Symbol {symbol!r} (0x{symbol:02x}) not found in Huffman tree")


class InvalidBitError(HuffmanError, ValueError):
    def __init__(self, bit: str, position: int):
        self.bit = bit
        self.position = position
        super().__init__(
            f"Invalid encoded text: {bit!r} at position {position}. "
            "Must contain only '0' and '1' characters."
        )


class TraversalError(HuffmanError, RuntimeError):
    def __init__(self, position: int):
        self.position = position
        super().__init__(f"Invalid encoded text: traversal went beyond tree at position {position}")


class IncompleteSequenceError(HuffmanError, ValueError):
    def __init__(self, trailing_bits: int):
        self.trailing_bits = trailing_bits
        super().__init__(
            "Invalid encoded text: incomplete sequence "
            f"({trailing_bits} trailing bit(s) do not end at a symbol)"
        )


# Tree

class HuffmanNode: # Node for Huffman tree
    def __init__(self, symbol, frequency, left=None, right=None):
        self.symbol = symbol    # byte or None
        self.frequency = frequency
        self.left = left
        self.right = right

    def __lt__(self, other):
        return self._rank() < other._rank() # allows heapq to maintain the min-heap property based on frequency

    def _rank(self):
        # Equal frequencies: leaves pop before merged nodes, higher byte values first,
        # which leaves the shorter codes to the lower byte values
        if self.is_leaf:
            return (self.frequency, 0, -self.symbol)
        return (self.frequency, 1, 0)

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    def __repr__(self):
        if self.is_leaf:
            return f"HuffmanNode(symbol={self.symbol!r}, frequency={self.frequency})"
        return f"HuffmanNode(frequency={self.frequency})"


def _as_bytes(text) -> bytes:
    if isinstance(text, str):
        raise TypeError("expected a bytes-like object, not str")
    return bytes(memoryview(text))


def build_frequency_table(data: bytes) -> Dict[int, int]: # data: input bytes
    return dict(Counter(_as_bytes(data)))


def build_huffman_tree(frequency_table: Mapping[int, int]) -> HuffmanNode: # frequency_table: dict of symbol -> frequency
    if not frequency_table:
        raise EmptyInputError()

    priority_queue = [HuffmanNode(symbol, frequency) for symbol, frequency in frequency_table.items()]
    heapq.heapify(priority_queue)

    # One distinct symbol: nothing to merge, hang the leaf off the root's left side
    if len(priority_queue) == 1:
        leaf = priority_queue[0]
        return HuffmanNode(None, leaf.frequency, left=leaf)

    while len(priority_queue) > 1:
        left = heapq.heappop(priority_queue)
        right = heapq.heappop(priority_queue)
        merged_node = HuffmanNode(None, left.frequency + right.frequency, left, right) # internal node with combined frequency
        heapq.heappush(priority_queue, merged_node)

    return priority_queue[0] # root of the tree


def generate_huffman_codes(root: HuffmanNode) -> Dict[int, str]: # root: root of the Huffman tree
    codes = {}

    def generate_codes_helper(node, current_code):
        if node is None:
            return

        # Leaf node -> assign code; a bare leaf root still needs one bit
        if node.is_leaf:
            codes[node.symbol] = current_code or '0'
            return

        generate_codes_helper(node.left, current_code + '0')
        generate_codes_helper(node.right, current_code + '1')

    generate_codes_helper(root, '')
    return codes


def tree_depth(root: Optional[HuffmanNode]) -> int:
    """Length of the longest root-to-leaf path."""
    if root is None or root.is_leaf:
        return 0
    return 1 + max(tree_depth(root.left), tree_depth(root.right))


def _is_single_symbol_tree(root: HuffmanNode) -> bool:
    return root.right is None and root.left is not None and root.left.is_leaf


def _check_bits(bitstring: str, allowed: str = '01') -> None:
    for position, bit in enumerate(bitstring):
        if bit not in allowed:
            raise InvalidBitError(bit, position)


def huffman_encode(data: bytes, code_map: Mapping[int, str]) -> str: # data: input bytes to encode, code_map: dict of symbol -> Huffman code
    parts = []
    for byte in _as_bytes(data):
        code = code_map.get(byte)
        if code is None:
            raise UnknownSymbolError(byte)
        parts.append(code)
    return ''.join(parts)


def huffman_decode(bitstring: str, root: HuffmanNode) -> bytes: # bitstring: the encoded string of '0's and '1's, root: root of the Huffman tree
    # Single-symbol tree: the only valid code is '0'
    if root.is_leaf or _is_single_symbol_tree(root):
        _check_bits(bitstring, allowed='0')
        leaf = root if root.is_leaf else root.left
        return bytes([leaf.symbol]) * len(bitstring)

    _check_bits(bitstring)

    decoded_bytes = bytearray()
    current_node = root
    start = 0 # position where the current code began
    for position, bit in enumerate(bitstring):
        if current_node.is_leaf:
            raise TraversalError(position)
        current_node = current_node.left if bit == '0' else current_node.right
        if current_node is None:
            raise TraversalError(position)

        if current_node.is_leaf: # reached a leaf
            decoded_bytes.append(current_node.symbol)
            current_node = root # reset to the root for the next symbol
            start = position + 1

    if current_node is not root:
        raise IncompleteSequenceError(len(bitstring) - start)

    return bytes(decoded_bytes)


class HuffmanCoder:
    """Holds the tree and tables from the most recent build.

    build() replaces the frequency table, tree and code table together, so
    encode() and decode() always see a consistent set. Not thread-safe: a
    rebuild must not race in-flight encode/decode calls.
    """

    def __init__(self):
        self._root = None
        self._frequencies = MappingProxyType({})
        self._codes = MappingProxyType({})

    def build(self, text: bytes) -> None:
        data = _as_bytes(text)
        if not data:
            raise EmptyInputError()

        frequencies = build_frequency_table(data)
        root = build_huffman_tree(frequencies)
        codes = generate_huffman_codes(root)

        self._root = root
        self._frequencies = MappingProxyType(frequencies)
        self._codes = MappingProxyType(codes)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "built tree: %d bytes, %d distinct symbols, depth %d",
                len(data), len(frequencies), tree_depth(root),
            )

    def encode(self, text: bytes) -> str:
        if self._root is None:
            raise NotBuiltError()
        return huffman_encode(text, self._codes)

    def decode(self, bits: str) -> bytes:
        if self._root is None:
            raise NotBuiltError()
        return huffman_decode(bits, self._root)

    @property
    def is_built(self) -> bool:
        return self._root is not None

    @property
    def root(self) -> Optional[HuffmanNode]:
        return self._root

    @property
    def frequencies(self) -> Mapping[int, int]:
        return self._frequencies

    @property
    def codes(self) -> Mapping[int, str]:
        return self._codes
