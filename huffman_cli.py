"""
Command-line front end for the Huffman coder.

Builds a code for the input, encodes it, decodes it back and prints a report:
the code table, the encoded bits, the compression ratio and whether the round
trip reproduced the input.

How to run:
  huffman-coder "hello world"
  huffman-coder -f input.txt
  huffman-coder -f input.bin --max-display 40 -v
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Mapping, Optional, Tuple

from huffman import HuffmanCoder, HuffmanError

logger = logging.getLogger(__name__)

DEFAULT_MAX_DISPLAY = 100 # characters of input / bits of output shown before truncating
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_NAMED_SYMBOLS = {
    ord(' '): "' '",
    ord('\n'): "'\\n'",
    ord('\t'): "'\\t'",
    ord('\r'): "'\\r'",
}


# Formatting helpers

def format_symbol(symbol: int) -> str:
    if symbol in _NAMED_SYMBOLS:
        return _NAMED_SYMBOLS[symbol]
    if 0x20 < symbol < 0x7f:
        return f"'{chr(symbol)}'"
    return f"'\\x{symbol:02x}'"

def truncate(text: str, limit: int, unit: str) -> str:
    if len(text) <= limit:
        return text
    return f"{text[:limit]}... ({len(text)} {unit} total)"

def compression_ratio(original_bytes: int, encoded_bits: int) -> float:
    """Percentage saved relative to 8 bits per input byte."""
    original_bits = original_bytes * 8
    return (1.0 - encoded_bits / original_bits) * 100.0

def sorted_codes(codes: Mapping[int, str]) -> List[Tuple[int, str]]:
    # shortest (most frequent) codes first, ties by byte value
    return sorted(codes.items(), key=lambda item: (len(item[1]), item[0]))

def format_report(data: bytes, coder: HuffmanCoder, encoded: str, decoded: bytes,
                  max_display: int = DEFAULT_MAX_DISPLAY) -> str:
    original_bits = len(data) * 8
    lines = ["", "=== Huffman Compression ===", ""]

    text = data.decode("utf-8", errors="replace")
    lines.append(f"Original text: {truncate(text, max_display, 'chars')}")
    lines.append(f"Original size: {original_bits} bits ({len(data)} bytes)")
    lines.append("")

    lines.append("Huffman Codes:")
    for symbol, code in sorted_codes(coder.codes):
        lines.append(f"  {format_symbol(symbol)} -> {code}")
    lines.append("")

    lines.append(f"Encoded: {truncate(encoded, max_display, 'bits')}")
    lines.append(f"Encoded size: {len(encoded)} bits")
    lines.append(f"Compression ratio: {compression_ratio(len(data), len(encoded)):.2f}%")
    lines.append("")

    lines.append(f"Verification: {'SUCCESS' if decoded == data else 'FAILED'}")
    lines.append("")
    return "\n".join(lines)


# Input

def read_input(args: argparse.Namespace) -> bytes:
    if args.file is not None:
        return Path(args.file).read_bytes()
    return os.fsencode(args.text)

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="huffman-coder",
        description="Build a Huffman code for the input, encode it and verify the round trip.",
        epilog=('Example:\n  huffman-coder "hello world"\n  huffman-coder -f input.txt\n'
                '  huffman-coder -- "-text starting with a dash"'),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    source = ap.add_mutually_exclusive_group(required=True)
    source.add_argument("text", nargs="?", help="Text to encode")
    source.add_argument("-f", "--file", type=str, help="Read input from file (raw bytes)")
    ap.add_argument("--max-display", type=int, default=DEFAULT_MAX_DISPLAY,
                    help="Truncate displayed text and bits after this many characters")
    ap.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return ap


# Main

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format=LOG_FORMAT)

    try:
        data = read_input(args)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not data:
        print("Error: Input text is empty", file=sys.stderr)
        return 1

    try:
        coder = HuffmanCoder()
        coder.build(data)
        encoded = coder.encode(data)
        decoded = coder.decode(encoded)
    except HuffmanError as e:
        logger.debug("core error", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(format_report(data, coder, encoded, decoded, max(1, args.max_display)))

    if decoded != data:
        logger.warning("round trip mismatch: %d bytes in, %d bytes out", len(data), len(decoded))
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
