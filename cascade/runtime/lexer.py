"""Lexer and numeric literal parser for Cascade source."""

from __future__ import annotations

from .core import Token, TokenKind

SEPARATORS = frozenset(b" \t;\n")
NEWLINE = ord("\n")
HEX_PREFIX = ord("#")


def _hex_digit(byte: int) -> int:
    if 0x30 <= byte <= 0x39:
        return byte - 0x30
    if 0x61 <= byte <= 0x66:
        return byte - 0x61 + 10
    return 0


def parse_number(word: bytes) -> int:
    """Return the integer value of a numeric word.

    ``#``-prefixed words are hexadecimal with lowercase digits; any other byte
    (``A``-``F`` included) takes up a digit position but contributes zero.
    Anything else is decimal and stops at the first non-digit byte, so ``42%``
    and ``10px`` parse as 42 and 10.
    """

    if not word:
        return 0

    result = 0
    if word[0] == HEX_PREFIX:
        for byte in word[1:]:
            result = result * 16 + _hex_digit(byte)
        return result

    for byte in word:
        if not 0x30 <= byte <= 0x39:
            break
        result = result * 10 + (byte - 0x30)
    return result


def _is_numeric_word(word: bytes) -> bool:
    first = word[0]
    return first == HEX_PREFIX or 0x30 <= first <= 0x39


def _make_token(word: bytes, line: int) -> Token:
    text = word.decode("utf-8", errors="replace")
    if _is_numeric_word(word):
        return Token(TokenKind.NUMBER, text, parse_number(word), line)
    return Token(TokenKind.KEYWORD, text, None, line)


def tokenize(data: bytes) -> list[Token]:
    """Split raw source bytes into keyword, number and newline tokens."""

    if isinstance(data, str):
        data = data.encode("utf-8")

    tokens: list[Token] = []
    line = 1
    start = 0
    for idx, byte in enumerate(data):
        if byte not in SEPARATORS:
            continue
        if idx > start:
            tokens.append(_make_token(data[start:idx], line))
        if byte == NEWLINE:
            tokens.append(Token(TokenKind.NEWLINE, "\n", None, line))
            line += 1
        start = idx + 1

    if start < len(data):
        tokens.append(_make_token(data[start:], line))

    return tokens


__all__ = [
    "SEPARATORS",
    "parse_number",
    "tokenize",
]
