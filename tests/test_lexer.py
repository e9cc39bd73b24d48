import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from cascade import Token, TokenKind, parse_number, tokenize


def kinds_and_text(tokens):
    return [(tok.kind, tok.text, tok.value) for tok in tokens]


@pytest.mark.parametrize(
    "word,expected",
    [
        (b"#1a", 26),
        (b"42%", 42),
        (b"#0", 0),
        (b"7", 7),
        (b"#FF", 0),
        (b"#1A", 16),
        (b"#ff", 255),
        (b"#", 0),
        (b"10px", 10),
        (b"2147483647", 2147483647),
    ],
)
def test_parse_number(word, expected):
    assert parse_number(word) == expected


def test_parse_number_hex_unknown_digit_keeps_its_position():
    # 'z' contributes zero but still shifts the 1 into the sixteens place.
    assert parse_number(b"#1z") == 16


def test_tokenize_declaration_line():
    tokens = tokenize(b"outline: solid 5;\n")

    assert kinds_and_text(tokens) == [
        (TokenKind.KEYWORD, "outline:", None),
        (TokenKind.KEYWORD, "solid", None),
        (TokenKind.NUMBER, "5", 5),
        (TokenKind.NEWLINE, "\n", None),
    ]
    assert tokens[0].is_declaration
    assert not tokens[1].is_declaration


def test_tokenize_skips_empty_words_between_separators():
    tokens = tokenize(b"  border:\t\t1 ;; solid   2 \n\n")

    assert [tok.text for tok in tokens] == ["border:", "1", "solid", "2", "\n", "\n"]


def test_newline_follows_pending_word_and_counts_lines():
    tokens = tokenize(b"a\nb #10\n")

    assert tokens == [
        Token(TokenKind.KEYWORD, "a", None, 1),
        Token(TokenKind.NEWLINE, "\n", None, 1),
        Token(TokenKind.KEYWORD, "b", None, 2),
        Token(TokenKind.NUMBER, "#10", 16, 2),
        Token(TokenKind.NEWLINE, "\n", None, 2),
    ]


def test_trailing_word_without_separator_is_still_a_token():
    tokens = tokenize(b"word-wrap:")

    assert kinds_and_text(tokens) == [(TokenKind.KEYWORD, "word-wrap:", None)]


def test_tokenize_accepts_text_input():
    assert tokenize("opacity: 3\n") == tokenize(b"opacity: 3\n")


def test_tokenize_empty_source():
    assert tokenize(b"") == []
