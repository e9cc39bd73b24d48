"""Core runtime data structures for Cascade."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from ..constants import INT32_MAX, INT32_MIN


class TokenKind(Enum):
    KEYWORD = "keyword"
    NUMBER = "number"
    NEWLINE = "newline"


@dataclass(frozen=True)
class Token:
    """A classified word of source text."""

    kind: TokenKind
    text: str
    value: Optional[int] = None
    line: int = 1

    def __repr__(self) -> str:  # pragma: no cover - representation helper
        if self.kind is TokenKind.NUMBER:
            return f"Number({self.text!r}, value={self.value})"
        if self.kind is TokenKind.NEWLINE:
            return "Newline"
        return f"Keyword({self.text!r})"

    @property
    def is_declaration(self) -> bool:
        return self.kind is TokenKind.KEYWORD and self.text.endswith(":")


def wrap_int32(value: int) -> int:
    """Wrap an arbitrary Python integer into the signed 32-bit range."""

    if INT32_MIN <= value <= INT32_MAX:
        return value
    return (value - INT32_MIN) % (2**32) + INT32_MIN


@dataclass(frozen=True)
class IntVar:
    value: int = 0

    def __post_init__(self):
        object.__setattr__(self, "value", wrap_int32(self.value))

    def render(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class TextVar:
    value: str = ""

    def render(self) -> str:
        return self.value

    def append(self, code: int) -> "TextVar":
        return TextVar(self.value + chr(code))


Var = Union[IntVar, TextVar]


class CascadeError(Exception):
    """Base class for every fatal compile or run time condition."""

    kind = "Error"

    def __init__(self, message: str, position: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.position = position

    def describe(self) -> str:
        where = f" (instruction {self.position})" if self.position is not None else ""
        return f"{self.kind}: {self.message}{where}"


class StructuralError(CascadeError):
    """A declaration is missing arguments or names a label id out of range."""

    kind = "StructuralError"


class VariableTypeError(CascadeError):
    """A Text variable was used where an Integer is required."""

    kind = "TypeError"


class SemanticError(CascadeError):
    """An operator, comparison, mode or step code that cannot be executed."""

    kind = "SemanticError"


class OperandRangeError(CascadeError):
    """A variable index outside the store was read or written."""

    kind = "OperandRangeError"


class ZeroDivisionFault(CascadeError):
    kind = "ZeroDivisionFault"


__all__ = [
    "CascadeError",
    "IntVar",
    "OperandRangeError",
    "SemanticError",
    "StructuralError",
    "TextVar",
    "Token",
    "TokenKind",
    "Var",
    "VariableTypeError",
    "ZeroDivisionFault",
    "wrap_int32",
]
