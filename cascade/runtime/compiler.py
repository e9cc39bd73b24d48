"""Compilation pipeline for Cascade: tokens to a linked instruction program."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ..constants import (
    DECLARATIONS,
    LOOP_STEPS,
    MATH_STYLES,
    MAX_SLOT_INDEX,
    OPS,
    REWRITE_MODE_CODES,
    REWRITE_MODES,
    REWRITE_NONE,
    UNRECOGNIZED,
)
from .core import StructuralError, Token, TokenKind
from .instructions import (
    AddCharToPrint,
    AddToPrint,
    AddVarCharPrint,
    Conditional,
    Exit,
    Instruction,
    Label,
    Loop,
    LoopEnd,
    Math,
    Print,
    Program,
    ReserveVars,
    SelectVar,
    SetVar,
    UserInput,
)
from .lexer import tokenize


def _char_literal(text: str):
    if len(text) == 3 and text[0] == text[2] and text[0] in "'\"":
        return ord(text[1])
    return None


def operand_value(token: Token) -> int:
    """Numeric value of an argument token.

    Numbers give their parsed value, quoted single characters (``'a'``) give
    their code point and any other keyword counts as zero.
    """

    if token.kind is TokenKind.NUMBER:
        return token.value
    code = _char_literal(token.text)
    return code if code is not None else 0


def _rewrite_mode(token: Token) -> str:
    if token.kind is TokenKind.NUMBER:
        return REWRITE_MODE_CODES.get(token.value, UNRECOGNIZED)
    return REWRITE_MODES.get(token.text, UNRECOGNIZED)


def _build_select(args):
    mode = _rewrite_mode(args[1]) if len(args) > 1 else REWRITE_NONE
    return SelectVar(operand_value(args[0]), mode)


def _build_loop(args):
    step = LOOP_STEPS.get(args[1].text, UNRECOGNIZED)
    return Loop(operand_value(args[0]), step, operand_value(args[2]))


def _build_math(args):
    operator = MATH_STYLES.get(args[1].text, UNRECOGNIZED)
    return Math(operand_value(args[0]), operator, operand_value(args[2]))


def _build_conditional(args):
    lhs, flags, rhs, label = (operand_value(tok) for tok in args[:4])
    return Conditional(lhs, flags, rhs, label)


def _build_input(args):
    if not args or args[0].text == "none":
        return UserInput(False, 0)
    return UserInput(True, operand_value(args[0]))


_BUILDERS = {
    "reserve": lambda args: ReserveVars(operand_value(args[0])),
    "select": _build_select,
    "set": lambda args: SetVar(operand_value(args[0])),
    "loop": _build_loop,
    "loop_end": lambda args: LoopEnd(),
    "math": _build_math,
    "print_var": lambda args: AddToPrint(operand_value(args[0])),
    "print_char": lambda args: AddCharToPrint(operand_value(args[0])),
    "print_var_char": lambda args: AddVarCharPrint(operand_value(args[0])),
    "print": lambda args: Print(operand_value(args[0])),
    "conditional": _build_conditional,
    "label": lambda args: Label(operand_value(args[0])),
    "exit": lambda args: Exit(),
    "input": _build_input,
}


def compile_tokens(tokens: Iterable[Token]) -> list[Instruction]:
    """Translate a token stream into instructions, one per declaration line."""

    instructions: list[Instruction] = []
    args: list[Token] = []
    command = None
    declaration = None

    for tok in tokens:
        if tok.kind is TokenKind.NEWLINE:
            if command is not None:
                required = OPS[command]["min_args"]
                if len(args) < required:
                    raise StructuralError(
                        f"'{declaration}' on line {tok.line} needs {required} "
                        f"argument(s), got {len(args)}"
                    )
                instructions.append(_BUILDERS[command](args))
            command = None
            declaration = None
            args = []
        elif tok.is_declaration:
            # Unknown property names neither select an opcode nor count as arguments.
            if tok.text in DECLARATIONS:
                command = DECLARATIONS[tok.text]
                declaration = tok.text
        else:
            args.append(tok)

    return instructions


def build_label_index(instructions: Iterable[Instruction]) -> list[int]:
    """Map label ids to instruction positions; later duplicates win."""

    instructions = list(instructions)
    end = len(instructions)
    labels: list[int] = []
    for position, instr in enumerate(instructions):
        if not isinstance(instr, Label):
            continue
        if not 0 <= instr.label_id <= MAX_SLOT_INDEX:
            raise StructuralError(
                f"label id {instr.label_id} at instruction {position} is outside "
                f"0..{MAX_SLOT_INDEX}",
                position,
            )
        if instr.label_id >= len(labels):
            labels.extend([end] * (instr.label_id + 1 - len(labels)))
        labels[instr.label_id] = position
    return labels


def resolve_label(labels: list[int], label_id: int, end: int) -> int:
    if 0 <= label_id < len(labels):
        return labels[label_id]
    return end


def link_program(instructions: Iterable[Instruction]) -> Program:
    instructions = tuple(instructions)
    return Program(instructions, build_label_index(instructions))


@dataclass(frozen=True)
class CompilationResult:
    """Result of lowering Cascade source into a linked program."""

    source: bytes
    tokens: tuple[Token, ...]
    program: Program


def compile_source(data: bytes) -> CompilationResult:
    """Run lexer, compiler and label pass over raw source bytes."""

    if isinstance(data, str):
        data = data.encode("utf-8")
    tokens = tokenize(data)
    program = link_program(compile_tokens(tokens))
    return CompilationResult(source=data, tokens=tuple(tokens), program=program)


__all__ = [
    "CompilationResult",
    "build_label_index",
    "compile_source",
    "compile_tokens",
    "link_program",
    "operand_value",
    "resolve_label",
]
