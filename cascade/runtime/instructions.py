"""Cascade instruction set and compiled program container."""
from __future__ import annotations

from dataclasses import dataclass, fields

from ..constants import REWRITE_NONE


class Instruction:
    """Base class of the closed instruction vocabulary.

    Every variant is a frozen dataclass registered in ``INSTRUCTION_TYPES``.
    ``op`` is the stable name used in bitcode documents and listings.
    """

    op = "instruction"

    def operands(self):
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def to_dict(self):
        return {"op": self.op, **self.operands()}


@dataclass(frozen=True)
class ReserveVars(Instruction):
    count: int
    op = "ReserveVars"


@dataclass(frozen=True)
class SelectVar(Instruction):
    var_index: int
    rewrite_mode: str = REWRITE_NONE
    op = "SelectVar"


@dataclass(frozen=True)
class SetVar(Instruction):
    value: int
    op = "SetVar"


@dataclass(frozen=True)
class Loop(Instruction):
    start: int
    step: str
    end: int
    op = "Loop"


@dataclass(frozen=True)
class LoopEnd(Instruction):
    op = "LoopEnd"


@dataclass(frozen=True)
class Math(Instruction):
    lhs: int
    operator: str
    rhs: int
    op = "Math"


@dataclass(frozen=True)
class AddToPrint(Instruction):
    var_index: int
    op = "AddToPrint"


@dataclass(frozen=True)
class AddCharToPrint(Instruction):
    char_code: int
    op = "AddCharToPrint"


@dataclass(frozen=True)
class AddVarCharPrint(Instruction):
    var_index: int
    op = "AddVarCharPrint"


@dataclass(frozen=True)
class Print(Instruction):
    count: int
    op = "Print"


@dataclass(frozen=True)
class Conditional(Instruction):
    lhs: int
    flags: int
    rhs: int
    label: int
    op = "Conditional"


@dataclass(frozen=True)
class Label(Instruction):
    label_id: int
    op = "Label"


@dataclass(frozen=True)
class Exit(Instruction):
    op = "Exit"


@dataclass(frozen=True)
class UserInput(Instruction):
    should_prompt: bool = False
    prompt_var: int = 0
    op = "UserInput"


INSTRUCTION_TYPES = (
    ReserveVars,
    SelectVar,
    SetVar,
    Loop,
    LoopEnd,
    Math,
    AddToPrint,
    AddCharToPrint,
    AddVarCharPrint,
    Print,
    Conditional,
    Label,
    Exit,
    UserInput,
)

INSTRUCTIONS_BY_OP = {cls.op: cls for cls in INSTRUCTION_TYPES}

_OPERAND_TYPES = {"int": int, "str": str, "bool": bool}

# Operands that address a variable, a label or a buffer length.
_NON_NEGATIVE_OPERANDS = frozenset({"var_index", "count", "label", "label_id", "prompt_var"})


def _check_operand(op, name, kind, value):
    # JSON booleans must not pass as integers, so compare exact types.
    if type(value) is not _OPERAND_TYPES[kind]:
        raise ValueError(f"Malformed {op} instruction: {name} must be {kind}, got {value!r}")
    if name in _NON_NEGATIVE_OPERANDS and value < 0:
        raise ValueError(f"Malformed {op} instruction: {name} must not be negative")


def instruction_from_dict(data):
    """Rebuild an instruction from its ``to_dict`` form.

    Operands are checked against the dataclass field types, and indices,
    counts and label ids must be non-negative. Any violation is a
    ``ValueError`` so a hand-edited bitcode file is rejected while loading.
    """

    if not isinstance(data, dict):
        raise ValueError("Instruction must be built from a mapping")
    op = data.get("op")
    cls = INSTRUCTIONS_BY_OP.get(op)
    if cls is None:
        raise ValueError(f"Unknown instruction op: {op!r}")
    operands = {}
    for f in fields(cls):
        if f.name in data:
            _check_operand(op, f.name, f.type, data[f.name])
            operands[f.name] = data[f.name]
    try:
        return cls(**operands)
    except TypeError as exc:
        raise ValueError(f"Malformed {op} instruction: {exc}") from exc


class Program:
    """Compiled instruction sequence together with its label index."""

    def __init__(self, instructions=(), labels=()):
        self.instructions = tuple(instructions)
        self.labels = list(labels)

    def __len__(self):
        return len(self.instructions)

    def __iter__(self):
        return iter(self.instructions)

    def __getitem__(self, position):
        return self.instructions[position]

    def __eq__(self, other):
        if not isinstance(other, Program):
            return NotImplemented
        return self.instructions == other.instructions and self.labels == other.labels

    def __repr__(self):  # pragma: no cover - debugging helper
        return "\n".join(f"{idx:4d}  {instr}" for idx, instr in enumerate(self.instructions))


__all__ = [
    "AddCharToPrint",
    "AddToPrint",
    "AddVarCharPrint",
    "Conditional",
    "Exit",
    "INSTRUCTIONS_BY_OP",
    "INSTRUCTION_TYPES",
    "Instruction",
    "Label",
    "Loop",
    "LoopEnd",
    "Math",
    "Print",
    "Program",
    "ReserveVars",
    "SelectVar",
    "SetVar",
    "UserInput",
    "instruction_from_dict",
]
