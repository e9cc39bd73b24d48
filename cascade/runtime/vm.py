"""Cascade virtual machine."""
from __future__ import annotations

import sys

from ..constants import (
    COMPARISON_MASK,
    COMPARISONS,
    LHS_LITERAL_FLAG,
    MATH_OPERATORS,
    MAX_CHAR_CODE,
    MAX_SLOT_INDEX,
    PRINT_SEPARATOR,
    REWRITE_INTEGER,
    REWRITE_NONE,
    REWRITE_TEXT,
    RHS_LITERAL_FLAG,
    STEP_INCREMENT,
)
from .compiler import resolve_label
from .core import (
    CascadeError,
    IntVar,
    OperandRangeError,
    SemanticError,
    TextVar,
    VariableTypeError,
    ZeroDivisionFault,
    wrap_int32,
)
from .instructions import (
    AddCharToPrint,
    AddToPrint,
    AddVarCharPrint,
    Conditional,
    Exit,
    Label,
    Loop,
    LoopEnd,
    Math,
    Print,
    ReserveVars,
    SelectVar,
    SetVar,
    UserInput,
)

_REWRITE_MODES = (REWRITE_NONE, REWRITE_INTEGER, REWRITE_TEXT)


class LoopFrame:
    """The single active loop: where it started and its current counter."""

    __slots__ = ("origin", "iterator")

    def __init__(self, origin, iterator):
        self.origin = origin
        self.iterator = iterator

    def __repr__(self):  # pragma: no cover - representation helper
        return f"LoopFrame(origin={self.origin}, iterator={self.iterator})"


class ExecutionResult:
    """Execution artefact from the virtual machine."""

    def __init__(self, steps, variables, halted_by_exit):
        self.steps = steps
        self.variables = variables
        self.halted_by_exit = halted_by_exit


def _truncating_divide(lhs, rhs):
    if rhs == 0:
        raise ZeroDivisionFault(f"division of {lhs} by zero")
    quotient = abs(lhs) // abs(rhs)
    return -quotient if (lhs < 0) != (rhs < 0) else quotient


_ARITHMETIC = {
    "subtract": lambda lhs, rhs: lhs - rhs,
    "add": lambda lhs, rhs: lhs + rhs,
    "multiply": lambda lhs, rhs: lhs * rhs,
    "divide": _truncating_divide,
}

_COMPARE = {
    "!=": lambda lhs, rhs: lhs != rhs,
    "==": lambda lhs, rhs: lhs == rhs,
    "<": lambda lhs, rhs: lhs < rhs,
    ">": lambda lhs, rhs: lhs > rhs,
}


class VirtualMachine:
    """Executes a linked :class:`Program` against one mutable variable store.

    Handlers return the next program counter, or ``None`` to fall through to
    the following instruction.
    """

    def __init__(self, stdout=None, stdin=None):
        self.stdout = stdout if stdout is not None else sys.stdout
        self.stdin = stdin if stdin is not None else sys.stdin
        self._handlers = {
            ReserveVars: self._reserve_vars,
            SelectVar: self._select_var,
            SetVar: self._set_var,
            Loop: self._loop,
            LoopEnd: self._loop_end,
            Math: self._math,
            AddToPrint: self._add_to_print,
            AddCharToPrint: self._add_char_to_print,
            AddVarCharPrint: self._add_var_char_print,
            Print: self._print,
            Conditional: self._conditional,
            Label: self._label,
            Exit: self._exit,
            UserInput: self._user_input,
        }
        self.reset()

    def reset(self):
        self.variables = []
        self.focus = 0
        self.rewrite_mode = REWRITE_NONE
        self.loop = None
        self.print_buffer = []
        self.program = None
        self.pc = 0
        self.steps = 0
        self.halted_by_exit = False

    def execute(self, program):
        self.program = program
        self.pc = 0
        end = len(program)

        while self.pc < end:
            instr = program[self.pc]
            handler = self._handlers.get(type(instr))
            if handler is None:
                raise SemanticError(f"no handler for {instr!r}", self.pc)
            try:
                target = handler(instr)
            except CascadeError as exc:
                if exc.position is None:
                    exc.position = self.pc
                raise
            self.steps += 1
            self.pc = self.pc + 1 if target is None else target

        return ExecutionResult(self.steps, list(self.variables), self.halted_by_exit)

    # -- variable store ----------------------------------------------------

    def _grow(self, size):
        if size > len(self.variables):
            self.variables.extend(IntVar(0) for _ in range(size - len(self.variables)))

    def _slot(self, index):
        if not 0 <= index < len(self.variables):
            raise OperandRangeError(
                f"variable {index} is outside the store of {len(self.variables)} slot(s)"
            )
        return self.variables[index]

    def _int_value(self, index, role):
        var = self._slot(index)
        if not isinstance(var, IntVar):
            raise VariableTypeError(f"{role} variable {index} holds text, not an integer")
        return var.value

    def _assign(self, var):
        self._slot(self.focus)
        self.variables[self.focus] = var

    def _write(self, text):
        self.stdout.write(text)
        self.stdout.flush()

    @staticmethod
    def _char_code(code, minimum=0):
        if not minimum <= code <= MAX_CHAR_CODE:
            raise SemanticError(f"{code} is not a printable character code")
        return code

    # -- handlers ----------------------------------------------------------

    def _reserve_vars(self, instr):
        if instr.count > MAX_SLOT_INDEX + 1:
            raise OperandRangeError(
                f"cannot reserve {instr.count} variables; the limit is {MAX_SLOT_INDEX + 1}"
            )
        self._grow(instr.count)

    def _select_var(self, instr):
        if instr.var_index < 0:
            raise OperandRangeError(f"variable index {instr.var_index} is negative")
        if instr.var_index > MAX_SLOT_INDEX:
            raise OperandRangeError(
                f"variable index {instr.var_index} exceeds the limit of {MAX_SLOT_INDEX}"
            )
        if instr.rewrite_mode not in _REWRITE_MODES:
            raise SemanticError(f"unrecognized rewrite mode {instr.rewrite_mode!r}")
        self._grow(instr.var_index + 1)
        self.focus = instr.var_index
        self.rewrite_mode = instr.rewrite_mode

    def _set_var(self, instr):
        mode = self.rewrite_mode
        self.rewrite_mode = REWRITE_NONE
        current = self._slot(self.focus)

        if mode == REWRITE_INTEGER:
            self._assign(IntVar(instr.value))
        elif mode == REWRITE_TEXT:
            self._assign(TextVar(chr(self._char_code(instr.value))))
        elif isinstance(current, TextVar):
            self._assign(current.append(self._char_code(instr.value)))
        else:
            self._assign(IntVar(instr.value))

    def _loop(self, instr):
        if instr.step != STEP_INCREMENT:
            raise SemanticError(f"unrecognized loop step {instr.step!r}")

        frame = self.loop
        if frame is None:
            # The end bound is only checked when LoopEnd rewinds here.
            self.loop = LoopFrame(self.pc, instr.start)
            return None

        if frame.origin != self.pc:
            raise SemanticError(
                f"nested loops are not supported; the loop at instruction "
                f"{frame.origin} is still active"
            )

        frame.iterator = wrap_int32(frame.iterator + 1)
        if frame.iterator >= instr.end:
            self.loop = None
            return self._past_loop_end()
        return None

    def _past_loop_end(self):
        for position in range(self.pc + 1, len(self.program)):
            if isinstance(self.program[position], LoopEnd):
                return position + 1
        return len(self.program)

    def _loop_end(self, instr):
        if self.loop is not None:
            return self.loop.origin
        return None

    def _math(self, instr):
        kinds = MATH_OPERATORS.get(instr.operator)
        if kinds is None:
            raise SemanticError(f"unrecognized math operator {instr.operator!r}")

        lhs_kind, rhs_kind = kinds
        lhs = instr.lhs if lhs_kind == "lit" else self._int_value(instr.lhs, "left")
        rhs = instr.rhs if rhs_kind == "lit" else self._int_value(instr.rhs, "right")
        family = instr.operator.split("-", 1)[0]
        self._assign(IntVar(_ARITHMETIC[family](lhs, rhs)))

    def _add_to_print(self, instr):
        if instr.var_index < 0:
            raise OperandRangeError(f"variable index {instr.var_index} is negative")
        self.print_buffer.append(instr.var_index)

    def _add_char_to_print(self, instr):
        self.print_buffer.append(-self._char_code(instr.char_code, minimum=1))

    def _add_var_char_print(self, instr):
        code = self._int_value(instr.var_index, "character")
        self.print_buffer.append(-self._char_code(code, minimum=1))

    def _print(self, instr):
        items = self.print_buffer
        if instr.count > 0:
            items = items[: instr.count]
        self.print_buffer = []

        parts = []
        for item in items:
            if item >= 0:
                parts.append(self._slot(item).render() + PRINT_SEPARATOR)
            else:
                parts.append(chr(-item))
        self._write("".join(parts) + "\n")

    def _conditional(self, instr):
        flags = instr.flags
        if not 0 <= flags <= 0b1111:
            raise SemanticError(f"unrecognized comparison flags {flags}")

        lhs = instr.lhs if flags & LHS_LITERAL_FLAG else self._int_value(instr.lhs, "left")
        rhs = instr.rhs if flags & RHS_LITERAL_FLAG else self._int_value(instr.rhs, "right")
        compare = _COMPARE[COMPARISONS[flags & COMPARISON_MASK]]
        if compare(lhs, rhs):
            return resolve_label(self.program.labels, instr.label, len(self.program))
        return None

    def _label(self, instr):
        return None

    def _exit(self, instr):
        self.halted_by_exit = True
        return len(self.program)

    def _user_input(self, instr):
        self._slot(self.focus)
        if instr.should_prompt:
            self.stdout.write(self._slot(instr.prompt_var).render())
        self.stdout.flush()

        line = self.stdin.readline()
        if line.endswith("\n"):
            line = line[:-1]
            if line.endswith("\r"):
                line = line[:-1]
        self._assign(TextVar(line))


def run_program(program, stdout=None, stdin=None):
    """Execute a linked Program and return the resulting ExecutionResult."""

    vm = VirtualMachine(stdout=stdout, stdin=stdin)
    return vm.execute(program)


__all__ = [
    "ExecutionResult",
    "LoopFrame",
    "VirtualMachine",
    "run_program",
]
