"""Shared constant values for the Cascade runtime."""

CASCADE_VERSION = "0.3"

DECLARATIONS = {
    "background-size:": "reserve",
    "background-position:": "select",
    "background-color:": "set",
    "outline:": "loop",
    "overflow:": "loop_end",
    "border:": "math",
    "padding-right:": "print_var",
    "padding-left:": "print_char",
    "padding-bottom:": "print_var_char",
    "padding-top:": "print",
    "margin:": "conditional",
    "opacity:": "label",
    "word-wrap:": "exit",
    "transition:": "input",
}

OPS = {
    "reserve": {"min_args": 1},
    "select": {"min_args": 1},
    "set": {"min_args": 1},
    "loop": {"min_args": 3},
    "loop_end": {"min_args": 0},
    "math": {"min_args": 3},
    "print_var": {"min_args": 1},
    "print_char": {"min_args": 1},
    "print_var_char": {"min_args": 1},
    "print": {"min_args": 1},
    "conditional": {"min_args": 4},
    "label": {"min_args": 1},
    "exit": {"min_args": 0},
    "input": {"min_args": 0},
}

UNRECOGNIZED = "?"

REWRITE_NONE = "none"
REWRITE_INTEGER = "integer"
REWRITE_TEXT = "text"

REWRITE_MODES = {
    "auto": REWRITE_NONE,
    "number": REWRITE_INTEGER,
    "content": REWRITE_TEXT,
}

REWRITE_MODE_CODES = {
    0: REWRITE_NONE,
    1: REWRITE_INTEGER,
    2: REWRITE_TEXT,
}

STEP_INCREMENT = "+"

LOOP_STEPS = {
    "solid": STEP_INCREMENT,
}

# lhs kind, rhs kind for each operator: "var" or "lit".
MATH_OPERATORS = {
    "subtract-literal-rhs": ("var", "lit"),
    "subtract-literal-lhs": ("lit", "var"),
    "subtract-vars": ("var", "var"),
    "add-literal-rhs": ("var", "lit"),
    "add-vars": ("var", "var"),
    "multiply-literal-rhs": ("var", "lit"),
    "multiply-vars": ("var", "var"),
    "divide-literal-lhs": ("lit", "var"),
    "divide-literal-rhs": ("var", "lit"),
    "divide-vars": ("var", "var"),
}

MATH_STYLES = {
    "none": "subtract-literal-rhs",
    "hidden": "subtract-literal-lhs",
    "dotted": "subtract-vars",
    "dashed": "add-literal-rhs",
    "solid": "add-vars",
    "double": "multiply-literal-rhs",
    "groove": "multiply-vars",
    "ridge": "divide-literal-lhs",
    "inset": "divide-literal-rhs",
    "outset": "divide-vars",
}

LHS_LITERAL_FLAG = 0b1000
RHS_LITERAL_FLAG = 0b0100
COMPARISON_MASK = 0b0011

COMPARISONS = {
    0: "!=",
    1: "==",
    2: "<",
    3: ">",
}

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

MAX_CHAR_CODE = 0x10FFFF

# Highest variable index or label id a program may use.
MAX_SLOT_INDEX = 0xFFFF

PRINT_SEPARATOR = " "

OP_COLORS = {
    "ReserveVars": "#8BC34A",
    "SelectVar": "#8BC34A",
    "SetVar": "#8BC34A",
    "Math": "#FFEB3B",
    "Loop": "#9575CD",
    "LoopEnd": "#9575CD",
    "Conditional": "#9575CD",
    "Label": "#B0BEC5",
    "Exit": "#E57373",
    "AddToPrint": "#FF7043",
    "AddCharToPrint": "#FF7043",
    "AddVarCharPrint": "#FF7043",
    "Print": "#FF7043",
    "UserInput": "#FF7043",
}

LOGBOOK_FILE = "cascade.logbook.jsonl"
KEY_FILE = "cascade_private_key.pem"
PUB_FILE = "cascade_public_key.pem"
BITCODE_SUFFIX = ".cascade.json"

__all__ = [
    "CASCADE_VERSION",
    "DECLARATIONS",
    "OPS",
    "UNRECOGNIZED",
    "REWRITE_NONE",
    "REWRITE_INTEGER",
    "REWRITE_TEXT",
    "REWRITE_MODES",
    "REWRITE_MODE_CODES",
    "STEP_INCREMENT",
    "LOOP_STEPS",
    "MATH_OPERATORS",
    "MATH_STYLES",
    "LHS_LITERAL_FLAG",
    "RHS_LITERAL_FLAG",
    "COMPARISON_MASK",
    "COMPARISONS",
    "INT32_MIN",
    "INT32_MAX",
    "MAX_CHAR_CODE",
    "MAX_SLOT_INDEX",
    "PRINT_SEPARATOR",
    "OP_COLORS",
    "LOGBOOK_FILE",
    "KEY_FILE",
    "PUB_FILE",
    "BITCODE_SUFFIX",
]
