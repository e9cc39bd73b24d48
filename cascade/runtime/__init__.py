"""
Cascade — a stylesheet-shaped programming language.

  background-position: 0
  background-color: 7
  padding-right: 0
  padding-top: 0

Every line is a ``property: value ...`` declaration. A fixed whitelist of
property names selects the instruction; anything else is ignored.

| Stage              | Purpose                                          |
<------------------- + ------------------------------------------------ >
| **Lexer**          | bytes → keyword / number / newline tokens        |
| **Compiler**       | one declaration line → one instruction           |
| **Label index**    | label id → instruction position                  |
| **VM**             | single store, single loop frame, labeled jumps   |
| **Bitcode**        | portable `.cascade.json` programs, hash, diff    |
| **Logbook**        | signed provenance of runs                        |
| **Visualization**  | control-flow graph via networkx / Graphviz       |
"""

from . import core as _core
from . import lexer as _lexer
from . import instructions as _instructions
from . import compiler as _compiler
from . import vm as _vm
from . import analysis as _analysis
from . import bitcode as _bitcode
from . import crypto as _crypto
from .cli import main, parse_args

from .core import *
from .lexer import *
from .instructions import *
from .compiler import *
from .vm import *
from .analysis import *
from .bitcode import *
from .crypto import *

__all__ = []
for module in (_core, _lexer, _instructions, _compiler, _vm, _analysis, _bitcode, _crypto):
    __all__.extend(getattr(module, '__all__', []))
__all__ += ['main', 'parse_args']
__all__ = list(dict.fromkeys(__all__))
