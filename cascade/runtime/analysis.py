"""Listing, control-flow and visualization utilities for compiled Cascade programs."""
from __future__ import annotations

from pathlib import Path

try:
    import networkx as nx
except ModuleNotFoundError:  # pragma: no cover
    nx = None

try:
    import matplotlib.pyplot as plt
except ModuleNotFoundError:  # pragma: no cover
    plt = None

try:
    import pydot
except ModuleNotFoundError:  # pragma: no cover
    pydot = None

from ..constants import (
    COMPARISON_MASK,
    COMPARISONS,
    LHS_LITERAL_FLAG,
    MATH_OPERATORS,
    OP_COLORS,
    REWRITE_NONE,
    RHS_LITERAL_FLAG,
)
from .compiler import resolve_label
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

END = "END"


def _var(index):
    return f"${index}"


def _operand(value, literal):
    return str(value) if literal else _var(value)


def format_instruction(instr):
    """Render one instruction in the assembler-like listing syntax."""

    if isinstance(instr, SelectVar):
        mode = "" if instr.rewrite_mode == REWRITE_NONE else f" [{instr.rewrite_mode}]"
        return f"select {_var(instr.var_index)}{mode}"
    if isinstance(instr, ReserveVars):
        return f"reserve {instr.count}"
    if isinstance(instr, SetVar):
        return f"set {instr.value}"
    if isinstance(instr, Loop):
        return f"loop {instr.start} {instr.step} {instr.end}"
    if isinstance(instr, Math):
        lhs_kind, rhs_kind = MATH_OPERATORS.get(instr.operator, ("var", "var"))
        lhs = _operand(instr.lhs, lhs_kind == "lit")
        rhs = _operand(instr.rhs, rhs_kind == "lit")
        return f"math {lhs} {instr.operator} {rhs}"
    if isinstance(instr, AddToPrint):
        return f"queue {_var(instr.var_index)}"
    if isinstance(instr, AddCharToPrint):
        return f"queue char {instr.char_code}"
    if isinstance(instr, AddVarCharPrint):
        return f"queue char {_var(instr.var_index)}"
    if isinstance(instr, Print):
        return f"print {instr.count or 'all'}"
    if isinstance(instr, Conditional):
        flags = instr.flags
        cmp = COMPARISONS.get(flags & COMPARISON_MASK, "?") if 0 <= flags <= 15 else "?"
        lhs = _operand(instr.lhs, flags & LHS_LITERAL_FLAG)
        rhs = _operand(instr.rhs, flags & RHS_LITERAL_FLAG)
        return f"if {lhs} {cmp} {rhs} goto @{instr.label}"
    if isinstance(instr, Label):
        return f"@{instr.label_id}:"
    if isinstance(instr, UserInput):
        return f"input {_var(instr.prompt_var)}" if instr.should_prompt else "input"
    if isinstance(instr, LoopEnd):
        return "loop end"
    if isinstance(instr, Exit):
        return "exit"
    return repr(instr)


def print_program(program):
    for position, instr in enumerate(program.instructions):
        print(f"{position:4d}  {format_instruction(instr)}")
    if program.labels:
        labels = ", ".join(f"@{lid}→{pos}" for lid, pos in enumerate(program.labels))
        print(f"labels: {labels}")


def loop_pairs(program):
    """Map each Loop position to the first LoopEnd after it (or None)."""

    pairs = {}
    for position, instr in enumerate(program.instructions):
        if not isinstance(instr, Loop):
            continue
        pairs[position] = None
        for later in range(position + 1, len(program.instructions)):
            if isinstance(program.instructions[later], LoopEnd):
                pairs[position] = later
                break
    return pairs


def _require_networkx():
    if nx is None:
        raise RuntimeError("Control-flow analysis requires networkx to be installed")


def build_control_flow_graph(program):
    """Build a networkx DiGraph of possible control transfers.

    Nodes are instruction positions plus the ``END`` sink. Edge ``kind`` is one
    of ``next``, ``jump``, ``loop``, ``loop-exit`` or ``halt``.
    """

    _require_networkx()

    size = len(program.instructions)

    def node_for(position):
        return END if position >= size else position

    graph = nx.DiGraph()
    graph.add_node(END, label="END", op="END")
    for position, instr in enumerate(program.instructions):
        graph.add_node(position, label=format_instruction(instr), op=instr.op)

    pairs = loop_pairs(program)
    owners = {end: start for start, end in pairs.items() if end is not None}

    for position, instr in enumerate(program.instructions):
        if isinstance(instr, Exit):
            graph.add_edge(position, END, kind="halt")
            continue
        graph.add_edge(position, node_for(position + 1), kind="next")
        if isinstance(instr, Conditional):
            target = resolve_label(program.labels, instr.label, size)
            graph.add_edge(position, node_for(target), kind="jump")
        elif isinstance(instr, Loop):
            loop_end = pairs[position]
            exit_to = size if loop_end is None else loop_end + 1
            graph.add_edge(position, node_for(exit_to), kind="loop-exit")
        elif isinstance(instr, LoopEnd) and position in owners:
            graph.add_edge(position, owners[position], kind="loop")

    return graph


def unreachable_positions(program):
    """Return instruction positions no control path from the start can reach."""

    if not program.instructions:
        return []
    graph = build_control_flow_graph(program)
    reachable = nx.descendants(graph, 0) | {0}
    return [pos for pos in range(len(program.instructions)) if pos not in reachable]


_EDGE_STYLES = {
    "next": "solid",
    "jump": "dashed",
    "loop": "dotted",
    "loop-exit": "dashed",
    "halt": "bold",
}


def visualize_graph(program, title="Cascade control flow"):  # pragma: no cover
    """Draw the control-flow graph with matplotlib."""

    if nx is None or plt is None:
        raise RuntimeError("Visualization requires networkx and matplotlib to be installed")

    graph = build_control_flow_graph(program)
    positions = nx.spring_layout(graph, seed=42)
    labels = {n: f"{n}: {graph.nodes[n]['label']}" if n != END else END for n in graph.nodes}
    colors = [OP_COLORS.get(graph.nodes[n]["op"], "#ECEFF1") for n in graph.nodes]

    plt.figure()
    nx.draw_networkx_nodes(graph, positions, node_color=colors, edgecolors="black")
    nx.draw_networkx_labels(graph, positions, labels=labels, font_size=8)
    for kind, style in _EDGE_STYLES.items():
        edges = [(u, v) for u, v, data in graph.edges(data=True) if data["kind"] == kind]
        if edges:
            nx.draw_networkx_edges(graph, positions, edgelist=edges, style=style)
    plt.title(title)
    plt.tight_layout()
    plt.show()


def export_graphviz(program, output_path):
    """Export a Graphviz SVG of the control-flow graph."""

    if pydot is None:
        raise RuntimeError("Graphviz export requires pydot to be installed")

    cfg = build_control_flow_graph(program)
    graph = pydot.Dot(
        "cascade_program",
        graph_type="digraph",
        rankdir="TB",
        fontname="Helvetica",
    )

    for node, data in cfg.nodes(data=True):
        label = END if node == END else f"{node}: {data['label']}"
        graph.add_node(
            pydot.Node(
                f"n_{node}",
                label=label,
                shape="ellipse" if node == END else "box",
                style="filled",
                fillcolor=OP_COLORS.get(data["op"], "#ECEFF1"),
                fontname="Helvetica",
            )
        )

    for src, dst, data in cfg.edges(data=True):
        graph.add_edge(
            pydot.Edge(
                f"n_{src}",
                f"n_{dst}",
                label="" if data["kind"] == "next" else data["kind"],
                style=_EDGE_STYLES[data["kind"]],
                fontname="Helvetica",
                fontsize="9",
            )
        )

    output_path = Path(output_path)
    if output_path.parent and not output_path.parent.exists():
        output_path.parent.mkdir(parents=True, exist_ok=True)

    graph.write_svg(str(output_path))
    print(f"  ✓ Graphviz visualization exported → {output_path}")
    return graph


__all__ = [
    "END",
    "build_control_flow_graph",
    "export_graphviz",
    "format_instruction",
    "loop_pairs",
    "print_program",
    "unreachable_positions",
    "visualize_graph",
]
