"""Command-line interface for the Cascade runtime."""
from __future__ import annotations

import argparse
from pathlib import Path
import sys

from ..constants import BITCODE_SUFFIX
from .analysis import export_graphviz, print_program, visualize_graph
from .bitcode import (
    diff_bitcodes,
    export_cascade_bitcode,
    hash_bitcode,
    record_run,
    reexecute_bitcode,
    show_logbook,
)
from .compiler import compile_source
from .core import CascadeError
from .crypto import verify_signature
from .vm import run_program


def parse_args(args):
    argp = argparse.ArgumentParser(prog="cascade", description="Cascade Language Runtime")

    argp.add_argument("source", nargs="?", help="Cascade source file to compile and run")
    argp.add_argument(
        "--quiet", action="store_true", help="Suppress the token/instruction diagnostics"
    )
    argp.add_argument(
        "--listing", action="store_true", help="Print the compiled instruction listing"
    )
    argp.add_argument(
        "--compile-only",
        action="store_true",
        help="Stop after compilation (useful with --emit, --listing or --viz)",
    )
    argp.add_argument("--emit", metavar="OUTPUT", help="Write the compiled program as bitcode")
    argp.add_argument("--load", metavar="FILE", help="Run a .cascade.json bitcode file instead")
    argp.add_argument("--hash", metavar="FILE", help="Compute hash of a bitcode file")
    argp.add_argument(
        "--diff",
        nargs=2,
        metavar=("A", "B"),
        help="Compare two .cascade.json bitcode files",
    )
    argp.add_argument(
        "--record", action="store_true", help="Append a signed entry to the run logbook"
    )
    argp.add_argument("--logbook", action="store_true", help="Show the run logbook")
    argp.add_argument("--verify", metavar="HASH", help="Verify signature for a logbook hash")
    argp.add_argument(
        "--viz",
        metavar="OUTPUT",
        help="Export a Graphviz control-flow visualization to an SVG file",
    )
    argp.add_argument(
        "--visualize", action="store_true", help="Draw the control-flow graph on screen"
    )

    params = argp.parse_args(args)
    standalone = params.diff or params.hash or params.load or params.logbook or params.verify
    if not params.source and not standalone:
        argp.error("a source file is required")
    return params


def _run_source(params):
    say = (lambda *_: None) if params.quiet else print

    data = Path(params.source).read_bytes()
    compiled = compile_source(data)
    program = compiled.program
    say(f"Found {len(compiled.tokens)} tokens")
    say(f"Found {len(program)} instructions")

    if params.listing:
        print_program(program)
    if params.emit:
        export_cascade_bitcode(program, params.emit, source=data)
    if params.viz:
        export_graphviz(program, params.viz)
    if params.visualize:
        visualize_graph(program)
    if params.compile_only:
        return 0

    say("PROG START:")
    result = run_program(program)

    if params.record:
        bitcode_path = params.emit
        if not bitcode_path:
            source_path = Path(params.source)
            bitcode_path = str(source_path.parent / (source_path.stem + BITCODE_SUFFIX))
            export_cascade_bitcode(program, bitcode_path, source=data)
        record_run(bitcode_path, result)
    return 0


def _dispatch(params):
    if params.diff:
        diff_bitcodes(params.diff[0], params.diff[1])
        return 0
    if params.hash:
        hash_bitcode(params.hash)
        return 0
    if params.logbook:
        show_logbook()
        return 0
    if params.verify:
        ok = verify_signature(params.verify, input("Signature hex: ").strip())
        print("✓ Signature valid" if ok else "✗ Invalid signature")
        return 0 if ok else 1
    if params.load:
        result = reexecute_bitcode(params.load)
        if params.record:
            record_run(params.load, result)
        return 0
    return _run_source(params)


def main(args):
    """Run the command line; return the process exit status."""

    params = parse_args(args)
    try:
        return _dispatch(params)
    except CascadeError as exc:
        sys.stdout.flush()
        print(f"✗ {exc.describe()}", file=sys.stderr)
        return 1
    except (OSError, ValueError, RuntimeError) as exc:
        sys.stdout.flush()
        print(f"✗ {exc}", file=sys.stderr)
        return 1


__all__ = [
    "main",
    "parse_args",
]


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main(sys.argv[1:]))
