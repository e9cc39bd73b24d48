"""Cascade bitcode serialization helpers.

A bitcode document is the JSON form of a linked program. Loading a document
rebuilds the label index from its instructions and rejects documents whose
stored index disagrees, so a hand-edited file cannot jump somewhere stale.
"""

from __future__ import annotations

from datetime import datetime, timezone
import difflib
import hashlib
import json

from ..constants import CASCADE_VERSION, LOGBOOK_FILE
from . import crypto as _crypto
from .compiler import link_program
from .instructions import instruction_from_dict
from .vm import run_program


def _timestamp():
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def build_bitcode_document(program, source=None):
    """Create an in-memory Cascade bitcode representation."""

    doc = {
        "cascade_version": CASCADE_VERSION,
        "timestamp": _timestamp(),
        "instructions": [instr.to_dict() for instr in program.instructions],
        "labels": list(program.labels),
    }
    if source is not None:
        doc["source_sha256"] = hashlib.sha256(source).hexdigest()
    return doc


def write_bitcode_document(doc, filename):
    """Persist a Cascade bitcode document to disk."""

    with open(filename, "w", encoding="utf-8") as f:
        json.dump(doc, f, indent=2)
    print(f"  ✓ Cascade bitcode exported → {filename}")
    return doc


def export_cascade_bitcode(program, filename, source=None):
    doc = build_bitcode_document(program, source)
    return write_bitcode_document(doc, filename)


def program_from_document(doc):
    """Rebuild a linked Program from a bitcode document."""

    if not isinstance(doc, dict) or "instructions" not in doc:
        raise ValueError("Cascade bitcode is missing its instruction list")

    instructions = [instruction_from_dict(item) for item in doc["instructions"]]
    program = link_program(instructions)
    stored = doc.get("labels")
    if stored is not None and list(stored) != program.labels:
        raise ValueError("Cascade bitcode label index does not match its instructions")
    return program


def verify_bitcode_document(doc):
    """Ensure a document decodes into a consistent program."""

    program_from_document(doc)
    return True


def load_cascade_bitcode(filename):
    """Load and verify a serialized Cascade bitcode JSON document."""
    with open(filename, "r", encoding="utf-8") as f:
        try:
            doc = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"{filename} is not valid JSON: {exc}") from exc
    verify_bitcode_document(doc)
    return doc


def reexecute_bitcode(filename, stdout=None, stdin=None):
    """Load a Cascade bitcode file and run the program it holds."""
    doc = load_cascade_bitcode(filename)
    print(f"Loaded Cascade bitcode v{doc.get('cascade_version', '?')} ({filename})")
    program = program_from_document(doc)
    return run_program(program, stdout=stdout, stdin=stdin)


def canonicalize_bitcode(doc):
    """
    Normalize a bitcode dict so identical programs produce identical JSON
    regardless of when they were exported or how keys were ordered.
    """

    def sort_dict(d):
        if isinstance(d, dict):
            return {k: sort_dict(v) for k, v in sorted(d.items())}
        elif isinstance(d, list):
            return [sort_dict(x) for x in d]
        else:
            return d

    canon = sort_dict(doc)
    canon.pop("timestamp", None)
    return canon


def hash_bitcode_document(doc):
    """Compute SHA-256 hash of an in-memory Cascade bitcode document."""
    canon = canonicalize_bitcode(doc)
    data = json.dumps(canon, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def hash_bitcode(filename):
    doc = load_cascade_bitcode(filename)
    h = hash_bitcode_document(doc)
    print(f"SHA256({filename}) = {h}")
    return h


def _listing(doc):
    return [
        json.dumps(item, sort_keys=True)
        for item in canonicalize_bitcode(doc)["instructions"]
    ]


def diff_bitcodes(file_a, file_b):
    """Compare two Cascade bitcode files; return True when they are identical."""
    a = load_cascade_bitcode(file_a)
    b = load_cascade_bitcode(file_b)

    ha = hash_bitcode_document(a)
    hb = hash_bitcode_document(b)
    if ha == hb:
        print(f"✓ Bitcodes are identical ({ha})")
        return True

    print(f"✗ Bitcodes differ\n  {file_a}: {ha}\n  {file_b}: {hb}")

    na, nb = len(a["instructions"]), len(b["instructions"])
    if na != nb:
        print(f"  • Instruction count differs: {na} vs {nb}")
    if a.get("labels") != b.get("labels"):
        print(f"  • Label index differs: {a.get('labels')} vs {b.get('labels')}")
    for line in difflib.unified_diff(
        _listing(a), _listing(b), fromfile=file_a, tofile=file_b, lineterm=""
    ):
        print(f"    {line}")
    return False


def record_run(bitcode_filename, result, logbook_path=LOGBOOK_FILE, signer=None):
    """Append this run's metadata to the Cascade logbook, signed."""
    sha = hash_bitcode(bitcode_filename)
    signer = signer or _crypto.sign_hash
    sig = signer(sha)

    entry = {
        "timestamp": _timestamp(),
        "filename": str(bitcode_filename),
        "hash": sha,
        "signature": sig,
        "steps": result.steps,
        "halted_by_exit": result.halted_by_exit,
        "variables": len(result.variables),
    }

    with open(logbook_path, "a", encoding="utf-8") as f:
        f.write(json.dumps(entry) + "\n")

    print(f"  📜 Recorded and signed run → {logbook_path}")
    return entry


def show_logbook(limit=10, logbook_path=LOGBOOK_FILE):
    """Display recent logbook entries."""

    try:
        with open(logbook_path, "r", encoding="utf-8") as f:
            lines = f.readlines()
    except FileNotFoundError:
        print("No logbook yet.")
        return []

    entries = [json.loads(line) for line in lines[-limit:] if line.strip()]
    print(f"\nCascade Logbook — last {len(entries)} entries:")
    for e in reversed(entries):
        how = "exit" if e.get("halted_by_exit") else "end"
        print(f"• {e['timestamp']}  {e['filename']}  [{how}]  {e['hash'][:12]}…")
        print(f"    steps: {e['steps']}  variables: {e['variables']}")
    return entries


__all__ = [
    "build_bitcode_document",
    "canonicalize_bitcode",
    "diff_bitcodes",
    "export_cascade_bitcode",
    "hash_bitcode",
    "hash_bitcode_document",
    "load_cascade_bitcode",
    "program_from_document",
    "record_run",
    "reexecute_bitcode",
    "show_logbook",
    "verify_bitcode_document",
    "write_bitcode_document",
]
