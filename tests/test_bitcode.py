import io
import json
from types import SimpleNamespace

import pytest

from cascade import (
    CASCADE_VERSION,
    build_bitcode_document,
    canonicalize_bitcode,
    compile_source,
    diff_bitcodes,
    export_cascade_bitcode,
    hash_bitcode_document,
    load_cascade_bitcode,
    program_from_document,
    record_run,
    reexecute_bitcode,
    show_logbook,
    verify_bitcode_document,
)

SOURCE = (
    b"background-position: 0\n"
    b"background-color: 3\n"
    b"opacity: 1\n"
    b"padding-right: 0\n"
    b"padding-top: 0\n"
    b"border: 0 none 1\n"
    b"margin: 0 4 0 1\n"
)


@pytest.fixture
def program():
    return compile_source(SOURCE).program


def test_document_round_trips_through_disk(tmp_path, program, capsys):
    path = tmp_path / "countdown.cascade.json"

    doc = export_cascade_bitcode(program, path, source=SOURCE)
    loaded = load_cascade_bitcode(path)

    assert "Cascade bitcode exported" in capsys.readouterr().out
    assert loaded["cascade_version"] == CASCADE_VERSION
    assert loaded["instructions"][0] == {"op": "SelectVar", "var_index": 0, "rewrite_mode": "none"}
    assert loaded["labels"] == [7, 2]
    assert loaded["source_sha256"] == doc["source_sha256"]
    assert program_from_document(loaded) == program


def test_tampered_label_index_is_rejected(program):
    doc = build_bitcode_document(program)
    doc["labels"] = [0, 0]

    with pytest.raises(ValueError, match="label index"):
        verify_bitcode_document(doc)


@pytest.mark.parametrize(
    "instructions,message",
    [
        ([{"op": "Teleport"}], "Unknown instruction op"),
        ([{"op": "SetVar"}], "Malformed SetVar"),
        (["SetVar"], "mapping"),
        ([{"op": "Label", "label_id": -1}], "label_id must not be negative"),
        ([{"op": "SelectVar", "var_index": -2}], "var_index must not be negative"),
        ([{"op": "Print", "count": "x"}], "count must be int"),
        ([{"op": "SetVar", "value": True}], "value must be int"),
        ([{"op": "Loop", "start": 0, "step": 1, "end": 3}], "step must be str"),
        ([{"op": "UserInput", "should_prompt": 1}], "should_prompt must be bool"),
        ([{"op": "Conditional", "lhs": 0, "flags": 1.5, "rhs": 0, "label": 0}], "flags must be int"),
    ],
)
def test_bad_instructions_are_rejected(instructions, message):
    with pytest.raises(ValueError, match=message):
        program_from_document({"instructions": instructions})


def test_negative_literal_operands_are_accepted():
    doc = {"instructions": [{"op": "Math", "lhs": -4, "operator": "subtract-literal-lhs", "rhs": 0}]}

    assert program_from_document(doc)[0].lhs == -4


def test_missing_instruction_list_is_rejected():
    with pytest.raises(ValueError, match="instruction list"):
        program_from_document({"labels": []})


def test_invalid_json_is_reported_as_value_error(tmp_path):
    path = tmp_path / "broken.cascade.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ValueError, match="not valid JSON"):
        load_cascade_bitcode(path)


def test_hash_ignores_timestamp_and_key_order(program):
    first = build_bitcode_document(program)
    second = json.loads(json.dumps(first, sort_keys=True))
    second["timestamp"] = "2000-01-01T00:00:00Z"

    assert "timestamp" not in canonicalize_bitcode(first)
    assert hash_bitcode_document(first) == hash_bitcode_document(second)


def test_diff_reports_identical_and_changed_programs(tmp_path, program, capsys):
    a = tmp_path / "a.cascade.json"
    b = tmp_path / "b.cascade.json"
    c = tmp_path / "c.cascade.json"
    export_cascade_bitcode(program, a)
    export_cascade_bitcode(program, b)
    changed = compile_source(SOURCE.replace(b"background-color: 3", b"background-color: 4"))
    export_cascade_bitcode(changed.program, c)
    capsys.readouterr()

    assert diff_bitcodes(str(a), str(b)) is True
    assert "identical" in capsys.readouterr().out

    assert diff_bitcodes(str(a), str(c)) is False
    out = capsys.readouterr().out
    assert "Bitcodes differ" in out
    assert '-{"op": "SetVar", "value": 3}' in out
    assert '+{"op": "SetVar", "value": 4}' in out


def test_reexecute_runs_the_stored_program(tmp_path, program):
    path = tmp_path / "countdown.cascade.json"
    export_cascade_bitcode(program, path)
    out = io.StringIO()

    result = reexecute_bitcode(path, stdout=out)

    assert out.getvalue() == "3 \n2 \n1 \n"
    assert not result.halted_by_exit


def test_record_run_appends_signed_entry(tmp_path, program, capsys):
    path = tmp_path / "countdown.cascade.json"
    logbook = tmp_path / "cascade.logbook.jsonl"
    export_cascade_bitcode(program, path)
    result = SimpleNamespace(steps=19, halted_by_exit=False, variables=[0])

    entry = record_run(path, result, logbook_path=logbook, signer=lambda sha: f"sig:{sha[:8]}")

    stored = [json.loads(line) for line in logbook.read_text(encoding="utf-8").splitlines()]
    assert stored == [entry]
    assert entry["signature"] == f"sig:{entry['hash'][:8]}"
    assert entry["steps"] == 19

    capsys.readouterr()
    entries = show_logbook(logbook_path=logbook)
    out = capsys.readouterr().out
    assert entries == stored
    assert "last 1 entries" in out
    assert entry["hash"][:12] in out


def test_show_logbook_without_file(tmp_path, capsys):
    assert show_logbook(logbook_path=tmp_path / "missing.jsonl") == []
    assert "No logbook yet." in capsys.readouterr().out
