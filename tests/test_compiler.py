import pytest

from cascade import (
    UNRECOGNIZED,
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
    StructuralError,
    UserInput,
    build_label_index,
    compile_source,
    compile_tokens,
    resolve_label,
    tokenize,
)


def compile_text(src):
    return compile_tokens(tokenize(src.encode("utf-8")))


def test_every_declaration_compiles_to_its_instruction():
    src = "\n".join(
        [
            "background-size: 4",
            "background-position: 2",
            "background-color: 65",
            "outline: 0 solid 3",
            "overflow:",
            "border: 1 dashed 10",
            "padding-right: 2",
            "padding-left: 'A'",
            "padding-bottom: 1",
            "padding-top: 0",
            "margin: 0 13 1 7",
            "opacity: 7",
            "word-wrap:",
            "transition: 3",
            "",
        ]
    )

    assert compile_text(src) == [
        ReserveVars(4),
        SelectVar(2, "none"),
        SetVar(65),
        Loop(0, "+", 3),
        LoopEnd(),
        Math(1, "add-literal-rhs", 10),
        AddToPrint(2),
        AddCharToPrint(65),
        AddVarCharPrint(1),
        Print(0),
        Conditional(0, 13, 1, 7),
        Label(7),
        Exit(),
        UserInput(True, 3),
    ]


@pytest.mark.parametrize(
    "style,operator",
    [
        ("none", "subtract-literal-rhs"),
        ("hidden", "subtract-literal-lhs"),
        ("dotted", "subtract-vars"),
        ("dashed", "add-literal-rhs"),
        ("solid", "add-vars"),
        ("double", "multiply-literal-rhs"),
        ("groove", "multiply-vars"),
        ("ridge", "divide-literal-lhs"),
        ("inset", "divide-literal-rhs"),
        ("outset", "divide-vars"),
        ("wavy", UNRECOGNIZED),
    ],
)
def test_border_styles_select_math_operators(style, operator):
    assert compile_text(f"border: 1 {style} 2\n") == [Math(1, operator, 2)]


def test_unknown_loop_step_is_kept_for_the_vm_to_reject():
    assert compile_text("outline: 0 dotted 3\n") == [Loop(0, UNRECOGNIZED, 3)]


@pytest.mark.parametrize(
    "line,mode",
    [
        ("background-position: 1", "none"),
        ("background-position: 1 auto", "none"),
        ("background-position: 1 number", "integer"),
        ("background-position: 1 content", "text"),
        ("background-position: 1 2", "text"),
        ("background-position: 1 cover", UNRECOGNIZED),
    ],
)
def test_select_rewrite_modes(line, mode):
    assert compile_text(line + "\n") == [SelectVar(1, mode)]


def test_user_input_without_prompt():
    assert compile_text("transition:\ntransition: none\n") == [
        UserInput(False, 0),
        UserInput(False, 0),
    ]


def test_unknown_properties_and_plain_lines_are_ignored():
    src = "color: 5\nfont-size: 12px\nhello world\nbackground-position: 2 font-weight: \n"

    assert compile_text(src) == [SelectVar(2, "none")]


def test_statement_needs_a_terminating_newline():
    assert compile_text("word-wrap:") == []


def test_missing_arguments_raise_structural_error():
    with pytest.raises(StructuralError, match="'outline:' on line 2 needs 3"):
        compile_text("word-wrap:\noutline: solid 5;\n")


def test_margin_requires_four_arguments():
    with pytest.raises(StructuralError, match="got 3"):
        compile_text("margin: 1 2 3\n")


def test_keyword_operands_count_as_zero():
    assert compile_text("background-color: red\n") == [SetVar(0)]


def test_compilation_is_deterministic():
    src = b"background-position: 0\noutline: 1 solid 4\nborder: 0 dashed 10\noverflow:\n"

    first = compile_source(src)
    second = compile_source(src)

    assert first.program == second.program
    assert first.tokens == second.tokens


def test_label_index_grows_and_last_duplicate_wins():
    instructions = [Label(2), Exit(), Label(0), Label(2)]

    labels = build_label_index(instructions)

    assert labels == [2, 4, 3]
    assert resolve_label(labels, 1, 4) == 4
    assert resolve_label(labels, 9, 4) == 4
    assert resolve_label(labels, 2, 4) == 3


@pytest.mark.parametrize("label_id", [-1, 65536])
def test_label_ids_outside_the_limit_are_rejected(label_id):
    with pytest.raises(StructuralError, match="outside 0..65535") as excinfo:
        build_label_index([Exit(), Label(label_id)])

    assert excinfo.value.position == 1


def test_oversized_label_in_source_is_rejected():
    with pytest.raises(StructuralError):
        compile_source(b"opacity: 99999999999\n")


def test_compile_source_links_labels():
    result = compile_source(b"opacity: 1\nword-wrap:\n")

    assert result.program.labels == [2, 0]
    assert len(result.tokens) == 5
