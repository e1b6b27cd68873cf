from __future__ import annotations

import pytest

import re_set
from re_set import (
    Options,
    PatternSet,
    ReSetError,
    PatternSyntaxError,
    UnsupportedConstruct,
    UnresolvedAmbiguity,
    EmptyAutomaton,
)
from re_set.codegen import emit_python, load_python


data_find_all = {
    ("[0-9]+", "[a-z]+"): [
        ("ab12 cd", [b"ab", b"12", b"cd"]),
        ("  ", []),
        ("", []),
    ],
    ("a*",): [
        ("baab", [b"aa"]),
        ("bbb", []),
    ],
    ("if", "[a-z]+", "[ ]+"): [
        ("if iffy", [b"if", b" ", b"iffy"]),
    ],
    ("é",): [
        ("café é", ["é".encode(), "é".encode()]),
    ],
}


@pytest.mark.parametrize("patterns, cases", data_find_all.items())
def test_findall(patterns, cases):
    pattern_set = re_set.compile(list(patterns))
    for data, expected in cases:
        assert pattern_set.findall(data) == expected
        assert re_set.findall(list(patterns), data.encode()) == expected


def test_finditer_spans_and_indices():
    matches = list(re_set.finditer(["[0-9]+", "[a-z]+"], "ab12 cd"))
    assert [(m.index, m.span) for m in matches] == [(1, (0, 2)), (0, (2, 4)), (1, (5, 7))]
    assert [m.text() for m in matches] == ["ab", "12", "cd"]


def test_find_at_offset():
    pattern_set = PatternSet("b+")
    match = pattern_set.find("abbc", 1)
    assert match is not None
    assert match.index == 0
    assert match.span == (1, 3)
    assert match.group() == b"bb"
    assert pattern_set.find("abbc") is None
    assert re_set.find(["b+"], b"bbb").group() == b"bbb"


@pytest.mark.parametrize("start", [-1, 4, 100])
def test_find_start_out_of_data(start):
    with pytest.raises(ValueError):
        PatternSet("c").find("abc", start)
    with pytest.raises(ValueError):
        PatternSet("c", Options(use_codegen=True)).find("abc", start)


def test_find_start_at_bounds():
    pattern_set = PatternSet(["c", "x*"])
    assert pattern_set.find("abc", 2).span == (2, 3)
    assert pattern_set.find("abc", 3).span == (3, 3)
    assert pattern_set.find("abc", 3).index == 1
    assert PatternSet("c").find("abc", 3) is None


@pytest.mark.parametrize("use_codegen", [False, True])
def test_empty_class_never_matches(use_codegen):
    options = Options(use_codegen=use_codegen)
    pattern_set = re_set.compile(["[^\\x00-\\xff]", "a"], options)
    assert pattern_set.find("a").index == 1
    assert pattern_set.find("\x00") is None
    assert pattern_set.findall("bab") == [b"a"]
    assert re_set.compile("[^\\x00-\\xff]", options).find(b"\xff") is None
    assert re_set.compile("x[^\\x00-\\xff]?", options).find("xy").span == (0, 1)


def test_single_pattern_string():
    assert PatternSet("ab").patterns == ("ab",)


def test_pattern_set_from_machine():
    machine = re_set.compile(["a", "ab"]).machine
    pattern_set = PatternSet(machine)
    assert pattern_set.machine is machine
    assert pattern_set.find("ab").index == 1


def test_source_is_emitted_once():
    pattern_set = re_set.compile(["x+"], Options(function_name="match_x"))
    assert pattern_set.source is pattern_set.source
    assert "def match_x(data: bytes, start: int = 0) -> tuple[int, int] | None:" in pattern_set.source


def test_codegen_agrees_with_interpreter():
    patterns = ["[a-z]+", "if", "[0-9]+(?:\\.[0-9]+)?", "\\.[0-9]+", "[ \t]+"]
    machine = re_set.compile(patterns).machine
    generated = load_python(emit_python(machine, "lexer"), "lexer")
    simulatable = machine.as_simulatable()
    for data in [b"if", b"iffy", b"3.14", b".5", b"3.", b" \t x", b"", b"?", b"12ab"]:
        for start in range(len(data) + 1):
            assert generated(data, start) == simulatable.find(data, start), (data, start)


def test_loaded_function_is_annotated():
    function = load_python(emit_python(re_set.compile("a").machine, "match_a"), "match_a")
    assert function.__name__ == "match_a"
    assert set(function.__annotations__) == {"data", "start", "return"}


def test_errors_are_value_errors():
    for error in (PatternSyntaxError, UnsupportedConstruct, UnresolvedAmbiguity, EmptyAutomaton):
        assert issubclass(error, ReSetError)
        assert issubclass(error, ValueError)


def test_syntax_error_context():
    with pytest.raises(PatternSyntaxError) as info:
        re_set.compile(["ok", "a("])
    assert info.value.pattern == "a("
    assert info.value.pattern_index == 1
    assert info.value.position == 2
    assert "(pattern 1: 'a(')" in str(info.value)


@pytest.mark.parametrize(
    "patterns, index",
    [
        (["(a)"], 0),
        (["a", "^b"], 1),
        (["ok", "a(?=b)"], 1),
        (["\\bword"], 0),
    ],
)
def test_unsupported_context(patterns, index):
    with pytest.raises(UnsupportedConstruct) as info:
        re_set.compile(patterns)
    assert info.value.pattern_index == index
    assert info.value.pattern == patterns[index]


def test_empty_pattern_set():
    with pytest.raises(EmptyAutomaton):
        re_set.compile([])


def test_merge_bound_option():
    with pytest.raises(UnresolvedAmbiguity):
        re_set.compile(["a*", "ab"], Options(max_steps=0))
    assert re_set.compile(["a*", "ab"], Options(max_steps=1)).find("ab").index == 1


def test_invalid_options():
    with pytest.raises(ValueError):
        Options(function_name="1x")
    with pytest.raises(ValueError):
        Options(max_steps=-1)
