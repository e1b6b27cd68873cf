from __future__ import annotations

import pytest

from re_set.classes import (
    Epsilon,
    SymbolRanges,
    Concat,
    Or,
    Repeat,
    Group,
    Look,
    LookKind,
    make_symbol,
    dump_ast,
)
from re_set.errors import PatternSyntaxError, UnsupportedConstruct
from re_set.parser import parse


a, b, c = make_symbol(97), make_symbol(98), make_symbol(99)


data_parse = {
    "": Epsilon(),
    "a": a,
    "ab": Concat((a, b)),
    "a|b": Or((a, b)),
    "a|a": a,
    "a|": Or((a, Epsilon())),
    "a*": Repeat(a, 0, None),
    "a+": Repeat(a, 1, None),
    "a?": Repeat(a, 0, 1),
    "a*?": Repeat(a, 0, None, False),
    "a{3}": Repeat(a, 3, 3),
    "a{2,}": Repeat(a, 2, None),
    "a{,4}": Repeat(a, 0, 4),
    "a{2,5}": Repeat(a, 2, 5),
    "(?:ab)": Group(Concat((a, b)), False),
    "(ab)": Group(Concat((a, b))),
    "(?P<x>a)": Group(a, True, "x"),
    "(?<y>a)": Group(a, True, "y"),
    "[a-c]": SymbolRanges(((97, 99),)),
    "[cab]": SymbolRanges(((97, 99),)),
    "[-a]": SymbolRanges(((45, 45), (97, 97))),
    "[]a]": SymbolRanges(((93, 93), (97, 97))),
    "[[:digit:]x]": SymbolRanges(((48, 57), (120, 120))),
    "[^\\x00-\\xfe]": SymbolRanges(((255, 255),)),
    "\\d": SymbolRanges(((48, 57),)),
    "\\x41": make_symbol(65),
    "\\.": make_symbol(46),
    "\\n": make_symbol(10),
    "a]": Concat((a, make_symbol(93))),
    ".": SymbolRanges(((0, 9), (11, 255))),
    "é": Concat((make_symbol(0xC3), make_symbol(0xA9))),
    "^a$": Concat((Look(LookKind.START_LINE), a, Look(LookKind.END_LINE))),
    "\\ba": Concat((Look(LookKind.WORD_BOUNDARY), a)),
}


@pytest.mark.parametrize("regex, expected", data_parse.items())
def test_parse(regex, expected):
    assert parse(regex) == expected


data_syntax_errors = {
    "a(": 2,
    "a)": 1,
    "*a": 0,
    "a{2": 3,
    "a{3,1}": 5,
    "[a": 2,
    "[z-a]": 4,
    "\\q": 2,
    "a\\": 2,
    "(?x)": 2,
    "[[:nope:]]": 9,
    "a{1001}": 6,
}


@pytest.mark.parametrize("regex, position", data_syntax_errors.items())
def test_syntax_errors(regex, position):
    with pytest.raises(PatternSyntaxError) as info:
        parse(regex)
    assert info.value.position == position


@pytest.mark.parametrize("regex", ["a(?=b)", "a(?!b)", "(?<=a)b", "(?<!a)b"])
def test_lookaround_is_unsupported(regex):
    with pytest.raises(UnsupportedConstruct, match="lookaround"):
        parse(regex)


def test_dump_ast():
    assert dump_ast(parse("(?:a|b)*c")) == "(?:(?:(?:a|b)))*c"
    assert dump_ast(parse("[a-c]{2,}?")) == "(?:[a-c]){2,}?"
