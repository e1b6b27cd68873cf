from re_set.config import Options
from re_set.errors import (
    ReSetError,
    PatternSyntaxError,
    UnsupportedConstruct,
    UnresolvedAmbiguity,
    EmptyAutomaton,
)
from re_set.library import Match, PatternSet, compile, find, findall, finditer
from re_set.machine import StateMachine

__all__ = [
    "Options",
    "ReSetError",
    "PatternSyntaxError",
    "UnsupportedConstruct",
    "UnresolvedAmbiguity",
    "EmptyAutomaton",
    "Match",
    "PatternSet",
    "StateMachine",
    "compile",
    "find",
    "findall",
    "finditer",
]
