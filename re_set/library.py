from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from re_set.builder import build_steps
from re_set.codegen import MatchFunction, emit_python, load_python
from re_set.compactor import compact
from re_set.config import Options, DEFAULT_OPTIONS
from re_set.errors import ReSetError, EmptyAutomaton
from re_set.machine import StateMachine
from re_set.parser import parse
from re_set.program import compile_program
from re_set.resolver import resolve_steps


logger = logging.getLogger(__name__)

Patterns = str | Sequence[str]
Data = bytes | bytearray | memoryview | str


@dataclass
class Match:
    index: int
    start: int
    end: int
    data: bytes = field(repr=False)

    @property
    def span(self) -> tuple[int, int]:
        return (self.start, self.end)

    def group(self) -> bytes:
        return self.data[self.start : self.end]

    def text(self) -> str:
        return self.group().decode("utf-8", errors="replace")


def as_bytes(data: Data) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def build_machine(patterns: Sequence[str], options: Options = DEFAULT_OPTIONS) -> StateMachine:
    nodes = []
    for index, pattern in enumerate(patterns):
        try:
            nodes.append(parse(pattern))
        except ReSetError as e:
            raise e.with_pattern(pattern, index)

    program = compile_program(nodes, patterns)
    if options.verbose:
        logger.debug("program:\n%s", program.dumps())

    initial, builder = build_steps(program, options.verbose)
    if initial is None:
        raise EmptyAutomaton()

    steps, ends = resolve_steps(
        builder.steps,
        builder.ends,
        builder.match_steps,
        initial,
        len(program),
        options.max_steps,
        options.verbose,
    )
    steps, ends, initial = compact(steps, ends, initial)

    machine = StateMachine(steps, ends, initial, tuple(patterns))
    logger.debug(
        "pattern set of %d compiled into %d steps of %d bits",
        len(patterns),
        len(steps),
        machine.step_size(),
    )
    return machine


class PatternSet:
    """
    Several patterns matched at once, in a single pass over the input.
    The longest match wins, the lowest pattern index breaks ties.
    """

    def __init__(self, patterns: Patterns | StateMachine, options: Options | None = None):
        self.options = options or DEFAULT_OPTIONS
        if isinstance(patterns, StateMachine):
            self.machine = patterns
        else:
            if isinstance(patterns, str):
                patterns = [patterns]
            self.machine = build_machine(list(patterns), self.options)

        self._source: str | None = None
        self._find: MatchFunction
        if self.options.use_codegen:
            self._find = load_python(self.source, self.options.function_name)
        else:
            self._find = self.machine.as_simulatable().find

    @property
    def patterns(self) -> tuple[str, ...]:
        return self.machine.patterns

    @property
    def source(self) -> str:
        if self._source is None:
            self._source = emit_python(self.machine, self.options.function_name)
        return self._source

    def find(self, data: Data, start: int = 0) -> Match | None:
        """
        Longest match that starts exactly at `start` (a byte offset)
        """

        data = as_bytes(data)
        if not 0 <= start <= len(data):
            raise ValueError(f"start {start} is outside of the data (0..{len(data)})")
        found = self._find(data, start)
        if found is None:
            return None
        index, end = found
        return Match(index, start, end, data)

    def finditer(self, data: Data) -> Iterable[Match]:
        data = as_bytes(data)
        index = 0
        while index < len(data):
            found = self._find(data, index)
            if found is not None and found[1] != index:
                yield Match(found[0], index, found[1], data)
                index = found[1]
            else:
                index += 1

    def findall(self, data: Data) -> list[bytes]:
        return [match.group() for match in self.finditer(data)]


def compile(patterns: Patterns, options: Options | None = None) -> PatternSet:
    return PatternSet(patterns, options)


def find(patterns: Patterns, data: Data, start: int = 0) -> Match | None:
    return PatternSet(patterns).find(data, start)


def findall(patterns: Patterns, data: Data) -> list[bytes]:
    return PatternSet(patterns).findall(data)


def finditer(patterns: Patterns, data: Data) -> Iterable[Match]:
    return PatternSet(patterns).finditer(data)
