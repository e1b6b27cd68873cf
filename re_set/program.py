from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Sequence, Iterator

from re_set import classes as ast
from re_set.classes import Visitor, LookKind
from re_set.helpers import Range, byte_repr


logger = logging.getLogger(__name__)

Position = int
HOLE: Position = -1


@dataclass(frozen=True)
class Match:
    index: int

    def dumps(self) -> str:
        return f"match {self.index}"


@dataclass(frozen=True)
class Save:
    slot: int
    goto: Position = HOLE

    def dumps(self) -> str:
        return f"save {self.slot} -> {self.goto}"


@dataclass(frozen=True)
class Split:
    goto1: Position = HOLE
    goto2: Position = HOLE

    def dumps(self) -> str:
        return f"split {self.goto1}, {self.goto2}"


@dataclass(frozen=True)
class EmptyLook:
    look: LookKind
    goto: Position = HOLE

    def dumps(self) -> str:
        return f"look {self.look.value} -> {self.goto}"


@dataclass(frozen=True)
class Char:
    byte: int
    goto: Position = HOLE

    @property
    def ranges(self) -> tuple[Range, ...]:
        return ((self.byte, self.byte),)

    def dumps(self) -> str:
        return f"char {byte_repr(self.byte)} -> {self.goto}"


@dataclass(frozen=True)
class Bytes:
    start: int
    end: int
    goto: Position = HOLE

    @property
    def ranges(self) -> tuple[Range, ...]:
        return ((self.start, self.end),)

    def dumps(self) -> str:
        return f"bytes {byte_repr(self.start)}-{byte_repr(self.end)} -> {self.goto}"


@dataclass(frozen=True)
class Ranges:
    ranges: tuple[Range, ...]
    goto: Position = HOLE

    def dumps(self) -> str:
        pairs = " ".join(f"{byte_repr(s)}-{byte_repr(e)}" for s, e in self.ranges)
        return f"ranges {pairs} -> {self.goto}"


@dataclass(frozen=True)
class Nop:
    goto: Position = HOLE

    def dumps(self) -> str:
        return f"nop -> {self.goto}"


Inst = Match | Save | Split | EmptyLook | Char | Bytes | Ranges | Nop


@dataclass
class Program:
    """
    Addressable, immutable sequence of instructions shared by a whole pattern set
    """

    insts: list[Inst]
    entry: Position = 0
    patterns: tuple[str, ...] = ()
    origins: list[int | None] = field(default_factory=list, repr=False)

    def __getitem__(self, position: Position) -> Inst:
        return self.insts[position]

    def __len__(self) -> int:
        return len(self.insts)

    def __iter__(self) -> Iterator[Inst]:
        return iter(self.insts)

    def skip(self, position: Position) -> Position:
        while isinstance(self.insts[position], Nop):
            position = self.insts[position].goto
        return position

    def origin(self, position: Position) -> tuple[str | None, int | None]:
        """
        The pattern (literal and index) that the instruction was compiled from
        """
        if position >= len(self.origins):
            return None, None
        index = self.origins[position]
        if index is None or index >= len(self.patterns):
            return None, index
        return self.patterns[index], index

    def dumps(self) -> str:
        pad = len(str(max(len(self.insts) - 1, 0)))
        result = []
        for position, inst in enumerate(self.insts):
            marker = ">" if position == self.entry else " "
            result.append(f"{marker}{position:0>{pad}}: {inst.dumps()}\n")
        return "".join(result)


Hole = tuple[Position, str]  # (position, attribute to fill)


@dataclass
class Patch:
    entry: Position
    holes: list[Hole]


class Compiler(Visitor):
    """
    Thompson's construction over a growing instruction list, with holes
    patched as soon as the continuation is known
    """

    def __init__(self):
        self.reset()

    def reset(self):
        self.insts: list[Inst] = []
        self.origins: list[int | None] = []
        self.current_pattern: int | None = None
        self.next_slot = 2  # slots 0 and 1 are reserved for the whole match

    def push(self, inst: Inst) -> Position:
        self.insts.append(inst)
        self.origins.append(self.current_pattern)
        return len(self.insts) - 1

    def fill(self, holes: Sequence[Hole], target: Position):
        for position, attr in holes:
            self.insts[position] = replace(self.insts[position], **{attr: target})

    def fill_to_next(self, holes: Sequence[Hole]):
        self.fill(holes, len(self.insts))

    def compile(self, nodes: Sequence[ast.RE], patterns: Sequence[str] = ()) -> Program:
        self.reset()

        prev_holes: list[Hole] = []
        for index, node in enumerate(nodes):
            self.current_pattern = index
            self.fill_to_next(prev_holes)
            prev_holes = []
            if index != len(nodes) - 1:
                split = self.push(Split())
                self.fill_to_next([(split, "goto1")])
                prev_holes = [(split, "goto2")]
            patch = self.visit(node)
            self.fill_to_next(patch.holes)
            self.push(Match(index))

        program = Program(list(self.insts), 0, tuple(patterns), list(self.origins))
        logger.debug("compiled %d patterns into %d instructions", len(nodes), len(program))
        return program

    def visit_Epsilon(self, node: ast.Epsilon) -> Patch:
        position = self.push(Nop())
        return Patch(position, [(position, "goto")])

    def visit_SymbolRanges(self, node: ast.SymbolRanges) -> Patch:
        ranges = node.minimized_as_accepting().ranges
        # an empty class leaves a branch no byte can take
        if len(ranges) != 1:
            position = self.push(Ranges(ranges))
        elif ranges[0][0] == ranges[0][1]:
            position = self.push(Char(ranges[0][0]))
        else:
            position = self.push(Bytes(*ranges[0]))
        return Patch(position, [(position, "goto")])

    def visit_Concat(self, node: ast.Concat) -> Patch:
        assert len(node.expressions) > 0, "'concatenation' must have at least one expression"

        entry = None
        holes: list[Hole] = []
        for expr in node.expressions:
            self.fill_to_next(holes)
            patch = self.visit(expr)
            if entry is None:
                entry = patch.entry
            holes = patch.holes
        return Patch(entry, holes)

    def visit_Or(self, node: ast.Or) -> Patch:
        assert len(node.expressions) > 0, "'or' must have at least one expression"

        entry = len(self.insts)
        holes: list[Hole] = []
        prev_hole: list[Hole] = []
        for expr in node.expressions[:-1]:
            self.fill_to_next(prev_hole)
            split = self.push(Split())
            patch = self.visit(expr)
            self.fill([(split, "goto1")], patch.entry)
            holes.extend(patch.holes)
            prev_hole = [(split, "goto2")]

        self.fill_to_next(prev_hole)
        patch = self.visit(node.expressions[-1])
        holes.extend(patch.holes)
        return Patch(entry, holes)

    def visit_Repeat(self, node: ast.Repeat) -> Patch:
        return self.repeat_expr(node.expr, node.min, node.max, node.greedy)

    def split_for(self, greedy: bool) -> tuple[Position, str, str]:
        # (split, attribute that enters the loop body, attribute that leaves it)
        split = self.push(Split())
        if greedy:
            return split, "goto1", "goto2"
        return split, "goto2", "goto1"

    def zero_or_one(self, node: ast.RE, greedy: bool) -> Patch:
        split, body, leave = self.split_for(greedy)
        patch = self.visit(node)
        self.fill([(split, body)], patch.entry)
        return Patch(split, patch.holes + [(split, leave)])

    def zero_or_more(self, node: ast.RE, greedy: bool) -> Patch:
        split, body, leave = self.split_for(greedy)
        patch = self.visit(node)
        self.fill([(split, body)], patch.entry)
        self.fill(patch.holes, split)
        return Patch(split, [(split, leave)])

    def one_or_more(self, node: ast.RE, greedy: bool) -> Patch:
        patch = self.visit(node)
        self.fill_to_next(patch.holes)
        split, body, leave = self.split_for(greedy)
        self.fill([(split, body)], patch.entry)
        return Patch(patch.entry, [(split, leave)])

    def repeat_expr(self, node: ast.RE, min: int, max: int | None, greedy: bool) -> Patch:
        assert min >= 0, "'repeat' min must be non-negative"
        assert max is None or max >= min, "'repeat' max must be greater than or equal to min"

        if max == 0:
            return self.visit_Epsilon(ast.Epsilon())

        if min == 0 and max is None:
            return self.zero_or_more(node, greedy)

        if min == 0 and max == 1:
            return self.zero_or_one(node, greedy)

        if min == 1 and max is None:
            return self.one_or_more(node, greedy)

        # r{min,} is min - 1 copies followed by r+,
        # r{min,max} is min copies followed by max - min nested optional copies
        required = min - 1 if max is None else min

        entry = None
        holes: list[Hole] = []
        for _ in range(required):
            self.fill_to_next(holes)
            patch = self.visit(node)
            entry = patch.entry if entry is None else entry
            holes = patch.holes

        if max is None:
            self.fill_to_next(holes)
            patch = self.one_or_more(node, greedy)
            return Patch(patch.entry if entry is None else entry, patch.holes)

        leaving: list[Hole] = []
        for _ in range(max - min):
            self.fill_to_next(holes)
            patch = self.zero_or_one(node, greedy)
            entry = patch.entry if entry is None else entry
            *holes, leave = patch.holes
            leaving.append(leave)

        assert entry is not None, "'repeat' did not produce any instruction"
        return Patch(entry, leaving + holes)

    def visit_Group(self, node: ast.Group) -> Patch:
        if not node.capturing:
            return self.visit(node.expr)

        slot = self.next_slot
        self.next_slot += 2
        start = self.push(Save(slot))
        patch = self.visit(node.expr)
        self.fill([(start, "goto")], patch.entry)
        self.fill_to_next(patch.holes)
        end = self.push(Save(slot + 1))
        return Patch(start, [(end, "goto")])

    def visit_Look(self, node: ast.Look) -> Patch:
        position = self.push(EmptyLook(node.kind))
        return Patch(position, [(position, "goto")])


def compile_program(nodes: Sequence[ast.RE], patterns: Sequence[str] = ()) -> Program:
    return Compiler().compile(nodes, patterns)
