from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field

from re_set.errors import UnsupportedConstruct
from re_set.program import (
    Program,
    Position,
    Inst,
    Match,
    Save,
    Split,
    EmptyLook,
    Char,
    Bytes,
    Ranges,
)
from re_set.steps import (
    StepId,
    PatternIndex,
    ByteRange,
    Continue,
    Accept,
    Transition,
    StepCase,
    StepTable,
    EndsMap,
    dumps_table,
)


logger = logging.getLogger(__name__)


@dataclass
class AutomatonBuilder:
    """
    Turns an instruction program into a raw step table.

    Every step is named after the instruction position it starts at.
    A split is not a step on its own: it contributes the cases of both of
    its branches to the step that reached it.
    """

    verbose: bool = False
    steps: StepTable = field(default_factory=dict)
    ends: EndsMap = field(default_factory=dict)
    match_steps: dict[PatternIndex, StepId] = field(default_factory=dict)
    program: Program = field(init=False)

    def reset(self):
        self.steps = {}
        self.ends = {}
        self.match_steps = {}

    def build(self, program: Program) -> StepId | None:
        """
        Walks the program from its entry, returns the initial step
        (None for an empty program)
        """
        self.reset()
        self.program = program

        if not len(program):
            return None

        initial = program.skip(program.entry)
        queue = deque([initial])

        while queue:
            position = queue.popleft()
            for case in self.step_cases(position):
                transition = case.transition
                if isinstance(transition, Continue) and transition.target not in self.steps:
                    queue.append(transition.target)

        logger.debug(
            "built %d raw steps (%d accepting) from %d instructions",
            len(self.steps),
            len(self.ends),
            len(program),
        )
        if self.verbose:
            logger.debug("raw steps:\n%s", dumps_table(self.steps, self.ends))
        return initial

    def step_cases(self, position: Position) -> list[StepCase]:
        cases = self.steps.get(position)
        if cases is not None:
            return cases

        self.split_match(position)
        cases = self.steps[position] = self.parse_inst(position)
        return cases

    def parse_inst(self, position: Position) -> list[StepCase]:
        """
        Collects the cases of every byte instruction reachable from the
        position without consuming input, branches in priority order
        """
        result = []
        visited = set[Position]()
        stack = [position]

        while stack:
            position = stack.pop()
            if position in visited:
                continue  # either already contributed, or a loop of splits
            visited.add(position)

            inst = self.program[position]
            if isinstance(inst, Split):
                stack.append(self.program.skip(inst.goto2))
                stack.append(self.program.skip(inst.goto1))
            elif isinstance(inst, Match):
                self.add_end(position, inst.index)
            elif isinstance(inst, (Char, Bytes, Ranges)):
                transition = self.next_case(inst.goto)
                for start, end in inst.ranges:
                    result.append(StepCase(ByteRange(start, end), transition))
            else:
                raise self.unsupported(position, inst)

        return result

    def split_match(self, position: Position):
        # a step that reaches a match through splits alone accepts on arrival
        next_splits = [position]
        seen = set[Position]()

        while next_splits:
            next_split = next_splits.pop()
            if next_split in seen:
                continue
            seen.add(next_split)

            inst = self.program[next_split]
            if not isinstance(inst, Split):
                continue

            for goto in (self.program.skip(inst.goto1), self.program.skip(inst.goto2)):
                target = self.program[goto]
                if isinstance(target, Match):
                    self.set_end(position, target.index)
                next_splits.append(goto)

    def next_case(self, goto: Position) -> Transition:
        goto = self.program.skip(goto)
        inst = self.program[goto]

        if isinstance(inst, Match):
            self.add_end(goto, inst.index)
            return Accept(inst.index)
        return Continue(goto)

    def set_end(self, step: StepId, index: PatternIndex):
        # the earlier pattern wins when one step finishes several
        current = self.ends.get(step)
        if current is None or index < current:
            self.ends[step] = index

    def add_end(self, position: Position, index: PatternIndex):
        self.set_end(position, index)
        self.steps.setdefault(position, [])
        self.match_steps.setdefault(index, position)

    def unsupported(self, position: Position, inst: Inst) -> UnsupportedConstruct:
        if isinstance(inst, Save):
            construct = f"capture group (Save slot {inst.slot})"
        elif isinstance(inst, EmptyLook):
            construct = f"zero-width assertion {inst.look.value!r} (EmptyLook)"
        else:
            construct = type(inst).__name__
        return UnsupportedConstruct(construct, position).with_pattern(
            *self.program.origin(position)
        )


def build_steps(program: Program, verbose: bool = False) -> tuple[StepId | None, AutomatonBuilder]:
    builder = AutomatonBuilder(verbose)
    initial = builder.build(program)
    return initial, builder
