from __future__ import annotations

import logging
from typing import Callable

from re_set.machine import StateMachine
from re_set.steps import Accept, ByteRange, StepCase, PatternIndex


logger = logging.getLogger(__name__)

MatchFunction = Callable[[bytes, int], "tuple[PatternIndex, int] | None"]

INDENT = "    "


def range_test(byte_range: ByteRange) -> str:
    if byte_range.start == byte_range.end:
        return f"byte == {byte_range.start}"
    return f"{byte_range.start} <= byte <= {byte_range.end}"


class PythonEmitter:
    """
    Renders a step table as a standalone matching function:
    one integer state variable, nested byte comparisons, no table lookups
    """

    def __init__(self, machine: StateMachine, name: str):
        self.machine = machine
        self.name = name
        self.lines: list[str] = []

    def line(self, depth: int, text: str):
        self.lines.append(INDENT * depth + text)

    def emit(self) -> str:
        machine = self.machine
        self.lines = []

        self.line(0, f"# patterns: {list(machine.patterns)!r}")
        self.line(0, f"# {len(machine.steps)} steps, step size {machine.step_size()}")
        self.line(0, f"def {self.name}(data: bytes, start: int = 0) -> tuple[int, int] | None:")
        self.line(1, f"step = {machine.initial_step}")
        if machine.initial_step in machine.ends:
            self.line(1, f"last = ({machine.ends[machine.initial_step]}, start)")
        else:
            self.line(1, "last = None")
        self.line(1, "index = start")
        self.line(1, "length = len(data)")
        self.line(1, "while index < length:")
        self.line(2, "byte = data[index]")
        self.line(2, "index += 1")

        keyword = "if"
        for step in sorted(machine.steps):
            self.line(2, f"{keyword} step == {step}:")
            self.emit_step(machine.steps[step])
            keyword = "elif"
        if keyword == "elif":
            self.line(2, "else:")
            self.line(3, "break")
        self.line(1, "return last")

        return "\n".join(self.lines) + "\n"

    def emit_step(self, cases: list[StepCase]):
        keyword = "if"
        for case in cases:
            self.line(3, f"{keyword} {range_test(case.byte_range)}:")
            self.emit_transition(case)
            keyword = "elif"
        if keyword == "if":
            self.line(3, "break")
        else:
            self.line(3, "else:")
            self.line(4, "break")

    def emit_transition(self, case: StepCase):
        transition = case.transition
        if isinstance(transition, Accept):
            self.line(4, f"return {transition.index}, index")
            return

        ends = self.machine.ends
        # a condition always covers the whole range of its case
        accepted = [ends[candidate] for candidate, _ in transition.conditions if candidate in ends]
        if transition.target in ends:
            accepted.append(ends[transition.target])
        if accepted:
            self.line(4, f"last = {min(accepted)}, index")
        self.line(4, f"step = {transition.target}")


def emit_python(machine: StateMachine, name: str = "match_set") -> str:
    assert name.isidentifier(), f"{name!r} is not a valid function name"
    source = PythonEmitter(machine, name).emit()
    logger.debug("emitted %d lines of python for %r", source.count("\n"), name)
    return source


def load_python(source: str, name: str = "match_set") -> MatchFunction:
    namespace: dict[str, object] = {}
    exec(compile(source, f"<re_set {name}>", "exec"), namespace)
    return namespace[name]  # type: ignore[return-value]
