from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

from re_set.helpers import byte_repr


StepId = int
PatternIndex = int


class ByteRange(NamedTuple):
    start: int
    end: int  # inclusive

    def contains(self, byte: int) -> bool:
        return self.start <= byte <= self.end

    def overlaps(self, other: ByteRange) -> bool:
        return self.start <= other.end and other.start <= self.end

    def dumps(self) -> str:
        if self.start == self.end:
            return f"{byte_repr(self.start)}"
        return f"{byte_repr(self.start)}-{byte_repr(self.end)}"


Condition = tuple[StepId, ByteRange]  # (candidate step, range the byte has to fall in)


@dataclass(frozen=True)
class Continue:
    """
    Moves to `target`. Every condition covers exactly the byte range of the
    case holding it, so it holds whenever the case is taken.
    """

    target: StepId
    conditions: tuple[Condition, ...] = ()

    def dumps(self) -> str:
        if not self.conditions:
            return f"step = {self.target}"
        conds = ", ".join(f"{step} if {r.dumps()}" for step, r in self.conditions)
        return f"step = {self.target} [{conds}]"


@dataclass(frozen=True)
class Accept:
    index: PatternIndex

    def dumps(self) -> str:
        return f"return {self.index}"


Transition = Continue | Accept


class StepCase(NamedTuple):
    byte_range: ByteRange
    transition: Transition

    def dumps(self) -> str:
        return f"{self.byte_range.dumps()} => {self.transition.dumps()}"


StepTable = dict[StepId, list[StepCase]]
EndsMap = dict[StepId, PatternIndex]


def dumps_table(steps: StepTable, ends: EndsMap) -> str:
    result = []
    for step in sorted(steps):
        suffix = f" (end {ends[step]})" if step in ends else ""
        result.append(f"{step}:{suffix}\n")
        for case in steps[step]:
            result.append(f"    {case.dumps()}\n")
    return "".join(result)
