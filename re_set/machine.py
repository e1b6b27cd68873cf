from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from re_set.compactor import step_size
from re_set.errors import EmptyAutomaton
from re_set.resolver import check_no_overlaps
from re_set.steps import (
    StepId,
    PatternIndex,
    Accept,
    StepCase,
    StepTable,
    EndsMap,
    dumps_table,
)


@dataclass
class StateMachine:
    """
    Deterministic, densely numbered step table of a pattern set
    """

    steps: StepTable
    ends: EndsMap
    initial_step: StepId
    patterns: tuple[str, ...] = ()

    def first_step(self) -> StepId:
        if not self.steps:
            raise EmptyAutomaton()
        return min(self.steps)

    def last_step(self) -> StepId:
        if not self.steps:
            raise EmptyAutomaton()
        return max(self.steps)

    def step_size(self) -> int:
        return step_size(self.last_step())

    def check(self):
        check_no_overlaps(self.steps, self.ends)

    def dumps(self) -> str:
        return dumps_table(self.steps, self.ends)

    def dumps_dot(self) -> str:
        result = []
        result.append("digraph G {\n")
        result.append("rankdir=LR\n")
        result.append(
            'node [label="", shape=circle, style=filled, fontname=Courier];\n'
        )
        result.append("edge[arrowhead=vee fontname=Courier]\n")
        result.append("\n")
        result.append(
            f'n [shape=point xlabel="Start"] n -> n{self.initial_step} [style=dotted]\n'
        )

        accepted = set[PatternIndex]()
        for step, cases in self.steps.items():
            for byte_range, transition in cases:
                label = byte_range.dumps().replace("\\", "\\\\").replace('"', '\\"')
                if isinstance(transition, Accept):
                    accepted.add(transition.index)
                    result.append(f'n{step} -> accept{transition.index} [label="{label}"];\n')
                    continue
                conds = " ".join(f"{s}?" for s, _ in transition.conditions)
                if conds:
                    label += "\\n" + conds
                result.append(f'n{step} -> n{transition.target} [label="{label}"];\n')
                for candidate, _ in transition.conditions:
                    result.append(f"n{step} -> n{candidate} [style=dashed arrowhead=none];\n")

        for step in self.steps:
            properties = []
            if step == self.initial_step:
                properties.append("style=empty")
            if step in self.ends:
                properties.append("shape=doublecircle")
                properties.append(f'xlabel="{self.ends[step]}"')
            result.append(f'n{step} [label="{step}" {" ".join(properties)}];\n')

        for index in sorted(accepted):
            result.append(f'accept{index} [label="{index}" shape=doublecircle style=empty];\n')

        result.append("}\n")

        return "".join(result)

    def dump_dot(self, path: Path | str) -> Path:
        path = Path(path)
        path.write_text(self.dumps_dot(), encoding="utf-8")
        return path

    def as_simulatable(self) -> SimulatableStateMachine:
        return SimulatableStateMachine(
            self.initial_step,
            dict(self.ends),
            {step: list(cases) for step, cases in self.steps.items()},
        )


@dataclass
class SimulatableStateMachine:
    initial_step: StepId
    ends: EndsMap
    steps: StepTable = field(repr=False)

    def find_case(self, step: StepId, byte: int) -> StepCase | None:
        for case in self.steps[step]:
            if case.byte_range.contains(byte):
                return case
        return None

    def find(self, data: bytes, start: int = 0) -> tuple[PatternIndex, int] | None:
        """
        Longest match anchored at `start`, as (pattern index, end offset)
        """

        step = self.initial_step
        last_accept: tuple[PatternIndex, int] | None = None
        if step in self.ends:
            last_accept = self.ends[step], start

        for index in range(start, len(data)):
            byte = data[index]
            case = self.find_case(step, byte)
            if case is None:
                break

            transition = case.transition
            if isinstance(transition, Accept):
                return transition.index, index + 1

            candidates = [
                self.ends[candidate]
                for candidate, _ in transition.conditions
                if candidate in self.ends
            ]
            if transition.target in self.ends:
                candidates.append(self.ends[transition.target])
            if candidates:
                last_accept = min(candidates), index + 1

            step = transition.target

        return last_accept

