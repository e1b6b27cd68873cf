from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field

from re_set.errors import UnresolvedAmbiguity
from re_set.helpers import split_overlapping_ranges, cut_range
from re_set.steps import (
    StepId,
    PatternIndex,
    ByteRange,
    Condition,
    Continue,
    Accept,
    Transition,
    StepCase,
    StepTable,
    EndsMap,
    dumps_table,
)


logger = logging.getLogger(__name__)

Members = frozenset[StepId]


@dataclass
class AmbiguityResolver:
    """
    Removes the nondeterminism that alternation leaves in a raw step table.

    When two cases of one step overlap and lead to different steps, the second
    target's future is pulled into the first one: both continue in a step made
    of the two case lists. Such merged steps are keyed by the set of raw steps
    they stand for, so each combination is built once and a target shared with
    other steps is never altered.
    When a case that finishes a pattern overlaps a case that continues,
    the continuing case remembers the finished pattern as a condition.
    """

    steps: StepTable
    ends: EndsMap
    match_steps: dict[PatternIndex, StepId]
    next_step: StepId
    max_steps: int | None = None
    verbose: bool = False

    merged: dict[Members, StepId] = field(default_factory=dict)  # exclusion set
    members: dict[StepId, Members] = field(default_factory=dict)
    resolved: StepTable = field(default_factory=dict)

    def resolve(self, initial: StepId) -> tuple[StepTable, EndsMap]:
        queue = deque([initial])
        enqueued = {initial}

        while queue:
            step = queue.popleft()
            cases = self.resolved[step] = self.extend_split_steps(step)

            for case in cases:
                transition = case.transition
                if not isinstance(transition, Continue):
                    continue
                for next_step in [transition.target] + [s for s, _ in transition.conditions]:
                    if next_step not in enqueued:
                        enqueued.add(next_step)
                        queue.append(next_step)

        ends = {step: index for step, index in self.ends.items() if step in self.resolved}
        logger.debug(
            "resolved %d steps, %d of them merged", len(self.resolved), len(self.merged)
        )
        if self.verbose:
            logger.debug("resolved steps:\n%s", dumps_table(self.resolved, ends))

        check_no_overlaps(self.resolved, ends)
        return self.resolved, ends

    @staticmethod
    def normalize(cases: list[StepCase]) -> list[StepCase]:
        # cut every range at all boundaries of the step,
        # so two cases either cover the same bytes or none in common
        pieces = split_overlapping_ranges([case.byte_range for case in cases])
        result = []
        for case in cases:
            for start, end in cut_range(case.byte_range, pieces):
                result.append(StepCase(ByteRange(start, end), case.transition))
        return result

    def extend_split_steps(self, step: StepId) -> list[StepCase]:
        cases = self.normalize(self.steps[step])
        result: list[Transition | None] = [case.transition for case in cases]

        for i, (range1, _) in enumerate(cases):
            for j in range(i + 1, len(cases)):
                range2 = cases[j].byte_range
                transition1 = result[i]
                transition2 = result[j]
                if transition1 is None or transition2 is None:
                    continue  # already folded into another case
                if not range1.overlaps(range2):
                    continue

                assert range1 == range2, "normalized ranges should be equal or disjoint"
                result[i] = self.fold(transition1, transition2, range2)
                result[j] = None

        folded = [
            StepCase(byte_range, transition)
            for (byte_range, _), transition in zip(cases, result)
            if transition is not None
        ]
        return self.coalesce(folded)

    def fold(self, transition1: Transition, transition2: Transition, byte_range: ByteRange) -> Transition:
        match transition1, transition2:
            case Continue(target1, conditions1), Continue(target2, conditions2):
                target = target1
                if target1 != target2:
                    target = self.merge_steps(target1, target2)
                return Continue(target, join_conditions(conditions1, conditions2))
            case (Continue(target, conditions), Accept(index)) | (Accept(index), Continue(target, conditions)):
                condition = (self.accepting_step(index), byte_range)
                return Continue(target, join_conditions(conditions, (condition,)))
            case Accept(index1), Accept(index2):
                return Accept(min(index1, index2))
        assert False, f"unknown transitions {transition1!r}, {transition2!r}"

    def accepting_step(self, index: PatternIndex) -> StepId:
        step = self.match_steps.get(index)
        if step is None:
            step = min(s for s, i in self.ends.items() if i == index)
        return step

    def merge_steps(self, target1: StepId, target2: StepId) -> StepId:
        members = self.members.get(target1, frozenset([target1])) | self.members.get(
            target2, frozenset([target2])
        )
        if len(members) == 1:
            return target1

        step = self.merged.get(members)
        if step is not None:
            return step

        if self.max_steps is not None and len(self.merged) >= self.max_steps:
            raise UnresolvedAmbiguity(
                f"resolution did not converge within {self.max_steps} merged steps",
                target1,
            )

        step = self.next_step
        self.next_step += 1
        self.merged[members] = step
        self.members[step] = members

        cases = []
        accepted = []
        for member in sorted(members):
            cases.extend(self.steps[member])
            if member in self.ends:
                accepted.append(self.ends[member])
        self.steps[step] = cases
        if accepted:
            self.ends[step] = min(accepted)

        if self.verbose:
            logger.debug("merged steps %s into %d", sorted(members), step)
        return step

    @staticmethod
    def coalesce(cases: list[StepCase]) -> list[StepCase]:
        # sort by range and join neighbours that lead to the same place
        result: list[StepCase] = []
        for case in sorted(cases, key=lambda c: c.byte_range):
            if result:
                last = result[-1]
                if (
                    last.byte_range.end + 1 == case.byte_range.start
                    and last.transition == case.transition
                    and not _has_conditions(case.transition)
                ):
                    result[-1] = StepCase(
                        ByteRange(last.byte_range.start, case.byte_range.end),
                        case.transition,
                    )
                    continue
            result.append(case)
        return result


def _has_conditions(transition: Transition) -> bool:
    return isinstance(transition, Continue) and bool(transition.conditions)


def join_conditions(
    first: tuple[Condition, ...], second: tuple[Condition, ...]
) -> tuple[Condition, ...]:
    result = list(first)
    for condition in second:
        if condition not in result:
            result.append(condition)
    return tuple(result)


def check_no_overlaps(steps: StepTable, ends: EndsMap):
    """
    Post-condition of the resolution: every step is deterministic and
    every referenced step exists
    """
    for step, cases in steps.items():
        for i, case1 in enumerate(cases):
            for case2 in cases[i + 1 :]:
                if case1.byte_range.overlaps(case2.byte_range):
                    raise UnresolvedAmbiguity(
                        f"step {step} is still ambiguous on "
                        f"{case1.byte_range.dumps()} and {case2.byte_range.dumps()}",
                        step,
                    )

            transition = case1.transition
            if not isinstance(transition, Continue):
                continue
            if transition.target not in steps:
                raise UnresolvedAmbiguity(
                    f"step {step} continues into missing step {transition.target}", step
                )
            for candidate, byte_range in transition.conditions:
                if candidate not in ends or candidate not in steps:
                    raise UnresolvedAmbiguity(
                        f"step {step} has a condition on non-accepting step {candidate}",
                        step,
                    )
                if byte_range != case1.byte_range:
                    raise UnresolvedAmbiguity(
                        f"step {step} has a condition on {byte_range.dumps()} "
                        f"inside the case {case1.byte_range.dumps()}",
                        step,
                    )

    for step in ends:
        if step not in steps:
            raise UnresolvedAmbiguity(f"accepting step {step} is missing", step)


def resolve_steps(
    steps: StepTable,
    ends: EndsMap,
    match_steps: dict[PatternIndex, StepId],
    initial: StepId,
    next_step: StepId,
    max_steps: int | None = None,
    verbose: bool = False,
) -> tuple[StepTable, EndsMap]:
    resolver = AmbiguityResolver(dict(steps), dict(ends), match_steps, next_step, max_steps, verbose)
    return resolver.resolve(initial)
