from __future__ import annotations

import logging

from re_set.errors import EmptyAutomaton
from re_set.steps import (
    StepId,
    Condition,
    Continue,
    Transition,
    StepCase,
    StepTable,
    EndsMap,
)


logger = logging.getLogger(__name__)

STEP_SIZES = (8, 16, 32, 64)


def step_size(last_step: StepId) -> int:
    """
    Smallest unsigned integer width that can hold every step id
    >>> step_size(255), step_size(256)
    (8, 16)
    """

    bits = max(last_step, 0).bit_length()
    for size in STEP_SIZES:
        if bits <= size:
            return size
    raise OverflowError(f"step id {last_step} does not fit into {STEP_SIZES[-1]} bits")


def compact(
    steps: StepTable, ends: EndsMap, initial: StepId | None
) -> tuple[StepTable, EndsMap, StepId]:
    """
    Renumbers the steps densely by rank, keeping their relative order
    """

    if not steps or initial is None:
        raise EmptyAutomaton()

    ids = sorted(set(steps) | set(ends))
    mapping = {old: new for new, old in enumerate(ids)}

    def remap_condition(condition: Condition) -> Condition:
        step, byte_range = condition
        return mapping[step], byte_range

    def remap(transition: Transition) -> Transition:
        if isinstance(transition, Continue):
            return Continue(
                mapping[transition.target],
                tuple(map(remap_condition, transition.conditions)),
            )
        return transition

    new_steps: StepTable = {}
    for step in ids:
        cases = steps.get(step, [])
        new_steps[mapping[step]] = [
            StepCase(case.byte_range, remap(case.transition)) for case in cases
        ]
    new_ends = {mapping[step]: index for step, index in ends.items()}

    if ids[-1] != len(ids) - 1:
        logger.debug("compacted step ids %d..%d into 0..%d", ids[0], ids[-1], len(ids) - 1)
    return new_steps, new_ends, mapping[initial]
