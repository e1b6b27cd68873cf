from __future__ import annotations

import random
from collections import deque

import pytest
import regex

import re_set
from re_set.compactor import compact
from re_set.steps import Continue


PATTERN_SETS = [
    ["abc"],
    ["a", "ab", "abc"],
    ["a*", "ab"],
    ["~?[-+]?[0-9]"],
    ["[a-c]+", "b+c", "abc"],
    ["(?:ab)*", "a(?:ba)*b?"],
    ["x?y?z?", "xz", "y+"],
    ["a{2,3}", "a{1,}b", "[ab]{2}"],
    ["[0-9]+", "[0-9]+\\.[0-9]+", "\\.[0-9]+"],
    ["if", "[a-z]+", "[ \t]+"],
    ["a|b|ab", "ba"],
    ["(?:a|b)*c", "(?:ab|a)*", "b"],
]

ALPHABET = b"abcxyz019.-+~ \tif"


def reference(patterns: list[str], data: bytes) -> tuple[int, int] | None:
    # longest prefix first, then the lowest pattern index
    compiled = [regex.compile(pattern.encode()) for pattern in patterns]
    for end in range(len(data), -1, -1):
        for index, pattern in enumerate(compiled):
            if pattern.fullmatch(data, 0, end):
                return index, end
    return None


def random_inputs(seed: int, count: int = 200, max_length: int = 7) -> list[bytes]:
    rnd = random.Random(seed)
    return [
        bytes(rnd.choice(ALPHABET) for _ in range(rnd.randint(0, max_length)))
        for _ in range(count)
    ]


@pytest.mark.parametrize("patterns", PATTERN_SETS)
def test_agrees_with_backtracking_reference(patterns):
    interpreted = re_set.compile(patterns)
    generated = re_set.compile(patterns, re_set.Options(use_codegen=True))
    for data in random_inputs(len(patterns) * 7919):
        expected = reference(patterns, data)
        for pattern_set in (interpreted, generated):
            match = pattern_set.find(data)
            found = None if match is None else (match.index, match.end)
            assert found == expected, (patterns, data)


@pytest.mark.parametrize("patterns", PATTERN_SETS)
def test_table_invariants(patterns):
    machine = re_set.compile(patterns).machine

    # deterministic and without dangling references
    machine.check()

    # densely numbered
    assert sorted(machine.steps) == list(range(len(machine.steps)))
    assert set(machine.ends) <= set(machine.steps)

    # every step is reachable from the initial one
    seen = {machine.initial_step}
    queue = deque([machine.initial_step])
    while queue:
        step = queue.popleft()
        for _, transition in machine.steps[step]:
            if not isinstance(transition, Continue):
                continue
            for target in [transition.target] + [s for s, _ in transition.conditions]:
                if target not in seen:
                    seen.add(target)
                    queue.append(target)
    assert seen == set(machine.steps)

    # compacting again changes nothing
    assert compact(machine.steps, machine.ends, machine.initial_step) == (
        machine.steps,
        machine.ends,
        machine.initial_step,
    )


@pytest.mark.parametrize("patterns", PATTERN_SETS[:4])
def test_compilation_is_deterministic(patterns):
    first = re_set.compile(patterns).machine
    second = re_set.compile(patterns).machine
    assert first.steps == second.steps
    assert first.ends == second.ends
