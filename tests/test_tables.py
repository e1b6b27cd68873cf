from __future__ import annotations

import pytest

import re_set
from re_set.compactor import compact, step_size
from re_set.errors import EmptyAutomaton, UnresolvedAmbiguity
from re_set.machine import StateMachine
from re_set.resolver import resolve_steps, check_no_overlaps
from re_set.steps import ByteRange, Continue, Accept, StepCase, dumps_table


def case(start: str, end: str, transition) -> StepCase:
    return StepCase(ByteRange(ord(start), ord(end)), transition)


def test_overlapping_accepts_keep_lowest_index():
    steps = {0: [case("a", "c", Accept(1)), case("b", "b", Accept(0))]}
    resolved, ends = resolve_steps(steps, {}, {}, 0, 10)
    assert resolved == {
        0: [case("a", "a", Accept(1)), case("b", "b", Accept(0)), case("c", "c", Accept(1))]
    }
    assert ends == {}


def test_adjacent_equal_cases_are_joined():
    steps = {0: [case("a", "a", Continue(1)), case("b", "b", Continue(1))], 1: []}
    resolved, ends = resolve_steps(steps, {1: 0}, {0: 1}, 0, 10)
    assert resolved[0] == [case("a", "b", Continue(1))]
    assert ends == {1: 0}


def test_merge_keeps_shared_target_intact():
    steps = {
        0: [case("a", "a", Continue(1)), case("a", "a", Continue(2)), case("b", "b", Continue(1))],
        1: [case("x", "x", Accept(0))],
        2: [case("y", "y", Accept(1))],
    }
    resolved, _ = resolve_steps(steps, {}, {}, 0, 3)
    assert resolved[0] == [case("a", "a", Continue(3)), case("b", "b", Continue(1))]
    assert resolved[1] == [case("x", "x", Accept(0))]
    assert resolved[3] == [case("x", "x", Accept(0)), case("y", "y", Accept(1))]
    assert 2 not in resolved


def test_merge_is_reused():
    steps = {
        0: [case("a", "a", Continue(1)), case("a", "a", Continue(2)), case("b", "b", Continue(4))],
        1: [case("b", "b", Continue(1)), case("c", "c", Accept(0))],
        2: [case("b", "b", Continue(2)), case("d", "d", Accept(1))],
        4: [],
    }
    resolved, _ = resolve_steps(steps, {4: 0}, {0: 4}, 0, 5)
    # the merged step loops into itself instead of creating new ones
    assert resolved[5] == [
        case("b", "b", Continue(5)),
        case("c", "c", Accept(0)),
        case("d", "d", Accept(1)),
    ]
    assert set(resolved) == {0, 4, 5}


def test_continue_and_accept_become_condition():
    steps = {0: [case("a", "a", Accept(0)), case("a", "a", Continue(1))], 1: [], 2: []}
    resolved, ends = resolve_steps(steps, {2: 0}, {0: 2}, 0, 3)
    assert resolved[0] == [case("a", "a", Continue(1, ((2, ByteRange(97, 97)),)))]
    assert ends == {2: 0}


def test_merge_bound():
    steps = {0: [case("a", "a", Continue(1)), case("a", "a", Continue(2))], 1: [], 2: []}
    with pytest.raises(UnresolvedAmbiguity):
        resolve_steps(steps, {}, {}, 0, 3, max_steps=0)


def test_check_no_overlaps():
    check_no_overlaps({0: [case("a", "b", Continue(0))]}, {})
    with pytest.raises(UnresolvedAmbiguity):
        check_no_overlaps({0: [case("a", "b", Continue(0)), case("b", "c", Accept(0))]}, {})
    with pytest.raises(UnresolvedAmbiguity):
        check_no_overlaps({0: [case("a", "a", Continue(5))]}, {})
    with pytest.raises(UnresolvedAmbiguity):
        check_no_overlaps({0: []}, {3: 0})


@pytest.mark.parametrize(
    "condition, ok",
    [
        ((1, ByteRange(97, 98)), True),
        ((1, ByteRange(97, 97)), False),
        ((1, ByteRange(96, 98)), False),
        ((2, ByteRange(97, 98)), False),
    ],
)
def test_check_condition_covers_case(condition, ok):
    steps = {0: [case("a", "b", Continue(1, (condition,)))], 1: [], 2: []}
    if ok:
        check_no_overlaps(steps, {1: 0})
    else:
        with pytest.raises(UnresolvedAmbiguity):
            check_no_overlaps(steps, {1: 0})


def test_compact_renumbers_by_rank():
    steps = {
        3: [case("a", "a", Continue(10, ((7, ByteRange(97, 97)),)))],
        7: [],
        10: [case("b", "b", Accept(0))],
    }
    new_steps, new_ends, initial = compact(steps, {7: 0}, 3)
    assert new_steps == {
        0: [case("a", "a", Continue(2, ((1, ByteRange(97, 97)),)))],
        1: [],
        2: [case("b", "b", Accept(0))],
    }
    assert new_ends == {1: 0}
    assert initial == 0


def test_compact_dense_is_identity():
    machine = re_set.compile(["a", "ab", "abc"]).machine
    steps, ends, initial = compact(machine.steps, machine.ends, machine.initial_step)
    assert steps == machine.steps
    assert ends == machine.ends
    assert initial == machine.initial_step


def test_compact_empty():
    with pytest.raises(EmptyAutomaton):
        compact({}, {}, 0)
    with pytest.raises(EmptyAutomaton):
        compact({0: []}, {}, None)


@pytest.mark.parametrize(
    "last, size",
    [(0, 8), (255, 8), (256, 16), (65535, 16), (65536, 32), (2**32 - 1, 32), (2**32, 64)],
)
def test_step_size(last, size):
    assert step_size(last) == size


def test_empty_machine():
    machine = StateMachine({}, {}, 0)
    with pytest.raises(EmptyAutomaton):
        machine.first_step()
    with pytest.raises(EmptyAutomaton):
        machine.last_step()


def test_machine_bounds():
    machine = re_set.compile(["a", "ab", "abc"]).machine
    assert machine.first_step() == 0
    assert machine.last_step() == 4
    assert machine.step_size() == 8


def test_dumps_table():
    machine = re_set.compile(["abc"]).machine
    assert dumps_table(machine.steps, machine.ends) == (
        "0:\n    a => step = 1\n1:\n    b => step = 2\n2:\n    c => return 0\n"
    )
    assert machine.dumps() == dumps_table(machine.steps, machine.ends)


def test_dumps_dot(tmp_path):
    machine = re_set.compile(["a", "ab"]).machine
    dot = machine.dumps_dot()
    assert dot.startswith("digraph G {\n")
    assert dot.endswith("}\n")
    assert "n [shape=point" in dot
    assert "accept1" in dot
    path = machine.dump_dot(tmp_path / "machine.dot")
    assert path.read_text(encoding="utf-8") == dot
