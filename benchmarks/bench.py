"""
Times the standard `re`, the third-party `regex` and both re_set matchers
(table interpreter and emitted function) on growing inputs.

    python benchmarks/bench.py --plot timing.png
"""

from __future__ import annotations

import re
import time
import random
import argparse
from collections import defaultdict

import regex

from re_set import Options, PatternSet


PATTERN = "~?[-+]?[[:digit:]]"
REFERENCE_PATTERN = rb"~?[-+]?[0-9]"
SAMPLE = b"~-3"
SIZES = (1_000, 10_000, 100_000)


def make_lines(size: int, seed: int = 0) -> list[bytes]:
    rnd = random.Random(seed)
    lines = []
    for _ in range(size):
        if rnd.random() < 0.5:
            lines.append(SAMPLE)
        else:
            lines.append(bytes(rnd.choice(b"~-+0123456789x") for _ in range(rnd.randint(1, 5))))
    return lines


def make_matchers() -> dict:
    re_compiled = re.compile(REFERENCE_PATTERN)
    regex_compiled = regex.compile(REFERENCE_PATTERN)
    interpreted = PatternSet([PATTERN])
    generated = PatternSet([PATTERN], Options(use_codegen=True))
    return {
        "re": re_compiled.match,
        "regex": regex_compiled.match,
        "re_set": interpreted.find,
        "re_set codegen": generated.find,
    }


def measure(sizes=SIZES, repeat: int = 3) -> dict[str, list[tuple[int, float]]]:
    matchers = make_matchers()
    timings: dict[str, list[tuple[int, float]]] = defaultdict(list)

    for size in sizes:
        lines = make_lines(size)
        for name, match in matchers.items():
            best = float("inf")
            for _ in range(repeat):
                start = time.perf_counter()
                for line in lines:
                    _ = match(line)
                best = min(best, time.perf_counter() - start)
            timings[name].append((size, best))
            print(f"{name} -t {size}: {best}")

    return timings


def visualize(timings: dict[str, list[tuple[int, float]]], path: str):
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(figsize=(8, 6))
    fig.suptitle(f"Time (s) vs. Input Lines, {PATTERN}")
    for name, data_points in timings.items():
        sizes, times = zip(*data_points)
        ax.plot(sizes, times, marker="o", label=name)
    ax.set_xscale("log")
    ax.set_yscale("log")
    ax.set_xlabel("Input Lines")
    ax.set_ylabel("Time")
    ax.legend()
    fig.savefig(path)


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--plot", type=str, default=None, help="Save the plot to the path")
    parser.add_argument("--repeat", type=int, default=3)
    args = parser.parse_args()

    timings = measure(repeat=args.repeat)
    if args.plot is not None:
        visualize(timings, args.plot)


if __name__ == "__main__":
    main()
