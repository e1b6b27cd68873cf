from __future__ import annotations

import sys
import time
import logging
import argparse
from pathlib import Path
from typing import Sequence

from re_set.config import Options
from re_set.library import PatternSet


logger = logging.getLogger("re_set")


def make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m re_set",
        description="Match every input line against a set of patterns at once",
    )
    parser.add_argument("patterns", nargs="+", help="Patterns of the set, in priority order")
    parser.add_argument(
        "-f", "--file", type=str, default="-", help="File to test, one input per line"
    )
    parser.add_argument(
        "-o", "--output", type=str, default="-", help="Output file"
    )
    parser.add_argument("--emit", action="store_true", help="Print the generated python source")
    parser.add_argument("--table", action="store_true", help="Print the step table")
    parser.add_argument("--dot", type=str, default=None, help="Write the graphviz dump to the path")
    parser.add_argument("--max-steps", type=int, default=Options.max_steps, help="Bound on merged steps")
    parser.add_argument("--codegen", action="store_true", help="Match with the generated function")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every construction stage")
    parser.add_argument("-t", "--time", action="store_true", help="Time the run and don't print any other")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = make_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        options = Options(max_steps=args.max_steps, verbose=args.verbose, use_codegen=args.codegen)
        pattern_set = PatternSet(args.patterns, options)
    except ValueError as e:  # ReSetError included
        print(f"error: {e}", file=sys.stderr)
        return 1

    if args.output == "-":
        output = sys.stdout
    else:
        output = Path(args.output).open("w", encoding="utf-8")

    try:
        if args.dot is not None:
            path = pattern_set.machine.dump_dot(args.dot)
            logger.debug("wrote %s", path)
        if args.table:
            print(pattern_set.machine.dumps(), end="", file=output)
        if args.emit:
            print(pattern_set.source, end="", file=output)
        if args.table or args.emit or args.dot is not None:
            return 0

        if args.file == "-":
            text = sys.stdin.read()
        elif Path(args.file).exists():
            text = Path(args.file).read_text(encoding="utf-8")
        else:
            print("File not found:", args.file, file=sys.stderr)
            return 1

        lines = text.splitlines()
        if args.time:
            start = time.perf_counter()
            for line in lines:
                _ = pattern_set.find(line)
            print(time.perf_counter() - start, file=output)
            return 0

        for line in lines:
            match = pattern_set.find(line)
            if match is None:
                print("FAIL", file=output)
            else:
                print("OK", match.index, match.text(), file=output)
        return 0
    finally:
        if output is not sys.stdout:
            output.close()


if __name__ == "__main__":
    sys.exit(main())
