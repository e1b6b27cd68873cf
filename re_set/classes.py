from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from re_set.helpers import (
    Range,
    merge_ranges,
    complement_ranges,
    byte_repr,
)


@dataclass(frozen=True)
class RE:
    pass


@dataclass(frozen=True)
class Epsilon(RE):
    pass


@dataclass(frozen=True)
class SymbolRanges(RE):
    ranges: tuple[Range, ...]  # inclusive (start, end) byte pairs
    accept: bool = True

    def with_minimized_ranges(self) -> SymbolRanges:
        return SymbolRanges(tuple(merge_ranges(self.ranges)), self.accept)

    def minimized_as_accepting(self) -> SymbolRanges:
        if self.accept:
            return self.with_minimized_ranges()
        return SymbolRanges(tuple(complement_ranges(self.ranges)), True)

    def dumps(self) -> str:
        pairs = []
        for start, end in self.ranges:
            if start == end:
                pairs.append(byte_repr(start))
            else:
                pairs.append(f"{byte_repr(start)}-{byte_repr(end)}")
        middle = "".join(pairs)
        if not self.accept:
            return f"[^{middle}]"
        if len(self.ranges) == 1 and self.ranges[0][0] == self.ranges[0][1]:
            return middle
        return f"[{middle}]"


def make_symbol(byte: int) -> SymbolRanges:
    return SymbolRanges(((byte, byte),))


@dataclass(frozen=True)
class Concat(RE):
    expressions: tuple[RE, ...]


@dataclass(frozen=True)
class Or(RE):
    expressions: tuple[RE, ...]


@dataclass(frozen=True)
class Repeat(RE):
    expr: RE
    min: int
    max: int | None
    greedy: bool = True


@dataclass(frozen=True)
class Group(RE):
    expr: RE
    capturing: bool = True
    name: str | None = None


class LookKind(Enum):
    START_LINE = "^"
    END_LINE = "$"
    START_TEXT = "\\A"
    END_TEXT = "\\z"
    WORD_BOUNDARY = "\\b"
    NOT_WORD_BOUNDARY = "\\B"


@dataclass(frozen=True)
class Look(RE):
    kind: LookKind


class Visitor:
    def visit(self, node, *args, **kwargs):
        method = "visit_" + node.__class__.__name__
        visitor = getattr(self, method, None)
        if visitor is None:
            raise NotImplementedError(
                f"visit method for node '{type(node).__name__}' is not implemented"
            )
        return visitor(node, *args, **kwargs)


class AstDump(Visitor):
    """
    Renders the tree back into the regex syntax, mostly for diagnostics
    """

    def visit_Epsilon(self, node: Epsilon) -> str:
        return "(?:)"

    def visit_SymbolRanges(self, node: SymbolRanges) -> str:
        return node.dumps()

    def visit_Concat(self, node: Concat) -> str:
        return "".join(self.visit(it) for it in node.expressions)

    def visit_Or(self, node: Or) -> str:
        return "(?:" + "|".join(self.visit(it) for it in node.expressions) + ")"

    def visit_Repeat(self, node: Repeat) -> str:
        if (node.min, node.max) == (0, None):
            op = "*"
        elif (node.min, node.max) == (1, None):
            op = "+"
        elif (node.min, node.max) == (0, 1):
            op = "?"
        elif node.max is None:
            op = f"{{{node.min},}}"
        elif node.min == node.max:
            op = f"{{{node.min}}}"
        else:
            op = f"{{{node.min},{node.max}}}"
        if not node.greedy:
            op += "?"
        return f"(?:{self.visit(node.expr)}){op}"

    def visit_Group(self, node: Group) -> str:
        if not node.capturing:
            return f"(?:{self.visit(node.expr)})"
        if node.name is not None:
            return f"(?P<{node.name}>{self.visit(node.expr)})"
        return f"({self.visit(node.expr)})"

    def visit_Look(self, node: Look) -> str:
        return node.kind.value


_ast_dump = AstDump()


def dump_ast(node: RE) -> str:
    return _ast_dump.visit(node)
