from __future__ import annotations

from dataclasses import dataclass
from typing import NoReturn

from re_set.classes import (
    RE,
    Epsilon,
    SymbolRanges,
    Concat,
    Or,
    Repeat,
    Group,
    Look,
    LookKind,
    make_symbol,
)
from re_set.errors import PatternSyntaxError, UnsupportedConstruct
from re_set.helpers import Range, iter_unique


PIPE = "|"
BACKSLASH = "\\"
DOT = "."
STAR = "*"
PLUS = "+"
QUESTION_MARK = "?"
CARET = "^"
DOLLAR = "$"
MINUS = "-"
OPEN_ROUND_BRACKET = "("
CLOSE_ROUND_BRACKET = ")"
OPEN_CURLY_BRACKET = "{"
CLOSE_CURLY_BRACKET = "}"
OPEN_SQUARE_BRACKET = "["
CLOSE_SQUARE_BRACKET = "]"
REPEAT_CHARS = STAR + PLUS + QUESTION_MARK + OPEN_CURLY_BRACKET
META_CHARS = (
    PIPE
    + BACKSLASH
    + DOT
    + REPEAT_CHARS
    + CARET
    + DOLLAR
    + OPEN_ROUND_BRACKET
    + CLOSE_ROUND_BRACKET
    + OPEN_SQUARE_BRACKET
)

MAX_REPEAT = 1000

WHITESPACES: tuple[Range, ...] = ((0x09, 0x0D), (0x20, 0x20))
WORDS: tuple[Range, ...] = ((0x30, 0x39), (0x41, 0x5A), (0x5F, 0x5F), (0x61, 0x7A))
DIGITS: tuple[Range, ...] = ((0x30, 0x39),)

SPECIAL_ESCAPES = {
    "d": SymbolRanges(DIGITS),
    "D": SymbolRanges(DIGITS, False),
    "s": SymbolRanges(WHITESPACES),
    "S": SymbolRanges(WHITESPACES, False),
    "w": SymbolRanges(WORDS),
    "W": SymbolRanges(WORDS, False),
}

LITERAL_ESCAPES = {
    "n": 0x0A,
    "t": 0x09,
    "r": 0x0D,
    "f": 0x0C,
    "v": 0x0B,
    "a": 0x07,
    "0": 0x00,
}

LOOK_ESCAPES = {
    "A": LookKind.START_TEXT,
    "z": LookKind.END_TEXT,
    "Z": LookKind.END_TEXT,
    "b": LookKind.WORD_BOUNDARY,
    "B": LookKind.NOT_WORD_BOUNDARY,
}

POSIX_CLASSES: dict[str, tuple[Range, ...]] = {
    "alnum": ((0x30, 0x39), (0x41, 0x5A), (0x61, 0x7A)),
    "alpha": ((0x41, 0x5A), (0x61, 0x7A)),
    "ascii": ((0x00, 0x7F),),
    "blank": ((0x09, 0x09), (0x20, 0x20)),
    "cntrl": ((0x00, 0x1F), (0x7F, 0x7F)),
    "digit": DIGITS,
    "graph": ((0x21, 0x7E),),
    "lower": ((0x61, 0x7A),),
    "print": ((0x20, 0x7E),),
    "punct": ((0x21, 0x2F), (0x3A, 0x40), (0x5B, 0x60), (0x7B, 0x7E)),
    "space": WHITESPACES,
    "upper": ((0x41, 0x5A),),
    "word": WORDS,
    "xdigit": ((0x30, 0x39), (0x41, 0x46), (0x61, 0x66)),
}

ANY_BUT_NEWLINE = SymbolRanges(((0x0A, 0x0A),), False).minimized_as_accepting()


def encode_literal(char: str) -> RE:
    data = char.encode("utf-8")
    if len(data) == 1:
        return make_symbol(data[0])
    return Concat(tuple(make_symbol(byte) for byte in data))


@dataclass
class Parser:
    string: str = ""
    position: int = 0

    def peek(self, at: int = 0) -> str:
        pos = self.position + at
        if pos >= len(self.string):
            return ""
        return self.string[pos]

    def match(self, string: str) -> bool:
        return self.string[self.position : self.position + len(string)] == string

    def match_and_consume(self, string: str) -> bool:
        if self.match(string):
            self.position += len(string)
            return True
        return False

    def consume(self, amount: int = 1):
        self.position += amount
        self.position = min(self.position, len(self.string))

    def report(self, message: str) -> NoReturn:
        raise PatternSyntaxError(message, self.position)

    def parse(self, string: str) -> RE:
        self.string = string
        self.position = 0

        res = self.parse_expr()

        if self.position < len(self.string):
            if self.peek() == CLOSE_ROUND_BRACKET:
                self.report(f"Unbalanced '{CLOSE_ROUND_BRACKET}'")
            self.report(f"Unexpected {self.peek()!r}")
        return res

    def parse_expr(self) -> RE:
        return self.parse_or()

    def parse_or(self) -> RE:
        # r1|r2|r3|...|rn

        expressions = []

        while 1:
            expr = self.parse_concat()
            expressions.append(Epsilon() if expr is None else expr)
            if not self.match_and_consume(PIPE):
                break

        expressions = tuple(iter_unique(expressions))
        if len(expressions) == 1:
            return expressions[0]
        return Or(expressions)

    def parse_concat(self) -> RE | None:
        # r1r2r3...rn

        expressions = []

        while 1:
            expr = self.parse_modifiers()
            if expr is None:
                break
            expressions.append(expr)

        if not expressions:
            return None
        if len(expressions) == 1:
            return expressions[0]
        return Concat(tuple(expressions))

    def parse_modifiers(self) -> RE | None:
        # r?  r*  r+  r{number}  r{min,}  r{,max}  r{min,max}
        # and the lazy versions with trailing '?'

        expr = self.parse_atom()

        if expr is None:
            return None

        while 1:
            if self.match_and_consume(QUESTION_MARK):
                min, max = 0, 1
            elif self.match_and_consume(STAR):
                min, max = 0, None
            elif self.match_and_consume(PLUS):
                min, max = 1, None
            elif self.match_and_consume(OPEN_CURLY_BRACKET):
                min, max = self.parse_inner_repeat()
                if not self.match_and_consume(CLOSE_CURLY_BRACKET):
                    self.report(f"Expected '{CLOSE_CURLY_BRACKET}'")
            else:
                break

            if isinstance(expr, Look):
                self.report("Nothing to repeat")
            greedy = not self.match_and_consume(QUESTION_MARK)
            expr = Repeat(expr, min, max, greedy)

        return expr

    def parse_inner_repeat(self) -> tuple[int, int | None]:
        # number
        # min,
        # ,max
        # min,max

        if self.match_and_consume(","):
            count = self.parse_number()
            if count is None:
                self.report("Expected number")
            return 0, count  # ,max

        count = self.parse_number()
        if count is None:
            self.report("Expected number or comma")

        if self.match_and_consume(","):
            max = self.parse_number()
            if max is None:
                return count, None  # min,
            if max < count:
                self.report(f"Invalid repetition range {{{count},{max}}}")
            return count, max  # min,max

        return count, count  # number

    def parse_atom(self) -> RE | None:
        char = self.peek()
        if char == "" or char == PIPE or char == CLOSE_ROUND_BRACKET:
            return None
        if char in REPEAT_CHARS:
            self.report("Nothing to repeat")

        return (
            self.parse_group()
            or self.parse_symbol_set()
            or self.parse_look()
            or self.parse_symbol()
        )

    def parse_group(self) -> RE | None:
        # (r)  (?:r)  (?P<name>r)  (?<name>r)

        if not self.match_and_consume(OPEN_ROUND_BRACKET):
            return None

        capturing = True
        name = None
        if self.match_and_consume("?"):
            if self.match_and_consume(":"):
                capturing = False
            elif self.match("=") or self.match("!") or self.match("<=") or self.match("<!"):
                raise UnsupportedConstruct("lookaround", None)
            elif self.match_and_consume("P<") or self.match_and_consume("<"):
                name = self.parse_string_until(">")
                if name is None or not name.isidentifier():
                    self.report("Expected group name")
                if not self.match_and_consume(">"):
                    self.report("Expected '>'")
            else:
                self.report("Unknown extension of the group syntax")

        expr = self.parse_expr()

        if not self.match_and_consume(CLOSE_ROUND_BRACKET):
            self.report(f"Expected '{CLOSE_ROUND_BRACKET}'")

        return Group(expr, capturing, name)

    def parse_look(self) -> RE | None:
        if self.match_and_consume(CARET):
            return Look(LookKind.START_LINE)
        if self.match_and_consume(DOLLAR):
            return Look(LookKind.END_LINE)
        if self.peek() == BACKSLASH and self.peek(1) in LOOK_ESCAPES:
            kind = LOOK_ESCAPES[self.peek(1)]
            self.consume(2)
            return Look(kind)
        return None

    def parse_symbol(self) -> RE:
        # .
        # symbol
        # \escape

        if self.match_and_consume(DOT):
            return ANY_BUT_NEWLINE

        if self.peek() == BACKSLASH:
            return self.parse_escape()

        char = self.peek()
        if char in META_CHARS:
            self.report(f"Unexpected {char!r}")
        self.consume()
        return encode_literal(char)

    def parse_escape(self) -> RE:
        self.consume()  # backslash
        char = self.peek()
        if char == "":
            self.report("Incomplete escape")
        self.consume()

        special = SPECIAL_ESCAPES.get(char)
        if special is not None:
            return special.minimized_as_accepting()
        byte = LITERAL_ESCAPES.get(char)
        if byte is not None:
            return make_symbol(byte)
        if char == "x":
            return make_symbol(self.parse_hex())
        if char.isalnum():
            self.report(f"Bad escape '\\{char}'")
        return encode_literal(char)

    def parse_hex(self) -> int:
        digits = self.string[self.position : self.position + 2]
        if len(digits) != 2 or any(d not in "0123456789abcdefABCDEF" for d in digits):
            self.report("Expected two hex digits")
        self.consume(2)
        return int(digits, 16)

    def parse_class_byte(self) -> int | SymbolRanges:
        # one member of a symbol set: a byte or a whole class like \d
        if self.peek() == BACKSLASH:
            self.consume()
            char = self.peek()
            if char == "":
                self.report("Incomplete escape")
            self.consume()
            special = SPECIAL_ESCAPES.get(char)
            if special is not None:
                return special
            byte = LITERAL_ESCAPES.get(char)
            if byte is not None:
                return byte
            if char == "x":
                return self.parse_hex()
            if char == "b":
                return 0x08
            if char.isalnum():
                self.report(f"Bad escape '\\{char}'")
        else:
            char = self.peek()
            self.consume()

        if ord(char) > 0x7F:
            self.report("Non-ASCII characters are not supported in symbol sets")
        return ord(char)

    def parse_symbol_set(self) -> RE | None:
        # [a]  [abc]  [a-z0-9]  [^...]  []]  [-a]  [a-]  [[:digit:]]
        # and any mix of them

        if not self.match_and_consume(OPEN_SQUARE_BRACKET):
            return None

        accept = not self.match_and_consume(CARET)
        ranges: list[Range] = []
        first = True

        while 1:
            if self.peek() == "":
                self.report(f"Expected '{CLOSE_SQUARE_BRACKET}'")
            if self.peek() == CLOSE_SQUARE_BRACKET and not first:
                self.consume()
                break
            first = False

            if self.match("[:"):
                ranges.extend(self.parse_posix_class())
                continue

            start = self.parse_class_byte()
            if isinstance(start, SymbolRanges):
                ranges.extend(start.minimized_as_accepting().ranges)
                continue

            if self.peek() == MINUS and self.peek(1) not in ("", CLOSE_SQUARE_BRACKET):
                self.consume()
                end = self.parse_class_byte()
                if isinstance(end, SymbolRanges):
                    self.report("Cannot make symbol range out of a class")
                if end < start:
                    self.report("Invalid symbol range")
                ranges.append((start, end))
            else:
                ranges.append((start, start))

        return SymbolRanges(tuple(ranges), accept).minimized_as_accepting()

    def parse_posix_class(self) -> tuple[Range, ...]:
        self.consume(2)
        negate = self.match_and_consume(CARET)
        name = self.parse_string_until(":")
        if not self.match_and_consume(":]"):
            self.report("Expected ':]'")
        ranges = POSIX_CLASSES.get(name or "")
        if ranges is None:
            self.report(f"Unknown class name {name!r}")
        return SymbolRanges(ranges, not negate).minimized_as_accepting().ranges

    def parse_string_until(self, char: str) -> str | None:
        pos = self.position
        while self.peek() and self.peek() != char:
            self.consume()

        if pos == self.position:
            return None
        return self.string[pos : self.position]

    def parse_number(self) -> int | None:
        pos = self.position
        while self.peek() and self.peek().isdigit():
            self.consume()

        if pos == self.position:
            return None
        number = int(self.string[pos : self.position])
        if number > MAX_REPEAT:
            self.report(f"Repetition count {number} exceeds {MAX_REPEAT}")
        return number


def parse(string: str) -> RE:
    return Parser().parse(string)
