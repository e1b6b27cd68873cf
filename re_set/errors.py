from __future__ import annotations


class ReSetError(ValueError):
    """
    Base of every error raised while compiling a pattern set.
    All of them are fatal: there is no partial table to fall back to.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.pattern: str | None = None
        self.pattern_index: int | None = None

    def with_pattern(self, pattern: str | None, index: int | None):
        if self.pattern is None and self.pattern_index is None:
            self.pattern = pattern
            self.pattern_index = index
        return self

    def __str__(self) -> str:
        if self.pattern_index is None:
            return self.message
        return f"{self.message} (pattern {self.pattern_index}: {self.pattern!r})"


class PatternSyntaxError(ReSetError):
    def __init__(self, message: str, position: int):
        super().__init__(f"{message} at position {position}")
        self.position = position


class UnsupportedConstruct(ReSetError):
    def __init__(self, construct: str, position: int | None = None):
        if position is None:
            message = f"unsupported construct: {construct}"
        else:
            message = f"unsupported construct at instruction {position}: {construct}"
        super().__init__(message)
        self.construct = construct
        self.position = position


class UnresolvedAmbiguity(ReSetError):
    def __init__(self, message: str, step: int | None = None):
        super().__init__(message)
        self.step = step


class EmptyAutomaton(ReSetError):
    def __init__(self, message: str = "state machine should not be empty"):
        super().__init__(message)
