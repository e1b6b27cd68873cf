from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Options:
    # bound on the steps the resolver may create by merging, None is unbounded
    max_steps: int | None = 10_000
    # log every intermediate table at DEBUG level
    verbose: bool = False
    # match through the emitted python function instead of the table interpreter
    use_codegen: bool = False
    function_name: str = "match_set"

    def __post_init__(self):
        if self.max_steps is not None and self.max_steps < 0:
            raise ValueError(f"max_steps must be non-negative, got {self.max_steps}")
        if not self.function_name.isidentifier():
            raise ValueError(f"function_name must be an identifier, got {self.function_name!r}")


DEFAULT_OPTIONS = Options()
