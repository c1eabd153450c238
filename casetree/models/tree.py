"""Models for the test tree and its flattened form."""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

type FocusState = Literal["normal", "pending", "focused"]
"""Focus marker carried by every tree node.

- ``focused`` lifts normal descendants to focused and makes every
  non-focused test in the run get skipped.
- ``pending`` lifts every descendant to pending; pending tests never run.
- ``normal`` leaves descendants untouched.
"""

type TestCode = Callable[[], None | Awaitable[Any]]


@dataclass(frozen=True, kw_only=True)
class SourceLocation:
    """Where a test body is defined."""

    source_path: str
    line_number: int

    @classmethod
    def empty(cls) -> "SourceLocation":
        """Location used when nothing better is known."""
        return cls(source_path="", line_number=0)


@dataclass(frozen=True)
class TestCase:
    """A single test body."""

    __test__ = False

    code: TestCode
    state: FocusState = "normal"


@dataclass(frozen=True)
class TestList:
    """An ordered group of tests sharing a focus state."""

    __test__ = False

    tests: Sequence["Test"] = field(default_factory=tuple)
    state: FocusState = "normal"


@dataclass(frozen=True)
class TestLabel:
    """Names a test or a group of tests."""

    __test__ = False

    label: str
    test: "Test"
    state: FocusState = "normal"


@dataclass(frozen=True)
class Sequenced:
    """Requires everything beneath it to run in order, one at a time."""

    test: "Test"


type Test = TestCase | TestList | TestLabel | Sequenced


@dataclass(frozen=True, kw_only=True)
class FlatTest:
    """A leaf of the tree with its full name and resolved focus state."""

    __test__ = False

    name: str
    code: TestCode
    state: FocusState
    sequenced: bool
