"""Models for test execution results."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import ClassVar

from casetree.models.tree import SourceLocation


@dataclass(frozen=True)
class Passed:
    """The test body returned normally."""

    tag: ClassVar[int] = 0

    def __str__(self) -> str:
        return "Passed"


@dataclass(frozen=True)
class Ignored:
    """The test was skipped."""

    tag: ClassVar[int] = 1

    reason: str

    def __str__(self) -> str:
        return f"Ignored: {self.reason}"


@dataclass(frozen=True)
class Failed:
    """The test body raised an assertion failure."""

    tag: ClassVar[int] = 2

    message: str

    def __str__(self) -> str:
        return f"Failed: {self.message}"


@dataclass(frozen=True)
class Error:
    """The test body raised something other than a test signal."""

    tag: ClassVar[int] = 3

    cause: BaseException

    def __str__(self) -> str:
        return f"Exception: {type(self.cause).__name__}: {self.cause}"


type TestResult = Passed | Ignored | Failed | Error


@dataclass(frozen=True, kw_only=True)
class TestRunResult:
    """Outcome of a single test."""

    __test__ = False

    name: str
    location: SourceLocation
    result: Passed | Ignored | Failed | Error
    duration: float

    def __str__(self) -> str:
        return f"{self.name}: {self.result} ({self.duration:.3f}s)"


@dataclass(frozen=True, kw_only=True)
class TestResultSummary:
    """Results bucketed by outcome.

    Each bucket keeps the order the results were produced in.
    """

    __test__ = False

    passed: Sequence[TestRunResult] = field(default_factory=tuple)
    ignored: Sequence[TestRunResult] = field(default_factory=tuple)
    failed: Sequence[TestRunResult] = field(default_factory=tuple)
    errored: Sequence[TestRunResult] = field(default_factory=tuple)
    duration: float = 0.0

    @property
    def total(self) -> int:
        """Number of tests in every bucket."""
        return (
            len(self.passed) + len(self.ignored) + len(self.failed) + len(self.errored)
        )

    @property
    def error_code(self) -> int:
        """Bit 0 set when any test failed, bit 1 when any test errored."""
        return (1 if self.failed else 0) | (2 if self.errored else 0)

    def __add__(self, other: "TestResultSummary") -> "TestResultSummary":
        return TestResultSummary(
            passed=(*self.passed, *other.passed),
            ignored=(*self.ignored, *other.ignored),
            failed=(*self.failed, *other.failed),
            errored=(*self.errored, *other.errored),
            duration=self.duration + other.duration,
        )

    def __str__(self) -> str:
        run = len(self.passed) + len(self.failed) + len(self.errored)
        return (
            f"{run} tests run: {len(self.passed)} passed, {len(self.ignored)} "
            f"ignored, {len(self.failed)} failed, {len(self.errored)} errored "
            f"({self.duration:.3f}s)"
        )
