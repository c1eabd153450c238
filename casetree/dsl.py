"""Helpers for writing test trees."""

from collections.abc import Callable, Iterable, Sequence
from typing import Any, NoReturn

from casetree.errors import AssertionFailure, SkipRequest
from casetree.models.tree import (
    Sequenced,
    Test,
    TestCase,
    TestCode,
    TestLabel,
    TestList,
)


def failtest(message: str) -> NoReturn:
    """Fail the running test."""
    raise AssertionFailure(message)


def skiptest(message: str) -> NoReturn:
    """Skip the running test."""
    raise SkipRequest(message)


def test_case(name: str, code: TestCode) -> Test:
    """Build a test case, skipped when another test is focused."""
    return TestLabel(name, TestCase(code, "normal"), "normal")


def ftest_case(name: str, code: TestCode) -> Test:
    """Build a focused test case, every unfocused test gets skipped."""
    return TestLabel(name, TestCase(code, "focused"), "focused")


def ptest_case(name: str, code: TestCode) -> Test:
    """Build a pending test case, it never runs."""
    return TestLabel(name, TestCase(code, "pending"), "pending")


def test_list(name: str, tests: Sequence[Test]) -> Test:
    """Build a named group of tests."""
    return TestLabel(name, TestList(tuple(tests), "normal"), "normal")


def ftest_list(name: str, tests: Sequence[Test]) -> Test:
    """Build a focused group of tests."""
    return TestLabel(name, TestList(tuple(tests), "focused"), "focused")


def ptest_list(name: str, tests: Sequence[Test]) -> Test:
    """Build a pending group of tests."""
    return TestLabel(name, TestList(tuple(tests), "pending"), "pending")


def test_sequenced(test: Test) -> Test:
    """Run a test or group in order, never alongside other tests.

    Use for benchmarks and anything sensitive to interference.
    """
    return Sequenced(test)


def test_fixture[T](
    setup: Callable[[T], TestCode], cases: Iterable[tuple[str, T]]
) -> list[Test]:
    """Build one test case per ``(name, partial)`` pair through ``setup``."""
    return [test_case(name, setup(partial)) for name, partial in cases]


def test_param[P](
    param: P, cases: Iterable[tuple[str, Callable[[P], Any]]]
) -> list[Test]:
    """Build one test case per ``(name, partial)`` pair, applied to ``param``."""

    def bind(partial: Callable[[P], Any]) -> TestCode:
        return lambda: partial(param)

    return [test_case(name, bind(partial)) for name, partial in cases]


# Keep pytest from collecting the builders as tests.
for _builder in (test_case, test_list, test_sequenced, test_fixture, test_param):
    _builder.__test__ = False  # type: ignore[attr-defined]
del _builder
