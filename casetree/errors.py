"""Signals raised by test bodies and faults raised by the engine."""


class TestSignal(Exception):
    """Base for exceptions a test body raises to report its own outcome."""

    __test__ = False


class AssertionFailure(TestSignal, AssertionError):
    """Raised to fail the running test.

    Subclasses ``AssertionError`` so plain ``assert`` statements and
    assertion helpers from other libraries are reported the same way.
    """


class SkipRequest(TestSignal):
    """Raised to skip the running test."""


class FocusStateError(RuntimeError):
    """Raised when a focused test ends up suppressed by focus wrapping."""
