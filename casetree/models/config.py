"""Configuration of a test run."""

import logging
from collections.abc import Callable

from pydantic import Field, InstanceOf

from casetree.locator import empty_location
from casetree.models.base import Model
from casetree.models.tree import SourceLocation, Test, TestCode
from casetree.printers import TestPrinters


def _keep_all(test: Test) -> Test:
    return test


class RunConfig(Model):
    """Options for a single test run, fixed for its whole duration."""

    parallel: bool = Field(
        default=True, description="Run tests not marked as sequenced concurrently"
    )
    max_parallel: int | None = Field(
        default=None, ge=1, description="Upper bound on concurrently running tests"
    )
    fail_on_focused_tests: bool = Field(
        default=False, description="Fail the run when any focused test exists"
    )
    test_filter: Callable[[Test], Test] = Field(
        default=_keep_all, description="Selects the tests to run"
    )
    printer: InstanceOf[TestPrinters] = Field(
        default_factory=TestPrinters.default, description="Progress hooks"
    )
    verbosity: int = Field(default=logging.INFO, description="Logging level")
    locate: Callable[[TestCode], SourceLocation] = Field(
        default=empty_location, description="Finds the source of a test body"
    )
