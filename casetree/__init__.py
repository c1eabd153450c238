"""Evaluation of declarative test trees."""

from casetree.dsl import (
    failtest,
    ftest_case,
    ftest_list,
    ptest_case,
    ptest_list,
    skiptest,
    test_case,
    test_fixture,
    test_list,
    test_param,
    test_sequenced,
)
from casetree.errors import AssertionFailure, SkipRequest
from casetree.models.config import RunConfig
from casetree.models.tree import Sequenced, Test, TestCase, TestLabel, TestList
from casetree.printers import TestPrinters
from casetree.runner import evaluate, passes_focus_test_check, run_tests
from casetree.tree import filter_tests, replace_test_code, timeout, wrap

__all__ = [
    "AssertionFailure",
    "RunConfig",
    "Sequenced",
    "SkipRequest",
    "Test",
    "TestCase",
    "TestLabel",
    "TestList",
    "TestPrinters",
    "evaluate",
    "failtest",
    "filter_tests",
    "ftest_case",
    "ftest_list",
    "passes_focus_test_check",
    "ptest_case",
    "ptest_list",
    "replace_test_code",
    "run_tests",
    "skiptest",
    "test_case",
    "test_fixture",
    "test_list",
    "test_param",
    "test_sequenced",
    "timeout",
    "wrap",
]
