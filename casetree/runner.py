"""Evaluation of test trees into a summary and an exit status."""

import asyncio
import logging
import time
from dataclasses import replace

from casetree.executor import Locator, Notifier, TestExecutor
from casetree.focus import wrap_states
from casetree.models.config import RunConfig
from casetree.models.result import TestResultSummary, TestRunResult
from casetree.models.tree import Test
from casetree.printers import TestPrinters
from casetree.scheduler import TestScheduler
from casetree.summary import sum_test_results
from casetree.tree import to_flat_tests

log = logging.getLogger(__name__)


async def eval_tests(
    tests: Test,
    locate: Locator,
    printers: TestPrinters,
    parallel: bool,
    max_parallel: int | None = None,
) -> list[TestRunResult]:
    """Flatten, wrap and run a tree, returning results in declaration order.

    With ``parallel`` off every test is treated as sequenced.
    """
    flat = to_flat_tests(tests)
    if not parallel:
        flat = [replace(test, sequenced=True) for test in flat]

    notifier = Notifier(printers=printers)
    scheduler = TestScheduler(
        executor=TestExecutor(locate=locate, notifier=notifier),
        max_parallel=max_parallel,
    )
    try:
        return await scheduler.run(wrap_states(flat))
    finally:
        await notifier.drain()


async def evaluate(
    tests: Test,
    locate: Locator,
    printers: TestPrinters,
    parallel: bool,
    max_parallel: int | None = None,
) -> tuple[TestResultSummary, int]:
    """Run a tree and return its summary with the exit status.

    The status has bit 0 set when a test failed and bit 1 when one errored.
    The summary duration is the wall-clock time of the whole run.
    """
    printers.before_run(tests)

    start_time = time.perf_counter()
    results = await eval_tests(tests, locate, printers, parallel, max_parallel)
    summary = replace(
        sum_test_results(results), duration=time.perf_counter() - start_time
    )
    printers.summary(summary)

    return summary, summary.error_code


def run_eval(
    tests: Test,
    locate: Locator,
    printers: TestPrinters,
    parallel: bool,
    max_parallel: int | None = None,
) -> int:
    """Run a tree to completion and return the exit status."""
    _, status = asyncio.run(evaluate(tests, locate, printers, parallel, max_parallel))
    return status


def passes_focus_test_check(tests: Test) -> bool:
    """Check that no test in the tree resolves to focused.

    Returns True if the check passes, otherwise logs the count and
    returns False.
    """
    focused = [test for test in to_flat_tests(tests) if test.state == "focused"]
    if not focused:
        return True

    log.error(
        "It was requested that no focused tests exist, "
        "but yet there are %d focused tests found.",
        len(focused),
    )
    return False


def run_tests(config: RunConfig, tests: Test) -> int:
    """Run the tests selected by ``config`` and return the exit status.

    When focused tests are forbidden and some exist, nothing runs and 1 is
    returned.
    """
    logging.getLogger("casetree").setLevel(config.verbosity)

    tests = config.test_filter(tests)
    if config.fail_on_focused_tests and not passes_focus_test_check(tests):
        return 1

    return run_eval(
        tests, config.locate, config.printer, config.parallel, config.max_parallel
    )
