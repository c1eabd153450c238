"""Aggregation of test results into a summary."""

from collections.abc import Iterable

from casetree.models.result import (
    Error,
    Failed,
    Ignored,
    Passed,
    TestResultSummary,
    TestRunResult,
)


def sum_test_results(results: Iterable[TestRunResult]) -> TestResultSummary:
    """Bucket results by outcome, keeping their order within each bucket.

    The summary duration is the sum of the individual durations.
    """
    buckets: dict[int, list[TestRunResult]] = {
        Passed.tag: [],
        Ignored.tag: [],
        Failed.tag: [],
        Error.tag: [],
    }
    duration = 0.0
    for result in results:
        buckets[result.result.tag].append(result)
        duration += result.duration

    return TestResultSummary(
        passed=tuple(buckets[Passed.tag]),
        ignored=tuple(buckets[Ignored.tag]),
        failed=tuple(buckets[Failed.tag]),
        errored=tuple(buckets[Error.tag]),
        duration=duration,
    )
