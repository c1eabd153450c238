"""Hooks reporting progress through a test run."""

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, replace

from casetree.models.result import TestResultSummary, TestRunResult
from casetree.models.tree import Test

log = logging.getLogger("casetree")


@dataclass(frozen=True, kw_only=True)
class TestPrinters:
    """Hooks called by the runner.

    ``before_run`` and ``summary`` are called synchronously, the others are
    coroutine functions the runner may await or merely schedule.
    """

    __test__ = False

    before_run: Callable[[Test], None]
    before_each: Callable[[str], Awaitable[None]]
    info: Callable[[str], Awaitable[None]]
    passed: Callable[[str, float], Awaitable[None]]
    ignored: Callable[[str, str], Awaitable[None]]
    failed: Callable[[str, str, float], Awaitable[None]]
    exn: Callable[[str, BaseException, float], Awaitable[None]]
    summary: Callable[[TestResultSummary], None]

    @classmethod
    def silent(cls) -> "TestPrinters":
        """Printers that report nothing."""

        async def ignore(*_args: object) -> None:
            return None

        return cls(
            before_run=lambda _test: None,
            before_each=ignore,
            info=ignore,
            passed=ignore,
            ignored=ignore,
            failed=ignore,
            exn=ignore,
            summary=lambda _summary: None,
        )

    @classmethod
    def default(cls) -> "TestPrinters":
        """Printers that log progress and a one-line summary."""
        return cls(
            before_run=_log_before_run,
            before_each=_log_before_each,
            info=_log_info,
            passed=_log_passed,
            ignored=_log_ignored,
            failed=_log_failed,
            exn=_log_exn,
            summary=_log_summary,
        )

    @classmethod
    def summary_listing(cls) -> "TestPrinters":
        """Default printers that also list test names per outcome."""

        def summary(result: TestResultSummary) -> None:
            _log_summary(result)
            log.info("%s", create_summary_text(result))

        return replace(cls.default(), summary=summary)

    @classmethod
    def summary_with_location(cls) -> "TestPrinters":
        """Default printers that list test names with source locations."""

        def summary(result: TestResultSummary) -> None:
            _log_summary(result)
            log.info("%s", create_summary_text(result, with_location=True))

        return replace(cls.default(), summary=summary)


def _log_before_run(_test: Test) -> None:
    log.info("Running tests...")


async def _log_before_each(name: str) -> None:
    log.debug("%s starting...", name)


async def _log_info(text: str) -> None:
    log.info("%s", text)


async def _log_passed(name: str, duration: float) -> None:
    log.debug("%s passed in %.3fs.", name, duration)


async def _log_ignored(name: str, reason: str) -> None:
    log.debug("%s was ignored. %s", name, reason)


async def _log_failed(name: str, message: str, duration: float) -> None:
    log.error("%s failed in %.3fs. %s", name, duration, message)


async def _log_exn(name: str, cause: BaseException, duration: float) -> None:
    log.error("%s errored in %.3fs", name, duration, exc_info=cause)


def _log_summary(summary: TestResultSummary) -> None:
    verdict = "Success!" if not summary.failed and not summary.errored else ""
    log.info(
        "%d tests run in %.3fs - %d passed, %d ignored, %d failed, %d errored. %s",
        summary.total,
        summary.duration,
        len(summary.passed),
        len(summary.ignored),
        len(summary.failed),
        len(summary.errored),
        verdict,
    )


def create_summary_text(
    summary: TestResultSummary, *, with_location: bool = False
) -> str:
    """Render every bucket with its count and the names of its tests."""
    buckets = [
        ("Passed", summary.passed),
        ("Ignored", summary.ignored),
        ("Failed", summary.failed),
        ("Errored", summary.errored),
    ]
    width = max(len(str(len(results))) for _, results in buckets)

    def describe(result: TestRunResult) -> str:
        if not with_location:
            return result.name
        location = result.location
        return f"{result.name} [{location.source_path}:{location.line_number}]"

    def section(title: str, results: Sequence[TestRunResult]) -> str:
        # Right-align counts so the columns line up.
        header = f"{title}:".ljust(len("Errored:")) + f" {len(results):>{width}}"
        return "".join([header, *(f"\n\t{describe(r)}" for r in results)])

    return "\n".join(["Summary...", *(section(t, r) for t, r in buckets)])
