"""Execution of a single test with timing and outcome classification."""

import asyncio
import inspect
import logging
import sysconfig
import time
import traceback
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from casetree.errors import SkipRequest
from casetree.focus import WrappedFlatTest, skip_reason
from casetree.models.result import (
    Error,
    Failed,
    Ignored,
    Passed,
    TestResult,
    TestRunResult,
)
from casetree.models.tree import SourceLocation, TestCode
from casetree.printers import TestPrinters

log = logging.getLogger(__name__)

type DispatchMode = Literal["blocking", "fire_and_forget"]
type Locator = Callable[[TestCode], SourceLocation]

FAIL_EXCEPTIONS: tuple[type[BaseException], ...] = (AssertionError,)
IGNORE_EXCEPTIONS: tuple[type[BaseException], ...] = (SkipRequest,)

_PACKAGE_DIR = Path(__file__).resolve().parent
_STDLIB_DIRS = tuple(
    Path(sysconfig.get_paths()[key]).resolve() for key in ("stdlib", "platstdlib")
)
_SITE_DIRS = tuple(
    Path(sysconfig.get_paths()[key]).resolve() for key in ("purelib", "platlib")
)


def dispatch_mode(test: WrappedFlatTest) -> DispatchMode:
    """Sequenced tests wait for their hooks, the others do not."""
    return "blocking" if test.sequenced else "fire_and_forget"


@dataclass(kw_only=True)
class Notifier:
    """Delivers hook notifications either in place or in the background."""

    printers: TestPrinters
    _pending: set[asyncio.Task[None]] = field(default_factory=set, init=False)

    async def notify(self, hook: Awaitable[None], mode: DispatchMode) -> None:
        """Deliver a notification.

        ``blocking`` waits for the hook to finish, ``fire_and_forget``
        schedules it and returns at once. Either way a failing hook is
        logged and never aborts the run.
        """
        if mode == "blocking":
            try:
                await hook
            except Exception as e:
                log.error("Printer hook failed: %s", e, exc_info=e)
            return

        task = asyncio.ensure_future(hook)
        self._pending.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: "asyncio.Task[None]") -> None:
        self._pending.discard(task)
        if not task.cancelled() and (exc := task.exception()) is not None:
            log.error("Printer hook failed: %s", exc, exc_info=exc)

    async def drain(self) -> None:
        """Wait for every notification still in flight."""
        while self._pending:
            await asyncio.wait(set(self._pending))


async def invoke(code: TestCode) -> None:
    """Call a test body, off the event loop unless it is a coroutine function."""
    if inspect.iscoroutinefunction(code):
        await code()
        return

    result = await asyncio.to_thread(code)
    if inspect.isawaitable(result):
        await result


def _is_internal(filename: str) -> bool:
    """Frames from casetree, the standard library or frozen modules."""
    if filename.startswith("<"):
        return True
    path = Path(filename).resolve()
    if path.is_relative_to(_PACKAGE_DIR):
        return True
    if any(path.is_relative_to(site) for site in _SITE_DIRS):
        return False
    return any(path.is_relative_to(stdlib) for stdlib in _STDLIB_DIRS)


def source_line(exc: BaseException) -> str | None:
    """Find the innermost traceback frame that belongs to test code."""
    for frame in reversed(traceback.extract_tb(exc.__traceback__)):
        if _is_internal(frame.filename):
            continue
        return f"{frame.filename}({frame.lineno},1): {frame.name}"
    return None


def failure_message(exc: BaseException) -> str:
    """Exception message followed by where the failure was raised, if known."""
    message = str(exc)
    if (line := source_line(exc)) is not None:
        return f"{message}\n{line}"
    return message


@dataclass(frozen=True, kw_only=True)
class TestExecutor:
    """Runs tests one at a time and reports them through a notifier."""

    __test__ = False

    locate: Locator
    notifier: Notifier
    fail_exceptions: tuple[type[BaseException], ...] = FAIL_EXCEPTIONS
    ignore_exceptions: tuple[type[BaseException], ...] = IGNORE_EXCEPTIONS

    async def execute(self, test: WrappedFlatTest) -> TestRunResult:
        """Run a test unless focus wrapping says it must be skipped."""
        if (reason := skip_reason(test.state)) is not None:
            return TestRunResult(
                name=test.name,
                location=self.locate(test.code),
                result=Ignored(reason),
                duration=0.0,
            )

        mode = dispatch_mode(test)
        printers = self.notifier.printers

        await self.notifier.notify(printers.before_each(test.name), mode)
        result = await self.execute_one(test)
        await self.notifier.notify(self._print_one(result), mode)

        return result

    async def execute_one(self, test: WrappedFlatTest) -> TestRunResult:
        """Run a test body, time it and classify how it ended."""
        result: TestResult
        start_time = time.perf_counter()
        try:
            await invoke(test.code)
            result = Passed()
        except self.fail_exceptions as e:
            result = Failed(failure_message(e))
        except self.ignore_exceptions as e:
            result = Ignored(str(e))
        except (Exception, SystemExit) as e:
            result = Error(e)
        duration = time.perf_counter() - start_time

        return TestRunResult(
            name=test.name,
            location=self.locate(test.code),
            result=result,
            duration=duration,
        )

    def _print_one(self, run: TestRunResult) -> Awaitable[None]:
        printers = self.notifier.printers
        match run.result:
            case Passed():
                return printers.passed(run.name, run.duration)
            case Failed(message):
                return printers.failed(run.name, message, run.duration)
            case Ignored(reason):
                return printers.ignored(run.name, reason)
            case Error(cause):
                return printers.exn(run.name, cause, run.duration)
