"""Tests for single test execution."""

import asyncio
import sys
import time
from unittest.mock import AsyncMock

import pytest

from casetree import dsl
from casetree.errors import AssertionFailure, SkipRequest
from casetree.executor import DispatchMode, Notifier, TestExecutor, failure_message
from casetree.focus import PENDING_REASON, Enabled, UnFocused, WrappedFlatTest
from casetree.locator import empty_location
from casetree.models.result import Error, Failed, Ignored, Passed
from casetree.models.tree import SourceLocation, TestCode
from casetree.printers import TestPrinters
from casetree.tree import timeout


class CustomAssertion(AssertionFailure):
    """Failure type defined by an assertion helper."""


class CustomSkip(SkipRequest):
    """Skip type defined by a helper library."""


def leaf(
    code: TestCode,
    *,
    name: str = "suite/test",
    state: Enabled | UnFocused = Enabled("normal"),
    sequenced: bool = False,
) -> WrappedFlatTest:
    """Build a wrapped test."""
    return WrappedFlatTest(name=name, code=code, state=state, sequenced=sequenced)


@pytest.fixture
def printers() -> TestPrinters:
    """Printers with every asynchronous hook mocked."""
    return TestPrinters(
        before_run=lambda _test: None,
        before_each=AsyncMock(),
        info=AsyncMock(),
        passed=AsyncMock(),
        ignored=AsyncMock(),
        failed=AsyncMock(),
        exn=AsyncMock(),
        summary=lambda _summary: None,
    )


@pytest.fixture
def notifier(printers: TestPrinters) -> Notifier:
    """Notifier over mocked printers."""
    return Notifier(printers=printers)


@pytest.fixture
def executor(notifier: Notifier) -> TestExecutor:
    """Executor with no source locations."""
    return TestExecutor(locate=empty_location, notifier=notifier)


async def test_passing_body(executor: TestExecutor, printers: TestPrinters) -> None:
    """Reports a body that returns normally as passed."""
    result = await executor.execute(leaf(lambda: None, sequenced=True))

    assert result.name == "suite/test"
    assert result.result == Passed()
    assert result.duration >= 0
    assert result.location == SourceLocation.empty()
    printers.before_each.assert_awaited_once_with("suite/test")  # type: ignore[attr-defined]
    printers.passed.assert_awaited_once_with(  # type: ignore[attr-defined]
        "suite/test", result.duration
    )


async def test_failing_body(executor: TestExecutor, printers: TestPrinters) -> None:
    """Reports an assertion failure with its message."""

    def body() -> None:
        dsl.failtest("expected 1, got 2")

    result = await executor.execute(leaf(body, sequenced=True))

    assert isinstance(result.result, Failed)
    assert result.result.message.startswith("expected 1, got 2")
    assert "test_executor.py" in result.result.message
    printers.failed.assert_awaited_once_with(  # type: ignore[attr-defined]
        "suite/test", result.result.message, result.duration
    )


async def test_plain_assert_fails(executor: TestExecutor) -> None:
    """Treats a bare assert statement as a failure."""

    def body() -> None:
        assert 1 == 2, "numbers differ"  # noqa: PLR0133

    result = await executor.execute(leaf(body))

    assert isinstance(result.result, Failed)
    assert "numbers differ" in result.result.message


async def test_assertion_subclass_fails(executor: TestExecutor) -> None:
    """Recognises subclasses of the failure signal."""

    def body() -> None:
        raise CustomAssertion("custom")

    result = await executor.execute(leaf(body))

    assert isinstance(result.result, Failed)
    assert "custom" in result.result.message


async def test_skipping_body(executor: TestExecutor, printers: TestPrinters) -> None:
    """Reports a skip request as ignored with its message."""

    def body() -> None:
        dsl.skiptest("not on this platform")

    result = await executor.execute(leaf(body, sequenced=True))

    assert result.result == Ignored("not on this platform")
    printers.ignored.assert_awaited_once_with(  # type: ignore[attr-defined]
        "suite/test", "not on this platform"
    )


async def test_skip_subclass_is_ignored(executor: TestExecutor) -> None:
    """Recognises subclasses of the skip signal."""

    def body() -> None:
        raise CustomSkip("later")

    result = await executor.execute(leaf(body))

    assert result.result == Ignored("later")


async def test_erroring_body(executor: TestExecutor, printers: TestPrinters) -> None:
    """Keeps any other exception as the cause."""
    error = ValueError("boom")

    def body() -> None:
        raise error

    result = await executor.execute(leaf(body, sequenced=True))

    assert result.result == Error(error)
    printers.exn.assert_awaited_once_with(  # type: ignore[attr-defined]
        "suite/test", error, result.duration
    )


async def test_coroutine_body(executor: TestExecutor) -> None:
    """Awaits coroutine functions."""
    ran: list[bool] = []

    async def body() -> None:
        await asyncio.sleep(0)
        ran.append(True)

    result = await executor.execute(leaf(body))

    assert result.result == Passed()
    assert ran == [True]


async def test_body_returning_awaitable(executor: TestExecutor) -> None:
    """Awaits what a plain callable returns when it is awaitable."""

    async def failing() -> None:
        dsl.failtest("late failure")

    result = await executor.execute(leaf(lambda: failing()))

    assert isinstance(result.result, Failed)


@pytest.mark.parametrize(
    ("state", "reason"),
    [
        (Enabled("pending"), PENDING_REASON),
        (UnFocused("pending"), PENDING_REASON),
        (
            UnFocused("normal"),
            "The test is skipped because other tests are focused",
        ),
    ],
)
async def test_skipped_state_bypasses_body(
    executor: TestExecutor,
    printers: TestPrinters,
    state: Enabled | UnFocused,
    reason: str,
) -> None:
    """Never calls the body or the hooks of a skipped test."""
    body = AsyncMock()

    result = await executor.execute(leaf(body, state=state))

    assert result.result == Ignored(reason)
    assert result.duration == 0.0
    body.assert_not_called()
    printers.before_each.assert_not_called()  # type: ignore[attr-defined]
    printers.ignored.assert_not_called()  # type: ignore[attr-defined]


async def test_uses_locator(notifier: Notifier) -> None:
    """Attaches the location found for the body."""
    location = SourceLocation(source_path="tests/x.py", line_number=3)
    executor = TestExecutor(locate=lambda _code: location, notifier=notifier)

    result = await executor.execute(leaf(lambda: None))

    assert result.location == location


async def test_fire_and_forget_hooks_complete_on_drain(
    executor: TestExecutor, notifier: Notifier, printers: TestPrinters
) -> None:
    """Parallel tests schedule their hooks, draining waits for them."""
    await executor.execute(leaf(lambda: None))
    await notifier.drain()

    printers.before_each.assert_awaited_once()  # type: ignore[attr-defined]
    printers.passed.assert_awaited_once()  # type: ignore[attr-defined]


async def test_blocking_notification_waits_for_hook(notifier: Notifier) -> None:
    """Blocking notifications finish before notify returns."""
    done: list[str] = []

    async def hook() -> None:
        await asyncio.sleep(0.01)
        done.append("hook")

    await notifier.notify(hook(), "blocking")

    assert done == ["hook"]


async def test_fire_and_forget_does_not_wait(notifier: Notifier) -> None:
    """Fire-and-forget notifications return before the hook finishes."""
    release = asyncio.Event()
    done: list[str] = []

    async def hook() -> None:
        await release.wait()
        done.append("hook")

    await notifier.notify(hook(), "fire_and_forget")
    assert done == []

    release.set()
    await notifier.drain()
    assert done == ["hook"]


@pytest.mark.parametrize("mode", ["blocking", "fire_and_forget"])
async def test_failing_hook_is_logged(
    notifier: Notifier, caplog: pytest.LogCaptureFixture, mode: DispatchMode
) -> None:
    """Logs errors raised by hooks in either dispatch mode."""

    async def hook() -> None:
        raise RuntimeError("printer broke")

    await notifier.notify(hook(), mode)
    await notifier.drain()

    assert "Printer hook failed: printer broke" in caplog.text


def test_failure_message_without_traceback() -> None:
    """Falls back to the message alone when no frame is available."""
    assert failure_message(AssertionFailure("plain")) == "plain"


async def test_exiting_body_is_an_error(executor: TestExecutor) -> None:
    """Keeps ``sys.exit`` inside the test as an error result."""
    result = await executor.execute(leaf(lambda: sys.exit(3)))

    assert isinstance(result.result, Error)
    assert isinstance(result.result.cause, SystemExit)
    assert result.result.cause.code == 3


async def test_failing_hook_does_not_abort_sequenced_test(
    executor: TestExecutor, printers: TestPrinters, caplog: pytest.LogCaptureFixture
) -> None:
    """A broken hook of a sequenced test is logged and the result still returned."""
    before_each: AsyncMock = printers.before_each  # type: ignore[assignment]
    before_each.side_effect = RuntimeError("printer broke")

    result = await executor.execute(leaf(lambda: None, sequenced=True))

    assert result.result == Passed()
    assert "Printer hook failed: printer broke" in caplog.text
    printers.passed.assert_awaited_once()  # type: ignore[attr-defined]


async def test_timeout_failure_has_no_library_location(
    executor: TestExecutor,
) -> None:
    """A timed out body is reported without a standard library frame."""
    result = await executor.execute(leaf(timeout(50, lambda: time.sleep(1))))

    assert result.result == Failed("Timeout (0:00:00.050000)")


def test_failure_message_points_at_test_code() -> None:
    """Uses the innermost frame from test code."""

    def body() -> None:
        raise AssertionFailure("wrong")

    with pytest.raises(AssertionFailure) as exc_info:
        timeout(1000, body)()
    message = failure_message(exc_info.value)

    assert message.startswith("wrong\n")
    assert message.endswith(": body")
    assert __file__ in message
