"""Flattening and rewriting of test trees.

Every function here returns a new tree, the input is never modified.
"""

import asyncio
import inspect
import threading
from collections.abc import Callable
from datetime import timedelta

from casetree.errors import AssertionFailure
from casetree.focus import compute_child_focus_state
from casetree.models.tree import (
    FlatTest,
    FocusState,
    Sequenced,
    Test,
    TestCase,
    TestCode,
    TestLabel,
    TestList,
)


def to_flat_tests(test: Test) -> list[FlatTest]:
    """Flatten a tree into its leaves in declaration order.

    Names are joined with ``/`` from the root down, focus states are
    combined at every list and label, and anything below a ``Sequenced``
    node stays sequenced.
    """
    flat: list[FlatTest] = []

    def loop(
        node: Test, parent_name: str, parent_state: FocusState, sequenced: bool
    ) -> None:
        match node:
            case TestLabel(label, child, state):
                if parent_name and label:
                    full_name = f"{parent_name}/{label}"
                else:
                    full_name = parent_name or label
                loop(
                    child,
                    full_name,
                    compute_child_focus_state(parent_state, state),
                    sequenced,
                )
            case TestCase(code, state):
                flat.append(
                    FlatTest(
                        name=parent_name,
                        code=code,
                        state=compute_child_focus_state(parent_state, state),
                        sequenced=sequenced,
                    )
                )
            case TestList(tests, state):
                list_state = compute_child_focus_state(parent_state, state)
                for child in tests:
                    loop(child, parent_name, list_state, sequenced)
            case Sequenced(child):
                loop(child, parent_name, parent_state, True)

    loop(test, "", "normal", False)
    return flat


def wrap(f: Callable[[TestCode], TestCode], test: Test) -> Test:
    """Replace every test body with ``f(body)``, keeping structure and states."""
    match test:
        case TestCase(code, state):
            return TestCase(f(code), state)
        case TestList(tests, state):
            return TestList(tuple(wrap(f, child) for child in tests), state)
        case TestLabel(label, child, state):
            return TestLabel(label, wrap(f, child), state)
        case Sequenced(child):
            return Sequenced(wrap(f, child))


def replace_focus_state(new_state: FocusState, test: Test) -> Test:
    """Overwrite the focus state of the top node."""
    match test:
        case TestCase(code, _):
            return TestCase(code, new_state)
        case TestList(tests, _):
            return TestList(tests, new_state)
        case TestLabel(label, child, _):
            return TestLabel(label, child, new_state)
        case Sequenced(child):
            return Sequenced(replace_focus_state(new_state, child))


def translate_focus_state(new_state: FocusState, test: Test) -> Test:
    """Apply ``new_state`` to the top node as if it came from a parent.

    Unlike ``replace_focus_state`` the current state is kept whenever it
    takes precedence, so a normal state leaves the tree unchanged.
    """
    match test:
        case TestCase(code, old_state):
            return TestCase(code, compute_child_focus_state(new_state, old_state))
        case TestList(tests, old_state):
            return TestList(tests, compute_child_focus_state(new_state, old_state))
        case TestLabel(label, child, old_state):
            return TestLabel(
                label, child, compute_child_focus_state(new_state, old_state)
            )
        case Sequenced(child):
            return Sequenced(translate_focus_state(new_state, child))


def replace_test_code(f: Callable[[str | None, TestCode], Test], test: Test) -> Test:
    """Replace every leaf with the tree ``f(label, body)`` builds for it.

    ``label`` is the label directly wrapping the test case, or None. The
    replacement keeps the focus state the leaf had.
    """
    match test:
        case TestLabel(label, TestCase(code, child_state), parent_state):
            return translate_focus_state(
                compute_child_focus_state(parent_state, child_state), f(label, code)
            )
        case TestCase(code, state):
            return translate_focus_state(state, f(None, code))
        case TestList(tests, state):
            return TestList(
                tuple(replace_test_code(f, child) for child in tests), state
            )
        case TestLabel(label, child, state):
            return TestLabel(label, replace_test_code(f, child), state)
        case Sequenced(child):
            return Sequenced(replace_test_code(f, child))


def filter_tests(predicate: Callable[[str], bool], test: Test) -> Test:
    """Keep only the leaves whose full name matches ``predicate``.

    The result is a flat list of labelled test cases.
    """
    kept: list[Test] = []
    for flat in to_flat_tests(test):
        if not predicate(flat.name):
            continue
        leaf: Test = TestLabel(flat.name, TestCase(flat.code, flat.state), flat.state)
        kept.append(Sequenced(leaf) if flat.sequenced else leaf)
    return TestList(tuple(kept), "normal")


def timeout(millis: int, code: TestCode) -> TestCode:
    """Fail the test when its body runs longer than ``millis`` milliseconds.

    The body is abandoned on expiry, its eventual outcome is never reported.
    """
    limit = timedelta(milliseconds=millis)
    message = f"Timeout ({limit})"

    if inspect.iscoroutinefunction(code):

        async def run_async() -> None:
            try:
                await asyncio.wait_for(code(), timeout=limit.total_seconds())
            except TimeoutError:
                raise AssertionFailure(message) from None

        return run_async

    def run() -> object:
        outcome: dict[str, object] = {}

        def target() -> None:
            try:
                outcome["value"] = code()
            except BaseException as e:
                outcome["error"] = e

        # An abandoned body must not keep the interpreter alive.
        worker = threading.Thread(target=target, name="casetree-timeout", daemon=True)
        worker.start()
        worker.join(limit.total_seconds())
        if worker.is_alive():
            raise AssertionFailure(message)
        if (error := outcome.get("error")) is not None:
            raise error  # type: ignore[misc]
        return outcome.get("value")

    return run
