"""Focus state propagation and the focus-skip wrapping pass."""

from collections.abc import Sequence
from dataclasses import dataclass

from casetree.errors import FocusStateError
from casetree.models.tree import FlatTest, FocusState, TestCode

PENDING_REASON = "The test or one of its parents is marked as pending"
UNFOCUSED_REASON = "The test is skipped because other tests are focused"


def compute_child_focus_state(
    parent_state: FocusState, child_state: FocusState
) -> FocusState:
    """Combine a parent's focus state with one of its children's.

    Pending wins from either side, focused lifts normal children, and a
    normal parent leaves the child as it is.
    """
    match parent_state, child_state:
        case "focused", "pending":
            return "pending"
        case "pending", _:
            return "pending"
        case "focused", _:
            return "focused"
        case _:
            return child_state


@dataclass(frozen=True)
class Enabled:
    """No focused test exists, the state decides on its own."""

    state: FocusState


@dataclass(frozen=True)
class UnFocused:
    """Some other test is focused and this one is not."""

    state: FocusState


type WrappedFocusedState = Enabled | UnFocused


def skip_reason(wrapped: WrappedFocusedState) -> str | None:
    """Return why a test must be skipped, or None when it should run."""
    match wrapped:
        case UnFocused("focused"):
            raise FocusStateError(
                "A focused test was marked as unfocused, focus wrapping is broken"
            )
        case UnFocused("pending") | Enabled("pending"):
            return PENDING_REASON
        case UnFocused(_):
            return UNFOCUSED_REASON
        case _:
            return None


@dataclass(frozen=True, kw_only=True)
class WrappedFlatTest:
    """A flattened test with its focus state resolved against the whole run."""

    __test__ = False

    name: str
    code: TestCode
    state: WrappedFocusedState
    sequenced: bool


def wrap_states(tests: Sequence[FlatTest]) -> list[WrappedFlatTest]:
    """Resolve every test's focus state once the whole run is known."""
    exists_focused = any(test.state == "focused" for test in tests)

    def wrap(state: FocusState) -> WrappedFocusedState:
        if exists_focused and state != "focused":
            return UnFocused(state)
        return Enabled(state)

    return [
        WrappedFlatTest(
            name=test.name,
            code=test.code,
            state=wrap(test.state),
            sequenced=test.sequenced,
        )
        for test in tests
    ]

