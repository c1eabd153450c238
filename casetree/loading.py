"""Loading of test trees from import paths and entry points."""

import importlib
from importlib.metadata import entry_points

from casetree.models.tree import Sequenced, Test, TestCase, TestLabel, TestList

ENTRY_POINT_GROUP = "casetree.suites"

_TEST_TYPES = (TestCase, TestList, TestLabel, Sequenced)


class SuiteNotFoundError(Exception):
    """Raised when a test tree cannot be loaded."""


def load_tests(target: str) -> Test:
    """Load a test tree by import path or registered suite name.

    Args:
        target: Either ``package.module:attribute`` or a suite name as
            registered in the ``casetree.suites`` entry point group

    Returns:
        The test tree, calling the attribute first if it is a factory

    Raises:
        SuiteNotFoundError: If nothing matches or the value is not a test

    """
    value = _load_object(target) if ":" in target else _load_entry_point(target)

    if not isinstance(value, _TEST_TYPES) and callable(value):
        value = value()

    if not isinstance(value, _TEST_TYPES):
        raise SuiteNotFoundError(
            f"'{target}' is a {type(value).__name__}, not a test tree"
        )
    return value


def _load_object(target: str) -> object:
    module_name, _, attribute = target.partition(":")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise SuiteNotFoundError(f"Cannot import '{module_name}': {e}") from e

    value: object = module
    for part in attribute.split("."):
        try:
            value = getattr(value, part)
        except AttributeError as e:
            raise SuiteNotFoundError(
                f"'{module_name}' has no attribute '{attribute}'"
            ) from e
    return value


def _load_entry_point(name: str) -> object:
    entries = entry_points(group=ENTRY_POINT_GROUP)

    for entry in entries:
        if entry.name == name:
            return entry.load()

    available = [e.name for e in entries]
    raise SuiteNotFoundError(
        f"Suite '{name}' not found. Available suites: {available}"
    )
