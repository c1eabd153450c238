"""CLI entry point for running test trees."""

import argparse
import logging
import sys
from collections.abc import Callable, Sequence
from importlib.metadata import PackageNotFoundError, version
from typing import Any

from casetree.loading import SuiteNotFoundError, load_tests
from casetree.locator import locate_source
from casetree.models.config import RunConfig
from casetree.models.tree import Test
from casetree.printers import TestPrinters
from casetree.runner import run_tests
from casetree.tree import filter_tests, to_flat_tests


def build_parser() -> argparse.ArgumentParser:
    """Create the parser for run options."""
    parser = argparse.ArgumentParser(description="Run a tree of tests")
    parser.add_argument(
        "--sequenced",
        dest="parallel",
        action="store_false",
        default=None,
        help="Doesn't run the tests in parallel.",
    )
    parser.add_argument(
        "--parallel",
        dest="parallel",
        action="store_true",
        default=None,
        help="Runs all tests in parallel (default).",
    )
    parser.add_argument(
        "--max-parallel",
        type=int,
        help="Limits how many tests run at the same time.",
    )
    parser.add_argument(
        "--fail-on-focused-tests",
        action="store_true",
        help="Makes the test runner fail if focused tests exist.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Extra verbose printing. Useful to combine with --sequenced.",
    )
    parser.add_argument(
        "--filter",
        dest="name_filters",
        action=_NameFilterAction,
        build=_under_hierarchy,
        metavar="HIERARCHY",
        help="Filters the list of tests by a hierarchy that's slash (/) separated.",
    )
    parser.add_argument(
        "--filter-test-list",
        dest="name_filters",
        action=_NameFilterAction,
        build=_in_test_list,
        metavar="SUBSTRING",
        help="Filters the list of test lists by a substring.",
    )
    parser.add_argument(
        "--filter-test-case",
        dest="name_filters",
        action=_NameFilterAction,
        build=_in_test_case,
        metavar="SUBSTRING",
        help="Filters the list of test cases by a substring.",
    )
    parser.add_argument(
        "--run",
        dest="name_filters",
        action=_NameFilterAction,
        build=_one_of,
        nargs="+",
        metavar="TEST",
        help="Runs only provided tests.",
    )
    parser.add_argument(
        "--list-tests",
        action="store_true",
        help="Doesn't run tests, but prints out list of tests instead.",
    )
    parser.add_argument(
        "--summary",
        action="store_true",
        help="Prints out summary after all tests are finished.",
    )
    parser.add_argument(
        "--summary-location",
        action="store_true",
        help="Prints out summary including source code locations.",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Prints out version information.",
    )
    return parser


class _NameFilterAction(argparse.Action):
    """Collects name predicates in the order they appear on the command line."""

    def __init__(
        self,
        option_strings: Sequence[str],
        dest: str,
        build: Callable[[Any], Callable[[str], bool]],
        **kwargs: Any,
    ) -> None:
        super().__init__(option_strings, dest, **kwargs)
        self.build = build

    def __call__(
        self,
        parser: argparse.ArgumentParser,
        namespace: argparse.Namespace,
        values: Any,
        option_string: str | None = None,
    ) -> None:
        filters = list(getattr(namespace, self.dest, None) or [])
        filters.append(self.build(values))
        setattr(namespace, self.dest, filters)


def _under_hierarchy(hierarchy: str) -> Callable[[str], bool]:
    return lambda name: name.startswith(hierarchy)


def _in_test_list(substring: str) -> Callable[[str], bool]:
    return lambda name: any(substring in part for part in name.split("/")[:-1])


def _in_test_case(substring: str) -> Callable[[str], bool]:
    return lambda name: substring in name.split("/")[-1]


def _one_of(names: Sequence[str]) -> Callable[[str], bool]:
    expected = set(names)
    return lambda name: name in expected


def fill_from_args(
    config: RunConfig, argv: Sequence[str]
) -> tuple[RunConfig, bool]:
    """Override ``config`` from command-line options.

    Unrecognised options are ignored. Returns the new config and whether
    the tests should only be listed.
    """
    args, _ = build_parser().parse_known_args(argv)
    log = logging.getLogger("casetree")

    if args.version:
        log.info("casetree version %s", _package_version())

    updates: dict[str, object] = {}
    if args.parallel is not None:
        updates["parallel"] = args.parallel
    if args.max_parallel is not None:
        updates["max_parallel"] = args.max_parallel
    if args.fail_on_focused_tests:
        updates["fail_on_focused_tests"] = True
    if args.debug:
        updates["verbosity"] = logging.DEBUG
    if args.name_filters:
        # The last name filter given wins.
        predicate = args.name_filters[-1]
        updates["test_filter"] = lambda tests: filter_tests(predicate, tests)
    if args.summary:
        updates["printer"] = TestPrinters.summary_listing()
    if args.summary_location:
        updates["printer"] = TestPrinters.summary_with_location()

    return config.model_copy(update=updates), args.list_tests


def _package_version() -> str:
    try:
        return version("casetree")
    except PackageNotFoundError:
        return "unknown"


def list_tests(tests: Test) -> None:
    """Print the full name of every test."""
    for test in to_flat_tests(tests):
        print(test.name)


def run_tests_with_args(config: RunConfig, argv: Sequence[str], tests: Test) -> int:
    """Run tests with command-line overrides and return the exit status."""
    config, list_only = fill_from_args(config, argv)
    if list_only:
        list_tests(config.test_filter(tests))
        return 0

    return run_tests(config, tests)


def main() -> None:
    """CLI entry point."""
    parser = build_parser()
    parser.add_argument(
        "target",
        help="Tests to run, as package.module:attribute or a registered suite name",
    )
    argv = sys.argv[1:]
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        tests = load_tests(args.target)
    except SuiteNotFoundError as e:
        logging.getLogger("casetree").error("%s", e)
        sys.exit(1)

    sys.exit(run_tests_with_args(RunConfig(locate=locate_source), argv, tests))


if __name__ == "__main__":  # pragma: no cover
    main()
