"""Source locations of test bodies."""

import functools
import inspect
import logging

from casetree.models.tree import SourceLocation, TestCode

log = logging.getLogger(__name__)


def empty_location(_code: TestCode) -> SourceLocation:
    """Locator used when source locations are not wanted."""
    return SourceLocation.empty()


def locate_source(code: TestCode) -> SourceLocation:
    """Find the file and first line where a test body is defined."""
    target: object = code
    while isinstance(target, functools.partial):
        target = target.func
    target = inspect.unwrap(target)  # type: ignore[arg-type]

    try:
        source_path = inspect.getsourcefile(target)  # type: ignore[arg-type]
        _, line_number = inspect.getsourcelines(target)  # type: ignore[arg-type]
    except (OSError, TypeError) as e:
        log.debug("No source location for %r: %s", code, e)
        return SourceLocation.empty()

    if source_path is None:
        return SourceLocation.empty()

    return SourceLocation(source_path=source_path, line_number=line_number)
