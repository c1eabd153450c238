"""Scheduling of flattened tests across parallel and sequenced groups."""

import asyncio
import logging
from collections.abc import Sequence
from contextlib import nullcontext
from dataclasses import dataclass

from casetree.executor import TestExecutor
from casetree.focus import WrappedFlatTest
from casetree.models.result import TestRunResult

log = logging.getLogger(__name__)

SEQUENCED_INFO = "Starting sequenced tests..."


@dataclass(frozen=True, kw_only=True)
class TestScheduler:
    """Runs parallel tests concurrently and sequenced tests one by one.

    Results always come back in the order the tests were given.
    """

    __test__ = False

    executor: TestExecutor
    max_parallel: int | None = None

    async def run(self, tests: Sequence[WrappedFlatTest]) -> list[TestRunResult]:
        """Run every test and return results in declaration order."""
        parallel: list[tuple[int, WrappedFlatTest]] = []
        sequenced: list[tuple[int, WrappedFlatTest]] = []
        for index, test in enumerate(tests):
            (sequenced if test.sequenced else parallel).append((index, test))

        log.debug(
            "Scheduling %d parallel and %d sequenced test(s)",
            len(parallel),
            len(sequenced),
        )
        results = await self._run_parallel(parallel)

        if parallel and sequenced:
            printers = self.executor.notifier.printers
            await self.executor.notifier.notify(
                printers.info(SEQUENCED_INFO), "blocking"
            )

        for index, test in sequenced:
            results.append((index, await self.executor.execute(test)))

        return [result for _, result in sorted(results, key=lambda pair: pair[0])]

    async def _run_parallel(
        self, tests: Sequence[tuple[int, WrappedFlatTest]]
    ) -> list[tuple[int, TestRunResult]]:
        semaphore = (
            asyncio.Semaphore(self.max_parallel) if self.max_parallel else None
        )

        async def run_one(
            index: int, test: WrappedFlatTest
        ) -> tuple[int, TestRunResult]:
            async with semaphore or nullcontext():
                return index, await self.executor.execute(test)

        return list(await asyncio.gather(*(run_one(i, t) for i, t in tests)))
