"""
Bounded Fan-Out / Fan-In

Runs one analysis call per group with at most ``max_concurrent`` calls in
flight, then a single merge call over the ordered results.

Every group task is created up front; an asyncio.Semaphore is the only
throttle. Results land in a list addressed by group index, so the merge
call always sees them in input order no matter which call returns first.

On the first failure no further groups are dispatched. Calls already in
flight are left to finish and their results are dropped.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

G = TypeVar("G")

DEFAULT_MAX_CONCURRENT = 3


class AnalysisFailure(Exception):
    """An analysis or merge call failed; the whole run is abandoned."""

    def __init__(self, stage: str, cause: BaseException, group_index: Optional[int] = None):
        self.stage = stage
        self.cause = cause
        self.group_index = group_index
        if group_index is not None:
            message = f"{stage} failed for group {group_index + 1}: {cause}"
        else:
            message = f"{stage} failed: {cause}"
        super().__init__(message)
        self.__cause__ = cause


async def fan_out_fan_in(
    groups: Sequence[G],
    analyze_group: Callable[[G], Awaitable[str]],
    merge_results: Callable[[list[str]], Awaitable[str]],
    max_concurrent: int = DEFAULT_MAX_CONCURRENT,
) -> str:
    """
    Analyze every group under a concurrency cap, then merge the results.

    Args:
        groups: Ordered groups; each becomes exactly one analyze_group call
        analyze_group: Async call producing the partial result for one group
        merge_results: Async call folding the ordered partial results together
        max_concurrent: Upper bound on analyze_group calls awaiting a response

    Returns:
        The merged result

    Raises:
        AnalysisFailure: if any analyze_group call or the merge call fails
    """
    if max_concurrent < 1:
        raise ValueError(f"max_concurrent must be a positive integer, got {max_concurrent}")

    total = len(groups)
    gate = asyncio.Semaphore(max_concurrent)
    partials: list[Optional[str]] = [None] * total
    failures: list[AnalysisFailure] = []

    async def run_group(index: int, group: G) -> None:
        async with gate:
            if failures:
                logger.debug(f"Group {index + 1}/{total} not dispatched: run already failed")
                return

            logger.debug(f"Dispatching group {index + 1}/{total}")
            try:
                result = await analyze_group(group)
            except Exception as e:
                logger.error(f"Group {index + 1}/{total} analysis failed: {e}")
                failures.append(AnalysisFailure("analyze", e, group_index=index))
                return

            if failures:
                logger.info(f"Discarding result of group {index + 1}/{total} after earlier failure")
                return
            partials[index] = result
            logger.debug(f"Group {index + 1}/{total} complete ({len(result or '')} chars)")

    started = time.monotonic()
    tasks = [asyncio.create_task(run_group(i, group)) for i, group in enumerate(groups)]
    await asyncio.gather(*tasks)

    if failures:
        raise failures[0]

    logger.info(f"Analyzed {total} group(s) in {time.monotonic() - started:.1f}s, merging")

    try:
        return await merge_results(list(partials))
    except Exception as e:
        logger.error(f"Merge of {total} partial result(s) failed: {e}")
        raise AnalysisFailure("merge", e) from e
