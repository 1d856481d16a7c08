"""
Request-level analysis pipeline: chunk the uploads, fan out, merge.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, asdict
from typing import Sequence

from .chunking import chunk_items
from .fanout import DEFAULT_MAX_CONCURRENT, fan_out_fan_in
from .uploads import UploadItem

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 2


@dataclass
class AnalysisRun:
    """Merged analysis plus what it took to produce it."""
    analysis: str
    image_count: int
    group_count: int
    elapsed_seconds: float

    def to_dict(self) -> dict:
        return asdict(self)


async def analyze_uploads(
    items: Sequence[UploadItem],
    analyst,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    max_concurrent: int = DEFAULT_MAX_CONCURRENT,
) -> AnalysisRun:
    """
    Analyze uploaded screenshots in groups and merge the results.

    Args:
        items: Screenshots in upload order
        analyst: Object providing async analyze_group and merge_results
        chunk_size: Screenshots per analysis call
        max_concurrent: Analysis calls allowed in flight at once

    Returns:
        AnalysisRun with the merged analysis

    Raises:
        AnalysisFailure: if any analysis call or the merge fails
    """
    started = time.monotonic()
    groups = chunk_items(items, chunk_size)
    logger.info(
        f"Analyzing {len(items)} screenshot(s) in {len(groups)} group(s) "
        f"(chunk size {chunk_size}, max {max_concurrent} concurrent)"
    )

    analysis = await fan_out_fan_in(
        groups,
        analyst.analyze_group,
        analyst.merge_results,
        max_concurrent=max_concurrent,
    )

    elapsed = time.monotonic() - started
    logger.info(f"Analysis complete in {elapsed:.1f}s ({len(analysis)} chars)")
    return AnalysisRun(
        analysis=analysis,
        image_count=len(items),
        group_count=len(groups),
        elapsed_seconds=round(elapsed, 2),
    )


def run_analysis(
    items: Sequence[UploadItem],
    analyst,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    max_concurrent: int = DEFAULT_MAX_CONCURRENT,
) -> AnalysisRun:
    """
    Blocking wrapper around analyze_uploads for WSGI views.

    Runs a fresh event loop and closes the analyst's client on it.
    """
    async def _run() -> AnalysisRun:
        async with analyst:
            return await analyze_uploads(items, analyst, chunk_size, max_concurrent)

    return asyncio.run(_run())
