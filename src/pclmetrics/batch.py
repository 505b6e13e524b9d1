# src/pclmetrics/batch.py

"""
This module processes many transects in parallel.

Transects share no state, so each one is handed to its own worker process together
with the configuration; results are only gathered once the whole batch is done.
"""

import logging
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Union, Optional, Sequence, List

import psutil

from .config import PCLConfig
from .errors import PCLError
from .pipeline import PipelineResult, process_transect
from .transect.layer import Transect
from .transect.io import read_pcl

log = logging.getLogger(__name__)

__all__ = [
    "BatchResult",
    "default_workers",
    "process_batch"
]

TransectSource = Union[str, Path, Transect]

@dataclass(frozen=True, eq=False)
class BatchResult:
    """
    Outcome of one transect in a batch.

    Attributes:
        name (str): Transect identifier.
        result (Optional[PipelineResult]): Pipeline output, None if the transect failed.
        error (Optional[str]): Failure description, None on success.
    """
    name: str
    result: Optional[PipelineResult] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

def _source_name(source: TransectSource) -> str:
    return source.name if isinstance(source, Transect) else Path(source).name

def _run_one(source: TransectSource, config: PCLConfig) -> BatchResult:
    """Loads and processes a single transect, turning its failures into a BatchResult."""
    name = _source_name(source)
    try:
        transect = source if isinstance(source, Transect) else read_pcl(source)
        return BatchResult(name=name, result=process_transect(transect, config))
    except (PCLError, FileNotFoundError) as e:
        log.error(f"Transect '{name}' failed: {e}")
        return BatchResult(name=name, error=f"{type(e).__name__}: {e}")
    except Exception as e:
        log.exception(f"Transect '{name}' failed unexpectedly")
        return BatchResult(name=name, error=f"{type(e).__name__}: {e}")

def default_workers(n_tasks: int) -> int:
    """Physical core count, capped by the number of tasks."""
    cores = psutil.cpu_count(logical=False) or psutil.cpu_count() or 1
    return max(1, min(cores, n_tasks))

def process_batch(
    sources: Sequence[TransectSource],
    config: Optional[PCLConfig] = None,
    max_workers: Optional[int] = None
) -> List[BatchResult]:
    """
    Processes independent transects concurrently.

    A transect that fails configuration checks or produces an incomplete result is
    reported in its BatchResult and does not affect the others.

    Args:
        sources (Sequence[TransectSource]): Csv paths or in-memory Transects.
        config (Optional[PCLConfig]): Configuration shared by every transect.
        max_workers (Optional[int]): Worker processes. Defaults to the physical core count.
            With 1 the batch runs in the calling process.

    Returns:
        List[BatchResult]: One result per source, sorted by transect name.
    """
    config = (config or PCLConfig()).validate()
    if not sources:
        return []

    workers = max_workers or default_workers(len(sources))
    log.info(f"Processing {len(sources)} transects with {workers} worker(s)")

    if workers == 1:
        results = [_run_one(source, config) for source in sources]
    else:
        results = []
        with ProcessPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(_run_one, source, config) for source in sources]
            for future in as_completed(futures):
                results.append(future.result())

    failed = sum(1 for r in results if not r.ok)
    if failed:
        log.warning(f"{failed} of {len(results)} transects failed")
    return sorted(results, key=lambda r: r.name)
