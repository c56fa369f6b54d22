"""
Batch composition for ImageStudio

Runs independent compositions concurrently. Each job decodes, composes and
writes its own image, so jobs share nothing but the (stateless) Compositor.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from tqdm import tqdm

from imagestudio.io.images import load_source, output_filename, save_output
from imagestudio.utils.logging import ProcessingStats
from .compositor import Compositor
from .errors import CompositionError
from .models import AspectRatio, ResizePolicy, TransformParameters

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.webp', '.bmp', '.gif', '.tif', '.tiff')


@dataclass
class CompositionJob:
    """One input file and the settings to compose it with."""
    input_path: Path
    output_dir: Path
    transform: TransformParameters = field(default_factory=TransformParameters)
    aspect_ratio: Union[AspectRatio, str] = "Auto"
    policy: Union[ResizePolicy, str] = ResizePolicy.CROP
    output_stem: Optional[str] = None

    @property
    def stem(self) -> str:
        return self.output_stem or self.input_path.stem


@dataclass
class JobResult:
    """Outcome of one job; exactly one of output_path and error is set."""
    job: CompositionJob
    output_path: Optional[Path] = None
    size: Optional[Tuple[int, int]] = None
    aspect_ratio: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    processing_time: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.error is None


def find_images(directory: Union[str, Path],
                extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> List[Path]:
    """Image files directly inside a directory, sorted by name."""
    wanted = {ext.lower() for ext in extensions}
    return sorted(
        path for path in Path(directory).iterdir()
        if path.is_file() and path.suffix.lower() in wanted
    )


def build_jobs(paths: Sequence[Path], output_dir: Union[str, Path],
               transform: Optional[TransformParameters] = None,
               aspect_ratio: Union[AspectRatio, str] = "Auto",
               policy: Union[ResizePolicy, str] = ResizePolicy.CROP) -> List[CompositionJob]:
    """
    Create one job per path with the same settings

    Inputs sharing a stem (photo.png, photo.webp) would both be written as
    photo.png, so those keep their original suffix in the output name.
    """
    output_dir = Path(output_dir)
    transform = transform or TransformParameters()

    stem_counts = {}
    for path in paths:
        stem_counts[path.stem] = stem_counts.get(path.stem, 0) + 1

    jobs = []
    for path in paths:
        path = Path(path)
        stem = path.stem
        if stem_counts[stem] > 1:
            stem = f"{stem}_{path.suffix.lstrip('.').lower()}"
        jobs.append(CompositionJob(
            input_path=path,
            output_dir=output_dir,
            transform=transform,
            aspect_ratio=aspect_ratio,
            policy=policy,
            output_stem=stem,
        ))
    return jobs


def run_job(job: CompositionJob, compositor: Compositor) -> JobResult:
    """
    Decode, compose and save a single job

    Composition and file errors are captured in the result instead of being
    raised, so one bad input does not stop a batch.
    """
    start = time.time()
    try:
        source = load_source(job.input_path)
        output = compositor.compose(source, job.transform, job.aspect_ratio, job.policy)
        destination = job.output_dir / output_filename(job.stem, output.mime_type)
        save_output(output, destination)
    except (CompositionError, OSError) as e:
        logger.error(f"Error composing {job.input_path}: {e}")
        return JobResult(
            job=job,
            error=str(e),
            error_type=type(e).__name__,
            processing_time=time.time() - start,
        )

    return JobResult(
        job=job,
        output_path=destination,
        size=output.size,
        aspect_ratio=output.aspect_ratio,
        processing_time=time.time() - start,
    )


def compose_many(jobs: Sequence[CompositionJob],
                 compositor: Optional[Compositor] = None,
                 max_workers: int = 4,
                 show_progress: bool = True) -> Tuple[List[JobResult], ProcessingStats]:
    """
    Run jobs in a thread pool

    Args:
        jobs: Jobs to run
        compositor: Shared compositor; a default one is created when None
        max_workers: Number of worker threads
        show_progress: Display a tqdm progress bar

    Returns:
        Results in the same order as jobs, and the batch statistics
    """
    if max_workers < 1:
        raise ValueError(f"max_workers must be at least 1, got {max_workers}")

    compositor = compositor or Compositor()
    stats = ProcessingStats()
    stats.set_total(len(jobs))
    results: List[Optional[JobResult]] = [None] * len(jobs)

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="ComposeWorker") as executor:
        futures = {executor.submit(run_job, job, compositor): index
                   for index, job in enumerate(jobs)}

        for future in tqdm(as_completed(futures), total=len(futures),
                           desc="Composing images", disable=not show_progress):
            index = futures[future]
            result = future.result()
            results[index] = result
            stats.add_result(result.succeeded, result.error_type, result.processing_time)
            if not result.succeeded:
                stats.add_error(str(result.job.input_path), result.error)

    summary = stats.get_summary()
    logger.info(f"Composed {summary['succeeded_files']}/{summary['total_files']} images "
                f"in {summary['elapsed_time']:.2f}s")
    return results, stats
