"""
File processing logic for scrubtag.
"""

import os
import sys
import signal
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from functools import partial
from pathlib import Path
from typing import Any, Callable, Dict, Generator, Iterable, List, Optional, Sequence, Tuple

from .core import SUPPORTED_EXT, ScrubtagError
from .operations import (
    ReportType,
    add_cover,
    check_for_cover,
    clean,
    enhance,
    strip_legacy,
    ungain,
)
from .utils import Config, print_progress_safe, EXIT_CODE_INTERRUPTED

logger = logging.getLogger(__name__)

ProcessResultType = Dict[str, Any]
TaskType = Callable[[Path], ReportType]

OPERATIONS = ('clean', 'enhance', 'ungain', 'check-cover', 'add-cover', 'strip-legacy')

# ---------- Signal Handlers ----------
def register_signal_handlers():
    """Register signal handlers for graceful shutdown on Ctrl+C/SIGTERM."""
    def signal_handler(sig, frame):
        logger.info(f"Received signal {sig}, shutting down gracefully...")
        sys.exit(EXIT_CODE_INTERRUPTED)

    # Only register on platforms that support it (Windows has limited signal support)
    if sys.platform != "win32":
        try:
            signal.signal(signal.SIGINT, signal_handler)
            signal.signal(signal.SIGTERM, signal_handler)
        except ValueError:
            # Signals can only be installed from the main thread
            pass

def unregister_signal_handlers():
    """Unregister signal handlers (restore defaults)."""
    if sys.platform != "win32":
        try:
            signal.signal(signal.SIGINT, signal.SIG_DFL)
            signal.signal(signal.SIGTERM, signal.SIG_DFL)
        except ValueError:
            pass

# ---------- Tasks ----------
def build_task(operation: str,
               *,
               words: Sequence[str] = (),
               dry_run: bool = False,
               enhance_tags: bool = False,
               cover_file: Optional[str] = None,
               denylist: Optional[Sequence[str]] = None) -> TaskType:
    """
    Bind an operation name and its shared read-only inputs into a per-file task.

    Raises:
        ValueError: Unknown operation or missing cover file for add-cover
    """
    if operation == 'clean':
        return partial(_call_clean, tuple(words), dry_run, enhance_tags, denylist)
    if operation == 'enhance':
        return partial(enhance, dry_run=dry_run, denylist=denylist)
    if operation == 'ungain':
        return partial(ungain, dry_run=dry_run)
    if operation == 'check-cover':
        return check_for_cover
    if operation == 'add-cover':
        if not cover_file:
            raise ValueError("add-cover operation requires a cover file")
        return partial(_call_add_cover, cover_file, dry_run)
    if operation == 'strip-legacy':
        return partial(strip_legacy, dry_run=dry_run)
    raise ValueError(f"Unknown operation: {operation}")

def _call_clean(words, dry_run, enhance_tags, denylist, path):
    return clean(words, path, dry_run=dry_run, enhance=enhance_tags, denylist=denylist)

def _call_add_cover(cover_file, dry_run, path):
    return add_cover(path, cover_file, dry_run=dry_run)

# ---------- File Validation ----------
def validate_file(path: Path) -> Tuple[bool, str]:
    """Check that the path is an existing, readable file."""
    try:
        if not path.exists():
            return False, "File does not exist"
        if not path.is_file():
            return False, "Path is not a file"
        if not os.access(path, os.R_OK):
            return False, "No read permission"
        return True, "Valid"
    except OSError as e:
        return False, f"Validation error: {e}"

# ---------- Process One File ----------
def process_file(path: str, task: TaskType) -> ProcessResultType:
    """Run one task on one file; any failure ends up in the returned record."""
    file_path = Path(path)
    ext = file_path.suffix.lower()

    is_valid, validation_msg = validate_file(file_path)
    if not is_valid:
        return {
            'path': str(file_path),
            'error': f'file validation failed: {validation_msg}',
            'passed': False,
            'ext': ext
        }

    try:
        report = task(file_path)
    except ScrubtagError as e:
        logger.error(f"{e}")
        return {
            'path': str(file_path),
            'error': str(e),
            'exception': e,
            'passed': False,
            'ext': ext
        }
    except Exception as e:
        logger.error(f"Unexpected error processing {file_path}: {e}", exc_info=True)
        return {
            'path': str(file_path),
            'error': f"file error in '{file_path}': {e}",
            'exception': e,
            'passed': False,
            'ext': ext
        }

    return {**report, 'ext': ext, 'error': None, 'exception': None, 'passed': True}

# ---------- Parallel Processing ----------
def process_files_parallel(
    files: Iterable[Path],
    task: TaskType,
    *,
    max_workers: Optional[int] = None,
    verbose: bool = False
) -> List[ProcessResultType]:
    """
    Process multiple files in parallel using a thread pool.

    Each file gets its own task, results arrive in completion order. A
    failing file never affects the others; all tasks are awaited.
    """
    if not max_workers:
        max_workers = Config.MAX_WORKERS

    files_list = list(files)
    total_files = len(files_list)

    if total_files == 0:
        return []

    results = []
    completed = 0

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_file = {
            executor.submit(process_file, str(file_path), task): file_path
            for file_path in files_list
        }

        for future in as_completed(future_to_file):
            file_path = future_to_file[future]
            completed += 1

            try:
                result = future.result()
                results.append(result)

                if verbose and total_files > 10:
                    print_progress_safe(
                        f"Progress: {completed}/{total_files} ({completed/total_files*100:.1f}%) - {file_path.name}",
                        end='\r'
                    )

                if verbose and result.get('error'):
                    print_progress_safe(f"\n  ERROR: {result['error']}")

            except Exception as e:
                results.append({
                    'path': str(file_path),
                    'error': f'Unexpected error: {e}',
                    'exception': e,
                    'passed': False,
                    'ext': file_path.suffix.lower()
                })

    if verbose and total_files > 10:
        print_progress_safe()  # Newline after progress

    return results

def process_files(
    files: Iterable[Path],
    task: TaskType,
    *,
    max_workers: Optional[int] = None,
    use_parallel: bool = True,
    verbose: bool = False
) -> List[ProcessResultType]:
    """
    Smart dispatcher that chooses between parallel and sequential processing.
    """
    files_list = list(files)
    total_files = len(files_list)

    if total_files == 0:
        return []

    should_use_parallel = (
        use_parallel and
        total_files >= Config.MIN_FILES_FOR_PARALLEL and
        max_workers != 1
    )

    if should_use_parallel:
        logger.info(f"Using parallel processing with {max_workers or Config.MAX_WORKERS} workers")
        return process_files_parallel(files_list, task, max_workers=max_workers, verbose=verbose)

    logger.info("Using sequential processing")

    results = []
    for i, file_path in enumerate(files_list, 1):
        if verbose:
            progress_msg = f"Progress: {i}/{total_files} ({i/total_files*100:.1f}%)"
            print(progress_msg, end='\r' if i < total_files else '\n')

        result = process_file(str(file_path), task)
        results.append(result)

        if verbose and result.get('error'):
            print(f"  ERROR: {result['error']}")

    return results

def collect_files_generator(path: Path, recursive: bool = False) -> Generator[Path, None, None]:
    """A file is yielded as given, a directory yields its supported audio files."""
    if path.is_file():
        yield path
        return

    walker = path.rglob('*') if recursive else path.glob('*')

    for item in sorted(walker):
        if item.is_file() and item.suffix.lower() in SUPPORTED_EXT:
            yield item
