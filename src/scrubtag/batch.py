"""High-level Python API for batch processing files with scrubtag."""

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union
import logging

from .processor import build_task, collect_files_generator, process_files
from .utils import Config, load_word_list

logger = logging.getLogger(__name__)

PathsType = Union[str, Path, Iterable[Union[str, Path]]]

def _collect(paths: PathsType, recursive: bool) -> List[Path]:
    if isinstance(paths, (str, Path)):
        paths = [paths]
    files: List[Path] = []
    for p in paths:
        files.extend(collect_files_generator(Path(p), recursive=recursive))
    return files

# Core batch processing logic
def process_batch(
    paths: PathsType,
    operation: str = 'clean',
    *,
    words: Optional[Sequence[str]] = None,
    forbidden_path: Optional[Union[str, Path]] = None,
    recursive: bool = False,
    dry_run: bool = False,
    enhance: bool = False,
    cover_file: Optional[Union[str, Path]] = None,
    denylist: Optional[Sequence[str]] = None,
    verbose: bool = False,
    max_workers: Optional[int] = None,
    use_parallel: bool = True
) -> Dict[str, Any]:
    """
    Run one operation over many audio files.

    Every file is handled independently; a failing file is reported in the
    results and never stops the others.

    Args:
        paths: File or directory path, or several of them
        operation: One of clean, enhance, ungain, check-cover, add-cover, strip-legacy
        words: Forbidden words for clean (loaded from forbidden_path if None)
        forbidden_path: Word list file (default Config.FORBIDDEN_WORDS_PATH)
        recursive: If True, search subdirectories
        dry_run: If True, decide and log but write nothing
        enhance: For clean, also fill missing fields from the path
        cover_file: Image for add-cover
        denylist: Album directory denylist for enhancement
        verbose: If True, show detailed progress
        max_workers: Number of parallel workers (None = auto)
        use_parallel: If False, disable parallel processing

    Returns:
        Dict with keys: processed, successful, failed, dirty, results

    Examples:
        >>> from scrubtag.batch import process_batch
        >>> result = process_batch('/music', words=['www.promo.example'], recursive=True)
        >>> print(f"Cleaned {result['dirty']} of {result['processed']} files")
    """
    if verbose:
        logging.basicConfig(level=logging.INFO)

    if operation == 'clean' and words is None:
        words = load_word_list(forbidden_path or Config.FORBIDDEN_WORDS_PATH)

    task = build_task(
        operation,
        words=words or (),
        dry_run=dry_run,
        enhance_tags=enhance,
        cover_file=str(cover_file) if cover_file else None,
        denylist=tuple(denylist) if denylist is not None else None
    )

    files = _collect(paths, recursive)
    if not files:
        logger.warning("No matching files found")
        return {"processed": 0, "successful": 0, "failed": 0, "dirty": 0, "results": []}

    results = process_files(
        files,
        task,
        max_workers=max_workers or 0,
        use_parallel=use_parallel,
        verbose=verbose
    )

    return {
        "processed": len(results),
        "successful": sum(1 for r in results if r.get('passed', False)),
        "failed": sum(1 for r in results if not r.get('passed', False)),
        "dirty": sum(1 for r in results if r.get('dirty', False)),
        "results": results
    }

# Convenience wrappers
def clean_files(paths: PathsType, words: Sequence[str], **kwargs) -> Dict[str, Any]:
    """
    Clean files with an in-memory word list.

    Examples:
        >>> from scrubtag.batch import clean_files
        >>> result = clean_files(['a.mp3', 'b.mp3'], ['PROMO'], dry_run=True)
    """
    return process_batch(paths, 'clean', words=tuple(words), **kwargs)
