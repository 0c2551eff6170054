"""scrubtag CLI - ID3 tag hygiene for the command line."""
import os
import sys
import argparse
import json
import logging
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Optional, TextIO

from . import __version__
from .processor import (
    OPERATIONS,
    ProcessResultType,
    build_task,
    collect_files_generator,
    process_files,
    register_signal_handlers,
    unregister_signal_handlers,
)
from .utils import (
    Config,
    setup_logging,
    load_word_list,
    EXIT_CODE_SUCCESS,
    EXIT_CODE_ERROR,
    EXIT_CODE_USAGE,
    EXIT_CODE_PERMISSION,
    EXIT_CODE_INTERRUPTED,
    EXIT_CODE_NO_FILES,
    EXIT_CODE_DISK_FULL
)

logger = logging.getLogger(__name__)

# ---------- CLI & Main ----------
def build_parser() -> argparse.ArgumentParser:
    """Command line definition."""
    parser = argparse.ArgumentParser(
        description="scrubtag - strip promotional junk from ID3 tags",
        epilog="Without paths, newline separated paths are read from stdin."
    )

    parser.add_argument("paths", nargs='*', help="Files or directories to process")
    parser.add_argument("--operation", choices=OPERATIONS, default='clean',
                        help="Operation to run (default: clean)")
    parser.add_argument("--enhance", action='store_true',
                        help="While cleaning, fill missing title/artist/track/disc/album from the path")

    parser.add_argument("--forbidden", default=None,
                        help="Forbidden words list path (overrides SCRUBTAG_FORBIDDEN env var)")
    parser.add_argument("--cover", help="Image file for the add-cover operation")

    # File selection
    parser.add_argument("--recursive", action='store_true', help="Recurse into subdirectories")

    # Threading and performance
    parser.add_argument(
        "--threads",
        type=int,
        default=None,
        help="Number of threads for parallel processing (default: auto)"
    )

    # Safety and output
    parser.add_argument("--dry-run", action='store_true', help="Do not write to files")
    parser.add_argument("--json-report", help="Write JSON report to file")

    # Logging
    parser.add_argument("--verbose", action='store_true', default=None,
                        help="Enable verbose logging (overrides SCRUBTAG_VERBOSE env var)")
    parser.add_argument("--version", action='version', version=f"%(prog)s {__version__}")

    return parser

def validate_args(args: argparse.Namespace) -> None:
    """Validate command line arguments comprehensively."""
    errors = []

    if args.operation == 'add-cover':
        if not args.cover:
            errors.append("add-cover operation requires --cover")
        elif not os.path.isfile(args.cover):
            errors.append(f"Cover file does not exist: {args.cover}")

    if args.enhance and args.operation != 'clean':
        errors.append("--enhance only applies to the clean operation")

    for path in args.paths:
        if not os.path.exists(path):
            errors.append(f"Path does not exist: {path}")
        elif not os.access(path, os.R_OK):
            errors.append(f"No read permission for path: {path}")

    if args.threads is not None and args.threads < 1:
        errors.append("--threads must be at least 1")

    if errors:
        raise ValueError("; ".join(errors))

def read_paths(stream: TextIO) -> List[str]:
    """Read newline separated paths until the first empty line."""
    paths = []
    for line in stream:
        line = line.rstrip('\r\n')
        if not line:
            break
        paths.append(line)
    return paths

def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point."""
    register_signal_handlers()
    try:
        parser = build_parser()
        args = parser.parse_args(argv)

        # Setup logging - use env var default if flag not explicitly set
        if args.verbose is None:
            verbose_env = os.getenv('SCRUBTAG_VERBOSE', '').lower()
            args.verbose = verbose_env in ('1', 'true', 'yes')

        # Configuration precedence: CLI flag > environment variable > default
        try:
            Config.load_from_env()
            if args.forbidden:
                Config.FORBIDDEN_WORDS_PATH = args.forbidden
            Config.validate()
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(EXIT_CODE_USAGE)

        setup_logging(args.verbose)

        if args.dry_run:
            print("Disabled write to file for dry run")

        if not args.paths:
            args.paths = read_paths(sys.stdin)

        try:
            validate_args(args)
        except ValueError as e:
            logger.error(f"Argument validation failed: {e}")
            print(f"Error: {e}", file=sys.stderr)
            if "permission" in str(e).lower():
                sys.exit(EXIT_CODE_PERMISSION)
            sys.exit(EXIT_CODE_USAGE)

        words = ()
        if args.operation == 'clean':
            try:
                words = load_word_list(Config.FORBIDDEN_WORDS_PATH)
            except OSError as e:
                logger.error(f"Error initializing forbidden words: {e}")
                print(f"Error initializing forbidden words: {e}", file=sys.stderr)
                sys.exit(EXIT_CODE_ERROR)
            for word in words:
                logger.debug(f"forbidden: \"{word}\"")

        try:
            exit_code = run_processing_session(args, words)
            sys.exit(exit_code)
        except KeyboardInterrupt:
            sys.exit(EXIT_CODE_INTERRUPTED)
        except PermissionError as e:
            print(f"Permission denied: {e}", file=sys.stderr)
            sys.exit(EXIT_CODE_PERMISSION)
        except OSError as e:
            if e.errno == 28: # ENOSPC: No space left on device
                print(f"Error: {e}", file=sys.stderr)
                sys.exit(EXIT_CODE_DISK_FULL)
            raise e
        except Exception as e:
            logger.error(f"Unexpected error: {e}", exc_info=True)
            print(f"Unexpected error: {e}", file=sys.stderr)
            sys.exit(EXIT_CODE_ERROR)

    finally:
        unregister_signal_handlers()

def run_processing_session(args: argparse.Namespace, words) -> int:
    """Process files using the parallel processor. Returns exit code."""
    files = []
    for path in args.paths:
        files.extend(collect_files_generator(Path(path), recursive=args.recursive))

    if not files:
        print("No files found matching criteria.")
        if args.json_report:
            save_json_report([], args.json_report)
        return EXIT_CODE_NO_FILES

    print(f"Processing {len(files)} file(s)...", flush=True)

    task = build_task(
        args.operation,
        words=words,
        dry_run=args.dry_run,
        enhance_tags=args.enhance,
        cover_file=args.cover
    )

    results = process_files(
        files,
        task,
        max_workers=args.threads or 0,
        verbose=args.verbose
    )

    per_ext = defaultdict(list)
    for rec in results:
        per_ext[rec.get('ext', '')].append(rec.get('passed', False))

        # Show details for small batches or verbose mode
        if len(files) <= 10 or args.verbose:
            print_file_result(rec, args)

    return generate_summary(results, per_ext, args)

def print_file_result(rec: ProcessResultType, args: argparse.Namespace) -> None:
    """Print detailed result for a single file."""
    print(f"\nFile: {rec['path']}")

    if rec.get('error'):
        print(f"  ERROR: {rec.get('error')}")
        return

    for change in rec.get('changes', []):
        frame = change['frame']
        if change.get('description'):
            frame = f"{frame}:{change['description']}"
        if change['action'] == 'update':
            print(f"  Updating {frame}: {change['value']}")
        elif change['action'] == 'add':
            print(f"  Adding {frame}: {change['value']}")
        else:
            print(f"  Removing frame {frame}")

    if 'has_cover' in rec:
        print(f"  Cover: {'present' if rec['has_cover'] else 'none'}")
        for cover in rec.get('covers', []):
            print(f"    type:{cover['type']} mime:{cover['mime']} SHA:{cover['sha1']}")

    if rec.get('legacy', 'none') != 'none':
        action = "removed" if rec.get('legacy_removed') else "kept"
        print(f"  ID3v1 at {rec['legacy']}: {action}")

    if rec.get('saved'):
        print("  Saved")
    elif rec.get('dirty'):
        print("  Note: dry-run, not written" if args.dry_run else "  Note: NOT WRITTEN")
    else:
        print("  Note: no changes")

def generate_summary(results: List[ProcessResultType], per_ext: Dict[str, List[bool]], args: argparse.Namespace) -> int:
    """Generate and print processing summary. Returns exit code."""
    total_files = len(results)
    successful = sum(1 for r in results if r.get('passed', False))
    failed = total_files - successful
    changed = sum(1 for r in results if r.get('dirty', False))

    print(f"\n--- SUMMARY ---")
    print(f"Total files processed: {total_files}")
    print(f"Successful: {successful}")
    print(f"Failed: {failed}")
    print(f"{'Would change' if args.dry_run else 'Changed'}: {changed}")

    # Per-extension summary
    if per_ext:
        print("\nPer extension results:")
        for ext, results_list in sorted(per_ext.items()):
            passed_count = sum(1 for r in results_list if r)
            total_count = len(results_list)
            status = "ALL PASSED" if passed_count == total_count else f"{passed_count}/{total_count} passed"
            print(f"  {ext or 'no ext'}: {status}")

    if args.json_report:
        save_json_report(results, args.json_report)

    # Check for critical errors in results
    for r in results:
        exc = r.get('exception')
        if exc and isinstance(exc.__cause__, OSError) and exc.__cause__.errno == 28: # ENOSPC
            return EXIT_CODE_DISK_FULL

    return EXIT_CODE_ERROR if failed else EXIT_CODE_SUCCESS

def save_json_report(results: List[ProcessResultType], report_path: str) -> None:
    """Save processing results in documented JSON schema format."""
    from datetime import datetime

    report_data = {
        "version": "1.0",
        "timestamp": datetime.now().isoformat(),
        "summary": {
            "total": len(results),
            "success": sum(1 for r in results if r.get('passed', False)),
            "failed": sum(1 for r in results if r.get('error')),
            "changed": sum(1 for r in results if r.get('dirty', False)),
        },
        "files": []
    }

    for r in results:
        file_record = {
            "path": r.get('path', ''),
            "status": "error" if r.get('error') else "success"
        }
        if r.get('operation'):
            file_record["operation"] = r['operation']
        if r.get('changes'):
            file_record["changes"] = r['changes']
        if r.get('legacy', 'none') != 'none':
            file_record["legacy"] = r['legacy']
            file_record["legacy_removed"] = r.get('legacy_removed', False)
        if 'has_cover' in r:
            file_record["covers"] = r.get('covers', [])
        if r.get('error'):
            file_record["error"] = r['error']
        file_record["saved"] = r.get('saved', False)

        report_data["files"].append(file_record)

    try:
        with open(report_path, 'w', encoding='utf-8') as f:
            json.dump(report_data, f, ensure_ascii=False, indent=2, default=str)
        print(f"JSON report written to {report_path}")
    except OSError as e:
        print(f"Failed to write JSON report: {e}", file=sys.stderr)


if __name__ == '__main__':
    main()
