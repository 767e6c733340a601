#!/usr/bin/env python3
"""
CLI script for translating documents into many languages.

This script provides a command-line interface to the polytrans engine. It
translates plain text, Markdown, HTML and JSON files into a set of target
languages through an external engine, reusing the persistent translation
cache and running several engine calls at once.

Usage:
    python run_translation.py README.md
    python run_translation.py messages.json -l pt_BR,de,fr -j 4
    python run_translation.py --clean-cache
    python run_translation.py --stats

License: MIT
"""

import sys
from pathlib import Path

# Allow running without package installation
_script_dir = Path(__file__).parent
_project_root = _script_dir.parent
_src_dir = _project_root / "src"
if _src_dir.exists() and str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

import argparse
import logging
import time
from typing import List

from polytrans.config.settings import (
    CACHE_FILE,
    CACHE_RETENTION_DAYS,
    DEFAULT_ENGINE,
    DEFAULT_JOBS,
    DEFAULT_LANGUAGES,
    DEFAULT_SOURCE_LANG,
    SUPPORTED_LANGUAGES,
)


def parse_arguments() -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        argparse.Namespace: The parsed arguments.
    """
    parser = argparse.ArgumentParser(
        description="Translate documents into many languages with a persistent cache",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Translate a Markdown file into the default languages
    python run_translation.py README.md

    # Translate a JSON locale file into three languages, 4 calls at a time
    python run_translation.py en.json -l pt_BR,de,fr -j 4

    # Ignore cached translations and ask the engine again
    python run_translation.py README.md -l es --force

    # Remove cache entries unused for 30 days
    python run_translation.py --clean-cache

    # Show cache statistics
    python run_translation.py --stats
        """
    )

    parser.add_argument(
        "files",
        nargs="*",
        help="Files to translate (.txt, .md, .html, .json; others as plain text)"
    )

    # Maintenance modes
    parser.add_argument(
        "--clean-cache",
        nargs="?",
        const=CACHE_RETENTION_DAYS,
        type=float,
        metavar="DAYS",
        help=f"Remove cache entries unused for DAYS days (default: {CACHE_RETENTION_DAYS})"
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Show cache statistics only"
    )

    # Translation options
    parser.add_argument(
        "-l", "--lang",
        action="append",
        default=None,
        help="Target language(s), repeatable or comma-separated "
             f"(default: {','.join(DEFAULT_LANGUAGES)})"
    )
    parser.add_argument(
        "-e", "--engine",
        default=DEFAULT_ENGINE,
        help=f"Translation engine (default: {DEFAULT_ENGINE})"
    )
    parser.add_argument(
        "-s", "--source",
        default=DEFAULT_SOURCE_LANG,
        help=f"Source language (default: {DEFAULT_SOURCE_LANG})"
    )
    parser.add_argument(
        "-j", "--jobs",
        type=int,
        default=DEFAULT_JOBS,
        help=f"Simultaneous translations (default: {DEFAULT_JOBS})"
    )
    parser.add_argument(
        "-f", "--force",
        action="store_true",
        help="Ignore cached translations and overwrite them"
    )
    parser.add_argument(
        "-o", "--output-dir",
        default=None,
        help="Directory for translated files (default: next to each input)"
    )
    parser.add_argument(
        "--cache-file",
        default=str(CACHE_FILE),
        help=f"Translation cache location (default: {CACHE_FILE})"
    )

    # Output options
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only show warnings and errors"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output"
    )

    return parser.parse_args()


def parse_languages(values: List[str], logger) -> List[str]:
    """Flatten repeated/comma-separated language options."""
    from polytrans.core.string_utils import normalize_language_code

    if not values:
        return list(DEFAULT_LANGUAGES)

    languages = []
    for value in values:
        for lang in value.split(","):
            lang = normalize_language_code(lang)
            if not lang:
                continue
            if lang not in SUPPORTED_LANGUAGES:
                logger.warning(f"Language '{lang}' is not in the supported list, trying anyway")
            if lang not in languages:
                languages.append(lang)
    return languages


def print_cache_stats(cache, logger) -> None:
    """Print cache statistics."""
    stats = cache.get_cache_stats()
    logger.info("=" * 60)
    logger.info(f"Translation cache: {cache.path}")
    logger.info("=" * 60)
    logger.info(f"Total entries: {stats['total_entries']:,}")
    logger.info(f"File size: {stats['file_size']:,} bytes")
    logger.info("-" * 60)
    for lang, count in stats["by_language"].items():
        logger.info(f"  {lang}: {count:,}")
    logger.info("=" * 60)


def translate_files(args: argparse.Namespace, logger) -> int:
    """
    Translate every input file into every requested language.

    Args:
        args: Parsed command-line arguments.
        logger: Logger instance.

    Returns:
        int: Exit code (0 for success).
    """
    from polytrans.translation import (
        TranslationCache,
        create_scheduler,
        load_document,
        output_path,
    )
    from polytrans.utils.progress import LanguageProgressTracker, ProgressDisplay

    languages = parse_languages(args.lang, logger)

    cache = TranslationCache(args.cache_file)
    cache.load()

    scheduler = create_scheduler(
        engine=args.engine,
        source_lang=args.source,
        jobs=args.jobs,
        force=args.force,
        cache=cache
    )

    logger.info(f"  Engine: {args.engine}")
    logger.info(f"  Source: {args.source}")
    logger.info(f"  Languages: {', '.join(languages)}")
    logger.info(f"  Jobs: {args.jobs}")
    logger.info(f"  Cache: {cache.path}")

    exit_code = 0
    start_time = time.time()

    try:
        for file_name in args.files:
            path = Path(file_name)
            try:
                document = load_document(path)
            except (OSError, ValueError) as e:
                logger.error(f"Skipping {path}: {e}")
                exit_code = 1
                continue

            display = None
            if not args.quiet:
                tracker = LanguageProgressTracker(title=path.name)
                tracker.add_languages(languages, total_units=len(document.units))
                display = ProgressDisplay(tracker)
                scheduler.on_unit_done = display.on_unit_done
                display.start()

            try:
                result = scheduler.run(document.units, languages)
            finally:
                if display:
                    display.stop()

            for lang, units in result.translations.items():
                target = output_path(path, lang, args.output_dir)
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text(document.render(units), encoding="utf-8")
                logger.debug(f"Wrote {target}")

            if display:
                display.print_summary(result.stats, result.duration)
            else:
                logger.info(
                    f"{path.name}: {result.stats['cache_hits']} cache hits, "
                    f"{result.stats['net_calls']} network calls, "
                    f"{result.stats['failed_calls']} failures"
                )
    finally:
        cache.save()

    elapsed_time = time.time() - start_time
    summary = scheduler.stats.summary()
    logger.info(
        f"All files processed in {elapsed_time:.2f} seconds "
        f"(cache: {summary['cache_hits']} / {summary['cache_percent']:.2f}%, "
        f"net: {summary['net_calls']} / {summary['net_percent']:.2f}%, "
        f"failures: {summary['failed_calls']})"
    )
    return exit_code


def main() -> int:
    """
    Main entry point for the translation CLI.

    Returns:
        int: Exit code (0 for success, non-zero for failure).
    """
    args = parse_arguments()

    from polytrans.config.logging_config import setup_logging, get_logger

    if args.verbose:
        setup_logging(level=logging.DEBUG)
    elif args.quiet:
        setup_logging(level=logging.WARNING)
    else:
        setup_logging(level=logging.INFO)

    logger = get_logger(__name__)

    try:
        # Cache maintenance mode
        if args.clean_cache is not None:
            from polytrans.translation import prune_stale

            removed = prune_stale(args.clean_cache, cache_path=args.cache_file)
            logger.info(f"Removed {removed} stale entries from the cache")
            return 0

        # Stats-only mode
        if args.stats:
            from polytrans.translation import TranslationCache

            cache = TranslationCache(args.cache_file)
            cache.load()
            print_cache_stats(cache, logger)
            return 0

        if not args.files:
            logger.error("No input files given")
            return 1

        return translate_files(args, logger)

    except KeyboardInterrupt:
        logger.warning("Translation interrupted by user")
        return 130

    except Exception as e:
        logger.error(f"Translation failed with error: {str(e)}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
