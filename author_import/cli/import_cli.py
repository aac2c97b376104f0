"""
Command-line interface for the author importer.

Usage:
    author-import import-authors [FILE] [BATCH_SIZE] [options]
    author-import search-authors [--olid OL1A] [--name N] [--alternate-name A] [--about T] [--limit 10] [--skip 0]
"""

import argparse
import sys

from psycopg import OperationalError
from pydantic import ValidationError as PydanticValidationError

from author_import.batch.pipeline import AuthorImportPipeline
from author_import.batch.readers import LineSource
from author_import.core.config import load_config
from author_import.core.errors import SourceFileNotFoundError
from author_import.core.models import Author, AuthorSearchParams, RunStats
from author_import.observability.logger import get_logger, log_operation
from author_import.observability.metrics import start_metrics_server
from author_import.utils.memory import format_bytes
from author_import.utils.validation import (
    ValidationError,
    parse_batch_size,
    validate_file_path,
    validate_limit,
    validate_offset,
    validate_olid,
)
from author_import.warehouse.author_repository import AuthorRepository
from author_import.warehouse.connection import DatabaseConnectionPool


logger = get_logger(__name__)

DEFAULT_FILE = "authors.txt"
DEFAULT_BATCH_SIZE = 50
BIO_PREVIEW_CHARS = 100


def create_pool(args) -> DatabaseConnectionPool:
    """Build a connection pool from the --db-* options."""
    return DatabaseConnectionPool(
        host=args.db_host,
        port=args.db_port,
        database=args.db_name,
        user=args.db_user,
        password=args.db_password,
    )


def import_authors_command(args) -> int:
    """
    Execute the author import command.

    Args:
        args: Command-line arguments

    Returns:
        Process exit status
    """
    try:
        file_path = validate_file_path(args.file)
        config = load_config(
            args.config,
            batch_size=parse_batch_size(args.batch_size, DEFAULT_BATCH_SIZE) if args.batch_size else None,
            retry_failed_batch_per_record=True if args.per_record_retry else None,
        )
    except (ValidationError, PydanticValidationError, FileNotFoundError, ValueError) as e:
        logger.error(f"Invalid arguments: {e}")
        return 1

    # The file must exist before any connection is made
    try:
        source = LineSource(file_path, buffer_size=config.read_buffer_bytes)
    except SourceFileNotFoundError as e:
        logger.error(f"ERROR: File not found at {file_path}", extra={"reason": e.reason})
        return 1
    logger.info(f"File found: {source.path}")
    logger.info(f"File size: {format_bytes(source.size_bytes)}")

    if args.metrics_port:
        start_metrics_server(args.metrics_port)

    try:
        pool = create_pool(args)
        pool.open()
    except (ValueError, OperationalError) as e:
        logger.error(f"Cannot connect to database: {e}")
        return 1

    try:
        pipeline = AuthorImportPipeline(AuthorRepository(pool), config)
        with log_operation("Importing authors", logger=logger, source_path=str(source.path)):
            stats = pipeline.run(source.path)
    except SourceFileNotFoundError as e:
        logger.error(f"Error importing authors: {e}")
        return 1
    finally:
        pool.close()

    print_summary(stats)
    return 0


def print_summary(stats: RunStats) -> None:
    """Print the final totals of an import run."""
    summary = stats.summary()
    print("=" * 60)
    print("IMPORT COMPLETE")
    print("=" * 60)
    print(f"Total lines processed: {summary['total_lines']}")
    print(f"Total records imported: {summary['imported']}")
    print(f"Duplicates skipped: {summary['duplicates_skipped']}")
    print(f"Non-author records skipped: {summary['non_author_skipped']}")
    print(f"Malformed lines: {summary['malformed']}")
    print(f"Total errors: {summary['errors']}")
    print(f"Total batches: {summary['batches']} ({summary['failed_batches']} failed)")
    print(f"Total time: {summary['elapsed_seconds']:.2f} seconds")
    print(f"Average processing rate: {summary['average_rate']:.2f} lines/sec")
    print("=" * 60)


def search_authors_command(args) -> int:
    """
    Search authors and print the matches.

    Args:
        args: Command-line arguments

    Returns:
        Process exit status
    """
    try:
        olid = validate_olid(args.olid) if args.olid else None
        params = AuthorSearchParams(
            name=args.name,
            alternate_name=args.alternate_name,
            about=args.about,
            take=validate_limit(args.limit),
            skip=validate_offset(args.skip),
        )
    except (ValidationError, PydanticValidationError) as e:
        logger.error(f"Invalid arguments: {e}")
        return 1

    try:
        pool = create_pool(args)
        pool.open()
    except (ValueError, OperationalError) as e:
        logger.error(f"Cannot connect to database: {e}")
        return 1

    try:
        repository = AuthorRepository(pool)
        if olid:
            author = repository.get_by_olid(olid)
            authors = [author] if author else []
            total = len(authors)
        else:
            authors = repository.search(params)
            total = repository.count(params)
    finally:
        pool.close()

    print_search_results(authors, total)
    return 0


def print_search_results(authors: list[Author], total: int) -> None:
    """Print search matches with a short biography preview."""
    print(f"Found {len(authors)} authors of {total} total matches")
    if not authors:
        print("No authors found matching your search criteria.")
        return

    print("\nSearch Results:")
    print("=" * 62)
    for index, author in enumerate(authors, 1):
        print(f"{index}. {author.name}")
        if author.birth_date:
            print(f"   Birth Date: {author.birth_date.date().isoformat()}")
        if author.alternate_names:
            print(f"   Also known as: {', '.join(author.alternate_names)}")
        print(f"   Open Library ID: {author.olid}")
        if author.about:
            bio = author.about
            if len(bio) > BIO_PREVIEW_CHARS:
                bio = bio[:BIO_PREVIEW_CHARS] + "..."
            print(f"   Bio: {bio}")
        print("-" * 62)

    print(f"\nShowing {len(authors)} of {total} matching authors.")


def add_db_arguments(parser: argparse.ArgumentParser) -> None:
    """Database connection options; unset values fall back to DB_* env vars."""
    parser.add_argument("--db-host", default=None, help="Database host (env: DB_HOST)")
    parser.add_argument("--db-port", type=int, default=None, help="Database port (env: DB_PORT)")
    parser.add_argument("--db-name", default=None, help="Database name (env: DB_NAME)")
    parser.add_argument("--db-user", default=None, help="Database user (env: DB_USER)")
    parser.add_argument("--db-password", default=None, help="Database password (env: DB_PASSWORD)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="author-import",
        description="Open Library author importer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Import with the default batch size
  author-import import-authors data/ol_dump_authors.txt

  # Import 1000 authors per batch with settings from a YAML file
  author-import import-authors data/ol_dump_authors.txt 1000 --config config/importer.yaml

  # Search by name
  author-import search-authors --name austen --limit 5
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    import_parser = subparsers.add_parser("import-authors", help="Import an author dump")
    import_parser.add_argument(
        "file",
        nargs="?",
        default=DEFAULT_FILE,
        help=f"Path to the tab-separated dump (default: {DEFAULT_FILE})"
    )
    import_parser.add_argument(
        "batch_size",
        nargs="?",
        default=None,
        help=f"Authors per bulk insert (default: {DEFAULT_BATCH_SIZE})"
    )
    import_parser.add_argument("--config", default=None, help="Path to importer YAML settings")
    import_parser.add_argument(
        "--per-record-retry",
        action="store_true",
        help="Retry authors of a failed batch one at a time"
    )
    import_parser.add_argument(
        "--metrics-port",
        type=int,
        default=None,
        help="Expose Prometheus metrics on this port"
    )
    add_db_arguments(import_parser)

    search_parser = subparsers.add_parser("search-authors", help="Search imported authors")
    search_parser.add_argument("--olid", default=None, help="Look up one author by Open Library ID")
    search_parser.add_argument("--name", default=None, help="Substring of the name")
    search_parser.add_argument("--alternate-name", default=None, help="Exact alternate name")
    search_parser.add_argument("--about", default=None, help="Substring of the biography")
    search_parser.add_argument("--limit", type=int, default=10, help="Maximum results (default: 10)")
    search_parser.add_argument("--skip", type=int, default=0, help="Results to skip (default: 0)")
    add_db_arguments(search_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "import-authors":
        sys.exit(import_authors_command(args))
    elif args.command == "search-authors":
        sys.exit(search_authors_command(args))


if __name__ == "__main__":
    main()
