#!/usr/bin/env python3
"""
WordPress to MDX Migration Tool - Main CLI Entry Point

This script provides the command-line interface for converting a WordPress
WXR export into MDX documents with localized images and front matter.
"""

import argparse
import logging
import os
import shutil
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from config_loader import ConfigLoader, get_nested
from logger import log_config, log_run_header, log_section, setup_logging, shutdown_logging
from models import MigrationError, OutputDirectoryError
from orchestrator import MigrationOrchestrator, MigrationReport
from orchestrator.record_sampler import parse_limit

# Version
__version__ = "1.0.0"

DEFAULT_CONFIG_FILE = 'config.yaml'


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for CLI."""
    parser = argparse.ArgumentParser(
        description="Convert a WordPress export into MDX documents with local images",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Convert every post into ./out
  python migrate.py export.xml

  # Convert into a custom directory, replacing a previous run
  python migrate.py export.xml content/blog --overwrite

  # Convert a sample of 20 posts spread across title initials
  python migrate.py export.xml --limit=20

  # Accept self-signed certificates on image hosts
  python migrate.py export.xml --insecure

  # Verbose logging
  python migrate.py export.xml -v
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        'export_file',
        help='Path to the WordPress WXR export file'
    )

    parser.add_argument(
        'output_dir',
        nargs='?',
        default=None,
        help='Output directory (default: export.output_directory, "out")'
    )

    parser.add_argument(
        '--limit',
        type=str,
        default=None,
        help='Convert at most N posts, sampled across title initials'
    )

    parser.add_argument(
        '--overwrite',
        action='store_true',
        help='Delete the contents of a non-empty output directory first (the log file is kept)'
    )

    parser.add_argument(
        '--insecure',
        action='store_true',
        help='Disable TLS certificate verification for image downloads'
    )

    parser.add_argument(
        '--workers',
        type=int,
        default=None,
        help='Number of posts converted in parallel (default: 4)'
    )

    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help=f'Path to configuration YAML file (default: {DEFAULT_CONFIG_FILE} if present)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Enable debug logging'
    )

    return parser


def resolve_limit(config: dict, raw_limit: Optional[str], logger: logging.Logger) -> None:
    """Store the --limit value in the config, warning about unusable values."""
    if raw_limit is None:
        return

    limit = parse_limit(raw_limit)
    if limit is None:
        logger.warning(f"Ignoring invalid --limit value '{raw_limit}', converting all posts")
    config.setdefault('export', {})['limit'] = limit


def prepare_output_directory(output_dir: Path, overwrite: bool, preserve: str) -> None:
    """
    Make sure the output directory exists and is empty.

    Args:
        output_dir: Run output directory
        overwrite: Clear a non-empty directory instead of refusing it
        preserve: Log file name kept when clearing

    Raises:
        OutputDirectoryError: If the directory is unusable or non-empty
            without ``overwrite``
    """
    if output_dir.exists() and not output_dir.is_dir():
        raise OutputDirectoryError(f"Output path is not a directory: {output_dir}")

    if not output_dir.exists():
        try:
            output_dir.mkdir(parents=True)
        except OSError as e:
            raise OutputDirectoryError(f"Cannot create output directory {output_dir}: {e}") from e
        return

    entries = list(output_dir.iterdir())
    if not entries:
        return

    if not overwrite:
        raise OutputDirectoryError(
            f"Output directory {output_dir} is not empty; use --overwrite to replace its contents"
        )

    try:
        for entry in entries:
            # Keep the log file and its rotated backups
            if entry.name == preserve or entry.name.startswith(preserve + '.'):
                continue
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()
    except OSError as e:
        raise OutputDirectoryError(f"Cannot clear output directory {output_dir}: {e}") from e


def load_configuration(args: argparse.Namespace) -> dict:
    """Load, merge and validate configuration."""
    config_path = args.config
    if config_path is None and os.path.exists(DEFAULT_CONFIG_FILE):
        config_path = DEFAULT_CONFIG_FILE

    config = ConfigLoader.load(config_path)
    config = ConfigLoader.merge_with_args(config, args)
    return config


def run_migration(config: dict, export_file: str, output_dir: Path, logger: logging.Logger) -> int:
    """Execute the complete migration pipeline."""
    logger.info("Starting migration pipeline")

    try:
        orchestrator = MigrationOrchestrator(config, str(output_dir), logger)
        report = orchestrator.orchestrate_migration(export_file)

        # Display report
        report_generator = MigrationReport(logger)
        print("\n" + report_generator.format_console_report(report))

        failed = report.get('summary', {}).get('failed', 0)
        if failed > 0:
            logger.warning(f"Migration completed with {failed} failed post(s)")
            return 1

        logger.info("Migration completed successfully")
        return 0

    except KeyboardInterrupt:
        logger.error("Migration interrupted by user")
        return 130
    except MigrationError as e:
        logger.error(f"Migration failed: {str(e)}")
        return 1
    except Exception as e:
        logger.error(f"Migration failed: {str(e)}", exc_info=True)
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)
    command_line = sys.argv if argv is None else [sys.argv[0]] + list(argv)

    try:
        setup_logging(verbosity=args.verbose)
        logger = logging.getLogger('wordpress_mdx_migrator.cli')

        # Load configuration (CLI takes precedence)
        config = load_configuration(args)
        resolve_limit(config, args.limit, logger)
        ConfigLoader.validate(config)

        if not Path(args.export_file).is_file():
            logger.error(f"Export file not found: {args.export_file}")
            return 1

        output_dir = Path(get_nested(config, 'export.output_directory', 'out'))
        log_name = get_nested(config, 'logging.file_name', 'conversion-log.txt')

        try:
            prepare_output_directory(output_dir, get_nested(config, 'export.overwrite', False), log_name)
        except OutputDirectoryError as e:
            logger.error(str(e))
            return 1

        # Reconfigure logging with the log file inside the output directory
        setup_logging(
            verbosity=args.verbose,
            log_file=str(output_dir / log_name),
            level=get_nested(config, 'logging.level', 'INFO')
        )
        logger = logging.getLogger('wordpress_mdx_migrator.cli')

        log_run_header(command_line, args.export_file, str(output_dir))
        log_section("WordPress to MDX Migration Tool")
        logger.info(f"Version: {__version__}")
        log_config(config)

        return run_migration(config, args.export_file, output_dir, logger)

    except FileNotFoundError as e:
        print(f"ERROR: File not found: {e}", file=sys.stderr)
        return 2
    except (ValueError, yaml.YAMLError) as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nMigration interrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        logging.getLogger('wordpress_mdx_migrator.cli').error(f"Unexpected error: {e}", exc_info=True)
        print(f"ERROR: Unexpected error: {e}", file=sys.stderr)
        return 1
    finally:
        shutdown_logging()


def cli() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
