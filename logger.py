"""Structured logging infrastructure with verbosity levels and progress tracking."""

import logging
import logging.handlers
import os
import platform
import sys
import threading
import time
from typing import Any, Dict, List, Optional

ROOT_LOGGER_NAME = 'wordpress_mdx_migrator'


def setup_logging(
    verbosity: int = 0,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    level: Optional[str] = None
) -> logging.Logger:
    """
    Set up structured logging with configurable verbosity levels.

    The console gets a colored formatter when colorlog is installed. When a
    log file is given, every record is mirrored to it with a timestamp; the
    file is appended to so earlier runs stay readable.

    Args:
        verbosity: Verbosity level (0=INFO, 1+=DEBUG)
        log_file: Optional path to log file
        log_format: Optional custom log format string
        date_format: Optional custom date format string
        level: Optional explicit log level string (overridden by verbosity)

    Returns:
        Configured logger instance
    """
    if verbosity >= 1:
        log_level = logging.DEBUG
    elif level:
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        level_upper = level.upper()
        if level_upper not in allowed_levels:
            raise ValueError(
                f"Invalid log level '{level}'. Must be one of: {sorted(allowed_levels)}"
            )
        log_level = getattr(logging, level_upper)
    else:
        log_level = logging.INFO

    if log_format is None:
        log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    if date_format is None:
        date_format = '%Y-%m-%d %H:%M:%S'

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(log_level)
    logger.propagate = False

    # Clear existing handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)

    try:
        import colorlog

        formatter = colorlog.ColoredFormatter(
            fmt='%(log_color)s' + log_format,
            datefmt=date_format,
            log_colors={
                'DEBUG': 'cyan',
                'INFO': 'green',
                'WARNING': 'yellow',
                'ERROR': 'red',
                'CRITICAL': 'red,bg_white',
            }
        )
    except ImportError:
        formatter = logging.Formatter(fmt=log_format, datefmt=date_format)

    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding='utf-8'
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(logging.Formatter(fmt=log_format, datefmt=date_format))
            logger.addHandler(file_handler)

            logger.debug(f"Logging to file: {log_file}")
        except OSError as e:
            logger.warning(f"Failed to set up file logging: {str(e)}")

    logger.debug(f"Log level: {logging.getLevelName(log_level)}")
    return logger


def shutdown_logging() -> None:
    """Flush and detach all handlers installed by setup_logging."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.flush()
        logger.removeHandler(handler)
        handler.close()


class ProgressTracker:
    """Counts finished records across worker threads and logs a run summary."""

    def __init__(self, total_items: int, item_type: str = "items", log_every: int = 10):
        """
        Initialize progress tracker.

        Args:
            total_items: Total number of items to process
            item_type: Plural noun used in log lines ("records")
            log_every: Log a progress line after this many items
        """
        self.total_items = total_items
        self.item_type = item_type
        self.log_every = max(1, log_every)
        self.processed_items = 0
        self.successful_items = 0
        self.failed_items = 0
        self.start_time: Optional[float] = None
        self.logger = logging.getLogger(ROOT_LOGGER_NAME)
        self._lock = threading.Lock()

    def __enter__(self) -> 'ProgressTracker':
        """Enter progress tracking context."""
        self.start_time = time.time()
        self.logger.info(
            f"Starting processing of {self.total_items} {self.item_type}"
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit progress tracking context and log summary."""
        if self.start_time is None:
            return

        elapsed = time.time() - self.start_time
        if not self.failed_items:
            log_method = self.logger.info
        elif self.failed_items == self.total_items:
            log_method = self.logger.error
        else:
            log_method = self.logger.warning

        log_method(
            f"Finished {self.processed_items}/{self.total_items} {self.item_type} in "
            f"{self._format_elapsed(elapsed)}: {self.successful_items} converted, "
            f"{self.failed_items} failed"
        )

    def increment(self, success: bool = True) -> None:
        """
        Increment progress counter. Safe to call from worker threads.

        Args:
            success: Whether the item was processed successfully
        """
        with self._lock:
            self.processed_items += 1

            if success:
                self.successful_items += 1
            else:
                self.failed_items += 1

            processed = self.processed_items

        if processed % self.log_every == 0 or not success:
            self.logger.info(
                f"Progress: {processed}/{self.total_items} {self.item_type} "
                f"({self.failed_items} failed so far)"
            )

    @staticmethod
    def _format_elapsed(seconds: float) -> str:
        """Format elapsed time in human-readable format."""
        if seconds < 60:
            return f"{seconds:.1f}s"

        minutes = int(seconds // 60)
        seconds = int(seconds % 60)

        if minutes < 60:
            return f"{minutes}m {seconds}s"

        hours = minutes // 60
        minutes = minutes % 60

        return f"{hours}h {minutes}m {seconds}s"


def log_section(title: str) -> None:
    """
    Log a decorative section header.

    Args:
        title: Section title to display
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)

    separator = "=" * 60
    logger.info("")
    logger.info(separator)
    logger.info(f"  {title.upper()}")
    logger.info(separator)
    logger.info("")


def log_run_header(argv: List[str], input_path: str, output_dir: str) -> None:
    """
    Log the invocation context at the top of a run.

    Args:
        argv: Command line the process was started with
        input_path: Export file being converted
        output_dir: Directory receiving the converted documents
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)

    logger.info(f"Command: {' '.join(argv)}")
    logger.info(f"INPUT: {os.path.abspath(input_path)}")
    logger.info(f"OUTPUT: {os.path.abspath(output_dir)}")
    logger.info(f"cwd: {os.getcwd()}")
    logger.info(f"runtime: Python {platform.python_version()} ({sys.platform})")


def log_config(config: Dict[str, Any]) -> None:
    """
    Log the effective configuration.

    Args:
        config: Configuration dictionary to log
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)

    log_section("Configuration")

    export_settings = config.get('export', {})
    logger.info(f"Output Directory: {export_settings.get('output_directory', 'out')}")
    logger.info(f"Limit: {export_settings.get('limit') or 'None'}")
    logger.info(f"Overwrite: {export_settings.get('overwrite', False)}")
    logger.info(f"Max Workers: {export_settings.get('max_workers', 4)}")
    logger.info(f"Post Types: {', '.join(export_settings.get('post_types', ['post']))}")
    logger.info(f"Write Report: {export_settings.get('write_report', True)}")

    logger.info("")

    images = config.get('images', {})
    logger.info(f"Verify SSL: {images.get('verify_ssl', True)}")
    logger.info(f"Request Timeout: {images.get('timeout', 30)}s")
    logger.debug(f"User Agent: {images.get('user_agent', 'Not Set')}")


__all__ = [
    'ROOT_LOGGER_NAME',
    'setup_logging',
    'shutdown_logging',
    'ProgressTracker',
    'log_section',
    'log_run_header',
    'log_config'
]
