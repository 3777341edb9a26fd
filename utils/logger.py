"""
XRD Plotter Logger Module
Provides logging functionality for the tools and the application
"""

import logging
import sys
from datetime import datetime
from typing import Optional, Tuple


def setup_logger(
    name: str = 'xrd_plotter',
    level: int = logging.INFO,
    log_to_file: bool = False,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Set up and configure a logger

    Args:
        name: Logger name
        level: Logging level (default: INFO)
        log_to_file: Whether to also log to a file
        log_file: Path to log file (default: xrd_plotter_YYYYMMDD.log)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    logger.setLevel(level)

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)

    # Format
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler (optional)
    if log_to_file:
        if log_file is None:
            log_file = f"xrd_plotter_{datetime.now().strftime('%Y%m%d')}.log"

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


# Create default logger instance
logger = setup_logger()


def log_import_start(n_files: int, directory: str):
    """Log import start"""
    logger.info(f"Found {n_files} XRD files in {directory}")


def log_file_load(filename: str, n_points: int):
    """Log file loading"""
    logger.debug(f"Loaded {filename}: {n_points} data points")


def log_file_error(filename: str, error: str):
    """Log file loading error"""
    logger.warning(f"Failed to load {filename}: {error}")


def log_series_skipped(sample: str, reason: str):
    """Log a series excluded from the merge"""
    logger.warning(f"Skipping series {sample}: {reason}")


def log_merge_complete(n_rows: int, n_columns: int, theta_range: Tuple[float, float]):
    """Log merge completion"""
    logger.info(
        f"Merge complete: {n_rows} rows, {n_columns} columns, "
        f"2Theta range {theta_range[0]} to {theta_range[1]}"
    )


def log_offsets_resolved(offsets: dict):
    """Log resolved offsets"""
    summary = ", ".join(f"{k}={v:g}" for k, v in offsets.items())
    logger.debug(f"Resolved offsets: {summary}")


def log_plots_created(n_files: int, output_dir: str):
    """Log plot rendering"""
    logger.info(f"Created {n_files} plot files in {output_dir}")


def log_archive_created(zip_path: str, n_files: int):
    """Log archive creation"""
    logger.info(f"Archived {n_files} files to {zip_path}")


def log_error(message: str, exc_info: bool = False):
    """Log an error"""
    logger.error(message, exc_info=exc_info)


def log_warning(message: str):
    """Log a warning"""
    logger.warning(message)


def log_info(message: str):
    """Log an info message"""
    logger.info(message)


def log_debug(message: str):
    """Log a debug message"""
    logger.debug(message)
