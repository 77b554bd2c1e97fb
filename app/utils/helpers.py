"""
Helper utilities for the file ingestion service.

Common functions used across domains.
"""

import sys
from pathlib import Path
from typing import Iterator

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def configure_logging(level: str = "INFO") -> None:
    """Replace loguru's default sink with a formatted stdout sink."""
    logger.remove()
    logger.add(sys.stdout, format=LOG_FORMAT, level=level.upper())


def format_bytes(bytes_count: int) -> str:
    """Format bytes as human-readable string."""
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if bytes_count < 1024.0:
            return f"{bytes_count:.1f} {unit}"
        bytes_count /= 1024.0
    return f"{bytes_count:.1f} PB"


def normalise_path(path: Path) -> Path:
    """Return a resolved version of ``path`` without forcing existence."""
    try:
        return path.expanduser().resolve()
    except FileNotFoundError:
        return path.expanduser().absolute()


def iter_files(root: Path, recursive: bool = True) -> Iterator[Path]:
    """
    Yield regular files below ``root``.

    Args:
        root: Directory to scan
        recursive: Descend into subdirectories

    Yields:
        File paths, in directory listing order
    """
    candidates = root.rglob("*") if recursive else root.iterdir()
    for candidate in candidates:
        try:
            if candidate.is_file():
                yield candidate
        except OSError as e:
            # Entry vanished or is unreadable between listing and check
            logger.debug(f"Skipping {candidate}: {e}")
