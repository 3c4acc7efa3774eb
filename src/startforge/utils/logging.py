"""Logging configuration for startforge.

Every startforge module logs through ``logging.getLogger(__name__)``; this
module configures the shared ``startforge`` logger once per run.

Features:
    - Rich console handler on stderr, so feature tables can go to stdout
    - Optional debug log file
    - Verbosity levels matching the -q / -v CLI flags
    - Periodic progress lines for genome-wide contig scans
    - Command timings

Example:
    >>> import logging
    >>> from startforge.utils.logging import setup_logging
    >>> setup_logging(verbosity=2)
    >>> logging.getLogger("startforge.core.starts").debug("Scanning contig")
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

# =============================================================================
# Constants
# =============================================================================

ROOT_LOGGER = "startforge"

# Plain and log-file format
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Rich adds level and markup itself
RICH_FORMAT = "%(message)s"

# -q, default, -v
VERBOSITY_LEVELS = {
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
}


# =============================================================================
# Setup
# =============================================================================


def setup_logging(
    verbosity: int = 1,
    log_file: Path | str | None = None,
    use_rich: bool = True,
) -> logging.Logger:
    """Configure the ``startforge`` logger.

    Calling this again replaces the handlers of the previous call.

    Args:
        verbosity: Console verbosity (0=warning, 1=info, 2=debug).
        log_file: Optional file that receives every debug message.
        use_rich: Use a rich handler for the console; otherwise a plain
            stream handler on stderr.

    Returns:
        The configured package logger.
    """
    level = VERBOSITY_LEVELS.get(verbosity, logging.DEBUG)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG if log_file is not None else level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler: logging.Handler
    if use_rich:
        console_handler = RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            show_time=False,
            show_path=False,
        )
        console_handler.setFormatter(logging.Formatter(RICH_FORMAT))
    else:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        file_handler.setLevel(logging.DEBUG)
        logger.addHandler(file_handler)

    return logger


# =============================================================================
# Progress and Timing
# =============================================================================


class ProgressLogger:
    """Periodic progress messages for a loop of known length.

    A line is logged every ``interval`` items and at the last item.

    Example:
        >>> progress = ProgressLogger(logger, total=len(genome.contigs), description="g1 contigs")
        >>> for contig in genome.contigs:
        ...     scan(contig)
        ...     progress.update()
    """

    def __init__(
        self,
        logger: logging.Logger,
        total: int,
        interval: int = 100,
        description: str = "Processing",
    ) -> None:
        self.logger = logger
        self.total = total
        self.interval = interval
        self.description = description
        self.count = 0

    def update(self, n: int = 1) -> None:
        """Count ``n`` more items done."""
        self.count += n
        if self.count % self.interval == 0 or self.count == self.total:
            pct = 100 * self.count / self.total if self.total > 0 else 100
            self.logger.info(f"{self.description}: {self.count}/{self.total} ({pct:.1f}%)")


class Timer:
    """Context manager that logs the wall time of a block.

    Example:
        >>> with Timer("Feature table", logger):
        ...     write_predict_table(genome, orf_indexes, out)
        # Logs: "Feature table completed in 1.23s"
    """

    def __init__(self, description: str, logger: logging.Logger | None = None) -> None:
        self.description = description
        self.logger = logger or logging.getLogger(ROOT_LOGGER)
        self.start_time: float = 0
        self.elapsed: float = 0

    def __enter__(self) -> Timer:
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args: Any) -> None:
        self.elapsed = time.perf_counter() - self.start_time
        self.logger.info(f"{self.description} completed in {self.elapsed:.2f}s")
