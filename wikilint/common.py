"""
Common utility functions for the wikilint solution.
"""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


# Rich console for output
console = Console()


def setup_logging(
    name: str = "wikilint",
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """Set up logging with Rich handler."""
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Clear existing handlers
    logger.handlers.clear()

    # Console handler with Rich
    console_handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    # File handler if specified
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


# Default logger
logger = setup_logging()


def uc_first(value: str) -> str:
    """Uppercase the first character of a string."""
    if not value:
        return value
    return value[0].upper() + value[1:]


def normalize_title(title: str, case_sensitive: bool = False) -> str:
    """
    Normalize a page title the way MediaWiki does.

    Args:
        title: Raw title
        case_sensitive: Keep the first letter as written

    Returns:
        Title with underscores as spaces, collapsed spaces and,
        unless case sensitive, an uppercase first letter
    """
    title = " ".join(title.replace("_", " ").split())
    if case_sensitive:
        return title
    return uc_first(title)


def are_same_title(title1: Optional[str], title2: Optional[str]) -> bool:
    """Check if two titles designate the same page."""
    if title1 is None or title2 is None:
        return False
    return normalize_title(title1) == normalize_title(title2)


def context_excerpt(contents: str, begin: int, end: int, margin: int = 20) -> str:
    """Extract a one-line excerpt around a span."""
    begin = max(0, begin)
    end = min(len(contents), max(begin, end))
    start = max(0, begin - margin)
    stop = min(len(contents), end + margin)
    excerpt = contents[start:stop].replace("\n", " ")
    prefix = "..." if start > 0 else ""
    suffix = "..." if stop < len(contents) else ""
    return f"{prefix}{excerpt}{suffix}"


def format_duration(seconds: int) -> str:
    """Format duration in seconds to human-readable string."""
    if seconds < 60:
        return f"{seconds}s"
    elif seconds < 3600:
        minutes = seconds // 60
        secs = seconds % 60
        return f"{minutes}m {secs}s"
    else:
        hours = seconds // 3600
        minutes = (seconds % 3600) // 60
        return f"{hours}h {minutes}m"
