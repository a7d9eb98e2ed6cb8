"""
Logging setup for SurveyMark
"""
from datetime import datetime
import logging
from pathlib import Path
from typing import Optional, Union

from surveymark import config


def setup_logging(
    name: str = "surveymark",
    level: Optional[Union[int, str]] = None,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """
    Set up logging for the annotation subsystem.

    Creates a console handler and, when log_dir is given, a timestamped
    file handler.

    Args:
        name: Logger name
        level: Logging level (default: SURVEYMARK_LOG_LEVEL, else INFO)
        log_dir: Directory for log files

    Returns:
        Configured logger
    """
    if level is None:
        level = config.LOG_LEVEL
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Clear existing handlers
    logger.handlers = []

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_format = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    console_handler.setFormatter(console_format)
    logger.addHandler(console_handler)

    # File handler
    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"{name}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_format = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        file_handler.setFormatter(file_format)
        logger.addHandler(file_handler)

    return logger
