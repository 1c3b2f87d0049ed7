"""
I configure process-wide logging for command-line runs. Library modules only call
logging.getLogger(__name__); handlers are installed here, once, by the entry point.

Key function: setup_logging — set the root level, replace existing handlers with a
console handler and an optional file handler sharing one timestamped format.
"""

from pathlib import Path
from typing import Optional
import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _level_of(log_level) -> int:
	if isinstance(log_level, int):
		return log_level
	level = logging.getLevelName(str(log_level).strip().upper())
	if isinstance(level, int):
		return level
	raise ValueError(f"UnknownLogLevel:{log_level}")


def setup_logging(
 log_level="INFO",
 log_file: Optional[str] = None,
 console: bool = True,
) -> logging.Logger:
	level = _level_of(log_level)
	if log_file:
		Path(log_file).parent.mkdir(parents=True, exist_ok=True)

	logger = logging.getLogger()
	logger.setLevel(level)
	for handler in logger.handlers[:]:
		logger.removeHandler(handler)

	formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

	if console:
		console_handler = logging.StreamHandler(sys.stderr)
		console_handler.setLevel(level)
		console_handler.setFormatter(formatter)
		logger.addHandler(console_handler)

	if log_file:
		file_handler = logging.FileHandler(log_file)
		file_handler.setLevel(level)
		file_handler.setFormatter(formatter)
		logger.addHandler(file_handler)

	return logger
