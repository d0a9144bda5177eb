"""
log_config.py

Runtime logging for the conversion stage, for error tracing and timing.

Provides functions to:
- Set up the shared conversion logger with a timestamped log file (`setup_logger`)
- Release the log file and console handlers again (`close_logger`)

All messages from DEBUG up go to the log file; with `verbose=True`, INFO and up are
also echoed to the terminal. Entries read:

    %(asctime)s - %(levelname)s - %(message)s

Usage Example
-------------
>>> from log_config import setup_logger, close_logger
>>> logger, log_path = setup_logger("US-WCr", verbose=True)
>>> logger.info("Converting US-WCr")
>>> close_logger(logger)
"""

import logging
import os
from datetime import datetime

from convert_config import LOGS_DIR

LOGGER_NAME = "sharedLogger"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def setup_logger(
    name: str, logs_dir: str = LOGS_DIR, verbose: bool = False
) -> tuple[logging.Logger, str | None]:
    """
    Attach a log file named convert_<name>.<YYYYmmddHHMM>.log to the shared conversion logger.

    Parameters
    ----------
    name : str
        Run identifier, usually the site file prefix.
    logs_dir : str
        Directory of the log file, created if missing. Defaults to "convert_logs".
    verbose : bool
        Echo INFO and up to the terminal.

    Returns
    -------
    logger : logging.Logger
        The shared conversion logger.
    log_filepath : str or None
        Path of the log file, or None if the logger already had handlers and was left as is.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        # Already set up by the caller, keep its handlers
        logger.info(f"Starting conversion for: {name}")
        return logger, None

    os.makedirs(logs_dir, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d%H%M")
    log_filepath = os.path.join(logs_dir, f"convert_{name}.{stamp}.log")
    _add_handlers(logger, log_filepath, verbose)

    logger.info(f"Starting conversion for: {name}")
    return logger, log_filepath


def _add_handlers(logger: logging.Logger, log_filepath: str, verbose: bool) -> None:
    logger.setLevel(logging.DEBUG)
    formatter = logging.Formatter(LOG_FORMAT)

    # handlers are named after the log file, so close_logger can find them again
    file_handler = logging.FileHandler(log_filepath, mode="w")
    file_handler.set_name(log_filepath)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if verbose:
        console_handler = logging.StreamHandler()
        console_handler.set_name(log_filepath)
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)


def close_logger(logger: logging.Logger, log_filepath: str | None = None) -> None:
    """
    Detach and close handlers of `logger`, so the log file is released.

    Parameters
    ----------
    logger : logging.Logger
        Logger to release.
    log_filepath : str, optional
        Log file returned by setup_logger. Only the handlers attached for it are closed;
        when None, every handler is closed.
    """
    for handler in list(logger.handlers):
        if log_filepath is None or handler.get_name() == log_filepath:
            logger.removeHandler(handler)
            handler.close()
