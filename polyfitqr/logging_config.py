"""
Logging configuration for the polyfitqr namespace.

Modules log through ``logging.getLogger(__name__)``; nothing is printed
until a handler is installed here (or by the host application).
"""

import logging
import sys
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Attach console (and optional file) handlers to the package logger.

    Args:
        level: Logging level (e.g. logging.DEBUG to see solver details)
        log_file: Optional path to save logs to a file.

    Returns:
        The configured 'polyfitqr' logger.
    """
    logger = logging.getLogger("polyfitqr")
    logger.setLevel(level)

    # Repeated calls replace handlers instead of duplicating output.
    # The package NullHandler stays.
    for handler in logger.handlers[:]:
        if isinstance(handler, logging.NullHandler):
            continue
        handler.close()
        logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S')

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug("Logging initialized.")
    return logger
