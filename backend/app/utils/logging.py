"""
Logging setup for the API process and the maintenance scripts.
"""

import logging
import sys


def setup_logging(level: str = "INFO", service_name: str = "app") -> logging.Logger:
    """
    Configure the `service_name` logger hierarchy to write to stdout.

    Modules log through `logging.getLogger(__name__)`, so configuring "app"
    covers every module of the package. Calling again replaces the handler.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(service_name)
    logger.setLevel(log_level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        logging.Formatter(
            "[%(asctime)s] %(levelname)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(console_handler)

    return logger
