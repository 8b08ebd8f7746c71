"""Logging configuration for the todoview command line."""

import logging
import sys


def setup_logging(verbose: bool = False) -> None:
    """Route todoview logs to stderr.

    Only warnings are shown unless verbose is set. Call once, before the
    first command runs.
    """
    logger = logging.getLogger("todoview")
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    # Remove any pre-existing handlers to avoid duplicates.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
