import logging
import sys

LOGGER_NAME = "pgready"


def setup_logger(quiet: bool = False, verbose: bool = False) -> logging.Logger:
    """
    Configure the package logger. Quiet mode silences it completely so
    that only the exit status communicates the outcome.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for h in list(logger.handlers):
        logger.removeHandler(h)

    if quiet:
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.CRITICAL + 1)
        return logger

    h = logging.StreamHandler(sys.stderr)
    fmt = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S")
    h.setFormatter(fmt)
    logger.addHandler(h)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    return logger
