import logging
import sys

from yksoft import config


def _build_logger():
    logger = logging.getLogger("yksoft")

    # Prevent creation of handlers more than once
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, config.LOG_LEVEL, logging.WARNING))

    formatter = logging.Formatter(
        "[%(asctime)s] [%(levelname)s] %(name)s "
        "%(message)s  (in %(filename)s:%(lineno)d)"
    )

    # ---- Console (stderr) Handler, stdout carries OTPs ----
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)

    logger.addHandler(console_handler)

    return logger


log = _build_logger()


def set_verbose(verbose: bool) -> None:
    """--verbose on the CLI: DEBUG instead of the configured level."""
    if verbose:
        log.setLevel(logging.DEBUG)
