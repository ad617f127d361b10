import logging
import sys


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a console handler to the ``pos`` logger tree (once)."""

    logger = logging.getLogger("pos")
    logger.setLevel(level)
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger
