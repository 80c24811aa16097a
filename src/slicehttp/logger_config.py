import logging
from typing import Optional

LOGGER_NAME = "slicehttp"
FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    log_file: Optional[str] = None, log_level: int = logging.INFO
) -> logging.Logger:
    """
    Attach a handler to the package logger.

    Calling it again replaces the handler installed by the previous call
    instead of stacking a second one.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)
    formatter = logging.Formatter(FORMAT)

    for handler in list(logger.handlers):
        if getattr(handler, "_slicehttp_handler", False):
            logger.removeHandler(handler)
            handler.close()

    handler = logging.FileHandler(log_file) if log_file else logging.StreamHandler()
    handler.setFormatter(formatter)
    handler._slicehttp_handler = True
    logger.addHandler(handler)

    return logger
