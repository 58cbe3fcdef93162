"""Logging helper for the road mesh tools.

Geometry routines never log on their own; they hand diagnostics back
to the caller.  The orchestration layer (`Road`, `RoadPipeline` and the
command-line entry point) reports through the loggers returned here so
all messages share one format.
"""

import logging


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """Return a logger with a stream handler and the project format.

    The handler is attached only once per logger name, so repeated
    calls from different road instances do not duplicate output.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            fmt='[%(asctime)s] [%(levelname)s] %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(level)
    return logger
