"""
Utility Functions
=================

General utility functions used throughout SurfPlot.

Functions
---------
configure_logging
    Set up logging for the SurfPlot package with customizable
    output format and destinations.
"""

import logging
import SurfPlot


def configure_logging(level=logging.INFO, logfile=None):
    """Configure logging for the SurfPlot package.

    Sets up a logger with a standard format and optional file output.
    This is called automatically when SurfPlot is imported. Calling it
    again replaces the handlers installed by a previous call.

    Parameters
    ----------
    level : int, default logging.INFO
        Logging level (e.g., logging.DEBUG, logging.INFO, logging.WARNING).
    logfile : str, optional
        Path to log file. If provided, logs are written to both console
        and file. If None, logs only to console.

    Examples
    --------
    >>> from SurfPlot.utils import configure_logging
    >>> import logging
    >>>
    >>> # Set debug level and log to file
    >>> configure_logging(level=logging.DEBUG, logfile='surfplot.log')

    Notes
    -----
    The log format is: "HH:MM:SS message"
    """
    logger = logging.getLogger(SurfPlot.__name__)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if getattr(handler, "_surfplot_handler", False):
            logger.removeHandler(handler)
            handler.close()

    logger_handler = logging.StreamHandler()
    formatter = logging.Formatter("%(asctime)s %(message)s", datefmt="%H:%M:%S")
    logger_handler.setFormatter(formatter)
    logger_handler._surfplot_handler = True
    logger.addHandler(logger_handler)

    if logfile is not None:
        file_logger_handler = logging.FileHandler(logfile)
        file_logger_handler.setFormatter(formatter)
        file_logger_handler._surfplot_handler = True
        logger.addHandler(file_logger_handler)
