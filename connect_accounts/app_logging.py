"""JSON log output for command-line and service use."""

import logging
from typing import Optional

from pythonjsonlogger import jsonlogger

from . import config


def setup_logger(level: Optional[int] = None) -> logging.Logger:
    """Attach a JSON handler to the root logger."""
    if config.LOGFILE:
        logHandler: logging.Handler = logging.FileHandler(config.LOGFILE)
    else:
        logHandler = logging.StreamHandler()
    formatter = jsonlogger.JsonFormatter('%(asctime)s %(levelname)s %(name)s %(message)s',
                                         rename_fields={'levelname': 'level', 'asctime': 'timestamp'})
    logHandler.setFormatter(formatter)
    logger = logging.getLogger()
    logger.addHandler(logHandler)
    logger.setLevel(config.LOGLEVEL if level is None else level)
    return logger
