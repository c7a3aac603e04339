# logging_config.py
# Wires console and rotating-file handlers onto the package logger.

import logging
import os
from logging.handlers import RotatingFileHandler

LOGGER_NAME = 'applicant_verify'
LOG_FORMAT = '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'


def configure_logging(settings):
    """
    Attaches handlers to the package logger according to `settings`.
    Outside debug/testing a rotating log file is written to settings.LOG_DIR.
    Safe to call more than once; existing handlers are replaced.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    level = getattr(logging, str(settings.LOG_LEVEL).upper(), logging.INFO)
    logger.setLevel(level)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter('%(levelname)s %(name)s: %(message)s'))
    stream_handler.setLevel(level)
    logger.addHandler(stream_handler)

    if not settings.DEBUG and not settings.TESTING:
        os.makedirs(settings.LOG_DIR, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(settings.LOG_DIR, 'applicant_verify.log'), maxBytes=10240, backupCount=10
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler.setLevel(logging.INFO)
        logger.addHandler(file_handler)
        logger.info('Applicant verification pipeline startup')

    return logger
