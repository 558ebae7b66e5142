import logging

LOG_FORMAT = '[%(asctime)s] %(levelname)s %(name)s: %(message)s'


# Structured logger factory
def get_logger(name=None, level=None):
    """
    Return a logger with a standardized format.

    The logger gets its own handler and stops propagating, so a record is
    written once even after the root logger is configured.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
    if level is not None:
        logger.setLevel(level)
    return logger


def configure_logging(level='INFO'):
    """Configure the root and ledger loggers once per process."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
    get_logger('chainvote', level=level)
