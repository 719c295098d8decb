import logging

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level=logging.INFO, fmt: str = LOG_FORMAT) -> logging.Logger:
    """
    Attach a stream handler to the package logger.

    Calling it again only updates the level, no second handler is added.
    """
    logger = logging.getLogger('subgroup_miner')
    logger.setLevel(level)
    if not any(getattr(h, '_subgroup_miner', False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt))
        handler._subgroup_miner = True
        logger.addHandler(handler)
    return logger
