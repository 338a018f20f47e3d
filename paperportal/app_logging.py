"""JSON log formatting for the portal."""

import logging

from pythonjsonlogger import jsonlogger


def setup_logger(level: int = logging.INFO) -> None:
    """Attach a JSON handler to the root logger, once."""
    logger = logging.getLogger()
    if any(getattr(h, '_paperportal', False) for h in logger.handlers):
        logger.setLevel(level)
        return
    log_handler = logging.StreamHandler()
    formatter = jsonlogger.JsonFormatter(
        '%(asctime)s %(levelname)s %(name)s %(message)s',
        rename_fields={'levelname': 'level', 'asctime': 'timestamp'}
    )
    log_handler.setFormatter(formatter)
    log_handler._paperportal = True     # type: ignore
    logger.addHandler(log_handler)
    logger.setLevel(level)
