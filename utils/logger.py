import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path


def setup_logger(log_file: str = "logs/focus.log", level: str = "INFO",
                 max_bytes: int = 1_000_000, backup_count: int = 3):
    Path(log_file).parent.mkdir(exist_ok=True, parents=True)
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
    formatter = logging.Formatter('%(asctime)s [%(levelname)s] %(name)s: %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    return logger
