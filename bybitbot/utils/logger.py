import sys
from pathlib import Path

from loguru import logger

from .config import LoggingConfig

FORMAT = "{time:YYYY-MM-DD HH:mm:ss} [{level}]: {message}"


def setup_logger(cfg: LoggingConfig = LoggingConfig()):
    Path(cfg.log_dir).mkdir(parents=True, exist_ok=True)
    logger.remove()
    logger.add(sys.stderr, level=cfg.level, format=FORMAT)
    logger.add(Path(cfg.log_dir) / cfg.file_name, rotation=cfg.rotation, level=cfg.level, format=FORMAT)
    return logger
