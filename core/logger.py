# -*- coding: utf-8 -*-
import logging
import os
import sys
from logging.handlers import RotatingFileHandler

LOG_FILE = "bot_actions.log"
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def setup_logger(log_file: str = None, level: str = None):
    """Configures logging to the console and a rotating file."""
    log_file = log_file or os.getenv("LOG_FILE", LOG_FILE)
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()

    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if log_file:
        try:
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)
        except OSError as e:
            logging.warning(f"Could not setup file logging: {e}")

    # Library noise
    logging.getLogger("aiogram").setLevel(logging.WARNING)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


def log_event(user: str, action: str, details: str = ""):
    """Logs a user action"""
    logger = logging.getLogger("EVENT")
    logger.info(f"USER: {user} | ACTION: {action} | DETAILS: {details}")
