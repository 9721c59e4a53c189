"""
Logging configuration for the matatu routing engine
"""

import logging
import os
import sys
from typing import Optional

from .config import config


class MatatuLogger:
    """Centralized logging for the matatu routing engine"""

    def __init__(self, name: str = "matatu", level: int = logging.INFO,
                 log_file: Optional[str] = None):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)
        self.logger.propagate = False

        # Prevent duplicate handlers
        if not self.logger.handlers:
            self._setup_handlers(level, log_file)

    def _setup_handlers(self, level: int, log_file: Optional[str]):
        """Setup console and optional file handlers"""
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_format = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        console_handler.setFormatter(console_format)
        self.logger.addHandler(console_handler)

        if log_file:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(logging.DEBUG)
            file_format = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
            )
            file_handler.setFormatter(file_format)
            self.logger.addHandler(file_handler)

    def info(self, message: str):
        """Log info message"""
        self.logger.info(message)

    def error(self, message: str):
        """Log error message"""
        self.logger.error(message)

    def log_route_request(self, origin: str, destination: str, duration_ms: float,
                          success: bool):
        """Log journey request metrics"""
        self.info(f"Route request: {origin} -> {destination}, "
                  f"duration={duration_ms:.2f}ms, success={success}")


# Global logger instance
logger = MatatuLogger(level=getattr(logging, config.log_level.upper(), logging.INFO),
                      log_file=config.log_file)
