# timekeeper/utils/logger.py

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from timekeeper.core.settings import AppPaths


class LoggerManager:
    """
    Configures the application-wide logging system.

    Two handlers are attached to the root logger:
    1. Console Handler: WARNING and above only. The interactive menus own the
       screen, so routine messages must not be printed between prompts.
    2. Rotating File Handler: DEBUG and above, written into the config
       directory next to the JSON documents. It rotates at 5MB and keeps
       five backups.
    """

    def __init__(self, log_file_path: Path, log_level=logging.DEBUG):
        """
        Initializes the manager.

        Args:
            log_file_path: Where the rotating log file is written.
            log_level: The base logging level to capture (e.g., DEBUG, INFO).
        """
        self.log_file_path = log_file_path
        self.log_level = log_level
        self.root_logger = logging.getLogger()

    def setup(self):
        """Configures and attaches handlers to the root logger, once."""
        # Calling this twice must not duplicate every log line.
        if self.root_logger.hasHandlers():
            return

        self.root_logger.setLevel(self.log_level)
        self.root_logger.addHandler(self._create_console_handler())

        file_handler = self._create_file_handler()
        if file_handler is not None:
            self.root_logger.addHandler(file_handler)

        logging.info(f"Logging configured. Detailed log: {self.log_file_path}")

    def _create_console_handler(self) -> logging.StreamHandler:
        handler = logging.StreamHandler()
        handler.setLevel(logging.WARNING)
        formatter = logging.Formatter(
            '%(asctime)s - [%(levelname)s] - %(message)s',
            datefmt='%H:%M:%S'
        )
        handler.setFormatter(formatter)
        return handler

    def _create_file_handler(self) -> Optional[logging.handlers.RotatingFileHandler]:
        """Creates the rotating file handler, or None when the file cannot be opened."""
        try:
            self.log_file_path.parent.mkdir(parents=True, exist_ok=True)
            handler = logging.handlers.RotatingFileHandler(
                self.log_file_path, maxBytes=5*1024*1024, backupCount=5, encoding='utf-8'
            )
        except OSError as e:
            logging.warning(f"File logging disabled, cannot open {self.log_file_path}: {e}")
            return None
        handler.setLevel(logging.DEBUG)
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - [%(levelname)s] - %(filename)s:%(lineno)d - %(message)s'
        )
        handler.setFormatter(formatter)
        return handler


def setup_logging(paths: AppPaths):
    """Initializes and configures the application-wide logging system."""
    manager = LoggerManager(paths.log_file)
    manager.setup()
