# timekeeper/core/settings.py

from dataclasses import dataclass
from pathlib import Path

# The per-user directory holding every document the application owns.
DEFAULT_DIR_NAME = ".timekeeper"
LOG_FILE_NAME = "timekeeper.log"


@dataclass(frozen=True)
class AppPaths:
    """
    Where the application keeps its files.

    An instance is created once at startup and handed to the document store,
    the logger and the controller, so tests can point everything at a
    temporary directory instead of the real home folder.
    """
    config_dir: Path

    @classmethod
    def default(cls) -> "AppPaths":
        return cls(Path.home() / DEFAULT_DIR_NAME)

    @property
    def log_file(self) -> Path:
        return self.config_dir / LOG_FILE_NAME
