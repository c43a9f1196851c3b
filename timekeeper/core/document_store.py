# timekeeper/core/document_store.py

import json
import logging
import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

from .errors import CorruptStoreError, MissingStoreError, StoreInitError
from .models import AppConfig, ProjectCatalog, User, now_timestamp
from .settings import AppPaths

# A dedicated logger for the module that owns every file the application writes.
logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.gumtime.example.com"
DEFAULT_API_TOKEN = "your-api-token-here"


class DocumentKind(Enum):
    """The three documents the store manages, mapped to their file names."""
    USER = "user.json"
    PROJECTS = "projects.json"
    CONFIG = "config.json"


Document = Union[User, ProjectCatalog, AppConfig]

# The model class used to parse and validate each kind of document.
_MODELS = {
    DocumentKind.USER: User,
    DocumentKind.PROJECTS: ProjectCatalog,
    DocumentKind.CONFIG: AppConfig,
}


# --- Seed Content ---
# Written once, on first run, for every document that does not exist yet.

DEFAULT_USER = {
    "uuid": "user-12345-abcde",
    "name": "Demo User",
    "email": "demo@example.com",
}

DEFAULT_PROJECTS = {
    "projects": [
        {
            "uuid": "proj-001-website",
            "name": "Company Website Redesign",
            "description": "Complete redesign of company website",
            "status": "active",
        },
        {
            "uuid": "proj-002-mobile",
            "name": "Mobile App Development",
            "description": "iOS and Android app development",
            "status": "active",
        },
        {
            "uuid": "proj-003-api",
            "name": "REST API Backend",
            "description": "Backend API development",
            "status": "active",
        },
        {
            "uuid": "proj-004-docs",
            "name": "Documentation Update",
            "description": "Technical documentation update",
            "status": "paused",
        },
    ]
}


def default_config() -> Dict[str, Any]:
    return {
        "api_url": DEFAULT_API_URL,
        "api_token": DEFAULT_API_TOKEN,
        "mock_mode": True,
        "show_curl_commands": True,
        "last_updated": now_timestamp(),
    }


class DocumentStore:
    """
    Loads, validates and persists the user, project catalog and config documents.

    Every write replaces the whole document atomically, and every read parses
    and schema-checks the file. A document that fails validation is reported
    as corrupt and is never overwritten behind the user's back.
    """

    def __init__(self, paths: AppPaths):
        self.paths = paths

    @property
    def config_dir(self) -> Path:
        return self.paths.config_dir

    def path_for(self, kind: DocumentKind) -> Path:
        return self.paths.config_dir / kind.value

    # --- First-run Setup ---

    def initialize(self) -> List[DocumentKind]:
        """
        Creates the config directory and seeds every missing document.

        Documents that already exist are left alone, even when they are
        corrupt; fixing those is up to the user.

        Returns:
            The kinds of documents that were created by this call.
        """
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Cannot create config directory {self.config_dir}: {e}")
            raise StoreInitError(self.config_dir, f"cannot create config directory ({e})") from e

        seeds = {
            DocumentKind.USER: DEFAULT_USER,
            DocumentKind.PROJECTS: DEFAULT_PROJECTS,
            DocumentKind.CONFIG: default_config(),
        }
        created = []
        for kind, content in seeds.items():
            path = self.path_for(kind)
            if path.exists():
                continue
            try:
                self._write_atomic(path, content)
            except OSError as e:
                logger.error(f"Cannot seed {path}: {e}")
                raise StoreInitError(path, f"cannot create default document ({e})") from e
            logger.info(f"Seeded default {kind.name.lower()} document at {path}")
            created.append(kind)
        return created

    # --- Generic Load / Save ---

    def load_raw(self, kind: DocumentKind) -> Dict[str, Any]:
        """Reads a document as plain JSON after checking it against its schema."""
        path, data = self._read(kind)
        # Parsing through the model is the schema check.
        self._parse(kind, path, data)
        return data

    def load(self, kind: DocumentKind) -> Document:
        path, data = self._read(kind)
        return self._parse(kind, path, data)

    def save(self, kind: DocumentKind, document: Document) -> None:
        if not isinstance(document, _MODELS[kind]):
            raise TypeError(f"{kind.name} documents must be {_MODELS[kind].__name__}, got {type(document).__name__}")
        path = self.path_for(kind)
        self._write_atomic(path, document.to_dict())
        logger.debug(f"Saved {kind.name.lower()} document to {path}")

    # --- Typed Accessors ---

    def load_user(self) -> User:
        return self.load(DocumentKind.USER)

    def load_catalog(self) -> ProjectCatalog:
        return self.load(DocumentKind.PROJECTS)

    def load_config(self) -> AppConfig:
        return self.load(DocumentKind.CONFIG)

    def save_user(self, user: User) -> None:
        self.save(DocumentKind.USER, user)

    def save_catalog(self, catalog: ProjectCatalog) -> None:
        self.save(DocumentKind.PROJECTS, catalog)

    def save_config(self, config: AppConfig) -> None:
        self.save(DocumentKind.CONFIG, config)

    # --- Internals ---

    def _read(self, kind: DocumentKind) -> Tuple[Path, Any]:
        """Reads and decodes a document's JSON without checking its schema."""
        path = self.path_for(kind)
        if not path.exists():
            raise MissingStoreError(path, "document does not exist")

        try:
            with open(path, "r", encoding="utf-8") as f:
                return path, json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Document {path} is not valid JSON: {e}")
            raise CorruptStoreError(path, f"not valid JSON ({e})") from e
        except UnicodeDecodeError as e:
            logger.error(f"Document {path} is not valid UTF-8: {e}")
            raise CorruptStoreError(path, f"not valid UTF-8 text ({e})") from e
        except OSError as e:
            raise CorruptStoreError(path, f"cannot be read ({e})") from e

    @staticmethod
    def _parse(kind: DocumentKind, path: Path, data: Any) -> Document:
        try:
            return _MODELS[kind].from_dict(data)
        except ValueError as e:
            logger.error(f"Document {path} failed validation: {e}")
            raise CorruptStoreError(path, str(e)) from e

    @staticmethod
    def _write_atomic(path: Path, data: Dict[str, Any]) -> None:
        """
        Writes `data` as JSON next to `path` and renames it into place.

        The rename is atomic on the same filesystem, so readers only ever see
        the old document or the complete new one.
        """
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                json.dump(data, tmp, indent=2)
                tmp.write("\n")
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            # Never leave half-written temp files behind.
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
