# tests/test_document_store.py

import json
from unittest import mock

import pytest

from timekeeper.core.document_store import DocumentKind, DocumentStore
from timekeeper.core.errors import CorruptStoreError, MissingStoreError, StoreInitError
from timekeeper.core.models import ProjectCatalog, ProjectStatus, User
from timekeeper.core.settings import AppPaths


# --- First-run Seeding ---

def test_initialize_creates_directory_and_all_documents(paths):
    """The first run creates the directory and seeds all three documents."""
    store = DocumentStore(paths)

    created = store.initialize()

    assert paths.config_dir.is_dir()
    assert set(created) == {DocumentKind.USER, DocumentKind.PROJECTS, DocumentKind.CONFIG}
    for kind in DocumentKind:
        assert store.path_for(kind).exists()


def test_seeded_defaults(store):
    """The seeded documents carry the documented literal defaults."""
    user = store.load_user()
    catalog = store.load_catalog()
    config = store.load_config()

    assert user.uuid == "user-12345-abcde"
    assert user.name == "Demo User"
    assert [p.uuid for p in catalog.projects] == [
        "proj-001-website", "proj-002-mobile", "proj-003-api", "proj-004-docs",
    ]
    assert catalog.find("proj-004-docs").status is ProjectStatus.PAUSED
    assert len(catalog.active()) == 3
    assert config.api_url == "https://api.gumtime.example.com"
    assert config.mock_mode is True
    assert config.show_curl_commands is True


def test_initialize_is_idempotent_and_keeps_existing_files(store):
    """A second run creates nothing and leaves edited documents alone."""
    user = store.load_user()
    user.name = "Alice"
    store.save_user(user)

    created = store.initialize()

    assert created == []
    assert store.load_user().name == "Alice"


def test_initialize_never_overwrites_a_corrupt_document(store):
    path = store.path_for(DocumentKind.PROJECTS)
    path.write_text("{ not json", encoding="utf-8")

    store.initialize()

    assert path.read_text(encoding="utf-8") == "{ not json"


def test_initialize_reports_uncreatable_directory(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory")
    store = DocumentStore(AppPaths(blocker / "config"))

    with pytest.raises(StoreInitError):
        store.initialize()


# --- Loading and Validation ---

def test_load_missing_document_raises(paths):
    store = DocumentStore(paths)

    with pytest.raises(MissingStoreError):
        store.load(DocumentKind.USER)


@pytest.mark.parametrize("content", [
    "{ not json",
    json.dumps({"uuid": "u-1", "name": "No Email"}),
    json.dumps({"uuid": "u-1", "name": 42, "email": "a@x.com"}),
    json.dumps(["not", "an", "object"]),
])
def test_load_malformed_user_raises_corrupt(store, content):
    path = store.path_for(DocumentKind.USER)
    path.write_text(content, encoding="utf-8")

    with pytest.raises(CorruptStoreError) as excinfo:
        store.load_user()

    assert excinfo.value.path == path
    # The broken file is reported, never repaired silently.
    assert path.read_text(encoding="utf-8") == content


def test_catalog_with_unknown_status_is_corrupt(store):
    bad = {"projects": [{"uuid": "p1", "name": "P", "description": "", "status": "archived"}]}
    store.path_for(DocumentKind.PROJECTS).write_text(json.dumps(bad), encoding="utf-8")

    with pytest.raises(CorruptStoreError, match="archived"):
        store.load_catalog()


def test_catalog_with_duplicate_uuids_is_corrupt(store):
    project = {"uuid": "p1", "name": "P", "description": "", "status": "active"}
    store.path_for(DocumentKind.PROJECTS).write_text(json.dumps({"projects": [project, project]}), encoding="utf-8")

    with pytest.raises(CorruptStoreError, match="more than once"):
        store.load_catalog()


def test_config_with_non_boolean_flag_is_corrupt(store):
    path = store.path_for(DocumentKind.CONFIG)
    data = json.loads(path.read_text(encoding="utf-8"))
    data["mock_mode"] = "true"
    path.write_text(json.dumps(data), encoding="utf-8")

    with pytest.raises(CorruptStoreError, match="mock_mode"):
        store.load_config()


def test_non_utf8_document_is_corrupt(store):
    path = store.path_for(DocumentKind.USER)
    path.write_bytes(b'{"name": "\xff"}')

    with pytest.raises(CorruptStoreError, match="UTF-8") as excinfo:
        store.load_user()

    assert excinfo.value.path == path
    assert path.read_bytes() == b'{"name": "\xff"}'


def test_load_parses_each_document_once(store):
    with mock.patch.object(User, "from_dict", wraps=User.from_dict) as from_dict:
        user = store.load_user()

    assert user.name == "Demo User"
    assert from_dict.call_count == 1


# --- Saving ---

def test_save_round_trip_and_leaves_no_temp_files(store):
    catalog = ProjectCatalog.from_dict({"projects": [
        {"uuid": "p-9", "name": "Solo", "description": "Only one", "status": "active"},
    ]})

    store.save_catalog(catalog)

    assert store.load_catalog() == catalog
    leftovers = [p.name for p in store.config_dir.iterdir() if p.name.endswith(".tmp")]
    assert leftovers == []


def test_save_rejects_wrong_document_type(store):
    with pytest.raises(TypeError):
        store.save(DocumentKind.USER, store.load_config())
