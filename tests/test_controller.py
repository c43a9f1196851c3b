# tests/test_controller.py

from unittest import mock

import pytest

from timekeeper.cli.controller import (
    BACK, EDIT_API, EDIT_USER, LIST_PROJECTS, MAIN_MENU_ITEMS, REFRESH_PROJECTS,
    TOGGLE_MOCK, TOGGLE_PREVIEW, State, build_controller,
)
from timekeeper.core.document_store import DocumentKind
from timekeeper.core.models import ProjectCatalog

LABELS = {state: label for label, state in MAIN_MENU_ITEMS.items()}
LOG, VIEW, PROJECTS, SETTINGS, EXIT = (
    LABELS[State.LOG_TIME], LABELS[State.VIEW_LOGS], LABELS[State.MANAGE_PROJECTS],
    LABELS[State.SETTINGS], LABELS[State.EXIT],
)


class ScriptedTerminal:
    """
    A headless stand-in for the rich terminal.

    Every prompt (choose / ask / write) consumes the next scripted answer;
    once the script runs out, prompts behave as if the user cancelled.
    Everything that would be displayed is collected in `output`.
    """

    def __init__(self, *answers):
        self.answers = list(answers)
        self.output = []
        self.menus = []

    def _next(self):
        return self.answers.pop(0) if self.answers else None

    @property
    def text(self):
        return "\n".join(self.output)

    def clear(self):
        pass

    def banner(self, title, subtitle):
        self.output.append(title)

    def heading(self, title):
        self.output.append(title)

    def say(self, text, style="text"):
        self.output.append(text)

    def panel(self, text, style="accent", title=None):
        self.output.append(text)

    def table(self, title, columns, rows):
        self.output.append(title)
        self.output.extend(" | ".join(row) for row in rows)

    def choose(self, title, options):
        self.menus.append(list(options))
        answer = self._next()
        assert answer is None or answer in options, f"{answer!r} is not one of {options}"
        return answer

    def ask(self, prompt, default="", password=False):
        return self._next()

    def write(self, prompt):
        return self._next()

    def spin(self, title, func, *args, **kwargs):
        return func(*args, **kwargs)

    def page(self, text):
        self.output.append(text)

    def pause(self):
        pass


@pytest.fixture
def make_controller(paths):
    """Builds a controller over a seeded store, driven by the given script."""
    def factory(*answers):
        ui = ScriptedTerminal(*answers)
        controller = build_controller(paths, ui)
        controller.tracker.store.initialize()
        return controller, ui
    return factory


# --- Navigation ---

def test_exit_ends_the_loop(make_controller):
    controller, ui = make_controller(EXIT)

    controller.run()

    assert "Thanks for using Timekeeper" in ui.text
    assert len(ui.menus) == 1


def test_cancelling_main_menu_exits(make_controller):
    controller, ui = make_controller()

    controller.run()

    assert "Thanks for using Timekeeper" in ui.text


def test_every_flow_returns_to_main_menu(make_controller):
    controller, ui = make_controller(PROJECTS, BACK, SETTINGS, BACK, EXIT)

    controller.run()

    main_menu = list(MAIN_MENU_ITEMS)
    assert ui.menus == [
        main_menu,
        [LIST_PROJECTS, REFRESH_PROJECTS, BACK],
        main_menu,
        [EDIT_API, EDIT_USER, TOGGLE_MOCK, TOGGLE_PREVIEW, BACK],
        main_menu,
    ]


# --- Log Work Time ---

def test_log_time_happy_path(make_controller):
    controller, ui = make_controller(
        LOG, "Company Website Redesign", "2025-06-19", "2", "30", "Responsive layout", EXIT,
    )

    controller.run()

    assert "✅ Time logged successfully!" in ui.text
    assert "  Time: 2h 30m" in ui.output
    assert "  Project: Company Website Redesign" in ui.output
    assert "  Note: Responsive layout" in ui.output
    # Request preview is on by default.
    assert "📡 API Call:" in ui.output


def test_log_time_only_offers_active_projects(make_controller):
    controller, ui = make_controller(LOG)

    controller.run()

    assert ui.menus[1] == ["Company Website Redesign", "Mobile App Development", "REST API Backend"]


def test_log_time_invalid_hours_aborts_without_request(make_controller):
    controller, ui = make_controller(LOG, "REST API Backend", "2025-06-19", "24", EXIT)
    gateway = controller.tracker.gateway

    with mock.patch.object(gateway, "call", wraps=gateway.call) as call:
        controller.run()

    assert call.call_count == 0
    assert any("Invalid hours" in line for line in ui.output)
    assert ui.menus[-1] == list(MAIN_MENU_ITEMS)


def test_log_time_empty_date_is_a_quiet_abort(make_controller):
    controller, ui = make_controller(LOG, "REST API Backend", "", EXIT)

    with mock.patch.object(controller.tracker, "log_time") as log_time:
        controller.run()

    log_time.assert_not_called()
    assert not any(line.startswith("❌") for line in ui.output)


def test_no_active_projects_never_reaches_log_time(make_controller):
    controller, ui = make_controller(LOG, EXIT)
    controller.tracker.store.save_catalog(ProjectCatalog.from_dict({"projects": [
        {"uuid": "p1", "name": "Old", "description": "", "status": "paused"},
    ]}))

    with mock.patch.object(controller.tracker, "log_time") as log_time:
        controller.run()

    log_time.assert_not_called()
    assert "❌ No active projects found!" in ui.output
    assert len(ui.menus) == 2


# --- View Time Logs ---

def test_view_logs_shows_entries_and_total(make_controller):
    controller, ui = make_controller(VIEW, "2025-06-19", EXIT)

    controller.run()

    assert "📋 Time logs for 2025-06-19:" in ui.output
    assert "🕐 2h 30m - Company Website Redesign" in ui.output
    assert "⏱️  Total: 4h 15m" in ui.output


def test_view_logs_empty_day(make_controller):
    controller, ui = make_controller(VIEW, "2025-06-19", EXIT)

    with mock.patch.object(controller.tracker.gateway, "call", return_value={"logs": []}):
        controller.run()

    assert "📭 No logs found for 2025-06-19" in ui.output


def test_unrouted_mock_route_is_reported_not_raised(make_controller):
    controller, ui = make_controller(VIEW, "2025-06-19", EXIT)
    controller.tracker.gateway.routes = []

    controller.run()

    assert any("not available in mock mode" in line for line in ui.output)
    assert "Thanks for using Timekeeper" in ui.text


# --- Manage Projects ---

def test_list_projects_shows_catalog(make_controller):
    controller, ui = make_controller(PROJECTS, LIST_PROJECTS, EXIT)

    controller.run()

    assert "Documentation Update | paused | Technical documentation update" in ui.output


def test_refresh_failure_in_live_mode_keeps_session_alive(make_controller):
    controller, ui = make_controller(PROJECTS, REFRESH_PROJECTS, EXIT)
    store = controller.tracker.store
    store.save_config(store.load_config().touched(mock_mode=False))
    before = store.path_for(DocumentKind.PROJECTS).read_bytes()
    session = mock.Mock()
    session.request.return_value = mock.Mock(status_code=502, text="Bad Gateway", reason="Bad Gateway")
    controller.tracker.gateway.session = session

    controller.run()

    assert "❌ Failed to refresh projects!" in ui.output
    assert any("HTTP 502" in line for line in ui.output)
    assert store.path_for(DocumentKind.PROJECTS).read_bytes() == before
    assert "Thanks for using Timekeeper" in ui.text


def test_refresh_success_in_mock_mode(make_controller):
    controller, ui = make_controller(PROJECTS, REFRESH_PROJECTS, EXIT)

    controller.run()

    assert "✅ Projects refreshed successfully! (4 projects)" in ui.output


# --- Settings ---

def test_edit_user_info_flow(make_controller):
    controller, ui = make_controller(SETTINGS, EDIT_USER, "Alice", "a@x.com", EXIT)

    controller.run()

    user = controller.tracker.store.load_user()
    assert (user.name, user.email, user.uuid) == ("Alice", "a@x.com", "user-12345-abcde")
    assert "✅ User information updated!" in ui.output


def test_edit_api_settings_flow(make_controller):
    controller, ui = make_controller(SETTINGS, EDIT_API, "https://time.example.org", "tok-9999", EXIT)

    controller.run()

    config = controller.tracker.store.load_config()
    assert (config.api_url, config.api_token) == ("https://time.example.org", "tok-9999")


def test_toggle_mock_mode_warns_distinctly(make_controller):
    controller, ui = make_controller(SETTINGS, TOGGLE_MOCK, SETTINGS, TOGGLE_MOCK, EXIT)

    controller.run()

    going_live = ui.output.index("⚠️  Enabling real API mode!")
    back_to_mock = ui.output.index("🎭 Enabling mock mode for testing.")
    assert going_live < back_to_mock
    assert controller.tracker.store.load_config().mock_mode is True


def test_toggle_request_preview_hides_api_calls(make_controller):
    controller, ui = make_controller(SETTINGS, TOGGLE_PREVIEW, VIEW, "2025-06-19", EXIT)

    controller.run()

    assert "📡 API Call:" not in ui.output


def test_corrupt_document_is_reported_with_remediation(make_controller):
    controller, ui = make_controller(SETTINGS, EXIT)
    path = controller.tracker.store.path_for(DocumentKind.USER)
    path.write_text("{ broken", encoding="utf-8")

    controller.run()

    assert any(line.startswith(f"❌ Cannot use {path}") for line in ui.output)
    assert any("delete it and restart" in line for line in ui.output)
    assert path.read_text(encoding="utf-8") == "{ broken"
    assert "Thanks for using Timekeeper" in ui.text


def test_undecodable_document_is_reported_not_raised(make_controller):
    controller, ui = make_controller(SETTINGS, EXIT)
    path = controller.tracker.store.path_for(DocumentKind.USER)
    path.write_bytes(b'{"name": "\xff"}')

    controller.run()

    assert any(line.startswith(f"❌ Cannot use {path}") for line in ui.output)
    assert "Thanks for using Timekeeper" in ui.text
