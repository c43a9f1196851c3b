# timekeeper/cli/controller.py

import logging
from datetime import date
from enum import Enum, auto
from typing import Callable, Dict, List, Optional

from timekeeper.core.api_gateway import ApiGateway
from timekeeper.core.document_store import DocumentStore
from timekeeper.core.errors import (
    ApiError, StoreError, TimekeeperError, UnroutedMockError, ValidationError,
)
from timekeeper.core.models import DailyLog, Project, format_duration
from timekeeper.core.operations import MAX_HOURS, MAX_MINUTES, TimeTracker, parse_bounded_int, parse_date
from timekeeper.core.settings import AppPaths
from .terminal import TerminalUI

logger = logging.getLogger(__name__)

APP_TITLE = "⏰ Timekeeper"
APP_TAGLINE = "Beautiful time management at your fingertips"
# Daily logs longer than this are shown in a pager instead of inline.
PAGER_THRESHOLD = 10


class State(Enum):
    MAIN_MENU = auto()
    LOG_TIME = auto()
    VIEW_LOGS = auto()
    MANAGE_PROJECTS = auto()
    SETTINGS = auto()
    EXIT = auto()


# --- Menu Labels ---
# A simple mapping from what the user sees to the state it leads to.
MAIN_MENU_ITEMS = {
    "📝 Log Work Time": State.LOG_TIME,
    "📊 View Time Logs": State.VIEW_LOGS,
    "📋 Manage Projects": State.MANAGE_PROJECTS,
    "⚙️  Settings": State.SETTINGS,
    "🚪 Exit": State.EXIT,
}

LIST_PROJECTS = "📝 List Projects"
REFRESH_PROJECTS = "🔄 Refresh from Server"
EDIT_API = "🔧 Edit API Settings"
EDIT_USER = "👤 Edit User Info"
TOGGLE_MOCK = "🎭 Toggle Mock Mode"
TOGGLE_PREVIEW = "📡 Toggle Request Preview"
BACK = "⬅️  Back to Main Menu"


class Controller:
    """
    The interactive menu loop, written as an explicit finite-state machine.

    Every state has a handler that runs one screen to completion and returns
    the next state. MAIN_MENU is the initial state and the one every flow
    returns to; EXIT ends the loop. Because all input goes through the
    TerminalUI protocol, the whole loop can be driven by a scripted fake.
    """

    def __init__(self, tracker: TimeTracker, ui: TerminalUI):
        self.tracker = tracker
        self.ui = ui
        self.handlers: Dict[State, Callable[[], State]] = {
            State.MAIN_MENU: self.main_menu,
            State.LOG_TIME: self.log_time,
            State.VIEW_LOGS: self.view_logs,
            State.MANAGE_PROJECTS: self.manage_projects,
            State.SETTINGS: self.settings,
        }

    def run(self, state: State = State.MAIN_MENU) -> None:
        while state is not State.EXIT:
            next_state = self.handlers[state]()
            logger.debug(f"Transition {state.name} -> {next_state.name}")
            state = next_state

        self.ui.clear()
        self.ui.say("👋 Thanks for using Timekeeper!", "title")

    def show_request(self, command: str) -> None:
        """Preview hook for the gateway: shows the equivalent curl command."""
        self.ui.say("📡 API Call:", "muted")
        self.ui.panel(command, "muted")

    # --- Main Menu ---

    def main_menu(self) -> State:
        self.ui.clear()
        self.ui.banner(APP_TITLE, APP_TAGLINE)
        self.ui.say("Manage your work hours with style ✨", "muted")
        choice = self.ui.choose("What would you like to do?", list(MAIN_MENU_ITEMS))
        if choice is None:
            # Cancelling the top-level menu means leaving the application.
            return State.EXIT
        return MAIN_MENU_ITEMS[choice]

    # --- Log Work Time ---

    def log_time(self) -> State:
        self.ui.clear()
        self.ui.heading("📝 LOG WORK TIME")
        try:
            self._log_time_flow()
        except TimekeeperError as e:
            self._report(e)
        self.ui.pause()
        return State.MAIN_MENU

    def _log_time_flow(self) -> None:
        project = self._select_project()
        if project is None:
            return

        log_date = self._ask_date()
        if log_date is None:
            return

        self.ui.say("⏱️  Enter time spent:", "accent")
        hours = self._ask_number("Hours (0-23)", "hours", MAX_HOURS)
        if hours is None:
            return
        minutes = self._ask_number("Minutes (0-59)", "minutes", MAX_MINUTES)
        if minutes is None:
            return

        note = self.ui.write("📝 Add a note (optional):")
        if note is None:
            return

        entry = self.ui.spin("Logging time...", self.tracker.log_time,
                             project.uuid, log_date, hours, minutes, note)

        self.ui.say("✅ Time logged successfully!", "success")
        self.ui.say("📊 Summary:", "muted")
        self.ui.say(f"  Date: {entry.date}")
        self.ui.say(f"  Time: {entry.hours}h {entry.minutes}m")
        self.ui.say(f"  Project: {entry.project_name}")
        if entry.note:
            self.ui.say(f"  Note: {entry.note}")
        self.ui.say(f"  Log ID: {entry.id}", "muted")

    def _select_project(self) -> Optional[Project]:
        projects = self.tracker.active_projects()
        if not projects:
            self.ui.say("❌ No active projects found!", "error")
            return None

        labels = self._project_labels(projects)
        choice = self.ui.choose("🎯 Select a project:", list(labels))
        if choice is None:
            return None
        return labels[choice]

    @staticmethod
    def _project_labels(projects: List[Project]) -> Dict[str, Project]:
        names = [p.name for p in projects]
        labels = {}
        for project in projects:
            # Two projects may share a name; their uuid tells them apart.
            label = project.name if names.count(project.name) == 1 else f"{project.name} ({project.uuid})"
            labels[label] = project
        return labels

    def _ask_date(self) -> Optional[str]:
        today = date.today().isoformat()
        answer = self.ui.ask("📅 Enter date (YYYY-MM-DD)", default=today)
        if not answer:
            return None
        try:
            return parse_date(answer)
        except ValidationError as e:
            self._report(e)
            return None

    def _ask_number(self, prompt: str, field: str, upper: int) -> Optional[int]:
        answer = self.ui.ask(prompt)
        if not answer:
            return None
        try:
            return parse_bounded_int(field, answer, upper)
        except ValidationError as e:
            self._report(e)
            return None

    # --- View Time Logs ---

    def view_logs(self) -> State:
        self.ui.clear()
        self.ui.heading("📊 VIEW TIME LOGS")
        try:
            log_date = self._ask_date()
            if log_date is not None:
                daily = self.ui.spin("Fetching logs...", self.tracker.view_logs, log_date)
                self._show_daily_log(daily)
        except TimekeeperError as e:
            self._report(e)
        self.ui.pause()
        return State.MAIN_MENU

    def _show_daily_log(self, daily: DailyLog) -> None:
        if daily.is_empty:
            self.ui.say(f"📭 No logs found for {daily.date}", "muted")
            return

        self.ui.say(f"📋 Time logs for {daily.date}:", "success")
        lines = []
        for entry in daily.entries:
            lines.append(f"🕐 {format_duration(entry.total_minutes)} - {entry.project_name or entry.project_uuid}")
            lines.append(f"   📝 {entry.note or 'No note'}")
            lines.append("")

        if len(daily.entries) > PAGER_THRESHOLD:
            self.ui.page("\n".join(lines))
        else:
            for line in lines:
                self.ui.say(line)
        self.ui.panel(f"⏱️  Total: {daily.total_display}", "accent")

    # --- Manage Projects ---

    def manage_projects(self) -> State:
        self.ui.clear()
        self.ui.heading("📋 MANAGE PROJECTS")
        action = self.ui.choose("Choose an action:", [LIST_PROJECTS, REFRESH_PROJECTS, BACK])
        if action is None or action == BACK:
            return State.MAIN_MENU

        try:
            if action == LIST_PROJECTS:
                self._list_projects()
            elif action == REFRESH_PROJECTS:
                self._refresh_projects()
        except TimekeeperError as e:
            self._report(e)
        self.ui.pause()
        return State.MAIN_MENU

    def _list_projects(self) -> None:
        projects = self.ui.spin("Loading projects...", self.tracker.list_projects)
        if not projects:
            self.ui.say("📭 The project catalog is empty.", "muted")
            return
        rows = [[p.name, p.status.value, p.description] for p in projects]
        self.ui.table("🎯 Available Projects", ["Project", "Status", "Description"], rows)

    def _refresh_projects(self) -> None:
        try:
            catalog = self.ui.spin("Syncing with server...", self.tracker.refresh_projects)
        except (ApiError, UnroutedMockError) as e:
            self.ui.say("❌ Failed to refresh projects!", "error")
            self._report(e)
            return
        self.ui.say(f"✅ Projects refreshed successfully! ({len(catalog.projects)} projects)", "success")

    # --- Settings ---

    def settings(self) -> State:
        self.ui.clear()
        self.ui.heading("⚙️  SETTINGS")
        try:
            summary = self.tracker.settings_summary()
        except StoreError as e:
            self._report(e)
            self.ui.pause()
            return State.MAIN_MENU

        self.ui.say(f"👤 Current User: {summary.user_name}")
        self.ui.say(f"📧 Email: {summary.user_email}", "muted")
        self.ui.say(f"🌐 API URL: {summary.api_url}", "muted")
        self.ui.say(f"🎭 Mock Mode: {str(summary.mock_mode).lower()}", "muted")
        self.ui.say(f"📡 Request Preview: {str(summary.show_curl_commands).lower()}", "muted")
        self.ui.say(f"💾 Config Dir: {summary.config_dir}", "muted")

        action = self.ui.choose("Configuration Options:", [EDIT_API, EDIT_USER, TOGGLE_MOCK, TOGGLE_PREVIEW, BACK])
        if action is None or action == BACK:
            return State.MAIN_MENU

        flows = {
            EDIT_API: self._edit_api_settings,
            EDIT_USER: self._edit_user_info,
            TOGGLE_MOCK: self._toggle_mock_mode,
            TOGGLE_PREVIEW: self._toggle_request_preview,
        }
        try:
            flows[action]()
        except TimekeeperError as e:
            self._report(e)
        self.ui.pause()
        return State.MAIN_MENU

    def _edit_api_settings(self) -> None:
        self.ui.say("🔧 Edit API Settings", "accent")
        config = self.tracker.store.load_config()
        url = self.ui.ask("API URL", default=config.api_url)
        if not url:
            return
        token = self.ui.ask("API Token (leave empty to keep the current one)", default=config.api_token, password=True)
        if not token:
            return
        self.tracker.edit_api_settings(url, token)
        self.ui.say("✅ API settings updated!", "success")

    def _edit_user_info(self) -> None:
        self.ui.say("👤 Edit User Information", "accent")
        user = self.tracker.store.load_user()
        name = self.ui.ask("Full Name", default=user.name)
        if not name:
            return
        email = self.ui.ask("Email", default=user.email)
        if not email:
            return
        self.tracker.edit_user_info(name, email)
        self.ui.say("✅ User information updated!", "success")

    def _toggle_mock_mode(self) -> None:
        change = self.tracker.toggle_mock_mode()
        if change.going_live:
            self.ui.say("⚠️  Enabling real API mode!", "error")
            self.ui.say("Requests will now be sent to the configured API URL. Make sure your API settings are correct.", "muted")
        else:
            self.ui.say("🎭 Enabling mock mode for testing.", "success")
        self.ui.say(f"✅ Mock mode set to: {str(change.mock_mode).lower()}", "success")

    def _toggle_request_preview(self) -> None:
        enabled = self.tracker.toggle_request_preview()
        self.ui.say(f"✅ Request preview {'enabled' if enabled else 'disabled'}.", "success")

    # --- Error Reporting ---

    def _report(self, error: TimekeeperError) -> None:
        """Shows a failure to the user; the session always carries on."""
        if isinstance(error, ValidationError):
            self.ui.say(f"❌ {error}", "error")
        elif isinstance(error, UnroutedMockError):
            self.ui.say(f"⚠️  {error}", "warning")
            self.ui.say("Mock mode only answers the built-in routes. Toggle mock mode in Settings to use the real API.", "muted")
        elif isinstance(error, ApiError):
            self.ui.say(f"❌ {error}", "error")
            self.ui.say("Live mode is on. Check the API URL and token in Settings, or switch back to mock mode.", "muted")
        elif isinstance(error, StoreError):
            logger.error(f"Store problem: {error}")
            self.ui.say(f"❌ Cannot use {error.path}: {error.reason}", "error")
            self.ui.say("Fix the file by hand, or delete it and restart Timekeeper to recreate the default.", "muted")
        else:
            self.ui.say(f"❌ {error}", "error")


def build_controller(paths: AppPaths, ui: TerminalUI) -> Controller:
    """Wires the store, gateway and operations together behind one controller."""
    store = DocumentStore(paths)
    gateway = ApiGateway(store)
    controller = Controller(TimeTracker(store, gateway), ui)
    gateway.preview = controller.show_request
    return controller
