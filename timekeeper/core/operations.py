# timekeeper/core/operations.py

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Union
from urllib.parse import quote, urlencode, urlsplit

from .api_gateway import ApiGateway, HttpMethod
from .document_store import DocumentStore
from .errors import ApiError, ValidationError
from .models import DailyLog, Project, ProjectCatalog, TimeLogEntry

logger = logging.getLogger(__name__)

MAX_HOURS = 23
MAX_MINUTES = 59


@dataclass(frozen=True)
class ModeChange:
    """The outcome of flipping mock mode; `going_live` asks for a louder warning."""
    mock_mode: bool

    @property
    def going_live(self) -> bool:
        return not self.mock_mode


@dataclass(frozen=True)
class SettingsSummary:
    user_name: str
    user_email: str
    api_url: str
    mock_mode: bool
    show_curl_commands: bool
    config_dir: str


# --- Input Validation ---
# Every check runs before the gateway is touched, so a rejected input never
# produces a request.

def parse_date(value: Union[str, date]) -> str:
    """Accepts a `date` or a 'YYYY-MM-DD' string and returns the ISO form."""
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return value.isoformat()
    text = (value or "").strip()
    if not text:
        raise ValidationError("date", "a date is required")
    try:
        return date.fromisoformat(text).isoformat()
    except ValueError:
        raise ValidationError("date", f"'{text}' is not a calendar date in YYYY-MM-DD format") from None


def parse_bounded_int(field: str, value: Union[int, str], upper: int) -> int:
    if isinstance(value, bool):
        raise ValidationError(field, "must be a whole number")
    if isinstance(value, str):
        text = value.strip()
        if not re.fullmatch(r"[0-9]+", text):
            raise ValidationError(field, f"'{value}' is not a whole number")
        value = int(text)
    if not isinstance(value, int):
        raise ValidationError(field, "must be a whole number")
    if not 0 <= value <= upper:
        raise ValidationError(field, f"must be between 0 and {upper}, got {value}")
    return value


class TimeTracker:
    """
    The business operations behind every menu entry.

    Each operation validates its input, reads the documents it needs fresh
    from the store and talks to the gateway. Nothing is cached between
    calls: the store is the single source of truth.
    """

    def __init__(self, store: DocumentStore, gateway: ApiGateway):
        self.store = store
        self.gateway = gateway

    # --- Time Logs ---

    def log_time(self, project_uuid: str, log_date: Union[str, date],
                 hours: Union[int, str], minutes: Union[int, str], note: str = "") -> TimeLogEntry:
        """
        Records `hours`:`minutes` of work on `log_date` against an active project.

        Raises:
            ValidationError: for a bad date, an out-of-range time or an
                unknown / paused project. No request is made in that case.
            ApiError: when the server rejects the entry or returns no id.
        """
        iso_date = parse_date(log_date)
        hours = parse_bounded_int("hours", hours, MAX_HOURS)
        minutes = parse_bounded_int("minutes", minutes, MAX_MINUTES)
        project = self._require_active_project(project_uuid)
        user = self.store.load_user()
        note = (note or "").strip()

        payload = {
            "date": iso_date,
            "hours": hours,
            "minutes": minutes,
            "project_uuid": project.uuid,
            "project_name": project.name,
            "note": note,
            "user_uuid": user.uuid,
        }
        response = self.gateway.call(HttpMethod.POST, "/time-logs", payload)
        log_id = response.get("id")
        if not log_id:
            raise ApiError(None, "server did not return an id for the new time log")

        logger.info(f"Logged {hours}h {minutes}m on {iso_date} for '{project.name}' as {log_id}")
        return TimeLogEntry(id=str(log_id), **payload)

    def view_logs(self, log_date: Union[str, date]) -> DailyLog:
        """Fetches the time logs recorded on one date, with their total."""
        iso_date = parse_date(log_date)
        response = self.gateway.call(HttpMethod.GET, "/time-logs?" + urlencode({"date": iso_date}))

        raw_logs = response.get("logs") or []
        if not isinstance(raw_logs, list):
            raise ApiError(None, "time log response has no 'logs' list")
        try:
            entries = [TimeLogEntry.from_dict(item) for item in raw_logs]
        except ValueError as e:
            raise ApiError(None, f"malformed time log in response: {e}") from e

        # The server filters by date already; an exact match is enforced anyway.
        entries = [entry for entry in entries if entry.date == iso_date]
        logger.debug(f"Fetched {len(entries)} time logs for {iso_date}")
        return DailyLog(iso_date, entries)

    def update_time_log(self, log_id: str, **fields: Any) -> Dict[str, Any]:
        """
        Amends an existing time log on the server.

        Accepts the same fields as `log_time` (date, hours, minutes,
        project_uuid, note) and validates each one that is given.
        """
        log_id = self._require_log_id(log_id)
        allowed = {"date", "hours", "minutes", "project_uuid", "note"}
        unknown = set(fields) - allowed
        if unknown:
            raise ValidationError(", ".join(sorted(unknown)), "cannot be changed on a time log")
        if not fields:
            raise ValidationError("fields", "nothing to update")

        changes: Dict[str, Any] = {}
        if "date" in fields:
            changes["date"] = parse_date(fields["date"])
        if "hours" in fields:
            changes["hours"] = parse_bounded_int("hours", fields["hours"], MAX_HOURS)
        if "minutes" in fields:
            changes["minutes"] = parse_bounded_int("minutes", fields["minutes"], MAX_MINUTES)
        if "project_uuid" in fields:
            project = self._require_active_project(fields["project_uuid"])
            changes["project_uuid"] = project.uuid
            changes["project_name"] = project.name
        if "note" in fields:
            changes["note"] = (fields["note"] or "").strip()

        response = self.gateway.call(HttpMethod.PUT, f"/time-logs/{quote(log_id, safe='')}", changes)
        logger.info(f"Updated time log {log_id}: {sorted(changes)}")
        return response

    def delete_time_log(self, log_id: str) -> Dict[str, Any]:
        log_id = self._require_log_id(log_id)
        response = self.gateway.call(HttpMethod.DELETE, f"/time-logs/{quote(log_id, safe='')}")
        logger.info(f"Deleted time log {log_id}")
        return response

    # --- Projects ---

    def list_projects(self) -> List[Project]:
        """All projects from the local catalog. No request is made."""
        return list(self.store.load_catalog().projects)

    def active_projects(self) -> List[Project]:
        return self.store.load_catalog().active()

    def refresh_projects(self) -> ProjectCatalog:
        """
        Replaces the local catalog with the server's copy.

        The response is validated first; when the request fails or the
        payload is not a valid catalog the local file is left untouched.
        """
        response = self.gateway.call(HttpMethod.GET, "/projects")
        try:
            catalog = ProjectCatalog.from_dict(response)
        except ValueError as e:
            logger.warning(f"Refusing to store project catalog from server: {e}")
            raise ApiError(None, f"server returned an invalid project catalog: {e}") from e

        self.store.save_catalog(catalog)
        logger.info(f"Project catalog refreshed with {len(catalog.projects)} projects")
        return catalog

    # --- Settings ---

    def edit_user_info(self, name: str, email: str):
        name = (name or "").strip()
        email = (email or "").strip()
        if not name:
            raise ValidationError("name", "a name is required")
        if not email or "@" not in email:
            raise ValidationError("email", f"'{email}' is not an email address")

        user = self.store.load_user()
        user.name = name
        user.email = email
        self.store.save_user(user)
        logger.info("User information updated")
        return user

    def edit_api_settings(self, url: str, token: str):
        url = (url or "").strip()
        token = (token or "").strip()
        parts = urlsplit(url)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValidationError("API URL", f"'{url}' is not an http(s) URL")
        if not token:
            raise ValidationError("API token", "a token is required")

        config = self.store.load_config().touched(api_url=url, api_token=token)
        self.store.save_config(config)
        logger.info(f"API settings updated (url={url})")
        return config

    def toggle_mock_mode(self) -> ModeChange:
        config = self.store.load_config()
        config = config.touched(mock_mode=not config.mock_mode)
        self.store.save_config(config)
        if config.mock_mode:
            logger.info("Mock mode enabled")
        else:
            logger.warning("Mock mode disabled; API calls will now go to the network")
        return ModeChange(config.mock_mode)

    def toggle_request_preview(self) -> bool:
        config = self.store.load_config()
        config = config.touched(show_curl_commands=not config.show_curl_commands)
        self.store.save_config(config)
        logger.info(f"Request preview set to {config.show_curl_commands}")
        return config.show_curl_commands

    def settings_summary(self) -> SettingsSummary:
        user = self.store.load_user()
        config = self.store.load_config()
        return SettingsSummary(
            user_name=user.name,
            user_email=user.email,
            api_url=config.api_url,
            mock_mode=config.mock_mode,
            show_curl_commands=config.show_curl_commands,
            config_dir=str(self.store.config_dir),
        )

    # --- Internals ---

    def _require_active_project(self, project_uuid: str) -> Project:
        # Read fresh every time; a refresh may have replaced the catalog.
        project = self.store.load_catalog().find(project_uuid or "")
        if project is None:
            raise ValidationError("project", f"no project with id '{project_uuid}'")
        if not project.is_active:
            raise ValidationError("project", f"'{project.name}' is {project.status.value}, not active")
        return project

    @staticmethod
    def _require_log_id(log_id: str) -> str:
        log_id = (log_id or "").strip()
        if not log_id:
            raise ValidationError("log id", "a time log id is required")
        return log_id
