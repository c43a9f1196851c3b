# timekeeper/core/api_gateway.py

import json
import logging
import re
import shlex
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Pattern, Union
from urllib.parse import parse_qs, urlsplit

import requests

from .document_store import DocumentKind, DocumentStore
from .errors import ApiError, UnroutedMockError
from .models import AppConfig, ProjectCatalog

logger = logging.getLogger(__name__)

USER_AGENT = "TimeTracker-CLI/1.0"
# Date stamped onto the canned time logs when the request carries no filter.
MOCK_DEFAULT_DATE = "2025-06-19"


class HttpMethod(Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


JsonBody = Optional[Dict[str, Any]]
MockHandler = Callable[["MockRequest"], Dict[str, Any]]


@dataclass(frozen=True)
class MockRequest:
    """What a mock handler gets to see: the parsed path, its query and the body."""
    method: HttpMethod
    path: str
    query: Dict[str, List[str]]
    body: JsonBody


@dataclass(frozen=True)
class MockRoute:
    method: HttpMethod
    pattern: Pattern
    handler: MockHandler


def render_request(method: HttpMethod, url: str, token: str, body: JsonBody = None) -> str:
    """
    Renders the equivalent curl command for a request.

    The bearer token is masked down to its last four characters so the
    preview can be shown on screen without leaking the secret.
    """
    masked = "*" * max(len(token) - 4, 0) + token[-4:]
    parts = [
        "curl", "-s", "-X", method.value,
        "-H", f"Authorization: Bearer {masked}",
        "-H", "Content-Type: application/json",
        "-H", f"User-Agent: {USER_AGENT}",
    ]
    if body is not None and method is not HttpMethod.GET:
        parts += ["-d", json.dumps(body, separators=(",", ":"))]
    parts.append(url)
    return " ".join(shlex.quote(part) for part in parts)


class ApiGateway:
    """
    The single door to the remote time-tracking API.

    Depending on the persisted `mock_mode` flag, a call is either answered
    from a table of canned routes or sent over HTTP with `requests`. The
    configuration is re-read on every call so toggling the mode in the
    settings menu takes effect immediately.
    """

    def __init__(self,
                 store: DocumentStore,
                 session: Optional[requests.Session] = None,
                 preview: Optional[Callable[[str], None]] = None,
                 clock: Callable[[], float] = time.time):
        self.store = store
        self.session = session or requests.Session()
        self.preview = preview
        self.clock = clock
        self.routes: List[MockRoute] = self._build_routes()

    # --- Public API ---

    def call(self, method: Union[HttpMethod, str], path: str, body: JsonBody = None) -> Dict[str, Any]:
        """
        Executes one API call and returns the decoded JSON response.

        Raises:
            UnroutedMockError: in mock mode, for a method/path with no canned route.
            ApiError: in live mode, for transport errors, non-2xx statuses or non-JSON bodies.
        """
        method = HttpMethod(method.upper()) if isinstance(method, str) else method
        config = self.store.load_config()
        url = config.api_url.rstrip("/") + path

        if config.show_curl_commands and self.preview is not None:
            self.preview(render_request(method, url, config.api_token, body))

        logger.debug(f"API call {method.value} {path} (mock_mode={config.mock_mode})")
        if config.mock_mode:
            return self._dispatch_mock(method, path, body)
        return self._send_live(config, method, url, body)

    # --- Live Mode ---

    def _send_live(self, config: AppConfig, method: HttpMethod, url: str, body: JsonBody) -> Dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {config.api_token}",
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }
        payload = body if method is not HttpMethod.GET else None
        try:
            response = self.session.request(method.value, url, headers=headers, json=payload)
        except requests.exceptions.RequestException as e:
            logger.error(f"Transport error for {method.value} {url}: {e}")
            raise ApiError(None, str(e)) from e

        if not 200 <= response.status_code < 300:
            message = (response.text or response.reason or "").strip() or "request failed"
            logger.warning(f"{method.value} {url} returned HTTP {response.status_code}")
            raise ApiError(response.status_code, message)

        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as e:
            raise ApiError(response.status_code, "response body is not valid JSON") from e
        if not isinstance(data, dict):
            raise ApiError(response.status_code, "response body is not a JSON object")
        return data

    # --- Mock Mode ---

    def _dispatch_mock(self, method: HttpMethod, path: str, body: JsonBody) -> Dict[str, Any]:
        parts = urlsplit(path)
        for route in self.routes:
            if route.method is not method:
                continue
            if route.pattern.fullmatch(parts.path):
                request = MockRequest(method, parts.path, parse_qs(parts.query), body)
                return route.handler(request)
        logger.warning(f"No mock route for {method.value} {path}")
        raise UnroutedMockError(method.value, path)

    def _build_routes(self) -> List[MockRoute]:
        time_log = re.compile(r"/time-logs/[^/]+")
        return [
            MockRoute(HttpMethod.GET, re.compile(r"/projects"), self._mock_get_projects),
            MockRoute(HttpMethod.PUT, re.compile(r"/projects"), self._mock_put_projects),
            MockRoute(HttpMethod.POST, re.compile(r"/time-logs"), self._mock_create_log),
            MockRoute(HttpMethod.GET, re.compile(r"/time-logs"), self._mock_list_logs),
            MockRoute(HttpMethod.PUT, time_log, self._mock_update_log),
            MockRoute(HttpMethod.DELETE, time_log, self._mock_delete_log),
        ]

    def _mock_get_projects(self, request: MockRequest) -> Dict[str, Any]:
        return self.store.load_raw(DocumentKind.PROJECTS)

    def _mock_put_projects(self, request: MockRequest) -> Dict[str, Any]:
        # The one mock route with a real side effect: it writes the catalog.
        try:
            catalog = ProjectCatalog.from_dict(request.body)
        except ValueError as e:
            raise ApiError(400, f"invalid project catalog: {e}") from e
        self.store.save_catalog(catalog)
        return {"status": "success", "message": "Projects updated successfully"}

    def _mock_create_log(self, request: MockRequest) -> Dict[str, Any]:
        return {
            "status": "success",
            "message": "Time logged successfully",
            "id": f"log-{int(self.clock())}",
        }

    def _mock_list_logs(self, request: MockRequest) -> Dict[str, Any]:
        query_date = request.query.get("date", [MOCK_DEFAULT_DATE])[0]
        logs = [
            {
                "id": "log-001",
                "date": query_date,
                "hours": 2,
                "minutes": 30,
                "project_uuid": "proj-001-website",
                "project_name": "Company Website Redesign",
                "note": "Worked on responsive design",
                "user_uuid": "user-12345-abcde",
            },
            {
                "id": "log-002",
                "date": query_date,
                "hours": 1,
                "minutes": 45,
                "project_uuid": "proj-002-mobile",
                "project_name": "Mobile App Development",
                "note": "Fixed authentication bug",
                "user_uuid": "user-12345-abcde",
            },
        ]
        return {"logs": logs, "total_entries": len(logs), "date_filter": query_date}

    def _mock_update_log(self, request: MockRequest) -> Dict[str, Any]:
        return {"status": "success", "message": "Time log updated successfully"}

    def _mock_delete_log(self, request: MockRequest) -> Dict[str, Any]:
        return {"status": "success", "message": "Time log deleted successfully"}
