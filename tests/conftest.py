"""
Pytest configuration and shared fixtures.

The source and destination APIs are replaced by FakeSession, a stand-in
for requests.Session that routes GET/POST calls by URL and records every
call it receives.
"""
import pytest
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from docmigrate.models.migration import Credentials, MigrationRun
from docmigrate.models.schema import CollectionMapping
from docmigrate.orchestrator import MigrationOrchestrator

SOURCE_URL = "https://source.example.com"
DEST_ENDPOINT = "https://dest.example.com/v1"

_INVALID_JSON = object()


class FakeResponse:
    """Minimal requests.Response look-alike."""

    def __init__(self, status_code: int = 200, json_data: Any = None, reason: Optional[str] = None):
        self.status_code = status_code
        self._json_data = json_data
        self.reason = reason if reason is not None else ("OK" if status_code < 400 else "Bad Request")

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        if self._json_data is _INVALID_JSON:
            raise ValueError("No JSON object could be decoded")
        return self._json_data

    @property
    def text(self) -> str:
        return "" if self._json_data is _INVALID_JSON else repr(self._json_data)


def invalid_json_response(status_code: int = 200) -> FakeResponse:
    return FakeResponse(status_code, _INVALID_JSON)


Route = Union[FakeResponse, List[FakeResponse], Exception, Callable[..., FakeResponse]]


class FakeSession:
    """
    Routes requests by (method, url).

    A route is a FakeResponse (returned every time), a list of responses
    (consumed in order, the last one repeats), an exception instance
    (raised) or a callable taking (url, json) and returning a response.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Route] = {}
        self.calls: List[Dict[str, Any]] = []

    def add(self, method: str, url: str, route: Route) -> "FakeSession":
        self.routes[(method.upper(), url)] = route
        return self

    def calls_to(self, method: str, url: str) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["method"] == method.upper() and c["url"] == url]

    def _dispatch(self, method: str, url: str, json=None, headers=None, timeout=None):
        self.calls.append({
            "method": method,
            "url": url,
            "json": json,
            "headers": dict(headers or {}),
            "timeout": timeout,
        })

        route = self.routes.get((method, url))
        if route is None:
            return FakeResponse(404, {"message": f"No route for {method} {url}"}, reason="Not Found")
        if isinstance(route, Exception):
            raise route
        if isinstance(route, list):
            return route.pop(0) if len(route) > 1 else route[0]
        if callable(route) and not isinstance(route, FakeResponse):
            return route(url, json)
        return route

    def get(self, url, headers=None, timeout=None, **kwargs):
        return self._dispatch("GET", url, headers=headers, timeout=timeout)

    def post(self, url, json=None, headers=None, timeout=None, **kwargs):
        return self._dispatch("POST", url, json=json, headers=headers, timeout=timeout)


def table_url(table: str) -> str:
    return f"{SOURCE_URL}/rest/v1/{table}"


def collection_url(database_id: str, collection_id: str) -> str:
    return f"{DEST_ENDPOINT}/databases/{database_id}/collections/{collection_id}"


def documents_url(database_id: str, collection_id: str) -> str:
    return f"{collection_url(database_id, collection_id)}/documents"


def schema_response(*attributes: Dict[str, Any]) -> FakeResponse:
    return FakeResponse(200, {"$id": "coll", "attributes": list(attributes)})


@pytest.fixture
def credentials():
    return Credentials(
        source_url=SOURCE_URL,
        source_key="source-key",
        dest_endpoint=DEST_ENDPOINT,
        dest_project_id="project-1",
        dest_api_key="dest-key",
    )


@pytest.fixture
def mapping():
    return CollectionMapping(
        source_table="users",
        dest_database_id="db1",
        dest_collection_id="users_coll",
    )


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def orchestrator(fake_session):
    return MigrationOrchestrator(session=fake_session)


@pytest.fixture
def make_run(credentials):
    """Factory for runs over the default credentials."""
    def _make(*mappings: CollectionMapping) -> MigrationRun:
        return MigrationRun(credentials=credentials, mappings=list(mappings))
    return _make
