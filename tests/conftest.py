"""
Shared fixtures: a scripted legacy results service, the proxy app in front of
it, and a dashboard client wired straight into the Flask test client.
"""
import json
from concurrent.futures import ThreadPoolExecutor
from urllib.parse import parse_qs, urlsplit

import pytest

from crt_reports.app import create_app
from crt_reports.client.dashboard_client import DashboardClient
from crt_reports.client.session import Session, SessionManager
from crt_reports.client.storage import ClientStorage
from crt_reports.services.upstream_service import UpstreamService

UPSTREAM_BASE = "http://legacy.test/"
PROXY_BASE = "http://proxy.test/api"

ADMIN_RECORD = {
    "Username": "admin",
    "Password": "pass123",
    "Usertype": "admin",
    "centercity": "Hyderabad",
    "batchcode": "CRT1",
    "college_name": "Codegnan",
}


class FakeResponse:
    """The parts of ``requests.Response`` the services read."""

    def __init__(self, status_code=200, text=""):
        self.status_code = status_code
        self.text = text

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return json.loads(self.text)


class FakeUpstream:
    """
    Scripted legacy service. ``pages`` maps a page name to either a value or a
    callable taking the query params. Values may be a JSON-able object, a raw
    body string, a ``(status, body)`` tuple or an exception to raise.
    """

    def __init__(self, pages=None):
        self.pages = dict(pages or {})
        self.calls = []
        self.closed = False

    def get(self, url, headers=None, timeout=None):
        parts = urlsplit(url)
        page = parts.path.rsplit("/", 1)[-1].replace(".aspx", "")
        params = {key: values[0] for key, values in parse_qs(parts.query, keep_blank_values=True).items()}
        self.calls.append({"url": url, "page": page, "params": params, "headers": headers, "timeout": timeout})

        if page not in self.pages:
            return FakeResponse(404, "Not Found")

        reply = self.pages[page]
        if callable(reply) and not isinstance(reply, type):
            reply = reply(params)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, tuple):
            status, body = reply
            return FakeResponse(status, body)
        if isinstance(reply, str):
            return FakeResponse(200, reply)
        return FakeResponse(200, json.dumps(reply))

    def pages_called(self, page):
        return [call for call in self.calls if call["page"] == page]

    def close(self):
        self.closed = True


class FlaskTransport:
    """Routes ``requests``-style calls from DashboardClient into a Flask test client."""

    def __init__(self, test_client):
        self.test_client = test_client
        self.requests = []

    def _path(self, url):
        return urlsplit(url).path

    def _wrap(self, response):
        return FakeResponse(response.status_code, response.get_data(as_text=True))

    def get(self, url, headers=None, params=None, timeout=None):
        path = self._path(url)
        self.requests.append({"method": "GET", "path": path, "headers": dict(headers or {}), "params": params})
        return self._wrap(self.test_client.get(path, headers=headers, query_string=params))

    def post(self, url, json=None, timeout=None):
        path = self._path(url)
        self.requests.append({"method": "POST", "path": path, "json": json})
        return self._wrap(self.test_client.post(path, json=json))

    def close(self):
        pass


@pytest.fixture
def upstream_http():
    return FakeUpstream({"get_crt_login": [ADMIN_RECORD]})


@pytest.fixture
def upstream(upstream_http):
    return UpstreamService(base_url=UPSTREAM_BASE, timeout=5, http=upstream_http)


@pytest.fixture
def app(upstream):
    app = create_app(upstream=upstream, validate_config=False)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def http_client(app):
    return app.test_client()


@pytest.fixture
def transport(http_client):
    return FlaskTransport(http_client)


@pytest.fixture
def dashboard_client(transport):
    return DashboardClient(base_url=PROXY_BASE, http=transport, timeout=5)


@pytest.fixture
def storage(tmp_path):
    return ClientStorage(str(tmp_path / "storage.json"))


@pytest.fixture
def session_manager(storage, dashboard_client):
    return SessionManager(storage, dashboard_client)


@pytest.fixture
def session():
    return Session(usertype="admin", city="Hyderabad", course="CRT1", username="admin")


@pytest.fixture
def executor():
    pool = ThreadPoolExecutor(max_workers=1)
    yield pool
    pool.shutdown(wait=True)
