"""
Tests for the legacy results service wrapper and configuration.
"""
import pytest

from conftest import FakeUpstream
from crt_reports.config.settings import Config
from crt_reports.exceptions.base import UpstreamError
from crt_reports.services.upstream_service import (
    PAYLOAD_EMPTY,
    PAYLOAD_MALFORMED,
    PAYLOAD_OK,
    UpstreamService,
)


def test_build_url_joins_base_with_single_slash():
    for base in ("http://legacy.test", "http://legacy.test/", "http://legacy.test//"):
        service = UpstreamService(base_url=base, http=FakeUpstream())
        url = service.build_url("get_crt_batch", {"usertype": "admin", "city": "Hyd", "course": "CRT1"})
        assert url == "http://legacy.test/results_sync/get_crt_batch.aspx?usertype=admin&city=Hyd&course=CRT1"


def test_build_url_escapes_reserved_characters():
    service = UpstreamService(base_url="http://legacy.test", http=FakeUpstream())

    url = service.build_url("get_crt_login", {"username": "a b", "pwd": "p&w=d/+"})

    assert url.endswith("?username=a%20b&pwd=p%26w%3Dd%2F%2B")


@pytest.mark.parametrize("text, payload, tag", [
    ('[{"a": 1}]', [{"a": 1}], PAYLOAD_OK),
    ('{"Total_Students": 3}', {"Total_Students": 3}, PAYLOAD_OK),
    ("", [], PAYLOAD_EMPTY),
    (None, [], PAYLOAD_EMPTY),
    ("not json", [], PAYLOAD_MALFORMED),
])
def test_decode(text, payload, tag):
    result = UpstreamService.decode(text)

    assert result.payload == payload
    assert result.payload_status == tag
    assert result.degraded == (tag != PAYLOAD_OK)


def test_fetch_uses_timeout_and_raises_on_error_status():
    http = FakeUpstream({"get_crt_testwise": (502, "Bad Gateway")})
    service = UpstreamService(base_url="http://legacy.test", timeout=7, http=http)

    with pytest.raises(UpstreamError) as excinfo:
        service.fetch("get_crt_testwise", {"course": "CRT1"})

    assert excinfo.value.upstream_status == 502
    assert http.calls[0]["timeout"] == 7


def test_cleanup_closes_connections():
    http = FakeUpstream()
    UpstreamService(base_url="http://legacy.test", http=http).cleanup()
    assert http.closed


class TestConfigValidation:
    @pytest.fixture(autouse=True)
    def valid_config(self, monkeypatch):
        monkeypatch.setattr(Config, "UPSTREAM_BASE_URL", "http://legacy.test")
        monkeypatch.setattr(Config, "UPSTREAM_TIMEOUT_SECONDS", 30.0)
        monkeypatch.setattr(Config, "FANOUT_MAX_WORKERS", 8)
        monkeypatch.setattr(Config, "PORT", 5000)

    def test_valid(self):
        Config.validate()
        assert Config.upstream_base_url() == "http://legacy.test/"

    @pytest.mark.parametrize("attr, value", [
        ("UPSTREAM_BASE_URL", None),
        ("UPSTREAM_BASE_URL", "ftp://legacy.test"),
        ("UPSTREAM_TIMEOUT_SECONDS", 0),
        ("FANOUT_MAX_WORKERS", 0),
        ("PORT", 70000),
    ])
    def test_invalid(self, monkeypatch, attr, value):
        monkeypatch.setattr(Config, attr, value)
        with pytest.raises(ValueError):
            Config.validate()
