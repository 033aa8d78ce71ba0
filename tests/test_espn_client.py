import pytest
import requests

from pickem.utils import espn_client as espn_module
from pickem.utils.errors import UpstreamUnavailable
from pickem.utils.espn_client import EspnClient


class FakeResponse:
    def __init__(self, status_code=200, payload=None, headers=None):
        self.status_code = status_code
        self.payload = payload
        self.headers = headers or {}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"HTTP {self.status_code}", response=self)

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


@pytest.fixture
def no_sleep(monkeypatch):
    sleeps = []
    monkeypatch.setattr(espn_module.time, "sleep", sleeps.append)
    return sleeps


def _client(monkeypatch, responses, **kwargs):
    client = EspnClient(api_base_url="https://api.test/nfl/", min_request_interval=0, **kwargs)
    calls = []

    def fake_get(url, params=None, timeout=None):
        calls.append((url, params, timeout))
        response = responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr(client.session, "get", fake_get)
    return client, calls


def test_relative_path_joined_to_base(monkeypatch, no_sleep):
    client, calls = _client(monkeypatch, [FakeResponse(payload={"children": []})])

    assert client.get_standings({"seasontype": 2}) == {"children": []}
    assert calls == [("https://api.test/nfl/standings", {"seasontype": 2}, 30)]


def test_absolute_ref_used_as_is(monkeypatch, no_sleep):
    client, calls = _client(monkeypatch, [FakeResponse(payload={"entries": []})])

    client.follow_ref("http://core.test/standings/0")

    assert calls[0][0] == "http://core.test/standings/0"


def test_server_error_is_retried(monkeypatch, no_sleep):
    client, calls = _client(
        monkeypatch, [FakeResponse(503), FakeResponse(payload={"teams": []})]
    )

    assert client.get_teams() == {"teams": []}
    assert len(calls) == 2
    assert no_sleep == [1.0]


def test_retry_after_header_is_honoured(monkeypatch, no_sleep):
    client, _ = _client(
        monkeypatch,
        [FakeResponse(429, headers={"Retry-After": "7"}), FakeResponse(payload={})],
    )

    client.get_scoreboard()

    assert no_sleep == [7]


def test_connection_error_is_retried(monkeypatch, no_sleep):
    client, calls = _client(
        monkeypatch,
        [requests.exceptions.ConnectionError("reset"), FakeResponse(payload={"events": []})],
    )

    assert client.get_scoreboard({"dates": 2025}) == {"events": []}
    assert len(calls) == 2


def test_client_error_is_not_retried(monkeypatch, no_sleep):
    client, calls = _client(monkeypatch, [FakeResponse(404), FakeResponse(payload={})])

    with pytest.raises(UpstreamUnavailable):
        client.get_team("99")

    assert len(calls) == 1


def test_persistent_failure_gives_up(monkeypatch, no_sleep):
    client, calls = _client(
        monkeypatch, [FakeResponse(500), FakeResponse(500), FakeResponse(500)], max_retries=2
    )

    with pytest.raises(UpstreamUnavailable):
        client.get_schedule()

    assert len(calls) == 2


@pytest.mark.parametrize("payload", [ValueError("not json"), ["a", "list"]])
def test_unreadable_body(monkeypatch, no_sleep, payload):
    client, _ = _client(monkeypatch, [FakeResponse(payload=payload)])

    with pytest.raises(UpstreamUnavailable):
        client.get_standings()


def test_rate_limit_status(monkeypatch, no_sleep):
    client, _ = _client(monkeypatch, [FakeResponse(payload={}), FakeResponse(payload={})])

    client.get_teams()
    client.get_teams()

    status = client.get_rate_limit_status()
    assert status["total_requests"] == 2
    assert status["requests_last_minute"] == 2
