"""Shared fixtures: a testing app wired to a fake ESPN client."""

from datetime import datetime, timedelta, timezone

import pytest

from pickem import create_app, db
from pickem.services.standings_service import standings_service
from pickem.utils.errors import UpstreamUnavailable


def _key(params):
    return tuple(sorted(params.items())) if params else None


class FakeEspnClient:
    """
    Serves canned payloads in place of the HTTP client

    Anything not registered raises UpstreamUnavailable, as does a registered
    Exception instance.
    """

    def __init__(self):
        self.responses = {}
        self.calls = []

    def add(self, resource, payload, params=None):
        self.responses[(resource, _key(params))] = payload
        return self

    def _serve(self, resource, params=None):
        key = (resource, _key(params))
        self.calls.append(key)
        payload = self.responses.get(key)
        if payload is None:
            raise UpstreamUnavailable(f"No fake response for {key}")
        if isinstance(payload, Exception):
            raise payload
        return payload

    def get_standings(self, params=None):
        return self._serve("standings", params)

    def get_teams(self):
        return self._serve("teams")

    def get_team(self, team_id):
        return self._serve(f"teams/{team_id}")

    def get_scoreboard(self, params=None):
        return self._serve("scoreboard", params)

    def get_schedule(self, params=None):
        return self._serve("schedule", params)

    def follow_ref(self, ref_url):
        return self._serve(ref_url)


class FakeClock:
    def __init__(self, now=None):
        self.now = now or datetime(2025, 11, 2, 18, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def espn():
    return FakeEspnClient()


@pytest.fixture
def clock(monkeypatch):
    fake = FakeClock()
    monkeypatch.setattr(standings_service, "clock", fake)
    return fake


@pytest.fixture
def app(espn, clock):
    app = create_app("testing", standings_client=espn)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()
