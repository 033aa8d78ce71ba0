import pytest

from payloads import conference_groups_payload

RECORDS = {"ATL": (5, 3, 0), "BUF": (7, 1, 0), "CHI": (4, 4, 0), "DAL": (3, 4, 1)}


@pytest.fixture
def live(espn):
    espn.add("standings", conference_groups_payload(RECORDS))
    return espn


@pytest.fixture
def named_league(client, live):
    client.post("/api/league/setup", json={"num_players": 2})
    client.post("/api/league/players", json={"names": ["Ann", "Bo"]})
    return client


class TestStandingsEndpoints:
    def test_get_standings(self, client, live):
        response = client.get("/api/standings")

        assert response.status_code == 200
        data = response.get_json()
        assert data["source"] == "standings"
        assert data["error"] is None
        assert len(data["teams"]) == 4
        assert response.headers["X-Content-Type-Options"] == "nosniff"

    def test_fallback_is_visible_to_clients(self, client):
        data = client.get("/api/standings").get_json()

        assert data["source"] == "reference"
        assert data["error"] == "upstream_unavailable"

    def test_refresh_bypasses_caches(self, client, live):
        client.get("/api/standings")
        live.add("standings", conference_groups_payload({"ATL": (6, 3, 0)}))

        assert client.get("/api/standings").get_json()["source"] == "standings"

        response = client.post("/api/standings/refresh")
        assert response.status_code == 200
        assert "no-store" in response.headers["Cache-Control"]

        teams = {t["abbreviation"]: t for t in client.get("/api/standings").get_json()["teams"]}
        assert teams["ATL"]["wins"] == 6
        assert teams["BUF"]["wins"] == 0


class TestLeagueEndpoints:
    def test_setup(self, client, live):
        response = client.post("/api/league/setup", json={"num_players": 3})

        assert response.status_code == 201
        data = response.get_json()
        assert data["stage"] == "naming"
        assert [p["name"] for p in data["players"]] == ["Player 1", "Player 2", "Player 3"]

    @pytest.mark.parametrize("body", [{}, {"num_players": "many"}, None])
    def test_setup_requires_a_number(self, client, body):
        response = client.post("/api/league/setup", json=body)

        assert response.status_code == 400

    def test_setup_rejects_oversized_league(self, client):
        response = client.post("/api/league/setup", json={"num_players": 11})

        assert response.status_code == 400
        assert "between 1 and 10" in response.get_json()["error"]

    def test_name_players(self, named_league):
        data = named_league.get("/api/league").get_json()

        assert data["stage"] == "selection"
        assert [p["name"] for p in data["players"]] == ["Ann", "Bo"]

    def test_name_players_requires_list(self, client):
        response = client.post("/api/league/players", json={"names": "Ann"})

        assert response.status_code == 400

    def test_pick_and_conflict(self, named_league):
        response = named_league.post(
            "/api/league/picks", json={"player_id": 1, "abbreviation": "BUF", "slot": 1}
        )
        assert response.status_code == 200
        assert response.get_json()["wins"] == 7

        response = named_league.post(
            "/api/league/picks", json={"player_id": 2, "abbreviation": "BUF", "slot": 1}
        )
        assert response.status_code == 409
        assert response.get_json()["error"] == "BUF already picked by Ann"

    def test_pick_unknown_player_or_team(self, named_league):
        response = named_league.post(
            "/api/league/picks", json={"player_id": 7, "abbreviation": "BUF", "slot": 1}
        )
        assert response.status_code == 404

        response = named_league.post(
            "/api/league/picks", json={"player_id": 1, "abbreviation": "KC", "slot": 1}
        )
        assert response.status_code == 404

    def test_pick_bad_slot(self, named_league):
        response = named_league.post(
            "/api/league/picks", json={"player_id": 1, "abbreviation": "BUF", "slot": 0}
        )

        assert response.status_code == 400

    def test_clear_pick(self, named_league):
        named_league.post(
            "/api/league/picks", json={"player_id": 1, "abbreviation": "BUF", "slot": 2}
        )

        response = named_league.delete("/api/league/picks", json={"player_id": 1, "slot": 2})

        assert response.status_code == 200
        assert response.get_json()["team_2"] is None

    def test_available_teams(self, named_league):
        named_league.post(
            "/api/league/picks", json={"player_id": 2, "abbreviation": "CHI", "slot": 1}
        )

        teams = named_league.get("/api/league/available-teams").get_json()

        assert sorted(t["abbreviation"] for t in teams) == ["ATL", "BUF", "DAL"]

    def test_leaderboard(self, named_league):
        for player_id, abbreviation in ((1, "CHI"), (2, "BUF"), (2, "ATL")):
            slot = 1 if abbreviation != "ATL" else 2
            named_league.post(
                "/api/league/picks",
                json={"player_id": player_id, "abbreviation": abbreviation, "slot": slot},
            )

        rows = named_league.get("/api/leaderboard").get_json()

        assert [(r["name"], r["rank"], r["games_back"]) for r in rows] == [
            ("Bo", 1, 0),
            ("Ann", 2, 8),
        ]
        assert (rows[0]["wins"], rows[0]["losses"]) == (12, 4)

    def test_reset(self, named_league):
        response = named_league.post("/api/league/reset")

        assert response.get_json() == {"success": True}
        data = named_league.get("/api/league").get_json()
        assert data["players"] == []
        assert data["stage"] == "naming"


def test_status(client, live):
    client.get("/api/standings")

    data = client.get("/api/status").get_json()

    assert data["scheduler"]["is_running"] is False
    assert data["standings"]["last_source"] == "standings"
    assert data["standings"]["cache_age_seconds"] == 0
    assert data["cache"]["type"] == "SimpleCache"
    assert data["pending_save"] is False


def test_unknown_route_is_json(client):
    response = client.get("/api/nope")

    assert response.status_code == 404
    assert response.get_json() == {"error": "Resource not found"}
