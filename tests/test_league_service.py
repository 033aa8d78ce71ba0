import pytest
from sqlalchemy.exc import OperationalError

from pickem import db
from pickem.models import LeagueEntry, Player, TeamRecord
from pickem.services.league_service import (
    STAGE_NAMING,
    STAGE_SELECTION,
    STAGE_STANDINGS,
    league_service,
)
from pickem.utils.errors import (
    InvalidRosterSize,
    InvalidSlot,
    PersistenceWriteFailed,
    TeamAlreadyPicked,
    UnknownPlayer,
    UnknownTeam,
)

TEAMS = [
    TeamRecord(id="1", name="Atlanta Falcons", abbreviation="ATL", wins=5, losses=3),
    TeamRecord(id="2", name="Buffalo Bills", abbreviation="BUF", wins=7, losses=1),
    TeamRecord(id="3", name="Chicago Bears", abbreviation="CHI", wins=4, losses=4),
    TeamRecord(id="4", name="Dallas Cowboys", abbreviation="DAL", wins=3, losses=4, ties=1),
]


@pytest.fixture
def league(app):
    league_service.setup_league(2)
    league_service.name_players(["Ann", "Bo"])
    return league_service


class TestPersistence:
    def test_save_then_load_keeps_names_and_picks(self, app):
        players = [
            Player(id=1, name="Ann", picks=["ATL", "BUF", None], wins=12, losses=4),
            Player(id=2, name="Bo", picks=["CHI", None, "DAL"], ties=1),
        ]

        assert league_service.save_all(players)
        loaded = league_service.load_all()

        assert [(p.name, p.picks) for p in loaded] == [(p.name, p.picks) for p in players]
        assert all((p.wins, p.losses, p.ties) == (0, 0, 0) for p in loaded)

    def test_save_replaces_everything(self, app):
        league_service.save_all([Player(id=1, name="Ann"), Player(id=2, name="Bo")])
        league_service.save_all([Player(id=1, name="Cy")])

        assert [row.username for row in LeagueEntry.query.all()] == ["Cy"]

    def test_save_is_bounded_by_capacity(self, app):
        players = [Player(id=i, name=f"P{i}") for i in range(1, 13)]

        assert league_service.save_all(players)

        assert LeagueEntry.query.count() == 10

    def test_load_removes_rows_beyond_capacity(self, app):
        db.session.add_all(LeagueEntry(username=f"P{i}") for i in range(1, 13))
        db.session.commit()

        loaded = league_service.load_all()

        assert len(loaded) == 10
        assert [p.id for p in loaded] == list(range(1, 11))
        assert LeagueEntry.query.count() == 10

    def test_failed_write_returns_false(self, app, monkeypatch):
        def fail(players):
            raise PersistenceWriteFailed("disk full")

        monkeypatch.setattr(league_service, "_replace_rows", fail)

        assert league_service.save_all([Player(id=1, name="Ann")]) is False
        assert league_service.last_save_ok is False

    def test_failed_read_returns_empty_roster(self, app, monkeypatch):
        def fail():
            raise OperationalError("SELECT", {}, Exception("no such table"))

        monkeypatch.setattr(LeagueEntry, "get_all_ordered", staticmethod(fail))

        assert league_service.load_all() == []

    def test_roster_loaded_lazily(self, app):
        league_service.save_all([Player(id=1, name="Ann", picks=["ATL"])])
        league_service.players = None

        players = league_service.get_players()

        assert [p.name for p in players] == ["Ann"]
        assert league_service.stage() == STAGE_SELECTION


class TestSetupAndNaming:
    def test_setup_creates_default_players(self, app):
        players = league_service.setup_league(3)

        assert [p.name for p in players] == ["Player 1", "Player 2", "Player 3"]
        assert league_service.stage() == STAGE_NAMING
        assert LeagueEntry.query.count() == 0

    @pytest.mark.parametrize("size", [0, 11, -1])
    def test_setup_rejects_bad_sizes(self, app, size):
        with pytest.raises(InvalidRosterSize):
            league_service.setup_league(size)

    def test_naming_saves_immediately(self, app):
        league_service.setup_league(3)

        assert league_service.name_players(["Ann", "  ", "Cy"])

        assert [row.username for row in LeagueEntry.query.all()] == ["Ann", "Player 2", "Cy"]
        assert league_service.stage() == STAGE_SELECTION

    def test_naming_an_empty_league_sets_it_up(self, app):
        league_service.name_players(["Ann", "Bo"])

        assert [p.name for p in league_service.get_players()] == ["Ann", "Bo"]

    def test_too_many_names(self, app):
        league_service.setup_league(2)

        with pytest.raises(InvalidRosterSize):
            league_service.name_players(["Ann", "Bo", "Cy"])


class TestDraft:
    def test_pick_recomputes_record_and_saves(self, league):
        player = league.pick_team(1, "ATL", 1, teams=TEAMS)

        assert player.team_1 == "ATL"
        assert (player.wins, player.losses) == (5, 3)
        assert LeagueEntry.query.filter_by(username="Ann").one().team_1 == "ATL"

    def test_team_held_by_another_player(self, league):
        league.pick_team(1, "ATL", 1, teams=TEAMS)

        with pytest.raises(TeamAlreadyPicked) as excinfo:
            league.pick_team(2, "atl", 2, teams=TEAMS)

        assert excinfo.value.owner_name == "Ann"

    def test_repicking_own_team_moves_it(self, league):
        league.pick_team(1, "ATL", 1, teams=TEAMS)

        player = league.pick_team(1, "ATL", 3, teams=TEAMS)

        assert player.picks == [None, None, "ATL"]

    def test_pick_replaces_slot(self, league):
        league.pick_team(1, "ATL", 1, teams=TEAMS)
        league.pick_team(1, "CHI", 1, teams=TEAMS)

        assert league.owner_of("ATL") is None
        assert league.owner_of("CHI").name == "Ann"

    def test_pick_errors(self, league):
        with pytest.raises(InvalidSlot):
            league.pick_team(1, "ATL", 4, teams=TEAMS)
        with pytest.raises(UnknownPlayer):
            league.pick_team(9, "ATL", 1, teams=TEAMS)
        with pytest.raises(UnknownTeam):
            league.pick_team(1, "KC", 1, teams=TEAMS)

    def test_aliases_accepted_without_team_list(self, league):
        player = league.pick_team(2, "WSH", 2)

        assert player.team_2 == "WAS"

    def test_clear_pick(self, league):
        league.pick_team(1, "ATL", 2, teams=TEAMS)

        player = league.clear_pick(1, 2)

        assert player.picks == [None, None, None]
        assert LeagueEntry.query.filter_by(username="Ann").one().team_2 is None

    def test_available_teams(self, league):
        league.pick_team(1, "ATL", 1, teams=TEAMS)
        league.pick_team(2, "DAL", 3, teams=TEAMS)

        available = league.available_teams(TEAMS)

        assert [team.abbreviation for team in available] == ["BUF", "CHI"]

    def test_stage_moves_to_standings_when_draft_complete(self, app):
        league_service.name_players(["Ann"])
        for slot, abbreviation in enumerate(["ATL", "BUF", "CHI"], start=1):
            assert not league_service.draft_complete()
            league_service.pick_team(1, abbreviation, slot, teams=TEAMS)

        assert league_service.draft_complete()
        assert league_service.stage() == STAGE_STANDINGS

    def test_players_with_records(self, league):
        league.pick_team(1, "ATL", 1, teams=TEAMS)
        league.pick_team(1, "BUF", 2, teams=TEAMS)

        ann = league.players_with_records(TEAMS)[0]

        assert (ann.wins, ann.losses, ann.ties) == (12, 4, 0)

    def test_reset(self, league):
        league.pick_team(1, "ATL", 1, teams=TEAMS)

        assert league.reset()

        assert league.get_players() == []
        assert LeagueEntry.query.count() == 0
        assert league.stage() == STAGE_NAMING
