import pytest

from pickem.models import TeamRecord
from pickem.utils.teams import (
    KNOWN_ABBREVIATIONS,
    all_records_zero,
    canonical_abbreviation,
    is_reference_dataset,
    looks_invalid,
    reference_teams,
)


def _team(abbreviation, wins=0, losses=0, ties=0, name=None):
    return TeamRecord(
        id=abbreviation,
        name=name or abbreviation,
        abbreviation=abbreviation,
        wins=wins,
        losses=losses,
        ties=ties,
    )


class TestCanonicalAbbreviation:
    @pytest.mark.parametrize(
        "raw, expected",
        [("WSH", "WAS"), ("JAC", "JAX"), ("LA", "LAR"), ("buf", "BUF"), (" kc ", "KC")],
    )
    def test_upstream_abbreviation_wins_and_aliases_normalize(self, raw, expected):
        assert canonical_abbreviation(abbreviation=raw, name="Something Else") == expected

    def test_full_name_lookup(self):
        assert canonical_abbreviation(name="Green Bay Packers") == "GB"

    def test_nickname_lookup(self):
        assert canonical_abbreviation(nickname="Commanders") == "WAS"

    def test_unknown_team(self):
        assert canonical_abbreviation(name="Springfield Atoms") == "UNK"


class TestReferenceDataset:
    def test_covers_all_franchises(self):
        teams = reference_teams()

        assert len(teams) == 32
        assert {team.abbreviation for team in teams} == KNOWN_ABBREVIATIONS
        assert len({team.id for team in teams}) == 32

    def test_reference_data_is_never_valid(self):
        assert is_reference_dataset(reference_teams())
        assert looks_invalid(reference_teams())


class TestValidity:
    def test_all_zero_list_is_invalid(self):
        teams = [_team("ATL"), _team("CHI")]

        assert all_records_zero(teams)
        assert looks_invalid(teams)

    def test_reference_signature_is_invalid(self):
        teams = [_team("BUF", 11, 6, name="Buffalo Bills"), _team("CHI", 4, 13)]

        assert looks_invalid(teams)

    def test_real_records_are_valid(self):
        teams = [_team("BUF", 10, 7, name="Buffalo Bills"), _team("CHI")]

        assert not looks_invalid(teams)

    def test_empty_list_is_not_all_zero(self):
        assert not all_records_zero([])


class TestTeamRecord:
    @pytest.mark.parametrize(
        "wins, losses, ties, expected",
        [(0, 0, 0, 0.0), (3, 1, 0, 0.75), (1, 0, 1, 0.5), (0, 4, 0, 0.0)],
    )
    def test_win_percentage(self, wins, losses, ties, expected):
        team = _team("ATL", wins, losses, ties)

        assert team.win_percentage == pytest.approx(expected)

    def test_win_percentage_holds_for_every_reference_team(self):
        for team in reference_teams():
            games = team.wins + team.losses + team.ties
            expected = team.wins / games if games > 0 else 0.0
            assert team.win_percentage == pytest.approx(expected)

    def test_with_record_leaves_original_untouched(self):
        team = _team("ATL")
        updated = team.with_record(2, 1)

        assert team.record_summary == "0-0-0"
        assert updated.record_summary == "2-1-0"

    def test_dict_form_carries_win_percentage(self):
        data = _team("ATL", 1, 1).to_dict()

        assert data["win_percentage"] == pytest.approx(0.5)
        assert TeamRecord.from_dict(data) == _team("ATL", 1, 1)
