"""
Scoring for the NFL team pool

A player's record is the sum of the records of the teams they picked. Nothing
here touches storage: every value is recomputed from picks and team records.
"""

from collections import namedtuple

LeaderboardRow = namedtuple(
    "LeaderboardRow", ["rank", "player", "teams", "games_back"]
)


def teams_by_abbreviation(teams):
    """Index team records by abbreviation; the first occurrence wins"""
    index = {}
    for team in teams:
        index.setdefault(team.abbreviation, team)
    return index


def calculate_player_record(picks, teams):
    """
    Sum the records of the distinct teams in a player's pick slots

    Args:
        picks: Up to three abbreviations; None marks an empty slot
        teams: Iterable of TeamRecord, or a dict keyed by abbreviation

    Returns:
        tuple: (wins, losses, ties). Empty slots and abbreviations missing
        from teams contribute (0, 0, 0).
    """
    index = teams if isinstance(teams, dict) else teams_by_abbreviation(teams)

    wins = losses = ties = 0
    seen = set()
    for abbreviation in picks:
        if not abbreviation or abbreviation in seen:
            continue
        seen.add(abbreviation)

        team = index.get(abbreviation)
        if team is None:
            continue
        wins += team.wins
        losses += team.losses
        ties += team.ties

    return wins, losses, ties


def apply_team_records(players, teams):
    """Return copies of players with records recomputed from teams"""
    index = teams_by_abbreviation(teams)
    return [
        player.with_record(*calculate_player_record(player.picks, index))
        for player in players
    ]


def _leaderboard_sort_key(player):
    # Most wins, then fewest losses, then most ties
    return (-player.wins, player.losses, -player.ties)


def build_leaderboard(players, teams):
    """
    Rank players by their aggregate record

    Players with identical records share a rank. Games back is measured
    against the leader's win total.

    Returns:
        list: LeaderboardRow entries, best first
    """
    index = teams_by_abbreviation(teams)
    scored = sorted(apply_team_records(players, teams), key=_leaderboard_sort_key)
    if not scored:
        return []

    leader_wins = scored[0].wins
    rows = []
    previous_key = None
    rank = 0
    for position, player in enumerate(scored, start=1):
        key = _leaderboard_sort_key(player)
        if key != previous_key:
            rank = position
            previous_key = key

        rows.append(
            LeaderboardRow(
                rank=rank,
                player=player,
                teams=[index.get(abbr) for abbr in player.picks],
                games_back=leader_wins - player.wins,
            )
        )
    return rows


def leaderboard_row_to_dict(row):
    data = row.player.to_dict()
    data.update(
        {
            "rank": row.rank,
            "games_back": row.games_back,
            "teams": [team.to_dict() if team else None for team in row.teams],
        }
    )
    return data
