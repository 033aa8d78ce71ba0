from dataclasses import dataclass, field, replace

PICK_SLOTS = 3


def _empty_picks():
    return [None] * PICK_SLOTS


@dataclass
class Player:
    """A league member and the teams they drafted

    wins/losses/ties are derived from the picked teams' records and are
    recomputed whenever team records or picks change.
    """

    id: int
    name: str
    picks: list = field(default_factory=_empty_picks)
    wins: int = 0
    losses: int = 0
    ties: int = 0

    def __post_init__(self):
        picks = [(p or None) for p in list(self.picks or [])[:PICK_SLOTS]]
        picks += [None] * (PICK_SLOTS - len(picks))
        self.picks = picks

    def __repr__(self):
        return f"<Player {self.id} {self.name}>"

    @property
    def team_1(self):
        return self.picks[0]

    @property
    def team_2(self):
        return self.picks[1]

    @property
    def team_3(self):
        return self.picks[2]

    @property
    def picked_teams(self):
        """Distinct picked abbreviations in slot order"""
        seen = []
        for abbreviation in self.picks:
            if abbreviation and abbreviation not in seen:
                seen.append(abbreviation)
        return seen

    @property
    def has_any_pick(self):
        return any(self.picks)

    @property
    def has_all_picks(self):
        return all(self.picks)

    def holds(self, abbreviation):
        return abbreviation in self.picks

    def with_pick(self, slot, abbreviation):
        """Return a copy with slot (1-based) set to abbreviation"""
        picks = list(self.picks)
        picks[slot - 1] = abbreviation
        return replace(self, picks=picks)

    def with_record(self, wins, losses, ties):
        return replace(self, picks=list(self.picks), wins=wins, losses=losses, ties=ties)

    def to_dict(self):
        """Convert player to dictionary for API responses"""
        return {
            "id": self.id,
            "name": self.name,
            "team_1": self.team_1,
            "team_2": self.team_2,
            "team_3": self.team_3,
            "wins": self.wins,
            "losses": self.losses,
            "ties": self.ties,
        }
