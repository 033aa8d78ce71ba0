from dataclasses import dataclass, replace


@dataclass
class TeamRecord:
    """Win/loss/tie record for one NFL team

    Records are ephemeral: they are resolved from upstream, cached and
    re-resolved, never stored in the database.
    """

    id: str
    name: str
    abbreviation: str
    wins: int = 0
    losses: int = 0
    ties: int = 0
    conference: str = "NFL"
    division: str = ""
    logo_url: str = None

    def __repr__(self):
        return f"<TeamRecord {self.abbreviation} {self.record_summary}>"

    @property
    def games_played(self):
        return self.wins + self.losses + self.ties

    @property
    def win_percentage(self):
        """Wins over games played, 0 when no games have been played"""
        games = self.games_played
        return self.wins / games if games > 0 else 0.0

    @property
    def has_record(self):
        return self.games_played > 0

    @property
    def record_summary(self):
        return f"{self.wins}-{self.losses}-{self.ties}"

    def with_record(self, wins, losses, ties=0):
        """Return a copy carrying a different record"""
        return replace(self, wins=wins, losses=losses, ties=ties)

    def to_dict(self):
        """Convert team record to dictionary for API responses and caching"""
        return {
            "id": self.id,
            "name": self.name,
            "abbreviation": self.abbreviation,
            "wins": self.wins,
            "losses": self.losses,
            "ties": self.ties,
            "win_percentage": self.win_percentage,
            "conference": self.conference,
            "division": self.division,
            "logo_url": self.logo_url,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", ""),
            abbreviation=data.get("abbreviation", ""),
            wins=int(data.get("wins", 0) or 0),
            losses=int(data.get("losses", 0) or 0),
            ties=int(data.get("ties", 0) or 0),
            conference=data.get("conference") or "NFL",
            division=data.get("division") or "",
            logo_url=data.get("logo_url"),
        )
