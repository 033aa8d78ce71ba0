from datetime import datetime, timezone

from pickem import db


class LeagueEntry(db.Model):
    """Stored roster row: a player's name and up to three team picks"""

    __tablename__ = "league_entries"

    id = db.Column(db.Integer, primary_key=True)

    username = db.Column(db.String(100), nullable=False)

    # Team abbreviations, natural key shared with TeamRecord
    team_1 = db.Column(db.String(10))
    team_2 = db.Column(db.String(10))
    team_3 = db.Column(db.String(10))

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<LeagueEntry {self.username}>"

    @property
    def picks(self):
        return [self.team_1, self.team_2, self.team_3]

    @staticmethod
    def from_player(player):
        return LeagueEntry(
            username=player.name,
            team_1=player.team_1,
            team_2=player.team_2,
            team_3=player.team_3,
        )

    @staticmethod
    def get_all_ordered():
        """Get stored rows in insertion order"""
        return LeagueEntry.query.order_by(LeagueEntry.id.asc()).all()

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
            "team_1": self.team_1,
            "team_2": self.team_2,
            "team_3": self.team_3,
        }
