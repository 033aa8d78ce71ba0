from pickem import db  # noqa: F401 - imported for model imports

from .league_entry import LeagueEntry
from .player import PICK_SLOTS, Player
from .team import TeamRecord

__all__ = [
    "LeagueEntry",
    "Player",
    "TeamRecord",
    "PICK_SLOTS",
]
