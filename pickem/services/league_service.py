"""
League roster service

Holds the working roster (players and their picks), enforces the draft
rules, and persists the roster with replace-all semantics. Player records are
never stored: they are recomputed from picks and current team records.
"""

import logging
import threading

from sqlalchemy.exc import SQLAlchemyError

from pickem import db
from pickem.models import PICK_SLOTS, LeagueEntry, Player
from pickem.utils.errors import (
    InvalidRosterSize,
    InvalidSlot,
    PersistenceReadFailed,
    PersistenceWriteFailed,
    TeamAlreadyPicked,
    UnknownPlayer,
    UnknownTeam,
)
from pickem.utils.scoring import apply_team_records
from pickem.utils.teams import KNOWN_ABBREVIATIONS, canonical_abbreviation

logger = logging.getLogger(__name__)

STAGE_NAMING = "naming"
STAGE_SELECTION = "selection"
STAGE_STANDINGS = "standings"

DEFAULT_LEAGUE_SIZE = 10


def default_player_name(position):
    return f"Player {position}"


class LeagueService:
    """Working roster plus its persistence boundary"""

    def __init__(self, app=None):
        self.app = app
        self.capacity = DEFAULT_LEAGUE_SIZE
        self.players = None
        self.named = False
        self.last_save_ok = None
        self._lock = threading.RLock()

        if app:
            self.init_app(app)

    def init_app(self, app):
        self.app = app
        self.capacity = app.config.get("ROSTER_CAPACITY", DEFAULT_LEAGUE_SIZE)
        self.players = None
        self.named = False
        self.last_save_ok = None
        app.extensions["league_service"] = self

    # Persistence contract

    def _replace_rows(self, players):
        try:
            LeagueEntry.query.delete()
            db.session.add_all(LeagueEntry.from_player(player) for player in players)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise PersistenceWriteFailed(str(e)) from e

    def save_all(self, players):
        """
        Replace the stored roster with players

        Only the first ROSTER_CAPACITY players are stored.

        Returns:
            bool: True if the roster was written
        """
        players = list(players)
        if len(players) > self.capacity:
            logger.warning(
                f"Attempted to save {len(players)} players, limiting to {self.capacity}"
            )
            players = players[: self.capacity]

        try:
            self._replace_rows(players)
        except PersistenceWriteFailed as e:
            logger.error(f"Error saving league data: {e}")
            self.last_save_ok = False
            return False

        logger.info(f"Saved {len(players)} players")
        self.last_save_ok = True
        return True

    def _read_rows(self):
        try:
            rows = LeagueEntry.get_all_ordered()
            if len(rows) > self.capacity:
                logger.warning(
                    f"Found {len(rows)} stored players, limiting to {self.capacity}"
                )
                for row in rows[self.capacity :]:
                    db.session.delete(row)
                db.session.commit()
                rows = rows[: self.capacity]
            return rows
        except SQLAlchemyError as e:
            db.session.rollback()
            raise PersistenceReadFailed(str(e)) from e

    def load_all(self):
        """
        Load the stored roster

        Returns:
            list: Players with names and picks; records are always zero since
            they are derived. Empty on read failure.
        """
        try:
            rows = self._read_rows()
        except PersistenceReadFailed as e:
            logger.error(f"Error loading league data: {e}")
            return []

        return [
            Player(
                id=position,
                name=row.username or default_player_name(position),
                picks=row.picks,
            )
            for position, row in enumerate(rows, start=1)
        ]

    # Working roster

    def get_players(self):
        """Working roster, loaded from storage on first use"""
        with self._lock:
            if self.players is None:
                self.players = self.load_all()
                self.named = bool(self.players)
                logger.info(f"Loaded {len(self.players)} players from storage")
            return list(self.players)

    def _get_player_index(self, player_id):
        for index, player in enumerate(self.get_players()):
            if player.id == player_id:
                return index
        raise UnknownPlayer(f"No player with id {player_id}")

    def _request_save(self):
        from pickem.services.scheduler_service import scheduler_service

        scheduler_service.request_save(list(self.players))

    def _save_now(self, players):
        """Write immediately, superseding any pending debounced save"""
        from pickem.services.scheduler_service import scheduler_service

        scheduler_service.cancel_pending_save()
        return self.save_all(players)

    def setup_league(self, num_players=DEFAULT_LEAGUE_SIZE):
        """
        Start a new league with default-named players

        The roster is not persisted until the players are named.
        """
        if not 1 <= num_players <= self.capacity:
            raise InvalidRosterSize(
                f"League size must be between 1 and {self.capacity}"
            )

        with self._lock:
            self.players = [
                Player(id=i, name=default_player_name(i)) for i in range(1, num_players + 1)
            ]
            self.named = False
        logger.info(f"Set up league with {num_players} players")
        return self.get_players()

    def name_players(self, names):
        """
        Rename players in roster order and save immediately

        Blank names keep the previous name. An empty roster is set up with
        one player per name first.

        Returns:
            bool: Whether the roster was saved
        """
        names = list(names)
        with self._lock:
            if not self.get_players():
                self.setup_league(len(names))

            if len(names) > len(self.players):
                raise InvalidRosterSize(
                    f"Got {len(names)} names for {len(self.players)} players"
                )

            renamed = []
            for position, player in enumerate(self.players):
                name = names[position].strip() if position < len(names) and names[position] else ""
                renamed.append(
                    Player(id=player.id, name=name or player.name, picks=player.picks)
                )
            self.players = renamed
            self.named = True
            players = list(self.players)

        return self._save_now(players)

    def owner_of(self, abbreviation):
        for player in self.get_players():
            if player.holds(abbreviation):
                return player
        return None

    def pick_team(self, player_id, abbreviation, slot, teams=None):
        """
        Draft a team into one of a player's slots

        Args:
            player_id: Roster id of the drafting player
            abbreviation: Team abbreviation (aliases accepted)
            slot: Pick slot, 1 to 3
            teams: Current team records; when given, the team must be one
                of them and the returned player carries recomputed records.
                Without them the team must be one of the 32 known franchises

        Returns:
            Player: The updated player

        Raises:
            InvalidSlot, UnknownPlayer, UnknownTeam, TeamAlreadyPicked
        """
        if not 1 <= slot <= PICK_SLOTS:
            raise InvalidSlot(f"Slot must be between 1 and {PICK_SLOTS}")

        abbreviation = canonical_abbreviation(abbreviation=abbreviation)
        known = {team.abbreviation for team in teams} if teams else KNOWN_ABBREVIATIONS
        if abbreviation not in known:
            raise UnknownTeam(f"Unknown team {abbreviation}")

        with self._lock:
            index = self._get_player_index(player_id)
            player = self.players[index]

            owner = self.owner_of(abbreviation)
            if owner is not None and owner.id != player.id:
                raise TeamAlreadyPicked(abbreviation, owner.name)

            # Picking a held team into another slot moves it
            if player.holds(abbreviation):
                player = player.with_pick(player.picks.index(abbreviation) + 1, None)
            player = player.with_pick(slot, abbreviation)

            self.players[index] = player
            self._request_save()

        logger.info(f"{player.name} picked {abbreviation} in slot {slot}")
        if teams:
            return apply_team_records([player], teams)[0]
        return player

    def clear_pick(self, player_id, slot):
        if not 1 <= slot <= PICK_SLOTS:
            raise InvalidSlot(f"Slot must be between 1 and {PICK_SLOTS}")

        with self._lock:
            index = self._get_player_index(player_id)
            player = self.players[index].with_pick(slot, None)
            self.players[index] = player
            self._request_save()
        return player

    def available_teams(self, teams):
        """Teams not yet picked by any player"""
        taken = {abbr for player in self.get_players() for abbr in player.picks if abbr}
        return [team for team in teams if team.abbreviation not in taken]

    def draft_complete(self):
        players = self.get_players()
        return bool(players) and all(player.has_all_picks for player in players)

    def stage(self):
        """Where the league is in its setup flow"""
        self.get_players()
        if not self.named:
            return STAGE_NAMING
        if self.draft_complete():
            return STAGE_STANDINGS
        return STAGE_SELECTION

    def players_with_records(self, teams):
        return apply_team_records(self.get_players(), teams)

    def reset(self):
        """Wipe the league: empty roster, stored rows replaced with nothing"""
        with self._lock:
            self.players = []
            self.named = False
        logger.info("League reset")
        return self._save_now([])


# Global league service instance
league_service = LeagueService()
