"""
Error taxonomy for the NFL team pool

Upstream and persistence errors are caught where they happen and turned into
fallback values; DraftError subclasses are user errors surfaced by the API.
"""

from enum import Enum


class ErrorKind(str, Enum):
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    UPSTREAM_SHAPE_UNRECOGNIZED = "upstream_shape_unrecognized"
    PERSISTENCE_WRITE_FAILED = "persistence_write_failed"
    PERSISTENCE_READ_FAILED = "persistence_read_failed"


class PickemError(Exception):
    """Base class for all application errors"""

    kind = None


class UpstreamUnavailable(PickemError):
    """Network failure, timeout, non-2xx status or unreadable body"""

    kind = ErrorKind.UPSTREAM_UNAVAILABLE


class UpstreamShapeUnrecognized(PickemError):
    """Response parsed but no known shape produced team data"""

    kind = ErrorKind.UPSTREAM_SHAPE_UNRECOGNIZED


class PersistenceWriteFailed(PickemError):
    kind = ErrorKind.PERSISTENCE_WRITE_FAILED


class PersistenceReadFailed(PickemError):
    kind = ErrorKind.PERSISTENCE_READ_FAILED


class DraftError(ValueError):
    """Draft rule violation caused by the caller"""

    status_code = 400


class UnknownPlayer(DraftError):
    status_code = 404


class UnknownTeam(DraftError):
    status_code = 404


class InvalidSlot(DraftError):
    pass


class InvalidRosterSize(DraftError):
    pass


class TeamAlreadyPicked(DraftError):
    status_code = 409

    def __init__(self, abbreviation, owner_name):
        super().__init__(f"{abbreviation} already picked by {owner_name}")
        self.abbreviation = abbreviation
        self.owner_name = owner_name
