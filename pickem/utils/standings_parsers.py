"""
Standings response parsers

ESPN serves standings in several shapes depending on endpoint and on whether
the season has started. Each parser here recognizes one shape and turns it
into TeamRecord objects; parse_standings_payload() tries them in priority
order and stops at the first one that yields usable data.
"""

import logging
from collections import namedtuple

from pickem.models.team import TeamRecord
from pickem.utils.errors import UpstreamShapeUnrecognized, UpstreamUnavailable
from pickem.utils.teams import any_record, canonical_abbreviation

logger = logging.getLogger(__name__)

ShapeParser = namedtuple("ShapeParser", ["name", "recognizes", "parse"])

ParseOutcome = namedtuple("ParseOutcome", ["teams", "parser", "usable"])

WINS_KEYS = ("wins", "W", "Wins")
LOSSES_KEYS = ("losses", "L", "Losses")
TIES_KEYS = ("ties", "T", "Ties")


def _as_list(value):
    return value if isinstance(value, list) else []


def _as_dict(value):
    return value if isinstance(value, dict) else {}


def _to_int(value):
    """Coerce "11", 11.0 or "11.0" to int; None for anything else"""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def parse_record_summary(summary):
    """
    Parse a "W-L" or "W-L-T" record string

    Returns:
        tuple: (wins, losses, ties), or None if the string is not a record
    """
    if not isinstance(summary, str) or "-" not in summary:
        return None

    parts = [part.strip() for part in summary.split("-")]
    if len(parts) not in (2, 3):
        return None

    numbers = [_to_int(part) for part in parts]
    if any(number is None for number in numbers):
        return None

    wins, losses = numbers[0], numbers[1]
    ties = numbers[2] if len(numbers) == 3 else 0
    return wins, losses, ties


def _find_stat(stats, keys):
    for stat in stats:
        stat = _as_dict(stat)
        if (
            stat.get("name") in keys
            or stat.get("shortDisplayName") in keys
            or stat.get("displayName") in keys
            or stat.get("abbreviation") in keys
        ):
            return stat
    return None


def _stat_value(stat):
    if stat is None:
        return 0
    value = _to_int(stat.get("value"))
    if value is None:
        value = _to_int(stat.get("displayValue"))
    return value or 0


def stats_to_record(stats):
    """
    Read a record from a list of name-tagged stat entries

    Returns:
        tuple: (wins, losses, ties), or None if no wins/losses entry exists
    """
    stats = _as_list(stats)
    wins_stat = _find_stat(stats, WINS_KEYS)
    losses_stat = _find_stat(stats, LOSSES_KEYS)
    if wins_stat is None and losses_stat is None:
        return None

    ties_stat = _find_stat(stats, TIES_KEYS)
    return _stat_value(wins_stat), _stat_value(losses_stat), _stat_value(ties_stat)


def _record_items_summary(record):
    """Summary string of a record node: {"items": [...]} or {"summary": ...}"""
    record = _as_dict(record)
    items = _as_list(record.get("items"))
    if items:
        # Prefer the overall record when the node lists several splits
        overall = next(
            (
                item
                for item in items
                if _as_dict(item).get("type") == "total"
                or _as_dict(item).get("name") == "overall"
            ),
            items[0],
        )
        overall = _as_dict(overall)
        return overall.get("summary") or overall.get("displayValue")
    return record.get("summary") or record.get("displayValue")


def extract_record(node):
    """
    Pull a record out of any team-like node

    Tries the embedded record summary first, then stat entries, on the node
    itself and on its nested "team" object.

    Returns:
        tuple: (wins, losses, ties); (0, 0, 0) when nothing is found
    """
    node = _as_dict(node)
    candidates = [node]
    team = _as_dict(node.get("team"))
    if team:
        candidates.append(team)

    for candidate in candidates:
        record = parse_record_summary(_record_items_summary(candidate.get("record")))
        if record and any(record):
            return record

        record = stats_to_record(candidate.get("stats"))
        if record and any(record):
            return record

        # Record items can also carry their own stats list
        for item in _as_list(_as_dict(candidate.get("record")).get("items")):
            record = stats_to_record(_as_dict(item).get("stats"))
            if record and any(record):
                return record

    return 0, 0, 0


def _group_label(node):
    node = _as_dict(node)
    return node.get("abbreviation") or node.get("name") or node.get("displayName") or ""


def build_team_record(node, index, conference="NFL", division=""):
    """
    Build a TeamRecord from a team-like node

    Args:
        node: Either a bare team object or a wrapper with a "team" key
        index: Position in the list, used for a placeholder id
        conference: Conference label from an enclosing group, if any
        division: Division label from an enclosing group, if any
    """
    node = _as_dict(node)
    team = _as_dict(node.get("team")) or node

    name = (
        team.get("displayName")
        or team.get("name")
        or team.get("shortDisplayName")
        or "Unknown"
    )
    abbreviation = canonical_abbreviation(
        abbreviation=team.get("abbreviation") or team.get("abbr"),
        name=name,
        nickname=team.get("shortDisplayName") or team.get("nickname"),
    )
    wins, losses, ties = extract_record(node)

    team_id = team.get("id")
    logos = _as_list(team.get("logos"))
    logo_url = _as_dict(logos[0]).get("href") if logos else None

    conference = (
        _group_label(node.get("conference"))
        or _group_label(team.get("conference"))
        or (team.get("conference") if isinstance(team.get("conference"), str) else "")
        or conference
        or "NFL"
    )
    division = (
        _group_label(node.get("division"))
        or _group_label(team.get("division"))
        or (team.get("division") if isinstance(team.get("division"), str) else "")
        or division
    )

    return TeamRecord(
        id=str(team_id) if team_id not in (None, "") else f"team-{index + 1}",
        name=name,
        abbreviation=abbreviation,
        wins=wins,
        losses=losses,
        ties=ties,
        conference=conference,
        division=division,
        logo_url=logo_url,
    )


def _entries_of(group):
    """Team nodes directly under a group: standings.entries or children"""
    group = _as_dict(group)
    entries = _as_list(_as_dict(group.get("standings")).get("entries"))
    if entries:
        return entries
    return [child for child in _as_list(group.get("children")) if "team" in _as_dict(child)]


# Shape 1: conference -> division -> team


def recognizes_conference_groups(payload):
    return bool(_as_list(payload.get("children")))


def parse_conference_groups(payload, fetch=None):
    teams = []
    for conference in _as_list(payload.get("children")):
        conference_label = _group_label(conference)

        divisions = [
            child
            for child in _as_list(_as_dict(conference).get("children"))
            if "team" not in _as_dict(child)
        ]
        groups = [(conference_label, _group_label(d), d) for d in divisions]
        if not groups:
            # Conference-level standings with no division layer
            groups = [(conference_label, "", conference)]

        for conference_name, division_name, group in groups:
            for entry in _entries_of(group):
                teams.append(
                    build_team_record(
                        entry,
                        len(teams),
                        conference=conference_name,
                        division=division_name,
                    )
                )
    return teams


# Shape 2: flat items/entries, items need one $ref indirection


def recognizes_indexed_entries(payload):
    return bool(_as_list(payload.get("entries")) or _as_list(payload.get("items")))


def _overall_item(items):
    items = [_as_dict(item) for item in items]
    for item in items:
        if str(item.get("id")) == "0" or item.get("name") == "overall":
            return item
    return next((item for item in items if item.get("$ref")), None)


def _parse_entries(entries, container):
    conference = _group_label(container.get("conference")) or "NFL"
    division = _group_label(container.get("division"))
    teams = []
    for entry in entries:
        teams.append(
            build_team_record(entry, len(teams), conference=conference, division=division)
        )
    return teams


def parse_indexed_entries(payload, fetch=None):
    entries = _as_list(payload.get("entries"))
    if entries:
        return _parse_entries(entries, payload)

    item = _overall_item(_as_list(payload.get("items")))
    if item is None or not item.get("$ref"):
        raise UpstreamShapeUnrecognized("standings items carry no $ref to follow")
    if fetch is None:
        return []

    logger.info(f"Following standings $ref: {item['$ref']}")
    referenced = fetch(item["$ref"])
    return _parse_entries(_as_list(_as_dict(referenced).get("entries")), _as_dict(referenced))


# Shape 3: teams list, usually without records


def team_list_nodes(payload):
    """Team nodes of a teams payload, whichever way it is wrapped"""
    sports = _as_list(payload.get("sports"))
    if sports:
        leagues = _as_list(_as_dict(sports[0]).get("leagues"))
        if leagues:
            nodes = _as_list(_as_dict(leagues[0]).get("teams"))
            if nodes:
                return nodes

    nodes = _as_list(payload.get("teams"))
    if nodes:
        return nodes

    # Core API lists whose items embed the team object; bare $ref items are skipped
    return [
        item
        for item in _as_list(payload.get("items"))
        if _as_dict(item).get("team") or _as_dict(item).get("displayName")
    ]


def recognizes_team_list(payload):
    return bool(team_list_nodes(payload))


def parse_team_list(payload, fetch=None):
    teams = []
    for node in team_list_nodes(payload):
        team = _as_dict(_as_dict(node).get("team")) or _as_dict(node)
        if not (team.get("id") or team.get("displayName") or team.get("name")):
            continue
        teams.append(build_team_record(node, len(teams)))
    return teams


def parse_team_detail(payload):
    """
    Record from a single-team detail payload

    Returns:
        tuple: (wins, losses, ties), or None if the payload carries no record
    """
    record = extract_record(_as_dict(payload).get("team") or payload)
    return record if any(record) else None


STANDINGS_PARSERS = [
    ShapeParser("conference_groups", recognizes_conference_groups, parse_conference_groups),
    ShapeParser("indexed_entries", recognizes_indexed_entries, parse_indexed_entries),
    ShapeParser("team_list", recognizes_team_list, parse_team_list),
]


def is_usable(teams):
    """A parse result is usable when it is non-empty and has a real record"""
    return bool(teams) and any_record(teams)


def parse_standings_payload(payload, fetch=None, parsers=None):
    """
    Run the parser chain over one standings payload

    Args:
        payload: Decoded JSON from a standings-like endpoint
        fetch: Callable used by parsers that need to follow a $ref
        parsers: Override for the parser chain

    Returns:
        ParseOutcome: The first usable result; failing that, the first
        non-empty result (usable=False); failing that, an empty outcome
    """
    payload = _as_dict(payload)
    fallback = ParseOutcome([], None, False)

    for parser in parsers or STANDINGS_PARSERS:
        if not parser.recognizes(payload):
            continue

        try:
            teams = parser.parse(payload, fetch)
        except UpstreamUnavailable as e:
            logger.warning(f"Parser {parser.name} could not follow reference: {e}")
            continue
        except UpstreamShapeUnrecognized as e:
            logger.info(f"Parser {parser.name} gave up: {e}")
            continue

        if is_usable(teams):
            logger.info(f"Parsed {len(teams)} teams with {parser.name} shape")
            return ParseOutcome(teams, parser.name, True)

        if teams and not fallback.teams:
            logger.debug(f"{parser.name} shape gave {len(teams)} teams without records")
            fallback = ParseOutcome(teams, parser.name, False)

    return fallback
