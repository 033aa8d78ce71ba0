import pytest

from payloads import conference_groups_payload
from pickem.models import LeagueEntry, Player
from pickem.services.league_service import league_service
from pickem.services.scheduler_service import (
    REFRESH_JOB_ID,
    SAVE_JOB_ID,
    scheduler_service,
)


def _stored_rows():
    return [(entry.username, entry.team_1) for entry in LeagueEntry.query.order_by(LeagueEntry.id)]


@pytest.fixture
def running_scheduler(app, monkeypatch):
    # Long debounce so the save only happens when flushed
    monkeypatch.setattr(scheduler_service, "debounce_seconds", 3600)
    scheduler_service.start()
    try:
        yield scheduler_service
    finally:
        scheduler_service.stop()


def test_save_runs_immediately_without_scheduler(app):
    assert not scheduler_service.is_running

    saved = scheduler_service.request_save([Player(id=1, name="Ann", picks=["ATL"])])

    assert saved is True
    assert LeagueEntry.query.one().team_1 == "ATL"
    assert not scheduler_service.has_pending_save()


def test_save_requests_are_debounced(running_scheduler):
    league_service.name_players(["Ann"])
    league_service.pick_team(1, "ATL", 1)
    league_service.pick_team(1, "BUF", 1)

    jobs = [job.id for job in running_scheduler.scheduler.get_jobs()]
    assert jobs.count(SAVE_JOB_ID) == 1
    assert _stored_rows() == [("Ann", None)]

    running_scheduler.stop()

    assert _stored_rows() == [("Ann", "BUF")]
    assert not running_scheduler.has_pending_save()


def test_reset_supersedes_pending_save(running_scheduler):
    league_service.setup_league(2)
    league_service.name_players(["Ann", "Bob"])
    league_service.pick_team(1, "BUF", 1)
    assert running_scheduler.has_pending_save()

    league_service.reset()

    assert not running_scheduler.has_pending_save()
    running_scheduler.stop()
    assert _stored_rows() == []


def test_rename_supersedes_pending_save(running_scheduler):
    league_service.name_players(["Ann"])
    league_service.pick_team(1, "BUF", 1)

    league_service.name_players(["Zed"])

    assert _stored_rows() == [("Zed", "BUF")]
    running_scheduler.stop()
    assert _stored_rows() == [("Zed", "BUF")]


def test_pending_save_writes_roster_as_of_firing(running_scheduler):
    league_service.name_players(["Ann"])
    league_service.pick_team(1, "BUF", 1)
    league_service.pick_team(1, "ATL", 2)

    running_scheduler.scheduler.get_job(SAVE_JOB_ID).func()

    entry = LeagueEntry.query.one()
    assert (entry.team_1, entry.team_2) == ("BUF", "ATL")


def test_cancel_without_pending_save(running_scheduler):
    assert running_scheduler.cancel_pending_save() is False


def test_status_lists_jobs(running_scheduler):
    running_scheduler.request_save([Player(id=1, name="Ann")])

    status = running_scheduler.get_status()

    assert status["is_running"] is True
    assert {job["id"] for job in status["jobs"]} == {REFRESH_JOB_ID, SAVE_JOB_ID}


def test_force_refresh_updates_stats(app, espn):
    espn.add("standings", conference_groups_payload({"ATL": (1, 0, 0)}))
    before = scheduler_service.sync_stats["total_refreshes"]

    result = scheduler_service.force_refresh()

    assert result.source == "standings"
    assert scheduler_service.sync_stats["total_refreshes"] == before + 1
    assert scheduler_service.get_status()["stats"]["last_refresh_source"] == "standings"
