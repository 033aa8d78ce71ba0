"""
Background scheduling for the NFL team pool

Uses APScheduler for two things:
- a periodic standings refresh, independent of user activity
- debounced roster saves: every save request replaces the pending one-shot
  job, so a burst of pick changes results in a single replace-all write
"""

import atexit
import logging
from contextlib import nullcontext
from datetime import datetime, timedelta, timezone

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger
from flask import current_app, has_app_context

logger = logging.getLogger(__name__)

REFRESH_JOB_ID = "refresh_standings"
SAVE_JOB_ID = "save_roster"


class SchedulerService:
    """Manages background standings refresh and debounced roster saves"""

    def __init__(self, app=None):
        self.scheduler = None
        self.app = app
        self.is_running = False
        self.refresh_hours = 4
        self.debounce_seconds = 0.5
        self._atexit_registered = False
        self.sync_stats = {
            "last_refresh": None,
            "last_refresh_source": None,
            "total_refreshes": 0,
            "failed_refreshes": 0,
            "last_save": None,
            "total_saves": 0,
            "failed_saves": 0,
        }

        if app:
            self.init_app(app)

    def init_app(self, app):
        """Initialize scheduler with Flask app"""
        if self.is_running:
            self.stop()

        self.app = app
        self.refresh_hours = app.config.get("STANDINGS_REFRESH_HOURS", 4)
        self.debounce_seconds = app.config.get("SAVE_DEBOUNCE_SECONDS", 0.5)
        self.scheduler = BackgroundScheduler(daemon=True, timezone="UTC")

        # Register shutdown
        if not self._atexit_registered:
            atexit.register(self.shutdown)
            self._atexit_registered = True

        # Start scheduler if enabled
        if app.config.get("SCHEDULER_ENABLED", True):
            self.start()

    def start(self):
        """Start the background scheduler"""
        if self.is_running:
            return

        try:
            self.scheduler.remove_all_jobs()
            self._add_core_jobs()
            self.scheduler.start()
            self.is_running = True

            logger.info("Scheduler started successfully")

        except Exception as e:
            logger.error(f"Failed to start scheduler: {e}")
            raise

    def stop(self):
        """Stop the background scheduler, flushing any pending save"""
        if not self.is_running:
            return

        try:
            self._flush_pending_save()
            self.scheduler.shutdown(wait=False)
            self.is_running = False
            logger.info("Scheduler stopped")

        except Exception as e:
            logger.error(f"Error stopping scheduler: {e}")

    def shutdown(self):
        """Graceful shutdown"""
        self.stop()

    def _add_core_jobs(self):
        """Add core scheduled jobs"""
        self.scheduler.add_job(
            func=self._refresh_standings,
            trigger=IntervalTrigger(hours=self.refresh_hours),
            id=REFRESH_JOB_ID,
            name="Refresh NFL Standings",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=600,
        )

        logger.info("Core scheduled jobs added")

    def _app_context(self):
        """App context for job code; reuses the current one when already inside it"""
        if has_app_context() and current_app._get_current_object() is self.app:
            return nullcontext()
        return self.app.app_context()

    def _refresh_standings(self, force=False):
        """Re-resolve standings in an app context"""
        from pickem.services.standings_service import standings_service
        from pickem.utils.cache_utils import invalidate_cached_route

        with self._app_context():
            try:
                result = standings_service.resolve(force=force)
                invalidate_cached_route("standings")
                self._update_refresh_stats(result)
                if result.error:
                    logger.warning(
                        f"Standings refresh degraded to {result.source}: {result.error.value}"
                    )
                else:
                    logger.info(
                        f"Standings refreshed from {result.source} ({len(result.teams)} teams)"
                    )
                return result
            except Exception as e:
                self.sync_stats["failed_refreshes"] += 1
                logger.error(f"Error refreshing standings: {e}", exc_info=True)
                return None

    def _save_roster(self, players=None):
        """
        Write the roster in an app context; failures wait for the next request

        Debounced jobs pass no players and write the working roster as it is
        when the job fires, so a later direct write is never overwritten by
        an older snapshot.
        """
        from pickem.services.league_service import league_service

        with self._app_context():
            if players is None:
                players = league_service.get_players()
            saved = league_service.save_all(players)

        self.sync_stats["last_save"] = datetime.now(timezone.utc)
        self.sync_stats["total_saves"] += 1
        if not saved:
            self.sync_stats["failed_saves"] += 1
            logger.warning("Roster save failed; will retry on next change")
        return saved

    def request_save(self, players):
        """
        Schedule a roster save after the debounce period

        Any pending save is replaced, so only the latest roster is written.
        Without a running scheduler the save happens immediately.

        Returns:
            bool or None: The save result when run immediately, else None
        """
        if not self.is_running:
            return self._save_roster(players)

        run_date = datetime.now(timezone.utc) + timedelta(seconds=self.debounce_seconds)
        self.scheduler.add_job(
            func=self._save_roster,
            trigger=DateTrigger(run_date=run_date),
            id=SAVE_JOB_ID,
            name="Save League Roster",
            replace_existing=True,
            misfire_grace_time=60,
        )
        logger.debug(f"Roster save scheduled for {run_date.isoformat()}")
        return None

    def has_pending_save(self):
        return bool(self.scheduler and self.scheduler.get_job(SAVE_JOB_ID))

    def cancel_pending_save(self):
        """
        Drop the pending debounced save, if any

        Called before a direct write so the newer roster is the last one
        written.

        Returns:
            bool: Whether a pending save was removed
        """
        if not self.scheduler:
            return False
        try:
            self.scheduler.remove_job(SAVE_JOB_ID)
        except JobLookupError:
            return False
        logger.debug("Pending roster save superseded by a direct write")
        return True

    def _flush_pending_save(self):
        if not self.cancel_pending_save():
            return
        logger.info("Flushing pending roster save")
        self._save_roster()

    def _update_refresh_stats(self, result):
        self.sync_stats["last_refresh"] = datetime.now(timezone.utc)
        self.sync_stats["last_refresh_source"] = result.source
        self.sync_stats["total_refreshes"] += 1
        if result.error:
            self.sync_stats["failed_refreshes"] += 1

    def get_status(self):
        """Get scheduler status information"""
        jobs = []
        if self.scheduler and self.is_running:
            for job in self.scheduler.get_jobs():
                next_run = job.next_run_time
                jobs.append(
                    {
                        "id": job.id,
                        "name": job.name,
                        "next_run": next_run.isoformat() if next_run else None,
                        "trigger": str(job.trigger),
                    }
                )

        stats = dict(self.sync_stats)
        for key in ("last_refresh", "last_save"):
            if stats[key] is not None:
                stats[key] = stats[key].isoformat()

        return {"is_running": self.is_running, "jobs": jobs, "stats": stats}

    def force_refresh(self):
        """Manually trigger a standings refresh that bypasses the cache"""
        return self._refresh_standings(force=True)


# Global scheduler instance
scheduler_service = SchedulerService()
