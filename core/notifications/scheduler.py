"""
APScheduler-based lifecycle scheduler for event start/end reminders.

Two independent timer pools, one per transition:
- start -> documentation_reminder to registrants when an event begins
- end   -> feedback_reminder to registrants (who haven't given feedback)
  when an event ends

Timers live in an in-memory job store only. Events get edited, deleted and
(dis)approved after a timer is armed, so the timer set is never trusted for
long: it is rebuilt from the database at startup, on a fixed cadence, and
after every timer fires. Each timer stores only (event_id, transition);
the event is re-read at fire time. A separate backup sweep re-fires every
transition that is already in the past, which also covers timers lost to a
restart. Repeat firings are harmless because the audience query skips users
that already have the reminder.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

import sentry_sdk
from apscheduler.job import Job
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from core.config import SchedulerSettings, get_scheduler_settings
from core.database import get_connection
from core.enums import Transition
from core.notifications.audience import kind_for_transition, resolve_audience
from core.notifications.context import build_reminder_context, get_event_for_reminder
from core.notifications.dispatcher import send_bulk_notification
from core.notifications.templates import get_action, get_message
from core.queries.events import get_due_events, get_upcoming_events, transition_instant
from core.timezone import event_end, is_running, local_now

logger = logging.getLogger(__name__)


SWEEP_JOB_ID = "backup_sweep"


def recompute_job_id(transition: Transition) -> str:
    return f"recompute_{transition.value}"


def timer_job_id(transition: Transition, event_id: int) -> str:
    return f"{transition.value}_event_{event_id}"


def _empty_summary() -> dict:
    return {"sent": 0, "failed": 0, "skipped": 0}


def is_transition_due(event: dict, transition: Transition, now: datetime) -> bool:
    """
    Whether a transition's reminder may go out at `now`.

    Start reminders go out while the event is running, end reminders once
    it has ended. Same rules as get_due_events, checked against the
    event's current date and times.
    """
    if transition == Transition.start:
        return is_running(event["date"], event["time_start"], event["time_end"], now)
    return event_end(event["date"], event["time_start"], event["time_end"]) <= now


@dataclass
class ScheduledTimer:
    """A pending one-shot timer for one event transition."""

    event_id: int
    transition: Transition
    fire_at: datetime  # Wall-clock time in the event timezone
    job: Job

    def cancel(self) -> None:
        try:
            self.job.remove()
        except JobLookupError:
            pass  # Already fired or removed


class LifecycleScheduler:
    """
    Owns the APScheduler instance and the armed reminder timers.

    Usage (FastAPI lifespan):
        scheduler = LifecycleScheduler()
        scheduler.start()
        ...
        scheduler.stop()

    or as an async context manager:
        async with LifecycleScheduler() as scheduler:
            ...
    """

    def __init__(
        self,
        settings: SchedulerSettings | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.settings = settings or get_scheduler_settings()
        self._clock = clock or (lambda: local_now(self.settings.timezone))
        self._scheduler: AsyncIOScheduler | None = None
        self._timers: dict[Transition, dict[int, ScheduledTimer]] = {
            transition: {} for transition in Transition
        }

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    def start(self) -> None:
        """
        Start the scheduler and its periodic jobs.

        Must be called from within a running event loop. The first recompute
        of each transition runs after `startup_delay`; it also catches up on
        transitions that happened while the process was down.
        """
        if self._scheduler is not None:
            return

        self._scheduler = AsyncIOScheduler(
            timezone=self.settings.timezone,
            job_defaults={
                "coalesce": True,  # Combine missed runs into one
                "max_instances": 1,
                "misfire_grace_time": 3600,  # Allow 1 hour late execution
            },
        )
        self._scheduler.start()

        first_run = datetime.now(timezone.utc) + self.settings.startup_delay
        for transition in Transition:
            self._scheduler.add_job(
                self.recompute,
                trigger="interval",
                seconds=self.settings.recompute_interval.total_seconds(),
                next_run_time=first_run,
                id=recompute_job_id(transition),
                replace_existing=True,
                kwargs={"transition": transition},
            )
        self._scheduler.add_job(
            self.sweep,
            trigger="interval",
            seconds=self.settings.sweep_interval.total_seconds(),
            id=SWEEP_JOB_ID,
            replace_existing=True,
        )
        logger.info(
            f"Lifecycle scheduler started (horizon {self.settings.horizon}, "
            f"recompute every {self.settings.recompute_interval}, "
            f"sweep every {self.settings.sweep_interval})"
        )

    def stop(self) -> None:
        """Cancel every pending timer and shut the scheduler down.

        In-flight sends are not awaited.
        """
        if self._scheduler is None:
            return

        for transition in Transition:
            self.cancel_timers(transition)
        self._scheduler.remove_all_jobs()
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Lifecycle scheduler stopped")

    async def __aenter__(self) -> "LifecycleScheduler":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def request_refresh(self) -> None:
        """
        Recompute both timer pools as soon as possible.

        Called through core.notifications.actions.on_event_changed by the
        event controllers after an event is created, edited, approved or
        deleted, so the change doesn't wait for the next cadence tick.
        """
        if self._scheduler is None:
            logger.warning("Scheduler not running, cannot refresh reminder timers")
            return

        for transition in Transition:
            self._scheduler.add_job(
                self.recompute,
                id=f"refresh_{transition.value}",
                replace_existing=True,
                kwargs={"transition": transition},
            )

    # =========================================================================
    # Timers
    # =========================================================================

    def timers(self, transition: Transition) -> list[ScheduledTimer]:
        """Currently armed timers for a transition, soonest first."""
        return sorted(
            self._timers[Transition(transition)].values(),
            key=lambda timer: (timer.fire_at, timer.event_id),
        )

    def cancel_timers(self, transition: Transition) -> int:
        """Cancel all armed timers for a transition. Returns how many."""
        pool = self._timers[Transition(transition)]
        count = len(pool)
        for timer in pool.values():
            timer.cancel()
        pool.clear()
        return count

    def _arm_timer(self, event: dict, transition: Transition) -> ScheduledTimer:
        fire_at = transition_instant(event, transition)
        # Delay runs from arming time, after any due sends in this pass
        delay = max(fire_at - self._clock(), timedelta(0))
        event_id = event["event_id"]

        job = self._scheduler.add_job(
            self._on_timer,
            trigger="date",
            run_date=datetime.now(timezone.utc) + delay,
            id=timer_job_id(transition, event_id),
            replace_existing=True,
            kwargs={"event_id": event_id, "transition": transition},
        )
        timer = ScheduledTimer(
            event_id=event_id, transition=transition, fire_at=fire_at, job=job
        )
        self._timers[transition][event_id] = timer
        logger.debug(
            f"Armed {transition.value} timer for event {event_id} "
            f"\"{event['title']}\" at {fire_at} (in {delay})"
        )
        return timer

    async def _on_timer(self, event_id: int, transition: Transition) -> None:
        """Job function for an armed timer: fire, then rebuild the pool."""
        self._timers[transition].pop(event_id, None)
        logger.info(f"Timer fired: {transition.value} of event {event_id}")
        await self.fire_transition(event_id, transition)
        await self.recompute(transition)

    # =========================================================================
    # Passes
    # =========================================================================

    async def recompute(self, transition: Transition) -> dict:
        """
        Rebuild the timer pool for one transition from live data.

        Fires reminders for transitions already in the past, then replaces
        all armed timers with one per event whose transition falls inside
        the horizon. On a storage error the existing timers are left alone
        and the next cadence tick retries.

        Returns dict with due/sent/armed/cancelled counts, or an error key.
        """
        transition = Transition(transition)
        now = self._clock()

        try:
            async with get_connection() as conn:
                due = await get_due_events(conn, transition, now)
                upcoming = await get_upcoming_events(
                    conn, transition, now, self.settings.horizon
                )
        except Exception as e:
            logger.error(f"Failed to recompute {transition.value} reminders: {e}")
            sentry_sdk.capture_exception(e)
            return {"error": str(e), "due": 0, "sent": 0, "armed": 0, "cancelled": 0}

        sent = 0
        for event in due:
            sent += (await self.fire_transition(event["event_id"], transition))["sent"]

        # No awaits from here on: cancel and re-arm happen as one step
        cancelled = self.cancel_timers(transition)
        armed = 0
        if self._scheduler is not None:
            for event in upcoming:
                self._arm_timer(event, transition)
                armed += 1
        elif upcoming:
            logger.warning(
                f"Scheduler not running, not arming {len(upcoming)} {transition.value} timers"
            )

        logger.info(
            f"Recomputed {transition.value} reminders: {len(due)} due "
            f"({sent} sent), {armed} timers armed, {cancelled} replaced"
        )
        return {
            "due": len(due),
            "sent": sent,
            "armed": armed,
            "cancelled": cancelled,
        }

    async def sweep(self, transitions: list[Transition] | None = None) -> dict:
        """
        Backup pass: fire every transition already in the past.

        Leaves armed timers untouched. Safe to run any number of times.

        Returns dict keyed by transition value with due/sent counts (or error).
        """
        now = self._clock()
        totals: dict[str, dict] = {}

        for transition in transitions or list(Transition):
            transition = Transition(transition)
            try:
                async with get_connection() as conn:
                    due = await get_due_events(conn, transition, now)
            except Exception as e:
                logger.error(f"Backup sweep for {transition.value} failed: {e}")
                sentry_sdk.capture_exception(e)
                totals[transition.value] = {"error": str(e), "due": 0, "sent": 0}
                continue

            sent = 0
            for event in due:
                summary = await self.fire_transition(event["event_id"], transition)
                sent += summary["sent"]

            if sent:
                logger.info(f"Backup sweep sent {sent} {transition.value} reminder(s)")
            totals[transition.value] = {"due": len(due), "sent": sent}

        return totals

    async def fire_transition(self, event_id: int, transition: Transition) -> dict:
        """
        Send the reminder for one event transition to everyone still owed it.

        No-op when the event is gone or no longer approved, or when it was
        edited so the transition is no longer due (see is_transition_due).

        Returns dict with sent/failed/skipped counts, plus error on failure.
        """
        transition = Transition(transition)
        kind = kind_for_transition(transition)

        try:
            event = await get_event_for_reminder(event_id)
            if event is None:
                logger.info(
                    f"Event {event_id} not found or not approved, skipping {kind.value}"
                )
                return _empty_summary()

            now = self._clock()
            if not is_transition_due(event, transition, now):
                logger.info(
                    f"Event {event_id} is not at its {transition.value} "
                    f"({event['date']} {event['time_start']}-{event['time_end']}, "
                    f"now {now}), skipping {kind.value}"
                )
                return _empty_summary()

            user_ids = await resolve_audience(event_id, transition)
        except Exception as e:
            logger.error(f"Failed to resolve {kind.value} audience for event {event_id}: {e}")
            sentry_sdk.capture_exception(e)
            return {"error": str(e), **_empty_summary()}

        if not user_ids:
            logger.debug(f"No participants need {kind.value} for event {event_id}")
            return _empty_summary()

        context = build_reminder_context(event)
        logger.info(
            f"Sending {kind.value} for event {event_id} \"{event['title']}\" "
            f"to {len(user_ids)} user(s)"
        )
        result = await send_bulk_notification(
            user_ids,
            title=get_message(kind.value, "title", context),
            body=get_message(kind.value, "body", context),
            kind=kind,
            related_id=event_id,
            data={"event_title": event["title"], "action": get_action(kind.value)},
        )
        return {
            "sent": result.success,
            "failed": result.failed,
            "skipped": result.skipped,
        }
