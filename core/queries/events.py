"""
Event horizon queries: which approved events start or end around "now".

Start and end instants are built in SQL from the date and time-of-day
columns (Postgres: date + time -> timestamp), so "already ended" and
"currently running" agree with each other even for today's events. All
queries take `now` as a naive wall-clock datetime in the event timezone
(see core.timezone.local_now) and return rows sorted soonest-first.
"""

from datetime import datetime, timedelta

from sqlalchemy import Integer, case, literal_column, select
from sqlalchemy.ext.asyncio import AsyncConnection

from ..enums import EventStatus, Transition
from ..tables import events


def start_instant():
    """SQL expression for an event's start timestamp."""
    return events.c.date + events.c.time_start


def end_instant():
    """SQL expression for an event's end timestamp (rolls past midnight)."""
    return case(
        (
            events.c.time_end < events.c.time_start,
            (events.c.date + literal_column("1", Integer)) + events.c.time_end,
        ),
        else_=events.c.date + events.c.time_end,
    )


def _approved_events_select():
    return select(
        events.c.event_id,
        events.c.title,
        events.c.date,
        events.c.time_start,
        events.c.time_end,
        start_instant().label("starts_at"),
        end_instant().label("ends_at"),
    ).where(events.c.status == EventStatus.approved)


async def _fetch(conn: AsyncConnection, query) -> list[dict]:
    result = await conn.execute(query)
    return [dict(row) for row in result.mappings()]


async def get_event(conn: AsyncConnection, event_id: int) -> dict | None:
    """Get a single event (any status) with its computed instants."""
    result = await conn.execute(
        select(
            events,
            start_instant().label("starts_at"),
            end_instant().label("ends_at"),
        ).where(events.c.event_id == event_id)
    )
    row = result.mappings().first()
    return dict(row) if row else None


async def get_events_ending_between(
    conn: AsyncConnection,
    low_exclusive: datetime,
    high_inclusive: datetime,
) -> list[dict]:
    """Approved events whose end instant is in (low, high], soonest first."""
    ends_at = end_instant()
    return await _fetch(
        conn,
        _approved_events_select()
        .where(ends_at > low_exclusive)
        .where(ends_at <= high_inclusive)
        .order_by(ends_at, events.c.event_id),
    )


async def get_events_already_ended(
    conn: AsyncConnection,
    now: datetime,
) -> list[dict]:
    """Approved events that ended at or before `now` (no look-back limit)."""
    ends_at = end_instant()
    return await _fetch(
        conn,
        _approved_events_select()
        .where(ends_at <= now)
        .order_by(ends_at, events.c.event_id),
    )


async def get_events_starting_between(
    conn: AsyncConnection,
    low_exclusive: datetime,
    high_inclusive: datetime,
) -> list[dict]:
    """Approved events whose start instant is in (low, high], soonest first."""
    starts_at = start_instant()
    return await _fetch(
        conn,
        _approved_events_select()
        .where(starts_at > low_exclusive)
        .where(starts_at <= high_inclusive)
        .order_by(starts_at, events.c.event_id),
    )


async def get_events_already_running(
    conn: AsyncConnection,
    now: datetime,
) -> list[dict]:
    """Approved events with start <= now < end."""
    starts_at = start_instant()
    return await _fetch(
        conn,
        _approved_events_select()
        .where(starts_at <= now)
        .where(end_instant() > now)
        .order_by(starts_at, events.c.event_id),
    )


async def get_due_events(
    conn: AsyncConnection,
    transition: Transition,
    now: datetime,
) -> list[dict]:
    """Events whose `transition` has already happened and still needs handling."""
    if transition == Transition.start:
        return await get_events_already_running(conn, now)
    return await get_events_already_ended(conn, now)


async def get_upcoming_events(
    conn: AsyncConnection,
    transition: Transition,
    now: datetime,
    horizon: timedelta = timedelta(hours=24),
) -> list[dict]:
    """Events whose `transition` falls within (now, now + horizon]."""
    if transition == Transition.start:
        return await get_events_starting_between(conn, now, now + horizon)
    return await get_events_ending_between(conn, now, now + horizon)


def transition_instant(event: dict, transition: Transition) -> datetime:
    """Pick the instant for `transition` from a row returned above."""
    if transition == Transition.start:
        return event["starts_at"]
    return event["ends_at"]
