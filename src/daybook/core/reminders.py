"""Reminder times for a day's activities - no I/O."""

from dataclasses import dataclass
from datetime import datetime, time, timedelta

from .dates import DateLike, to_date
from .merge import DisplayActivity


@dataclass
class Reminder:
    """A reminder due lead_minutes before an activity starts."""

    title: str
    starts_at: datetime
    remind_at: datetime
    is_recurring: bool

    def format(self) -> str:
        kind = "Upcoming event" if self.is_recurring else "Upcoming activity"
        return f"{self.remind_at.strftime('%H:%M')}  {kind}: {self.title} at {self.starts_at.strftime('%H:%M')}"


def reminders_for_day(
    display: list[DisplayActivity],
    day: DateLike,
    lead_minutes: int = 15,
    now: datetime | None = None,
) -> list[Reminder]:
    """
    Reminders still ahead of now for timed, not-done activities.

    Pure function - no I/O.
    """
    now = now or datetime.now()
    d = to_date(day)
    lead = timedelta(minutes=max(0, lead_minutes))

    reminders = []
    for act in display:
        if not act.time or act.done:
            continue
        hour, _, minute = act.time.partition(":")
        try:
            starts_at = datetime.combine(d, time(int(hour), int(minute)))
        except ValueError:
            continue
        remind_at = starts_at - lead
        if remind_at > now:
            reminders.append(
                Reminder(
                    title=act.title,
                    starts_at=starts_at,
                    remind_at=remind_at,
                    is_recurring=act.is_recurring,
                )
            )

    return sorted(reminders, key=lambda r: r.remind_at)
