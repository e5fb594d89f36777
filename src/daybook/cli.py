"""Daybook CLI - local-first daily planner."""

import json
import logging
import sys
from datetime import date, datetime

import click

from .config import load_config
from .core import merge
from .core.merge import DayState, DisplayActivity
from .core.recurrence import Recurrence, RecurrenceType
from .errors import DaybookError
from .planner import Planner, open_planner

DAY_NAMES = ["sun", "mon", "tue", "wed", "thu", "fri", "sat"]

date_option = click.option(
    "--date",
    "on_date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Day to work on (YYYY-MM-DD, default today)",
)


def _day(on_date: datetime | None) -> date:
    return on_date.date() if on_date else date.today()


def _planner() -> Planner:
    return open_planner(load_config(), debounced=False)


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


class DaybookGroup(click.Group):
    """Report Daybook errors raised by any subcommand the way commands do."""

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except DaybookError as e:
            _fail(str(e))


@click.group(cls=DaybookGroup)
@click.version_option(package_name="daybook")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """Daybook - local-first daily planner."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )


def _show_activities(activities: list[DisplayActivity], as_json: bool, empty_msg: str) -> None:
    """Shared display logic for day and week views."""
    if as_json:
        click.echo(json.dumps([a.to_dict() for a in activities], indent=2))
        return

    if not activities:
        click.echo(empty_msg)
        return

    for act in activities:
        mark = "x" if act.done else " "
        label = " (recurring)" if act.is_recurring else ""
        click.echo(f"[{mark}] {act.time or '--:--':5} {act.title}{label}  <{act.id}>")
        for idx, item in enumerate(act.items):
            click.echo(f"      {idx}. [{'x' if item.done else ' '}] {item.text}")


@main.command()
@date_option
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def day(on_date: datetime | None, as_json: bool):
    """Show a day's activities."""
    planner = _planner()
    target = _day(on_date)
    state = planner.open_day(target)
    if not as_json:
        click.echo(f"### {target.strftime('%A, %B %d')}")
    _show_activities(planner.display(state), as_json, "Nothing planned.")


@main.command()
@date_option
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def week(on_date: datetime | None, as_json: bool):
    """Show the week (Monday to Sunday) containing a day."""
    planner = _planner()
    days = planner.week(_day(on_date))

    if as_json:
        click.echo(
            json.dumps(
                {d.isoformat(): [a.to_dict() for a in acts] for d, acts in days},
                indent=2,
            )
        )
        return

    for i, (d, acts) in enumerate(days):
        if i:
            click.echo()
        click.echo(f"### {d.strftime('%A, %B %d')}")
        for act in acts:
            time_str = f"{act.time} • " if act.time else ""
            click.echo(f"  {time_str}{act.title}")


@main.command()
@click.argument("title")
@click.option("--time", "time_str", default="", help="Start time (HH:MM)")
@click.option("--item", "items", multiple=True, help="Checklist item (repeatable)")
@date_option
def add(title: str, time_str: str, items: tuple[str, ...], on_date: datetime | None):
    """Add a one-off activity."""
    planner = _planner()
    state = planner.open_day(_day(on_date))
    act = planner.apply(state, merge.add_one_off, title, time_str, list(items))
    if act is None:
        _fail("Title is required.")
    click.echo(f"Added {act.id}: {act.title}")


@main.command()
@click.argument("activity_id")
@click.option("--title", default=None, help="New title")
@click.option("--time", "time_str", default=None, help="New time (HH:MM, empty to clear)")
@date_option
def edit(activity_id: str, title: str | None, time_str: str | None, on_date: datetime | None):
    """Edit a one-off activity."""
    planner = _planner()
    state = planner.open_day(_day(on_date))
    if not planner.apply(state, merge.edit_one_off, activity_id, title, time_str):
        _fail(f"No activity {activity_id} on this day.")
    click.echo(f"Updated {activity_id}")


@main.command()
@click.argument("activity_id")
@date_option
def rm(activity_id: str, on_date: datetime | None):
    """Delete a one-off activity."""
    planner = _planner()
    state = planner.open_day(_day(on_date))
    if not planner.apply(state, merge.delete_one_off, activity_id):
        _fail(f"No activity {activity_id} on this day.")
    click.echo(f"Deleted {activity_id}")


def _find(planner: Planner, state: DayState, activity_id: str) -> DisplayActivity:
    for act in planner.display(state):
        if act.id == activity_id:
            return act
    _fail(f"No activity {activity_id} on this day.")


def _set_done(activity_id: str, on_date: datetime | None, done: bool) -> None:
    planner = _planner()
    state = planner.open_day(_day(on_date))
    act = _find(planner, state, activity_id)
    if act.is_recurring:
        planner.apply(state, merge.toggle_recurring_instance, act.id, done)
    else:
        planner.apply(state, merge.toggle_one_off, act.id, done)
    click.echo(f"{'Done' if done else 'Reopened'}: {act.title}")


@main.command()
@click.argument("activity_id")
@date_option
def done(activity_id: str, on_date: datetime | None):
    """Mark an activity (one-off or recurring instance) done."""
    _set_done(activity_id, on_date, True)


@main.command()
@click.argument("activity_id")
@date_option
def undo(activity_id: str, on_date: datetime | None):
    """Mark an activity not done."""
    _set_done(activity_id, on_date, False)


@main.group()
def item():
    """Edit checklist items."""


@item.command("add")
@click.argument("activity_id")
@click.argument("text")
@date_option
def item_add(activity_id: str, text: str, on_date: datetime | None):
    """Add an item. On a recurring instance it is added for this day only."""
    planner = _planner()
    state = planner.open_day(_day(on_date))
    act = _find(planner, state, activity_id)
    intent = merge.add_ad_hoc_item if act.is_recurring else merge.add_one_off_item
    if not planner.apply(state, intent, act.id, text):
        _fail("Item text is required.")
    click.echo(f"Added item to {act.title}")


def _set_item_done(activity_id: str, index: int, on_date: datetime | None, done: bool) -> None:
    planner = _planner()
    state = planner.open_day(_day(on_date))
    act = _find(planner, state, activity_id)
    if not 0 <= index < len(act.items):
        _fail(f"No item {index} on {act.title}.")

    if not act.is_recurring:
        changed = planner.apply(state, merge.toggle_one_off_item, act.id, index, done)
    elif act.items[index].key is not None:
        changed = planner.apply(state, merge.toggle_recurring_item, act.id, act.items[index].key, done)
    else:
        changed = planner.apply(state, merge.set_ad_hoc_item_done, act.id, act.items[index].override_index, done)

    if not changed:
        _fail(f"{act.title} is marked done for the day; undo it first.")
    click.echo(f"Updated item {index} of {act.title}")


@item.command("done")
@click.argument("activity_id")
@click.argument("index", type=int)
@date_option
def item_done(activity_id: str, index: int, on_date: datetime | None):
    """Check an item."""
    _set_item_done(activity_id, index, on_date, True)


@item.command("undo")
@click.argument("activity_id")
@click.argument("index", type=int)
@date_option
def item_undo(activity_id: str, index: int, on_date: datetime | None):
    """Uncheck an item."""
    _set_item_done(activity_id, index, on_date, False)


@item.command("rm")
@click.argument("activity_id")
@click.argument("index", type=int)
@date_option
def item_rm(activity_id: str, index: int, on_date: datetime | None):
    """Remove an item. Template items of a recurring instance cannot be removed per day."""
    planner = _planner()
    state = planner.open_day(_day(on_date))
    act = _find(planner, state, activity_id)
    if not 0 <= index < len(act.items):
        _fail(f"No item {index} on {act.title}.")

    if not act.is_recurring:
        planner.apply(state, merge.delete_one_off_item, act.id, index)
    elif act.items[index].override_index is not None:
        planner.apply(state, merge.delete_ad_hoc_item, act.id, act.items[index].override_index)
    else:
        _fail("Template items can only be removed by editing the recurring template.")
    click.echo(f"Removed item {index} from {act.title}")


# ============== Recurring templates ==============


def _parse_days_of_week(values: tuple[str, ...]) -> list[int] | None:
    days = []
    for value in values:
        for part in value.split(","):
            part = part.strip().lower()
            if not part:
                continue
            if part[:3] in DAY_NAMES:
                days.append(DAY_NAMES.index(part[:3]))
            else:
                try:
                    days.append(int(part))
                except ValueError:
                    raise click.BadParameter(f"Unknown day of week: {part}")
    return sorted(set(days)) or None


def _parse_days_of_month(values: tuple[str, ...]) -> list[int] | None:
    days = []
    for value in values:
        for part in value.split(","):
            if part.strip():
                try:
                    days.append(int(part))
                except ValueError:
                    raise click.BadParameter(f"Not a day of month: {part}")
    return sorted(set(days)) or None


def _format_recurrence(rec: Recurrence) -> str:
    every = f"every {rec.interval} " if rec.interval > 1 else ""
    match rec.type:
        case RecurrenceType.DAILY.value:
            return f"daily {every}".strip()
        case RecurrenceType.WEEKLY.value:
            names = ",".join(DAY_NAMES[d].title() for d in rec.days_of_week or [] if 0 <= d <= 6)
            return f"weekly {every}({names})"
        case RecurrenceType.MONTHLY.value:
            days = ",".join(str(d) for d in rec.days_of_month or [])
            return f"monthly {every}(day {days})"
        case _:
            return f"{rec.type} (inactive)"


@main.group()
def recurring():
    """Manage recurring templates."""


@recurring.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def recurring_list(as_json: bool):
    """List recurring templates."""
    planner = _planner()
    if as_json:
        click.echo(json.dumps([t.to_dict() for t in planner.templates], indent=2))
        return

    if not planner.templates:
        click.echo("No recurring templates.")
        return

    for t in planner.templates:
        time_str = f"{t.time} " if t.time else ""
        bounds = ""
        if t.start_date or t.end_date:
            start = t.start_date.isoformat() if t.start_date else "…"
            end = t.end_date.isoformat() if t.end_date else "…"
            bounds = f" [{start} → {end}]"
        click.echo(f"{t.id}: {time_str}{t.title} - {_format_recurrence(t.recurrence)}{bounds}")


def _template_options(f):
    for decorator in reversed(
        [
            click.option("--time", "time_str", default=None, help="Start time (HH:MM)"),
            click.option(
                "--type",
                "rec_type",
                type=click.Choice([t.value for t in RecurrenceType]),
                default=None,
                help="Recurrence type",
            ),
            click.option("--interval", type=int, default=None, help="Repeat every N days/weeks/months"),
            click.option("--dow", multiple=True, help="Days of week, e.g. mon,wed or 1,3"),
            click.option("--dom", multiple=True, help="Days of month, e.g. 1,15"),
            click.option("--item", "items", multiple=True, help="Checklist item (repeatable)"),
            click.option("--start", type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help="First day"),
            click.option("--end", type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help="Last day"),
        ]
    ):
        f = decorator(f)
    return f


@recurring.command("add")
@click.argument("title")
@_template_options
def recurring_add(title, time_str, rec_type, interval, dow, dom, items, start, end):
    """Create a recurring template."""
    planner = _planner()
    recurrence = Recurrence(
        type=rec_type or RecurrenceType.WEEKLY.value,
        interval=interval or 1,
        days_of_week=_parse_days_of_week(dow),
        days_of_month=_parse_days_of_month(dom),
    )
    try:
        template = planner.create_template(
            title,
            recurrence,
            time=time_str or "",
            items=list(items),
            start_date=start.date() if start else None,
            end_date=end.date() if end else None,
        )
    except DaybookError as e:
        _fail(str(e))
    click.echo(f"Created {template.id}: {template.title}")


@recurring.command("edit")
@click.argument("template_id")
@click.option("--title", default=None, help="New title")
@_template_options
def recurring_edit(template_id, title, time_str, rec_type, interval, dow, dom, items, start, end):
    """Update a recurring template. Only the given options change."""
    planner = _planner()
    try:
        current = planner.get_template(template_id)
        changes = {}
        if title is not None:
            changes["title"] = title
        if time_str is not None:
            changes["time"] = time_str
        if items:
            changes["items"] = list(items)
        if start is not None:
            changes["start_date"] = start.date()
        if end is not None:
            changes["end_date"] = end.date()
        if rec_type or interval or dow or dom:
            rec = current.recurrence
            changes["recurrence"] = Recurrence(
                type=rec_type or rec.type,
                interval=interval or rec.interval,
                days_of_week=_parse_days_of_week(dow) if dow else rec.days_of_week,
                days_of_month=_parse_days_of_month(dom) if dom else rec.days_of_month,
            )
        template = planner.update_template(template_id, **changes)
    except DaybookError as e:
        _fail(str(e))
    click.echo(f"Updated {template.id}: {template.title}")


@recurring.command("rm")
@click.argument("template_id")
def recurring_rm(template_id: str):
    """Delete a recurring template. Past days keep their overrides."""
    planner = _planner()
    try:
        planner.delete_template(template_id)
    except DaybookError as e:
        _fail(str(e))
    click.echo(f"Deleted {template_id}")


@main.command()
@date_option
@click.option("--lead", type=int, default=None, help="Minutes before start (default from config)")
def remind(on_date: datetime | None, lead: int | None):
    """List upcoming reminders for a day."""
    config = load_config()
    planner = open_planner(config, debounced=False)
    state = planner.open_day(_day(on_date))
    reminders = planner.reminders(state, lead if lead is not None else config.reminder_lead_minutes)
    if not reminders:
        click.echo("No upcoming reminders.")
        return
    for reminder in reminders:
        click.echo(reminder.format())


if __name__ == "__main__":
    main()
