"""Tests for the override store and the activity merger."""

import json
from datetime import date

import pytest

from daybook.core import merge
from daybook.core.merge import DayState, build_display, to_record
from daybook.core.overrides import OverrideStore, cache_key
from daybook.core.record import Activity, ChecklistItem, DayOverride, parse_day
from daybook.core.recurrence import Recurrence, RecurringTemplate, TemplateItem

DAY = "2025-01-15"  # a Wednesday


class DictCache:
    """In-memory KeyValueCache."""

    def __init__(self):
        self.data: dict[str, str] = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value

    def delete(self, key):
        self.data.pop(key, None)


@pytest.fixture
def gym():
    return RecurringTemplate(
        id="rec_gym",
        title="Gym",
        time="08:00",
        recurrence=Recurrence(type="daily"),
        items=[TemplateItem(text="shoes"), TemplateItem(text="towel", id="towel")],
    )


@pytest.fixture
def rent():
    return RecurringTemplate(
        id="rec_rent",
        title="Pay rent",
        recurrence=Recurrence(type="monthly", days_of_month=[1]),
    )


@pytest.fixture
def state():
    return DayState(
        day=DAY,
        activities=[
            Activity(id="a1", title="Lunch", time="12:30", items=[ChecklistItem("book table")]),
            Activity(id="a2", title="Read"),
        ],
        overrides=OverrideStore(),
    )


class TestOverrideStore:
    def test_get_unknown_day_is_empty(self):
        assert OverrideStore().get(DAY) == {}

    def test_set_creates_with_defaults(self):
        store = OverrideStore()
        ov = store.set(DAY, "rec1", done=True)
        assert ov == DayOverride(done=True)
        assert store.get(date(2025, 1, 15))["rec1"] is ov

    def test_set_merges_patch(self):
        store = OverrideStore()
        store.set(DAY, "rec1", item_state={"a": True})
        store.set(DAY, "rec1", item_state={"b": False})
        store.set(DAY, "rec1", item_overrides=[ChecklistItem("x")])

        ov = store.get(DAY)["rec1"]
        assert ov.done is False
        assert ov.item_state == {"a": True, "b": False}
        assert ov.item_overrides == [ChecklistItem("x")]

    def test_days_are_independent(self):
        store = OverrideStore()
        store.set(DAY, "rec1", done=True)
        assert store.get("2025-01-16") == {}

    def test_delete_override_item(self):
        store = OverrideStore()
        store.set(DAY, "rec1", item_overrides=[ChecklistItem("a"), ChecklistItem("b")])

        assert store.delete_override_item(DAY, "rec1", 0) is True
        assert store.get(DAY)["rec1"].item_overrides == [ChecklistItem("b")]

    def test_delete_override_item_out_of_range(self):
        store = OverrideStore()
        assert store.delete_override_item(DAY, "missing", 0) is False
        store.set(DAY, "rec1", item_overrides=[ChecklistItem("a")])
        assert store.delete_override_item(DAY, "rec1", 5) is False
        assert store.delete_override_item(DAY, "rec1", -1) is False

    def test_writes_through_to_cache(self):
        cache = DictCache()
        store = OverrideStore(cache)
        store.set(DAY, "rec1", done=True, item_state={"k": True})

        data = json.loads(cache.data[cache_key(DAY)])
        assert data == {"rec1": {"done": True, "itemState": {"k": True}, "itemOverrides": []}}

    def test_reads_through_cache(self):
        cache = DictCache()
        cache.set("dayOverrides:2025-01-15", json.dumps({"rec1": {"done": True}}))

        assert OverrideStore(cache).get(DAY) == {"rec1": DayOverride(done=True)}

    def test_corrupt_cache_is_empty(self):
        cache = DictCache()
        cache.set("dayOverrides:2025-01-15", "{not json")
        assert OverrideStore(cache).get(DAY) == {}

    def test_replace_day(self):
        cache = DictCache()
        store = OverrideStore(cache)
        store.set(DAY, "old", done=True)
        store.replace_day(DAY, {"new": DayOverride(done=True)})

        assert list(store.get(DAY)) == ["new"]
        assert "old" not in cache.data[cache_key(DAY)]


class TestBuildDisplay:
    def test_one_offs_and_instances(self, state, gym):
        display = build_display(DAY, state.activities, [gym], {})

        assert [a.title for a in display] == ["Gym", "Lunch", "Read"]
        assert [a.is_recurring for a in display] == [True, False, False]
        assert display[0].template_id == "rec_gym"
        assert display[1].template_id is None

    def test_untimed_one_off_after_timed_instance(self, gym):
        display = build_display(DAY, [Activity(id="a1", title="Untimed")], [gym])
        assert [a.title for a in display] == ["Gym", "Untimed"]

    def test_stable_for_equal_times(self):
        acts = [
            Activity(id="a1", title="First", time="09:00"),
            Activity(id="a2", title="No time"),
            Activity(id="a3", title="Second", time="09:00"),
            Activity(id="a4", title="Also no time"),
        ]
        display = build_display(DAY, acts, [])
        assert [a.title for a in display] == ["First", "Second", "No time", "Also no time"]

    def test_hand_edited_single_digit_hour_sorts_first(self):
        activities, _ = parse_day("Activity: 10:00 | Later\nActivity: 9:00 | Earlier\n")
        display = build_display(DAY, activities, [])
        assert [(a.time, a.title) for a in display] == [("09:00", "Earlier"), ("10:00", "Later")]

    def test_template_not_firing_is_omitted(self, rent):
        assert build_display(DAY, [], [rent]) == []
        assert len(build_display("2025-02-01", [], [rent])) == 1

    def test_item_state_applied(self, gym):
        overrides = {"rec_gym": DayOverride(item_state={"towel": True})}
        instance = build_display(DAY, [], [gym], overrides)[0]

        assert [(i.text, i.done, i.key) for i in instance.items] == [
            ("shoes", False, "tplItem_0"),
            ("towel", True, "towel"),
        ]

    def test_done_cascades_to_all_items(self, gym):
        overrides = {
            "rec_gym": DayOverride(
                done=True,
                item_state={"tplItem_0": False, "towel": False},
                item_overrides=[ChecklistItem("extra", False)],
            )
        }
        instance = build_display(DAY, [], [gym], overrides)[0]

        assert instance.done is True
        assert all(i.done for i in instance.items)

    def test_ad_hoc_items_appended(self, gym):
        overrides = {"rec_gym": DayOverride(item_overrides=[ChecklistItem("water", True)])}
        instance = build_display(DAY, [], [gym], overrides)[0]

        extra = instance.items[-1]
        assert (extra.text, extra.done, extra.key, extra.override_index) == ("water", True, None, 0)

    def test_untitled_template(self, gym):
        gym.title = ""
        assert build_display(DAY, [], [gym])[0].title == "(Recurring)"

    def test_deleted_template_stops_emitting(self, state, gym):
        state.overrides.set(DAY, "rec_gym", done=True)
        templates = [gym]
        assert any(a.is_recurring for a in merge.display_for(state, templates))

        templates.remove(gym)
        assert not any(a.is_recurring for a in merge.display_for(state, templates))
        assert "rec_gym" in state.day_overrides()


class TestOneOffIntents:
    def test_toggle_one_off_cascades(self, state):
        assert merge.toggle_one_off(state, "a1", True) is True
        assert state.activities[0].done is True
        assert state.activities[0].items[0].done is True

    def test_untoggle_keeps_items(self, state):
        merge.toggle_one_off(state, "a1", True)
        merge.toggle_one_off(state, "a1", False)
        assert state.activities[0].done is False
        assert state.activities[0].items[0].done is True

    def test_unknown_activity(self, state):
        assert merge.toggle_one_off(state, "nope", True) is False
        assert merge.edit_one_off(state, "nope", title="x") is False
        assert merge.delete_one_off(state, "nope") is False
        assert merge.add_one_off_item(state, "nope", "x") is False
        assert merge.delete_one_off_item(state, "nope", 0) is False

    def test_add_one_off(self, state):
        act = merge.add_one_off(state, " Dentist ", "15:00", ["insurance card", " "])

        assert act.id == "a3"
        assert act.title == "Dentist"
        assert act.time == "15:00"
        assert act.items == [ChecklistItem("insurance card")]
        assert state.activities[-1] is act

    def test_add_one_off_blank_title(self, state):
        assert merge.add_one_off(state, "   ") is None
        assert len(state.activities) == 2

    def test_add_one_off_invalid_time(self, state):
        assert merge.add_one_off(state, "x", "7pm").time == ""

    def test_trailing_done_marker_dropped_from_title(self, state):
        act = merge.add_one_off(state, "Fix checkbox [x]")
        assert (act.title, act.done) == ("Fix checkbox", False)

        merge.edit_one_off(state, "a1", title="Lunch [x]")
        assert state.activities[0].title == "Lunch"

        reloaded, _ = parse_day(to_record(state, []))
        assert [(a.title, a.done) for a in reloaded] == [("Lunch", False), ("Read", False), ("Fix checkbox", False)]

    def test_title_with_pipe_survives_reload(self, state):
        merge.add_one_off(state, "Call Ann | Bob")
        reloaded, _ = parse_day(to_record(state, []))
        assert (reloaded[-1].time, reloaded[-1].title) == ("", "Call Ann | Bob")

    def test_edit_one_off(self, state):
        assert merge.edit_one_off(state, "a2", title="Read book", time="21:00") is True
        assert (state.activities[1].title, state.activities[1].time) == ("Read book", "21:00")

        merge.edit_one_off(state, "a2", time="")
        assert state.activities[1].time == ""
        assert state.activities[1].title == "Read book"

    def test_delete_one_off(self, state):
        assert merge.delete_one_off(state, "a1") is True
        assert [a.id for a in state.activities] == ["a2"]

    def test_items(self, state):
        assert merge.add_one_off_item(state, "a2", "chapter 3") is True
        assert merge.toggle_one_off_item(state, "a2", 0, True) is True
        assert state.activities[1].items == [ChecklistItem("chapter 3", True)]

        assert merge.delete_one_off_item(state, "a2", 1) is False
        assert merge.delete_one_off_item(state, "a2", 0) is True
        assert state.activities[1].items == []


class TestRecurringIntents:
    def test_toggle_instance_marks_all_items_done(self, state, gym):
        merge.toggle_recurring_item(state, "rec_gym", "tplItem_0", False)
        merge.add_ad_hoc_item(state, "rec_gym", "water")

        merge.toggle_recurring_instance(state, "rec_gym", True)

        instance = [a for a in merge.display_for(state, [gym]) if a.is_recurring][0]
        assert instance.done is True
        assert all(i.done for i in instance.items)

    def test_toggle_item(self, state, gym):
        assert merge.toggle_recurring_item(state, "rec_gym", "towel", True) is True
        assert state.day_overrides()["rec_gym"].item_state == {"towel": True}

    def test_toggle_item_ignored_while_done(self, state):
        merge.toggle_recurring_instance(state, "rec_gym", True)
        assert merge.toggle_recurring_item(state, "rec_gym", "towel", False) is False
        assert state.day_overrides()["rec_gym"].item_state == {}

    def test_ad_hoc_items(self, state, gym):
        assert merge.add_ad_hoc_item(state, "rec_gym", "water") is True
        assert merge.add_ad_hoc_item(state, "rec_gym", "band") is True
        assert merge.add_ad_hoc_item(state, "rec_gym", " ") is False
        assert merge.set_ad_hoc_item_done(state, "rec_gym", 1, True) is True

        assert merge.delete_ad_hoc_item(state, "rec_gym", 0) is True
        assert state.day_overrides()["rec_gym"].item_overrides == [ChecklistItem("band", True)]
        # The shared template is never touched.
        assert [i.text for i in gym.items] == ["shoes", "towel"]

    def test_set_ad_hoc_out_of_range(self, state):
        assert merge.set_ad_hoc_item_done(state, "rec_gym", 0, True) is False
        assert merge.delete_ad_hoc_item(state, "rec_gym", 0) is False


class TestToRecord:
    def test_round_trips_through_codec(self, state, gym):
        merge.toggle_one_off(state, "a2", True)
        merge.toggle_recurring_item(state, "rec_gym", "towel", True)
        merge.add_ad_hoc_item(state, "rec_gym", "water")

        activities, overrides = parse_day(to_record(state, [gym]))

        assert activities == state.activities
        assert overrides == state.day_overrides()

    def test_templates_not_duplicated(self, state, gym):
        text = to_record(state, [gym])
        assert "Gym" not in text
        assert "shoes" not in text

    def test_prunes_item_state_for_removed_template_items(self, state, gym):
        merge.toggle_recurring_item(state, "rec_gym", "gone", True)
        merge.toggle_recurring_item(state, "rec_gym", "towel", True)

        text = to_record(state, [gym])
        assert "rec_gym|towel|x" in text
        assert "gone" not in text

    def test_keeps_overrides_of_deleted_templates(self, state):
        merge.toggle_recurring_item(state, "rec_old", "k", True)
        assert "ItemState: rec_old|k|x" in to_record(state, [])
