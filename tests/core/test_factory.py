"""
Tests for the event factory and the pure plan mutations.
"""

import logging
import math

import pytest
from conftest import TODAY
from hypothesis import given, settings
from hypothesis import strategies as st
from lifeplanlab.core.clone import clone_plan
from lifeplanlab.core.errors import (
    EventNotFound,
    InvalidDateString,
    InvalidParameterValue,
    UnknownEventType,
)
from lifeplanlab.core.factory import (
    add_event,
    add_updating_event,
    check_parameter_value,
    delete_event,
    set_event_function,
    update_description,
    update_is_recurring,
    update_parameter,
    update_plan_settings,
    update_title,
)
from lifeplanlab.core.model import Plan, find_event, iter_all_ids
from lifeplanlab.core.recurrence import expand, flatten


class TestAddEvent:
    """Main events are materialized from their schema definition."""

    def test_buy_car_scenario(self, schema, empty_plan):
        """Relative date defaults resolve against today; other defaults are copied."""
        plan, new_id = add_event(empty_plan, schema, "buy_car", TODAY)

        event = plan.events[-1]
        assert new_id == event.id == 1
        assert event.get_value("start_time") == "2022-11-09"
        assert event.get_value("price") == 30000
        assert event.title == "Buy Car"
        assert event.is_recurring is False
        assert event.updating_events == []

    def test_input_plan_untouched(self, schema, empty_plan):
        snapshot = clone_plan(empty_plan)
        add_event(empty_plan, schema, "buy_car", TODAY)
        assert empty_plan == snapshot

    def test_overrides(self, schema, empty_plan):
        plan, _ = add_event(
            empty_plan, schema, "buy_car", TODAY, {"price": 25000, "start_time": 30}
        )
        event = plan.events[0]
        assert event.get_value("price") == 25000
        assert event.get_value("start_time") == "2022-12-09"

    def test_absolute_date_override_kept(self, schema, empty_plan):
        plan, _ = add_event(empty_plan, schema, "buy_car", TODAY, {"start_time": "2030-01-01"})
        assert plan.events[0].get_value("start_time") == "2030-01-01"

    def test_undeclared_override_ignored(self, schema, empty_plan, caplog):
        with caplog.at_level(logging.WARNING, logger="lifeplanlab.core.factory"):
            plan, _ = add_event(empty_plan, schema, "buy_car", TODAY, {"color": "red"})
        assert plan.events[0].get_parameter("color") is None
        assert "color" in caplog.text

    def test_positional_override_deprecated(self, schema, empty_plan):
        with pytest.warns(DeprecationWarning):
            plan, _ = add_event(empty_plan, schema, "buy_car", TODAY, {1: 12345})
        assert plan.events[0].get_value("price") == 12345

    def test_recurring_type_defaults(self, schema, empty_plan):
        plan, _ = add_event(empty_plan, schema, "job", TODAY)
        job = plan.events[0]
        assert job.is_recurring is True
        assert job.get_value("end_time") == "2032-11-06"
        assert [(f.title, f.enabled) for f in job.event_functions] == [
            ("Taxes", True),
            ("Retirement Match", False),
        ]

    def test_default_envelopes_provisioned_once(self, schema, empty_plan):
        plan, _ = add_event(empty_plan, schema, "buy_car", TODAY)
        plan, _ = add_event(plan, schema, "job", TODAY)
        assert plan.envelope_names() == ["Checking"]

    def test_unknown_type(self, schema, empty_plan):
        with pytest.raises(UnknownEventType) as exc:
            add_event(empty_plan, schema, "yacht", TODAY)
        assert "yacht" in str(exc.value)
        assert empty_plan.events == []

    def test_replace_existing(self, schema, empty_plan):
        plan, _ = add_event(empty_plan, schema, "buy_car", TODAY)
        plan, _ = add_event(plan, schema, "job", TODAY)
        plan, _ = add_event(plan, schema, "buy_car", TODAY)
        plan, new_id = add_event(plan, schema, "buy_car", TODAY, replace_existing=True)
        assert [e.type for e in plan.events] == ["job", "buy_car"]
        assert plan.events[-1].id == new_id


class TestAddUpdatingEvent:
    """Updating events resolve relative dates against their parent."""

    def test_relative_to_parent_start(self, schema, empty_plan):
        plan, job_id = add_event(empty_plan, schema, "job", TODAY, {"start_time": 180})
        plan, raise_id = add_updating_event(plan, schema, job_id, "get_a_raise", TODAY)

        node, parent = find_event(plan, raise_id)
        assert parent.id == job_id
        assert raise_id == 2
        # Parent starts on day 12180, the raise defaults to 365 days later
        assert node.get_value("start_time") == "2024-05-07"
        assert node.get_value("salary") == 70000

    def test_falls_back_to_today(self, schema, empty_plan):
        plan, job_id = add_event(empty_plan, schema, "job", TODAY, {"start_time": "garbage"})
        plan, raise_id = add_updating_event(plan, schema, job_id, "get_a_raise", TODAY)
        node, _ = find_event(plan, raise_id)
        assert node.get_value("start_time") == "2023-11-09"

    def test_missing_parent(self, schema, empty_plan):
        with pytest.raises(EventNotFound):
            add_updating_event(empty_plan, schema, 99, "get_a_raise", TODAY)

    def test_parent_must_be_main_event(self, schema, job_plan):
        with pytest.raises(EventNotFound):
            add_updating_event(job_plan, schema, 2, "get_a_raise", TODAY)

    def test_declared_under_parent_is_quiet(self, schema, job_plan, caplog):
        with caplog.at_level(logging.WARNING, logger="lifeplanlab.core.factory"):
            add_updating_event(job_plan, schema, 1, "bonus", TODAY)
        assert "not declared" not in caplog.text

    def test_undeclared_under_parent_warns(self, schema, job_plan, caplog):
        with caplog.at_level(logging.WARNING, logger="lifeplanlab.core.factory"):
            plan, new_id = add_updating_event(job_plan, schema, 3, "bonus", TODAY)
        assert "not declared" in caplog.text
        assert find_event(plan, new_id)[1].id == 3


class TestIdUniqueness:
    @settings(max_examples=40, deadline=None)
    @given(
        ops=st.lists(
            st.tuples(
                st.sampled_from(["job", "buy_car", "rent", "get_a_raise", "bonus", "delete"]),
                st.integers(min_value=0, max_value=50),
            ),
            max_size=20,
        )
    )
    def test_ids_pairwise_distinct(self, schema, ops):
        """Any sequence of adds and deletes keeps every id in the plan unique."""
        plan = Plan(birth_date="1990-01-01")
        for op, n in ops:
            if op in ("job", "buy_car", "rent"):
                plan, _ = add_event(plan, schema, op, TODAY)
            elif op == "delete":
                ids = list(iter_all_ids(plan))
                if ids:
                    plan = delete_event(plan, ids[n % len(ids)])
            elif plan.events:
                parent = plan.events[n % len(plan.events)]
                plan, _ = add_updating_event(plan, schema, parent.id, op, TODAY)
        ids = list(iter_all_ids(plan))
        assert len(ids) == len(set(ids))


class TestDeleteEvent:
    def test_cascade(self, schema, job_plan):
        plan = delete_event(job_plan, 1)
        assert find_event(plan, 2) == (None, None)
        assert {o.event.id for o in flatten(expand(plan, schema))} == {3}

    def test_delete_updating_only(self, job_plan):
        plan = delete_event(job_plan, 2)
        assert [e.id for e in plan.events] == [1, 3]
        assert plan.events[0].updating_events == []
        assert job_plan.events[0].updating_events[0].id == 2

    def test_missing_id_returns_same_plan(self, job_plan):
        assert delete_event(job_plan, 404) is job_plan


class TestUpdates:
    def test_update_parameter_replaces(self, job_plan):
        plan = update_parameter(job_plan, 1, "salary", 99000)
        assert plan.events[0].get_value("salary") == 99000
        assert job_plan.events[0].get_value("salary") == 85000
        assert len(plan.events[0].parameters) == len(job_plan.events[0].parameters)

    def test_update_parameter_appends(self, job_plan):
        plan = update_parameter(job_plan, 2, "note", "promotion")
        assert plan.events[0].updating_events[0].get_value("note") == "promotion"

    @pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf, None, [1], {"a": 1}])
    def test_update_parameter_rejects(self, job_plan, bad):
        with pytest.raises(InvalidParameterValue):
            update_parameter(job_plan, 1, "salary", bad)

    def test_update_parameter_missing_event(self, job_plan):
        with pytest.raises(EventNotFound):
            update_parameter(job_plan, 404, "salary", 1)

    def test_check_parameter_value(self):
        assert check_parameter_value(True) == 1
        assert check_parameter_value("x") == "x"
        assert check_parameter_value(2.5) == 2.5

    def test_title_description_recurring(self, job_plan):
        plan = update_title(job_plan, 3, "Hatchback")
        plan = update_description(plan, 3, "Used")
        plan = update_is_recurring(plan, 3, True)
        car = find_event(plan, 3)[0]
        assert (car.title, car.description, car.is_recurring) == ("Hatchback", "Used", True)

    def test_event_function_toggle(self, job_plan):
        plan = set_event_function(job_plan, 1, "Taxes", False)
        plan = set_event_function(plan, 1, "Taxes", True)
        plan = set_event_function(plan, 1, "Match", False)
        assert [(f.title, f.enabled) for f in plan.events[0].event_functions] == [
            ("Taxes", True),
            ("Match", False),
        ]


class TestPlanSettings:
    def test_update_settings(self, job_plan):
        plan = update_plan_settings(
            job_plan, inflation_rate=0.02, retirement_goal=1_000_000, adjust_for_inflation=True
        )
        assert plan.inflation_rate == 0.02
        assert plan.retirement_goal == 1_000_000.0
        assert plan.adjust_for_inflation is True
        assert job_plan.inflation_rate == 0.03

    def test_birth_date_normalized(self, job_plan):
        plan = update_plan_settings(job_plan, birth_date="1991-02-03T00:00:00")
        assert plan.birth_date == "1991-02-03"
        with pytest.raises(InvalidDateString):
            update_plan_settings(job_plan, birth_date="yesterday")

    def test_unknown_setting(self, job_plan):
        with pytest.raises(TypeError):
            update_plan_settings(job_plan, currency="EUR")

    @pytest.mark.parametrize("bad", [math.nan, "three percent"])
    def test_invalid_numeric_setting(self, job_plan, bad):
        with pytest.raises(InvalidParameterValue):
            update_plan_settings(job_plan, inflation_rate=bad)
