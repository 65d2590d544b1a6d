"""
Tests for the plan document model and its JSON document shape.
"""

import logging

from conftest import make_event
from lifeplanlab.core.model import (
    Envelope,
    Plan,
    find_event,
    iter_all_events,
    iter_all_ids,
    next_event_id,
)


class TestDocumentShape:
    """Plans serialize to and from the JSON document verbatim."""

    def test_round_trip(self, job_plan):
        assert Plan.from_dict(job_plan.to_dict()) == job_plan

    def test_parameter_ids_are_positions(self, job_plan):
        data = job_plan.to_dict()
        ids = [p["id"] for p in data["events"][0]["parameters"]]
        assert ids == list(range(len(ids)))

    def test_parameter_ids_ignored_on_load(self):
        data = {
            "events": [
                {
                    "id": 7,
                    "type": "buy_car",
                    "parameters": [
                        {"id": 99, "type": "price", "value": 1},
                        {"id": 99, "type": "start_time", "value": "2020-01-01"},
                    ],
                }
            ]
        }
        plan = Plan.from_dict(data)
        assert plan.events[0].parameter_map() == {"price": 1, "start_time": "2020-01-01"}

    def test_unknown_keys_preserved(self):
        data = {"title": "X", "location": "Berlin", "simulation_results": [1, 2]}
        plan = Plan.from_dict(data)
        assert plan.extra == {"location": "Berlin", "simulation_results": [1, 2]}
        assert plan.to_dict()["location"] == "Berlin"

    def test_defaults_for_missing_fields(self):
        plan = Plan.from_dict({})
        assert plan.title == "My Plan"
        assert plan.inflation_rate == 0.03
        assert plan.events == []
        assert "view_start_date" not in plan.to_dict()

    def test_view_window_serialized_when_set(self):
        plan = Plan(view_start_date="2020-01-01", view_end_date="2030-01-01")
        data = plan.to_dict()
        assert data["view_start_date"] == "2020-01-01"
        assert data["view_end_date"] == "2030-01-01"

    def test_duplicate_parameter_keeps_last(self, caplog):
        data = {
            "id": 1,
            "type": "buy_car",
            "parameters": [
                {"type": "price", "value": 1},
                {"type": "price", "value": 2},
            ],
        }
        with caplog.at_level(logging.WARNING, logger="lifeplanlab.core.model"):
            plan = Plan.from_dict({"events": [data]})
        assert [p.value for p in plan.events[0].parameters] == [2]
        assert "twice" in caplog.text

    def test_envelope_optional_days(self):
        env = Envelope(name="Car", category="Assets", days_of_usefulness=3650)
        assert Envelope.from_dict(env.to_dict()) == env
        assert "days_of_usefulness" not in Envelope(name="Cash").to_dict()


class TestLookups:
    def test_find_main_event(self, job_plan):
        node, parent = find_event(job_plan, 1)
        assert node.type == "job"
        assert parent is None

    def test_find_updating_event(self, job_plan):
        node, parent = find_event(job_plan, 2)
        assert node.type == "get_a_raise"
        assert parent.id == 1

    def test_find_missing(self, job_plan):
        assert find_event(job_plan, 42) == (None, None)

    def test_iteration_order(self, job_plan):
        assert [n.id for n, _ in iter_all_events(job_plan)] == [1, 2, 3]
        assert sorted(iter_all_ids(job_plan)) == [1, 2, 3]

    def test_next_event_id(self, job_plan):
        assert next_event_id(Plan()) == 1
        assert next_event_id(job_plan) == 4
        job_plan.events.append(make_event(10, "buy_car"))
        assert next_event_id(job_plan) == 11

    def test_get_value_default(self, job_plan):
        event = job_plan.events[0]
        assert event.get_value("salary") == 85000
        assert event.get_value("missing", "fallback") == "fallback"
        assert event.get_parameter("missing") is None
