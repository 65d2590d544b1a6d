"""
Tests for plan validation against the event schema.
"""

import pytest
from conftest import make_event, make_updating
from lifeplanlab.core.exceptions import PlanValidationError
from lifeplanlab.core.model import Envelope
from lifeplanlab.core.validation import PlanValidationReport, assert_valid, validate_plan


@pytest.fixture
def valid_plan(job_plan):
    job_plan.envelopes.append(Envelope(name="Checking", category="Cash"))
    return job_plan


class TestValidatePlan:
    def test_valid_plan(self, schema, valid_plan):
        report = validate_plan(valid_plan, schema)
        assert report.is_valid()
        assert not report.has_warnings()
        assert report.get_exit_code() == 0
        assert str(report).startswith("✅ Validation passed")

    def test_missing_envelope_is_warning(self, schema, job_plan):
        report = validate_plan(job_plan, schema)
        assert report.is_valid()
        assert report.missing_envelopes == {1: ["Checking"], 3: ["Checking"]}
        assert report.get_exit_code() == 2

    def test_unknown_types(self, schema, valid_plan):
        valid_plan.events.append(make_event(10, "yacht", start_time="2020-01-01"))
        valid_plan.events[1].updating_events.append(make_updating(11, "get_a_raise"))
        report = validate_plan(valid_plan, schema)
        assert report.unknown_types == {10: "yacht"}
        assert report.unknown_updating_types == {11: "get_a_raise"}
        assert report.get_exit_code() == 1

    def test_updating_type_is_not_a_main_type(self, schema, valid_plan):
        valid_plan.events.append(make_event(10, "get_a_raise"))
        assert validate_plan(valid_plan, schema).unknown_types == {10: "get_a_raise"}

    def test_parameter_set(self, schema, valid_plan):
        car = valid_plan.events[1]
        car.parameters = [p for p in car.parameters if p.type != "price"]
        valid_plan.events[0].updating_events[0].parameters.append(
            make_updating(0, "x", note="hi").parameters[0]
        )
        report = validate_plan(valid_plan, schema)
        assert report.missing_parameters == {3: ["price"]}
        assert report.unexpected_parameters == {2: ["note"]}
        assert report.has_errors()
        assert report.has_warnings()

    def test_duplicate_ids(self, schema, valid_plan):
        valid_plan.events[1].id = 2
        report = validate_plan(valid_plan, schema)
        assert report.duplicate_ids == [2]
        assert report.problem_ids() == [2]

    def test_raw_document_duplicate_parameters(self, schema, valid_plan):
        document = valid_plan.to_dict()
        document["events"][1]["parameters"].append({"id": 9, "type": "price", "value": 1})
        report = validate_plan(document, schema)
        assert report.duplicate_parameter_types == {3: ["price"]}
        assert report.get_exit_code() == 1

    def test_to_dict(self, schema, job_plan):
        data = validate_plan(job_plan, schema).to_dict()
        assert data["missing_envelopes"] == {"1": ["Checking"], "3": ["Checking"]}
        assert data["exit_code"] == 2
        assert data["is_valid"] is True

    def test_str_lists_findings(self, schema, valid_plan):
        valid_plan.events.append(make_event(10, "yacht"))
        text = str(validate_plan(valid_plan, schema))
        assert text.startswith("❌ Validation failed")
        assert "Unknown event type: yacht (event 10)" in text


class TestAssertValid:
    def test_returns_report(self, schema, job_plan):
        report = assert_valid(job_plan, schema)
        assert isinstance(report, PlanValidationReport)
        assert report.has_warnings()

    def test_raises_with_problem_ids(self, schema, valid_plan):
        valid_plan.events.append(make_event(10, "yacht"))
        with pytest.raises(PlanValidationError) as exc:
            assert_valid(valid_plan, schema)
        assert exc.value.problem_ids == [10]
        assert "[Plan Career]" in str(exc.value)
        assert "problem_ids: [10]" in str(exc.value)
        assert exc.value.report.unknown_types == {10: "yacht"}
