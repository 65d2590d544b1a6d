from __future__ import annotations

from pathlib import Path

import pytest
from lifeplanlab.core.model import Event, Parameter, Plan, UpdatingEvent
from lifeplanlab.core.schema import load_schema

SCHEMA_PATH = Path(__file__).resolve().parent / "data" / "schema.yaml"

BIRTH_DATE = "1990-01-01"
# Day 12000 after BIRTH_DATE
TODAY = "2022-11-09"


@pytest.fixture(scope="session")
def schema():
    return load_schema(SCHEMA_PATH)


@pytest.fixture
def empty_plan() -> Plan:
    return Plan(title="Test Plan", birth_date=BIRTH_DATE)


def make_event(event_id: int, event_type: str, updating=None, is_recurring=False, **params) -> Event:
    return Event(
        id=event_id,
        type=event_type,
        title=event_type,
        is_recurring=is_recurring,
        parameters=[Parameter(type=k, value=v) for k, v in params.items()],
        updating_events=list(updating or []),
    )


def make_updating(event_id: int, event_type: str, is_recurring=False, **params) -> UpdatingEvent:
    return UpdatingEvent(
        id=event_id,
        type=event_type,
        title=event_type,
        is_recurring=is_recurring,
        parameters=[Parameter(type=k, value=v) for k, v in params.items()],
    )


@pytest.fixture
def rent_plan() -> Plan:
    """Recurring rent from day 0 to day 100 every 25 days, birth 2000-01-01."""
    return Plan(
        title="Rent",
        birth_date="2000-01-01",
        events=[
            make_event(
                1,
                "rent",
                is_recurring=True,
                start_time="2000-01-01",
                end_time="2000-04-10",
                frequency_days=25,
                amount=1500,
            )
        ],
    )


@pytest.fixture
def job_plan() -> Plan:
    """Job with one raise; birth 1990-01-01."""
    return Plan(
        title="Career",
        birth_date=BIRTH_DATE,
        envelopes=[],
        events=[
            make_event(
                1,
                "job",
                is_recurring=True,
                updating=[make_updating(2, "get_a_raise", start_time="2017-06-01", salary=95000)],
                start_time="2015-06-01",
                end_time="2020-06-01",
                salary=85000,
                frequency_days=365,
                to_key="Checking",
            ),
            make_event(3, "buy_car", start_time="2018-03-15", price=22000, from_key="Checking"),
        ],
    )
