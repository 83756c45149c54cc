import json
import logging
from dataclasses import replace

import pytest

from crewrate.repository import SessionStore
from crewrate.state import (
    apply_daily_hours,
    default_state,
    load_state,
    reset_state,
    save_state,
    state_key,
)


@pytest.fixture
def store():
    return SessionStore({})


def test_missing_state_gives_service_defaults(store):
    s = load_state(store, "property-management")
    assert s.rate_name == "Property Maintenance Rate"
    assert s.config.desired_margin == 25
    assert s.daily_billable_hours == 5.5
    assert len(s.config.crews) == 2


def test_saved_state_round_trips(store):
    s = default_state("septic-service")
    s = replace(s, rate_name="Pump-outs", config=replace(s.config, desired_margin=42))
    assert save_state(store, s)
    back = load_state(store, "septic-service")
    assert back.rate_name == "Pump-outs"
    assert back.config.desired_margin == 42
    assert back.config.crews[0].workers[0].title == "Lead Septic Tech"
    assert back.updated_at


@pytest.mark.parametrize("payload", [
    "{not json",
    json.dumps([1, 2, 3]),
    json.dumps({"serviceType": "septic-service"}),
    json.dumps({
        "serviceType": "septic-service", "rateName": "x", "dailyWorkHours": 8,
        "dailyBillableHours": 5, "config": {"totalCrews": 0},
    }),
    json.dumps({
        "serviceType": "septic-service", "rateName": "x", "dailyWorkHours": 8,
        "dailyBillableHours": 5, "config": [1, 2],
    }),
    json.dumps({
        "serviceType": "septic-service", "rateName": "x", "dailyWorkHours": 8,
        "dailyBillableHours": 5, "config": {
            "crews": ["Crew 1"], "totalCrews": 1, "monthlyBillableHours": 160,
            "wastagePercent": 0, "desiredMargin": 30,
        },
    }),
])
def test_malformed_state_falls_back_to_defaults(store, payload, caplog):
    store.set(state_key("septic-service"), payload)
    with caplog.at_level(logging.WARNING):
        s = load_state(store, "septic-service")
    assert s.rate_name == "Septic Service Rate"
    assert s.config.commission_enabled
    assert s.updated_at == ""
    assert caplog.records


def test_state_saved_for_another_service_is_ignored(store):
    save_state(store, default_state("septic-service"))
    store.set(state_key("commercial-plumbing"), store.get(state_key("septic-service")))
    assert load_state(store, "commercial-plumbing").rate_name == "Commercial Plumbing Rate"


def test_apply_daily_hours_derives_wastage_and_monthly_hours():
    s = replace(default_state("single-family-service"), daily_work_hours=8, daily_billable_hours=4)
    out = apply_daily_hours(s)
    assert out.config.wastage_percent == 50.0
    assert out.config.monthly_billable_hours_per_crew == 87
    # input untouched
    assert s.config.wastage_percent == 30


def test_reset_clears_saved_state(store):
    s = default_state("septic-service")
    save_state(store, replace(s, rate_name="Custom"))
    fresh = reset_state(store, "septic-service")
    assert fresh.rate_name == "Septic Service Rate"
    assert store.get(state_key("septic-service")) is None
