import json
import logging

import pytest

from crewrate.engine import compute_rate
from crewrate.model import Crew, RateConfig, RateResult, Worker
from crewrate.repository import (
    JsonFileStore,
    RateRepository,
    SessionStore,
    SavedRate,
    default_store,
    rate_key,
    slugify,
)

RECORD = dict(
    rate_name="Residential Service Rate",
    wastage_percent=37.5,
    desired_margin=30,
    commission_enabled=False,
    daily_work_hours=8,
    daily_billable_hours=5,
)


@pytest.fixture
def result():
    cfg = RateConfig(
        crews=[Crew("Crew 1", [Worker(20), Worker(22)])],
        wastage_percent=37.5,
        desired_margin=30,
    )
    return compute_rate(cfg)


@pytest.fixture(params=["session", "file"])
def store(request, tmp_path):
    if request.param == "session":
        return SessionStore({})
    return JsonFileStore(str(tmp_path / "store.json"))


class BrokenStore:
    def get(self, key):
        raise OSError("disk gone")

    def set(self, key, value):
        raise OSError("quota exceeded")

    def delete(self, key):
        raise OSError("disk gone")

    def keys(self):
        raise OSError("disk gone")


def test_keys_and_slugs():
    assert rate_key("septic-service") == "rate-state:septic-service"
    assert rate_key("septic-service", "Crew A #2") == "rate-state:septic-service:crew:crew-a-2"
    assert slugify("  Maintenance Crew B ") == "maintenance-crew-b"
    assert slugify("!!!") == "crew"


def test_save_and_load_service_rate(store, result):
    repo = RateRepository(store)
    assert repo.save("residential-plumbing", result, **RECORD)
    saved = repo.load("residential-plumbing")
    assert saved.recommended_rate == pytest.approx(96.0)
    assert saved.service_type == "residential-plumbing"
    assert saved.crew_name is None
    assert saved.last_updated


def test_record_uses_stored_field_names(result):
    store = SessionStore({})
    crew = Crew("Crew A", [Worker(20)], id="crew-1")
    RateRepository(store).save("septic-service", result, crew=crew, **RECORD)
    rec = json.loads(store.get("rate-state:septic-service:crew:crew-a"))
    assert set(rec) == {
        "rateName", "recommendedRate", "serviceType", "wastagePercent", "desiredMargin",
        "commissionEnabled", "dailyWorkHours", "dailyBillableHours", "lastUpdated",
        "crewId", "crewName",
    }
    assert rec["crewId"] == "crew-1"
    assert rec["crewName"] == "Crew A"


def test_last_write_wins(store, result):
    repo = RateRepository(store)
    repo.save("septic-service", result, **RECORD)
    cheaper = RateResult(recommended_rate=50.0)
    repo.save("septic-service", cheaper, **RECORD)
    assert repo.load("septic-service").recommended_rate == 50.0


def test_invalid_result_is_not_saved(store):
    repo = RateRepository(store)
    assert not repo.save("septic-service", RateResult.invalid("nope"), **RECORD)
    assert not repo.save("septic-service", RateResult(recommended_rate=float("inf")), **RECORD)
    assert repo.load("septic-service") is None


def test_rate_for_falls_back_crew_then_service_then_default(store, result):
    repo = RateRepository(store)
    assert repo.rate_for("septic-service", "Crew A", default=75) == 75
    repo.save("septic-service", RateResult(recommended_rate=80.0), **RECORD)
    assert repo.rate_for("septic-service", "Crew A", default=75) == 80.0
    repo.save("septic-service", result, crew=Crew("Crew A", [Worker(1)]), **RECORD)
    assert repo.rate_for("septic-service", "Crew A", default=75) == pytest.approx(96.0)


def test_list_rates_skips_other_keys_and_bad_records(store, result, caplog):
    repo = RateRepository(store)
    repo.save("septic-service", result, **RECORD)
    repo.save("septic-service", result, crew=Crew("Crew A", [Worker(1)]), **RECORD)
    store.set("calculator-state:septic-service", "{}")
    store.set("rate-state:broken", "{not json")
    with caplog.at_level(logging.WARNING):
        rates = repo.list_rates()
    assert sorted(r.crew_name or "" for r in rates) == ["", "Crew A"]
    assert "rate-state:broken" in caplog.text


def test_malformed_record_loads_as_missing(store):
    store.set("rate-state:septic-service", json.dumps({"rateName": "x"}))
    assert RateRepository(store).load("septic-service") is None


def test_store_failures_are_logged_not_raised(result, caplog):
    repo = RateRepository(BrokenStore())
    with caplog.at_level(logging.WARNING):
        assert repo.save("septic-service", result, **RECORD) is False
        assert repo.load("septic-service") is None
        assert repo.list_rates() == []
        assert repo.rate_for("septic-service", default=60) == 60
    assert "could not save rate-state:septic-service" in caplog.text


def test_corrupt_file_store_is_treated_as_empty(tmp_path, caplog):
    path = tmp_path / "store.json"
    path.write_text("[1, 2", encoding="utf-8")
    repo = RateRepository(JsonFileStore(str(path)))
    with caplog.at_level(logging.WARNING):
        assert repo.load("septic-service") is None


def test_file_store_survives_reopen(tmp_path, result):
    path = str(tmp_path / "nested" / "store.json")
    RateRepository(JsonFileStore(path)).save("septic-service", result, **RECORD)
    again = RateRepository(JsonFileStore(path)).load("septic-service")
    assert isinstance(again, SavedRate)
    assert again.recommended_rate == pytest.approx(96.0)


def test_session_store_namespaces_values():
    mapping = {}
    store = SessionStore(mapping, namespace="kv")
    store.set("a", "1")
    assert mapping == {"kv": {"a": "1"}}
    store.delete("a")
    store.delete("missing")
    assert list(store.keys()) == []


def test_default_store_follows_env(monkeypatch, tmp_path):
    monkeypatch.setenv("CREWRATE_STORE_PATH", str(tmp_path / "s.json"))
    assert isinstance(default_store({}), JsonFileStore)
    monkeypatch.setenv("CREWRATE_STORE_PATH", "")
    assert isinstance(default_store({}), SessionStore)


def test_non_string_file_value_loads_as_missing(tmp_path, caplog):
    path = tmp_path / "store.json"
    path.write_text(json.dumps({"rate-state:septic-service": {"recommendedRate": 90}}), encoding="utf-8")
    repo = RateRepository(JsonFileStore(str(path)))
    with caplog.at_level(logging.WARNING):
        assert repo.load("septic-service") is None
        assert repo.list_rates() == []
        assert repo.rate_for("septic-service", default=60) == 60
    assert "ignoring malformed JSON" in caplog.text


def test_save_replaces_corrupt_file_store(tmp_path, result, caplog):
    path = tmp_path / "store.json"
    path.write_text("{oops", encoding="utf-8")
    repo = RateRepository(JsonFileStore(str(path)))
    with caplog.at_level(logging.WARNING):
        assert repo.save("septic-service", result, **RECORD) is True
    assert "discarding unreadable store" in caplog.text
    again = RateRepository(JsonFileStore(str(path))).load("septic-service")
    assert again.recommended_rate == pytest.approx(96.0)
    assert list(json.loads(path.read_text(encoding="utf-8"))) == ["rate-state:septic-service"]
