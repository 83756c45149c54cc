import pytest

from crewrate.display import INVALID_RATE_TEXT, e, money, percent, rate_label
from crewrate.model import Crew, OfficeStaffMember, RateConfig, RateResult, Worker
from crewrate.presets import build_config


def test_config_survives_json_shape():
    cfg = build_config("property-management")
    back = RateConfig.from_dict(cfg.to_dict())
    assert back == cfg


@pytest.mark.parametrize("bad", [
    {"hourlyRate": -1},
    {"hourlyRate": 10, "commission": 120},
    {"hourlyRate": "nan"},
    {"hourlyRate": True},
    {},
])
def test_worker_rejects_bad_values(bad):
    with pytest.raises((KeyError, TypeError, ValueError)):
        Worker.from_dict(bad)


def test_config_rejects_non_list_collections():
    data = build_config("septic-service").to_dict()
    data["crews"] = "oops"
    with pytest.raises(TypeError):
        RateConfig.from_dict(data)


def test_crew_sums_and_staff_pay_type():
    crew = Crew("A", [Worker(20, 5), Worker(15, 10)])
    assert crew.hourly_rate == 35
    assert crew.commission == 15
    staff = OfficeStaffMember.from_dict({"title": "Admin", "isHourly": True, "hourlyRate": 18})
    assert not staff.is_salary


def test_invalid_result_sentinel_drops_non_finite_figures():
    r = RateResult.invalid("bad", overhead_cost_per_hour=float("inf"), office_staff_cost_per_hour=3.0)
    assert not r.valid
    assert r.recommended_rate == 0
    assert r.overhead_cost_per_hour == 0
    assert r.office_staff_cost_per_hour == 3.0
    assert r.margin_percent == 0


def test_rate_label_never_shows_nan():
    assert rate_label(RateResult(recommended_rate=96)) == "$96.00/hr"
    assert rate_label(RateResult.invalid("bad")) == INVALID_RATE_TEXT
    assert rate_label(RateResult(recommended_rate=float("nan"))) == INVALID_RATE_TEXT


def test_formatting_helpers():
    assert money(1234.5) == "$1,234.50"
    assert money(float("inf")) == "—"
    assert money(None) == "—"
    assert percent(31.25) == "31.2%"
    assert e("<b>Crew & Co</b>") == "&lt;b&gt;Crew &amp; Co&lt;/b&gt;"
    assert e(None) == ""


@pytest.mark.parametrize("cls, bad", [
    (RateConfig, [1, 2]),
    (Crew, "Crew 1"),
    (Worker, 20),
    (OfficeStaffMember, None),
])
def test_from_dict_rejects_non_objects(cls, bad):
    with pytest.raises(TypeError):
        cls.from_dict(bad)
