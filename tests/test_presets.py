import pytest

from crewrate import presets
from crewrate.engine import compute_rate
from crewrate.model import PAY_HOURLY


def test_every_preset_computes_a_valid_rate():
    for service_type in presets.PRESETS:
        result = compute_rate(presets.build_config(service_type))
        assert result.valid, service_type
        assert result.recommended_rate > 0


def test_residential_defaults():
    cfg = presets.build_config("residential-plumbing")
    assert [c.hourly_rate for c in cfg.crews] == [40, 40, 60]
    assert cfg.total_crews == 3
    assert cfg.monthly_billable_hours_per_crew == 87
    assert cfg.monthly_overhead_cost == 25000
    assert cfg.office_staff[0].pay_type == PAY_HOURLY
    assert not cfg.commission_enabled


def test_commercial_crew_commission():
    cfg = presets.build_config("commercial-plumbing")
    assert cfg.commission_enabled
    assert cfg.crews[0].commission == 35
    assert cfg.monthly_billable_hours_per_crew == 192


def test_unknown_service_falls_back_to_generic():
    cfg = presets.build_config("pool-cleaning")
    assert len(cfg.crews) == 1
    assert [w.rate for w in cfg.crews[0].workers] == [25, 25]
    assert [w.commission for w in cfg.crews[0].workers] == [10, 10]
    assert [o.monthly_cost for o in cfg.overhead_costs] == [1500, 500, 300]
    assert cfg.monthly_billable_hours_per_crew == 160


def test_build_config_returns_fresh_objects():
    a = presets.build_config("septic-service")
    b = presets.build_config("septic-service")
    assert a.crews[0].id != b.crews[0].id
    assert a.crews[0].workers == b.crews[0].workers


def test_even_commission_split():
    assert presets.even_commission_split(30, 3) == [10, 10, 10]
    assert sum(presets.even_commission_split(30, 7)) == pytest.approx(30)
    assert presets.even_commission_split(30, 0) == [30]


def test_service_options_lists_custom_last():
    opts = presets.service_options()
    assert list(opts)[-1] == "custom"
    assert opts["septic-service"] == "Septic Service"
