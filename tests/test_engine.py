import math
from dataclasses import replace

import pytest

from crewrate.engine import (
    compute_rate,
    monthly_billable_hours_from_daily,
    monthly_office_staff_cost,
    wastage_from_daily_hours,
)
from crewrate.model import (
    PAY_HOURLY,
    PAY_SALARY,
    Crew,
    OfficeStaffMember,
    OverheadLineItem,
    RateConfig,
    Worker,
)


def hourly_config(**overrides):
    base = RateConfig(
        crews=[Crew("Crew 1", [Worker(20), Worker(22)])],
        total_crews=1,
        monthly_billable_hours_per_crew=160,
        wastage_percent=37.5,
        desired_margin=30,
    )
    return replace(base, **overrides)


def commission_config(**overrides):
    base = RateConfig(
        crews=[Crew("Crew 1", [Worker(30, commission=12), Worker(20, commission=8)])],
        total_crews=1,
        overhead_costs=[OverheadLineItem("Overhead", 2300.8)],
        monthly_billable_hours_per_crew=160,
        wastage_percent=0,
        desired_margin=30,
        commission_enabled=True,
    )
    return replace(base, **overrides)


def test_hourly_model_example():
    r = compute_rate(hourly_config())
    assert r.valid
    assert r.avg_crew_hourly_rate == pytest.approx(42)
    assert r.total_hours_per_billable_hour == pytest.approx(1.6)
    assert r.total_labor_cost == pytest.approx(67.2)
    assert r.wastage_cost == pytest.approx(25.2)
    assert r.recommended_rate == pytest.approx(96.0)
    assert r.profit_per_hour == pytest.approx(96.0 - 67.2)


def test_commission_model_example():
    r = compute_rate(commission_config())
    assert r.valid
    assert r.total_commission_percent == pytest.approx(20)
    assert r.overhead_cost_per_hour == pytest.approx(14.38)
    assert r.recommended_rate == pytest.approx(28.76)
    assert r.commission_cost_per_hour == pytest.approx(28.76 * 0.2)
    assert r.total_cost_per_hour == pytest.approx(28.76 * 0.2 + 14.38)
    assert r.base_labor_cost == r.wastage_cost == r.total_labor_cost == 0


def test_invalid_commission_plus_margin_returns_sentinel():
    cfg = commission_config(
        crews=[Crew("Crew 1", [Worker(30, commission=60)])],
        desired_margin=45,
    )
    r = compute_rate(cfg)
    assert not r.valid
    assert r.recommended_rate == 0
    assert "100%" in r.reason
    assert all(math.isfinite(v) for v in (r.total_cost_per_hour, r.profit_per_hour, r.overhead_cost_per_hour))


@pytest.mark.parametrize("margin", [100, 120, -5])
def test_margin_out_of_range_is_invalid(margin):
    r = compute_rate(hourly_config(desired_margin=margin))
    assert not r.valid
    assert r.recommended_rate == 0


def test_wastage_of_100_is_invalid():
    r = compute_rate(hourly_config(wastage_percent=100))
    assert not r.valid
    assert r.recommended_rate == 0


def test_empty_overhead_and_staff_is_labor_only():
    r = compute_rate(hourly_config(overhead_costs=[], office_staff=[]))
    assert r.overhead_cost_per_hour == 0
    assert r.office_staff_cost_per_hour == 0
    assert r.total_cost_per_hour == pytest.approx(r.total_labor_cost)


def test_empty_everything_is_zero_not_error():
    r = compute_rate(RateConfig(crews=[], total_crews=1, monthly_billable_hours_per_crew=0))
    assert r.valid
    assert r.recommended_rate == 0
    assert r.avg_crew_hourly_rate == 0


def test_zero_billable_hours_means_no_overhead_allocation():
    cfg = hourly_config(
        monthly_billable_hours_per_crew=0,
        overhead_costs=[OverheadLineItem("Rent", 5000)],
        office_staff=[OfficeStaffMember("Mgr", PAY_SALARY, monthly_salary=4000)],
    )
    r = compute_rate(cfg)
    assert r.valid
    assert r.overhead_cost_per_hour == 0
    assert r.office_staff_cost_per_hour == 0


def test_doubling_crews_halves_per_hour_overhead():
    cfg = hourly_config(
        overhead_costs=[OverheadLineItem("Rent", 3200)],
        office_staff=[OfficeStaffMember("Mgr", PAY_SALARY, monthly_salary=4800)],
    )
    one = compute_rate(cfg)
    two = compute_rate(replace(cfg, total_crews=2))
    assert two.overhead_cost_per_hour == pytest.approx(one.overhead_cost_per_hour / 2)
    assert two.office_staff_cost_per_hour == pytest.approx(one.office_staff_cost_per_hour / 2)
    saved = (one.overhead_cost_per_hour + one.office_staff_cost_per_hour) / 2 / 0.7
    assert one.recommended_rate - two.recommended_rate == pytest.approx(saved)


def test_office_staff_hourly_uses_full_time_month():
    cfg = RateConfig(office_staff=[
        OfficeStaffMember("Admin", PAY_HOURLY, hourly_rate=20),
        OfficeStaffMember("Mgr", PAY_SALARY, hourly_rate=99, monthly_salary=4500),
    ])
    assert monthly_office_staff_cost(cfg) == pytest.approx(20 * 40 * 4.33 + 4500)


def test_average_crew_rate_is_blended_across_crews():
    cfg = hourly_config(
        crews=[Crew("A", [Worker(20), Worker(20)]), Crew("B", [Worker(30)])],
        wastage_percent=0,
        desired_margin=0,
    )
    r = compute_rate(cfg)
    assert r.avg_crew_hourly_rate == pytest.approx(35)
    assert r.recommended_rate == pytest.approx(35)


def test_margin_never_below_breakeven():
    for margin in (0, 10, 35, 60, 99):
        r = compute_rate(hourly_config(desired_margin=margin))
        assert r.recommended_rate >= r.total_cost_per_hour


def test_wastage_never_reduces_labor_cost():
    assert compute_rate(hourly_config(wastage_percent=0)).total_labor_cost == pytest.approx(42)
    assert compute_rate(hourly_config(wastage_percent=0)).wastage_cost == 0
    for w in (5, 20, 50, 90):
        r = compute_rate(hourly_config(wastage_percent=w))
        assert r.total_labor_cost > r.base_labor_cost


def test_rate_rises_with_margin_and_overhead():
    margins = [compute_rate(hourly_config(desired_margin=m)).recommended_rate for m in (0, 20, 40, 60, 80)]
    assert margins == sorted(margins) and len(set(margins)) == len(margins)

    overheads = [
        compute_rate(hourly_config(overhead_costs=[OverheadLineItem("x", o)])).recommended_rate
        for o in (0, 1000, 5000)
    ]
    assert overheads == sorted(overheads) and len(set(overheads)) == 3


def test_same_input_same_output_and_no_mutation():
    cfg = commission_config()
    before = cfg.to_dict()
    assert compute_rate(cfg) == compute_rate(cfg)
    assert cfg.to_dict() == before


def test_commission_mode_with_zero_commission_drops_labor():
    cfg = hourly_config(
        overhead_costs=[OverheadLineItem("Rent", 1600)],
        commission_enabled=True,
    )
    hourly = compute_rate(replace(cfg, commission_enabled=False))
    comm = compute_rate(cfg)
    assert comm.total_labor_cost == 0
    # only overhead is covered: 10/hr at 30% margin
    assert comm.recommended_rate == pytest.approx(10 / 0.7)
    assert comm.recommended_rate != pytest.approx(hourly.recommended_rate)


def test_wastage_from_daily_hours():
    assert wastage_from_daily_hours(8, 4) == 50.0
    assert wastage_from_daily_hours(8, 5.5) == 31.2
    assert wastage_from_daily_hours(0, 0) == 0.0
    assert wastage_from_daily_hours(8, 8) == 0.0


def test_monthly_billable_hours_from_daily():
    assert monthly_billable_hours_from_daily(4) == 87
    assert monthly_billable_hours_from_daily(0) == 0
