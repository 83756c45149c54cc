import logging
import math

from .model import RateConfig, RateResult
from .settings import OFFICE_HOURS_PER_WEEK, WEEKS_PER_MONTH, WORKING_DAYS_PER_MONTH

logger = logging.getLogger(__name__)


def wastage_multiplier(wastage_percent: float) -> float:
    return 1.0 / (1.0 - wastage_percent / 100.0)


def avg_crew_hourly_rate(config: RateConfig) -> float:
    # blended: every worker across every crew, divided by crew count
    total = sum(c.hourly_rate for c in config.crews)
    return total / max(1, len(config.crews))


def avg_crew_commission(config: RateConfig) -> float:
    total = sum(c.commission for c in config.crews)
    return total / max(1, len(config.crews))


def monthly_office_staff_cost(config: RateConfig) -> float:
    total = 0.0
    for s in config.office_staff:
        if s.is_salary:
            total += s.monthly_salary or 0.0
        else:
            total += (s.hourly_rate or 0.0) * OFFICE_HOURS_PER_WEEK * WEEKS_PER_MONTH
    return total


def wastage_from_daily_hours(daily_work_hours: float, daily_billable_hours: float) -> float:
    """Percent of paid time that is not billable, to one decimal."""
    if not daily_work_hours or daily_work_hours <= 0:
        return 0.0
    pct = (daily_work_hours - daily_billable_hours) / daily_work_hours * 100
    return round(min(99.9, max(0.0, pct)), 1)


def monthly_billable_hours_from_daily(daily_billable_hours: float) -> int:
    """Billable hours per crew per month."""
    return round(max(0.0, daily_billable_hours or 0.0) * WORKING_DAYS_PER_MONTH)


def compute_rate(config: RateConfig) -> RateResult:
    """Recommended hourly rate and cost breakdown for one crew.

    Hourly pay: workers are paid for every hour including wastage, margin is
    applied on top of total cost. Commission pay: labor is paid out of revenue,
    so the rate only has to cover office staff and overhead after commission
    and margin are taken off the top.

    Returns ``RateResult.invalid`` (rate 0) instead of raising when the
    percentages leave nothing to divide by.
    """
    office_monthly = monthly_office_staff_cost(config)
    overhead_monthly = config.monthly_overhead_cost
    total_billable = config.monthly_billable_hours_per_crew * config.total_crews

    office_per_hour = office_monthly / total_billable if total_billable > 0 else 0.0
    overhead_per_hour = overhead_monthly / total_billable if total_billable > 0 else 0.0

    figures = dict(
        office_staff_cost_per_hour=office_per_hour,
        overhead_cost_per_hour=overhead_per_hour,
        monthly_office_staff_cost=office_monthly,
        monthly_overhead_cost=overhead_monthly,
        total_monthly_billable_hours=total_billable,
    )

    wastage = config.wastage_percent
    margin = config.desired_margin
    if not 0 <= wastage < 100:
        return _invalid("Wastage must be at least 0% and below 100%.", figures)
    if not 0 <= margin < 100:
        return _invalid("Margin must be at least 0% and below 100%.", figures)

    multiplier = wastage_multiplier(wastage)
    avg_rate = avg_crew_hourly_rate(config)
    overhead_total = office_per_hour + overhead_per_hour

    if config.commission_enabled:
        commission = avg_crew_commission(config)
        denominator = 1 - commission / 100 - margin / 100
        figures.update(total_commission_percent=commission, avg_crew_hourly_rate=avg_rate)
        if denominator <= 0:
            return _invalid(
                f"Commission ({commission:g}%) plus margin ({margin:g}%) must stay below 100%.",
                figures,
            )
        rate = overhead_total / denominator
        commission_per_hour = rate * commission / 100
        total_cost = commission_per_hour + overhead_total
        result = RateResult(
            base_labor_cost=0.0,
            wastage_cost=0.0,
            total_labor_cost=0.0,
            total_cost_per_hour=total_cost,
            profit_per_hour=rate - total_cost,
            recommended_rate=rate,
            total_hours_per_billable_hour=multiplier,
            commission_cost_per_hour=commission_per_hour,
            **figures,
        )
    else:
        total_labor = avg_rate * multiplier
        total_cost = total_labor + overhead_total
        rate = total_cost * (1 / (1 - margin / 100))
        result = RateResult(
            base_labor_cost=avg_rate,
            wastage_cost=total_labor - avg_rate,
            total_labor_cost=total_labor,
            total_cost_per_hour=total_cost,
            profit_per_hour=rate - total_cost,
            recommended_rate=rate,
            avg_crew_hourly_rate=avg_rate,
            total_hours_per_billable_hour=multiplier,
            **figures,
        )

    if not all(math.isfinite(v) for v in (result.recommended_rate, result.total_cost_per_hour)):
        return _invalid("Inputs produced a non-finite rate.", figures)
    return result


def _invalid(reason: str, figures: dict) -> RateResult:
    logger.info("rate not computable: %s", reason)
    return RateResult.invalid(reason, **figures)
