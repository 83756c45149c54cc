"""What-if tables: the recommended rate recomputed with one or two inputs changed."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Iterable, List, Optional

import pandas as pd
from matplotlib.figure import Figure

from . import settings as cfg
from .engine import compute_rate
from .model import OverheadLineItem, RateConfig
from .presets import even_commission_split


@dataclass(frozen=True)
class ComparisonRow:
    label: str
    value: float
    recommended_rate: float
    difference: Optional[float]
    is_current: bool
    valid: bool


def _rows(
    config: RateConfig,
    values: Iterable[float],
    current: float,
    vary: Callable[[RateConfig, float], RateConfig],
    fmt: Callable[[float], str],
) -> List[ComparisonRow]:
    base = compute_rate(config)
    rows = []
    for v in values:
        r = compute_rate(vary(config, v))
        diff = r.recommended_rate - base.recommended_rate if (r.valid and base.valid) else None
        rows.append(ComparisonRow(
            label=fmt(v),
            value=float(v),
            recommended_rate=r.recommended_rate,
            difference=diff,
            is_current=abs(float(v) - current) < 0.01,
            valid=r.valid,
        ))
    return rows


def margin_rows(config: RateConfig, margins=cfg.MARGIN_STEPS) -> List[ComparisonRow]:
    return _rows(
        config, margins, config.desired_margin,
        lambda c, v: replace(c, desired_margin=float(v)),
        lambda v: f"{v:g}% margin",
    )


def overhead_rows(config: RateConfig, amounts=cfg.OVERHEAD_STEPS) -> List[ComparisonRow]:
    return _rows(
        config, amounts, config.monthly_overhead_cost,
        lambda c, v: replace(c, overhead_costs=[OverheadLineItem("Monthly overhead", float(v))]),
        lambda v: f"${v:,.0f}/mo overhead",
    )


def _with_crew_commission(config: RateConfig, target: float) -> RateConfig:
    crews = []
    for crew in config.crews:
        shares = even_commission_split(target, len(crew.workers))
        workers = [replace(w, commission=s) for w, s in zip(crew.workers, shares)]
        crews.append(replace(crew, workers=workers))
    return replace(config, crews=crews)


def current_crew_commission(config: RateConfig) -> float:
    if not config.crews:
        return 0.0
    return sum(c.commission for c in config.crews) / len(config.crews)


def commission_rows(config: RateConfig, totals=cfg.COMMISSION_STEPS) -> List[ComparisonRow]:
    return _rows(
        config, totals, current_crew_commission(config),
        _with_crew_commission,
        lambda v: f"{v:g}% commission",
    )


def wastage_rows(config: RateConfig, wastages=cfg.WASTAGE_STEPS) -> List[ComparisonRow]:
    return _rows(
        config, wastages, config.wastage_percent,
        lambda c, v: replace(c, wastage_percent=float(v)),
        lambda v: f"{v:g}% wastage",
    )


def crew_count_rows(config: RateConfig, counts=cfg.CREW_COUNT_STEPS) -> List[ComparisonRow]:
    return _rows(
        config, counts, config.total_crews,
        lambda c, v: replace(c, total_crews=int(v)),
        lambda v: f"{int(v)} crew{'s' if int(v) != 1 else ''}",
    )


def _shift_margin(config: RateConfig, step: float) -> RateConfig:
    return replace(config, desired_margin=config.desired_margin + step)


def _shift_overhead(config: RateConfig, step: float) -> RateConfig:
    return replace(config, overhead_costs=[
        OverheadLineItem("Monthly overhead", config.monthly_overhead_cost + step),
    ])


def _shift_labor(config: RateConfig, commission_step: float, wastage_step: float) -> RateConfig:
    if config.commission_enabled:
        return _with_crew_commission(config, max(0.0, current_crew_commission(config) + commission_step))
    return replace(config, wastage_percent=max(0.0, config.wastage_percent + wastage_step))


def combined_rows(config: RateConfig) -> List[ComparisonRow]:
    """Two inputs changed at once; the first row is the unchanged config."""
    labor_up, labor_down = (
        ("Commission +5%", "Commission -5%") if config.commission_enabled
        else ("Wastage +10%", "Wastage -10%")
    )
    scenarios = [
        ("Baseline", config),
        (f"{labor_up} & margin +5%", _shift_margin(_shift_labor(config, 5, 10), 5)),
        ("Overhead +$5,000 & margin +5%", _shift_margin(_shift_overhead(config, 5000), 5)),
        (f"{labor_down} & overhead +$5,000", _shift_overhead(_shift_labor(config, -5, -10), 5000)),
    ]
    base = compute_rate(config)
    rows = []
    for i, (label, varied) in enumerate(scenarios):
        r = compute_rate(varied)
        rows.append(ComparisonRow(
            label=label,
            value=float(i),
            recommended_rate=r.recommended_rate,
            difference=r.recommended_rate - base.recommended_rate if (r.valid and base.valid) else None,
            is_current=i == 0,
            valid=r.valid,
        ))
    return rows


def comparison_tables(config: RateConfig) -> dict[str, List[ComparisonRow]]:
    """Tables that apply to the config's pay model, keyed by heading."""
    tables = {
        "Margin": margin_rows(config),
        "Overhead": overhead_rows(config),
    }
    if config.commission_enabled:
        tables["Commission"] = commission_rows(config)
    else:
        tables["Wastage"] = wastage_rows(config)
    tables["Crew count"] = crew_count_rows(config)
    tables["Combined"] = combined_rows(config)
    return tables


def rows_to_frame(rows: List[ComparisonRow]) -> pd.DataFrame:
    return pd.DataFrame([
        {
            "Scenario": r.label + (" (current)" if r.is_current else ""),
            "Hourly Rate": r.recommended_rate if r.valid else None,
            "Difference": r.difference,
        }
        for r in rows
    ])


def comparison_figure(rows: List[ComparisonRow], title: str = "") -> Figure:
    fig = Figure(figsize=(6, 3))
    ax = fig.subplots()
    labels = [r.label for r in rows]
    rates = [r.recommended_rate if r.valid else 0.0 for r in rows]
    colors = ["#2e6d33" if r.is_current else "#b2deb5" for r in rows]
    ax.bar(labels, rates, color=colors, edgecolor="#2e6d33")
    ax.set_ylabel("$/hr")
    if title:
        ax.set_title(title)
    ax.tick_params(axis="x", labelrotation=20, labelsize=8)
    fig.tight_layout()
    return fig
