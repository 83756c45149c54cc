# Crew Rate Calculator
# --------------------------------------------------------------
from dataclasses import replace

import pandas as pd
import streamlit as st

from crewrate.ui import page_setup, render_nav, sidebar_card, flash
from crewrate import settings as cfg
from crewrate import comparisons, presets
from crewrate.display import e, money, percent, rate_label
from crewrate.engine import compute_rate, wastage_from_daily_hours, monthly_billable_hours_from_daily
from crewrate.model import PAY_HOURLY, PAY_SALARY, Crew, OfficeStaffMember, OverheadLineItem, Worker
from crewrate.repository import RateRepository, default_store
from crewrate.state import CalculatorState, apply_daily_hours, load_state, reset_state, save_state

page_setup("Crew Rate Calculator")
render_nav("Rate Calculator")

store = default_store()
repo = RateRepository(store)

# -------------------- Service selection --------------------
options = presets.service_options()
with sidebar_card("Service", icon="🛠️"):
    service_type = st.selectbox(
        "Service type",
        list(options.keys()),
        format_func=lambda k: options[k],
        key="calc_service",
    )
    st.caption(presets.get_preset(service_type).description)
    if st.button("Reset to defaults", use_container_width=True):
        st.session_state["calc_base"] = reset_state(store, service_type)
        st.session_state["calc_rev"] = st.session_state.get("calc_rev", 0) + 1
        st.session_state["calc_flash"] = "Calculator reset to the service defaults."
        st.rerun()

# Editors are seeded from this snapshot; it only changes on service switch or crew add/remove
if st.session_state.get("calc_base_service") != service_type:
    st.session_state["calc_base"] = load_state(store, service_type)
    st.session_state["calc_base_service"] = service_type
    st.session_state["calc_rev"] = st.session_state.get("calc_rev", 0) + 1

base: CalculatorState = st.session_state["calc_base"]
rev = st.session_state.get("calc_rev", 0)
wkey = lambda name: f"{service_type}_{name}_{rev}"  # noqa: E731

flash("calc_flash")


# -------------------- Editor <-> model helpers --------------------
def workers_frame(crew: Crew) -> pd.DataFrame:
    return pd.DataFrame(
        [{"Title": w.title, "Hourly Rate": w.rate, "Commission %": w.commission} for w in crew.workers],
        columns=["Title", "Hourly Rate", "Commission %"],
    )


def frame_workers(df: pd.DataFrame) -> list[Worker]:
    out = []
    for row in df.to_dict("records"):
        rate = row.get("Hourly Rate")
        if rate is None or pd.isna(rate):
            continue
        commission = row.get("Commission %")
        commission = 0.0 if commission is None or pd.isna(commission) else float(commission)
        out.append(Worker(
            rate=max(0.0, float(rate)),
            commission=min(100.0, max(0.0, commission)),
            title=str(row.get("Title") or ""),
        ))
    return out


def staff_frame(staff: list[OfficeStaffMember]) -> pd.DataFrame:
    return pd.DataFrame(
        [{
            "Title": s.title,
            "Pay Type": "Salary" if s.is_salary else "Hourly",
            "Hourly Rate": s.hourly_rate,
            "Monthly Salary": s.monthly_salary,
        } for s in staff],
        columns=["Title", "Pay Type", "Hourly Rate", "Monthly Salary"],
    )


def frame_staff(df: pd.DataFrame) -> list[OfficeStaffMember]:
    def num(v):
        return 0.0 if v is None or pd.isna(v) else max(0.0, float(v))

    out = []
    for row in df.to_dict("records"):
        if not row.get("Title") and not num(row.get("Hourly Rate")) and not num(row.get("Monthly Salary")):
            continue
        out.append(OfficeStaffMember(
            title=str(row.get("Title") or ""),
            pay_type=PAY_HOURLY if row.get("Pay Type") == "Hourly" else PAY_SALARY,
            hourly_rate=num(row.get("Hourly Rate")),
            monthly_salary=num(row.get("Monthly Salary")),
        ))
    return out


def overhead_frame(items: list[OverheadLineItem]) -> pd.DataFrame:
    return pd.DataFrame(
        [{"Expense": o.name, "Monthly Cost": o.monthly_cost} for o in items],
        columns=["Expense", "Monthly Cost"],
    )


def frame_overhead(df: pd.DataFrame) -> list[OverheadLineItem]:
    out = []
    for row in df.to_dict("records"):
        cost = row.get("Monthly Cost")
        if cost is None or pd.isna(cost):
            continue
        out.append(OverheadLineItem(name=str(row.get("Expense") or "Expense"), monthly_cost=max(0.0, float(cost))))
    return out


# -------------------- Inputs --------------------
st.title("💲 Crew Rate Calculator")

with sidebar_card("Pay & Margin", icon="📐"):
    rate_name = st.text_input("Rate name", value=base.rate_name, key=wkey("rate_name"))
    commission_enabled = st.toggle(
        "Crews paid on commission",
        value=base.config.commission_enabled,
        key=wkey("commission"),
        help="Commission crews are paid a share of revenue instead of an hourly wage.",
    )
    desired_margin = st.number_input(
        "Desired profit margin (%)", min_value=0.0, max_value=99.0, step=1.0,
        value=float(min(99.0, base.config.desired_margin)), key=wkey("margin"),
    )

with sidebar_card("Crew Schedule", icon="⏱️"):
    daily_work = st.number_input(
        "Paid hours per day", min_value=0.5, max_value=24.0, step=0.5,
        value=float(base.daily_work_hours), key=wkey("daily_work"),
    )
    daily_billable = st.number_input(
        "Billable hours per day", min_value=0.0, max_value=float(daily_work), step=0.5,
        value=float(min(base.daily_billable_hours, daily_work)), key=wkey("daily_billable"),
    )
    derive = st.button("Use daily hours for wastage and billable hours", use_container_width=True)
    st.caption(
        f"Daily hours give {percent(wastage_from_daily_hours(daily_work, daily_billable))} wastage and "
        f"{monthly_billable_hours_from_daily(daily_billable)} billable hours per crew per month."
    )
    wastage = st.number_input(
        "Wastage (% of paid time not billable)", min_value=0.0, max_value=99.9, step=0.5,
        value=float(min(99.9, base.config.wastage_percent)), key=wkey("wastage"),
        disabled=commission_enabled,
    )
    monthly_hours = st.number_input(
        "Billable hours per crew per month", min_value=0.0, step=1.0,
        value=float(base.config.monthly_billable_hours_per_crew), key=wkey("monthly_hours"),
    )

# Crews
st.subheader("Crews")
crews: list[Crew] = []
for idx, crew in enumerate(base.config.crews):
    with st.container(border=True):
        c1, c2 = st.columns([4, 1])
        with c1:
            name = st.text_input("Crew name", value=crew.name, key=wkey(f"crew_name_{crew.id}"))
        with c2:
            st.write("")
            remove = st.button("Remove", key=wkey(f"crew_rm_{crew.id}"), disabled=len(base.config.crews) <= 1)
        edited = st.data_editor(
            workers_frame(crew),
            num_rows="dynamic",
            use_container_width=True,
            hide_index=True,
            key=wkey(f"crew_workers_{crew.id}"),
            column_config={
                "Hourly Rate": st.column_config.NumberColumn(min_value=0.0, step=0.5, format="$%.2f"),
                "Commission %": st.column_config.NumberColumn(min_value=0.0, max_value=100.0, step=0.5),
            },
        )
        workers = frame_workers(edited)
        live = Crew(name=name or f"Crew {idx + 1}", workers=workers, id=crew.id)
        crews.append(live)
        if commission_enabled:
            st.caption(f"Crew hourly cost {money(live.hourly_rate)} · commission {percent(live.commission)}")
        else:
            st.caption(f"Crew hourly cost {money(live.hourly_rate)}")
        if not workers:
            st.warning("Add at least one worker to this crew.")
        if remove:
            kept = [c for c in crews if c.id != crew.id] + base.config.crews[idx + 1:]
            st.session_state["calc_base"] = replace(base, config=replace(base.config, crews=kept))
            st.session_state["calc_rev"] = rev + 1
            st.rerun()

if st.button("+ Add crew"):
    added = presets.new_crew(len(crews) + 1)
    if commission_enabled:
        shares = presets.even_commission_split(cfg.DEFAULT_CREW_COMMISSION, len(added.workers))
        added = replace(added, workers=[replace(w, commission=s) for w, s in zip(added.workers, shares)])
    config = replace(base.config, crews=crews + [added], total_crews=max(base.config.total_crews, len(crews) + 1))
    st.session_state["calc_base"] = replace(base, config=config)
    st.session_state["calc_rev"] = rev + 1
    st.rerun()

total_crews = st.number_input(
    "Total crews in the company",
    min_value=1, step=1,
    value=int(max(1, base.config.total_crews)),
    key=wkey("total_crews"),
    help="Office staff and overhead are spread over every crew's billable hours.",
)

# Office staff + overhead
c1, c2 = st.columns(2)
with c1:
    st.subheader("Office Staff")
    staff_df = st.data_editor(
        staff_frame(base.config.office_staff),
        num_rows="dynamic",
        use_container_width=True,
        hide_index=True,
        key=wkey("staff"),
        column_config={
            "Pay Type": st.column_config.SelectboxColumn(options=["Salary", "Hourly"], required=True),
            "Hourly Rate": st.column_config.NumberColumn(min_value=0.0, format="$%.2f"),
            "Monthly Salary": st.column_config.NumberColumn(min_value=0.0, format="$%.0f"),
        },
    )
with c2:
    st.subheader("Monthly Overhead")
    overhead_df = st.data_editor(
        overhead_frame(base.config.overhead_costs),
        num_rows="dynamic",
        use_container_width=True,
        hide_index=True,
        key=wkey("overhead"),
        column_config={"Monthly Cost": st.column_config.NumberColumn(min_value=0.0, format="$%.0f")},
    )

# ---------- Calculations ----------
config = replace(
    base.config,
    crews=crews,
    total_crews=int(total_crews),
    office_staff=frame_staff(staff_df),
    overhead_costs=frame_overhead(overhead_df),
    monthly_billable_hours_per_crew=float(monthly_hours),
    wastage_percent=float(wastage),
    desired_margin=float(desired_margin),
    commission_enabled=bool(commission_enabled),
)
result = compute_rate(config)

state = CalculatorState(
    service_type=service_type,
    rate_name=rate_name or presets.get_preset(service_type).rate_name,
    config=config,
    daily_work_hours=float(daily_work),
    daily_billable_hours=float(daily_billable),
)

if derive:
    st.session_state["calc_base"] = apply_daily_hours(state)
    st.session_state["calc_rev"] = rev + 1
    st.rerun()

# ---------- Persist (explicit, after the computation) ----------
save_state(store, state)
saved_ok = True
if result.valid:
    record = dict(
        rate_name=state.rate_name,
        wastage_percent=config.wastage_percent,
        desired_margin=config.desired_margin,
        commission_enabled=config.commission_enabled,
        daily_work_hours=state.daily_work_hours,
        daily_billable_hours=state.daily_billable_hours,
    )
    saved_ok = repo.save(service_type, result, **record)
    for crew in crews:
        saved_ok = repo.save(service_type, result, crew=crew, **record) and saved_ok

# ---------- Results ----------
st.subheader("Recommended Rate")
with st.container(border=True):
    if result.valid:
        st.markdown(f"<div class='cr-rate'>{e(rate_label(result))}</div>", unsafe_allow_html=True)
        st.caption(f"{e(state.rate_name)} · applies to every crew of this service")
    else:
        st.markdown(f"<div class='cr-invalid'>{e(rate_label(result))}</div>", unsafe_allow_html=True)
        st.error(result.reason)
    if not saved_ok:
        st.warning("The rate could not be saved. It is still shown here, but other pages won't see it.")

with st.container(border=True):
    st.markdown("**Cost breakdown (per billable hour)**")
    lines = []
    if config.commission_enabled:
        lines += [
            f"- Crew commission: **{percent(result.total_commission_percent)}** of revenue "
            f"→ **{money(result.commission_cost_per_hour)}**",
        ]
    else:
        lines += [
            f"- Average crew labor: **{money(result.base_labor_cost)}**",
            f"- Wastage ({percent(config.wastage_percent)}, "
            f"×{result.total_hours_per_billable_hour:.2f} paid hours): **{money(result.wastage_cost)}**",
            f"- Total labor: **{money(result.total_labor_cost)}**",
        ]
    lines += [
        f"- Office staff: **{money(result.office_staff_cost_per_hour)}** "
        f"({money(result.monthly_office_staff_cost)}/mo)",
        f"- Overhead: **{money(result.overhead_cost_per_hour)}** "
        f"({money(result.monthly_overhead_cost)}/mo)",
        f"- Billable hours / month (all crews): **{result.total_monthly_billable_hours:,.0f}**",
        f"- Total cost: **{money(result.total_cost_per_hour)}**",
        f"- Profit: **{money(result.profit_per_hour)}** ({percent(result.margin_percent)})",
    ]
    st.markdown("\n".join(lines))

# ---------- Comparisons ----------
st.subheader("What if…")
tables = comparisons.comparison_tables(config)
tabs = st.tabs(list(tables.keys()))
for tab, (heading, rows) in zip(tabs, tables.items()):
    with tab:
        df = comparisons.rows_to_frame(rows)
        st.dataframe(
            df,
            use_container_width=True,
            hide_index=True,
            column_config={
                "Hourly Rate": st.column_config.NumberColumn(format="$%.2f"),
                "Difference": st.column_config.NumberColumn(format="$%+.2f"),
            },
        )
        if any(not r.valid for r in rows):
            st.caption("Blank rates cannot be computed for that scenario.")
        st.pyplot(comparisons.comparison_figure(rows, f"Rate by {heading.lower()}"))
