# Job Calculator – price one job and check how profitable it was
import pandas as pd
import streamlit as st

from crewrate.ui import page_setup, render_nav, sidebar_card, flash
from crewrate import presets
from crewrate.display import money, percent
from crewrate.jobs import JobBook, price_job
from crewrate.model import Worker
from crewrate.repository import default_store

page_setup("Job Calculator")
render_nav("Job Calculator")

store = default_store()
book = JobBook(store)
flash("job_flash")

st.title("🧮 Job Calculator")

options = presets.service_options()
with sidebar_card("Job", icon="📋"):
    job_name = st.text_input("Job name", key="job_name", placeholder="e.g. 123 Main St repipe")
    job_type = st.selectbox("Service type", list(options.keys()), format_func=lambda k: options[k], key="job_type")
    preset = presets.get_preset(job_type)
    billable_hours = st.number_input("Billable hours", min_value=0.0, step=0.5, value=8.0, key="job_hours")
    wastage = st.number_input(
        "Wastage (%)", min_value=0.0, max_value=99.9, step=0.5,
        value=float(preset.wastage_percent), key=f"job_wastage_{job_type}",
    )
    margin = st.number_input(
        "Desired margin (%)", min_value=0.0, max_value=99.0, step=1.0,
        value=float(preset.desired_margin), key=f"job_margin_{job_type}",
    )
    commission_enabled = st.toggle("Commission pay", value=preset.commission_enabled, key=f"job_comm_{job_type}")
    actual_rate = st.number_input(
        "Actual rate charged ($/hr)", min_value=0.0, step=1.0, value=0.0, key="job_actual",
        help="Leave at 0 to just see the recommended rate.",
    )

# Workers on this job (seeded from the service's first crew)
seed = preset.crews[0][1] if preset.crews else ({"title": "Worker 1", "rate": 25.0, "commission": 10.0},)
st.subheader("Workers on this job")
workers_df = st.data_editor(
    pd.DataFrame(
        [{"Title": w["title"], "Hourly Rate": w["rate"], "Commission %": w["commission"]} for w in seed],
        columns=["Title", "Hourly Rate", "Commission %"],
    ),
    num_rows="dynamic",
    use_container_width=True,
    hide_index=True,
    key=f"job_workers_{job_type}",
    column_config={
        "Hourly Rate": st.column_config.NumberColumn(min_value=0.0, step=0.5, format="$%.2f"),
        "Commission %": st.column_config.NumberColumn(min_value=0.0, max_value=100.0, step=0.5),
    },
)

workers = []
for row in workers_df.to_dict("records"):
    rate = row.get("Hourly Rate")
    if rate is None or pd.isna(rate):
        continue
    comm = row.get("Commission %")
    comm = 0.0 if comm is None or pd.isna(comm) else min(100.0, max(0.0, float(comm)))
    workers.append(Worker(rate=max(0.0, float(rate)), commission=comm, title=str(row.get("Title") or "")))

# ---------- Calculations ----------
job = price_job(
    name=job_name.strip() or "Untitled job",
    job_type=job_type,
    billable_hours=float(billable_hours),
    wastage_percent=float(wastage),
    workers=workers,
    desired_margin=float(margin),
    commission_enabled=bool(commission_enabled),
    actual_rate=float(actual_rate),
)

with st.container(border=True):
    st.markdown(
        f"""
- Recommended rate: **{money(job.recommended_rate)}/hr**
- Total paid hours: **{job.total_hours:,.2f}** for {job.billable_hours:g} billable
- Total job cost: **{money(job.total_cost)}**
"""
    )
    if commission_enabled and actual_rate <= 0:
        st.caption("Commission crews are paid from revenue; enter the actual rate to see the job cost.")
    if actual_rate > 0:
        color = "green" if job.profitability >= margin else ("orange" if job.profitability > 0 else "red")
        st.markdown(
            f"- Revenue: **{money(job.revenue)}** · Profit: **{money(job.profit)}**\n"
            f"- Profitability: :{color}[**{percent(job.profitability)}**]"
        )

if st.button("💾 Save job", type="primary", disabled=not workers or billable_hours <= 0):
    if book.add(job):
        st.session_state["job_flash"] = f"Saved “{job.name}”."
        st.rerun()
    else:
        st.error("The job could not be saved.")
