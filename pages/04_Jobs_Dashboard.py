# Jobs Dashboard – saved jobs, profitability stats and exports
from datetime import date

import streamlit as st

from crewrate.ui import page_setup, render_nav, sidebar_card, flash
from crewrate.display import money, percent
from crewrate.jobs import (
    REPORT_SORTS, TIMEFRAMES, JobBook,
    dashboard_stats, filter_timeframe, report_frame, to_csv_bytes, to_xlsx_bytes,
)
from crewrate.repository import default_store

page_setup("Jobs Dashboard", layout="wide")
render_nav("Jobs Dashboard")

book = JobBook(default_store())
flash("dash_flash")

st.title("📊 Jobs Dashboard")

with sidebar_card("Filters", icon="🔎"):
    timeframe = st.selectbox("Timeframe", TIMEFRAMES, format_func=str.title, key="dash_timeframe")
    term = st.text_input("Search jobs", key="dash_search")
    sort_by = st.selectbox("Sort report by", REPORT_SORTS, format_func=str.title, key="dash_sort")

jobs = book.search(term)
if not jobs:
    st.info("No saved jobs yet. Price a job in the Job Calculator and save it.")
    st.stop()

# ---------- Stats ----------
stats = dashboard_stats(jobs, timeframe)
c1, c2, c3, c4 = st.columns(4)
c1.metric("Priced jobs", stats.total_jobs)
c2.metric("Avg profitability", percent(stats.avg_profitability))
c3.metric("Revenue", money(stats.total_revenue))
c4.metric("Profit", money(stats.total_profit))
c1, c2, c3, c4 = st.columns(4)
c1.metric("Cost", money(stats.total_cost))
c2.metric("Avg hourly rate", money(stats.avg_hourly_rate))
c3.metric("Profitable", stats.profitable_jobs)
c4.metric("Unprofitable", stats.unprofitable_jobs)

# ---------- Report ----------
shown = filter_timeframe(jobs, timeframe)
df = report_frame(shown, sort_by)
st.subheader("Report")
st.dataframe(
    df,
    use_container_width=True,
    hide_index=True,
    column_config={
        "Total Cost": st.column_config.NumberColumn(format="$%.2f"),
        "Recommended Rate": st.column_config.NumberColumn(format="$%.2f"),
        "Actual Rate": st.column_config.NumberColumn(format="$%.2f"),
        "Profitability": st.column_config.NumberColumn(format="%.1f%%"),
    },
)
stamp = date.today().isoformat()
d1, d2 = st.columns(2)
with d1:
    st.download_button(
        "⬇️ Download CSV", data=to_csv_bytes(df),
        file_name=f"job_report_{stamp}.csv", mime="text/csv", use_container_width=True,
    )
with d2:
    st.download_button(
        "⬇️ Download Excel", data=to_xlsx_bytes(df),
        file_name=f"job_report_{stamp}.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        use_container_width=True,
    )

# ---------- Saved jobs ----------
st.subheader("Saved jobs")
for job in shown:
    with st.container(border=True):
        a, b, c = st.columns([5, 1, 1])
        with a:
            profit = f" · {percent(job.profitability)}" if job.actual_rate > 0 else ""
            st.markdown(
                f"**{job.name}** · {job.job_type} · {job.date[:10]}  \n"
                f"{job.billable_hours:g} hrs · cost {money(job.total_cost)} · "
                f"recommended {money(job.recommended_rate)}/hr{profit}"
            )
        with b:
            if st.button("Duplicate", key=f"dup_{job.id}", use_container_width=True):
                if book.duplicate(job.id):
                    st.session_state["dash_flash"] = f"Duplicated “{job.name}”."
                st.rerun()
        with c:
            if st.button("Delete", key=f"del_{job.id}", use_container_width=True):
                book.delete(job.id)
                st.session_state["dash_flash"] = f"Deleted “{job.name}”."
                st.rerun()
