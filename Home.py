# Home.py
import streamlit as st

from crewrate.ui import page_setup, render_nav
from crewrate import presets
from crewrate.display import e, money
from crewrate.repository import RateRepository, default_store

# ===== Page config (call once, first) =======================================
page_setup("Crew Rate Calculator – Home")
render_nav("Home")

# ===================== Header ===============================================
st.title("Crew Rate Calculator")
st.markdown(
    "Work out what to charge per billable hour so every crew covers its labor, "
    "wastage, office staff and overhead, with the margin you want on top."
)

c1, c2 = st.columns(2)
with c1:
    if st.button("💲 Calculate a rate", type="primary", use_container_width=True):
        st.switch_page("pages/01_Rate_Calculator.py")
    if st.button("🧾 Build an estimate", use_container_width=True):
        st.switch_page("pages/03_Estimate_Builder.py")
with c2:
    if st.button("🧮 Price a job", use_container_width=True):
        st.switch_page("pages/02_Job_Calculator.py")
    if st.button("📊 Jobs dashboard", use_container_width=True):
        st.switch_page("pages/04_Jobs_Dashboard.py")

# ===================== Saved rates ==========================================
st.subheader("Saved rates")
rates = RateRepository(default_store()).list_rates()
if not rates:
    st.info("No saved rates yet. Rates are saved automatically from the Rate Calculator.")
else:
    names = presets.service_options()
    for r in rates:
        crew = f" · {e(r.crew_name)}" if r.crew_name else ""
        st.markdown(
            f"- **{e(names.get(r.service_type, r.service_type))}**{crew}: "
            f"{money(r.recommended_rate)}/hr "
            f"<small>(margin {r.desired_margin:g}%, updated {e(r.last_updated[:10])})</small>",
            unsafe_allow_html=True,
        )

# ===================== Services =============================================
st.subheader("Service presets")
for p in presets.PRESETS.values():
    with st.container(border=True):
        pay = "commission" if p.commission_enabled else "hourly"
        st.markdown(
            f"**{e(p.name)}**  \n{e(p.description)}  \n"
            f"<small>{pay} pay · {p.wastage_percent:g}% wastage · {p.desired_margin:g}% margin</small>",
            unsafe_allow_html=True,
        )
