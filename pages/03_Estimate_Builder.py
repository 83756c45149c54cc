# Estimate Builder – templates priced at a saved crew rate
from dataclasses import replace

import pandas as pd
import streamlit as st

from crewrate.ui import page_setup, render_nav, sidebar_card, flash
from crewrate import settings as cfg
from crewrate.display import e, money
from crewrate.estimates import (
    LABOR, MATERIAL, TEMPLATES, EstimateBook, LineItem,
    estimate_text, estimate_totals, new_estimate, reprice_labor,
)
from crewrate.repository import RateRepository, default_store

page_setup("Estimate Builder", layout="wide")
render_nav("Estimate Builder")

store = default_store()
repo = RateRepository(store)
book = EstimateBook(store)
flash("est_flash")

st.title("🧾 Estimate Builder")

# -------------------- Rate selector --------------------
saved_rates = repo.list_rates()
with sidebar_card("Hourly Rate", icon="💲"):
    if saved_rates:
        labels = [r.label for r in saved_rates]
        pick = st.selectbox("Saved rate", labels, key="est_rate_pick")
        chosen = saved_rates[labels.index(pick)]
        hourly_rate, rate_name = chosen.recommended_rate, chosen.rate_name
        st.caption(f"Last updated {chosen.last_updated[:16].replace('T', ' ')}")
    else:
        st.info("No saved rates yet. Run the Rate Calculator, or use the default below.")
        hourly_rate = st.number_input(
            "Hourly rate ($/hr)", min_value=0.0, step=1.0,
            value=float(cfg.DEFAULT_HOURLY_RATE), key="est_rate_manual",
        )
        rate_name = "Default rate"

with sidebar_card("Template", icon="📄"):
    template_id = st.selectbox(
        "Estimate template",
        list(TEMPLATES.keys()),
        format_func=lambda k: TEMPLATES[k].name,
        key="est_template",
    )
    st.caption(TEMPLATES[template_id].description)

# Start a fresh estimate when the template changes; re-rate labor when the rate changes
est = st.session_state.get("est_current")
if est is None or est.template_id != template_id:
    est = new_estimate(template_id, hourly_rate, rate_name)
    st.session_state["est_rev"] = st.session_state.get("est_rev", 0) + 1
elif abs(est.hourly_rate - hourly_rate) > 1e-9:
    est = reprice_labor(est, hourly_rate, rate_name)
    st.session_state["est_rev"] = st.session_state.get("est_rev", 0) + 1
st.session_state["est_current"] = est
rev = st.session_state.get("est_rev", 0)

c1, c2 = st.columns([3, 1])
with c1:
    project_name = st.text_input("Project name", value=est.project_name, key=f"est_project_{rev}")
with c2:
    markup = st.number_input(
        "Material markup (%)", min_value=0.0, step=1.0,
        value=float(est.material_markup), key=f"est_markup_{rev}",
    )


# -------------------- Line items --------------------
def items_frame(items, kind):
    rows = []
    for i in items:
        if i.type != kind:
            continue
        row = {"Item": i.name, "Description": i.description}
        if kind == LABOR:
            row.update({"Hours": i.hours, "Rate": i.price})
        else:
            row.update({"Qty": i.quantity, "Unit Price": i.price, "Wastage %": i.wastage})
        rows.append(row)
    cols = ["Item", "Description"] + (["Hours", "Rate"] if kind == LABOR else ["Qty", "Unit Price", "Wastage %"])
    return pd.DataFrame(rows, columns=cols)


def frame_items(df, kind):
    def num(v, default=0.0):
        return default if v is None or pd.isna(v) else max(0.0, float(v))

    out = []
    for row in df.to_dict("records"):
        if not row.get("Item"):
            continue
        if kind == LABOR:
            out.append(LineItem(
                name=str(row["Item"]), description=str(row.get("Description") or ""),
                type=LABOR, category="labor", hours=num(row.get("Hours")), price=num(row.get("Rate"), hourly_rate),
            ))
        else:
            out.append(LineItem(
                name=str(row["Item"]), description=str(row.get("Description") or ""),
                type=MATERIAL, category="materials", quantity=num(row.get("Qty"), 1.0),
                price=num(row.get("Unit Price")), wastage=num(row.get("Wastage %"), cfg.DEFAULT_MATERIAL_WASTAGE),
            ))
    return out


st.subheader("Labor")
labor_df = st.data_editor(
    items_frame(est.line_items, LABOR),
    num_rows="dynamic", use_container_width=True, hide_index=True, key=f"est_labor_{rev}",
    column_config={"Rate": st.column_config.NumberColumn(format="$%.2f", min_value=0.0)},
)
st.subheader("Materials")
material_df = st.data_editor(
    items_frame(est.line_items, MATERIAL),
    num_rows="dynamic", use_container_width=True, hide_index=True, key=f"est_materials_{rev}",
    column_config={
        "Unit Price": st.column_config.NumberColumn(format="$%.2f", min_value=0.0),
        "Wastage %": st.column_config.NumberColumn(min_value=0.0, max_value=100.0),
    },
)

# ---------- Calculations ----------
live = replace(
    est,
    project_name=project_name or TEMPLATES[template_id].default_project_name,
    material_markup=float(markup),
    line_items=frame_items(labor_df, LABOR) + frame_items(material_df, MATERIAL),
)
tot = estimate_totals(live)

with st.container(border=True):
    st.markdown(f"**{e(live.project_name)}** · labor at {money(live.hourly_rate)}/hr ({e(live.rate_name)})")
    st.markdown(
        f"""
- Labor: **{tot.total_labor_hours:g} hrs** → **{money(tot.total_labor_cost)}**
- Materials (with {markup:g}% markup): **{money(tot.total_material_cost)}**
- Material profit: **{money(tot.material_profit)}**
- **Total estimate: {money(tot.total_estimate)}**
"""
    )

b1, b2 = st.columns(2)
with b1:
    if st.button("💾 Save estimate", type="primary", use_container_width=True):
        if book.add(live):
            st.session_state["est_current"] = None
            st.session_state["est_flash"] = f"Saved “{live.project_name}”."
            st.rerun()
        else:
            st.error("The estimate could not be saved.")
with b2:
    st.download_button(
        "⬇️ Download as text",
        data=estimate_text(live).encode("utf-8"),
        file_name=f"{live.project_name.replace(' ', '_')}.txt",
        mime="text/plain",
        use_container_width=True,
    )

# -------------------- Saved estimates --------------------
saved = book.list()
if saved:
    st.subheader("Saved estimates")
    for s in saved:
        with st.expander(f"{s.project_name} · {money(estimate_totals(s).total_estimate)} · {s.date[:10]}"):
            st.code(estimate_text(s), language=None)
            if st.button("Delete", key=f"est_del_{s.id}"):
                book.delete(s.id)
                st.session_state["est_flash"] = f"Deleted “{s.project_name}”."
                st.rerun()
