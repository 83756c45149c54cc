# crewrate/ui.py
from contextlib import contextmanager
import uuid

import streamlit as st

from . import settings as cfg

PAGES = {
    "Home": "Home.py",
    "Rate Calculator": "pages/01_Rate_Calculator.py",
    "Job Calculator": "pages/02_Job_Calculator.py",
    "Estimate Builder": "pages/03_Estimate_Builder.py",
    "Jobs Dashboard": "pages/04_Jobs_Dashboard.py",
}

THEMES = {
    "light": {
        "page_bg": "#f4f8f4",
        "text": "#111111",
        "accent": "#2e6d33",
        "sidebar_bg": "#b2deb5",
        "sidebar_text": "#1d4520",
        "sidebar_border": "3px solid #2e6d33",
        "card_bg": "#ffffff",
    },
    "dark": {
        "page_bg": "#13201a",
        "text": "#e8f3ea",
        "accent": "#5bd66f",
        "sidebar_bg": "#102318",
        "sidebar_text": "#acdcb0",
        "sidebar_border": "3px solid #1f5c26",
        "card_bg": "#0f1b12",
    },
}

# Sidebar shell defaults (updated from the active theme)
SIDEBAR_CFG = {
    "width_px": 320,
    "pad_x": 12,
    "pad_y": 12,
}


def _theme_from_query() -> str:
    theme = st.query_params.get("theme")
    return theme if theme in THEMES else "light"


def init_theme() -> bool:
    """Keep the dark/light choice across pages via session state and ?theme=."""
    if "ui_dark" not in st.session_state:
        st.session_state["ui_dark"] = _theme_from_query() == "dark"
    return bool(st.session_state["ui_dark"])


def apply_theme(dark: bool) -> None:
    t = THEMES["dark" if dark else "light"]
    st.markdown(f"""
    <style>
      html, body, .stApp {{ background: {t['page_bg']} !important; color: {t['text']} !important; }}
      .stApp .stMarkdown, .stApp label, .stApp h1, .stApp h2, .stApp h3 {{ color: {t['text']} !important; }}
      section[data-testid="stSidebar"] {{
        width:{SIDEBAR_CFG["width_px"]}px !important;
        min-width:{SIDEBAR_CFG["width_px"]}px !important;
        background:{t['sidebar_bg']};
        border-right:{t['sidebar_border']};
      }}
      section[data-testid="stSidebar"] > div {{ padding:{SIDEBAR_CFG["pad_y"]}px {SIDEBAR_CFG["pad_x"]}px; }}
      section[data-testid="stSidebar"] * {{ color:{t['sidebar_text']}; }}
      .cr-rate {{ font-size: 2.2rem; font-weight: 800; color: {t['accent']}; }}
      .cr-invalid {{ font-size: 1.4rem; font-weight: 700; color: #b3261e; }}
    </style>
    """, unsafe_allow_html=True)


def page_setup(title: str, *, layout: str = "centered") -> bool:
    """Page config, hidden chrome, theme and sidebar shell. Returns ui_dark."""
    cfg.configure_logging()
    st.set_page_config(page_title=title, layout=layout, initial_sidebar_state="expanded")

    # Hide Streamlit chrome and the default page list
    st.markdown("""
    <style>
    header[data-testid="stHeader"] { display: none; }
    #MainMenu { visibility: hidden; }
    footer { visibility: hidden; }
    div.block-container { padding-top: 1rem; }
    [data-testid='stSidebarNav'] { display: none; }
    input[type=number]::-webkit-inner-spin-button,
    input[type=number]::-webkit-outer-spin-button { -webkit-appearance: none; margin: 0; }
    </style>
    """, unsafe_allow_html=True)

    ui_dark = init_theme()
    with sidebar_card("Appearance", icon="🌓"):
        ui_dark = st.toggle("Dark mode", value=ui_dark, key="ui_dark_toggle")
        st.session_state["ui_dark"] = ui_dark
    apply_theme(ui_dark)
    return ui_dark


@contextmanager
def sidebar_card(
    title: str,
    *,
    icon: str | None = None,
    bg: str = "transparent",
    border: str = "2px solid #2e6d33",
    radius_px: int = 12,
    pad: int = 12,
):
    """Bordered sidebar section; hides itself when nothing is put inside."""
    marker_id = f"card-{uuid.uuid4().hex}"
    st.sidebar.markdown(f"""
    <style>
      section[data-testid="stSidebar"] div:has(> #{marker_id}) {{
        background:{bg};
        padding:{pad}px;
        border:{border};
        border-radius:{radius_px}px;
        margin-bottom:12px;
      }}
      section[data-testid="stSidebar"] div:has(> #{marker_id}:only-child) {{ display:none; }}
    </style>
    """, unsafe_allow_html=True)

    with st.sidebar.container():
        st.markdown(f'<div id="{marker_id}" style="display:none"></div>', unsafe_allow_html=True)
        if title:
            ico = f"{icon} " if icon else ""
            st.markdown(
                f"<div style='font-size:16px; font-weight:700; margin:0 0 8px 0;'>{ico}{title}</div>",
                unsafe_allow_html=True,
            )
        yield


def render_nav(current: str) -> None:
    choices = list(PAGES.keys())
    with sidebar_card("Navigate", icon="🧭"):
        sel = st.selectbox("Go to page", choices, index=choices.index(current), key=f"nav_{current}")
        if sel != current:
            # carry the theme across pages
            st.query_params.update({"theme": "dark" if st.session_state.get("ui_dark") else "light"})
            st.switch_page(PAGES[sel])


def flash(key: str) -> None:
    """Show and clear a one-shot success message set before st.rerun()."""
    msg = st.session_state.pop(key, None)
    if msg:
        st.success(msg)
