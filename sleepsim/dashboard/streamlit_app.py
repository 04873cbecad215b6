"""
Streamlit Sleep-Simulator: A/B comparison dashboard.
Sidebar: Profile A / Profile B inputs. Main: hypnograms, stage pie, metrics.
Talks to the simulator API; each profile keeps its own cached last result.
"""

import os

import httpx
import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from sleepsim.config import IDEAL_SLEEP_WINDOW_MIN, TIMELINE_ORIGIN_HOUR, TIMELINE_SPAN_MIN
from sleepsim.core.models import SimulationResult, SleepConfig, SleepStage
from sleepsim.core.session import ProfileComparison

# --- Config ---
API_BASE = os.getenv("SLEEP_API_URL", "http://localhost:8000")
API_KEY = os.getenv("SLEEP_API_KEY", "")
HEADERS = {"x-api-key": API_KEY} if API_KEY else {}

STAGE_LABELS = {
    SleepStage.WAKE: "Wake",
    SleepStage.REM: "REM",
    SleepStage.N1: "N1",
    SleepStage.N2: "N2",
    SleepStage.N3: "N3",
}
STAGE_COLORS = {
    SleepStage.WAKE: "#ef4444",
    SleepStage.REM: "#f59e0b",
    SleepStage.N1: "#38bdf8",
    SleepStage.N2: "#3b82f6",
    SleepStage.N3: "#1d4ed8",
}


def api_post(path: str, data: dict) -> dict:
    try:
        r = httpx.post(f"{API_BASE}{path}", json=data, headers=HEADERS, timeout=10)
        r.raise_for_status()
        return r.json()
    except Exception as e:
        st.error(f"API Error: {e}")
        return {}


def api_generate(config: SleepConfig) -> SimulationResult | None:
    data = api_post("/api/hypnogram", {"config": config.model_dump(mode="json")})
    if not data:
        return None
    return SimulationResult.model_validate(data)


def fetch_curves(config: SleepConfig) -> list[dict]:
    data = api_post("/api/circadian", {"config": config.model_dump(mode="json")})
    return data.get("curves", []) if data else []


# --- Plotly helper ---
PLOTLY_CONFIG = {
    "displayModeBar": False,
    "scrollZoom": False,
    "responsive": True,
}

PLOTLY_LAYOUT = dict(
    dragmode=False,
    template="plotly_dark",
    margin=dict(l=50, r=20, t=40, b=35),
    legend=dict(orientation="h", yanchor="bottom", y=1.02),
)


def render_chart(fig, height=350, **kwargs):
    fig.update_layout(**PLOTLY_LAYOUT, height=height, **kwargs)
    st.plotly_chart(fig, use_container_width=True, config=PLOTLY_CONFIG)


def clock_label(minutes: float) -> str:
    """Minutes from 18:00 -> 'HH:MM'."""
    total = int(round(minutes)) + TIMELINE_ORIGIN_HOUR * 60
    return f"{(total // 60) % 24:02d}:{total % 60:02d}"


def blocks_frame(result: SimulationResult) -> pd.DataFrame:
    return pd.DataFrame([
        {
            "stage": STAGE_LABELS[b.stage],
            "level": int(b.stage),
            "start": b.start,
            "end": b.end,
            "duration": b.duration,
            "clock": clock_label(b.start),
        }
        for b in result.blocks
    ])


def hypnogram_figure(
    result: SimulationResult,
    curves: list[dict] | None = None,
    show_s: bool = False,
    show_c: bool = False,
) -> go.Figure:
    df = blocks_frame(result)
    fig = go.Figure()

    # Ideal sleep window by chronotype
    win_start, win_end = IDEAL_SLEEP_WINDOW_MIN[result.params.chronotype.value]
    fig.add_vrect(
        x0=win_start, x1=win_end,
        fillcolor="rgba(74, 222, 128, 0.07)", line_width=0,
        annotation_text="Ideal Sleep Window", annotation_position="top left",
    )

    # Hypnogram step line
    xs, ys = [], []
    for row in df.itertuples():
        xs += [row.start, row.end]
        ys += [row.level, row.level]
    fig.add_trace(go.Scatter(
        x=xs, y=ys, mode="lines", name="Stage",
        line=dict(color="#e2e8f0", width=2),
    ))
    for stage, color in STAGE_COLORS.items():
        part = df[df["level"] == int(stage)]
        if part.empty:
            continue
        fig.add_trace(go.Bar(
            x=part["duration"], base=part["start"], y=[int(stage)] * len(part),
            orientation="h", marker_color=color, opacity=0.6,
            name=STAGE_LABELS[stage], width=0.8,
            customdata=part[["clock", "duration"]],
            hovertemplate="%{customdata[0]} · %{customdata[1]:.0f} min<extra></extra>",
        ))

    # Micro-arousals / nocturia (overlay only)
    for ev in result.wake_events:
        fig.add_vline(
            x=ev.time, line_width=1, opacity=0.5,
            line_color="#ef4444" if ev.kind == "micro" else "#f472b6",
        )

    # End of sleep marker (time in bed)
    fig.add_vline(
        x=result.sleep_end, line_dash="dash", line_color="#fff",
        annotation_text=f"End of Sleep ({result.params.time_in_bed / 60:.1f}h)",
    )

    # Two-process overlay, scaled onto the stage axis (1.0 = top row)
    cdf = pd.DataFrame(curves or [])
    if show_s and not cdf.empty:
        fig.add_trace(go.Scatter(
            x=cdf["t"], y=4 - cdf["effective_s"] * 4, name="Sleep Drive (S)",
            line=dict(color="#facc15", width=3),
        ))
    if show_c and not cdf.empty:
        fig.add_trace(go.Scatter(
            x=cdf["t"], y=4 - cdf["process_c"] * 4, name="Circadian (C)",
            line=dict(color="#a78bfa", width=3),
        ))

    ticks = list(range(0, TIMELINE_SPAN_MIN + 1, 120))
    fig.update_xaxes(
        range=[0, TIMELINE_SPAN_MIN], tickvals=ticks,
        ticktext=[clock_label(t) for t in ticks], fixedrange=True,
    )
    fig.update_yaxes(
        tickvals=[int(s) for s in SleepStage],
        ticktext=[STAGE_LABELS[s] for s in SleepStage],
        autorange="reversed", fixedrange=True,
    )
    return fig


def stage_pie(result: SimulationResult) -> go.Figure:
    stats = result.stats
    wake_share = stats.waso_minutes / stats.actual_total_sleep if stats.actual_total_sleep else 0.0
    labels = ["N3 (Deep)", "REM", "N2 (Light)", "N1 (Dozing)", "Wake"]
    values = [stats.n3_fraction, stats.rem_fraction, stats.n2_fraction, stats.n1_fraction, wake_share]
    colors = [
        STAGE_COLORS[SleepStage.N3], STAGE_COLORS[SleepStage.REM],
        STAGE_COLORS[SleepStage.N2], STAGE_COLORS[SleepStage.N1],
        STAGE_COLORS[SleepStage.WAKE],
    ]
    fig = go.Figure(go.Pie(labels=labels, values=values, marker_colors=colors, sort=False, hole=0.3))
    return fig


def efficiency_color(se: float) -> str:
    if se < 75:
        return "inverse"
    if se < 85:
        return "off"
    return "normal"


def show_metrics(result: SimulationResult):
    stats = result.stats
    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Time in Bed", f"{stats.time_in_bed / 60:.1f}h")
    m2.metric("Total Sleep", f"{stats.actual_total_sleep / 60:.1f}h")
    m3.metric(
        "Efficiency", f"{stats.sleep_efficiency_percent:.0f}%",
        delta=f"{stats.sleep_efficiency_percent - 85:.0f} vs 85%",
        delta_color=efficiency_color(stats.sleep_efficiency_percent),
    )
    m4.metric("Wake/Latency", f"{stats.waso_minutes + stats.latency_minutes:.0f}m")


def config_inputs(name: str, current: SleepConfig) -> dict:
    """Sidebar widgets for one profile; returns changed field values."""
    st.subheader(f"Profile {name}")
    gender = st.radio(
        "Gender", ["male", "female", "other"],
        index=["male", "female", "other"].index(current.gender.value),
        horizontal=True, key=f"{name}_gender",
    )
    age = st.slider("Age", 0, 100, current.age, key=f"{name}_age")
    chronotype = st.selectbox(
        "Chronotype", ["lark", "normal", "owl"],
        index=["lark", "normal", "owl"].index(current.chronotype.value),
        key=f"{name}_chronotype",
    )
    caffeine = st.slider("Caffeine (cups)", 0, 10, current.caffeine, key=f"{name}_caffeine")
    caffeine_time = st.slider(
        "Caffeine (h before bed)", 0, 12, int(current.caffeine_time), key=f"{name}_caffeine_time",
    )
    metabolism = st.radio(
        "Caffeine metabolism", ["fast", "normal", "slow"],
        index=["fast", "normal", "slow"].index(current.caffeine_metabolism.value),
        horizontal=True, key=f"{name}_metabolism",
    )
    alcohol = st.slider("Alcohol (drinks)", 0, 10, current.alcohol, key=f"{name}_alcohol")
    sdb = st.slider("Sleep apnea severity", 0, 10, current.sdb_severity, key=f"{name}_sdb")
    nocturia = st.slider("Nocturia (events)", 0, 10, current.nocturia, key=f"{name}_nocturia")
    social_jet_lag = st.toggle("Social jet lag", current.social_jet_lag, key=f"{name}_sjl")
    blue_light = st.toggle("Evening screens", current.blue_light, key=f"{name}_blue")

    is_menopausal = False
    if gender == "female" and 40 <= age <= 60:
        is_menopausal = st.toggle("Menopausal", current.is_menopausal, key=f"{name}_meno")

    return dict(
        gender=gender, age=age, chronotype=chronotype, caffeine=caffeine,
        caffeine_time=caffeine_time, caffeine_metabolism=metabolism, alcohol=alcohol,
        sdb_severity=sdb, nocturia=nocturia, social_jet_lag=social_jet_lag,
        blue_light=blue_light, is_menopausal=is_menopausal,
    )


# --- Page Config ---
st.set_page_config(
    page_title="Sleep-Simulator",
    page_icon=None,
    layout="wide",
    initial_sidebar_state="expanded",
)

if "profiles" not in st.session_state:
    st.session_state.profiles = ProfileComparison(generator=api_generate)
profiles: ProfileComparison = st.session_state.profiles

# =========================================================
# SIDEBAR: Profile inputs
# =========================================================
with st.sidebar:
    st.title("Sleep-Simulator")
    show_s = st.toggle("Show Sleep Drive (S)", False)
    show_c = st.toggle("Show Circadian (C)", False)
    tab_a, tab_b = st.tabs(["Profile A", "Profile B"])
    with tab_a:
        profiles["A"].update(**config_inputs("A", profiles["A"].config))
    with tab_b:
        profiles["B"].update(**config_inputs("B", profiles["B"].config))
    if st.button("Re-roll", use_container_width=True):
        for session in profiles.profiles.values():
            session.regenerate()

# =========================================================
# MAIN: A/B hypnograms
# =========================================================
for name in ProfileComparison.NAMES:
    session = profiles[name]
    result = session.result()
    st.markdown(f"### Profile {name}")
    if result is None:
        st.info("No data: API unreachable.")
        continue

    curves = fetch_curves(session.config) if (show_s or show_c) else None

    chart_col, pie_col = st.columns([3, 1])
    with chart_col:
        render_chart(hypnogram_figure(result, curves, show_s, show_c), height=380)
    with pie_col:
        render_chart(stage_pie(result), height=300, showlegend=False)
    show_metrics(result)

    with st.expander("Blocks"):
        st.dataframe(blocks_frame(result), use_container_width=True)
