"""Streamlit dashboard for UrbanNexus.

Simulated urban, health and agriculture metrics form the baseline for the
selected city; live readings (OpenWeatherMap, TomTom, WHO, FAOSTAT) replace
baseline fields whenever a provider answers. Scenario sliders perturb both
alike, and every section degrades to deterministic values when offline.
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import Dict

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from urbannexus.airquality import aqi_status, fetch_aqi_history
from urbannexus.constants import (
    DEFAULT_POINT,
    DEFAULT_REFRESH_SECONDS,
    DEFAULT_SERIES_LENGTH,
    HEATMAP_DISTRICTS,
    HEATMAP_HOURS,
    METRIC_LABELS,
    MIN_SEARCH_LENGTH,
)
from urbannexus.dashboard import append_sample, build_snapshot, heatmap_frame, heatmap_matrix, time_series_frame
from urbannexus.flood import calculate_flood_risk
from urbannexus.location import search_locations
from urbannexus.models import (
    DEFAULT_SCENARIO,
    SCENARIO_RANGES,
    AgricultureMetrics,
    CitySnapshot,
    HealthMetrics,
    ScenarioError,
    UrbanMetrics,
    metric_names,
    to_flat_dict,
)
from urbannexus.prediction import aqi_trend_analysis
from urbannexus.providers import registry
from urbannexus.scoring import compute_scores
from urbannexus.simulator import generate_time_series
from urbannexus.traffic import congestion_color, fetch_traffic_incidents, peak_hour_profile, predict_traffic
from urbannexus.weather import fetch_forecast, fetch_weather_history


st.set_page_config(page_title="UrbanNexus — City Health", layout="wide")


SCENARIO_LABELS: Dict[str, str] = {
    "rainfall": "Rainfall change (%)",
    "temperature": "Temperature change (°C)",
    "population_density": "Population density change (%)",
    "food_supply_shock": "Food supply shock (%)",
    "energy_demand": "Energy demand change (%)",
}

RISK_COLORS: Dict[str, str] = {
    "low": "#22c55e",
    "medium": "#eab308",
    "high": "#f97316",
    "critical": "#ef4444",
}

TREND_METRICS = metric_names(UrbanMetrics) + metric_names(HealthMetrics) + metric_names(AgricultureMetrics)
DEFAULT_TRENDS = ["traffic_congestion", "air_quality_index", "emergency_load"]


def _initialise_session_state() -> None:
    st.session_state.setdefault("point", DEFAULT_POINT.copy())
    st.session_state.setdefault("scenario", DEFAULT_SCENARIO)
    st.session_state.setdefault("series", ())


def _gauge(snapshot: CitySnapshot) -> go.Figure:
    index = snapshot.city_health
    return go.Figure(
        go.Indicator(
            mode="gauge+number",
            value=index.overall,
            title={"text": f"City Health Index · {index.risk_level}"},
            gauge={
                "axis": {"range": [0, 100]},
                "bar": {"color": RISK_COLORS[index.risk_level]},
                "steps": [
                    {"range": [0, 40], "color": "#fee2e2"},
                    {"range": [40, 55], "color": "#ffedd5"},
                    {"range": [55, 70], "color": "#fef9c3"},
                    {"range": [70, 100], "color": "#dcfce7"},
                ],
            },
        )
    ).update_layout(margin=dict(l=20, r=20, t=40, b=20), height=260)


def _radar_chart(scores: Dict[str, float]) -> go.Figure:
    categories = ["Urban", "Health", "Agriculture"]
    values = [round(scores[key], 1) for key in ["urban", "health", "agriculture"]]
    return go.Figure(
        data=go.Scatterpolar(
            r=values + values[:1], theta=categories + categories[:1], fill="toself"
        )
    ).update_layout(
        polar={"radialaxis": {"visible": True, "range": [0, 100]}},
        showlegend=False,
        margin=dict(l=20, r=20, t=20, b=20),
        height=260,
    )


def _heatmap_figure(snapshot: CitySnapshot) -> go.Figure:
    matrix = heatmap_matrix(snapshot.heatmap)
    labels = heatmap_frame(snapshot.heatmap).pivot(index="y", columns="x", values="label")
    return go.Figure(
        data=go.Heatmap(
            z=matrix,
            text=labels.to_numpy(),
            hovertemplate="%{text}: %{z:.0f}<extra></extra>",
            x=HEATMAP_HOURS[: matrix.shape[1]],
            y=HEATMAP_DISTRICTS[: matrix.shape[0]],
            colorscale="RdYlGn_r",
            zmin=0,
            zmax=100,
        )
    ).update_layout(margin=dict(l=20, r=20, t=20, b=20), height=320)


def _metric_table(snapshot: CitySnapshot) -> pd.DataFrame:
    rows = []
    for group_name, group in (
        ("Urban", snapshot.urban),
        ("Health", snapshot.health),
        ("Agriculture", snapshot.agriculture),
    ):
        for key, value in to_flat_dict(group).items():
            rows.append({"Group": group_name, "Metric": METRIC_LABELS.get(key, key), "Value": round(value, 1)})
    return pd.DataFrame(rows)


def _scenario_sidebar() -> None:
    st.sidebar.header("Scenario")
    scenario = st.session_state.scenario
    patch = {}
    for name, (low, high) in SCENARIO_RANGES.items():
        patch[name] = st.sidebar.slider(
            SCENARIO_LABELS[name],
            min_value=low,
            max_value=high,
            value=float(getattr(scenario, name)),
            step=1.0,
        )
    try:
        st.session_state.scenario = scenario.update(**patch)
    except ScenarioError as exc:
        st.sidebar.error(str(exc))
    if st.sidebar.button("Reset scenario"):
        st.session_state.scenario = DEFAULT_SCENARIO
        st.rerun()


def _location_sidebar() -> None:
    st.sidebar.header("Location")
    point = st.session_state.point
    query = st.sidebar.text_input("Search for a place", key="location_query")
    matches = search_locations(query) if query else []
    if matches:
        choice = st.sidebar.selectbox(
            "Matches", range(len(matches)), format_func=lambda i: matches[i].address or matches[i].name
        )
        if st.sidebar.button("Go to place"):
            match = matches[choice]
            st.session_state.point = {"name": match.name, "lat": match.lat, "lon": match.lon}
            st.rerun()
    elif len(query.strip()) >= MIN_SEARCH_LENGTH:
        st.sidebar.caption("No matching places.")

    name = st.sidebar.text_input("City name", value=point["name"])
    lat = st.sidebar.number_input("Latitude", value=float(point["lat"]), format="%.4f")
    lon = st.sidebar.number_input("Longitude", value=float(point["lon"]), format="%.4f")
    st.session_state.point = {"name": name, "lat": lat, "lon": lon}


def main() -> None:
    _initialise_session_state()
    _location_sidebar()
    _scenario_sidebar()

    st.sidebar.header("Data sources")
    use_live = st.sidebar.checkbox("Use live providers", value=True)
    auto_refresh = st.sidebar.checkbox(f"Refresh every {DEFAULT_REFRESH_SECONDS}s", value=False)
    disabled = [name for name, off in registry.snapshot().items() if off]
    if disabled:
        st.sidebar.warning("Disabled: " + ", ".join(disabled))
        if st.sidebar.button("Re-enable providers"):
            registry.reset()
            st.rerun()

    point = st.session_state.point
    scenario = st.session_state.scenario
    snapshot = build_snapshot(point["lat"], point["lon"], scenario, live=use_live)
    st.session_state.series = append_sample(
        st.session_state.series, snapshot.as_sample(), limit=DEFAULT_SERIES_LENGTH
    )

    st.title(f"🌆 UrbanNexus — {point['name']}")
    st.caption(
        f"Updated {snapshot.timestamp:%H:%M:%S} · "
        f"{'Live data merged over simulation' if snapshot.data_source == 'live' else 'Simulated baseline'}"
        f"{'' if scenario.is_baseline else ' · scenario applied'}"
    )
    for note in snapshot.notes:
        st.caption(note)

    tab_overview, tab_trends, tab_weather, tab_traffic = st.tabs(
        ["📊 Overview", "📈 Trends", "🌧️ Weather & Flood", "🚦 Traffic"]
    )

    with tab_overview:
        col_gauge, col_radar = st.columns(2)
        with col_gauge:
            st.plotly_chart(_gauge(snapshot), use_container_width=True)
            trend = snapshot.city_health.trend
            st.metric("Trend", trend.title())
        with col_radar:
            scores = compute_scores(snapshot.urban, snapshot.health, snapshot.agriculture)
            st.plotly_chart(_radar_chart(scores), use_container_width=True)

        aqi = snapshot.urban.air_quality_index
        st.metric("Air quality index", f"{aqi:.0f}", help=aqi_status(aqi))
        st.dataframe(_metric_table(snapshot), hide_index=True, use_container_width=True)
        st.subheader("District risk by hour")
        st.plotly_chart(_heatmap_figure(snapshot), use_container_width=True)

    with tab_trends:
        history = generate_time_series(point["lat"], point["lon"], scenario=scenario, now=datetime.now())
        frame = time_series_frame(history)
        st.subheader("Last 24 hours (simulated)")
        shown = st.multiselect(
            "Metrics",
            TREND_METRICS,
            default=DEFAULT_TRENDS,
            format_func=lambda name: METRIC_LABELS.get(name, name),
        )
        if shown:
            st.line_chart(frame[shown])
        if len(st.session_state.series) > 1:
            st.subheader("This session")
            st.line_chart(time_series_frame(st.session_state.series)[["air_quality_index"]])

        st.subheader("AQI outlook")
        aqi_history = fetch_aqi_history(point["lat"], point["lon"]) if use_live else []
        if aqi_history:
            projection = aqi_trend_analysis(aqi_history, point["name"])
            chart = pd.DataFrame(
                {"AQI": [p.aqi for p in projection.history] + [projection.aqi]},
                index=[p.year for p in projection.history] + [projection.year],
            )
            st.bar_chart(chart)
            st.write(projection.analysis)
        else:
            st.caption("Enable live providers to load the yearly AQI history.")

    with tab_weather:
        weather = snapshot.weather
        forecast = fetch_forecast(point["lat"], point["lon"]) if use_live else []
        observed = fetch_weather_history(point["lat"], point["lon"]) if use_live else []
        if weather is not None:
            weather = weather.with_forecast(forecast)
            cols = st.columns(4)
            cols[0].metric("Temperature", f"{weather.temp:.1f} °C" if weather.temp is not None else "—")
            cols[1].metric("Humidity", f"{weather.humidity:.0f}%" if weather.humidity is not None else "—")
            cols[2].metric("Pressure", f"{weather.pressure:.0f} hPa" if weather.pressure is not None else "—")
            cols[3].metric("Conditions", weather.description or "—")

        risk = calculate_flood_risk(observed, scenario.rainfall, weather)
        st.subheader("Flood risk")
        st.progress(risk.probability / 100, text=f"{risk.probability}% · {risk.level}")
        st.caption(risk.message)
        if forecast:
            st.line_chart(
                pd.DataFrame(
                    {"Temperature": [f.temp for f in forecast], "Rain chance": [f.pop * 100 for f in forecast]},
                    index=[datetime.fromtimestamp(f.dt) for f in forecast],
                )
            )

    with tab_traffic:
        congestion = snapshot.urban.traffic_congestion
        st.metric("Current congestion", f"{congestion:.0f}%")
        st.markdown(
            f"<div style='height:8px;border-radius:4px;background:{congestion_color(congestion)}'></div>",
            unsafe_allow_html=True,
        )
        hotspots = fetch_traffic_incidents(point["lat"], point["lon"]) if use_live else []
        peak_hours = None
        if hotspots:
            st.subheader("Incident hotspots")
            st.dataframe(
                pd.DataFrame(
                    [
                        {
                            "Incident": spot.name,
                            "Type": spot.incident_type,
                            "Congestion": spot.current_congestion,
                            "Delay (min)": spot.delay,
                            "Status": spot.predicted_status,
                        }
                        for spot in hotspots
                    ]
                ),
                hide_index=True,
                use_container_width=True,
            )
            selected = st.selectbox(
                "Predict around",
                [None, *range(len(hotspots))],
                format_func=lambda i: "City average" if i is None else hotspots[i].name,
            )
            if selected is not None:
                congestion = float(hotspots[selected].current_congestion)
                peak_hours = hotspots[selected].peak_hours
        elif use_live:
            st.caption("No reported incidents nearby.")

        profile = peak_hours or peak_hour_profile(congestion, point["lat"], point["lon"])
        hour = st.slider("Predict for hour", 0, 23, datetime.now().hour)
        prediction = predict_traffic(congestion, hour, peak_hours=peak_hours, weather=snapshot.weather)
        st.metric(
            f"Predicted congestion at {hour:02d}:00",
            f"{prediction.predicted_value}%",
            delta=prediction.trend,
        )
        st.bar_chart(pd.DataFrame({"Level": [level for _, level in profile]}, index=[h for h, _ in profile]))

    if auto_refresh:
        time.sleep(DEFAULT_REFRESH_SECONDS)
        st.rerun()


if __name__ == "__main__":
    main()
