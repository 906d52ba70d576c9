"""Browser front end: streamlit run batsim/web_app.py"""

import csv

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from batsim.core import aggregate_daily_data, default_window, run_simulation, steps_to_dataframe
from batsim.data_loader import POWER_UNITS, ColumnMapping, guess_mapping, read_csv_frame, readings_from_frame
from batsim.formatting import currency_format, date_format, number_format
from batsim.models import BatteryConfig, InvalidInputError, SimulationWindow
from batsim.tariffs import Tariffs, compare_costs

st.set_page_config(page_title="Home Battery Simulator", layout="wide", initial_sidebar_state="expanded")
st.title("Home Battery Simulator")

defaults = BatteryConfig()
default_tariffs = Tariffs()

uploaded = st.file_uploader("Meter data (CSV)", type=["csv"])
if uploaded is None:
    st.info("Upload a CSV export of your meter to start.")
    st.stop()

uploaded.seek(0)
try:
    raw_df = read_csv_frame(uploaded)
except (InvalidInputError, ValueError, UnicodeDecodeError, csv.Error, pd.errors.ParserError) as e:
    st.error(f"Error parsing CSV: {e}")
    st.stop()

columns = list(raw_df.columns)
guess = guess_mapping(columns)


def _index(name):
    return columns.index(name) if name in columns else 0


with st.expander("Columns", expanded=True):
    col1, col2, col3, col4, col5 = st.columns(5)
    mapping = ColumnMapping(
        date=col1.selectbox("Date", columns, index=_index(guess.date)),
        consumption=col2.selectbox("Consumption", columns, index=_index(guess.consumption)),
        production=col3.selectbox("Production", columns, index=_index(guess.production)),
        meter=col4.selectbox("Net meter", columns, index=_index(guess.meter)),
        power_unit=col5.selectbox("Unit", list(POWER_UNITS)),
    )

try:
    readings = readings_from_frame(raw_df, mapping)
    readings.sort(key=lambda r: r.timestamp)
    span = default_window(readings)
except InvalidInputError as e:
    st.error(str(e))
    st.stop()

# Sidebar - parameter selection
st.sidebar.header("Battery")
capacity = st.sidebar.number_input("Capacity (kWh)", min_value=0.0, value=defaults.capacity_kwh, step=0.1)
charge_rate = st.sidebar.number_input("Max charge rate (kW)", min_value=0.0, value=defaults.max_charge_rate_kw, step=0.1)
discharge_rate = st.sidebar.number_input(
    "Max discharge rate (kW)", min_value=0.0, value=defaults.max_discharge_rate_kw, step=0.1
)
initial_soc = st.sidebar.slider("Initial SoC (%)", min_value=0.0, max_value=100.0, value=defaults.initial_soc_percent)
battery_cost = st.sidebar.number_input("Battery cost (CHF)", min_value=0.0, value=defaults.cost, step=100.0)

st.sidebar.header("Tariffs")
import_price = st.sidebar.number_input(
    "Import (CHF/kWh)", min_value=0.0, value=default_tariffs.import_price, step=0.001, format="%.4f"
)
export_price = st.sidebar.number_input(
    "Export (CHF/kWh)", min_value=0.0, value=default_tariffs.export_price, step=0.001, format="%.4f"
)

st.sidebar.header("Period")
from_date = st.sidebar.date_input("From", value=span.from_date, min_value=span.from_date, max_value=span.until_date)
until_date = st.sidebar.date_input("Until", value=span.until_date, min_value=span.from_date, max_value=span.until_date)

try:
    config = BatteryConfig(capacity, charge_rate, discharge_rate, initial_soc, battery_cost)
    window = SimulationWindow(from_date=from_date, until_date=until_date)
    tariffs = Tariffs(import_price=import_price, export_price=export_price)
except InvalidInputError as e:
    st.error(str(e))
    st.stop()

try:
    result = run_simulation(readings, config, window, record_steps=True)
except InvalidInputError as e:
    st.error(str(e))
    st.stop()
comparison = compare_costs(result, tariffs)

if result.last_date is None:
    st.warning("No readings inside the selected period.")
    st.stop()

st.subheader(f"{date_format(result.first_date)} - {date_format(result.last_date)}")

col1, col2, col3 = st.columns(3)
with col1:
    st.markdown("<h4>Without battery</h4>", unsafe_allow_html=True)
    st.metric("Grid import", f"{number_format(result.original_energy_import)} kWh")
    st.metric("Grid export", f"{number_format(result.original_energy_export)} kWh")
    st.metric("Cost", currency_format(comparison.cost_without_battery))
with col2:
    st.markdown("<h4>With battery</h4>", unsafe_allow_html=True)
    st.metric("Grid import", f"{number_format(result.with_battery_energy_import)} kWh")
    st.metric("Grid export", f"{number_format(result.with_battery_energy_export)} kWh")
    st.metric("Cost", currency_format(comparison.cost_with_battery))
with col3:
    st.markdown("<h4>Battery</h4>", unsafe_allow_html=True)
    st.metric("Savings", currency_format(comparison.savings))
    st.metric("Avg. daily min / max SoC", f"{number_format(result.battery_min_avg)} / {number_format(result.battery_max_avg)} kWh")
    st.metric("Equivalent full cycles", number_format(result.equivalent_full_cycles))

steps_df = steps_to_dataframe(result)
daily_df = aggregate_daily_data(steps_df)

# --- SoC Plot ---
fig = go.Figure()
fig.add_trace(go.Scatter(x=steps_df["timestamp"], y=steps_df["battery_soc"], mode="lines", name="SoC", line=dict(color="green")))
fig.update_layout(title="Battery State of Charge", xaxis_title="Time", yaxis_title="kWh", showlegend=True)
st.plotly_chart(fig, use_container_width=True)

# --- Grid Import/Export Plot (Daily) ---
fig_grid = go.Figure()
fig_grid.add_trace(go.Bar(x=daily_df["date"], y=daily_df["original_import"], name="Grid Import (without)", marker_color="purple"))
fig_grid.add_trace(go.Bar(x=daily_df["date"], y=daily_df["grid_import"], name="Grid Import (with battery)", marker_color="red"))
fig_grid.add_trace(go.Bar(x=daily_df["date"], y=daily_df["original_export"], name="Grid Export (without)", marker_color="orange"))
fig_grid.add_trace(go.Bar(x=daily_df["date"], y=daily_df["grid_export"], name="Grid Export (with battery)", marker_color="gold"))
fig_grid.update_layout(barmode="group", title="Daily Grid Import/Export", xaxis_title="Date", yaxis_title="kWh")
st.plotly_chart(fig_grid, use_container_width=True)

st.download_button(
    "Download daily results (CSV)",
    daily_df.to_csv(index=False, sep=";", decimal=",", float_format="%.3f"),
    file_name="battery_daily.csv",
)
