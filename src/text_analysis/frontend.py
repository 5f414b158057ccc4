"""Streamlit rendering of the text analysis page.

Run with: streamlit run src/text_analysis/frontend.py
"""

import asyncio

import streamlit as st

from text_analysis.charts import score_figure
from text_analysis.rendering import chart_data, edu_score_panel, table_rows, toxicity_panel
from text_analysis.scoring import ScoringClient
from text_analysis.view import ClientView

st.set_page_config(page_title="Text Analysis", page_icon="📊")

st.title("📊 Text Analysis with Visualization")

# One view per browser session; the log history is fetched once on first load.
if "view" not in st.session_state:
    st.session_state.view = ClientView(ScoringClient())
    asyncio.run(st.session_state.view.load())

view = st.session_state.view

st.caption(f"Scoring service: {view.client.config.base_url}")

text = st.text_area("Text", value=view.text, placeholder="Enter text to analyze", height=120)

col1, col2 = st.columns(2)
if col1.button("Analyze Text", type="primary"):
    with st.spinner("Scoring text..."):
        asyncio.run(view.analyze(text))
if col2.button("Clear Logs"):
    asyncio.run(view.clear_logs())

if view.error:
    st.error(view.error)


def show_panel(title, rows):
    if rows is None:
        return
    st.subheader(title)
    for name, value in rows:
        st.markdown(f"**{name}:** {value}")


show_panel("Toxicity Result", toxicity_panel(view.toxicity_result))
show_panel("Education Score Result", edu_score_panel(view.edu_score_result))

st.subheader("Score Visualization")
st.plotly_chart(score_figure(chart_data(view.logs)), use_container_width=True)

st.subheader("Log History")
rows = table_rows(view.logs)
if rows:
    st.table(rows)
else:
    st.write("No logs yet.")
