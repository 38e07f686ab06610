import logging

import streamlit as st
import pandas as pd
import numpy as np
import plotly.express as px
import plotly.graph_objects as go

from components.benchmark import BenchConfig, KEY_KINDS, build_map, collation, generate_keys, run_benchmark, tombstone_growth
from tst.tst_map import WILDCARD

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# Configure page
st.set_page_config(
    page_title="TST Bench",
    page_icon="🌳",
    layout="wide",
    initial_sidebar_state="expanded"
)

st.title("🌳 Ternary Search Tree Bench")
st.markdown("---")

# Sidebar
with st.sidebar:
    st.header("Navigation")
    page = st.selectbox(
        "Choose a section:",
        ["Home", "Build", "Query", "Benchmark"]
    )

    st.markdown("---")
    st.subheader("Workload")
    key_kind = st.selectbox("Key kind", KEY_KINDS)
    num_keys = st.number_input("Number of keys", min_value=1, max_value=200_000, value=2_000, step=500)
    p_freq = st.slider("Prefix clustering", 0.0, 1.0, 0.0, 0.05, disabled=(key_kind != "words"))
    seed = st.number_input("Seed", min_value=0, value=42, step=1)
    case_insensitive = st.checkbox("Case-insensitive collation")

    if st.button("🔄 Reset map"):
        st.session_state.pop('tst', None)
        st.session_state.pop('collation', None)
        st.rerun()


def current_config():
    return BenchConfig(num_keys=int(num_keys), key_kind=key_kind, p_freq=float(p_freq),
                       case_insensitive=bool(case_insensitive), seed=int(seed))


def results_frame(pairs):
    return pd.DataFrame(pairs, columns=["key", "value"])


if page == "Home":
    st.header("Welcome")
    st.markdown(f"""
    A ternary search tree maps string keys to values with one node per
    character position. This app builds maps from generated workloads and
    exercises every operation:

    **Operations:**
    - 🔑 insert / find / remove (removal leaves a tombstone, nodes are kept)
    - 🃏 partial-match search (`{WILDCARD}` matches any single character)
    - 🔍 near-neighbor search (bounded character substitutions)
    - ⏱️ timing of every operation family
    """)

    m = st.session_state.get('tst')
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Keys", m.size() if m is not None else 0)
    with col2:
        st.metric("Nodes", m.count_nodes() if m is not None else 0)
    with col3:
        st.metric("Avg branching", f"{m.count_nodes(get_avg_branch_factor=True):.2f}" if m is not None else "0")
    with col4:
        st.metric("Collation", st.session_state.get('collation', "-"))

elif page == "Build":
    st.header("🏗️ Build a map")

    if st.button("Generate workload and build"):
        try:
            cfg = current_config()
            keys = generate_keys(cfg)
            m = build_map(keys, collate=collation(cfg))
            st.session_state['tst'] = m
            st.session_state['collation'] = "casefold" if cfg.case_insensitive else "code point"
            st.session_state['keys'] = keys
            logger.info("Built map with %d keys and %d nodes", m.size(), m.count_nodes())
            st.success(f"✅ Built map: {m.size()} keys, {m.count_nodes()} nodes")
        except ValueError as e:
            st.error(f"❌ Invalid workload: {e}")

    m = st.session_state.get('tst')
    if m is not None:
        keys = st.session_state['keys']
        lengths = pd.Series([len(k) for k in keys], name="length")

        col1, col2 = st.columns(2)
        with col1:
            st.write("**First 20 entries (traversal order):**")
            st.dataframe(results_frame(m.to_sequence()[:20]))
        with col2:
            st.write("**Structure:**")
            st.write(f"- Keys: {m.size()}")
            st.write(f"- Nodes: {m.count_nodes()}")
            st.write(f"- Nodes per key: {m.count_nodes() / max(m.size(), 1):.2f}")
            st.write(f"- Mean key length: {lengths.mean():.2f}")

        fig = px.histogram(lengths.to_frame(), x="length", title="Key length distribution")
        st.plotly_chart(fig, use_container_width=True)
    else:
        st.info("👆 Generate a workload to build a map")

elif page == "Query":
    st.header("🔍 Query")

    m = st.session_state.get('tst')
    if m is None:
        st.info("🏗️ Please build a map in the 'Build' section first")
    else:
        tab1, tab2, tab3, tab4 = st.tabs(["Find", "Partial match", "Near search", "Edit"])

        with tab1:
            key = st.text_input("Key", key="find_key")
            if key:
                if key in m:
                    st.success(f"✅ {key!r} -> {m.find(key)!r}")
                else:
                    st.warning(f"⚠️ {key!r} not found")

        with tab2:
            pattern = st.text_input(f"Pattern ('{WILDCARD}' = any character)", key="pm_pattern")
            if pattern:
                found = m.partial_match(pattern)
                st.write(f"**{len(found)} matches**")
                st.dataframe(results_frame(found))

        with tab3:
            query = st.text_input("Query", key="ns_query")
            budget = st.slider("Max mismatches", 0, 5, 1)
            if query:
                found = m.near_search(query, budget)
                st.write(f"**{len(found)} matches**")
                st.dataframe(results_frame(found))

        with tab4:
            key = st.text_input("Key", key="edit_key")
            value = st.text_input("Value", key="edit_value")
            col1, col2 = st.columns(2)
            with col1:
                if st.button("Insert") and key:
                    m.insert(key, value)
                    st.success(f"✅ Stored {key!r}; size is now {m.size()}")
            with col2:
                if st.button("Remove") and key:
                    if m.remove(key):
                        st.success(f"✅ Removed {key!r}; nodes kept: {m.count_nodes()}")
                    else:
                        st.warning(f"⚠️ {key!r} not found")

elif page == "Benchmark":
    st.header("⏱️ Benchmark")

    col1, col2, col3 = st.columns(3)
    with col1:
        repeats = st.number_input("Repeats", min_value=1, max_value=20, value=3)
    with col2:
        max_mismatches = st.number_input("Near-search budget", min_value=0, max_value=5, value=1)
    with col3:
        wildcard_p = st.slider("Wildcard probability", 0.0, 1.0, 0.3, 0.05)

    if st.button("Run benchmark"):
        try:
            cfg = BenchConfig(num_keys=int(num_keys), key_kind=key_kind, p_freq=float(p_freq),
                              repeats=int(repeats), max_mismatches=int(max_mismatches),
                              wildcard_p=float(wildcard_p), case_insensitive=bool(case_insensitive),
                              seed=int(seed))
        except ValueError as e:
            st.error(f"❌ Invalid benchmark config: {e}")
        else:
            with st.spinner("Timing operations..."):
                keys = generate_keys(cfg)
                df = run_benchmark(cfg, keys)
                growth = tombstone_growth(list(dict.fromkeys(keys))[:1_000], collate=collation(cfg))
            st.session_state['bench'] = df
            st.session_state['growth'] = growth

    if 'bench' in st.session_state:
        df = st.session_state['bench']
        st.subheader("Per-operation cost")
        st.dataframe(df, use_container_width=True)

        fig = px.bar(df, x="operation", y="per_op_us", title="Median time per operation (µs)",
                     log_y=bool(np.ptp(df["per_op_us"].to_numpy()) > 100))
        st.plotly_chart(fig, use_container_width=True)

        growth = st.session_state['growth']
        st.subheader("Tombstone growth")
        fig_growth = go.Figure()
        for phase, part in growth.groupby("phase"):
            fig_growth.add_trace(go.Scatter(x=part["cycle"], y=part["nodes"], mode='markers+lines', name=f"nodes ({phase})"))
        fig_growth.add_trace(go.Bar(x=growth["cycle"], y=growth["size"], name="live keys", opacity=0.4))
        fig_growth.update_layout(title="Node count across insert/remove cycles", xaxis_title="Cycle", yaxis_title="Count")
        st.plotly_chart(fig_growth, use_container_width=True)
    else:
        st.info("▶️ Run a benchmark to see timings")

# Footer
st.markdown("---")
st.markdown(
    """
    <div style='text-align: center; color: #B0B0B0; padding: 1rem;'>
        Built with Streamlit 🚀 | TST Bench
    </div>
    """,
    unsafe_allow_html=True
)
