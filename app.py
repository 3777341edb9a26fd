"""
XRD Plotter - Streamlit Application
Stacked comparison plots of XRD patterns with offsets and smoothing
"""

import streamlit as st
import pandas as pd
import io
import os
import re
import tempfile
from typing import Optional

# Local imports
from tools.data_loader import load_xrd_file, validate_xrd_data
from tools.exceptions import XRDError
from tools.merge import merge_xrd_series, table_summary
from tools.transform import OrderMethod, transform_xrd_data, to_long_format
from tools.export import create_zip_archive
from components.plots import create_xrd_plot, plot_xrd_patterns
from components.styles import PALETTES, get_style, inject_custom_css
from utils.config import DEFAULT_SETTINGS
from utils.help_texts import get_help
from utils.helpers import make_name_extractor, parse_offset_text
from utils.logger import log_info, log_error, log_file_error, log_merge_complete


# Page configuration
st.set_page_config(
    page_title="XRD Plotter",
    page_icon="📈",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Inject custom CSS
inject_custom_css()


def initialize_session_state():
    """Initialize session state variables"""
    defaults = {
        'files': {},
        'merged': None,

        'import_settings': dict(DEFAULT_SETTINGS['import']),
        'merge_settings': dict(DEFAULT_SETTINGS['merge']),
        'transform_settings': dict(DEFAULT_SETTINGS['transform']),
        'plot_settings': dict(DEFAULT_SETTINGS['plot']),
        'offset_text': ''
    }

    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def sidebar_header():
    """Render sidebar header"""
    st.sidebar.title("XRD Plotter")
    st.sidebar.markdown("---")


def sidebar_file_upload():
    """Render file upload section in sidebar"""
    st.sidebar.header("1. Data Upload")

    settings = st.session_state['import_settings']

    with st.sidebar.expander("Upload XRD Files", expanded=True):
        settings['name_pattern'] = st.text_input(
            "Sample name pattern",
            value=settings['name_pattern'],
            help=get_help('name_pattern')
        )

        uploaded_files = st.file_uploader(
            "Select XRD files",
            type=['xrdml', 'xy', 'txt', 'csv', 'ras'],
            accept_multiple_files=True,
            help=get_help('file_upload')
        )

        if uploaded_files:
            process_uploaded_files(uploaded_files)

        n_files = len(st.session_state['files'])
        if n_files > 0:
            st.success(f"{n_files} files loaded")

        if n_files and st.button("Clear All Files", use_container_width=True):
            st.session_state['files'] = {}
            st.session_state['merged'] = None
            st.rerun()


def process_uploaded_files(uploaded_files):
    """Read uploaded files into session state"""
    try:
        extractor = make_name_extractor(st.session_state['import_settings']['name_pattern'])
    except (ValueError, re.error) as e:
        st.sidebar.error(f"Invalid name pattern: {e}")
        return

    for uploaded_file in uploaded_files:
        if uploaded_file.name in st.session_state['files']:
            continue
        try:
            series = load_xrd_file(io.BytesIO(uploaded_file.getvalue()), uploaded_file.name,
                                   name_extractor=extractor)
        except XRDError as e:
            st.sidebar.error(str(e))
            log_file_error(uploaded_file.name, str(e))
            continue

        is_valid, error_msg = validate_xrd_data(series)
        if is_valid:
            st.session_state['files'][uploaded_file.name] = series
            st.session_state['merged'] = None
        else:
            st.sidebar.error(f"Invalid file {uploaded_file.name}: {error_msg}")
            log_file_error(uploaded_file.name, error_msg)


def sidebar_offsets():
    """Render offset and ordering settings in sidebar"""
    if not st.session_state['files']:
        return

    st.sidebar.header("2. Offsets & Order")

    settings = st.session_state['transform_settings']
    merge_settings = st.session_state['merge_settings']

    with st.sidebar.expander("Offset Options", expanded=True):
        merge_settings['angle_tolerance'] = st.number_input(
            "2θ tolerance",
            value=float(merge_settings['angle_tolerance']),
            min_value=0.0,
            format="%.2e",
            help=get_help('angle_tolerance')
        )

        settings['auto_step'] = st.number_input(
            "Offset step",
            value=float(settings['auto_step']),
            step=50.0,
            help=get_help('auto_step')
        )

        settings['auto_adjust_percent'] = st.slider(
            "Step adjustment (%)",
            min_value=-100,
            max_value=200,
            value=int(settings['auto_adjust_percent']),
            step=10,
            help=get_help('auto_adjust_percent')
        )

        st.session_state['offset_text'] = st.text_area(
            "Custom offsets",
            value=st.session_state['offset_text'],
            placeholder="J_DI_250_AD_ = 200",
            help=get_help('custom_offsets')
        )

        settings['order_method'] = st.selectbox(
            "Sample order",
            options=[m.value for m in OrderMethod],
            index=[m.value for m in OrderMethod].index(OrderMethod.parse(settings['order_method']).value),
            help=get_help('order_method')
        )

        settings['remove_trailing'] = st.checkbox(
            "Remove trailing underscore",
            value=settings['remove_trailing'],
            help=get_help('remove_trailing')
        )


def sidebar_plot_settings():
    """Render plot settings in sidebar"""
    if not st.session_state['files']:
        return

    st.sidebar.header("3. Plot")

    settings = st.session_state['plot_settings']

    with st.sidebar.expander("Plot Options", expanded=True):
        settings['ma_window'] = st.slider(
            "Moving average window",
            min_value=1,
            max_value=51,
            value=int(settings['ma_window']),
            step=2,
            help=get_help('smoothing')
        )

        settings['sqrt_transform'] = st.checkbox(
            "√ Intensity",
            value=settings['sqrt_transform'],
            help=get_help('sqrt_transform')
        )

        palettes = list(PALETTES)
        current = settings['palette'] or 'spectral'
        settings['palette'] = st.selectbox(
            "Palette",
            options=palettes,
            index=palettes.index(current),
            help=get_help('palette')
        )


def get_merged_data() -> Optional[pd.DataFrame]:
    """Merge loaded files, reusing the cached table"""
    settings = st.session_state['merge_settings']
    cache_key = (tuple(st.session_state['files']), settings['angle_tolerance'])
    if st.session_state['merged'] is not None and st.session_state.get('merged_key') == cache_key:
        return st.session_state['merged']

    try:
        merged = merge_xrd_series(
            list(st.session_state['files'].values()),
            theta_col=settings['theta_col'],
            angle_tolerance=settings['angle_tolerance']
        )
    except XRDError as e:
        st.error(f"Merge failed: {e}")
        log_error(f"Merge failed: {e}")
        return None

    summary = table_summary(merged, theta_col=settings['theta_col'])
    log_merge_complete(summary['n_rows'], summary['n_columns'], summary['theta_range'])
    st.session_state['merged'] = merged
    st.session_state['merged_key'] = cache_key
    return merged


def get_transformed_data(merged: pd.DataFrame, apply_offsets: bool = True) -> Optional[pd.DataFrame]:
    """Apply the sidebar offset settings to the merged table"""
    settings = st.session_state['transform_settings']
    try:
        custom_offsets = parse_offset_text(st.session_state['offset_text'])
        return transform_xrd_data(
            merged,
            custom_offsets=custom_offsets if apply_offsets else None,
            auto_step=settings['auto_step'],
            auto_adjust_percent=settings['auto_adjust_percent'],
            theta_col=st.session_state['merge_settings']['theta_col'],
            remove_trailing=settings['remove_trailing'],
            order_method=settings['order_method'],
            apply_offsets=apply_offsets
        )
    except (ValueError, XRDError) as e:
        st.error(f"Offset settings are invalid: {e}")
        return None


def main_panel():
    """Render main panel with tabs"""
    st.title("XRD Pattern Plotter")

    if not st.session_state['files']:
        st.info("Please upload XRD files using the sidebar to get started.")
        show_welcome_message()
        return

    merged = get_merged_data()
    if merged is None:
        return

    tabs = st.tabs(["📈 Stacked Plot", "📋 Data", "💾 Export"])

    with tabs[0]:
        show_plot_tab(merged)

    with tabs[1]:
        show_data_tab(merged)

    with tabs[2]:
        show_export_tab(merged)


def show_welcome_message():
    """Show welcome message"""
    st.markdown("""
    ### Workflow
    1. **Upload** XRD files (XRDML, xy, csv, ras)
    2. Files are **merged** on 2θ; missing angles stay empty
    3. Adjust **offsets** and **sample order** for a stacked comparison
    4. **Export** the tables, an interactive plot or a zip of PNG plots
    """)


def show_plot_tab(merged: pd.DataFrame):
    """Show stacked interactive plot"""
    transformed = get_transformed_data(merged)
    if transformed is None:
        return

    plot_settings = st.session_state['plot_settings']
    style = get_style(plot_settings['style'], palette=plot_settings['palette'])
    fig = create_xrd_plot(
        to_long_format(transformed),
        style=style,
        ma_window=plot_settings['ma_window'],
        sqrt_transform=plot_settings['sqrt_transform']
    )
    fig.update_layout(height=700)
    st.plotly_chart(fig, use_container_width=True)


def show_data_tab(merged: pd.DataFrame):
    """Show merged table and per-sample coverage"""
    theta_col = st.session_state['merge_settings']['theta_col']
    summary = table_summary(merged, theta_col=theta_col)

    col1, col2, col3 = st.columns(3)
    col1.metric("Samples", summary['n_columns'] - 1)
    col2.metric("2θ points", summary['n_rows'])
    col3.metric("2θ range", f"{summary['theta_range'][0]:.2f} – {summary['theta_range'][1]:.2f}")

    coverage = pd.DataFrame({
        'Sample': list(summary['missing']),
        'Missing points': list(summary['missing'].values())
    })
    st.dataframe(coverage, use_container_width=True)

    st.subheader("Merged Table")
    st.dataframe(merged, use_container_width=True)


def build_plot_archive(merged: pd.DataFrame) -> Optional[bytes]:
    """Render PNG plots into a temporary directory and return the zip bytes"""
    plot_table = get_transformed_data(merged, apply_offsets=False)
    if plot_table is None:
        return None

    plot_settings = st.session_state['plot_settings']
    style = get_style(plot_settings['style'], palette=plot_settings['palette'])

    with tempfile.TemporaryDirectory() as tmp_dir:
        try:
            plots = plot_xrd_patterns(
                plot_table,
                output_dir=os.path.join(tmp_dir, 'xrd_plots'),
                ma_window=plot_settings['ma_window'],
                style=style,
                sqrt_transform=plot_settings['sqrt_transform']
            )
        except XRDError as e:
            log_error(str(e))
            st.error(str(e))
            return None
        files = plots['raw'] + plots['smoothed'] + plots['combined']
        zip_path = create_zip_archive(files, zip_dir=os.path.join(tmp_dir, 'zip'))
        with open(zip_path, 'rb') as f:
            data = f.read()

    log_info(f"Prepared zip download with {len(files)} plots")
    return data


def show_export_tab(merged: pd.DataFrame):
    """Show export options"""
    st.header("Export")
    st.markdown(get_help('export'))

    transformed = get_transformed_data(merged)
    if transformed is None:
        return

    col1, col2, col3 = st.columns(3)

    with col1:
        st.download_button(
            "Download Merged CSV",
            data=merged.to_csv(index=False, na_rep=''),
            file_name="xrd_merged.csv",
            mime="text/csv",
            use_container_width=True
        )
        st.download_button(
            "Download Offset CSV",
            data=transformed.to_csv(index=False, na_rep=''),
            file_name="xrd_offset.csv",
            mime="text/csv",
            use_container_width=True
        )

    with col2:
        plot_settings = st.session_state['plot_settings']
        fig = create_xrd_plot(
            to_long_format(transformed),
            style=get_style(plot_settings['style'], palette=plot_settings['palette']),
            ma_window=plot_settings['ma_window'],
            sqrt_transform=plot_settings['sqrt_transform']
        )
        st.download_button(
            "Download Plot HTML",
            data=fig.to_html(include_plotlyjs='cdn'),
            file_name="xrd_plot.html",
            mime="text/html",
            use_container_width=True
        )

    with col3:
        if st.button("Render PNG Plots", use_container_width=True):
            with st.spinner("Rendering plots..."):
                st.session_state['plot_zip'] = build_plot_archive(merged)

        if st.session_state.get('plot_zip'):
            st.download_button(
                "Download Plots ZIP",
                data=st.session_state['plot_zip'],
                file_name="xrd_plots.zip",
                mime="application/zip",
                use_container_width=True
            )


def main():
    """Main application entry point"""
    initialize_session_state()

    # Sidebar
    sidebar_header()
    sidebar_file_upload()
    sidebar_offsets()
    sidebar_plot_settings()

    # Main panel
    main_panel()


if __name__ == "__main__":
    main()
