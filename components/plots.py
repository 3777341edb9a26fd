"""
XRD Visualization Components
Static PNG rendering with matplotlib and interactive plotly figures
"""

import os
import numpy as np
import pandas as pd
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
from matplotlib.colors import to_rgba
from matplotlib.ticker import AutoMinorLocator
import plotly.graph_objects as go
from typing import Dict, List, Optional, Sequence

from components.styles import PlotStyle
from tools.exceptions import XRDConfigurationError
from tools.preprocessing import moving_average, sqrt_intensity
from tools.transform import INTENSITY_COL, OUTPUT_THETA_COL, SAMPLE_COL
from utils.helpers import clean_file_name, strip_prefix
from utils.logger import log_debug

THETA_LABEL = r'2$\theta$ (°)'
SQRT_LABEL = r'$\sqrt{\mathrm{Intensity}}$'
INTENSITY_LABEL = 'Intensity (a.u.)'

COMBINED_NAME = 'Combined_XRD_Patterns.png'
COMBINED_SMOOTHED_NAME = 'Combined_XRD_Patterns_Smoothed.png'


def _new_axes(style: PlotStyle, combined: bool = False):
    fig, ax = plt.subplots(figsize=style.figsize(combined), dpi=style.dpi)
    return fig, ax


def _finish_axes(ax, style: PlotStyle, ylabel: str):
    ax.set_xlabel(THETA_LABEL, fontfamily=style.font_family)
    ax.set_ylabel(ylabel, fontfamily=style.font_family)
    ax.xaxis.set_minor_locator(AutoMinorLocator(style.minor_ticks))
    ax.yaxis.set_minor_locator(AutoMinorLocator(style.minor_ticks))


def _save(fig, file_path: str, style: PlotStyle) -> str:
    os.makedirs(os.path.dirname(file_path) or '.', exist_ok=True)
    fig.savefig(file_path, dpi=style.dpi)
    plt.close(fig)
    log_debug(f"Wrote {file_path}")
    return file_path


def render_sample_plot(x_data: np.ndarray,
                       y_data: np.ndarray,
                       y_smooth: np.ndarray,
                       title: str,
                       color: str,
                       file_path: str,
                       style: PlotStyle,
                       overlay: bool = True,
                       ylabel: str = SQRT_LABEL) -> str:
    """
    Render one sample's pattern to a PNG

    Args:
        x_data: 2theta values
        y_data: Raw intensity
        y_smooth: Moving average of the intensity
        title: Sample display name
        color: Line color
        file_path: Output PNG path
        style: Plot style
        overlay: Draw raw data under the moving average, or the average only
        ylabel: Y axis label

    Returns:
        Path of the written file
    """
    fig, ax = _new_axes(style)

    if overlay:
        ax.plot(x_data, y_data, color=to_rgba(color, style.raw_alpha),
                linewidth=style.raw_linewidth, label='Raw Data')
        ax.plot(x_data, y_smooth, color=color,
                linewidth=style.smooth_linewidth, label='Moving Average')
        ax.legend(loc='upper right', frameon=False, fontsize=style.legend_fontsize + 1)
    else:
        ax.plot(x_data, y_smooth, color=color, linewidth=style.smooth_linewidth)

    ax.set_title(f"XRD Pattern: {title}", fontfamily=style.font_family)
    _finish_axes(ax, style, ylabel)
    fig.tight_layout()

    return _save(fig, file_path, style)


def render_combined_plot(x_data: np.ndarray,
                         all_y_data: Sequence[np.ndarray],
                         all_y_smooth: Sequence[np.ndarray],
                         labels: Sequence[str],
                         colors: Sequence[str],
                         y_max: float,
                         file_path: str,
                         style: PlotStyle,
                         overlay: bool = True,
                         title: Optional[str] = None,
                         ylabel: str = SQRT_LABEL) -> str:
    """
    Render all samples into one PNG

    Args:
        x_data: 2theta values
        all_y_data: Raw intensity per sample
        all_y_smooth: Moving average per sample
        labels: Legend label per sample
        colors: Line color per sample
        y_max: Largest value to show (5% headroom is added)
        file_path: Output PNG path
        style: Plot style
        overlay: Also draw the raw data, semi-transparent
        title: Plot title
        ylabel: Y axis label

    Returns:
        Path of the written file
    """
    if title is None:
        title = "Combined XRD Patterns" if overlay else "Combined XRD Patterns (Smoothed)"

    fig, ax = _new_axes(style, combined=True)

    for y_data, y_smooth, label, color in zip(all_y_data, all_y_smooth, labels, colors):
        if overlay:
            ax.plot(x_data, y_data, color=to_rgba(color, style.combined_raw_alpha),
                    linewidth=style.combined_raw_linewidth)
        ax.plot(x_data, y_smooth, color=color, linewidth=style.smooth_linewidth, label=label)

    if np.isfinite(y_max) and y_max > 0:
        ax.set_ylim(0, y_max * 1.05)

    ax.set_title(title, fontfamily=style.font_family)
    ax.legend(loc='upper right', frameon=False, fontsize=style.legend_fontsize)
    _finish_axes(ax, style, ylabel)
    fig.tight_layout()

    return _save(fig, file_path, style)


def plot_xrd_patterns(data: pd.DataFrame,
                      theta_col: str = OUTPUT_THETA_COL,
                      output_dir: str = 'output/xrd_plots',
                      ma_window: int = 7,
                      style: Optional[PlotStyle] = None,
                      pattern_prefix: Optional[str] = None,
                      sqrt_transform: bool = True) -> Dict[str, List[str]]:
    """
    Plot XRD patterns with moving average smoothing

    Writes per-sample plots to ``raw/`` (raw + moving average) and
    ``smoothed/`` (moving average only), and two combined plots to
    ``combined/``.

    Args:
        data: Wide table with an angle column and one column per sample
        theta_col: Name of the angle column
        output_dir: Directory to save plots
        ma_window: Moving average window size (default: 7)
        style: Plot style (default: PlotStyle())
        pattern_prefix: Regex removed from names for display
        sqrt_transform: Plot the square root of the intensity

    Returns:
        Dictionary with 'raw', 'smoothed' and 'combined' lists of paths
    """
    style = style or PlotStyle()

    data_columns = [c for c in data.columns if c != theta_col]
    clean_names = [clean_file_name(c) for c in data_columns]
    clashes = sorted({n for n in clean_names if clean_names.count(n) > 1})
    if clashes:
        raise XRDConfigurationError(f"Sample names map to the same plot file: {', '.join(clashes)}")

    raw_dir = os.path.join(output_dir, 'raw')
    smoothed_dir = os.path.join(output_dir, 'smoothed')
    combined_dir = os.path.join(output_dir, 'combined')
    for directory in (raw_dir, smoothed_dir, combined_dir):
        os.makedirs(directory, exist_ok=True)

    colors = style.colors_for(len(data_columns))
    ylabel = SQRT_LABEL if sqrt_transform else INTENSITY_LABEL
    x_data = data[theta_col].to_numpy(dtype=float)

    created = {'raw': [], 'smoothed': [], 'combined': []}
    all_y_data = []
    all_y_smooth = []
    display_names = []

    for col_name, clean_name, color in zip(data_columns, clean_names, colors):
        display_name = strip_prefix(col_name, pattern_prefix)

        y_data = data[col_name].to_numpy(dtype=float)
        if sqrt_transform:
            y_data = sqrt_intensity(y_data)
        y_smooth = moving_average(y_data, window=ma_window)

        created['raw'].append(render_sample_plot(
            x_data, y_data, y_smooth, display_name, color,
            os.path.join(raw_dir, f"{clean_name}.png"), style,
            overlay=True, ylabel=ylabel
        ))
        created['smoothed'].append(render_sample_plot(
            x_data, y_data, y_smooth, f"{display_name} (Smoothed)", color,
            os.path.join(smoothed_dir, f"{clean_name}_smoothed.png"), style,
            overlay=False, ylabel=ylabel
        ))

        all_y_data.append(y_data)
        all_y_smooth.append(y_smooth)
        display_names.append(display_name)

    y_max = max((np.nanmax(y) for y in all_y_data if np.any(~np.isnan(y))), default=np.nan)

    created['combined'].append(render_combined_plot(
        x_data, all_y_data, all_y_smooth, display_names, colors, y_max,
        os.path.join(combined_dir, COMBINED_NAME), style, overlay=True, ylabel=ylabel
    ))
    created['combined'].append(render_combined_plot(
        x_data, all_y_data, all_y_smooth, display_names, colors, y_max,
        os.path.join(combined_dir, COMBINED_SMOOTHED_NAME), style, overlay=False, ylabel=ylabel
    ))

    return created


def create_xrd_plot(long_data: pd.DataFrame,
                    style: Optional[PlotStyle] = None,
                    title: str = "XRD Patterns",
                    ma_window: Optional[int] = None,
                    sqrt_transform: bool = False,
                    show_legend: bool = True) -> go.Figure:
    """
    Create an interactive plot of a long-format transformed table

    Args:
        long_data: Long table with two_theta, samples and intensities columns
        style: Plot style providing the colors
        title: Plot title
        ma_window: Moving average window (None = raw data)
        sqrt_transform: Plot the square root of the intensity
        show_legend: Whether to show legend

    Returns:
        Plotly figure
    """
    style = style or PlotStyle()
    fig = go.Figure()

    samples = long_data[SAMPLE_COL]
    if isinstance(samples.dtype, pd.CategoricalDtype):
        order = list(samples.cat.categories)
    else:
        order = list(pd.unique(samples))
    colors = style.colors_for(len(order))

    for sample, color in zip(order, colors):
        subset = long_data[samples == sample]
        y_data = subset[INTENSITY_COL].to_numpy(dtype=float)
        if sqrt_transform:
            y_data = sqrt_intensity(y_data)
        if ma_window:
            y_data = moving_average(y_data, window=ma_window)

        fig.add_trace(go.Scatter(
            x=subset[OUTPUT_THETA_COL],
            y=y_data,
            mode='lines',
            name=str(sample),
            line=dict(color=color, width=style.raw_linewidth),
            connectgaps=False,
            showlegend=show_legend
        ))

    fig.update_layout(
        title=title,
        xaxis_title='2θ (degree)',
        yaxis_title='√Intensity' if sqrt_transform else INTENSITY_LABEL,
        template='plotly_white',
        hovermode='x unified',
        font=dict(family=style.font_family),
        legend=dict(
            yanchor="top",
            y=0.99,
            xanchor="right",
            x=0.99
        )
    )

    return fig
