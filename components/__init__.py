# XRD Plotter Components
from .plots import (
    create_xrd_plot,
    plot_xrd_patterns,
    render_sample_plot,
    render_combined_plot
)
from .styles import PlotStyle, PALETTES, get_style
