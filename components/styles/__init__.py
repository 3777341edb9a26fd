"""
Styles for XRD Plotter
Plot styling presets and custom CSS for the Streamlit app
"""

import os
from dataclasses import dataclass, replace
from typing import Dict, List, Tuple

from matplotlib.colors import LinearSegmentedColormap, to_hex

# Named palettes; tuples so presets cannot be modified in place
PALETTES: Dict[str, Tuple[str, ...]] = {
    # ColorBrewer Spectral without the yellows
    'spectral': (
        '#9E0142', '#D53E4F', '#F46D43',
        '#ABDDA4', '#66C2A5', '#3288BD', '#5E4FA2',
    ),
    'sections': (
        '#55A958',  # Section A
        '#643C8B',  # Section B
        '#E28048',  # Section D
        '#4FABE6',  # Section F
        '#7F7F7F',  # Section G
        '#FF0000',
        '#000000',
        '#7DAB57',  # Section C
        '#F5BE45',  # Section E
        '#FBE3A3',  # Section H
        '#BED5EC',  # Section I
        '#51ABE1',
    ),
    'sections_alt': (
        '#55A958', '#643C8B', '#FF0000', '#E28048', '#F5BE45',
        '#4FABE6', '#B2AFB0', '#7DAB57', '#FBE3A3', '#BED5EC',
    ),
    'greens': ('#FDAE61', '#D9EF8B', '#66BD63'),
    'ab': ('#51ABE1', '#54AD5A', '#673D92'),
    'dark2': (
        '#1B9E77', '#D95F02', '#7570B3', '#E7298A',
        '#66A61E', '#E6AB02', '#A6761D', '#666666',
    ),
    'plotly': (
        '#1f77b4', '#ff7f0e', '#2ca02c', '#d62728', '#9467bd',
        '#8c564b', '#e377c2', '#7f7f7f', '#bcbd22', '#17becf',
    ),
}


@dataclass(frozen=True)
class PlotStyle:
    """Styling passed explicitly to every renderer"""
    palette: Tuple[str, ...] = PALETTES['spectral']
    interpolate: bool = False
    font_family: str = 'serif'
    raw_alpha: float = 0.5
    combined_raw_alpha: float = 0.3
    raw_linewidth: float = 1.5
    smooth_linewidth: float = 2.5
    combined_raw_linewidth: float = 1.0
    sample_size: Tuple[int, int] = (800, 600)
    combined_size: Tuple[int, int] = (1200, 800)
    dpi: int = 120
    legend_fontsize: float = 7.0
    minor_ticks: int = 4

    def colors_for(self, n: int) -> List[str]:
        """
        Colors for n samples

        The palette repeats when it is shorter than n, unless the style
        interpolates, in which case n evenly spaced colors are blended.
        """
        if n <= 0:
            return []
        if self.interpolate and n > len(self.palette):
            cmap = LinearSegmentedColormap.from_list('xrd_palette', list(self.palette))
            return [to_hex(cmap(i / (n - 1))) for i in range(n)]
        return [self.palette[i % len(self.palette)] for i in range(n)]

    def figsize(self, combined: bool = False) -> Tuple[float, float]:
        width, height = self.combined_size if combined else self.sample_size
        return width / self.dpi, height / self.dpi


STYLE_PRESETS: Dict[str, PlotStyle] = {
    'default': PlotStyle(),
    'publication': PlotStyle(palette=PALETTES['sections'], font_family='Times New Roman', dpi=300),
    'contrast': PlotStyle(palette=PALETTES['dark2'], interpolate=True),
    'plotly': PlotStyle(palette=PALETTES['plotly']),
}


def get_style(name: str = 'default', **overrides) -> PlotStyle:
    """
    Look up a style preset, optionally with changed fields

    A palette name may be given as ``palette='dark2'``.
    """
    if name not in STYLE_PRESETS:
        raise KeyError(f"Unknown style preset: {name} (available: {', '.join(STYLE_PRESETS)})")

    overrides = {k: v for k, v in overrides.items() if v is not None}
    palette = overrides.get('palette')
    if isinstance(palette, str):
        if palette not in PALETTES:
            raise KeyError(f"Unknown palette: {palette} (available: {', '.join(PALETTES)})")
        overrides['palette'] = PALETTES[palette]
    elif palette is not None:
        overrides['palette'] = tuple(palette)

    return replace(STYLE_PRESETS[name], **overrides)


def inject_custom_css():
    """Inject custom CSS into Streamlit app"""
    import streamlit as st

    css_path = os.path.join(os.path.dirname(__file__), 'custom.css')

    if os.path.exists(css_path):
        with open(css_path, 'r') as f:
            css = f.read()
    else:
        css = get_default_css()

    st.markdown(f'<style>{css}</style>', unsafe_allow_html=True)


def get_default_css():
    """Return default CSS styles"""
    return """
    /* Main container */
    .main .block-container {
        padding-top: 1rem;
        padding-bottom: 1rem;
        max-width: 100%;
    }

    /* Headers */
    h1, h2, h3 {
        color: #3288BD;
    }

    /* Buttons */
    .stButton > button, .stDownloadButton > button {
        width: 100%;
        border-radius: 0.5rem;
    }

    /* File uploader */
    .stFileUploader {
        border: 2px dashed #3288BD;
        border-radius: 0.5rem;
        padding: 1rem;
    }

    /* Tables */
    .dataframe {
        font-size: 0.9rem;
    }

    /* Hide Streamlit branding */
    #MainMenu {visibility: hidden;}
    footer {visibility: hidden;}
    """
