"""
Tests for plot rendering and styles
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import numpy as np
import pandas as pd
import pytest
from components.plots import (
    COMBINED_NAME, COMBINED_SMOOTHED_NAME, create_xrd_plot, plot_xrd_patterns
)
from components.styles import PALETTES, PlotStyle, get_style
from tools.data_loader import XRDSeries
from tools.exceptions import XRDConfigurationError
from tools.merge import merge_xrd_series
from tools.transform import OrderMethod, transform_xrd_data


def make_table(names=('J_A', 'J_B')):
    x = np.linspace(10, 20, 50)
    data = {'two_theta': x}
    for i, name in enumerate(names):
        data[name] = 100 * (i + 1) * np.exp(-((x - 15) ** 2) / 2) + 10
    return pd.DataFrame(data)


class TestPlotStyle:
    """Test style presets and colors"""

    def test_colors_cycle(self):
        """Test the palette repeats for many samples"""
        style = PlotStyle(palette=('#000000', '#FFFFFF'))
        assert style.colors_for(5) == ['#000000', '#FFFFFF', '#000000', '#FFFFFF', '#000000']
        assert style.colors_for(0) == []

    def test_colors_interpolate(self):
        """Test interpolated palettes give distinct endpoints"""
        style = PlotStyle(palette=('#000000', '#ffffff'), interpolate=True)
        colors = style.colors_for(5)

        assert len(colors) == 5
        assert colors[0] == '#000000'
        assert colors[-1] == '#ffffff'
        assert len(set(colors)) == 5

    def test_default_palette_has_no_yellow(self):
        """Test the default palette"""
        assert PlotStyle().palette == PALETTES['spectral']
        assert '#FFFFBF' not in PALETTES['spectral']

    def test_figsize(self):
        """Test pixel sizes are converted with the dpi"""
        style = PlotStyle()
        assert style.figsize() == (800 / 120, 600 / 120)
        assert style.figsize(combined=True) == (1200 / 120, 800 / 120)

    def test_get_style(self):
        """Test preset lookup and overrides"""
        assert get_style('publication').dpi == 300
        assert get_style('default', palette='dark2').palette == PALETTES['dark2']
        assert get_style('default', palette=['#111111']).palette == ('#111111',)
        assert get_style('default', palette=None).palette == PALETTES['spectral']

    def test_get_style_unknown(self):
        """Test unknown presets and palettes"""
        with pytest.raises(KeyError):
            get_style('neon')
        with pytest.raises(KeyError):
            get_style('default', palette='neon')


class TestRenderPlots:
    """Test PNG rendering"""

    def test_plot_files(self, tmp_path):
        """Test one raw and one smoothed plot per sample plus two combined"""
        created = plot_xrd_patterns(make_table(), output_dir=str(tmp_path))

        assert len(created['raw']) == 2
        assert len(created['smoothed']) == 2
        assert len(created['combined']) == 2
        for paths in created.values():
            for path in paths:
                assert os.path.isfile(path), f"Missing {path}"
                assert os.path.getsize(path) > 0

        assert os.path.basename(created['raw'][0]) == 'J_A.png'
        assert os.path.basename(created['smoothed'][1]) == 'J_B_smoothed.png'
        assert [os.path.basename(p) for p in created['combined']] == [COMBINED_NAME, COMBINED_SMOOTHED_NAME]

    def test_clean_file_names(self, tmp_path):
        """Test sample names are cleaned for file names"""
        created = plot_xrd_patterns(make_table(names=('J DI-250.AD',)), output_dir=str(tmp_path))

        assert created['raw'][0] == os.path.join(str(tmp_path), 'raw', 'J_DI_250_AD.png')

    def test_file_name_clash(self, tmp_path):
        """Test samples whose cleaned names coincide are rejected"""
        out_dir = os.path.join(str(tmp_path), 'plots')
        with pytest.raises(XRDConfigurationError, match='J_A_1'):
            plot_xrd_patterns(make_table(names=('J_A-1', 'J_A.1')), output_dir=out_dir)
        assert not os.path.exists(out_dir)

    def test_missing_values(self, tmp_path):
        """Test samples with gaps still render"""
        table = make_table()
        table.loc[:9, 'J_B'] = np.nan
        created = plot_xrd_patterns(table, output_dir=str(tmp_path), sqrt_transform=False, ma_window=3)

        assert all(os.path.isfile(p) for p in created['raw'] + created['combined'])


class TestInteractivePlot:
    """Test the plotly figure"""

    def test_trace_order(self):
        """Test traces follow the transformed sample order"""
        series = [
            XRDSeries('A_', np.array([1.0, 2.0]), np.array([1.0, 2.0])),
            XRDSeries('B_', np.array([1.0, 2.0]), np.array([3.0, 4.0])),
            XRDSeries('C_', np.array([1.0, 2.0]), np.array([5.0, 6.0])),
        ]
        long_data = transform_xrd_data(merge_xrd_series(series), long_format=True,
                                       order_method=OrderMethod.REVERSE)
        fig = create_xrd_plot(long_data)

        assert [trace.name for trace in fig.data] == ['C', 'B', 'A']
        assert list(fig.data[0].y) == [605.0, 606.0]

    def test_sqrt_smoothed(self):
        """Test the transformed view"""
        long_data = pd.DataFrame({
            'two_theta': [1.0, 2.0, 3.0],
            'samples': ['S', 'S', 'S'],
            'intensities': [4.0, 16.0, 36.0],
        })
        fig = create_xrd_plot(long_data, sqrt_transform=True, ma_window=3)

        assert list(fig.data[0].y) == [2.0, 4.0, 6.0]


def run_tests():
    """Run all tests"""
    pytest.main([__file__, '-v'])


if __name__ == "__main__":
    run_tests()
