"""
Tests for XRD file loading, sample naming and settings
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import io
import json

import numpy as np
import pytest
from tools.data_loader import (
    XRDSeries, detect_file_format, parse_xy_format, parse_csv_format,
    parse_ras_format, parse_xrdml_format, extract_xrdml_metadata,
    load_xrd_file, find_xrd_files, load_xrd_directory, validate_xrd_data
)
from tools.exceptions import XRDConfigurationError, XRDReadError
from utils.config import DEFAULT_SETTINGS, load_settings, merge_settings
from utils.helpers import (
    clean_file_name, extract_sample_name, make_name_extractor,
    parse_offset_text, strip_prefix, strip_trailing_separator
)

XRDML_CONTENT = """<?xml version="1.0" encoding="UTF-8"?>
<xrdMeasurements xmlns="http://www.xrdml.com/XRDMeasurement/1.5" status="Completed">
  <sample type="To be analyzed">
    <id>J_DI_250_AD</id>
    <name>Sample 250 AD</name>
  </sample>
  <xrdMeasurement measurementType="Scan" status="Completed">
    <comment>
      <entry>first comment</entry>
    </comment>
    <usedWavelength intended="K-Alpha 1">
      <kAlpha1 unit="Angstrom">1.5405980</kAlpha1>
    </usedWavelength>
    <scan scanAxis="Gonio" status="Completed">
      <dataPoints>
        <positions axis="2Theta" unit="deg">
          <startPosition>10.00</startPosition>
          <endPosition>10.04</endPosition>
        </positions>
        <positions axis="Omega" unit="deg">
          <startPosition>5.00</startPosition>
          <endPosition>5.02</endPosition>
        </positions>
        <intensities unit="counts">100 200 300 250 150</intensities>
      </dataPoints>
    </scan>
  </xrdMeasurement>
</xrdMeasurements>
"""

XRDML_LIST_CONTENT = """<xrdMeasurements>
  <xrdMeasurement>
    <scan>
      <dataPoints>
        <positions axis="2Theta">
          <listPositions>20.0 20.5 21.5</listPositions>
        </positions>
        <counts>7 8 9</counts>
      </dataPoints>
    </scan>
  </xrdMeasurement>
</xrdMeasurements>
"""

RAS_CONTENT = """*RAS_HEADER_START
*FILE_COMMENT "test"
*RAS_HEADER_END
*RAS_INT_START
*RAS_DATA_START
10.00 100 1
10.02 110 1
10.04 120 1
*RAS_DATA_END
"""


def write_file(directory, name, content):
    path = os.path.join(str(directory), name)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'w') as f:
        f.write(content)
    return path


class TestParsers:
    """Test format detection and parsing"""

    def test_detect_file_format(self):
        """Test format detection"""
        assert detect_file_format(XRDML_CONTENT) == 'xrdml'
        assert detect_file_format(XRDML_LIST_CONTENT) == 'xrdml'
        assert detect_file_format(RAS_CONTENT) == 'ras'
        assert detect_file_format("2theta,intensity\n10,100\n") == 'csv'
        assert detect_file_format("10.0 100\n10.1 110\n") == 'xy'
        assert detect_file_format("# header\n10.0 100\n") == 'txt'

    def test_parse_xy_format(self):
        """Test two-column parsing skips comments"""
        two_theta, intensity = parse_xy_format("# comment\n10.0\t100\n10.1\t110\n\nbad line\n")
        assert two_theta.tolist() == [10.0, 10.1]
        assert intensity.tolist() == [100.0, 110.0]

    def test_parse_csv_format(self):
        """Test CSV parsing by column name"""
        two_theta, intensity = parse_csv_format("Angle,Counts\n10,1\n11,2\n")
        assert two_theta.tolist() == [10, 11]
        assert intensity.tolist() == [1, 2]

    def test_parse_ras_format(self):
        """Test RAS parsing"""
        two_theta, intensity = parse_ras_format(RAS_CONTENT)
        assert two_theta.tolist() == [10.0, 10.02, 10.04]
        assert intensity.tolist() == [100, 110, 120]

    def test_parse_xrdml_start_end(self):
        """Test XRDML with start and end positions"""
        two_theta, intensity = parse_xrdml_format(XRDML_CONTENT)

        assert intensity.tolist() == [100, 200, 300, 250, 150]
        assert np.allclose(two_theta, [10.0, 10.01, 10.02, 10.03, 10.04])

    def test_parse_xrdml_list_positions(self):
        """Test XRDML without namespace and with explicit positions"""
        two_theta, intensity = parse_xrdml_format(XRDML_LIST_CONTENT)

        assert two_theta.tolist() == [20.0, 20.5, 21.5]
        assert intensity.tolist() == [7, 8, 9]

    def test_parse_xrdml_missing_intensities(self):
        """Test XRDML without data"""
        content = "<xrdMeasurements><scan><dataPoints></dataPoints></scan></xrdMeasurements>"
        with pytest.raises(ValueError):
            parse_xrdml_format(content)


class TestLoadFiles:
    """Test loading files and directories"""

    def test_load_xrd_file(self, tmp_path):
        """Test loading a file derives the sample name"""
        path = write_file(tmp_path, '2024_scan_J_DI_250_AD_.xrdml', XRDML_CONTENT)
        series = load_xrd_file(path)

        assert isinstance(series, XRDSeries)
        assert series.sample == 'J_DI_250_AD'
        assert series.format == 'xrdml'
        assert series.filename == '2024_scan_J_DI_250_AD_.xrdml'
        assert len(series.two_theta) == 5

    def test_load_explicit_sample_name(self, tmp_path):
        """Test an explicit sample name wins"""
        path = write_file(tmp_path, 'scan.xy', "10 1\n11 2\n")
        series = load_xrd_file(path, sample_name='mine')
        assert series.sample == 'mine'

    def test_load_file_like(self):
        """Test loading from a file-like object"""
        series = load_xrd_file(io.BytesIO(b"10 1\n11 2\n"), 'up_J_X_.xy')
        assert series.sample == 'J_X'
        assert series.intensity.tolist() == [1, 2]

    def test_missing_file(self, tmp_path):
        """Test a missing file raises a read error naming the path"""
        path = os.path.join(str(tmp_path), 'nope.xy')
        with pytest.raises(XRDReadError) as excinfo:
            load_xrd_file(path)
        assert excinfo.value.path == path
        assert path in str(excinfo.value)

    def test_malformed_file(self, tmp_path):
        """Test a broken XRDML raises a read error"""
        path = write_file(tmp_path, 'bad.xrdml', '<?xml version="1.0"?><xrdMeasurements><scan>')
        with pytest.raises(XRDReadError):
            load_xrd_file(path)

    def test_empty_start_position(self):
        """Test an XRDML scan without start position raises a read error"""
        content = XRDML_CONTENT.replace('<startPosition>10.00</startPosition>', '<startPosition/>')
        with pytest.raises(XRDReadError) as excinfo:
            load_xrd_file(io.BytesIO(content.encode('utf-8')), 'J_X_.xrdml')
        assert excinfo.value.path == 'J_X_.xrdml'

    def test_empty_file(self, tmp_path):
        """Test an empty file raises a read error"""
        path = write_file(tmp_path, 'empty.xy', '')
        with pytest.raises(XRDReadError):
            load_xrd_file(path)

    def test_find_xrd_files(self, tmp_path):
        """Test discovery is case-insensitive and recursive"""
        write_file(tmp_path, 'a_J_A_.XRDML', XRDML_CONTENT)
        write_file(tmp_path, 'sub/b_J_B_.xy', "10 1\n")
        write_file(tmp_path, 'notes.md', "x")

        found = find_xrd_files(str(tmp_path))
        assert [os.path.basename(f) for f in found] == ['a_J_A_.XRDML', 'b_J_B_.xy']

        top_only = find_xrd_files(str(tmp_path), recursive=False)
        assert [os.path.basename(f) for f in top_only] == ['a_J_A_.XRDML']

    def test_find_missing_directory(self, tmp_path):
        """Test a missing directory raises a read error"""
        with pytest.raises(XRDReadError):
            find_xrd_files(os.path.join(str(tmp_path), 'missing'))

    def test_find_no_matches_lists_files(self, tmp_path):
        """Test the error lists the files that were present"""
        write_file(tmp_path, 'notes.md', "x")
        with pytest.raises(XRDReadError, match='notes.md'):
            find_xrd_files(str(tmp_path))

    def test_load_xrd_directory(self, tmp_path):
        """Test loading all files of a directory"""
        write_file(tmp_path, 'x_J_B_.xy', "10 1\n11 2\n")
        write_file(tmp_path, 'x_J_A_.xy', "10 3\n11 4\n")

        series_list = load_xrd_directory(str(tmp_path), show_progress=False)
        assert [s.sample for s in series_list] == ['J_A', 'J_B']

    def test_load_directory_custom_names(self, tmp_path):
        """Test an injected naming strategy"""
        write_file(tmp_path, 'S1.xy', "10 1\n")
        extractor = make_name_extractor(r'(S\d+)\.xy$')

        series_list = load_xrd_directory(str(tmp_path), name_extractor=extractor, show_progress=False)
        assert [s.sample for s in series_list] == ['S1']

    def test_extract_xrdml_metadata(self, tmp_path):
        """Test XRDML metadata extraction"""
        path = write_file(tmp_path, 'meta.xrdml', XRDML_CONTENT)
        metadata = extract_xrdml_metadata(path)

        assert metadata['sample_id'] == 'J_DI_250_AD'
        assert metadata['sample_name'] == 'Sample 250 AD'
        assert metadata['measurement_type'] == 'Scan'
        assert metadata['status'] == 'Completed'
        assert metadata['wavelength'] == pytest.approx(1.540598)
        assert metadata['scan_axis'] == 'Gonio'
        assert metadata['start_position'] == 10.0
        assert metadata['end_position'] == 10.04
        assert metadata['comments'] == ['first comment']

    def test_metadata_parse_error(self, tmp_path):
        """Test unparsable metadata gives an empty dict"""
        path = write_file(tmp_path, 'broken.xrdml', '<xrdMeasurements>')
        assert extract_xrdml_metadata(path) == {}

    def test_metadata_empty_number(self, tmp_path):
        """Test an empty numeric field gives None"""
        content = XRDML_CONTENT.replace('<startPosition>10.00</startPosition>', '<startPosition/>')
        path = write_file(tmp_path, 'empty_start.xrdml', content)
        metadata = extract_xrdml_metadata(path)

        assert metadata['start_position'] is None
        assert metadata['end_position'] == 10.04

    def test_metadata_bad_number(self, tmp_path):
        """Test a non-numeric field gives an empty dict"""
        content = XRDML_CONTENT.replace('1.5405980', 'unknown')
        path = write_file(tmp_path, 'bad_number.xrdml', content)
        assert extract_xrdml_metadata(path) == {}

    def test_validate_xrd_data(self):
        """Test validation"""
        ok = XRDSeries('a', np.array([1.0, 2.0]), np.array([3.0, 4.0]))
        mismatch = XRDSeries('b', np.array([1.0, 2.0]), np.array([3.0]))
        empty = XRDSeries('c', np.array([]), np.array([]))
        columns = XRDSeries('d', np.array([1.0, 2.0]), np.array([[1.0, 2.0], [3.0, 4.0]]))

        assert validate_xrd_data(ok)[0]
        assert not validate_xrd_data(mismatch)[0]
        assert not validate_xrd_data(empty)[0]
        assert not validate_xrd_data(columns)[0]


class TestHelpers:
    """Test naming helpers"""

    def test_default_name_pattern(self):
        """Test the default sample name extraction"""
        assert extract_sample_name('2024_scan_J_DI_250_AD_.xrdml') == 'J_DI_250_AD'
        assert extract_sample_name('/data/XRD/J_DI_250_AD__.xrdml') == 'J_DI_250_AD_'

    def test_unmatched_name(self):
        """Test unmatched filenames are returned unchanged"""
        assert extract_sample_name('/data/other.xy') == 'other.xy'

    def test_custom_pattern(self):
        """Test a caller-supplied pattern"""
        extractor = make_name_extractor(r'sample_(\d+)')
        assert extractor('sample_042.xy') == '042'

    def test_pattern_without_group(self):
        """Test a pattern without capture group is rejected"""
        with pytest.raises(ValueError):
            make_name_extractor(r'J_\w+')

    def test_clean_file_name(self):
        """Test file name cleaning"""
        assert clean_file_name('J DI-250.AD') == 'J_DI_250_AD'

    def test_strip_helpers(self):
        """Test prefix and trailing separator removal"""
        assert strip_trailing_separator('A_') == 'A'
        assert strip_trailing_separator('A__') == 'A_'
        assert strip_trailing_separator('A') == 'A'
        assert strip_prefix('J_DI_250', r'^J_') == 'DI_250'
        assert strip_prefix('J_DI_250', None) == 'J_DI_250'

    def test_parse_offset_text(self):
        """Test custom offset parsing"""
        text = "# offsets\nJ_DI_250_AD_ = 200\n\n'J_DI_250_HT_': 700\n"
        assert parse_offset_text(text) == {'J_DI_250_AD_': 200.0, 'J_DI_250_HT_': 700.0}

        with pytest.raises(ValueError):
            parse_offset_text("J_A = high")
        with pytest.raises(ValueError):
            parse_offset_text("J_A 200")


class TestSettings:
    """Test settings loading"""

    def test_defaults(self):
        """Test defaults are returned as a copy"""
        settings = load_settings()
        settings['transform']['auto_step'] = 1

        assert DEFAULT_SETTINGS['transform']['auto_step'] == 300

    def test_overrides(self):
        """Test partial overrides"""
        settings = load_settings(overrides={'transform': {'order_method': 'alphabetical'}})

        assert settings['transform']['order_method'] == 'alphabetical'
        assert settings['transform']['auto_step'] == 300

    def test_json_file(self, tmp_path):
        """Test loading from JSON"""
        path = write_file(tmp_path, 'settings.json', json.dumps({'plot': {'ma_window': 11}}))
        settings = load_settings(path)
        assert settings['plot']['ma_window'] == 11

    def test_unknown_section(self):
        """Test unknown sections are rejected"""
        with pytest.raises(XRDConfigurationError):
            merge_settings(DEFAULT_SETTINGS, {'colours': {}})

    def test_missing_file(self, tmp_path):
        """Test a missing settings file"""
        with pytest.raises(XRDReadError):
            load_settings(os.path.join(str(tmp_path), 'none.json'))


def run_tests():
    """Run all tests"""
    pytest.main([__file__, '-v'])


if __name__ == "__main__":
    run_tests()
