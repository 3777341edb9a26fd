"""
XRD Data Loader Module
Handles locating and loading XRD data from various file formats
"""

import numpy as np
import pandas as pd
import os
import re
import io
import xml.etree.ElementTree as ET
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple, Union
from tqdm import tqdm

from tools.exceptions import XRDReadError
from utils.helpers import DEFAULT_FILE_PATTERN, make_name_extractor
from utils.logger import log_debug, log_file_load, log_import_start, log_warning


class XRDSeries(NamedTuple):
    """One sample's angle/intensity measurement"""
    sample: str
    two_theta: np.ndarray
    intensity: np.ndarray
    filename: str = 'unknown'
    format: str = 'xy'


def detect_file_format(content: str) -> str:
    """
    Detect the format of XRD data file

    Returns:
        'xrdml': PANalytical XRDML (XML)
        'ras': Rigaku RAS format
        'csv': CSV with header
        'xy': Simple two-column format (2theta, intensity)
        'txt': Generic text format
    """
    stripped = content.lstrip()
    if stripped.startswith('<?xml') or '<xrdMeasurements' in content:
        return 'xrdml'

    # Check for Rigaku RAS format
    if '*RAS_DATA_START' in content or '*RAS_HEADER_START' in content:
        return 'ras'

    lines = content.strip().split('\n')

    # Check for CSV with header
    first_line = lines[0].strip()
    if ',' in first_line and not first_line.replace(',', '').replace('.', '').replace('-', '').replace(' ', '').isdigit():
        return 'csv'

    # Check for simple xy format
    try:
        parts = lines[0].split()
        if len(parts) >= 2:
            float(parts[0])
            float(parts[1])
            return 'xy'
    except (ValueError, IndexError):
        pass

    return 'txt'


def parse_xy_format(content: str) -> Tuple[np.ndarray, np.ndarray]:
    """Parse simple two-column XRD data"""
    lines = content.strip().split('\n')
    two_theta = []
    intensity = []

    for line in lines:
        line = line.strip()
        if not line or line.startswith('#') or line.startswith('*'):
            continue

        parts = line.replace(',', ' ').split()
        if len(parts) >= 2:
            try:
                two_theta.append(float(parts[0]))
                intensity.append(float(parts[-1]))  # Last column as intensity
            except ValueError:
                continue

    return np.array(two_theta, dtype=float), np.array(intensity, dtype=float)


def parse_csv_format(content: str) -> Tuple[np.ndarray, np.ndarray]:
    """Parse CSV format XRD data"""
    df = pd.read_csv(io.StringIO(content))

    # Try to find 2theta and intensity columns
    theta_cols = [col for col in df.columns if 'theta' in col.lower() or 'angle' in col.lower()]
    int_cols = [col for col in df.columns if 'int' in col.lower() or 'counts' in col.lower()]

    if theta_cols and int_cols:
        two_theta = df[theta_cols[0]].values
        intensity = df[int_cols[0]].values
    else:
        # Use first two numeric columns
        numeric_cols = df.select_dtypes(include=[np.number]).columns
        if len(numeric_cols) >= 2:
            two_theta = df[numeric_cols[0]].values
            intensity = df[numeric_cols[1]].values
        else:
            raise ValueError("Cannot find 2theta and intensity columns in CSV")

    return np.asarray(two_theta, dtype=float), np.asarray(intensity, dtype=float)


def parse_ras_format(content: str) -> Tuple[np.ndarray, np.ndarray]:
    """Parse Rigaku RAS format"""
    lines = content.split('\n')
    data_start = False
    two_theta = []
    intensity = []

    for line in lines:
        line = line.strip()
        if '*RAS_DATA_START' in line:
            data_start = True
            continue
        if '*RAS_DATA_END' in line:
            break
        if data_start and line:
            parts = line.split()
            if len(parts) >= 2:
                try:
                    two_theta.append(float(parts[0]))
                    intensity.append(float(parts[1]))
                except ValueError:
                    continue

    return np.array(two_theta, dtype=float), np.array(intensity, dtype=float)


def _xml_namespace(root: ET.Element) -> Dict[str, str]:
    if root.tag.startswith('{'):
        return {'xrd': root.tag[1:].split('}')[0]}
    return {}


def _find(node: ET.Element, path: str, ns: Dict[str, str]) -> Optional[ET.Element]:
    if not ns:
        path = path.replace('xrd:', '')
    return node.find(path, ns)


def _findall(node: ET.Element, path: str, ns: Dict[str, str]) -> List[ET.Element]:
    if not ns:
        path = path.replace('xrd:', '')
    return node.findall(path, ns)


def parse_xrdml_format(content: str) -> Tuple[np.ndarray, np.ndarray]:
    """
    Parse PANalytical XRDML format

    Intensities come from <intensities> (or <counts>) of the first scan.
    Angles come from the 2Theta <positions> node, either as an explicit
    list or as start/end positions spread evenly over the intensities.
    """
    root = ET.fromstring(content.strip().encode('utf-8'))
    ns = _xml_namespace(root)

    data_points = _find(root, './/xrd:scan/xrd:dataPoints', ns)
    if data_points is None:
        raise ValueError("No <dataPoints> node in XRDML")

    intensities_node = _find(data_points, 'xrd:intensities', ns)
    if intensities_node is None:
        intensities_node = _find(data_points, 'xrd:counts', ns)
    if intensities_node is None or not (intensities_node.text or '').strip():
        raise ValueError("No <intensities> data in XRDML")
    intensity = np.array(intensities_node.text.split(), dtype=float)

    positions_nodes = _findall(data_points, 'xrd:positions', ns)
    pos2t = None
    for node in positions_nodes:
        if node.get('axis', '').lower() in ('2theta', 'twotheta'):
            pos2t = node
            break
    if pos2t is None:
        if not positions_nodes:
            raise ValueError("No <positions> node in XRDML")
        pos2t = positions_nodes[0]

    list_node = _find(pos2t, 'xrd:listPositions', ns)
    start_node = _find(pos2t, 'xrd:startPosition', ns)
    end_node = _find(pos2t, 'xrd:endPosition', ns)

    if list_node is not None and (list_node.text or '').strip():
        two_theta = np.array(list_node.text.split(), dtype=float)
        n = min(two_theta.size, intensity.size)
        two_theta, intensity = two_theta[:n], intensity[:n]
    elif start_node is not None and end_node is not None:
        if not (start_node.text or '').strip() or not (end_node.text or '').strip():
            raise ValueError("Empty 2Theta start or end position in XRDML")
        two_theta = np.linspace(float(start_node.text), float(end_node.text), intensity.size)
    else:
        raise ValueError("2Theta positions missing in XRDML")

    return two_theta, intensity


def extract_xrdml_metadata(file_path: str) -> Dict:
    """
    Extract metadata from an XRDML file

    Args:
        file_path: Path to the XRDML file

    Returns:
        Dictionary with sample, measurement and scan information.
        Empty if the file cannot be parsed.
    """
    if not os.path.isfile(file_path):
        raise XRDReadError("File not found", file_path)

    if not re.search(r'\.(xml|xrdml)$', file_path, re.IGNORECASE):
        log_warning(f"{file_path} does not have an XML/XRDML extension; metadata extraction may fail")

    try:
        root = ET.parse(file_path).getroot()
    except ET.ParseError as e:
        log_warning(f"Error extracting metadata from {file_path}: {e}")
        return {}

    ns = _xml_namespace(root)

    def text(path: str) -> Optional[str]:
        node = _find(root, path, ns)
        return node.text if node is not None else None

    def attr(path: str, name: str) -> Optional[str]:
        node = _find(root, path, ns)
        return node.get(name) if node is not None else None

    def number(path: str) -> Optional[float]:
        value = text(path)
        if value is None or not value.strip():
            return None
        return float(value)

    positions = "xrd:xrdMeasurement/xrd:scan/xrd:dataPoints/xrd:positions[@axis='2Theta']"

    try:
        return {
            'sample_id': text('xrd:sample/xrd:id'),
            'sample_name': text('xrd:sample/xrd:name'),
            'measurement_type': attr('xrd:xrdMeasurement', 'measurementType'),
            'status': attr('xrd:xrdMeasurement', 'status'),
            'wavelength': number('.//xrd:usedWavelength/xrd:kAlpha1'),
            'scan_axis': attr('.//xrd:scan', 'scanAxis'),
            'start_position': number(f'{positions}/xrd:startPosition'),
            'end_position': number(f'{positions}/xrd:endPosition'),
            'comments': [node.text for node in _findall(root, './/xrd:comment/xrd:entry', ns) if node.text],
        }
    except ValueError as e:
        log_warning(f"Error extracting metadata from {file_path}: {e}")
        return {}


PARSERS = {
    'xrdml': parse_xrdml_format,
    'ras': parse_ras_format,
    'csv': parse_csv_format,
    'xy': parse_xy_format,
    'txt': parse_xy_format,
}


def load_xrd_file(file_or_path: Union[str, io.BytesIO, io.StringIO],
                  filename: Optional[str] = None,
                  sample_name: Optional[str] = None,
                  name_extractor: Optional[Callable[[str], str]] = None) -> XRDSeries:
    """
    Load a single XRD file

    Args:
        file_or_path: File path string or file-like object
        filename: Optional filename for file-like objects
        sample_name: Sample name to use (default: derived from filename)
        name_extractor: Filename to sample name strategy

    Returns:
        XRDSeries for the file
    """
    if isinstance(file_or_path, str):
        if not os.path.isfile(file_or_path):
            raise XRDReadError("File not found", file_or_path)
        try:
            with open(file_or_path, 'r', encoding='utf-8', errors='ignore') as f:
                content = f.read()
        except OSError as e:
            raise XRDReadError(f"Cannot read file ({e})", file_or_path) from e
        filename = os.path.basename(file_or_path)
        source = file_or_path
    else:
        content = file_or_path.read()
        if isinstance(content, bytes):
            content = content.decode('utf-8', errors='ignore')
        source = filename or 'unknown'

    if not content.strip():
        raise XRDReadError("Empty file", source)

    # Detect format and parse
    file_format = detect_file_format(content)
    try:
        two_theta, intensity = PARSERS[file_format](content)
    except (ValueError, ET.ParseError) as e:
        raise XRDReadError(f"Malformed {file_format} file ({e})", source) from e

    if sample_name is None:
        extractor = name_extractor or make_name_extractor()
        sample_name = extractor(filename or 'unknown')

    log_file_load(filename or 'unknown', len(two_theta))

    return XRDSeries(
        sample=sample_name,
        two_theta=two_theta,
        intensity=intensity,
        filename=filename or 'unknown',
        format=file_format
    )


def find_xrd_files(directory_path: str,
                   pattern: str = DEFAULT_FILE_PATTERN,
                   recursive: bool = True) -> List[str]:
    """
    Find XRD files in a directory

    Args:
        directory_path: Directory to search
        pattern: Case-insensitive regex matched against file basenames
        recursive: Whether to search subdirectories

    Returns:
        Sorted list of file paths
    """
    if not os.path.isdir(directory_path):
        raise XRDReadError("Directory not found", directory_path)

    regex = re.compile(pattern, re.IGNORECASE)
    seen = []
    matches = []

    for root, dirs, files in os.walk(directory_path):
        dirs.sort()
        for fname in sorted(files):
            seen.append(os.path.relpath(os.path.join(root, fname), directory_path))
            if regex.match(fname):
                matches.append(os.path.join(root, fname))
        if not recursive:
            break

    if not matches:
        listing = ", ".join(seen) if seen else "none"
        raise XRDReadError(
            f"No files matching pattern {pattern} (files present: {listing})",
            directory_path
        )

    return sorted(matches)


def load_xrd_directory(directory_path: str,
                       pattern: str = DEFAULT_FILE_PATTERN,
                       recursive: bool = True,
                       name_extractor: Optional[Callable[[str], str]] = None,
                       show_progress: bool = True) -> List[XRDSeries]:
    """
    Load every XRD file in a directory

    Args:
        directory_path: Path to directory containing XRD files
        pattern: Case-insensitive regex matched against file basenames
        recursive: Whether to search subdirectories
        name_extractor: Filename to sample name strategy
        show_progress: Whether to show progress bar

    Returns:
        List of XRDSeries, in sorted file order
    """
    file_list = find_xrd_files(directory_path, pattern=pattern, recursive=recursive)
    log_import_start(len(file_list), directory_path)

    extractor = name_extractor or make_name_extractor()
    iterator = tqdm(file_list, desc="Reading XRD files") if show_progress else file_list

    series_list = []
    for file_path in iterator:
        series = load_xrd_file(file_path, name_extractor=extractor)
        log_debug(f"{os.path.basename(file_path)} -> {series.sample}")
        series_list.append(series)

    return series_list


def validate_xrd_data(series: XRDSeries) -> Tuple[bool, str]:
    """
    Validate XRD data

    Returns:
        Tuple of (is_valid, error_message)
    """
    two_theta = np.asarray(series.two_theta, dtype=float)
    intensity = np.asarray(series.intensity, dtype=float)

    if two_theta.ndim != 1 or intensity.ndim != 1:
        return False, "Data must have exactly one 2theta and one intensity column"

    if len(two_theta) == 0 or len(intensity) == 0:
        return False, "Empty data arrays"

    if len(two_theta) != len(intensity):
        return False, f"Length mismatch: two_theta ({len(two_theta)}) != intensity ({len(intensity)})"

    if np.any(np.isnan(two_theta)):
        return False, "2theta contains NaN values"

    return True, ""
