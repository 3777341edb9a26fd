"""
XRD Plotter Settings
Default workflow settings and JSON loading
"""

import copy
import json
import os
from typing import Dict, Optional

from tools.exceptions import XRDConfigurationError, XRDReadError
from utils.helpers import DEFAULT_FILE_PATTERN, DEFAULT_NAME_PATTERN

DEFAULT_SETTINGS = {
    # File discovery and reading
    'import': {
        'pattern': DEFAULT_FILE_PATTERN,
        'recursive': True,
        'name_pattern': DEFAULT_NAME_PATTERN,
        'show_progress': True
    },

    # Merge settings
    'merge': {
        'theta_col': '2Theta',
        'angle_tolerance': 1e-6
    },

    # Offsets and ordering
    'transform': {
        'custom_offsets': {},
        'auto_step': 300,
        'auto_adjust_percent': 0,
        'remove_trailing': True,
        'order_method': 'reverse'
    },

    # Rendering
    'plot': {
        'output_dir': 'output/xrd_plots',
        'ma_window': 7,
        'style': 'default',
        'palette': None,
        'pattern_prefix': None,
        'sqrt_transform': True,
        'apply_offsets': False
    },

    # Archive and tables
    'export': {
        'create_zip': True,
        'zip_dir': 'output/zip',
        'zip_prefix': 'XRD_plots',
        'write_csv': True,
        'csv_dir': 'output/tables'
    }
}


def merge_settings(base: Dict, overrides: Dict) -> Dict:
    """
    Merge override settings into a copy of the base settings

    Args:
        base: Settings grouped by section
        overrides: Partial settings with the same sections

    Returns:
        New settings dictionary
    """
    result = copy.deepcopy(base)
    for section, values in overrides.items():
        if section not in result:
            raise XRDConfigurationError(f"Unknown settings section: {section}")
        if not isinstance(values, dict):
            raise XRDConfigurationError(f"Settings section {section} must be a mapping")
        result[section].update(copy.deepcopy(values))
    return result


def load_settings(path: Optional[str] = None,
                  overrides: Optional[Dict] = None) -> Dict:
    """
    Load workflow settings

    Args:
        path: Optional JSON file with partial settings
        overrides: Optional partial settings applied last

    Returns:
        Complete settings dictionary
    """
    settings = copy.deepcopy(DEFAULT_SETTINGS)

    if path is not None:
        if not os.path.isfile(path):
            raise XRDReadError("Settings file not found", path)
        with open(path, 'r', encoding='utf-8') as f:
            try:
                from_file = json.load(f)
            except json.JSONDecodeError as e:
                raise XRDConfigurationError(f"Invalid settings file {path}: {e}") from e
        settings = merge_settings(settings, from_file)

    if overrides:
        settings = merge_settings(settings, overrides)

    return settings
