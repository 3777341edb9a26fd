"""
XRD Merge Module
Combines per-sample series into one table aligned on 2theta
"""

import numpy as np
import pandas as pd
from collections import Counter
from functools import reduce
from typing import List, Sequence

from tools.data_loader import XRDSeries, validate_xrd_data
from tools.exceptions import XRDConfigurationError
from utils.logger import log_debug, log_series_skipped

DEFAULT_THETA_COL = '2Theta'
DEFAULT_ANGLE_TOLERANCE = 1e-6


def snap_angles(angles: np.ndarray, tolerance: float = DEFAULT_ANGLE_TOLERANCE) -> np.ndarray:
    """
    Map every angle to a canonical join key

    Sorted angles are chained into groups where neighbours differ by at most
    ``tolerance``; each group is keyed by its smallest value.

    Args:
        angles: Pooled angle values from all series
        tolerance: Maximum gap between neighbours in one group (0 = exact)

    Returns:
        Array of the distinct canonical angles, ascending
    """
    unique = np.unique(np.asarray(angles, dtype=float))
    if unique.size == 0 or tolerance <= 0:
        return unique

    new_group = np.empty(unique.size, dtype=bool)
    new_group[0] = True
    new_group[1:] = np.diff(unique) > tolerance
    return unique[new_group]


def _series_frame(series: XRDSeries, keys: np.ndarray, theta_col: str) -> pd.DataFrame:
    """Build a two-column frame for one series with snapped angles"""
    two_theta = np.asarray(series.two_theta, dtype=float)
    intensity = np.asarray(series.intensity, dtype=float)

    # Index of the largest key not above each angle is its group key
    idx = np.searchsorted(keys, two_theta, side='right') - 1
    frame = pd.DataFrame({theta_col: keys[idx], series.sample: intensity})

    if frame[theta_col].duplicated().any():
        log_debug(f"Averaging repeated 2theta values in {series.sample}")
        frame = frame.groupby(theta_col, as_index=False, sort=True).mean()

    return frame


def merge_xrd_series(series_list: Sequence[XRDSeries],
                     theta_col: str = DEFAULT_THETA_COL,
                     angle_tolerance: float = DEFAULT_ANGLE_TOLERANCE) -> pd.DataFrame:
    """
    Merge XRD series into a single table with a full outer join on 2theta

    Args:
        series_list: Series to merge (at least one)
        theta_col: Name of the angle column in the result
        angle_tolerance: Angles closer than this are treated as the same key

    Returns:
        DataFrame with the angle column (ascending, unique) and one
        intensity column per sample; missing values are NaN
    """
    if not series_list:
        raise XRDConfigurationError("Cannot merge an empty list of series")

    counts = Counter(s.sample for s in series_list)
    duplicates = sorted(name for name, n in counts.items() if n > 1)
    if duplicates:
        raise XRDConfigurationError(f"Duplicate sample identifiers: {', '.join(duplicates)}")

    if theta_col in counts:
        raise XRDConfigurationError(f"Sample identifier collides with angle column: {theta_col}")

    valid: List[XRDSeries] = []
    for series in series_list:
        is_valid, message = validate_xrd_data(series)
        if is_valid:
            valid.append(series)
        else:
            log_series_skipped(series.sample, message)

    if not valid:
        raise XRDConfigurationError("No valid data blocks found after processing")

    keys = snap_angles(np.concatenate([np.asarray(s.two_theta, dtype=float) for s in valid]),
                       tolerance=angle_tolerance)
    frames = [_series_frame(s, keys, theta_col) for s in valid]

    merged = reduce(
        lambda left, right: pd.merge(left, right, on=theta_col, how='outer'),
        frames
    )

    return merged.sort_values(theta_col, kind='mergesort').reset_index(drop=True)


def table_summary(table: pd.DataFrame, theta_col: str = DEFAULT_THETA_COL) -> dict:
    """
    Describe a merged table

    Returns:
        Dictionary with row count, column count, 2theta range and the
        number of missing values per sample
    """
    samples = [c for c in table.columns if c != theta_col]
    return {
        'n_rows': len(table),
        'n_columns': len(table.columns),
        'theta_range': (float(table[theta_col].min()), float(table[theta_col].max())),
        'missing': {s: int(table[s].isna().sum()) for s in samples},
    }
