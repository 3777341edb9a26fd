"""
XRD Data Preprocessing Module
Smoothing and intensity compression applied before rendering
"""

import numpy as np
import pandas as pd
from typing import List, Optional


def moving_average(intensity, window: int = 7) -> np.ndarray:
    """
    Centered moving average with raw values at the edges

    Positions within ``window // 2`` of either end keep their raw value,
    as do positions whose window contains a missing value. An even window
    at position i covers i - window // 2 + 1 to i + window // 2.

    Args:
        intensity: Intensity values (may contain NaN)
        window: Moving average window size (default: 7)

    Returns:
        Smoothed intensity array
    """
    if window < 1:
        raise ValueError(f"Moving average window must be positive, got {window}")

    y = np.asarray(intensity, dtype=float)
    if window == 1 or len(y) < window:
        return y.copy()

    half = window // 2
    smoothed = (
        pd.Series(y)
        .rolling(window=window, min_periods=window)
        .mean()
        .shift(-half)
        .to_numpy(dtype=float, copy=True)
    )

    smoothed[:half] = np.nan
    smoothed[len(y) - half:] = np.nan

    fallback = np.isnan(smoothed)
    smoothed[fallback] = y[fallback]
    return smoothed


def sqrt_intensity(intensity) -> np.ndarray:
    """
    Square-root intensity compression

    Negative values have no real root and become NaN.
    """
    y = np.asarray(intensity, dtype=float)
    result = np.full(y.shape, np.nan)
    valid = ~np.isnan(y) & (y >= 0)
    result[valid] = np.sqrt(y[valid])
    return result


def smooth_table(data: pd.DataFrame,
                 theta_col: str = 'two_theta',
                 window: int = 7,
                 columns: Optional[List[str]] = None) -> pd.DataFrame:
    """
    Apply the moving average to every sample column of a wide table

    Args:
        data: Wide table with an angle column
        theta_col: Name of the angle column
        window: Moving average window size
        columns: Sample columns to smooth (None = all)

    Returns:
        New DataFrame with smoothed sample columns
    """
    result = data.copy()
    if columns is None:
        columns = [c for c in data.columns if c != theta_col]

    for col in columns:
        result[col] = moving_average(data[col].to_numpy(dtype=float), window=window)

    return result
