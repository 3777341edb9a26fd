"""
XRD Data Transformation Module
Vertical offsets, name cleanup and sample ordering for stacked plots
"""

from enum import Enum
from typing import Dict, List, Optional, Union

import pandas as pd

from tools.exceptions import XRDConfigurationError
from utils.helpers import strip_trailing_separator
from utils.logger import log_offsets_resolved, log_warning

OUTPUT_THETA_COL = 'two_theta'
SAMPLE_COL = 'samples'
INTENSITY_COL = 'intensities'


class OrderMethod(Enum):
    """Order of sample columns in the transformed table"""
    AS_IS = 'as_is'
    ALPHABETICAL = 'alphabetical'
    REVERSE = 'reverse'

    @classmethod
    def parse(cls, value: Union['OrderMethod', str, None]) -> 'OrderMethod':
        """Convert a string to an OrderMethod, falling back to AS_IS"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            log_warning(f"Unknown order method {value!r}, keeping original order")
            return cls.AS_IS

    def apply(self, names: List[str]) -> List[str]:
        if self is OrderMethod.ALPHABETICAL:
            return sorted(names)
        if self is OrderMethod.REVERSE:
            return sorted(names, reverse=True)
        return list(names)


def adjusted_step(auto_step: float, auto_adjust_percent: float = 0) -> float:
    """Auto offset step after a percentage adjustment (-50 halves, +100 doubles)"""
    return auto_step * (1 + auto_adjust_percent / 100)


def resolve_offsets(columns: List[str],
                    custom_offsets: Optional[Dict[str, float]] = None,
                    auto_step: float = 300,
                    auto_adjust_percent: float = 0) -> Dict[str, float]:
    """
    Resolve one vertical offset per sample column

    Without custom offsets, column i gets i * step. With custom offsets,
    named columns keep their value and the remaining columns continue
    from the largest custom value, one step at a time.

    Args:
        columns: Sample column names in table order
        custom_offsets: Exact offsets for some or all columns
        auto_step: Step size for auto offsets
        auto_adjust_percent: Percentage adjustment of auto_step

    Returns:
        Dictionary of column name to offset, in table order
    """
    step = adjusted_step(auto_step, auto_adjust_percent)
    custom_offsets = dict(custom_offsets or {})

    unknown = [name for name in custom_offsets if name not in columns]
    if unknown:
        log_warning(f"Some columns in custom_offsets don't exist in data: {', '.join(unknown)}")

    matched = {name: float(value) for name, value in custom_offsets.items() if name in columns}
    start = max(matched.values()) + step if matched else 0.0

    offsets = {}
    n_auto = 0
    for name in columns:
        if name in matched:
            offsets[name] = matched[name]
        else:
            offsets[name] = start + n_auto * step
            n_auto += 1

    log_offsets_resolved(offsets)
    return offsets


def transform_xrd_data(data: pd.DataFrame,
                       custom_offsets: Optional[Dict[str, float]] = None,
                       auto_step: float = 300,
                       auto_adjust_percent: float = 0,
                       theta_col: str = '2Theta',
                       remove_trailing: bool = True,
                       order_method: Union[OrderMethod, str] = OrderMethod.REVERSE,
                       long_format: bool = False,
                       apply_offsets: bool = True) -> pd.DataFrame:
    """
    Transform merged XRD data with auto or custom offsets

    Args:
        data: Merged table with an angle column and one column per sample
        custom_offsets: Offsets keyed by the original column names.
            Columns not listed still get auto offsets, starting one step
            above the highest custom offset.
        auto_step: Step size for auto offsets (default: 300)
        auto_adjust_percent: Percentage to adjust auto_step (can be negative)
        theta_col: Name of the angle column in ``data``
        remove_trailing: Whether to remove one trailing underscore from names
        order_method: as_is, alphabetical or reverse
        long_format: Whether to return one row per (angle, sample)
        apply_offsets: Whether to add the offsets; False only renames and
            reorders, e.g. for per-sample plots

    Returns:
        Transformed DataFrame with a ``two_theta`` column
    """
    if theta_col not in data.columns:
        raise XRDConfigurationError(f"Angle column {theta_col!r} not found in data")

    data_columns = [c for c in data.columns if c != theta_col]
    if remove_trailing:
        new_names = [strip_trailing_separator(c) for c in data_columns]
    else:
        new_names = list(data_columns)

    if len(set(new_names)) != len(new_names) or OUTPUT_THETA_COL in new_names:
        raise XRDConfigurationError(f"Sample names collide after cleanup: {new_names}")

    offsets = resolve_offsets(data_columns, custom_offsets, auto_step, auto_adjust_percent)

    result = pd.DataFrame({OUTPUT_THETA_COL: data[theta_col].to_numpy()})
    for col_name, new_name in zip(data_columns, new_names):
        offset = offsets[col_name] if apply_offsets else 0.0
        result[new_name] = data[col_name].to_numpy(dtype=float) + offset

    ordered = OrderMethod.parse(order_method).apply(new_names)
    result = result[[OUTPUT_THETA_COL] + ordered]

    if long_format:
        return to_long_format(result)
    return result


def to_long_format(wide: pd.DataFrame, theta_col: str = OUTPUT_THETA_COL) -> pd.DataFrame:
    """
    Convert a wide table to one row per (angle, sample)

    The samples column is an ordered categorical following the wide
    column order.
    """
    order = [c for c in wide.columns if c != theta_col]
    long_data = wide.melt(id_vars=theta_col, value_vars=order,
                          var_name=SAMPLE_COL, value_name=INTENSITY_COL)
    long_data[SAMPLE_COL] = pd.Categorical(long_data[SAMPLE_COL], categories=order, ordered=True)
    return long_data


def to_wide_format(long_data: pd.DataFrame, theta_col: str = OUTPUT_THETA_COL) -> pd.DataFrame:
    """Convert a long table back to one column per sample"""
    samples = long_data[SAMPLE_COL]
    if isinstance(samples.dtype, pd.CategoricalDtype):
        order = list(samples.cat.categories)
    else:
        order = list(pd.unique(samples))

    wide = long_data.pivot(index=theta_col, columns=SAMPLE_COL, values=INTENSITY_COL)
    wide.columns = [str(c) for c in wide.columns]

    # Rows follow the first occurrence of each angle, columns the sample order
    first_seen = pd.unique(long_data[theta_col])
    wide = wide.reindex(index=first_seen, columns=order)
    wide.index.name = theta_col
    return wide.reset_index()
