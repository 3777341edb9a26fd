# XRD Plotting Tools
from .exceptions import XRDError, XRDConfigurationError, XRDReadError
from .data_loader import (
    XRDSeries,
    load_xrd_file,
    load_xrd_directory,
    find_xrd_files,
    extract_xrdml_metadata
)
from .merge import merge_xrd_series
from .transform import (
    OrderMethod,
    resolve_offsets,
    transform_xrd_data,
    to_long_format,
    to_wide_format
)
from .preprocessing import moving_average, sqrt_intensity, smooth_table
from .export import create_zip_archive, export_table_csv
