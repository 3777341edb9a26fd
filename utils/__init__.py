# XRD Plotter Utilities
from .helpers import (
    DEFAULT_NAME_PATTERN,
    DEFAULT_FILE_PATTERN,
    make_name_extractor,
    extract_sample_name,
    clean_file_name
)
from .help_texts import HELP_TEXTS
from .logger import (
    logger,
    log_info,
    log_warning,
    log_error,
    log_debug,
    log_import_start,
    log_merge_complete,
    log_file_load,
    log_file_error
)
