"""
XRD Export Module
Zip archives of rendered plots and CSV export of tables
"""

import os
import zipfile
from datetime import datetime
from typing import Optional, Sequence

import pandas as pd

from tools.exceptions import XRDReadError
from utils.helpers import timestamp as make_timestamp
from utils.logger import log_archive_created


def create_zip_archive(files: Sequence[str],
                       zip_dir: str = 'output/zip',
                       prefix: str = 'XRD_plots',
                       timestamp: Optional[datetime] = None) -> str:
    """
    Bundle files into a timestamped zip archive

    Entries are stored relative to the common parent directory of all
    files, so e.g. raw/ and smoothed/ subfolders are kept.

    Args:
        files: Paths of the files to archive
        zip_dir: Directory for the archive
        prefix: Archive name prefix
        timestamp: Time used in the name (default: now)

    Returns:
        Path of the zip file
    """
    files = list(files)
    missing = [f for f in files if not os.path.isfile(f)]
    if missing:
        raise XRDReadError("Cannot archive missing file", missing[0])

    os.makedirs(zip_dir, exist_ok=True)
    zip_path = os.path.join(zip_dir, f"{prefix}_{make_timestamp(timestamp)}.zip")

    base = os.path.commonpath([os.path.dirname(os.path.abspath(f)) for f in files]) if files else ''
    with zipfile.ZipFile(zip_path, 'w', zipfile.ZIP_DEFLATED) as zf:
        for file_path in files:
            zf.write(file_path, arcname=os.path.relpath(os.path.abspath(file_path), base))

    log_archive_created(zip_path, len(files))
    return zip_path


def export_table_csv(data: pd.DataFrame, file_path: str) -> str:
    """
    Write a merged or transformed table to CSV

    Missing values are written as empty fields.
    """
    os.makedirs(os.path.dirname(file_path) or '.', exist_ok=True)
    data.to_csv(file_path, index=False, na_rep='')
    return file_path


def load_table_csv(file_path: str) -> pd.DataFrame:
    """Read a table written by export_table_csv"""
    if not os.path.isfile(file_path):
        raise XRDReadError("File not found", file_path)
    return pd.read_csv(file_path)
