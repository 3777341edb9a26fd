"""
XRD Plotter Helper Functions
Filename handling and small formatting utilities
"""

import os
import re
from datetime import datetime
from typing import Callable, Dict, Optional

# Sample token such as "J_DI_250_AD" in "scan_J_DI_250_AD_.xrdml"
DEFAULT_NAME_PATTERN = r'.*?(J_[A-Za-z0-9_]+)_\..*$'

# Files picked up when scanning a directory
DEFAULT_FILE_PATTERN = r'.*\.(xrdml|xy|txt|csv|ras)$'

TIMESTAMP_FORMAT = '%Y%m%d_%H%M%S'


def make_name_extractor(pattern: str = DEFAULT_NAME_PATTERN) -> Callable[[str], str]:
    """
    Build a function mapping a filename to a sample name

    The first capture group of ``pattern`` becomes the sample name.
    Filenames that do not match are returned unchanged (basename only).

    Args:
        pattern: Regular expression with one capture group

    Returns:
        Callable taking a filename or path
    """
    regex = re.compile(pattern)
    if regex.groups < 1:
        raise ValueError(f"Name pattern needs a capture group: {pattern}")

    def extractor(filename: str) -> str:
        name = os.path.basename(filename)
        match = regex.match(name)
        if match is None:
            return name
        return match.group(1)

    return extractor


def extract_sample_name(filename: str, pattern: str = DEFAULT_NAME_PATTERN) -> str:
    """
    Extract the sample name from a filename

    Args:
        filename: Filename or path
        pattern: Regular expression with one capture group

    Returns:
        Sample name
    """
    return make_name_extractor(pattern)(filename)


def clean_file_name(name: str) -> str:
    """Replace every non-alphanumeric character with an underscore"""
    return re.sub(r'[^a-zA-Z0-9]', '_', name)


def strip_trailing_separator(name: str, separator: str = '_') -> str:
    """Remove exactly one trailing separator, if present"""
    if name.endswith(separator):
        return name[:-len(separator)]
    return name


def strip_prefix(name: str, prefix_pattern: Optional[str]) -> str:
    """
    Remove every match of a prefix pattern from a display name

    Args:
        name: Display name
        prefix_pattern: Regular expression to remove (None = no change)

    Returns:
        Cleaned name
    """
    if not prefix_pattern:
        return name
    return re.sub(prefix_pattern, '', name)


def timestamp(now: Optional[datetime] = None) -> str:
    """Timestamp used in generated file names"""
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


def parse_offset_text(text: str) -> Dict[str, float]:
    """
    Parse custom offsets written one per line as ``name = value``

    Blank lines and lines starting with # are ignored.

    Args:
        text: Offset definitions

    Returns:
        Dictionary of sample name to offset
    """
    offsets = {}
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        name, sep, value = line.partition('=')
        if not sep:
            name, sep, value = line.partition(':')
        name = name.strip().strip('"\'')
        if not sep or not name:
            raise ValueError(f"Line {lineno}: expected 'name = offset', got {line!r}")
        try:
            offsets[name] = float(value)
        except ValueError:
            raise ValueError(f"Line {lineno}: offset for {name} is not a number: {value.strip()!r}")
    return offsets
