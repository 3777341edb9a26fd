"""
XRD Plotter Exceptions
Typed errors raised by the loading, merging and transformation tools
"""

from typing import Optional


class XRDError(Exception):
    """Base class for all XRD plotter errors"""


class XRDConfigurationError(XRDError, ValueError):
    """Invalid input or settings; the operation aborts before writing output"""


class XRDReadError(XRDError, IOError):
    """A file or directory could not be found, read or parsed"""

    def __init__(self, message: str, path: Optional[str] = None):
        if path is not None:
            message = f"{message}: {path}"
        super().__init__(message)
        self.path = path
