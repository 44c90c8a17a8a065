"""Core types shared by every layer."""

from .errors import ExitCode
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    "ExitCode",
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
