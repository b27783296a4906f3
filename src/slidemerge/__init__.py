"""Merge selected slides from one presentation package into another."""

from .errors import (
    ArgumentError,
    InvalidSelectionSyntaxError,
    PackageConsistencyError,
    PackageCorruptError,
    PackageError,
    PackageReadOnlyError,
    PackageWriteError,
    SlideMergeError,
    SlideTransplantError,
)
from .merge.merger import SlideMerger, merge_presentations
from .merge.selection import parse_selection, resolve_selection
from .schemas.merge_schema import MergeConfig, MergeReport, Selection, SlideRef

__version__ = "0.1.0"

__all__ = [
    "ArgumentError",
    "InvalidSelectionSyntaxError",
    "MergeConfig",
    "MergeReport",
    "PackageConsistencyError",
    "PackageCorruptError",
    "PackageError",
    "PackageReadOnlyError",
    "PackageWriteError",
    "Selection",
    "SlideMergeError",
    "SlideMerger",
    "SlideRef",
    "SlideTransplantError",
    "merge_presentations",
    "parse_selection",
    "resolve_selection",
]
