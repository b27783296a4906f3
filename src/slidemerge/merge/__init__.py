from .merger import SlideMerger, merge_presentations
from .selection import MAX_RANGE_SPAN, parse_selection, resolve_selection
from .transplant import SlideTransplanter, minimal_slide_element

__all__ = [
    "MAX_RANGE_SPAN",
    "SlideMerger",
    "SlideTransplanter",
    "merge_presentations",
    "minimal_slide_element",
    "parse_selection",
    "resolve_selection",
]
