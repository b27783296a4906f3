from .merge_schema import (
    MergeConfig,
    MergeReport,
    Selection,
    SlideRef,
    SlideSize,
    TransplantedSlide,
)

__all__ = [
    "MergeConfig",
    "MergeReport",
    "Selection",
    "SlideRef",
    "SlideSize",
    "TransplantedSlide",
]
