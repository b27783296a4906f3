"""PresentationML structures: slide list, masters, layouts."""

from .slide_index import SlideIndex, list_slide_ids

__all__ = ["SlideIndex", "list_slide_ids"]
