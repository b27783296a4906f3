"""Open Packaging Conventions model: parts, relationships, content types."""

from .package import READ_ONLY, READ_WRITE, Package, Part, open_package
from .relationships import Relationship, Relationships
from .writer import commit, verify_consistency

__all__ = [
    "READ_ONLY",
    "READ_WRITE",
    "Package",
    "Part",
    "Relationship",
    "Relationships",
    "commit",
    "open_package",
    "verify_consistency",
]
