"""Exception hierarchy for slide merging.

Validation errors (arguments, selection syntax) are raised before any package
is opened. Package errors carry the underlying cause via ``raise ... from``.
"""


class SlideMergeError(Exception):
    """Base class for every error raised by slidemerge."""


class ArgumentError(SlideMergeError):
    """Missing, unknown or inconsistent command-line argument."""


class InvalidSelectionSyntaxError(ArgumentError):
    """A slide selection token matches neither ``N`` nor ``start-end``."""

    def __init__(self, token: str, expression: str, reason: str = ""):
        self.token = token
        self.expression = expression
        detail = f" ({reason})" if reason else ""
        super().__init__(
            f"Invalid slide selection token '{token}' in '{expression}'{detail}. "
            f"Use numbers and ranges like '1,3,5-7'"
        )


class PackageError(SlideMergeError):
    """Base class for faults in a presentation package."""


class PackageCorruptError(PackageError):
    """The archive is unreadable or lacks its required root structure."""


class PackageReadOnlyError(PackageError):
    """A mutation was attempted on a package opened read-only."""


class PackageConsistencyError(PackageError):
    """Dangling relationship IDs or duplicate slide IDs were found before writing."""

    def __init__(self, problems: list[str]):
        self.problems = problems
        listing = "; ".join(problems[:5])
        more = f" (+{len(problems) - 5} more)" if len(problems) > 5 else ""
        super().__init__(f"Package is inconsistent: {listing}{more}")


class PackageWriteError(PackageError):
    """The package could not be written to its destination."""


class SlideTransplantError(SlideMergeError):
    """A source slide could not be copied into the target."""

    def __init__(self, slide_number: int, message: str):
        self.slide_number = slide_number
        super().__init__(f"Slide {slide_number}: {message}")
