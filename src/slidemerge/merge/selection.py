"""Selection Resolver: parse ``"1,3,5-7"`` style slide selections.

Grammar: comma-separated tokens, each a non-negative integer or an inclusive
``start-end`` range with ``start <= end``. An empty expression selects every
slide. Malformed tokens are fatal; out-of-range numbers are only reported.
"""

import logging
import re

from slidemerge.errors import InvalidSelectionSyntaxError
from slidemerge.schemas.merge_schema import Selection

logger = logging.getLogger(__name__)

_NUMBER = re.compile(r"^[0-9]+$")
_RANGE = re.compile(r"^([0-9]+)\s*-\s*([0-9]+)$")

# Largest number of slides a single range token may expand to
MAX_RANGE_SPAN = 100_000


def parse_selection(expression: str | None) -> list[int] | None:
    """Expand a selection expression into sorted, deduplicated slide numbers.

    Returns ``None`` for an empty or blank expression, meaning "all slides".
    Range checking against a slide count happens in :func:`resolve_selection`.

    Raises:
        InvalidSelectionSyntaxError: a token is neither ``N`` nor ``start-end``,
            or a range is reversed or too wide.
    """
    if expression is None or not expression.strip():
        return None

    numbers: set[int] = set()
    for raw_token in expression.split(","):
        token = raw_token.strip()
        if _NUMBER.match(token):
            numbers.add(int(token))
            continue

        match = _RANGE.match(token)
        if not match:
            raise InvalidSelectionSyntaxError(token, expression)
        start, end = int(match.group(1)), int(match.group(2))
        if start > end:
            raise InvalidSelectionSyntaxError(token, expression, "range start is greater than its end")
        if end - start + 1 > MAX_RANGE_SPAN:
            raise InvalidSelectionSyntaxError(
                token, expression, f"range spans more than {MAX_RANGE_SPAN} slides"
            )
        numbers.update(range(start, end + 1))

    return sorted(numbers)


def resolve_selection(expression: str | None, total: int) -> Selection:
    """Resolve an expression against a source with ``total`` slides.

    Numbers outside ``[1, total]`` land in ``Selection.invalid`` and are
    logged as a warning; the merge proceeds with ``Selection.valid``.
    """
    numbers = parse_selection(expression)
    if numbers is None:
        return Selection(valid=list(range(1, total + 1)), total=total, select_all=True)

    valid = [n for n in numbers if 1 <= n <= total]
    invalid = [n for n in numbers if n < 1 or n > total]
    if invalid:
        logger.warning(
            f"Invalid slide numbers will be skipped: {', '.join(map(str, invalid))} "
            f"(source has {total} slides)"
        )
    return Selection(valid=valid, invalid=invalid, total=total)
