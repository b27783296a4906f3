"""Selective presentation merge: validate, transplant, commit.

The user's target file is never written. The target package is edited in
memory and committed atomically to the output path, so a failed run leaves
no output file behind (or leaves a previous output file untouched).
"""

import logging
from contextlib import ExitStack
from pathlib import Path

from slidemerge.errors import ArgumentError
from slidemerge.opc.package import READ_ONLY, READ_WRITE, open_package
from slidemerge.opc.writer import commit
from slidemerge.pml.presentation import ensure_slide_size, slide_id_elements, update_app_slide_count
from slidemerge.schemas.merge_schema import MergeConfig, MergeReport
from slidemerge.utils.file_utils import default_output_path

from .selection import parse_selection, resolve_selection
from .transplant import SlideTransplanter

logger = logging.getLogger(__name__)


class SlideMerger:
    """Merge selected slides of a source deck into a copy of a target deck.

    The target's masters, layouts and theme are preserved; copied slides are
    appended after the target's own slides in ascending source order.
    """

    def __init__(self, config: MergeConfig | None = None):
        self.config = config or MergeConfig()

    def merge(
        self,
        source: str | Path,
        target: str | Path,
        output: str | Path | None = None,
        slides: str | None = None,
    ) -> MergeReport:
        """Run one merge.

        Args:
            source: Presentation to copy slides from (opened read-only).
            target: Presentation whose design is kept (never modified).
            output: Destination; defaults to ``<target-stem>_merged<ext>``.
            slides: Selection such as ``"1,3,5-7"``; empty or None copies all.

        Raises:
            FileNotFoundError: source or target does not exist.
            ArgumentError: output would overwrite source or target.
            InvalidSelectionSyntaxError: malformed selection (before any I/O).
            PackageError: a package is corrupt or cannot be written.
            SlideTransplantError: a malformed slide under the 'reject' policy.
        """
        source = Path(source)
        target = Path(target)
        output = Path(output) if output else default_output_path(target, self.config.output_suffix)

        if not source.is_file():
            raise FileNotFoundError(f"Source file not found: {source}")
        if not target.is_file():
            raise FileNotFoundError(f"Target file not found: {target}")
        for path, role in ((source, "source"), (target, "target")):
            if output.resolve() == path.resolve():
                raise ArgumentError(f"Output path {output} would overwrite the {role} file")

        # Syntax errors abort before any package is opened
        parse_selection(slides)

        logger.info("Starting selective presentation merge...")
        logger.info(f"Source: {source}")
        logger.info(f"Target: {target}")
        logger.info(f"Output: {output}")

        with ExitStack() as stack:
            source_pkg = stack.enter_context(open_package(source, READ_ONLY))
            target_pkg = stack.enter_context(open_package(target, READ_WRITE))

            transplanter = SlideTransplanter(source_pkg, target_pkg, self.config)
            source_count = len(transplanter.source_index)
            target_count = len(slide_id_elements(target_pkg.main_part))
            logger.info(f"Source presentation has {source_count} slides")
            logger.info(f"Target presentation has {target_count} slides")

            if not (slides or "").strip():
                logger.info("No specific slides specified. Will copy all slides from source.")
            selection = resolve_selection(slides, source_count)
            logger.info(
                f"Will copy {len(selection.valid)} slides: {', '.join(map(str, selection.valid)) or '-'}"
            )

            report = MergeReport(
                source=str(source),
                target=str(target),
                output=str(output),
                source_slide_count=source_count,
                target_slide_count=target_count,
                requested=sorted(selection.valid + selection.invalid),
                skipped=selection.invalid,
            )
            if selection.invalid:
                report.warnings.append(
                    f"Invalid slide numbers skipped: {', '.join(map(str, selection.invalid))}"
                )

            copied = transplanter.transplant(selection)
            report.slides = copied
            report.copied = [s.source_number for s in copied]
            report.new_slide_ids = [s.slide_id for s in copied]
            report.repaired = [s.source_number for s in copied if s.repaired]
            report.warnings.extend(transplanter.warnings)

            size = self.config.default_slide_size
            report.slide_size_added = ensure_slide_size(target_pkg.main_part, size.cx, size.cy)
            if self.config.update_app_properties:
                update_app_slide_count(target_pkg, report.output_slide_count)

            commit(target_pkg, output)

        logger.info(
            f"Successfully copied {len(report.copied)} selected slides from '{source}' into '{output}'"
        )
        logger.info("Master slides from the target presentation have been preserved.")
        return report


def merge_presentations(
    source: str | Path,
    target: str | Path,
    output: str | Path | None = None,
    slides: str | None = None,
    config: MergeConfig | None = None,
) -> MergeReport:
    """Convenience wrapper around :meth:`SlideMerger.merge`."""
    return SlideMerger(config).merge(source, target, output, slides)
