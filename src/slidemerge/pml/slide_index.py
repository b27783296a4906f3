"""Slide Index: 1-based slide numbers mapped to slide references."""

from slidemerge.errors import PackageCorruptError
from slidemerge.opc.constants import NS_R, RT
from slidemerge.opc.package import Package, Part
from slidemerge.schemas.merge_schema import SlideRef

from .presentation import slide_id_elements


def list_slide_ids(presentation_part: Part) -> list[SlideRef]:
    """Derive the ordered ``SlideRef`` list from ``p:sldIdLst``.

    Raises:
        PackageCorruptError: a ``p:sldId`` has a non-numeric id or no ``r:id``.
    """
    refs = []
    for number, sld_id in enumerate(slide_id_elements(presentation_part), 1):
        raw_id = sld_id.get("id", "")
        r_id = sld_id.get(f"{{{NS_R}}}id")
        try:
            slide_id = int(raw_id)
        except ValueError:
            raise PackageCorruptError(f"Slide {number} has a non-numeric slide ID {raw_id!r}") from None
        if not r_id:
            raise PackageCorruptError(f"Slide {number} (ID {slide_id}) has no relationship ID")
        refs.append(SlideRef(number=number, slide_id=slide_id, r_id=r_id))
    return refs


class SlideIndex:
    """Ordered view of a package's slides, addressed by 1-based number."""

    def __init__(self, package: Package):
        self.package = package
        self.refs = list_slide_ids(package.main_part)

    def __len__(self) -> int:
        return len(self.refs)

    def __iter__(self):
        return iter(self.refs)

    def __getitem__(self, number: int) -> SlideRef:
        if not 1 <= number <= len(self.refs):
            raise IndexError(f"Slide number {number} out of range (has {len(self.refs)} slides)")
        return self.refs[number - 1]

    def slide_part(self, number: int) -> Part:
        """Resolve the slide part behind slide ``number``."""
        ref = self[number]
        presentation_part = self.package.main_part
        rel = presentation_part.rels.get(ref.r_id)
        if rel is None or rel.is_external:
            raise PackageCorruptError(f"Slide {number} references missing relationship {ref.r_id}")
        if rel.reltype != RT.SLIDE:
            raise PackageCorruptError(f"Slide {number} relationship {ref.r_id} is not a slide")
        if rel.target_partname not in self.package:
            raise PackageCorruptError(f"Slide {number} part {rel.target_partname} is missing")
        return self.package.part(rel.target_partname)
