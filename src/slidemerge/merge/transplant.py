"""Slide Transplanter: copy source slides into a target package.

For each selected slide:
1. Deep-copy the source slide XML (the source package stays read-only)
2. Create a new slide part in the target under a fresh partname
3. Carry the slide's own relationships: images, media, charts and
   hyperlinks are imported with renumbered rIds; layout, notes, comments
   and slide-to-slide links are dropped
4. Bind the slide to a layout that already exists in the target
5. Allocate the next slide ID and append it to the target's slide list

Slides without a ``p:cSld`` content container are either replaced by an
empty slide or rejected, depending on ``MergeConfig.malformed_slide_policy``.
"""

import copy
import logging

from lxml import etree

from slidemerge.errors import PackageCorruptError, SlideTransplantError
from slidemerge.opc.constants import CT, HYPERLINK_TAGS, NS_A, NS_P, NS_R, NSMAP_SLIDE, RT
from slidemerge.opc.ids import SlideIdAllocator
from slidemerge.opc.oxml import localname
from slidemerge.opc.package import Package, Part
from slidemerge.pml.presentation import (
    append_slide_id,
    existing_slide_ids,
    find_layout_by_name,
    first_layout,
    layout_name,
    slide_id_elements,
    slide_layout_of,
)
from slidemerge.pml.slide_index import SlideIndex
from slidemerge.schemas.merge_schema import MergeConfig, Selection, TransplantedSlide

logger = logging.getLogger(__name__)

SLIDE_PARTNAME_TEMPLATE = "/ppt/slides/slide%d.xml"

# Relationships never carried over from a source slide. The layout is rebound
# to one of the target's; notes and comments belong to the source deck; links
# to other slides would point into the source package.
_DROPPED_RELTYPES = frozenset({
    RT.SLIDE_LAYOUT,
    RT.SLIDE_MASTER,
    RT.NOTES_SLIDE,
    RT.NOTES_MASTER,
    RT.COMMENTS,
    RT.SLIDE,
})


def minimal_slide_element() -> etree._Element:
    """Build an empty slide: a shape tree holding only its group properties."""
    p = f"{{{NS_P}}}"
    sld = etree.Element(f"{p}sld", nsmap=NSMAP_SLIDE)
    sp_tree = etree.SubElement(etree.SubElement(sld, f"{p}cSld"), f"{p}spTree")
    nv_grp_sp_pr = etree.SubElement(sp_tree, f"{p}nvGrpSpPr")
    c_nv_pr = etree.SubElement(nv_grp_sp_pr, f"{p}cNvPr")
    c_nv_pr.set("id", "1")
    c_nv_pr.set("name", "")
    etree.SubElement(nv_grp_sp_pr, f"{p}cNvGrpSpPr")
    etree.SubElement(nv_grp_sp_pr, f"{p}nvPr")
    grp_sp_pr = etree.SubElement(sp_tree, f"{p}grpSpPr")
    etree.SubElement(grp_sp_pr, f"{{{NS_A}}}xfrm")
    clr_map_ovr = etree.SubElement(sld, f"{p}clrMapOvr")
    etree.SubElement(clr_map_ovr, f"{{{NS_A}}}masterClrMapping")
    return sld


class SlideTransplanter:
    """Copies slides from a read-only source package into a writable target.

    One instance serves one merge run: the slide ID counter and the cache of
    imported media parts span every slide it copies.
    """

    def __init__(self, source: Package, target: Package, config: MergeConfig | None = None):
        target.require_writable()
        self.source = source
        self.target = target
        self.config = config or MergeConfig()
        self.source_index = SlideIndex(source)
        self._presentation = target.main_part
        self._slide_ids = SlideIdAllocator(existing_slide_ids(self._presentation))
        self._imported: dict[str, Part] = {}
        self._default_layout: Part | None = None
        self._default_layout_resolved = False
        self.warnings: list[str] = []

    def transplant(self, selection: Selection) -> list[TransplantedSlide]:
        """Copy every valid slide of ``selection`` in ascending order.

        Any error aborts the whole run; the target has then only been
        changed in memory.
        """
        results = []
        next_number = len(slide_id_elements(self._presentation)) + 1
        for number in selection.valid:
            results.append(self.transplant_slide(number, next_number))
            next_number += 1
        return results

    def transplant_slide(self, number: int, target_number: int | None = None) -> TransplantedSlide:
        """Copy source slide ``number`` to the end of the target's slide list."""
        source_part = self.source_index.slide_part(number)
        logger.info(f"Copying slide {number} ({source_part.partname})...")

        slide_xml, repaired = self._clone_slide_xml(source_part, number)

        partname = self.target.next_partname(SLIDE_PARTNAME_TEMPLATE)
        new_part = self.target.add_part(partname, CT.PML_SLIDE, element=slide_xml)

        layout = self._choose_layout(source_part)
        if layout is not None:
            new_part.relate_to(layout, RT.SLIDE_LAYOUT)
        else:
            logger.debug(f"Target has no slide layout; {partname} stays layout-less")

        if not repaired:
            rid_map = self._import_slide_rels(source_part, new_part)
            self._rewrite_references(new_part.element, rid_map, number)

        slide_id = self._slide_ids.next()
        rid = self._presentation.relate_to(new_part, RT.SLIDE)
        append_slide_id(self._presentation, slide_id, rid)

        if target_number is None:
            target_number = len(slide_id_elements(self._presentation))
        logger.debug(f"Slide {number} -> {partname} (ID {slide_id}, {rid})")
        return TransplantedSlide(
            source_number=number,
            target_number=target_number,
            slide_id=slide_id,
            r_id=rid,
            partname=str(partname),
            layout=str(layout.partname) if layout is not None else None,
            repaired=repaired,
        )

    # ------------------------------------------------------------------
    # Slide XML
    # ------------------------------------------------------------------

    def _clone_slide_xml(self, source_part: Part, number: int) -> tuple[etree._Element, bool]:
        """Deep-copy the slide XML, or fall back to an empty slide when it is unusable."""
        try:
            element = source_part.element
        except etree.XMLSyntaxError as e:
            return self._malformed(number, f"slide XML is not well-formed ({e})"), True

        if element.tag != f"{{{NS_P}}}sld":
            return self._malformed(number, f"root element is <{localname(element)}>, not <sld>"), True

        clone = copy.deepcopy(element)
        if clone.find(f"{{{NS_P}}}cSld") is None:
            return self._malformed(number, "slide has no content (p:cSld)"), True
        return clone, False

    def _malformed(self, number: int, reason: str) -> etree._Element:
        if self.config.malformed_slide_policy == "reject":
            raise SlideTransplantError(number, reason)
        message = f"Slide {number}: {reason}; inserting an empty slide instead"
        logger.warning(message)
        self.warnings.append(message)
        return minimal_slide_element()

    # ------------------------------------------------------------------
    # Layout binding
    # ------------------------------------------------------------------

    def _choose_layout(self, source_part: Part) -> Part | None:
        try:
            if self.config.layout_policy == "by_name":
                match = self._layout_matching(source_part)
                if match is not None:
                    return match
            return self._first_layout()
        except etree.XMLSyntaxError as e:
            raise PackageCorruptError(f"Malformed slide master or layout in target: {e}") from e

    def _first_layout(self) -> Part | None:
        if not self._default_layout_resolved:
            self._default_layout = first_layout(self.target)
            self._default_layout_resolved = True
        return self._default_layout

    def _layout_matching(self, source_part: Part) -> Part | None:
        try:
            source_layout = slide_layout_of(source_part)
            name = layout_name(source_layout) if source_layout is not None else ""
        except (etree.XMLSyntaxError, PackageCorruptError) as e:
            logger.debug(f"Cannot read source layout of {source_part.partname}: {e}")
            return None
        match = find_layout_by_name(self.target, name)
        if match is None and name:
            logger.debug(f"No target layout named '{name}', using the first layout")
        return match

    # ------------------------------------------------------------------
    # Relationship importing and ID remapping
    # ------------------------------------------------------------------

    def _import_slide_rels(self, source_part: Part, new_part: Part) -> dict[str, str]:
        """Recreate the slide's relationships on ``new_part`` with fresh rIds.

        Returns an ``{old_rId: new_rId}`` map; source rIds missing from it
        were dropped.
        """
        rid_map: dict[str, str] = {}
        if not self.config.import_dependent_parts:
            return rid_map

        for rel in source_part.rels:
            if rel.reltype in _DROPPED_RELTYPES:
                continue
            if rel.is_external:
                rid_map[rel.rid] = new_part.relate_to_external(rel.target_ref, rel.reltype)
                continue
            dependent = self._source_part_or_none(source_part, rel)
            if dependent is None:
                continue
            imported = self._import_part(dependent)
            rid_map[rel.rid] = new_part.relate_to(imported, rel.reltype)
        return rid_map

    def _import_part(self, source_part: Part) -> Part:
        """Copy a dependent part (and everything it relates to) into the target.

        Each source part is imported once per run; later references reuse the
        copy. The copy keeps the source's rIds, so its XML is not rewritten.
        """
        key = str(source_part.partname)
        if key in self._imported:
            return self._imported[key]

        new_partname = self.target.unique_partname(source_part.partname)
        new_part = self.target.add_part(new_partname, source_part.content_type, blob=source_part.blob)
        self._imported[key] = new_part
        logger.debug(f"Imported {source_part.partname} -> {new_partname}")

        dropped = []
        for rel in source_part.rels:
            if rel.reltype in _DROPPED_RELTYPES:
                dropped.append(rel.rid)
                continue
            if rel.is_external:
                new_part.rels.add(rel.reltype, rel.target_ref, is_external=True, rid=rel.rid)
                continue
            dependent = self._source_part_or_none(source_part, rel)
            if dependent is None:
                dropped.append(rel.rid)
                continue
            imported = self._import_part(dependent)
            new_part.rels.add(rel.reltype, str(imported.partname), rid=rel.rid)

        if dropped and new_part.is_xml:
            kept = {rel.rid: rel.rid for rel in new_part.rels}
            try:
                new_part.mark_dirty()
            except etree.XMLSyntaxError:
                logger.warning(f"Cannot strip dropped references from {new_partname}: not well-formed")
            else:
                self._rewrite_references(new_part.element, kept, None)
        return new_part

    def _source_part_or_none(self, owner: Part, rel) -> Part | None:
        partname = rel.target_partname
        if partname in self.source:
            return self.source.part(partname)
        message = f"{owner.partname}: {rel.rid} targets missing part {partname}; dropped"
        logger.warning(message)
        self.warnings.append(message)
        return None

    def _rewrite_references(self, element: etree._Element, rid_map: dict[str, str], number: int | None) -> None:
        """Point ``r:*`` attributes at their new rIds and strip dangling ones.

        A hyperlink whose relationship was dropped is removed whole; any other
        dangling attribute is removed from its element.
        """
        prefix = f"{{{NS_R}}}"
        doomed: list[etree._Element] = []
        stripped = 0

        for el in element.iter():
            for attr_name in [a for a in el.attrib if a.startswith(prefix)]:
                old = el.get(attr_name)
                if not old:
                    continue
                if old in rid_map:
                    if rid_map[old] != old:
                        el.set(attr_name, rid_map[old])
                elif el.tag in HYPERLINK_TAGS:
                    doomed.append(el)
                    break
                else:
                    del el.attrib[attr_name]
                    stripped += 1

        for el in doomed:
            parent = el.getparent()
            if parent is not None:
                parent.remove(el)

        if doomed or stripped:
            where = f"Slide {number}" if number is not None else "Imported part"
            message = (
                f"{where}: removed {len(doomed)} hyperlink(s) and {stripped} reference(s) "
                f"to relationships that were not copied"
            )
            logger.warning(message)
            self.warnings.append(message)
