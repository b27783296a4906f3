"""PresentationML helpers over the package model.

Operates on the raw ``p:presentation`` / ``p:sldMaster`` / ``p:sldLayout``
XML of :class:`~slidemerge.opc.package.Part` objects.
"""

import logging

from lxml import etree

from slidemerge.opc.constants import NS_EP, NS_P, NS_R, RT
from slidemerge.opc.oxml import insert_in_order
from slidemerge.opc.package import Package, Part

logger = logging.getLogger(__name__)

# p:presentation child sequence, used to insert missing elements in place
_PRESENTATION_SEQUENCE = (
    "sldMasterIdLst",
    "notesMasterIdLst",
    "handoutMasterIdLst",
    "sldIdLst",
    "sldSz",
    "notesSz",
    "smartTags",
    "embeddedFontLst",
    "custShowLst",
    "photoAlbum",
    "custDataLst",
    "kinsoku",
    "defaultTextStyle",
    "modifyVerifier",
    "extLst",
)


def _successors(localname: str) -> tuple[str, ...]:
    idx = _PRESENTATION_SEQUENCE.index(localname)
    return tuple(f"{{{NS_P}}}{name}" for name in _PRESENTATION_SEQUENCE[idx + 1:])


def slide_id_elements(presentation_part: Part) -> list[etree._Element]:
    """The ``p:sldId`` entries of the slide reference list, in order."""
    sld_id_lst = presentation_part.element.find(f"{{{NS_P}}}sldIdLst")
    if sld_id_lst is None:
        return []
    return list(sld_id_lst.iter(f"{{{NS_P}}}sldId"))


def existing_slide_ids(presentation_part: Part) -> list[int]:
    ids = []
    for sld_id in slide_id_elements(presentation_part):
        try:
            ids.append(int(sld_id.get("id", "")))
        except ValueError:
            logger.warning(f"Ignoring non-numeric slide ID {sld_id.get('id')!r}")
    return ids


def append_slide_id(presentation_part: Part, slide_id: int, rid: str) -> etree._Element:
    """Append ``<p:sldId id=... r:id=...>``, creating ``p:sldIdLst`` if absent."""
    presentation_part.mark_dirty()
    root = presentation_part.element
    sld_id_lst = root.find(f"{{{NS_P}}}sldIdLst")
    if sld_id_lst is None:
        sld_id_lst = etree.Element(f"{{{NS_P}}}sldIdLst")
        insert_in_order(root, sld_id_lst, _successors("sldIdLst"))
    entry = etree.SubElement(sld_id_lst, f"{{{NS_P}}}sldId")
    entry.set("id", str(slide_id))
    entry.set(f"{{{NS_R}}}id", rid)
    return entry


def ensure_slide_size(presentation_part: Part, cx: int, cy: int) -> bool:
    """Add ``p:sldSz`` with the given EMU size if the presentation has none.

    Returns True when the element was added.
    """
    root = presentation_part.element
    if root.find(f"{{{NS_P}}}sldSz") is not None:
        return False
    presentation_part.mark_dirty()
    sld_sz = etree.Element(f"{{{NS_P}}}sldSz")
    sld_sz.set("cx", str(cx))
    sld_sz.set("cy", str(cy))
    insert_in_order(root, sld_sz, _successors("sldSz"))
    logger.info(f"Presentation had no slide size; set to {cx}x{cy} EMU")
    return True


def slide_masters(package: Package) -> list[Part]:
    """Slide master parts in ``p:sldMasterIdLst`` order."""
    presentation_part = package.main_part
    masters = []
    lst = presentation_part.element.find(f"{{{NS_P}}}sldMasterIdLst")
    if lst is not None:
        for entry in lst.iter(f"{{{NS_P}}}sldMasterId"):
            part = _resolve(presentation_part, entry.get(f"{{{NS_R}}}id"))
            if part is not None:
                masters.append(part)
    if not masters:
        # Fall back to relationship order for packages without an ID list
        for rel in presentation_part.rels.by_reltype(RT.SLIDE_MASTER):
            part = _resolve(presentation_part, rel.rid)
            if part is not None:
                masters.append(part)
    return masters


def slide_layouts(master_part: Part) -> list[Part]:
    """Layout parts of a master in ``p:sldLayoutIdLst`` order."""
    layouts = []
    lst = master_part.element.find(f"{{{NS_P}}}sldLayoutIdLst")
    if lst is not None:
        for entry in lst.iter(f"{{{NS_P}}}sldLayoutId"):
            part = _resolve(master_part, entry.get(f"{{{NS_R}}}id"))
            if part is not None:
                layouts.append(part)
    if not layouts:
        for rel in master_part.rels.by_reltype(RT.SLIDE_LAYOUT):
            part = _resolve(master_part, rel.rid)
            if part is not None:
                layouts.append(part)
    return layouts


def first_layout(package: Package) -> Part | None:
    """First layout of the first master that has one, or None."""
    for master in slide_masters(package):
        layouts = slide_layouts(master)
        if layouts:
            return layouts[0]
    return None


def layout_name(layout_part: Part) -> str:
    c_sld = layout_part.element.find(f"{{{NS_P}}}cSld")
    return c_sld.get("name", "") if c_sld is not None else ""


def find_layout_by_name(package: Package, name: str) -> Part | None:
    if not name:
        return None
    for master in slide_masters(package):
        for layout in slide_layouts(master):
            if layout_name(layout) == name:
                return layout
    return None


def slide_layout_of(slide_part: Part) -> Part | None:
    """The layout a slide is bound to, if any."""
    for rel in slide_part.rels.by_reltype(RT.SLIDE_LAYOUT):
        return _resolve(slide_part, rel.rid)
    return None


def update_app_slide_count(package: Package, count: int) -> bool:
    """Keep ``docProps/app.xml``'s ``<Slides>`` in step with the slide list."""
    for rel in package.rels.by_reltype(RT.EXTENDED_PROPERTIES):
        if rel.target_partname not in package:
            continue
        app_part = package.part(rel.target_partname)
        try:
            slides_el = app_part.element.find(f"{{{NS_EP}}}Slides")
        except etree.XMLSyntaxError as e:
            logger.warning(f"Leaving malformed {app_part.partname} untouched: {e}")
            return False
        if slides_el is None or slides_el.text == str(count):
            return False
        app_part.mark_dirty()
        slides_el.text = str(count)
        logger.debug(f"Updated {app_part.partname} slide count to {count}")
        return True
    return False


def _resolve(source: Part, rid: str | None) -> Part | None:
    rel = source.rels.get(rid) if rid else None
    if rel is None or rel.is_external or rel.target_partname not in source.package:
        logger.debug(f"{source.partname}: cannot resolve {rid}")
        return None
    return source.package.part(rel.target_partname)
