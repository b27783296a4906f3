"""XML namespaces and OPC vocabulary shared by the package model.

Relationship and content types come from python-pptx so the names match the
ones used across the python-pptx ecosystem.
"""

from pptx.opc.constants import CONTENT_TYPE as CT
from pptx.opc.constants import RELATIONSHIP_TARGET_MODE as RTM
from pptx.opc.constants import RELATIONSHIP_TYPE as RT

NS_P = "http://schemas.openxmlformats.org/presentationml/2006/main"
NS_A = "http://schemas.openxmlformats.org/drawingml/2006/main"
NS_R = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
NS_REL = "http://schemas.openxmlformats.org/package/2006/relationships"
NS_CT = "http://schemas.openxmlformats.org/package/2006/content-types"
NS_EP = "http://schemas.openxmlformats.org/officeDocument/2006/extended-properties"

NSMAP_SLIDE = {"a": NS_A, "r": NS_R, "p": NS_P}

# Main-part content types accepted as a presentation
PRESENTATION_CONTENT_TYPES = frozenset({
    CT.PML_PRESENTATION_MAIN,
    CT.PML_PRES_MACRO_MAIN,
    CT.PML_TEMPLATE_MAIN,
    CT.PML_SLIDESHOW_MAIN,
})

EXTERNAL = RTM.EXTERNAL

# Hyperlink-bearing elements: a dangling r:id drops the whole element
HYPERLINK_TAGS = frozenset({
    f"{{{NS_A}}}hlinkClick",
    f"{{{NS_A}}}hlinkHover",
    f"{{{NS_A}}}hlinkMouseOver",
})

# Standard 4:3 page size in EMU
DEFAULT_SLIDE_SIZE = (9144000, 6858000)

__all__ = [
    "CT",
    "RT",
    "NS_P",
    "NS_A",
    "NS_R",
    "NS_REL",
    "NS_CT",
    "NS_EP",
    "NSMAP_SLIDE",
    "PRESENTATION_CONTENT_TYPES",
    "EXTERNAL",
    "HYPERLINK_TAGS",
    "DEFAULT_SLIDE_SIZE",
]
