"""lxml parsing and serialization for package parts."""

from lxml import etree

# No entity resolution or network access for untrusted archives
_parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=True)


def parse_xml(blob: bytes) -> etree._Element:
    """Parse a part blob into an lxml element. Raises ``etree.XMLSyntaxError``."""
    return etree.fromstring(blob, _parser)


def serialize_xml(element: etree._Element) -> bytes:
    """Serialize an element the way PowerPoint writes parts.

    lxml emits a single-quoted XML declaration; PowerPoint expects double
    quotes, so the declaration is rewritten.
    """
    raw = etree.tostring(element, xml_declaration=True, encoding="UTF-8", standalone=True)
    return raw.replace(
        b"<?xml version='1.0' encoding='UTF-8' standalone='yes'?>",
        b'<?xml version="1.0" encoding="UTF-8" standalone="yes"?>',
        1,
    )


def localname(element: etree._Element) -> str:
    """Return the tag name of ``element`` without its namespace."""
    return etree.QName(element).localname


def insert_in_order(parent: etree._Element, child: etree._Element, successors: tuple[str, ...]) -> None:
    """Insert ``child`` before the first existing sibling whose tag is in ``successors``.

    ``successors`` are Clark-notation tags that must follow ``child`` in the
    schema sequence. Appends when none of them is present.
    """
    for existing in parent:
        if existing.tag in successors:
            existing.addprevious(child)
            return
    parent.append(child)
