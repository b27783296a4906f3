"""The ``[Content_Types].xml`` table."""

from lxml import etree

from .constants import NS_CT
from .oxml import parse_xml, serialize_xml


def _ext(partname: str) -> str:
    filename = partname.rsplit("/", 1)[-1]
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


class ContentTypes:
    """Default (by extension) and Override (by partname) content types.

    Lookups are case-insensitive; the original spelling is kept for output.
    """

    def __init__(self):
        self._defaults: dict[str, tuple[str, str]] = {}
        self._overrides: dict[str, tuple[str, str]] = {}

    @classmethod
    def from_xml(cls, blob: bytes) -> "ContentTypes":
        types = cls()
        root = parse_xml(blob)
        for el in root:
            if el.tag == f"{{{NS_CT}}}Default":
                ext = el.get("Extension", "")
                types._defaults[ext.lower()] = (ext, el.get("ContentType", ""))
            elif el.tag == f"{{{NS_CT}}}Override":
                name = el.get("PartName", "")
                types._overrides[name.lower()] = (name, el.get("ContentType", ""))
        return types

    def __getitem__(self, partname: str) -> str:
        """Content type of ``partname``; overrides win over extension defaults."""
        override = self._overrides.get(partname.lower())
        if override is not None:
            return override[1]
        default = self._defaults.get(_ext(partname))
        if default is not None:
            return default[1]
        raise KeyError(f"No content type for {partname}")

    def get(self, partname: str, default: str | None = None) -> str | None:
        try:
            return self[partname]
        except KeyError:
            return default

    def register(self, partname: str, content_type: str) -> None:
        """Record ``content_type`` for a new part, adding an Override when needed."""
        if self.get(partname) == content_type:
            return
        self._overrides[partname.lower()] = (partname, content_type)

    def to_xml(self) -> bytes:
        root = etree.Element(f"{{{NS_CT}}}Types", nsmap={None: NS_CT})
        for ext, content_type in self._defaults.values():
            el = etree.SubElement(root, f"{{{NS_CT}}}Default")
            el.set("Extension", ext)
            el.set("ContentType", content_type)
        for name, content_type in self._overrides.values():
            el = etree.SubElement(root, f"{{{NS_CT}}}Override")
            el.set("PartName", name)
            el.set("ContentType", content_type)
        return serialize_xml(root)
