"""In-memory model of an OPC package (the zip container behind a .pptx).

A package is a table of named parts plus one relationship set per part and
one for the package root. Parts are read lazily from the archive; XML parts
are parsed on first access and re-serialized only when marked dirty, so a
part nobody touched is written back byte-for-byte.
"""

import logging
import re
import zipfile
from collections.abc import Callable, Iterator
from pathlib import Path

from lxml import etree
from pptx.opc.packuri import CONTENT_TYPES_URI, PACKAGE_URI, PackURI

from slidemerge.errors import PackageCorruptError, PackageReadOnlyError

from .constants import NS_P, PRESENTATION_CONTENT_TYPES, RT
from .content_types import ContentTypes
from .oxml import parse_xml, serialize_xml
from .relationships import Relationships

logger = logging.getLogger(__name__)

READ_ONLY = "r"
READ_WRITE = "rw"

_FALLBACK_CONTENT_TYPE = "application/octet-stream"


class Part:
    """A named, typed payload within a package."""

    def __init__(
        self,
        partname: PackURI,
        content_type: str,
        package: "Package",
        blob: bytes | None = None,
        element: etree._Element | None = None,
        load_blob: Callable[[], bytes] | None = None,
        load_rels: Callable[[], bytes | None] | None = None,
    ):
        self.partname = partname
        self.content_type = content_type
        self.package = package
        self._blob = blob
        self._element = element
        self._load_blob = load_blob
        self._load_rels = load_rels
        self._rels: Relationships | None = None
        self._dirty = element is not None

    def __repr__(self) -> str:
        return f"Part({str(self.partname)!r})"

    @property
    def is_xml(self) -> bool:
        return self.content_type.endswith("xml")

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def blob(self) -> bytes:
        """Payload bytes, re-serialized from ``element`` if the part was modified."""
        if self._dirty and self._element is not None:
            return serialize_xml(self._element)
        if self._blob is None:
            if self._load_blob is None:
                raise PackageCorruptError(f"Part {self.partname} has no content")
            self._blob = self._load_blob()
        return self._blob

    @property
    def element(self) -> etree._Element:
        """Parsed XML root of the part. Raises ``etree.XMLSyntaxError``."""
        if self._element is None:
            self._element = parse_xml(self.blob)
        return self._element

    @property
    def rels(self) -> Relationships:
        if self._rels is None:
            blob = self._load_rels() if self._load_rels else None
            if blob is None:
                self._rels = Relationships(self.partname.baseURI)
            else:
                try:
                    self._rels = Relationships.from_xml(blob, self.partname.baseURI)
                except etree.XMLSyntaxError as e:
                    raise PackageCorruptError(
                        f"Malformed relationships for {self.partname}: {e}"
                    ) from e
        return self._rels

    @property
    def rels_blob(self) -> bytes | None:
        """Serialized relationship set, or ``None`` when the part has none."""
        if self._rels is None:
            return self._load_rels() if self._load_rels else None
        if not self._rels.dirty and self._load_rels:
            original = self._load_rels()
            if original is not None:
                return original
        if len(self._rels) == 0:
            return None
        return self._rels.to_xml()

    def mark_dirty(self) -> None:
        """Flag the parsed element as modified so it is re-serialized on commit."""
        self.package.require_writable()
        if self._element is None:
            self._element = parse_xml(self.blob)
        self._dirty = True

    def relate_to(self, target: "Part", reltype: str) -> str:
        """Return the rId relating this part to ``target``, adding it if needed."""
        self.package.require_writable()
        return self.rels.get_or_add(reltype, str(target.partname))

    def relate_to_external(self, target_ref: str, reltype: str) -> str:
        self.package.require_writable()
        return self.rels.get_or_add(reltype, target_ref, is_external=True)


class Package:
    """An opened presentation package. Use :func:`open_package` to create one."""

    def __init__(self, path: Path, mode: str = READ_ONLY):
        self.path = Path(path)
        self.mode = mode
        self._zip: zipfile.ZipFile | None = None
        # Keyed by case-folded partname; OPC partnames compare case-insensitively
        self._parts: dict[str, Part] = {}
        self.content_types = ContentTypes()
        self.rels = Relationships(PACKAGE_URI.baseURI)
        self._root_rels_blob: bytes | None = None
        self.main_part: Part | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def __enter__(self) -> "Package":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._zip is not None:
            self._zip.close()
            self._zip = None
            logger.debug(f"Closed package {self.path.name}")

    @property
    def closed(self) -> bool:
        return self._zip is None

    @property
    def read_only(self) -> bool:
        return self.mode == READ_ONLY

    def require_writable(self) -> None:
        if self.read_only:
            raise PackageReadOnlyError(f"Package {self.path.name} is opened read-only")

    def _read_member(self, name: str) -> bytes:
        if self._zip is None:
            raise PackageCorruptError(f"Package {self.path.name} is closed; cannot read {name}")
        try:
            return self._zip.read(name)
        except (zipfile.BadZipFile, OSError, KeyError) as e:
            raise PackageCorruptError(f"Cannot read '{name}' from {self.path.name}: {e}") from e

    def _load(self) -> None:
        try:
            self._zip = zipfile.ZipFile(self.path, "r")
        except (zipfile.BadZipFile, OSError) as e:
            raise PackageCorruptError(f"Not a valid package archive: {self.path}: {e}") from e

        names = [n for n in self._zip.namelist() if not n.endswith("/")]
        members = set(names)

        ct_member = CONTENT_TYPES_URI.membername
        if ct_member not in members:
            raise PackageCorruptError(f"{self.path.name} has no [Content_Types].xml")
        try:
            self.content_types = ContentTypes.from_xml(self._read_member(ct_member))
        except etree.XMLSyntaxError as e:
            raise PackageCorruptError(f"Malformed [Content_Types].xml in {self.path.name}") from e

        root_rels_member = PACKAGE_URI.rels_uri.membername
        if root_rels_member not in members:
            raise PackageCorruptError(f"{self.path.name} has no package relationships (_rels/.rels)")
        self._root_rels_blob = self._read_member(root_rels_member)
        try:
            self.rels = Relationships.from_xml(self._root_rels_blob, PACKAGE_URI.baseURI)
        except etree.XMLSyntaxError as e:
            raise PackageCorruptError(f"Malformed _rels/.rels in {self.path.name}") from e

        rels_members = {n for n in names if _is_rels_member(n)}
        for name in names:
            if name == ct_member or name in rels_members:
                continue
            partname = PackURI(f"/{name}")
            content_type = self.content_types.get(partname)
            if content_type is None:
                logger.debug(f"No content type for {partname}; treating as binary")
                content_type = _FALLBACK_CONTENT_TYPE
            rels_member = partname.rels_uri.membername
            self._parts[_key(partname)] = Part(
                partname,
                content_type,
                self,
                load_blob=_member_loader(self, name),
                load_rels=_member_loader(self, rels_member) if rels_member in rels_members else None,
            )

        self.main_part = self._resolve_main_part()

    def _resolve_main_part(self) -> Part:
        office_docs = self.rels.by_reltype(RT.OFFICE_DOCUMENT)
        if not office_docs:
            raise PackageCorruptError(f"{self.path.name} has no officeDocument relationship")
        partname = office_docs[0].target_partname
        main = self._parts.get(_key(partname))
        if main is None:
            raise PackageCorruptError(f"{self.path.name} is missing its main part {partname}")
        if main.content_type not in PRESENTATION_CONTENT_TYPES:
            raise PackageCorruptError(
                f"{self.path.name} is not a presentation (main part type {main.content_type})"
            )
        try:
            root = main.element
        except etree.XMLSyntaxError as e:
            raise PackageCorruptError(f"Malformed presentation part {partname}: {e}") from e
        if root.tag != f"{{{NS_P}}}presentation":
            raise PackageCorruptError(f"Main part {partname} is not a p:presentation")
        return main

    # ------------------------------------------------------------------
    # Part table
    # ------------------------------------------------------------------

    def __contains__(self, partname: str) -> bool:
        return _key(partname) in self._parts

    def __len__(self) -> int:
        return len(self._parts)

    def iter_parts(self) -> Iterator[Part]:
        return iter(list(self._parts.values()))

    def part(self, partname: str) -> Part:
        try:
            return self._parts[_key(partname)]
        except KeyError:
            raise KeyError(f"No part named {partname} in {self.path.name}") from None

    @property
    def root_rels_blob(self) -> bytes:
        if self.rels.dirty or self._root_rels_blob is None:
            return self.rels.to_xml()
        return self._root_rels_blob

    def add_part(
        self,
        partname: str,
        content_type: str,
        blob: bytes | None = None,
        element: etree._Element | None = None,
    ) -> Part:
        """Register a new part and its content type."""
        self.require_writable()
        partname = PackURI(str(partname))
        if _key(partname) in self._parts:
            raise ValueError(f"Part {partname} already exists in {self.path.name}")
        if blob is None and element is None:
            raise ValueError("A new part needs a blob or an element")
        part = Part(partname, content_type, self, blob=blob, element=element)
        self._parts[_key(partname)] = part
        self.content_types.register(str(partname), content_type)
        logger.debug(f"Added part {partname} ({content_type})")
        return part

    def next_partname(self, template: str) -> PackURI:
        """Next free partname for a ``%d`` template such as ``/ppt/slides/slide%d.xml``."""
        prefix, suffix = template.split("%d")
        pattern = re.compile(rf"^{re.escape(prefix)}(\d+){re.escape(suffix)}$", re.IGNORECASE)
        idx = max(
            (int(m.group(1)) for name in self._parts if (m := pattern.match(name))),
            default=0,
        ) + 1
        while _key(template % idx) in self._parts:
            idx += 1
        return PackURI(template % idx)

    def unique_partname(self, original: str) -> PackURI:
        """Keep ``original`` when free, otherwise bump its numeric suffix."""
        original = str(original)
        if _key(original) not in self._parts:
            return PackURI(original)
        match = re.match(r"^(.*?)(\d+)(\.\w+)$", original)
        if match:
            prefix, _, ext = match.groups()
            return self.next_partname(f"{prefix}%d{ext}")
        name, ext = original.rsplit(".", 1)
        return self.next_partname(f"{name}%d.{ext}")


def _key(partname: str) -> str:
    return str(partname).lower()


def _is_rels_member(name: str) -> bool:
    directory, _, filename = name.rpartition("/")
    return filename.endswith(".rels") and (directory == "_rels" or directory.endswith("/_rels"))


def _member_loader(package: Package, name: str) -> Callable[[], bytes]:
    return lambda: package._read_member(name)


def open_package(path: str | Path, mode: str = READ_ONLY) -> Package:
    """Open a presentation package for reading (``"r"``) or editing (``"rw"``).

    Editing happens in memory; nothing is written until
    :func:`slidemerge.opc.writer.commit`.

    Raises:
        FileNotFoundError: ``path`` does not exist.
        PackageCorruptError: the archive or its root structure is unusable.
    """
    if mode not in (READ_ONLY, READ_WRITE):
        raise ValueError(f"Unknown package mode '{mode}' (use 'r' or 'rw')")
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Package not found: {path}")

    package = Package(path, mode)
    try:
        package._load()
    except BaseException:
        package.close()
        raise
    logger.debug(f"Opened {path.name} ({mode}, {len(package)} parts)")
    return package
