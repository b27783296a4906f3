"""Relationship sets (``_rels/*.rels`` parts)."""

import logging

from lxml import etree
from pptx.opc.packuri import PackURI

from .constants import EXTERNAL, NS_REL
from .ids import RelationshipIdAllocator
from .oxml import parse_xml, serialize_xml

logger = logging.getLogger(__name__)


class Relationship:
    """A single typed reference from a source part to a part or external URI."""

    def __init__(self, rid: str, reltype: str, target_ref: str, base_uri: str, is_external: bool = False):
        self.rid = rid
        self.reltype = reltype
        self.target_ref = target_ref
        self.base_uri = base_uri
        self.is_external = is_external

    @property
    def target_partname(self) -> PackURI:
        """Absolute partname of an internal target."""
        if self.is_external:
            raise ValueError(f"Relationship {self.rid} is external: {self.target_ref}")
        return PackURI.from_rel_ref(self.base_uri, self.target_ref)

    def __repr__(self) -> str:
        return f"Relationship({self.rid!r}, {self.reltype.rsplit('/', 1)[-1]!r}, {self.target_ref!r})"


class Relationships:
    """Ordered relationship set of one source part (or of the package root)."""

    def __init__(self, base_uri: str):
        self._base_uri = base_uri
        self._rels: dict[str, Relationship] = {}
        self._allocator = RelationshipIdAllocator()
        self.dirty = False

    @classmethod
    def from_xml(cls, blob: bytes, base_uri: str) -> "Relationships":
        """Load a ``.rels`` part. Raises ``etree.XMLSyntaxError`` on bad XML."""
        rels = cls(base_uri)
        root = parse_xml(blob)
        for el in root.iter(f"{{{NS_REL}}}Relationship"):
            rid = el.get("Id")
            if not rid:
                logger.debug(f"Ignoring relationship without Id under {base_uri}")
                continue
            rels._load(Relationship(
                rid,
                el.get("Type", ""),
                el.get("Target", ""),
                base_uri,
                is_external=el.get("TargetMode") == EXTERNAL,
            ))
        return rels

    def _load(self, rel: Relationship) -> None:
        self._rels[rel.rid] = rel
        self._allocator.reserve(rel.rid)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def __contains__(self, rid: str) -> bool:
        return rid in self._rels

    def __iter__(self):
        return iter(list(self._rels.values()))

    def __len__(self) -> int:
        return len(self._rels)

    def __getitem__(self, rid: str) -> Relationship:
        return self._rels[rid]

    def get(self, rid: str) -> Relationship | None:
        return self._rels.get(rid)

    def by_reltype(self, reltype: str) -> list[Relationship]:
        return [rel for rel in self._rels.values() if rel.reltype == reltype]

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add(self, reltype: str, target: str, is_external: bool = False, rid: str | None = None) -> str:
        """Add a relationship and return its rId.

        ``target`` is an absolute partname for internal targets and a URI for
        external ones. A fresh rId is allocated unless ``rid`` is given, in
        which case it must not be in use yet.
        """
        if rid is None:
            rid = self._allocator.next()
        elif rid in self._rels:
            raise ValueError(f"Relationship ID {rid} already used under {self._base_uri}")
        else:
            self._allocator.reserve(rid)
        if is_external:
            target_ref = target
        else:
            target_ref = PackURI(target).relative_ref(self._base_uri)
        self._rels[rid] = Relationship(rid, reltype, target_ref, self._base_uri, is_external)
        self.dirty = True
        logger.debug(f"Added {rid} -> {target_ref} under {self._base_uri}")
        return rid

    def get_or_add(self, reltype: str, target: str, is_external: bool = False) -> str:
        """Return the rId of an identical relationship, adding one if needed."""
        for rel in self._rels.values():
            if rel.reltype != reltype or rel.is_external != is_external:
                continue
            if is_external and rel.target_ref == target:
                return rel.rid
            if not is_external and rel.target_partname == target:
                return rel.rid
        return self.add(reltype, target, is_external)

    def to_xml(self) -> bytes:
        root = etree.Element(f"{{{NS_REL}}}Relationships", nsmap={None: NS_REL})
        for rel in self._rels.values():
            el = etree.SubElement(root, f"{{{NS_REL}}}Relationship")
            el.set("Id", rel.rid)
            el.set("Type", rel.reltype)
            el.set("Target", rel.target_ref)
            if rel.is_external:
                el.set("TargetMode", EXTERNAL)
        return serialize_xml(root)
