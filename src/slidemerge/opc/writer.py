"""Package Writer: consistency checks and atomic commit to disk."""

import logging
import os
import shutil
import tempfile
import zipfile
from pathlib import Path

from pptx.opc.packuri import CONTENT_TYPES_URI, PACKAGE_URI

from slidemerge.errors import PackageConsistencyError, PackageWriteError
from slidemerge.utils.file_utils import ensure_directory

from .constants import NS_P, NS_R, RT
from .oxml import localname
from .package import Package, Part

logger = logging.getLogger(__name__)


def verify_consistency(package: Package) -> None:
    """Check referential integrity of everything the merge touched.

    Checks the presentation's slide list (unique slide IDs, every ``r:id``
    resolving to a slide part) and, for every modified XML part, that each
    ``r:*`` attribute names a relationship of that part and every internal
    relationship targets an existing part.

    Raises:
        PackageConsistencyError: listing every problem found.
    """
    problems: list[str] = []
    main = package.main_part

    seen_ids: set[str] = set()
    sld_id_lst = main.element.find(f"{{{NS_P}}}sldIdLst")
    if sld_id_lst is not None:
        for sld_id in sld_id_lst.iter(f"{{{NS_P}}}sldId"):
            slide_id = sld_id.get("id")
            if slide_id in seen_ids:
                problems.append(f"duplicate slide ID {slide_id}")
            seen_ids.add(slide_id)
            rid = sld_id.get(f"{{{NS_R}}}id")
            rel = main.rels.get(rid)
            if rel is None:
                problems.append(f"slide ID {slide_id} references missing {rid}")
            elif rel.reltype != RT.SLIDE:
                problems.append(f"slide ID {slide_id} references {rid}, which is not a slide")

    for part in package.iter_parts():
        if not (part.dirty and part.is_xml):
            continue
        problems.extend(_dangling_references(part))
        for rel in part.rels:
            if not rel.is_external and rel.target_partname not in package:
                problems.append(f"{part.partname} {rel.rid} targets missing part {rel.target_partname}")

    if problems:
        raise PackageConsistencyError(problems)


def _dangling_references(part: Part) -> list[str]:
    problems = []
    prefix = f"{{{NS_R}}}"
    for el in part.element.iter():
        for attr_name, value in el.attrib.items():
            if attr_name.startswith(prefix) and value and value not in part.rels:
                local = localname(el)
                problems.append(f"{part.partname} <{local}> references missing {value}")
    return problems


def _iter_entries(package: Package):
    """Yield ``(membername, bytes)`` for every zip entry, content types first."""
    yield CONTENT_TYPES_URI.membername, package.content_types.to_xml()
    yield PACKAGE_URI.rels_uri.membername, package.root_rels_blob
    for part in package.iter_parts():
        yield part.partname.membername, part.blob
        rels_blob = part.rels_blob
        if rels_blob is not None:
            yield part.partname.rels_uri.membername, rels_blob


def commit(package: Package, path: str | Path) -> Path:
    """Write ``package`` to ``path`` atomically.

    The archive is assembled in a temporary file beside ``path`` and renamed
    into place, so ``path`` either keeps its previous state or holds the
    complete new package.

    Raises:
        PackageConsistencyError: dangling IDs or duplicate slide IDs.
        PackageWriteError: the archive could not be written or moved.
    """
    path = Path(path)
    verify_consistency(package)

    try:
        directory = ensure_directory(path.parent)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}_", suffix=".tmp", dir=directory)
    except OSError as e:
        raise PackageWriteError(f"Cannot create a temporary file next to {path}: {e}") from e

    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as fh, zipfile.ZipFile(fh, "w", zipfile.ZIP_DEFLATED) as zf:
            for membername, blob in _iter_entries(package):
                zf.writestr(membername, blob)
        if package.path.exists():
            shutil.copymode(package.path, tmp_path)
        os.replace(tmp_path, path)
    except BaseException as e:
        tmp_path.unlink(missing_ok=True)
        if isinstance(e, OSError):
            raise PackageWriteError(f"Failed to write {path}: {e}") from e
        raise

    logger.info(f"Saved: {path}")
    return path
