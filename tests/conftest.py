"""Shared fixtures: decks built with python-pptx and hand-assembled packages."""

import base64
import io
import zipfile
from pathlib import Path

import pytest
from pptx import Presentation
from pptx.util import Inches

# 1x1 transparent PNG
PNG_1X1 = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)

NS_DECLS = (
    'xmlns:a="http://schemas.openxmlformats.org/drawingml/2006/main" '
    'xmlns:r="http://schemas.openxmlformats.org/officeDocument/2006/relationships" '
    'xmlns:p="http://schemas.openxmlformats.org/presentationml/2006/main"'
)

SLIDE_CT = "application/vnd.openxmlformats-officedocument.presentationml.slide+xml"
PRESENTATION_CT = "application/vnd.openxmlformats-officedocument.presentationml.presentation.main+xml"
RT_BASE = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"


def slide_xml(text: str) -> str:
    """A well-formed slide holding one text shape."""
    return (
        f'<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        f"<p:sld {NS_DECLS}><p:cSld><p:spTree>"
        f'<p:nvGrpSpPr><p:cNvPr id="1" name=""/><p:cNvGrpSpPr/><p:nvPr/></p:nvGrpSpPr>'
        f"<p:grpSpPr/>"
        f'<p:sp><p:nvSpPr><p:cNvPr id="2" name="Text"/><p:cNvSpPr txBox="1"/><p:nvPr/></p:nvSpPr>'
        f"<p:spPr/><p:txBody><a:bodyPr/><a:p><a:r><a:t>{text}</a:t></a:r></a:p></p:txBody></p:sp>"
        f"</p:spTree></p:cSld></p:sld>"
    )


def write_package(path: Path, members: dict[str, str | bytes]) -> Path:
    """Write raw zip members, for packages python-pptx would refuse to build."""
    with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, data in members.items():
            zf.writestr(name, data.encode("utf-8") if isinstance(data, str) else data)
    return path


def bare_package_members(
    slides: list[str],
    slide_ids: list[int] | None = None,
    with_size: bool = False,
    app_slides: int | None = None,
) -> dict[str, str]:
    """Members of a minimal presentation: no masters, no layouts, optional sldSz."""
    slide_ids = slide_ids or [256 + i for i in range(len(slides))]
    overrides = [f'<Override PartName="/ppt/presentation.xml" ContentType="{PRESENTATION_CT}"/>']
    pres_rels = []
    sld_ids = []
    members: dict[str, str] = {}
    for i, (xml, sid) in enumerate(zip(slides, slide_ids), 1):
        members[f"ppt/slides/slide{i}.xml"] = xml
        overrides.append(f'<Override PartName="/ppt/slides/slide{i}.xml" ContentType="{SLIDE_CT}"/>')
        pres_rels.append(f'<Relationship Id="rId{i}" Type="{RT_BASE}/slide" Target="slides/slide{i}.xml"/>')
        sld_ids.append(f'<p:sldId id="{sid}" r:id="rId{i}"/>')

    root_rels = [f'<Relationship Id="rId1" Type="{RT_BASE}/officeDocument" Target="ppt/presentation.xml"/>']
    if app_slides is not None:
        overrides.append(
            '<Override PartName="/docProps/app.xml" '
            'ContentType="application/vnd.openxmlformats-officedocument.extended-properties+xml"/>'
        )
        root_rels.append(f'<Relationship Id="rId2" Type="{RT_BASE}/extended-properties" Target="docProps/app.xml"/>')
        members["docProps/app.xml"] = (
            '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
            '<Properties xmlns="http://schemas.openxmlformats.org/officeDocument/2006/extended-properties">'
            f"<Application>Test</Application><Slides>{app_slides}</Slides></Properties>"
        )

    size = '<p:sldSz cx="12192000" cy="6858000"/>' if with_size else ""
    sld_id_lst = f"<p:sldIdLst>{''.join(sld_ids)}</p:sldIdLst>" if sld_ids else ""
    members.update({
        "[Content_Types].xml": (
            '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
            '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
            '<Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml"/>'
            '<Default Extension="xml" ContentType="application/xml"/>'
            f"{''.join(overrides)}</Types>"
        ),
        "_rels/.rels": (
            '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
            '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
            f"{''.join(root_rels)}</Relationships>"
        ),
        "ppt/presentation.xml": (
            '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
            f"<p:presentation {NS_DECLS}>{sld_id_lst}{size}"
            '<p:notesSz cx="6858000" cy="9144000"/></p:presentation>'
        ),
        "ppt/_rels/presentation.xml.rels": (
            '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
            '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
            f"{''.join(pres_rels)}</Relationships>"
        ),
    })
    return members


def read_member(path: Path, name: str) -> bytes:
    with zipfile.ZipFile(path) as zf:
        return zf.read(name)


def slide_texts(path: Path) -> list[str]:
    """Concatenated text of every slide, in slide order."""
    prs = Presentation(str(path))
    texts = []
    for slide in prs.slides:
        parts = [shape.text_frame.text for shape in slide.shapes if shape.has_text_frame]
        texts.append(" ".join(parts))
    return texts


def build_deck(path: Path, texts: list[str], layout_index: int = 6) -> Path:
    """Save a python-pptx deck with one textbox per slide."""
    prs = Presentation()
    for text in texts:
        slide = prs.slides.add_slide(prs.slide_layouts[layout_index])
        box = slide.shapes.add_textbox(Inches(1), Inches(1), Inches(6), Inches(1))
        box.text_frame.paragraphs[0].text = text
    prs.save(str(path))
    return path


@pytest.fixture
def make_deck(tmp_path):
    """Factory: ``make_deck("name.pptx", ["text", ...])`` -> saved deck path."""

    def _make(name: str, texts: list[str], layout_index: int = 6) -> Path:
        return build_deck(tmp_path / name, texts, layout_index)

    return _make


@pytest.fixture
def source_deck(make_deck):
    """Ten-slide source deck."""
    return make_deck("source.pptx", [f"Source slide {i}" for i in range(1, 11)])


@pytest.fixture
def target_deck(make_deck):
    """Three-slide target deck."""
    return make_deck("target.pptx", [f"Target slide {i}" for i in range(1, 4)])


@pytest.fixture
def picture_deck(tmp_path):
    """Two-slide deck: slide 1 has a picture and a hyperlink, slide 2 a picture."""
    prs = Presentation()
    image = io.BytesIO(PNG_1X1)

    slide = prs.slides.add_slide(prs.slide_layouts[6])
    slide.shapes.add_picture(image, Inches(1), Inches(1))
    box = slide.shapes.add_textbox(Inches(1), Inches(3), Inches(6), Inches(1))
    run = box.text_frame.paragraphs[0].add_run()
    run.text = "Example link"
    run.hyperlink.address = "https://example.com/"

    slide = prs.slides.add_slide(prs.slide_layouts[6])
    image.seek(0)
    slide.shapes.add_picture(image, Inches(2), Inches(2))

    path = tmp_path / "pictures.pptx"
    prs.save(str(path))
    return path
