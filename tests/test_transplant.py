"""Tests for copying slides between packages."""

import pytest

from conftest import NS_DECLS, PNG_1X1, bare_package_members, slide_xml, write_package
from slidemerge.errors import PackageReadOnlyError, SlideTransplantError
from slidemerge.merge.selection import resolve_selection
from slidemerge.merge.transplant import SlideTransplanter, minimal_slide_element
from slidemerge.opc.constants import NS_A, NS_P, NS_R, RT
from slidemerge.opc.package import READ_ONLY, READ_WRITE, open_package
from slidemerge.pml.presentation import existing_slide_ids, layout_name, slide_layout_of
from slidemerge.schemas.merge_schema import MergeConfig

MALFORMED_SLIDE = f"<p:sld {NS_DECLS}><p:clrMapOvr><a:masterClrMapping/></p:clrMapOvr></p:sld>"

LINKED_SLIDE = (
    f"<p:sld {NS_DECLS}><p:cSld><p:spTree>"
    f'<p:nvGrpSpPr><p:cNvPr id="1" name=""/><p:cNvGrpSpPr/><p:nvPr/></p:nvGrpSpPr><p:grpSpPr/>'
    f'<p:sp><p:nvSpPr><p:cNvPr id="2" name="Text"/><p:cNvSpPr/><p:nvPr/></p:nvSpPr><p:spPr/>'
    f"<p:txBody><a:bodyPr/><a:p><a:r>"
    f'<a:rPr><a:hlinkClick r:id="rId7"/></a:rPr><a:t>Gone link</a:t>'
    f"</a:r></a:p></p:txBody></p:sp>"
    f'<p:pic><p:nvPicPr><p:cNvPr id="3" name="Picture"/><p:cNvPicPr/><p:nvPr/></p:nvPicPr>'
    f'<p:blipFill><a:blip r:embed="rId8"/></p:blipFill><p:spPr/></p:pic>'
    f"</p:spTree></p:cSld></p:sld>"
)


def _transplant(source_path, target_path, expression, config=None):
    """Open both packages, copy ``expression`` and return (target package, results)."""
    source = open_package(source_path, READ_ONLY)
    target = open_package(target_path, READ_WRITE)
    transplanter = SlideTransplanter(source, target, config)
    selection = resolve_selection(expression, len(transplanter.source_index))
    return source, target, transplanter, transplanter.transplant(selection)


class TestSlideTransplanter:
    def test_new_slide_ids_follow_target_max(self, source_deck, target_deck):
        source, target, _, results = _transplant(source_deck, target_deck, "2,4-5")
        with source, target:
            assert [r.slide_id for r in results] == [259, 260, 261]
            assert existing_slide_ids(target.main_part) == [256, 257, 258, 259, 260, 261]
            assert [r.target_number for r in results] == [4, 5, 6]
            assert [r.partname for r in results] == [
                "/ppt/slides/slide4.xml", "/ppt/slides/slide5.xml", "/ppt/slides/slide6.xml",
            ]

    def test_presentation_rels_point_at_new_slides(self, source_deck, target_deck):
        source, target, _, results = _transplant(source_deck, target_deck, "1")
        with source, target:
            rel = target.main_part.rels[results[0].r_id]
            assert rel.reltype == RT.SLIDE
            assert rel.target_partname == results[0].partname

    def test_binds_first_target_layout(self, source_deck, target_deck):
        source, target, _, results = _transplant(source_deck, target_deck, "3")
        with source, target:
            new_slide = target.part(results[0].partname)
            layout = slide_layout_of(new_slide)
            assert layout is not None
            assert layout.partname == "/ppt/slideLayouts/slideLayout1.xml"
            assert results[0].layout == "/ppt/slideLayouts/slideLayout1.xml"
            # the source layout relationship is not carried over
            assert len(new_slide.rels.by_reltype(RT.SLIDE_LAYOUT)) == 1

    def test_binds_layout_by_name(self, make_deck):
        source_path = make_deck("blank_source.pptx", ["one"], layout_index=6)
        target_path = make_deck("title_target.pptx", ["t"], layout_index=0)
        config = MergeConfig(layout_policy="by_name")
        source, target, _, results = _transplant(source_path, target_path, "1", config)
        with source, target:
            layout = slide_layout_of(target.part(results[0].partname))
            assert layout_name(layout) == "Blank"

    def test_content_is_copied(self, source_deck, target_deck):
        source, target, _, results = _transplant(source_deck, target_deck, "7")
        with source, target:
            texts = [t.text for t in target.part(results[0].partname).element.iter(f"{{{NS_A}}}t")]
            assert texts == ["Source slide 7"]

    def test_source_is_never_modified(self, source_deck, target_deck):
        source, target, _, _ = _transplant(source_deck, target_deck, "1-3")
        with source, target:
            assert not any(part.dirty for part in source.iter_parts())
            assert not source.main_part.rels.dirty

    def test_read_only_target_rejected(self, source_deck, target_deck):
        with open_package(source_deck) as source, open_package(target_deck) as target:
            with pytest.raises(PackageReadOnlyError):
                SlideTransplanter(source, target)


class TestDependentParts:
    def test_picture_and_hyperlink_imported(self, picture_deck, target_deck):
        source, target, _, results = _transplant(picture_deck, target_deck, "1")
        with source, target:
            new_slide = target.part(results[0].partname)
            images = new_slide.rels.by_reltype(RT.IMAGE)
            assert len(images) == 1
            image_part = target.part(images[0].target_partname)
            assert image_part.blob == PNG_1X1
            assert target.content_types[str(image_part.partname)] == "image/png"

            links = new_slide.rels.by_reltype(RT.HYPERLINK)
            assert [link.target_ref for link in links] == ["https://example.com/"]
            assert links[0].is_external

            embeds = {el.get(f"{{{NS_R}}}embed") for el in new_slide.element.iter(f"{{{NS_A}}}blip")}
            assert embeds == {images[0].rid}
            clicks = {el.get(f"{{{NS_R}}}id") for el in new_slide.element.iter(f"{{{NS_A}}}hlinkClick")}
            assert clicks == {links[0].rid}

    def test_shared_image_imported_once(self, picture_deck, target_deck):
        source, target, _, results = _transplant(picture_deck, target_deck, "1-2")
        with source, target:
            targets = {
                str(target.part(r.partname).rels.by_reltype(RT.IMAGE)[0].target_partname)
                for r in results
            }
            assert len(targets) == 1

    def test_image_partname_collision_renamed(self, picture_deck, tmp_path):
        target_path = tmp_path / "target_with_image.pptx"
        target_path.write_bytes(picture_deck.read_bytes())
        source, target, _, results = _transplant(picture_deck, target_path, "2")
        with source, target:
            image_rel = target.part(results[0].partname).rels.by_reltype(RT.IMAGE)[0]
            assert image_rel.target_partname == "/ppt/media/image2.png"

    def test_dependent_parts_can_be_skipped(self, picture_deck, target_deck):
        config = MergeConfig(import_dependent_parts=False)
        source, target, transplanter, results = _transplant(picture_deck, target_deck, "1", config)
        with source, target:
            new_slide = target.part(results[0].partname)
            assert new_slide.rels.by_reltype(RT.IMAGE) == []
            assert list(new_slide.element.iter(f"{{{NS_A}}}hlinkClick")) == []
            assert "/ppt/media/image1.png" not in target
            assert transplanter.warnings

    def test_dangling_references_scrubbed(self, tmp_path, target_deck):
        path = write_package(tmp_path / "linked.pptx", bare_package_members([LINKED_SLIDE]))
        source, target, transplanter, results = _transplant(path, target_deck, "1")
        with source, target:
            element = target.part(results[0].partname).element
            assert list(element.iter(f"{{{NS_A}}}hlinkClick")) == []
            blip = next(element.iter(f"{{{NS_A}}}blip"))
            assert blip.get(f"{{{NS_R}}}embed") is None
            assert [t.text for t in element.iter(f"{{{NS_A}}}t")] == ["Gone link"]
            assert any("removed 1 hyperlink(s) and 1 reference(s)" in w for w in transplanter.warnings)


class TestMalformedSlides:
    def test_repair_inserts_empty_slide(self, tmp_path, target_deck):
        members = bare_package_members([slide_xml("ok"), MALFORMED_SLIDE])
        path = write_package(tmp_path / "malformed.pptx", members)
        source, target, transplanter, results = _transplant(path, target_deck, "")
        with source, target:
            assert [r.repaired for r in results] == [False, True]
            repaired = target.part(results[1].partname).element
            sp_tree = repaired.find(f"{{{NS_P}}}cSld/{{{NS_P}}}spTree")
            assert sp_tree is not None
            assert sp_tree.find(f"{{{NS_P}}}grpSpPr") is not None
            assert any("Slide 2" in w for w in transplanter.warnings)

    def test_not_well_formed_slide_repaired(self, tmp_path, target_deck):
        members = bare_package_members(["<p:sld"])
        path = write_package(tmp_path / "broken.pptx", members)
        source, target, _, results = _transplant(path, target_deck, "1")
        with source, target:
            assert results[0].repaired

    def test_wrong_root_element_repaired(self, tmp_path, target_deck):
        members = bare_package_members([f"<p:sldLayout {NS_DECLS}><p:cSld/></p:sldLayout>"])
        path = write_package(tmp_path / "wrong_root.pptx", members)
        source, target, transplanter, results = _transplant(path, target_deck, "1")
        with source, target:
            assert results[0].repaired
            assert any("<sldLayout>" in w for w in transplanter.warnings)

    def test_reject_policy_raises(self, tmp_path, target_deck):
        members = bare_package_members([MALFORMED_SLIDE])
        path = write_package(tmp_path / "malformed.pptx", members)
        config = MergeConfig(malformed_slide_policy="reject")
        with pytest.raises(SlideTransplantError, match="Slide 1"):
            _transplant(path, target_deck, "1", config)

    def test_minimal_slide_shape(self):
        sld = minimal_slide_element()
        assert sld.tag == f"{{{NS_P}}}sld"
        c_nv_pr = sld.find(f"{{{NS_P}}}cSld/{{{NS_P}}}spTree/{{{NS_P}}}nvGrpSpPr/{{{NS_P}}}cNvPr")
        assert c_nv_pr.get("id") == "1"
        assert sld.find(f"{{{NS_P}}}clrMapOvr/{{{NS_A}}}masterClrMapping") is not None


class TestLayoutlessTarget:
    def test_target_without_layouts(self, tmp_path, source_deck):
        path = write_package(tmp_path / "bare.pptx", bare_package_members([slide_xml("t")]))
        source, target, _, results = _transplant(source_deck, path, "1")
        with source, target:
            new_slide = target.part(results[0].partname)
            assert results[0].layout is None
            assert new_slide.rels.by_reltype(RT.SLIDE_LAYOUT) == []
            assert results[0].slide_id == 257

    def test_empty_target_starts_ids_at_one(self, tmp_path, source_deck):
        path = write_package(tmp_path / "empty.pptx", bare_package_members([]))
        source, target, _, results = _transplant(source_deck, path, "1-2")
        with source, target:
            assert [r.slide_id for r in results] == [1, 2]
            assert target.main_part.element.find(f"{{{NS_P}}}sldIdLst") is not None
